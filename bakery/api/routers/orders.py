from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from bakery.api.dependencies import get_use_cases
from bakery.api.schemas.orders import (
    CartRequest,
    CartReservationsResponse,
    CreateCheckoutSessionRequest,
    CreateCheckoutSessionResponse,
    ModifyOrderRequest,
    ModifyOrderResponse,
    OrderSummary,
    ReconcileResponse,
)

router = APIRouter()


@router.post(
    "/checkout/sessions",
    response_model=CreateCheckoutSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_checkout_session(
    payload: CreateCheckoutSessionRequest,
    use_cases=Depends(get_use_cases),
) -> CreateCheckoutSessionResponse:
    result = await use_cases["create_checkout_session"].execute(
        customer=payload.customer.to_domain(),
        cart_items=payload.cart_items(),
        fulfillment_type=payload.fulfillment_type,
        delivery_fee=payload.delivery_fee,
    )
    return CreateCheckoutSessionResponse.from_result(result)


@router.post(
    "/reservations",
    response_model=CartReservationsResponse,
    status_code=status.HTTP_201_CREATED,
)
async def place_reservations(
    payload: CartRequest,
    use_cases=Depends(get_use_cases),
):
    result = await use_cases["place_cart"].execute(
        customer=payload.customer.to_domain(),
        cart_items=payload.cart_items(),
    )
    response = CartReservationsResponse.from_result(result)
    if not result.reservations:
        # Every line was rejected
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=response.model_dump(mode="json"))
    return response


@router.post("/reconcile", response_model=ReconcileResponse)
async def reconcile_payment(
    session_id: str | None = None,
    request_id: str | None = None,
    use_cases=Depends(get_use_cases),
) -> ReconcileResponse:
    if not session_id and not request_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="session_id or request_id is required",
        )
    result = await use_cases["reconcile_payment"].execute(session_id=session_id, request_id=request_id)
    return ReconcileResponse.from_result(result)


@router.get("/orders/lookup", response_model=OrderSummary)
async def lookup_order(
    order_number: str = "",
    use_cases=Depends(get_use_cases),
) -> OrderSummary:
    reservation = await use_cases["lookup_order"].get_by_order_number(order_number)
    return OrderSummary.from_domain(reservation)


@router.post("/reservations/{order_number}/modify", response_model=ModifyOrderResponse)
async def modify_reservation(
    order_number: str,
    payload: ModifyOrderRequest,
    use_cases=Depends(get_use_cases),
) -> ModifyOrderResponse:
    reservation = await use_cases["modify_reservation"].execute(
        order_number=order_number,
        action=payload.action,
        new_value=payload.new_value,
    )
    return ModifyOrderResponse(order=OrderSummary.from_domain(reservation))


@router.post("/webhooks/stripe", status_code=status.HTTP_200_OK)
async def stripe_webhook(
    request: Request,
    use_cases=Depends(get_use_cases),
) -> dict:
    raw_body = await request.body()
    signature = request.headers.get("Stripe-Signature")
    outcome = await use_cases["handle_webhook"].execute(raw_body=raw_body, signature=signature)
    return {"received": True, "handled": outcome.handled}
