from fastapi import APIRouter, Depends, status

from bakery.api.dependencies import get_use_cases
from bakery.api.schemas.admin import QuoteRequestResponse, SubmitQuoteRequest

router = APIRouter()


@router.post(
    "/quote-requests",
    response_model=QuoteRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_quote_request(
    payload: SubmitQuoteRequest,
    use_cases=Depends(get_use_cases),
) -> QuoteRequestResponse:
    request = await use_cases["submit_quote_request"].execute(
        kind=payload.kind,
        requested_date=payload.requested_date,
        fulfillment_type=payload.fulfillment_type,
        customer=payload.customer.to_domain(),
        line=payload.cake.to_domain(),
    )
    return QuoteRequestResponse.from_domain(request)
