from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from bakery.api.dependencies import get_use_cases
from bakery.api.schemas.admin import (
    CalendarOverrideRequest,
    CalendarOverrideResponse,
    QuoteRequestResponse,
    RescheduleRequest,
    SendQuoteRequest,
    UpdateStatusRequest,
)
from bakery.api.schemas.availability import CapacityForecastResponse
from bakery.api.schemas.orders import OrderSummary

router = APIRouter(prefix="/admin")


# === Calendar ===


@router.get("/calendar", response_model=list[CalendarOverrideResponse])
async def list_calendar_overrides(
    start: date,
    end: date,
    use_cases=Depends(get_use_cases),
) -> list[CalendarOverrideResponse]:
    overrides = await use_cases["manage_calendar"].list_between(start, end)
    return [CalendarOverrideResponse.from_domain(o) for o in overrides]


@router.get("/calendar/{on_date}", response_model=CalendarOverrideResponse)
async def get_calendar_override(
    on_date: date,
    use_cases=Depends(get_use_cases),
) -> CalendarOverrideResponse:
    override = await use_cases["manage_calendar"].get(on_date)
    if override is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No override for this date")
    return CalendarOverrideResponse.from_domain(override)


@router.put("/calendar/{on_date}", response_model=CalendarOverrideResponse)
async def set_calendar_override(
    on_date: date,
    payload: CalendarOverrideRequest,
    use_cases=Depends(get_use_cases),
) -> CalendarOverrideResponse:
    override = await use_cases["manage_calendar"].set_override(
        on_date, payload.status, capacity=payload.capacity, note=payload.note
    )
    return CalendarOverrideResponse.from_domain(override)


@router.delete("/calendar/{on_date}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_calendar_override(
    on_date: date,
    use_cases=Depends(get_use_cases),
) -> Response:
    removed = await use_cases["manage_calendar"].remove_override(on_date)
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No override for this date")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/capacity", response_model=CapacityForecastResponse)
async def capacity_forecast(
    on_date: date = Query(alias="date"),
    exclude_request_id: str | None = None,
    use_cases=Depends(get_use_cases),
) -> CapacityForecastResponse:
    forecast = await use_cases["availability"].forecast(on_date, exclude_request_id=exclude_request_id)
    return CapacityForecastResponse.from_domain(forecast)


# === Quote requests ===


@router.post("/quote-requests/{request_id}/quote", response_model=QuoteRequestResponse)
async def send_quote(
    request_id: str,
    payload: SendQuoteRequest,
    use_cases=Depends(get_use_cases),
) -> QuoteRequestResponse:
    request = await use_cases["send_quote"].execute(
        request_id=request_id,
        final_price=payload.final_price,
        message=payload.message,
        new_date=payload.new_date,
        override_capacity=payload.override_capacity,
    )
    return QuoteRequestResponse.from_domain(request)


@router.post("/quote-requests/{request_id}/decline", response_model=QuoteRequestResponse)
async def decline_quote(
    request_id: str,
    use_cases=Depends(get_use_cases),
) -> QuoteRequestResponse:
    request = await use_cases["decline_quote"].execute(request_id)
    return QuoteRequestResponse.from_domain(request)


# === Orders ===


@router.post("/reservations/{reservation_id}/status", response_model=OrderSummary)
async def update_reservation_status(
    reservation_id: int,
    payload: UpdateStatusRequest,
    use_cases=Depends(get_use_cases),
) -> OrderSummary:
    reservation = await use_cases["manage_reservation"].update_status(reservation_id, payload.status)
    return OrderSummary.from_domain(reservation)


@router.post("/reservations/{reservation_id}/reschedule", response_model=OrderSummary)
async def reschedule_reservation(
    reservation_id: int,
    payload: RescheduleRequest,
    use_cases=Depends(get_use_cases),
) -> OrderSummary:
    reservation = await use_cases["manage_reservation"].reschedule(
        reservation_id, payload.new_date, new_time=payload.new_time
    )
    return OrderSummary.from_domain(reservation)
