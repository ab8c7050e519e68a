from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, status

from bakery.api.dependencies import get_use_cases
from bakery.api.schemas.availability import AvailabilityResponse, AvailableDatesResponse
from bakery.domain.entities.reservation import FulfillmentType

router = APIRouter()

MAX_RANGE_DAYS = 90


@router.get("/availability", response_model=AvailabilityResponse)
async def check_availability(
    on_date: date = Query(alias="date"),
    fulfillment_type: FulfillmentType = FulfillmentType.PICKUP,
    exclude_request_id: str | None = None,
    use_cases=Depends(get_use_cases),
) -> AvailabilityResponse:
    result = await use_cases["availability"].is_available(
        on_date, fulfillment_type, exclude_request_id=exclude_request_id
    )
    return AvailabilityResponse.from_result(on_date, result)


@router.get("/availability/dates", response_model=AvailableDatesResponse)
async def list_available_dates(
    start: date,
    end: date,
    fulfillment_type: FulfillmentType = FulfillmentType.PICKUP,
    use_cases=Depends(get_use_cases),
) -> AvailableDatesResponse:
    if end < start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end must not be before start")
    if end - start > timedelta(days=MAX_RANGE_DAYS):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Range is limited to {MAX_RANGE_DAYS} days",
        )
    dates = await use_cases["availability"].available_dates(start, end, fulfillment_type)
    return AvailableDatesResponse(start=start, end=end, dates=dates)
