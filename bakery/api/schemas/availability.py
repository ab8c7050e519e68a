from datetime import date

from pydantic import BaseModel

from bakery.application.use_cases.check_availability import AvailabilityResult, CapacityForecast


class AvailabilityResponse(BaseModel):
    date: date
    available: bool
    reason: str | None = None
    message: str | None = None
    spots_left: int | None = None

    @classmethod
    def from_result(cls, on_date: date, result: AvailabilityResult) -> "AvailabilityResponse":
        return cls(
            date=on_date,
            available=result.available,
            reason=result.reason,
            message=result.message,
            spots_left=result.spots_left,
        )


class AvailableDatesResponse(BaseModel):
    start: date
    end: date
    dates: list[date]


class CapacityForecastResponse(BaseModel):
    date: date
    confirmed_orders: int
    pending_payment_links: int
    pending_customer_names: list[str]
    total_potential: int
    max_per_day: int
    would_exceed_limit: bool
    slots_left: int
    message: str | None = None

    @classmethod
    def from_domain(cls, forecast: CapacityForecast) -> "CapacityForecastResponse":
        return cls(
            date=forecast.date,
            confirmed_orders=forecast.confirmed_orders,
            pending_payment_links=forecast.pending_payment_links,
            pending_customer_names=forecast.pending_customer_names,
            total_potential=forecast.total_potential,
            max_per_day=forecast.max_per_day,
            would_exceed_limit=forecast.would_exceed_limit,
            slots_left=forecast.slots_left,
            message=forecast.message,
        )
