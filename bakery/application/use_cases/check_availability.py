import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from bakery.application.interfaces.calendar_repo import CalendarRepo
from bakery.application.interfaces.clock import Clock
from bakery.application.interfaces.quote_request_repo import QuoteRequestRepo
from bakery.application.interfaces.reservation_repo import ReservationRepo
from bakery.domain.constants import (
    DEFAULT_DAILY_CAPACITY,
    DEFAULT_MIN_DAYS_AHEAD,
    DEFAULT_WEEKLY_CAPACITY,
    PRODUCTION_WEEK_START,
    PRODUCTION_WEEKDAYS,
    REASON_BLOCKED,
    REASON_CLOSED_DAY,
    REASON_DAY_FULL,
    REASON_PAST_DATE,
    REASON_TOO_SOON,
    REASON_WEEK_FULL,
)
from bakery.domain.entities.calendar_override import CalendarOverride
from bakery.domain.entities.reservation import FulfillmentType

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


@dataclass
class AvailabilityResult:
    available: bool
    reason: str | None = None
    message: str | None = None
    spots_left: int | None = None


@dataclass
class CapacityForecast:
    date: date
    confirmed_orders: int
    pending_payment_links: int
    total_potential: int
    max_per_day: int
    would_exceed_limit: bool
    slots_left: int
    pending_customer_names: list[str] = field(default_factory=list)
    message: str | None = None


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def production_week(on_date: date) -> tuple[date, date]:
    """Wednesday-to-Tuesday week holding the date."""
    offset = (on_date.weekday() - PRODUCTION_WEEK_START) % 7
    start = on_date - timedelta(days=offset)
    return start, start + timedelta(days=6)


class AvailabilityEngine:
    """
    Decides whether a date can take one more reservation.

    Rules run in a fixed order and the first one that applies decides the
    outcome. The engine only reads; it never writes to any store.
    """

    def __init__(
        self,
        reservation_repo: ReservationRepo,
        calendar_repo: CalendarRepo,
        quote_request_repo: QuoteRequestRepo,
        clock: Clock,
        default_capacity: int = DEFAULT_DAILY_CAPACITY,
        weekly_capacity: int | None = DEFAULT_WEEKLY_CAPACITY,
        min_days_ahead: int = DEFAULT_MIN_DAYS_AHEAD,
    ) -> None:
        self._reservation_repo = reservation_repo
        self._calendar_repo = calendar_repo
        self._quote_request_repo = quote_request_repo
        self._clock = clock
        self._default_capacity = default_capacity
        self._weekly_capacity = weekly_capacity
        self._min_days_ahead = min_days_ahead
        self._logger = logging.getLogger(__name__)

    async def effective_capacity(self, on_date: date) -> int:
        override = await self._calendar_repo.get(on_date)
        return self._capacity_of(override)

    def _capacity_of(self, override: CalendarOverride | None) -> int:
        if override is not None and override.capacity is not None:
            return override.capacity
        return self._default_capacity

    async def is_available(
        self,
        on_date: date,
        fulfillment_type: FulfillmentType,
        exclude_request_id: str | None = None,
        skip_buffer_check: bool = False,
        moving_from: date | None = None,
    ) -> AvailabilityResult:
        """
        ``moving_from`` is the current date of an order being moved; when it
        falls in the same production week the order is not counted twice.
        """
        today = self._clock.today()
        if not skip_buffer_check and on_date < today:
            return AvailabilityResult(
                available=False,
                reason=REASON_PAST_DATE,
                message="That date has already passed. Please choose a future date.",
            )

        override = await self._calendar_repo.get(on_date)
        capacity = self._capacity_of(override)

        if override is not None and override.is_force_open:
            return await self._check_day_capacity(on_date, capacity, exclude_request_id)

        if not skip_buffer_check and (on_date - today).days < self._min_days_ahead:
            earliest = today + timedelta(days=self._min_days_ahead)
            return AvailabilityResult(
                available=False,
                reason=REASON_TOO_SOON,
                message=(
                    f"We need at least {self._min_days_ahead} days advance notice. "
                    f"The earliest available date is {earliest.isoformat()}."
                ),
            )

        if on_date.weekday() not in PRODUCTION_WEEKDAYS:
            day_name = DAY_NAMES[on_date.weekday()]
            if fulfillment_type == FulfillmentType.DELIVERY:
                message = f"Sorry, we don't deliver on {day_name}s. Please choose Wednesday-Saturday."
            else:
                message = f"Sorry, we're closed on {day_name}s. Please choose Wednesday-Saturday."
            return AvailabilityResult(available=False, reason=REASON_CLOSED_DAY, message=message)

        if override is not None and override.is_blocked:
            return AvailabilityResult(
                available=False,
                reason=REASON_BLOCKED,
                message=override.note or "Sorry, this date is not available.",
            )

        result = await self._check_day_capacity(on_date, capacity, exclude_request_id)
        if not result.available or self._weekly_capacity is None:
            return result

        week_start, week_end = production_week(on_date)
        week_count = await self._reservation_repo.count_active_between(
            week_start, week_end, exclude_request_id=exclude_request_id
        )
        if moving_from is not None and week_start <= moving_from <= week_end:
            week_count -= 1
        if week_count >= self._weekly_capacity:
            return AvailabilityResult(
                available=False,
                reason=REASON_WEEK_FULL,
                message=(
                    f"That week is fully booked ({self._weekly_capacity} cakes maximum per week). "
                    "Please choose a date in another week."
                ),
                spots_left=0,
            )
        return result

    async def _check_day_capacity(
        self, on_date: date, capacity: int, exclude_request_id: str | None
    ) -> AvailabilityResult:
        count = await self._reservation_repo.count_active(on_date, exclude_request_id=exclude_request_id)
        if count >= capacity:
            return AvailabilityResult(
                available=False,
                reason=REASON_DAY_FULL,
                message=(
                    f"That date is fully booked ({_plural(capacity, 'cake')} maximum per day). "
                    "Please choose another date."
                ),
                spots_left=0,
            )
        spots_left = capacity - count
        return AvailabilityResult(
            available=True,
            message=f"{on_date.isoformat()} is available! {spots_left} slot(s) remaining for that day.",
            spots_left=spots_left,
        )

    async def available_dates(
        self, start: date, end: date, fulfillment_type: FulfillmentType
    ) -> list[date]:
        days: list[date] = []
        current = start
        while current <= end:
            result = await self.is_available(current, fulfillment_type)
            if result.available:
                days.append(current)
            current += timedelta(days=1)
        return days

    async def forecast(self, on_date: date, exclude_request_id: str | None = None) -> CapacityForecast:
        """
        Staff view of a date: committed orders plus open payment links.

        Advisory only. It counts every quoted request on the date as if its
        customer will pay, and adds one for the quote about to be sent.
        """
        confirmed = await self._reservation_repo.count_active(on_date)
        pending = await self._quote_request_repo.list_quoted_on(on_date, exclude_request_id=exclude_request_id)
        max_per_day = await self.effective_capacity(on_date)

        total_potential = confirmed + len(pending) + 1
        would_exceed = total_potential > max_per_day
        message = None
        if would_exceed:
            message = (
                f"You have {_plural(confirmed, 'confirmed order')} and "
                f"{_plural(len(pending), 'pending payment link')} for this date. "
                f"If all customers pay, you'll have {total_potential} orders "
                f"which exceeds your {max_per_day}/day limit."
            )
        return CapacityForecast(
            date=on_date,
            confirmed_orders=confirmed,
            pending_payment_links=len(pending),
            pending_customer_names=[r.customer.name or "Unknown" for r in pending],
            total_potential=total_potential,
            max_per_day=max_per_day,
            would_exceed_limit=would_exceed,
            slots_left=max(0, max_per_day - confirmed),
            message=message,
        )
