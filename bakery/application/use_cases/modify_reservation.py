import logging
import re
from datetime import date
from enum import Enum

from bakery.application.interfaces.clock import Clock
from bakery.application.interfaces.reservation_repo import ReservationRepo
from bakery.application.interfaces.transaction_manager import TransactionManager
from bakery.application.use_cases.check_availability import AvailabilityEngine
from bakery.application.use_cases.create_reservation import lowest_free_slot
from bakery.domain.constants import MAX_PUSH_DAYS, REASON_DAY_FULL
from bakery.domain.entities.reservation import Reservation, ReservationStatus
from bakery.domain.errors import (
    CapacitySlotConflictError,
    DateUnavailableError,
    InvalidModificationError,
    ReservationNotFoundError,
)
from bakery.domain.value_objects.order_number import OrderNumber
from bakery.infrastructure.db.retry import retry_on_conflict

TIME_PATTERN = re.compile(r"^\d{1,2}:\d{2}\s*(AM|PM)$", re.IGNORECASE)


class ModifyAction(str, Enum):
    CHANGE_TIME = "change_time"
    PUSH_DATE = "push_date"
    FORFEIT = "forfeit"


def _parse_date(value: str | None) -> date:
    if not value:
        raise InvalidModificationError("New date is required")
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise InvalidModificationError(
            "Invalid date format. Please use a format like 2026-12-20"
        ) from exc


def _parse_time(value: str | None) -> str:
    if not value or not value.strip():
        raise InvalidModificationError("New time is required")
    if not TIME_PATTERN.match(value.strip()):
        raise InvalidModificationError('Invalid time format. Please use format like "3:00 PM"')
    return value.strip()


class ModifyReservationUseCase:
    """Customer self-service changes, addressed by order number."""

    def __init__(
        self,
        reservation_repo: ReservationRepo,
        availability: AvailabilityEngine,
        transaction_manager: TransactionManager,
        clock: Clock,
        max_push_days: int = MAX_PUSH_DAYS,
    ) -> None:
        self._reservation_repo = reservation_repo
        self._availability = availability
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._max_push_days = max_push_days
        self._logger = logging.getLogger(__name__)

    async def execute(
        self, order_number: str, action: ModifyAction, new_value: str | None = None
    ) -> Reservation:
        number = OrderNumber.from_string(order_number).value
        reservation = await self._reservation_repo.get_by_order_number(number)
        if reservation is None:
            raise ReservationNotFoundError(number)
        if not reservation.is_modifiable:
            raise InvalidModificationError(
                "This order has already been cancelled or forfeited and cannot be modified."
            )

        if action == ModifyAction.CHANGE_TIME:
            await self._change_time(reservation, new_value)
        elif action == ModifyAction.PUSH_DATE:
            reservation = await self._push_date(reservation, _parse_date(new_value))
        elif action == ModifyAction.FORFEIT:
            async with self._transaction_manager.start():
                reservation.forfeit(self._clock.now())
                await self._reservation_repo.update(reservation)
        else:
            raise InvalidModificationError("Invalid action")

        self._logger.info(
            "Order modified by customer",
            extra={
                "order_number": reservation.order_number,
                "action": action.value,
                "status": reservation.status.value,
                "date": reservation.date.isoformat(),
            },
        )
        return reservation

    async def _change_time(self, reservation: Reservation, new_time: str | None) -> None:
        new_time = _parse_time(new_time)
        async with self._transaction_manager.start():
            reservation.change_time(new_time)
            reservation.updated_at = self._clock.now()
            await self._reservation_repo.update(reservation)

    async def _push_date(self, reservation: Reservation, new_date: date) -> Reservation:
        days_diff = (new_date - reservation.date).days
        if days_diff <= 0:
            raise InvalidModificationError("New date must be after the current scheduled date")
        if days_diff > self._max_push_days:
            raise InvalidModificationError(
                f"You can only push the date by a maximum of {self._max_push_days} days. "
                "Please contact us for larger changes."
            )

        async def attempt() -> Reservation:
            async with self._transaction_manager.start():
                current = await self._reservation_repo.get_by_id(reservation.id)
                result = await self._availability.is_available(
                    new_date, current.fulfillment_type, moving_from=current.date
                )
                if not result.available:
                    raise DateUnavailableError(
                        reason=result.reason,
                        message=f"The new date is not available: {result.message}",
                    )
                capacity = await self._availability.effective_capacity(new_date)
                slot_index = lowest_free_slot(await self._reservation_repo.taken_slots(new_date), capacity)
                if slot_index is None:
                    raise DateUnavailableError(
                        reason=REASON_DAY_FULL,
                        message="The new date is not available: that date is fully booked.",
                    )
                current.reschedule(new_date, self._clock.now())
                current.slot_index = slot_index
                await self._reservation_repo.update(current)
                return current

        try:
            return await retry_on_conflict(attempt)
        except CapacitySlotConflictError as exc:
            raise DateUnavailableError(
                reason=REASON_DAY_FULL,
                message="The new date is not available: that date just filled up.",
            ) from exc


class ManageReservationUseCase:
    """Staff actions: free status changes along the state machine and reschedules."""

    def __init__(
        self,
        reservation_repo: ReservationRepo,
        transaction_manager: TransactionManager,
        clock: Clock,
    ) -> None:
        self._reservation_repo = reservation_repo
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    async def _get(self, reservation_id: int) -> Reservation:
        reservation = await self._reservation_repo.get_by_id(reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(str(reservation_id))
        return reservation

    async def update_status(self, reservation_id: int, status: ReservationStatus) -> Reservation:
        async with self._transaction_manager.start():
            reservation = await self._get(reservation_id)
            previous = reservation.status
            reservation.transition_to(status, self._clock.now())
            await self._reservation_repo.update(reservation)

        self._logger.info(
            "Order status changed by staff",
            extra={
                "order_number": reservation.order_number,
                "from_status": previous.value,
                "to_status": status.value,
            },
        )
        return reservation

    async def reschedule(
        self, reservation_id: int, new_date: date, new_time: str | None = None
    ) -> Reservation:
        """Moves an order to any date; staff reschedules ignore every calendar rule."""
        if new_time is not None:
            new_time = _parse_time(new_time)

        async def attempt() -> Reservation:
            async with self._transaction_manager.start():
                reservation = await self._get(reservation_id)
                taken = await self._reservation_repo.taken_slots(new_date)
                if reservation.date == new_date:
                    taken.discard(reservation.slot_index)
                reservation.reschedule(new_date, self._clock.now())
                reservation.slot_index = lowest_free_slot(taken, None)
                if new_time:
                    reservation.change_time(new_time)
                await self._reservation_repo.update(reservation)
                return reservation

        reservation = await retry_on_conflict(attempt)
        self._logger.info(
            "Order rescheduled by staff",
            extra={
                "order_number": reservation.order_number,
                "date": new_date.isoformat(),
                "slot_index": reservation.slot_index,
            },
        )
        return reservation
