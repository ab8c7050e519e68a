import logging
from dataclasses import dataclass
from datetime import date

from bakery.application.interfaces.clock import Clock
from bakery.application.interfaces.reservation_repo import ReservationRepo
from bakery.application.interfaces.transaction_manager import TransactionManager
from bakery.application.side_effects import SideEffectDispatcher
from bakery.application.use_cases.check_availability import AvailabilityEngine
from bakery.domain.constants import REASON_DAY_FULL
from bakery.domain.entities.reservation import (
    CustomerInfo,
    FulfillmentType,
    LineDetails,
    PaymentInfo,
    Reservation,
    ReservationStatus,
)
from bakery.domain.errors import CapacitySlotConflictError, DateUnavailableError
from bakery.domain.value_objects.order_number import OrderNumber
from bakery.infrastructure.db.retry import retry_on_conflict


@dataclass
class ReservationDraft:
    date: date
    fulfillment_type: FulfillmentType
    customer: CustomerInfo
    line: LineDetails
    payment: PaymentInfo | None = None
    source_request_id: str | None = None
    line_index: int = 0


@dataclass
class CreatedReservation:
    order_number: str
    reservation_id: int
    reservation: Reservation


def lowest_free_slot(taken: set[int], capacity: int | None) -> int | None:
    """First unclaimed slot index; ``capacity=None`` means unbounded."""
    index = 0
    while index in taken:
        index += 1
    if capacity is not None and index >= capacity:
        return None
    return index


class ReservationWriter:
    """
    The only path that creates reservations.

    Availability is re-checked inside the write transaction and the new row
    claims a ``(date, slot_index)`` capacity slot that the store keeps unique,
    so two writers racing for the last slot cannot both commit. The loser is
    retried, sees the day full, and gets ``DateUnavailableError``.
    """

    def __init__(
        self,
        reservation_repo: ReservationRepo,
        availability: AvailabilityEngine,
        transaction_manager: TransactionManager,
        side_effects: SideEffectDispatcher,
        clock: Clock,
        max_attempts: int = 3,
    ) -> None:
        self._reservation_repo = reservation_repo
        self._availability = availability
        self._transaction_manager = transaction_manager
        self._side_effects = side_effects
        self._clock = clock
        self._max_attempts = max_attempts
        self._logger = logging.getLogger(__name__)

    async def create(
        self,
        draft: ReservationDraft,
        skip_buffer_check: bool = False,
        override_capacity: bool = False,
        is_custom_order: bool = False,
    ) -> CreatedReservation:
        async def attempt() -> Reservation:
            async with self._transaction_manager.start():
                return await self._insert(draft, skip_buffer_check, override_capacity)

        try:
            reservation = await retry_on_conflict(attempt, max_attempts=self._max_attempts)
        except CapacitySlotConflictError as exc:
            raise DateUnavailableError(
                reason=REASON_DAY_FULL,
                message="That date just filled up. Please choose another date.",
            ) from exc

        self._logger.info(
            "Reservation created",
            extra={
                "order_number": reservation.order_number,
                "reservation_id": reservation.id,
                "date": reservation.date.isoformat(),
                "slot_index": reservation.slot_index,
                "override_capacity": override_capacity,
            },
        )
        await self._side_effects.order_created(reservation, is_custom_order=is_custom_order)
        return CreatedReservation(
            order_number=reservation.order_number,
            reservation_id=reservation.id,
            reservation=reservation,
        )

    async def _insert(
        self, draft: ReservationDraft, skip_buffer_check: bool, override_capacity: bool
    ) -> Reservation:
        capacity: int | None = None
        if not override_capacity:
            result = await self._availability.is_available(
                draft.date, draft.fulfillment_type, skip_buffer_check=skip_buffer_check
            )
            if not result.available:
                raise DateUnavailableError(reason=result.reason, message=result.message)
            capacity = await self._availability.effective_capacity(draft.date)

        taken = await self._reservation_repo.taken_slots(draft.date)
        slot_index = lowest_free_slot(taken, capacity)
        if slot_index is None:
            raise DateUnavailableError(
                reason=REASON_DAY_FULL,
                message="That date is fully booked. Please choose another date.",
            )

        sequence = await self._reservation_repo.next_order_sequence()
        now = self._clock.now()
        reservation = Reservation(
            date=draft.date,
            fulfillment_type=draft.fulfillment_type,
            customer=draft.customer,
            line=draft.line,
            status=ReservationStatus.PENDING,
            order_number=OrderNumber.from_sequence(sequence).value,
            payment=draft.payment,
            source_request_id=draft.source_request_id,
            line_index=draft.line_index,
            slot_index=slot_index,
            created_at=now,
            updated_at=now,
        )
        return await self._reservation_repo.add(reservation)
