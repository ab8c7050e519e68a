from copy import deepcopy
from datetime import date

from bakery.application.interfaces.reservation_repo import ReservationRepo
from bakery.domain.entities.reservation import Reservation
from bakery.domain.errors import CapacitySlotConflictError, ReservationAlreadyExistsError


class InMemoryReservationRepo(ReservationRepo):
    """Dict-backed store enforcing the same unique keys as the SQL tables."""

    def __init__(self) -> None:
        self.reservations: dict[int, Reservation] = {}
        self._next_id = 1
        self._sequence = 0

    def _check_unique(self, candidate: Reservation) -> None:
        for other in self.reservations.values():
            if other.id == candidate.id:
                continue
            if (
                candidate.slot_index is not None
                and other.slot_index == candidate.slot_index
                and other.date == candidate.date
            ):
                raise CapacitySlotConflictError(candidate.date.isoformat(), candidate.slot_index)
            if (
                candidate.gateway_session_id is not None
                and other.gateway_session_id == candidate.gateway_session_id
                and other.line_index == candidate.line_index
            ):
                raise ReservationAlreadyExistsError(candidate.gateway_session_id, candidate.line_index)

    async def next_order_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    async def add(self, reservation: Reservation) -> Reservation:
        self._check_unique(reservation)
        reservation.id = self._next_id
        self._next_id += 1
        self.reservations[reservation.id] = deepcopy(reservation)
        return reservation

    async def update(self, reservation: Reservation) -> None:
        self._check_unique(reservation)
        self.reservations[reservation.id] = deepcopy(reservation)

    async def get_by_id(self, reservation_id: int) -> Reservation | None:
        found = self.reservations.get(reservation_id)
        return deepcopy(found) if found else None

    async def get_by_order_number(self, order_number: str) -> Reservation | None:
        for reservation in self.reservations.values():
            if reservation.order_number == order_number:
                return deepcopy(reservation)
        return None

    async def find_by_session_id(self, session_id: str) -> list[Reservation]:
        found = [r for r in self.reservations.values() if r.gateway_session_id == session_id]
        return [deepcopy(r) for r in sorted(found, key=lambda r: r.line_index)]

    async def find_by_source_request(self, request_id: str) -> list[Reservation]:
        return [deepcopy(r) for r in self.reservations.values() if r.source_request_id == request_id]

    def _active(self, exclude_request_id: str | None):
        for reservation in self.reservations.values():
            if not reservation.counts_toward_capacity:
                continue
            if exclude_request_id and reservation.source_request_id == exclude_request_id:
                continue
            yield reservation

    async def count_active(self, on_date: date, exclude_request_id: str | None = None) -> int:
        return sum(1 for r in self._active(exclude_request_id) if r.date == on_date)

    async def count_active_between(
        self, start: date, end: date, exclude_request_id: str | None = None
    ) -> int:
        return sum(1 for r in self._active(exclude_request_id) if start <= r.date <= end)

    async def taken_slots(self, on_date: date) -> set[int]:
        return {
            r.slot_index
            for r in self.reservations.values()
            if r.date == on_date and r.slot_index is not None
        }
