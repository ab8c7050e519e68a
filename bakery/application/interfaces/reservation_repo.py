from datetime import date

from bakery.domain.entities.reservation import Reservation


class ReservationRepo:
    """
    Store of orders and the capacity slots they hold.

    ``add`` and ``update`` persist ``slot_index`` together with the date, and
    the store rejects two active reservations holding the same
    ``(date, slot_index)`` with ``CapacitySlotConflictError``. A second row
    for the same ``(gateway session id, line index)`` raises
    ``ReservationAlreadyExistsError``.
    """

    async def next_order_sequence(self) -> int:
        raise NotImplementedError

    async def add(self, reservation: Reservation) -> Reservation:
        raise NotImplementedError

    async def update(self, reservation: Reservation) -> None:
        raise NotImplementedError

    async def get_by_id(self, reservation_id: int) -> Reservation | None:
        raise NotImplementedError

    async def get_by_order_number(self, order_number: str) -> Reservation | None:
        raise NotImplementedError

    async def find_by_session_id(self, session_id: str) -> list[Reservation]:
        raise NotImplementedError

    async def find_by_source_request(self, request_id: str) -> list[Reservation]:
        raise NotImplementedError

    async def count_active(self, on_date: date, exclude_request_id: str | None = None) -> int:
        raise NotImplementedError

    async def count_active_between(
        self, start: date, end: date, exclude_request_id: str | None = None
    ) -> int:
        """Active reservations with ``start <= date <= end``."""
        raise NotImplementedError

    async def taken_slots(self, on_date: date) -> set[int]:
        raise NotImplementedError
