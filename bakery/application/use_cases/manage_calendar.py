import logging
from datetime import date

from bakery.application.interfaces.calendar_repo import CalendarRepo
from bakery.application.interfaces.clock import Clock
from bakery.application.interfaces.transaction_manager import TransactionManager
from bakery.domain.entities.calendar_override import CalendarOverride, OverrideStatus
from bakery.domain.errors import ValidationError


class ManageCalendarUseCase:
    """Staff edits to per-date overrides (upsert by date, remove, list)."""

    def __init__(
        self,
        calendar_repo: CalendarRepo,
        transaction_manager: TransactionManager,
        clock: Clock,
    ) -> None:
        self._calendar_repo = calendar_repo
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    async def get(self, on_date: date) -> CalendarOverride | None:
        return await self._calendar_repo.get(on_date)

    async def list_between(self, start: date, end: date) -> list[CalendarOverride]:
        if end < start:
            raise ValidationError("end", "must not be before start")
        return await self._calendar_repo.list_between(start, end)

    async def set_override(
        self,
        on_date: date,
        status: OverrideStatus,
        capacity: int | None = None,
        note: str | None = None,
    ) -> CalendarOverride:
        override = CalendarOverride(
            date=on_date,
            status=status,
            capacity=capacity,
            note=note,
            updated_at=self._clock.now(),
        )
        async with self._transaction_manager.start():
            saved = await self._calendar_repo.upsert(override)
        self._logger.info(
            "Calendar override saved",
            extra={"date": on_date.isoformat(), "status": status.value, "capacity": capacity},
        )
        return saved

    async def remove_override(self, on_date: date) -> bool:
        async with self._transaction_manager.start():
            removed = await self._calendar_repo.delete(on_date)
        if removed:
            self._logger.info("Calendar override removed", extra={"date": on_date.isoformat()})
        return removed
