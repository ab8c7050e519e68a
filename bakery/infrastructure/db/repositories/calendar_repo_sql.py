from datetime import date

from sqlalchemy import delete, insert, select, update

from bakery.application.interfaces.calendar_repo import CalendarRepo
from bakery.domain.entities.calendar_override import CalendarOverride, OverrideStatus
from bakery.infrastructure.db.repository import SQLRepository
from bakery.infrastructure.db.tables import calendar_overrides


def _row_to_override(row) -> CalendarOverride:
    return CalendarOverride(
        date=row["date"],
        status=OverrideStatus(row["status"]),
        capacity=row["capacity"],
        note=row["note"],
        updated_at=row["updated_at"],
    )


class CalendarRepoSQL(SQLRepository, CalendarRepo):
    async def get(self, on_date: date) -> CalendarOverride | None:
        result = await self._execute(
            select(calendar_overrides).where(calendar_overrides.c.date == on_date), "calendar lookup"
        )
        row = result.mappings().first()
        return _row_to_override(row) if row else None

    async def list_between(self, start: date, end: date) -> list[CalendarOverride]:
        result = await self._execute(
            select(calendar_overrides)
            .where(calendar_overrides.c.date.between(start, end))
            .order_by(calendar_overrides.c.date),
            "calendar listing",
        )
        return [_row_to_override(row) for row in result.mappings().all()]

    async def upsert(self, override: CalendarOverride) -> CalendarOverride:
        values = {
            "status": override.status.value,
            "capacity": override.capacity,
            "note": override.note,
            "updated_at": override.updated_at,
        }
        result = await self._execute(
            update(calendar_overrides).where(calendar_overrides.c.date == override.date).values(values),
            "calendar update",
        )
        if result.rowcount == 0:
            await self._execute(
                insert(calendar_overrides).values(date=override.date, **values), "calendar insert"
            )
        return override

    async def delete(self, on_date: date) -> bool:
        result = await self._execute(
            delete(calendar_overrides).where(calendar_overrides.c.date == on_date), "calendar delete"
        )
        return result.rowcount > 0
