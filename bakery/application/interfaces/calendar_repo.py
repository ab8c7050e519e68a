from datetime import date

from bakery.domain.entities.calendar_override import CalendarOverride


class CalendarRepo:
    async def get(self, on_date: date) -> CalendarOverride | None:
        raise NotImplementedError

    async def list_between(self, start: date, end: date) -> list[CalendarOverride]:
        raise NotImplementedError

    async def upsert(self, override: CalendarOverride) -> CalendarOverride:
        raise NotImplementedError

    async def delete(self, on_date: date) -> bool:
        raise NotImplementedError
