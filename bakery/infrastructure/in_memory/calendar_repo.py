from copy import deepcopy
from datetime import date

from bakery.application.interfaces.calendar_repo import CalendarRepo
from bakery.domain.entities.calendar_override import CalendarOverride


class InMemoryCalendarRepo(CalendarRepo):
    def __init__(self) -> None:
        self.overrides: dict[date, CalendarOverride] = {}

    async def get(self, on_date: date) -> CalendarOverride | None:
        found = self.overrides.get(on_date)
        return deepcopy(found) if found else None

    async def list_between(self, start: date, end: date) -> list[CalendarOverride]:
        return [deepcopy(o) for d, o in sorted(self.overrides.items()) if start <= d <= end]

    async def upsert(self, override: CalendarOverride) -> CalendarOverride:
        self.overrides[override.date] = deepcopy(override)
        return override

    async def delete(self, on_date: date) -> bool:
        return self.overrides.pop(on_date, None) is not None
