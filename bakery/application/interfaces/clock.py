"""Clock port: time source, aware of the business timezone."""

from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


class Clock(ABC):
    """
    Time abstraction so calendar rules can be tested deterministically.

    ``today()`` is the calendar day in the business timezone, which is what
    the buffer and past-date rules are measured against.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Current instant, timezone-aware UTC."""
        raise NotImplementedError

    @abstractmethod
    def today(self) -> date:
        """Current calendar day in the business timezone."""
        raise NotImplementedError


class SystemClock(Clock):
    def __init__(self, business_timezone: str = "America/Chicago"):
        self._tz = ZoneInfo(business_timezone)

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return datetime.now(self._tz).date()


class FakeClock(Clock):
    """Fixed clock for tests."""

    def __init__(self, fixed_time: datetime | None = None, business_timezone: str = "America/Chicago"):
        self._fixed_time = fixed_time or datetime.now(timezone.utc)
        if self._fixed_time.tzinfo is None:
            self._fixed_time = self._fixed_time.replace(tzinfo=timezone.utc)
        self._tz = ZoneInfo(business_timezone)

    def now(self) -> datetime:
        return self._fixed_time

    def today(self) -> date:
        return self._fixed_time.astimezone(self._tz).date()

    def set_time(self, new_time: datetime) -> None:
        if new_time.tzinfo is None:
            new_time = new_time.replace(tzinfo=timezone.utc)
        self._fixed_time = new_time
