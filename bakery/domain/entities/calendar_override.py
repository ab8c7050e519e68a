"""CalendarOverride entity: staff-set status or capacity for one date."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from bakery.domain.errors import ValidationError


class OverrideStatus(str, Enum):
    OPEN = "open"
    AWAY = "away"
    CLOSED = "closed"


@dataclass
class CalendarOverride:
    """
    Per-date exception to the default calendar.

    ``open`` force-opens a date (skipping the weekday and buffer rules but not
    capacity); ``away`` and ``closed`` block it.
    """

    date: date
    status: OverrideStatus
    capacity: int | None = None
    note: str | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.capacity is not None and self.capacity < 1:
            raise ValidationError("capacity", "must be a positive integer")

    @property
    def is_force_open(self) -> bool:
        return self.status == OverrideStatus.OPEN

    @property
    def is_blocked(self) -> bool:
        return self.status in (OverrideStatus.AWAY, OverrideStatus.CLOSED)
