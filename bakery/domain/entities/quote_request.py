"""QuoteRequest entity: a custom or wedding inquiry that may become an order."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from bakery.domain.entities.reservation import CustomerInfo, FulfillmentType, LineDetails
from bakery.domain.errors import InvalidQuoteStatusError, QuoteAlreadyConvertedError
from bakery.domain.value_objects.money import Money


class QuoteStatus(str, Enum):
    PENDING = "pending"
    QUOTED = "quoted"
    APPROVED = "approved"
    DECLINED = "declined"
    CONVERTED = "converted"


class QuoteKind(str, Enum):
    CUSTOM = "custom"
    WEDDING = "wedding"


@dataclass
class QuoteInfo:
    final_price: Decimal
    gateway_session_id: str
    quoted_at: datetime
    payment_url: str | None = None
    message: str | None = None

    def expected_total(self, tax_rate: Decimal) -> Money:
        """What the customer is expected to pay, tax included."""
        return Money(amount=self.final_price).with_tax(tax_rate)


@dataclass
class QuoteRequest:
    """
    Pre-order inquiry priced by staff.

    At most one reservation is ever created from a request; ``converted`` is
    terminal and carries the resulting order number.
    """

    request_number: str
    kind: QuoteKind
    requested_date: date
    fulfillment_type: FulfillmentType
    customer: CustomerInfo
    line: LineDetails
    status: QuoteStatus = QuoteStatus.PENDING
    id: str | None = None
    original_requested_date: date | None = None
    quote: QuoteInfo | None = None
    override_capacity: bool = False
    order_number: str | None = None
    reservation_id: int | None = None
    converted_at: datetime | None = None
    created_at: datetime | None = None
    extra: dict = field(default_factory=dict)

    @property
    def is_converted(self) -> bool:
        return self.status == QuoteStatus.CONVERTED

    @property
    def gateway_session_id(self) -> str | None:
        return self.quote.gateway_session_id if self.quote else None

    def move_date(self, new_date: date) -> bool:
        """Staff moves the requested date while quoting; keeps the first original."""
        if new_date == self.requested_date:
            return False
        if self.original_requested_date is None:
            self.original_requested_date = self.requested_date
        self.requested_date = new_date
        return True

    def mark_quoted(self, quote: QuoteInfo, override_capacity: bool = False) -> None:
        if self.status in (QuoteStatus.CONVERTED, QuoteStatus.DECLINED):
            raise InvalidQuoteStatusError(self.status.value, "quote")
        self.quote = quote
        self.status = QuoteStatus.QUOTED
        if override_capacity:
            self.override_capacity = True

    def decline(self) -> None:
        if self.status == QuoteStatus.CONVERTED:
            raise InvalidQuoteStatusError(self.status.value, "decline")
        self.status = QuoteStatus.DECLINED

    def ensure_convertible(self) -> None:
        if self.is_converted:
            raise QuoteAlreadyConvertedError(self.id or self.request_number, self.order_number)

    def ensure_quotable(self) -> None:
        self.ensure_convertible()
        if self.status == QuoteStatus.DECLINED:
            raise InvalidQuoteStatusError(self.status.value, "quote")

    def mark_converted(self, order_number: str, reservation_id: int | None, now: datetime) -> None:
        self.ensure_convertible()
        self.status = QuoteStatus.CONVERTED
        self.order_number = order_number
        self.reservation_id = reservation_id
        self.converted_at = now
