"""Reservation entity: a committed, capacity-consuming order for one date."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from bakery.domain.errors import InvalidReservationStatusError


class ReservationStatus(str, Enum):
    """Order lifecycle states."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    FORFEITED = "forfeited"


class FulfillmentType(str, Enum):
    """How the customer receives the order."""

    PICKUP = "pickup"
    DELIVERY = "delivery"


class PaymentStatus(str, Enum):
    PAID = "paid"
    PENDING = "pending"
    FAILED = "failed"


ACTIVE_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})

ALLOWED_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset(
        {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED, ReservationStatus.FORFEITED}
    ),
    ReservationStatus.CONFIRMED: frozenset(
        {ReservationStatus.CANCELLED, ReservationStatus.FORFEITED}
    ),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.FORFEITED: frozenset(),
}


@dataclass
class CustomerInfo:
    name: str
    email: str
    phone: str | None = None


@dataclass
class AddOn:
    id: str
    name: str
    price: Decimal = Decimal("0")


@dataclass
class DeliveryAddress:
    street: str
    city: str
    state: str
    zip_code: str

    @property
    def full_address(self) -> str:
        return f"{self.street}, {self.city}, {self.state} {self.zip_code}"


@dataclass
class LineDetails:
    """What is being produced for the order."""

    product_name: str
    price: Decimal
    product_id: str | None = None
    size: str = '6"'
    flavor: str = "vanilla"
    shape: str | None = None
    filling: str | None = None
    design_notes: str = ""
    add_ons: list[AddOn] = field(default_factory=list)
    pickup_time: str | None = None
    delivery_time: str | None = None
    delivery_address: DeliveryAddress | None = None
    image_url: str | None = None
    edible_image_url: str | None = None
    reference_image_url: str | None = None

    @property
    def total(self) -> Decimal:
        return self.price + sum((a.price for a in self.add_ons), Decimal("0"))


@dataclass
class PaymentInfo:
    gateway_session_id: str
    gateway_payment_intent_id: str | None
    amount_paid: Decimal
    payment_status: PaymentStatus = PaymentStatus.PAID


@dataclass
class Reservation:
    """
    Aggregate root of the order lifecycle.

    A reservation holds one capacity slot on its date while it is pending or
    confirmed. Cancelled and forfeited are terminal; nothing is ever deleted.
    """

    date: date
    fulfillment_type: FulfillmentType
    customer: CustomerInfo
    line: LineDetails
    status: ReservationStatus = ReservationStatus.PENDING
    id: int | None = None
    order_number: str | None = None
    payment: PaymentInfo | None = None
    source_request_id: str | None = None
    line_index: int = 0
    slot_index: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    forfeited_at: datetime | None = None

    # === Computed properties ===

    @property
    def counts_toward_capacity(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_modifiable(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def gateway_session_id(self) -> str | None:
        return self.payment.gateway_session_id if self.payment else None

    # === Business methods ===

    def transition_to(self, new_status: ReservationStatus, now: datetime | None = None) -> None:
        """Moves along the state machine; states are never re-entered."""
        allowed = ALLOWED_TRANSITIONS[self.status]
        if new_status not in allowed:
            raise InvalidReservationStatusError(
                current_status=self.status.value,
                expected_status=[s.value for s in ALLOWED_TRANSITIONS if new_status in ALLOWED_TRANSITIONS[s]],
                operation=f"move order to '{new_status.value}'",
            )
        self.status = new_status
        if new_status == ReservationStatus.FORFEITED:
            self.forfeited_at = now
        if new_status not in ACTIVE_STATUSES:
            self.slot_index = None
        self.updated_at = now

    def confirm(self, now: datetime | None = None) -> None:
        self.transition_to(ReservationStatus.CONFIRMED, now)

    def cancel(self, now: datetime | None = None) -> None:
        self.transition_to(ReservationStatus.CANCELLED, now)

    def forfeit(self, now: datetime | None = None) -> None:
        """Customer gives up the order; no refund is implied."""
        self.transition_to(ReservationStatus.FORFEITED, now)

    def change_time(self, new_time: str) -> None:
        self._require_active("change the time of")
        if self.fulfillment_type == FulfillmentType.DELIVERY:
            self.line.delivery_time = new_time
        else:
            self.line.pickup_time = new_time

    def reschedule(self, new_date: date, now: datetime | None = None) -> None:
        self._require_active("reschedule")
        self.date = new_date
        self.updated_at = now

    def _require_active(self, operation: str) -> None:
        if not self.is_modifiable:
            raise InvalidReservationStatusError(
                current_status=self.status.value,
                expected_status=[s.value for s in ACTIVE_STATUSES],
                operation=operation,
            )
