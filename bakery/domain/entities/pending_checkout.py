"""PendingCheckout entity: a cart persisted before the gateway redirect."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from bakery.domain.entities.reservation import CustomerInfo, FulfillmentType, LineDetails

PENDING_CHECKOUT_TTL = timedelta(hours=24)


@dataclass
class CartItem:
    """One cart line; each becomes its own reservation on replay."""

    date: date
    fulfillment_type: FulfillmentType
    line: LineDetails
    quantity: int = 1

    @property
    def subtotal(self) -> Decimal:
        return self.line.total * self.quantity


@dataclass
class PendingCheckout:
    session_id: str
    customer: CustomerInfo
    cart_items: list[CartItem]
    fulfillment_type: FulfillmentType
    delivery_fee: Decimal = Decimal("0")
    created_at: datetime | None = None
    expires_at: datetime | None = None
    metadata: dict = field(default_factory=dict)

    @property
    def subtotal(self) -> Decimal:
        return sum((item.subtotal for item in self.cart_items), Decimal("0"))

    def is_expired(self, now: datetime) -> bool:
        if self.expires_at is None:
            return False
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            # Stores without timezone support hand back naive UTC
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return now >= expires_at

    @classmethod
    def expiring_from(cls, now: datetime, **kwargs) -> "PendingCheckout":
        return cls(created_at=now, expires_at=now + PENDING_CHECKOUT_TTL, **kwargs)
