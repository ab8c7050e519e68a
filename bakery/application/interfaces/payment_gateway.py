from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class GatewayLineItem:
    name: str
    unit_amount: int  # minor units
    quantity: int = 1
    description: str | None = None


@dataclass
class GatewaySession:
    id: str
    payment_status: str
    amount_total: int | None
    currency: str | None = None
    customer_email: str | None = None
    payment_intent_id: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    created: datetime | None = None
    url: str | None = None

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"


@dataclass
class GatewayPaymentIntent:
    id: str
    status: str
    amount: int
    receipt_email: str | None = None
    customer_email: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    created: datetime | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"


@dataclass
class GatewayCharge:
    id: str
    paid: bool
    amount: int
    payment_intent_id: str | None = None
    receipt_email: str | None = None
    billing_email: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    created: datetime | None = None


class PaymentGateway:
    """
    Checkout-session based payment provider.

    Every method raises ``GatewayUnavailableError`` when the provider cannot be
    reached. ``retrieve_session`` returns ``None`` for a session the provider
    no longer knows (expired or purged).
    """

    async def create_checkout_session(
        self,
        line_items: list[GatewayLineItem],
        customer_email: str,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> GatewaySession:
        raise NotImplementedError

    async def retrieve_session(self, session_id: str) -> GatewaySession | None:
        raise NotImplementedError

    async def list_sessions(self, created_after: datetime, limit: int = 100) -> list[GatewaySession]:
        raise NotImplementedError

    async def list_payment_intents(
        self, created_after: datetime, limit: int = 100
    ) -> list[GatewayPaymentIntent]:
        raise NotImplementedError

    async def list_charges(self, created_after: datetime, limit: int = 100) -> list[GatewayCharge]:
        raise NotImplementedError

    async def parse_webhook_event(
        self,
        payload: bytes,
        signature_header: str | None,
        webhook_secret: str | None,
    ) -> dict[str, Any]:
        raise NotImplementedError
