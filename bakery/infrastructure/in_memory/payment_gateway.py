import json
from datetime import datetime, timezone
from uuid import uuid4

from bakery.application.interfaces.payment_gateway import (
    GatewayCharge,
    GatewayLineItem,
    GatewayPaymentIntent,
    GatewaySession,
    PaymentGateway,
)
from bakery.domain.errors import GatewayUnavailableError


class StubPaymentGateway(PaymentGateway):
    """
    In-process stand-in for Stripe.

    Sessions start unpaid; tests and local runs flip them with ``mark_paid``
    or drop them with ``expire`` to exercise the fallback search.
    """

    def __init__(self, base_url: str = "https://checkout.stub.local") -> None:
        self._base_url = base_url
        self.sessions: dict[str, GatewaySession] = {}
        self.payment_intents: list[GatewayPaymentIntent] = []
        self.charges: list[GatewayCharge] = []
        self.unavailable = False
        self.list_calls: list[str] = []

    def _ensure_available(self) -> None:
        if self.unavailable:
            raise GatewayUnavailableError()

    async def create_checkout_session(
        self,
        line_items: list[GatewayLineItem],
        customer_email: str,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> GatewaySession:
        self._ensure_available()
        session_id = f"cs_test_{uuid4().hex[:24]}"
        session = GatewaySession(
            id=session_id,
            payment_status="unpaid",
            amount_total=sum(item.unit_amount * item.quantity for item in line_items),
            currency="usd",
            customer_email=customer_email,
            metadata=dict(metadata),
            created=datetime.now(timezone.utc),
            url=f"{self._base_url}/pay/{session_id}",
        )
        self.sessions[session_id] = session
        return session

    async def retrieve_session(self, session_id: str) -> GatewaySession | None:
        self._ensure_available()
        return self.sessions.get(session_id)

    async def list_sessions(self, created_after: datetime, limit: int = 100) -> list[GatewaySession]:
        self._ensure_available()
        self.list_calls.append("sessions")
        found = [s for s in self.sessions.values() if s.created is None or s.created >= created_after]
        return found[:limit]

    async def list_payment_intents(
        self, created_after: datetime, limit: int = 100
    ) -> list[GatewayPaymentIntent]:
        self._ensure_available()
        self.list_calls.append("payment_intents")
        return [i for i in self.payment_intents if i.created is None or i.created >= created_after][:limit]

    async def list_charges(self, created_after: datetime, limit: int = 100) -> list[GatewayCharge]:
        self._ensure_available()
        self.list_calls.append("charges")
        return [c for c in self.charges if c.created is None or c.created >= created_after][:limit]

    async def parse_webhook_event(
        self,
        payload: bytes,
        signature_header: str | None,
        webhook_secret: str | None,
    ) -> dict:
        if not payload:
            raise ValueError("Empty webhook payload")
        try:
            return json.loads(payload.decode() or "{}")
        except json.JSONDecodeError as exc:
            raise ValueError("Invalid webhook payload") from exc

    # === Test helpers ===

    def add_session(self, session: GatewaySession) -> GatewaySession:
        self.sessions[session.id] = session
        return session

    def mark_paid(
        self,
        session_id: str,
        amount_total: int | None = None,
        payment_intent_id: str | None = None,
    ) -> GatewaySession:
        session = self.sessions[session_id]
        session.payment_status = "paid"
        if amount_total is not None:
            session.amount_total = amount_total
        session.payment_intent_id = payment_intent_id or f"pi_{uuid4().hex[:14]}"
        return session

    def expire(self, session_id: str) -> None:
        self.sessions.pop(session_id, None)
