import logging
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from bakery.application.interfaces.payment_gateway import PaymentGateway
from bakery.application.use_cases.reconcile_payment import (
    ReconcilePaymentUseCase,
    ReconciliationResult,
)
from bakery.domain.errors import InvalidWebhookError

CHECKOUT_COMPLETED = "checkout.session.completed"


class StripeWebhookEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    type: str
    data: dict = Field(default_factory=dict)
    livemode: bool | None = None
    created: int | None = None

    @property
    def object_id(self) -> str | None:
        data_obj = self.data.get("object", {}) if isinstance(self.data, dict) else {}
        return data_obj.get("id")


@dataclass
class WebhookOutcome:
    event_id: str | None
    event_type: str
    handled: bool
    result: ReconciliationResult | None = None


class HandleStripeWebhookUseCase:
    """Verifies a gateway event and funnels completed checkouts into reconciliation."""

    def __init__(
        self,
        payment_gateway: PaymentGateway,
        reconcile: ReconcilePaymentUseCase,
        stripe_webhook_secret: str | None,
    ) -> None:
        self._payment_gateway = payment_gateway
        self._reconcile = reconcile
        self._stripe_webhook_secret = stripe_webhook_secret
        self._logger = logging.getLogger(__name__)

    async def execute(self, raw_body: bytes, signature: str | None) -> WebhookOutcome:
        if not raw_body:
            raise InvalidWebhookError("Empty webhook body")
        try:
            event_dict = await self._payment_gateway.parse_webhook_event(
                payload=raw_body,
                signature_header=signature,
                webhook_secret=self._stripe_webhook_secret,
            )
            event = StripeWebhookEnvelope.model_validate(event_dict)
        except (ValueError, PydanticValidationError) as exc:
            raise InvalidWebhookError(str(exc)) from exc

        if event.type != CHECKOUT_COMPLETED:
            self._logger.info(
                "Stripe webhook ignored",
                extra={"stripe_event_id": event.id, "event_type": event.type},
            )
            return WebhookOutcome(event_id=event.id, event_type=event.type, handled=False)

        session_id = event.object_id
        if not session_id:
            raise InvalidWebhookError("Checkout event without a session id")

        result = await self._reconcile.execute(session_id=session_id)
        self._logger.info(
            "Stripe webhook processed: checkout completed",
            extra={
                "stripe_event_id": event.id,
                "session_id": session_id,
                "already_processed": result.already_processed,
                "payment_not_found": result.payment_not_found,
                "reservations": len(result.reservations),
            },
        )
        return WebhookOutcome(event_id=event.id, event_type=event.type, handled=True, result=result)
