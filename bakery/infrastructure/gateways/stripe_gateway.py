import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any

import stripe

from bakery.application.interfaces.payment_gateway import (
    GatewayCharge,
    GatewayLineItem,
    GatewayPaymentIntent,
    GatewaySession,
    PaymentGateway,
)
from bakery.domain.errors import GatewayUnavailableError
from bakery.infrastructure.circuit_breaker import CircuitBreakerError, stripe_breaker

logger = logging.getLogger(__name__)

RESOURCE_MISSING = "resource_missing"


def _as_dict(obj: Any) -> dict:
    if obj is None:
        return {}
    return obj.to_dict() if hasattr(obj, "to_dict") else dict(obj)


def _timestamp(value: int | None) -> datetime | None:
    return datetime.fromtimestamp(value, tz=timezone.utc) if value else None


def _session_from_stripe(session: Any) -> GatewaySession:
    details = getattr(session, "customer_details", None)
    email = getattr(session, "customer_email", None) or (getattr(details, "email", None) if details else None)
    intent = getattr(session, "payment_intent", None)
    if intent is not None and not isinstance(intent, str):
        intent = intent.id
    return GatewaySession(
        id=session.id,
        payment_status=getattr(session, "payment_status", None) or "unpaid",
        amount_total=getattr(session, "amount_total", None),
        currency=getattr(session, "currency", None),
        customer_email=email,
        payment_intent_id=intent,
        metadata={k: str(v) for k, v in _as_dict(getattr(session, "metadata", None)).items()},
        created=_timestamp(getattr(session, "created", None)),
        url=getattr(session, "url", None),
    )


def _intent_from_stripe(intent: Any) -> GatewayPaymentIntent:
    return GatewayPaymentIntent(
        id=intent.id,
        status=intent.status,
        amount=getattr(intent, "amount_received", None) or intent.amount,
        receipt_email=getattr(intent, "receipt_email", None),
        metadata={k: str(v) for k, v in _as_dict(getattr(intent, "metadata", None)).items()},
        created=_timestamp(getattr(intent, "created", None)),
    )


def _charge_from_stripe(charge: Any) -> GatewayCharge:
    billing = getattr(charge, "billing_details", None)
    intent = getattr(charge, "payment_intent", None)
    if intent is not None and not isinstance(intent, str):
        intent = intent.id
    return GatewayCharge(
        id=charge.id,
        paid=bool(getattr(charge, "paid", False)),
        amount=charge.amount,
        payment_intent_id=intent,
        receipt_email=getattr(charge, "receipt_email", None),
        billing_email=getattr(billing, "email", None) if billing else None,
        metadata={k: str(v) for k, v in _as_dict(getattr(charge, "metadata", None)).items()},
        created=_timestamp(getattr(charge, "created", None)),
    )


class StripePaymentGateway(PaymentGateway):
    """
    Stripe checkout sessions behind the ``stripe_breaker`` circuit breaker.

    The SDK is synchronous; each call runs in a worker thread so the event
    loop is never blocked.
    """

    def __init__(self, api_key: str | None, currency: str = "usd") -> None:
        stripe.api_key = api_key
        stripe.max_network_retries = 2
        self._currency = currency.lower()

    async def _call(self, func, **kwargs):
        try:
            return await asyncio.to_thread(stripe_breaker.call, func, **kwargs)
        except CircuitBreakerError as exc:
            logger.error(
                "Stripe circuit breaker is open - service unavailable",
                extra={"circuit_state": str(exc)},
            )
            raise GatewayUnavailableError() from exc
        except stripe.InvalidRequestError:
            raise
        except stripe.StripeError as exc:
            logger.error("Stripe API error", exc_info=exc, extra={"operation": getattr(func, "__qualname__", str(func))})
            raise GatewayUnavailableError() from exc

    async def create_checkout_session(
        self,
        line_items: list[GatewayLineItem],
        customer_email: str,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> GatewaySession:
        stripe_items = []
        for item in line_items:
            product_data = {"name": item.name}
            if item.description:
                product_data["description"] = item.description
            stripe_items.append(
                {
                    "price_data": {
                        "currency": self._currency,
                        "product_data": product_data,
                        "unit_amount": item.unit_amount,
                    },
                    "quantity": item.quantity,
                }
            )
        try:
            session = await self._call(
                stripe.checkout.Session.create,
                mode="payment",
                payment_method_types=["card"],
                line_items=stripe_items,
                customer_email=customer_email,
                metadata=metadata,
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.InvalidRequestError as exc:
            logger.error("Stripe rejected checkout session", exc_info=exc)
            raise GatewayUnavailableError("Payment gateway rejected the checkout session") from exc
        return _session_from_stripe(session)

    async def retrieve_session(self, session_id: str) -> GatewaySession | None:
        try:
            session = await self._call(stripe.checkout.Session.retrieve, id=session_id)
        except stripe.InvalidRequestError as exc:
            if getattr(exc, "code", None) == RESOURCE_MISSING:
                logger.info("Stripe session no longer exists", extra={"session_id": session_id})
                return None
            raise GatewayUnavailableError("Payment gateway rejected the session lookup") from exc
        return _session_from_stripe(session)

    async def _list(self, func, created_after: datetime, limit: int) -> list[Any]:
        try:
            page = await self._call(func, created={"gte": int(created_after.timestamp())}, limit=limit)
        except stripe.InvalidRequestError as exc:
            raise GatewayUnavailableError("Payment gateway rejected the listing") from exc
        return list(page.data)

    async def list_sessions(self, created_after: datetime, limit: int = 100) -> list[GatewaySession]:
        return [_session_from_stripe(s) for s in await self._list(stripe.checkout.Session.list, created_after, limit)]

    async def list_payment_intents(self, created_after: datetime, limit: int = 100) -> list[GatewayPaymentIntent]:
        return [_intent_from_stripe(i) for i in await self._list(stripe.PaymentIntent.list, created_after, limit)]

    async def list_charges(self, created_after: datetime, limit: int = 100) -> list[GatewayCharge]:
        return [_charge_from_stripe(c) for c in await self._list(stripe.Charge.list, created_after, limit)]

    async def parse_webhook_event(
        self,
        payload: bytes,
        signature_header: str | None,
        webhook_secret: str | None,
    ) -> dict[str, Any]:
        if webhook_secret:
            if not signature_header:
                raise ValueError("Missing Stripe-Signature header")
            try:
                event = stripe.Webhook.construct_event(
                    payload=payload.decode(),
                    sig_header=signature_header,
                    secret=webhook_secret,
                )
            except stripe.SignatureVerificationError as exc:
                raise ValueError("Invalid Stripe signature") from exc
            return _as_dict(event)

        try:
            return json.loads(payload.decode() or "{}")
        except json.JSONDecodeError as exc:
            raise ValueError("Invalid webhook payload") from exc
