import json
import unittest

from bakery.application.use_cases.handle_stripe_webhook import HandleStripeWebhookUseCase
from bakery.domain.errors import InvalidWebhookError
from tests.builders import build_harness


def _event(event_type: str, object_id: str | None = "cs_1", event_id: str = "evt_1") -> bytes:
    data = {"object": {"id": object_id}} if object_id else {}
    return json.dumps({"id": event_id, "type": event_type, "data": data}).encode()


class TestHandleStripeWebhook(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.h = build_harness()
        self.use_case = HandleStripeWebhookUseCase(
            payment_gateway=self.h.gateway,
            reconcile=self.h.reconciler(),
            stripe_webhook_secret=None,
        )

    async def test_completed_checkout_is_reconciled(self):
        request = await self.h.seed_quote()
        self.h.gateway.mark_paid(request.gateway_session_id, amount_total=16238)

        outcome = await self.use_case.execute(
            _event("checkout.session.completed", request.gateway_session_id), signature=None
        )

        self.assertTrue(outcome.handled)
        self.assertEqual(len(outcome.result.reservations), 1)

    async def test_redelivered_event_does_not_duplicate(self):
        request = await self.h.seed_quote()
        self.h.gateway.mark_paid(request.gateway_session_id, amount_total=16238)
        body = _event("checkout.session.completed", request.gateway_session_id)

        await self.use_case.execute(body, signature=None)
        outcome = await self.use_case.execute(body, signature=None)

        self.assertTrue(outcome.result.already_processed)
        self.assertEqual(len(self.h.reservation_repo.reservations), 1)

    async def test_other_events_are_ignored(self):
        outcome = await self.use_case.execute(_event("payment_intent.created"), signature=None)
        self.assertFalse(outcome.handled)
        self.assertIsNone(outcome.result)

    async def test_invalid_payload(self):
        with self.assertRaises(InvalidWebhookError):
            await self.use_case.execute(b"{not json", signature=None)

    async def test_empty_body(self):
        with self.assertRaises(InvalidWebhookError):
            await self.use_case.execute(b"", signature=None)

    async def test_completed_event_without_session(self):
        with self.assertRaises(InvalidWebhookError):
            await self.use_case.execute(_event("checkout.session.completed", object_id=None), signature=None)
