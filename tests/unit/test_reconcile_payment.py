import unittest
from datetime import date, timedelta
from decimal import Decimal

from bakery.application.interfaces.payment_gateway import GatewaySession
from bakery.application.use_cases.cart_checkout import CreateCheckoutSessionUseCase
from bakery.domain.entities.pending_checkout import CartItem
from bakery.domain.entities.quote_request import QuoteKind, QuoteRequest, QuoteStatus
from bakery.domain.entities.reservation import FulfillmentType, PaymentInfo
from bakery.domain.errors import (
    CheckoutNotFoundError,
    InvalidQuoteStatusError,
    PaymentNotCompletedError,
    QuoteRequestNotFoundError,
    ValidationError,
)
from tests.builders import (
    FIRST_OPEN_DAY,
    NOW,
    SATURDAY,
    TAX_RATE,
    build_harness,
    make_customer,
    make_line,
)


class TestQuoteReconciliation(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.h = build_harness()
        self.reconcile = self.h.reconciler()
        self.request = await self.h.seed_quote(final_price="150.00", email="a@x.com")
        self.stored_session_id = self.request.gateway_session_id

    def _paid_session(self, id: str, amount: int, email: str = "a@x.com", **kwargs) -> GatewaySession:
        return self.h.gateway.add_session(
            GatewaySession(
                id=id,
                payment_status="paid",
                amount_total=amount,
                customer_email=email,
                payment_intent_id=f"pi_{id}",
                created=NOW,
                **kwargs,
            )
        )

    async def test_expired_session_found_by_email_and_amount(self):
        self.h.gateway.expire(self.stored_session_id)
        self._paid_session("cs_retry", 16238)

        result = await self.reconcile.execute(request_id=self.request.id)

        self.assertFalse(result.payment_not_found)
        self.assertEqual(len(result.reservations), 1)
        reservation = result.reservations[0]
        self.assertEqual(reservation.payment.amount_paid, Decimal("162.38"))
        self.assertEqual(reservation.payment.gateway_payment_intent_id, "pi_cs_retry")
        self.assertEqual(reservation.payment.gateway_session_id, self.stored_session_id)
        self.assertEqual(reservation.source_request_id, self.request.id)

        stored = await self.h.quote_request_repo.get(self.request.id)
        self.assertEqual(stored.status, QuoteStatus.CONVERTED)
        self.assertEqual(stored.order_number, reservation.order_number)

    async def test_paid_stored_session_reconciles_by_session_id(self):
        self.h.gateway.mark_paid(self.stored_session_id, amount_total=16238, payment_intent_id="pi_direct")

        result = await self.reconcile.execute(session_id=self.stored_session_id)

        self.assertEqual(len(result.reservations), 1)
        self.assertEqual(result.reservations[0].payment.gateway_payment_intent_id, "pi_direct")
        self.assertEqual(self.h.gateway.list_calls, [])

    async def test_second_run_returns_the_same_order(self):
        self.h.gateway.mark_paid(self.stored_session_id, amount_total=16238)

        first = await self.reconcile.execute(request_id=self.request.id)
        second = await self.reconcile.execute(request_id=self.request.id)
        by_session = await self.reconcile.execute(session_id=self.stored_session_id)

        self.assertFalse(first.already_processed)
        self.assertTrue(second.already_processed)
        self.assertTrue(by_session.already_processed)
        self.assertEqual(second.reservations[0].order_number, first.reservations[0].order_number)
        self.assertEqual(len(self.h.reservation_repo.reservations), 1)
        self.assertEqual(len(self.h.email_sender.sent), 2)

    async def test_unstamped_order_is_recovered_not_duplicated(self):
        # Order written by an earlier run that died before stamping the request
        await self.h.seed_reservation(
            FIRST_OPEN_DAY,
            source_request_id=self.request.id,
            payment=PaymentInfo(
                gateway_session_id=self.stored_session_id,
                gateway_payment_intent_id="pi_1",
                amount_paid=Decimal("162.38"),
            ),
        )

        result = await self.reconcile.execute(request_id=self.request.id)

        self.assertTrue(result.already_processed)
        self.assertEqual(len(self.h.reservation_repo.reservations), 1)
        stored = await self.h.quote_request_repo.get(self.request.id)
        self.assertEqual(stored.status, QuoteStatus.CONVERTED)

    async def test_unpaid_with_no_other_payment_reports_not_found(self):
        result = await self.reconcile.execute(request_id=self.request.id)

        self.assertTrue(result.payment_not_found)
        self.assertEqual(result.reservations, [])
        self.assertEqual(
            result.search_criteria,
            {
                "request_id": self.request.id,
                "email": "a@x.com",
                "expected_amount": 16238,
                "stored_session_status": "unpaid",
            },
        )
        stored = await self.h.quote_request_repo.get(self.request.id)
        self.assertEqual(stored.status, QuoteStatus.QUOTED)

    async def test_unpaid_stored_session_ignores_other_customers(self):
        self._paid_session("cs_other_customer", 16238, email="b@x.com")
        result = await self.reconcile.execute(request_id=self.request.id)
        self.assertTrue(result.payment_not_found)

    async def test_quote_skips_buffer_but_not_weekday_rules(self):
        near = await self.h.seed_quote(on_date=date(2026, 11, 5), request_id="req-near")
        self.h.gateway.mark_paid(near.gateway_session_id, amount_total=16238)

        result = await self.reconcile.execute(request_id="req-near")

        self.assertEqual(result.reservations[0].date, date(2026, 11, 5))

    async def test_override_capacity_is_honoured(self):
        await self.h.seed_reservation(SATURDAY)
        await self.h.seed_reservation(SATURDAY)
        full = await self.h.seed_quote(on_date=SATURDAY, request_id="req-full", override_capacity=True)
        self.h.gateway.mark_paid(full.gateway_session_id, amount_total=16238)

        result = await self.reconcile.execute(request_id="req-full")

        self.assertEqual(len(result.reservations), 1)
        self.assertEqual(await self.h.reservation_repo.count_active(SATURDAY), 3)

    async def test_custom_order_notification_is_labelled(self):
        self.h.gateway.mark_paid(self.stored_session_id, amount_total=16238)
        await self.reconcile.execute(request_id=self.request.id)
        subjects = [m["subject"] for m in self.h.email_sender.sent]
        self.assertTrue(subjects[0].startswith("Custom Order #"))
        self.assertTrue(self.h.realtime_publisher.events[0]["payload"]["is_custom_order"])

    async def test_unknown_request(self):
        with self.assertRaises(QuoteRequestNotFoundError):
            await self.reconcile.execute(request_id="nope")

    async def test_request_without_quote_cannot_be_reconciled(self):
        await self.h.quote_request_repo.add(
            QuoteRequest(
                id="req-pending",
                request_number="CR-PENDING",
                kind=QuoteKind.WEDDING,
                requested_date=FIRST_OPEN_DAY,
                fulfillment_type=FulfillmentType.PICKUP,
                customer=make_customer(),
                line=make_line(),
            )
        )
        with self.assertRaises(InvalidQuoteStatusError):
            await self.reconcile.execute(request_id="req-pending")

    async def test_requires_an_identifier(self):
        with self.assertRaises(ValidationError):
            await self.reconcile.execute()


class TestCartReplay(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.h = build_harness()
        self.reconcile = self.h.reconciler()
        self.checkout = CreateCheckoutSessionUseCase(
            availability=self.h.availability,
            payment_gateway=self.h.gateway,
            pending_checkout_repo=self.h.pending_checkout_repo,
            transaction_manager=self.h.tx_manager,
            clock=self.h.clock,
            tax_rate=TAX_RATE,
            public_base_url="https://bakery.test",
        )
        items = [
            CartItem(date=FIRST_OPEN_DAY, fulfillment_type=FulfillmentType.PICKUP, line=make_line("Lemon Cake")),
            CartItem(date=SATURDAY, fulfillment_type=FulfillmentType.PICKUP, line=make_line("Carrot Cake", "55.00")),
        ]
        self.session = await self.checkout.execute(make_customer(), items, FulfillmentType.PICKUP)

    async def test_paid_cart_becomes_one_order_per_line(self):
        self.h.gateway.mark_paid(self.session.session_id, payment_intent_id="pi_cart")

        result = await self.reconcile.execute(session_id=self.session.session_id)

        self.assertEqual([r.line_index for r in result.reservations], [0, 1])
        self.assertEqual([r.line.product_name for r in result.reservations], ["Lemon Cake", "Carrot Cake"])
        self.assertEqual(result.reservations[1].payment.amount_paid, Decimal("55.00"))
        self.assertTrue(all(r.payment.gateway_payment_intent_id == "pi_cart" for r in result.reservations))
        self.assertIsNone(await self.h.pending_checkout_repo.get(self.session.session_id))

    async def test_replay_is_idempotent(self):
        self.h.gateway.mark_paid(self.session.session_id)

        first = await self.reconcile.execute(session_id=self.session.session_id)
        second = await self.reconcile.execute(session_id=self.session.session_id)

        self.assertTrue(second.already_processed)
        self.assertEqual(
            [r.order_number for r in second.reservations],
            [r.order_number for r in first.reservations],
        )
        self.assertEqual(len(self.h.reservation_repo.reservations), 2)

    async def test_falls_back_to_session_metadata(self):
        self.h.gateway.mark_paid(self.session.session_id)
        await self.h.pending_checkout_repo.delete(self.session.session_id)

        result = await self.reconcile.execute(session_id=self.session.session_id)

        self.assertEqual(len(result.reservations), 2)
        self.assertEqual(result.reservations[0].customer.email, "ana@example.com")

    async def test_stale_pending_checkout_is_still_honoured(self):
        self.h.gateway.mark_paid(self.session.session_id)
        checkout = await self.h.pending_checkout_repo.get(self.session.session_id)
        checkout.expires_at = NOW - timedelta(minutes=1)
        await self.h.pending_checkout_repo.save(checkout)

        with self.assertLogs("bakery.application.use_cases.reconcile_payment", level="WARNING") as logs:
            result = await self.reconcile.execute(session_id=self.session.session_id)

        self.assertIn("stale pending checkout", logs.output[0])
        self.assertEqual(len(result.reservations), 2)
        self.assertIsNone(await self.h.pending_checkout_repo.get(self.session.session_id))

    async def test_missing_cart_data(self):
        self.h.gateway.mark_paid(self.session.session_id)
        await self.h.pending_checkout_repo.delete(self.session.session_id)
        self.h.gateway.sessions[self.session.session_id].metadata = {}

        with self.assertRaises(CheckoutNotFoundError):
            await self.reconcile.execute(session_id=self.session.session_id)

    async def test_unpaid_session_is_refused(self):
        with self.assertRaises(PaymentNotCompletedError):
            await self.reconcile.execute(session_id=self.session.session_id)
        self.assertEqual(self.h.reservation_repo.reservations, {})

    async def test_line_that_filled_up_is_reported_not_fatal(self):
        await self.h.seed_reservation(SATURDAY)
        await self.h.seed_reservation(SATURDAY)
        self.h.gateway.mark_paid(self.session.session_id)

        result = await self.reconcile.execute(session_id=self.session.session_id)

        self.assertEqual(len(result.reservations), 1)
        self.assertEqual([e.line_index for e in result.errors], [1])

    async def test_unknown_session(self):
        result = await self.reconcile.execute(session_id="cs_unknown")
        self.assertTrue(result.payment_not_found)
        self.assertEqual(result.search_criteria, {"session_id": "cs_unknown"})
