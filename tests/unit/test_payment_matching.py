import unittest

from bakery.application.interfaces.clock import FakeClock
from bakery.application.interfaces.payment_gateway import (
    GatewayCharge,
    GatewayPaymentIntent,
    GatewaySession,
)
from bakery.application.payment_matching import (
    AmountOnlyMatcher,
    Confidence,
    EmailAmountMatcher,
    MetadataMatcher,
    PaymentCandidate,
    PaymentLocator,
    SearchCriteria,
    best_match,
    default_matchers,
)
from bakery.infrastructure.in_memory.payment_gateway import StubPaymentGateway
from tests.builders import NOW

CRITERIA = SearchCriteria(request_id="req-1", email="a@x.com", expected_amount=16238)


def _candidate(id: str, amount: int, email: str | None = None, metadata: dict | None = None):
    return PaymentCandidate(source="session", id=id, amount=amount, email=email, metadata=metadata or {})


class TestMatchers(unittest.TestCase):
    def test_metadata_matches_request_id(self):
        self.assertTrue(MetadataMatcher().matches(_candidate("c", 1, metadata={"request_id": "req-1"}), CRITERIA))
        self.assertFalse(MetadataMatcher().matches(_candidate("c", 16238), CRITERIA))

    def test_email_amount_is_case_insensitive_and_within_a_dollar(self):
        matcher = EmailAmountMatcher()
        self.assertTrue(matcher.matches(_candidate("c", 16238 + 99, email="A@X.com"), CRITERIA))
        self.assertFalse(matcher.matches(_candidate("c", 16238 + 100, email="a@x.com"), CRITERIA))
        self.assertFalse(matcher.matches(_candidate("c", 16238, email="b@x.com"), CRITERIA))

    def test_amount_only_tolerance_is_five_cents(self):
        matcher = AmountOnlyMatcher()
        self.assertTrue(matcher.matches(_candidate("c", 16242), CRITERIA))
        self.assertFalse(matcher.matches(_candidate("c", 16243), CRITERIA))


class TestBestMatch(unittest.TestCase):
    def test_strongest_matcher_wins_regardless_of_order(self):
        candidates = [
            _candidate("amount", 16238),
            _candidate("email", 16238, email="a@x.com"),
            _candidate("meta", 999, metadata={"request_id": "req-1"}),
        ]
        match = best_match(candidates, CRITERIA, default_matchers())
        self.assertEqual(match.candidate.id, "meta")
        self.assertEqual(match.confidence, Confidence.EXACT)

    def test_ambiguous_amount_only_takes_first_and_warns(self):
        candidates = [_candidate("first", 16238), _candidate("second", 16240)]
        with self.assertLogs("bakery.application.payment_matching", level="WARNING"):
            match = best_match(candidates, CRITERIA, default_matchers())
        self.assertEqual(match.candidate.id, "first")
        self.assertEqual(match.matcher, "amount_only")

    def test_email_amount_tie_takes_first_and_warns(self):
        candidates = [
            _candidate("first", 16238, email="a@x.com"),
            _candidate("second", 16238, email="a@x.com"),
            _candidate("stranger", 16238, email="z@x.com"),
        ]
        with self.assertLogs("bakery.application.payment_matching", level="WARNING") as logs:
            match = best_match(candidates, CRITERIA, default_matchers())

        self.assertEqual(match.candidate.id, "first")
        self.assertEqual(match.matcher, "email_amount")
        record = logs.records[0]
        self.assertEqual(record.others, ["second"])
        self.assertEqual(record.same_amount, ["second", "stranger"])

    def test_exact_match_warns_about_other_same_amount_payments(self):
        candidates = [
            _candidate("other", 16238),
            _candidate("exact", 16238, metadata={"request_id": "req-1"}),
        ]
        with self.assertLogs("bakery.application.payment_matching", level="WARNING") as logs:
            match = best_match(candidates, CRITERIA, default_matchers())

        self.assertEqual(match.candidate.id, "exact")
        self.assertEqual(logs.records[0].same_amount, ["other"])

    def test_no_match(self):
        self.assertIsNone(best_match([_candidate("x", 1)], CRITERIA, default_matchers()))


class TestPaymentLocator(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.gateway = StubPaymentGateway()
        self.locator = PaymentLocator(gateway=self.gateway, clock=FakeClock(NOW))

    def _session(self, id: str, status: str, amount: int | None, email: str | None = "a@x.com", **kwargs):
        return self.gateway.add_session(
            GatewaySession(
                id=id,
                payment_status=status,
                amount_total=amount,
                customer_email=email,
                created=NOW,
                **kwargs,
            )
        )

    async def test_paid_stored_session_wins_without_listing(self):
        self._session("cs_stored", "paid", 16238, payment_intent_id="pi_1")

        search = await self.locator.locate("cs_stored", CRITERIA)

        self.assertTrue(search.found)
        self.assertEqual(search.stored_session_status, "paid")
        self.assertEqual(search.match.payment_intent_id, "pi_1")
        self.assertEqual(self.gateway.list_calls, [])

    async def test_unpaid_stored_session_searches_paid_sessions_by_email(self):
        self._session("cs_stored", "unpaid", None)
        self._session("cs_other", "paid", 16238, email="A@x.com")
        self._session("cs_stranger", "paid", 16238, email="z@x.com")

        search = await self.locator.locate("cs_stored", CRITERIA)

        self.assertEqual(search.stored_session_status, "unpaid")
        self.assertEqual(search.match.candidate.id, "cs_other")
        self.assertEqual(search.match.matcher, "email_amount")

    async def test_unpaid_stored_session_never_uses_amount_only(self):
        self._session("cs_stored", "unpaid", None)
        self._session("cs_stranger", "paid", 16238, email="z@x.com")

        search = await self.locator.locate("cs_stored", CRITERIA)

        self.assertFalse(search.found)
        self.assertEqual(search.stored_session_status, "unpaid")

    async def test_missing_session_searches_tiers_in_order(self):
        self.gateway.payment_intents.append(
            GatewayPaymentIntent(id="pi_9", status="succeeded", amount=16238, receipt_email="a@x.com", created=NOW)
        )

        search = await self.locator.locate("cs_gone", CRITERIA)

        self.assertEqual(search.stored_session_status, "missing")
        self.assertEqual(search.match.candidate.source, "payment_intent")
        self.assertEqual(search.match.payment_intent_id, "pi_9")
        self.assertEqual(self.gateway.list_calls, ["sessions", "payment_intents"])

    async def test_missing_session_falls_through_to_charges(self):
        self.gateway.charges.append(
            GatewayCharge(id="ch_1", paid=True, amount=16240, payment_intent_id="pi_c", created=NOW)
        )

        search = await self.locator.locate("cs_gone", CRITERIA)

        self.assertEqual(search.match.candidate.source, "charge")
        self.assertEqual(search.match.matcher, "amount_only")
        self.assertEqual(self.gateway.list_calls, ["sessions", "payment_intents", "charges"])

    async def test_unpaid_candidates_are_ignored(self):
        self._session("cs_unpaid", "unpaid", 16238)
        self.gateway.payment_intents.append(
            GatewayPaymentIntent(id="pi_x", status="requires_payment_method", amount=16238, created=NOW)
        )

        search = await self.locator.locate("cs_gone", CRITERIA)

        self.assertFalse(search.found)
        self.assertEqual(search.stored_session_status, "missing")
