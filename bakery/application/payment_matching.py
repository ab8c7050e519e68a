"""
Locating the payment behind a quote when its stored checkout session is stale.

The stored session is tried first. When it was abandoned unpaid, recent paid
sessions are searched by email and amount. When the gateway no longer knows
it at all, three tiers are searched in order (sessions, payment intents,
charges) and within each tier the matchers run from strongest to weakest.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import IntEnum

from bakery.application.interfaces.clock import Clock
from bakery.application.interfaces.payment_gateway import (
    GatewayCharge,
    GatewayPaymentIntent,
    GatewaySession,
    PaymentGateway,
)
from bakery.domain.constants import (
    AMOUNT_ONLY_TOLERANCE_CENTS,
    EMAIL_AMOUNT_TOLERANCE_CENTS,
    METADATA_REQUEST_ID,
)

logger = logging.getLogger(__name__)

GATEWAY_LIST_LIMIT = 100


class Confidence(IntEnum):
    AMOUNT_ONLY = 1
    EMAIL_AMOUNT = 2
    EXACT = 3


@dataclass
class PaymentCandidate:
    source: str  # "session" | "payment_intent" | "charge"
    id: str
    amount: int
    email: str | None = None
    payment_intent_id: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    created: datetime | None = None

    @classmethod
    def from_session(cls, session: GatewaySession) -> "PaymentCandidate":
        return cls(
            source="session",
            id=session.id,
            amount=session.amount_total or 0,
            email=session.customer_email,
            payment_intent_id=session.payment_intent_id,
            metadata=session.metadata,
            created=session.created,
        )

    @classmethod
    def from_payment_intent(cls, intent: GatewayPaymentIntent) -> "PaymentCandidate":
        return cls(
            source="payment_intent",
            id=intent.id,
            amount=intent.amount,
            email=intent.receipt_email or intent.customer_email,
            payment_intent_id=intent.id,
            metadata=intent.metadata,
            created=intent.created,
        )

    @classmethod
    def from_charge(cls, charge: GatewayCharge) -> "PaymentCandidate":
        return cls(
            source="charge",
            id=charge.id,
            amount=charge.amount,
            email=charge.billing_email or charge.receipt_email,
            payment_intent_id=charge.payment_intent_id,
            metadata=charge.metadata,
            created=charge.created,
        )


@dataclass
class SearchCriteria:
    request_id: str
    email: str
    expected_amount: int  # minor units, tax included

    def as_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "email": self.email,
            "expected_amount": self.expected_amount,
        }


@dataclass
class PaymentMatch:
    candidate: PaymentCandidate
    matcher: str
    confidence: Confidence

    @property
    def amount(self) -> int:
        return self.candidate.amount

    @property
    def payment_intent_id(self) -> str | None:
        return self.candidate.payment_intent_id


@dataclass
class PaymentSearch:
    """Outcome of a search; ``stored_session_status`` is paid, unpaid or missing."""

    stored_session_status: str
    match: PaymentMatch | None = None

    @property
    def found(self) -> bool:
        return self.match is not None


class PaymentMatcher(ABC):
    name: str
    confidence: Confidence

    @abstractmethod
    def matches(self, candidate: PaymentCandidate, criteria: SearchCriteria) -> bool:
        raise NotImplementedError


def _same_email(left: str | None, right: str | None) -> bool:
    return bool(left) and bool(right) and left.strip().lower() == right.strip().lower()


class MetadataMatcher(PaymentMatcher):
    name = "metadata"
    confidence = Confidence.EXACT

    def matches(self, candidate: PaymentCandidate, criteria: SearchCriteria) -> bool:
        return candidate.metadata.get(METADATA_REQUEST_ID) == criteria.request_id


class EmailAmountMatcher(PaymentMatcher):
    name = "email_amount"
    confidence = Confidence.EMAIL_AMOUNT

    def __init__(self, tolerance_cents: int = EMAIL_AMOUNT_TOLERANCE_CENTS) -> None:
        self._tolerance = tolerance_cents

    def matches(self, candidate: PaymentCandidate, criteria: SearchCriteria) -> bool:
        return _same_email(candidate.email, criteria.email) and (
            abs(candidate.amount - criteria.expected_amount) < self._tolerance
        )


class AmountOnlyMatcher(PaymentMatcher):
    name = "amount_only"
    confidence = Confidence.AMOUNT_ONLY

    def __init__(self, tolerance_cents: int = AMOUNT_ONLY_TOLERANCE_CENTS) -> None:
        self._tolerance = tolerance_cents

    def matches(self, candidate: PaymentCandidate, criteria: SearchCriteria) -> bool:
        return abs(candidate.amount - criteria.expected_amount) < self._tolerance


def default_matchers() -> list[PaymentMatcher]:
    return [MetadataMatcher(), EmailAmountMatcher(), AmountOnlyMatcher()]


def best_match(
    candidates: list[PaymentCandidate],
    criteria: SearchCriteria,
    matchers: list[PaymentMatcher],
) -> PaymentMatch | None:
    """
    First candidate of the strongest matcher that hits anything.

    When the winner is not the only plausible payment (other hits of the same
    matcher, or other candidates within the amount-only tolerance) a warning
    lists the ones passed over so staff can check them by hand.
    """
    for matcher in sorted(matchers, key=lambda m: m.confidence, reverse=True):
        hits = [c for c in candidates if matcher.matches(c, criteria)]
        if not hits:
            continue
        chosen = hits[0]
        same_amount = [
            c
            for c in candidates
            if c is not chosen and abs(c.amount - criteria.expected_amount) < AMOUNT_ONLY_TOLERANCE_CENTS
        ]
        if len(hits) > 1 or same_amount:
            logger.warning(
                "Ambiguous payment match; using the first candidate",
                extra={
                    "request_id": criteria.request_id,
                    "matcher": matcher.name,
                    "chosen": chosen.id,
                    "others": [c.id for c in hits[1:]],
                    "same_amount": [c.id for c in same_amount],
                    "source": chosen.source,
                },
            )
        return PaymentMatch(candidate=chosen, matcher=matcher.name, confidence=matcher.confidence)
    return None


class PaymentLocator:
    def __init__(
        self,
        gateway: PaymentGateway,
        clock: Clock,
        lookback_days: int = 30,
        matchers: list[PaymentMatcher] | None = None,
    ) -> None:
        self._gateway = gateway
        self._clock = clock
        self._lookback = timedelta(days=lookback_days)
        self._matchers = matchers if matchers is not None else default_matchers()

    async def locate(self, stored_session_id: str, criteria: SearchCriteria) -> PaymentSearch:
        session = await self._gateway.retrieve_session(stored_session_id)
        if session is not None and session.is_paid:
            return PaymentSearch(
                stored_session_status="paid",
                match=PaymentMatch(
                    candidate=PaymentCandidate.from_session(session),
                    matcher="stored_session",
                    confidence=Confidence.EXACT,
                ),
            )

        created_after = self._clock.now() - self._lookback
        if session is not None:
            # Customer abandoned the stored link and paid through another one
            sessions = await self._paid_sessions(created_after)
            email_amount = [m for m in self._matchers if m.confidence == Confidence.EMAIL_AMOUNT]
            match = best_match(sessions, criteria, email_amount)
            self._log_outcome("unpaid", criteria, match)
            return PaymentSearch(stored_session_status="unpaid", match=match)

        tiers = [
            ("sessions", self._paid_sessions),
            ("payment_intents", self._succeeded_intents),
            ("charges", self._paid_charges),
        ]
        for tier, fetch in tiers:
            candidates = await fetch(created_after)
            match = best_match(candidates, criteria, self._matchers)
            if match is not None:
                self._log_outcome("missing", criteria, match, tier=tier)
                return PaymentSearch(stored_session_status="missing", match=match)

        self._log_outcome("missing", criteria, None)
        return PaymentSearch(stored_session_status="missing")

    async def _paid_sessions(self, created_after: datetime) -> list[PaymentCandidate]:
        sessions = await self._gateway.list_sessions(created_after, limit=GATEWAY_LIST_LIMIT)
        return [PaymentCandidate.from_session(s) for s in sessions if s.is_paid]

    async def _succeeded_intents(self, created_after: datetime) -> list[PaymentCandidate]:
        intents = await self._gateway.list_payment_intents(created_after, limit=GATEWAY_LIST_LIMIT)
        return [PaymentCandidate.from_payment_intent(i) for i in intents if i.succeeded]

    async def _paid_charges(self, created_after: datetime) -> list[PaymentCandidate]:
        charges = await self._gateway.list_charges(created_after, limit=GATEWAY_LIST_LIMIT)
        return [PaymentCandidate.from_charge(c) for c in charges if c.paid]

    def _log_outcome(
        self,
        stored_status: str,
        criteria: SearchCriteria,
        match: PaymentMatch | None,
        tier: str | None = None,
    ) -> None:
        if match is None:
            logger.info(
                "No payment found for quote",
                extra={"stored_session_status": stored_status, **criteria.as_dict()},
            )
            return
        logger.info(
            "Payment located by fallback search",
            extra={
                "stored_session_status": stored_status,
                "tier": tier,
                "matcher": match.matcher,
                "candidate_id": match.candidate.id,
                "request_id": criteria.request_id,
            },
        )
