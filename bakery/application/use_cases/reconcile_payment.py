import logging
from dataclasses import dataclass, field
from decimal import Decimal

from bakery.application.interfaces.clock import Clock
from bakery.application.interfaces.payment_gateway import GatewaySession, PaymentGateway
from bakery.application.interfaces.pending_checkout_repo import PendingCheckoutRepo
from bakery.application.interfaces.quote_request_repo import QuoteRequestRepo
from bakery.application.interfaces.reservation_repo import ReservationRepo
from bakery.application.interfaces.transaction_manager import TransactionManager
from bakery.application.payment_matching import PaymentLocator, SearchCriteria
from bakery.application.use_cases.cart_checkout import (
    LineError,
    customer_from_metadata,
    decode_cart_metadata,
    paid_line,
    write_cart,
)
from bakery.application.use_cases.create_reservation import ReservationDraft, ReservationWriter
from bakery.domain.constants import METADATA_CART_ITEMS, METADATA_REQUEST_ID
from bakery.domain.entities.quote_request import QuoteRequest
from bakery.domain.entities.reservation import PaymentInfo, Reservation
from bakery.domain.errors import (
    CheckoutNotFoundError,
    DomainError,
    InvalidQuoteStatusError,
    PaymentNotCompletedError,
    QuoteAlreadyConvertedError,
    QuoteRequestNotFoundError,
    ReservationAlreadyExistsError,
    ValidationError,
)
from bakery.domain.value_objects.money import Money


@dataclass
class ReconciliationResult:
    reservations: list[Reservation] = field(default_factory=list)
    already_processed: bool = False
    payment_not_found: bool = False
    errors: list[LineError] = field(default_factory=list)
    search_criteria: dict | None = None


class ReconcilePaymentUseCase:
    """
    Turns a paid checkout session into its reservations exactly once.

    Works for both quote payments (one reservation converted from a quote
    request) and cart payments (one reservation per cart line). Running it
    again for the same payment returns the existing reservations with
    ``already_processed=True``.
    """

    def __init__(
        self,
        reservation_repo: ReservationRepo,
        quote_request_repo: QuoteRequestRepo,
        pending_checkout_repo: PendingCheckoutRepo,
        payment_gateway: PaymentGateway,
        payment_locator: PaymentLocator,
        writer: ReservationWriter,
        transaction_manager: TransactionManager,
        clock: Clock,
        tax_rate: Decimal,
    ) -> None:
        self._reservation_repo = reservation_repo
        self._quote_request_repo = quote_request_repo
        self._pending_checkout_repo = pending_checkout_repo
        self._payment_gateway = payment_gateway
        self._payment_locator = payment_locator
        self._writer = writer
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._tax_rate = tax_rate
        self._logger = logging.getLogger(__name__)

    async def execute(
        self, session_id: str | None = None, request_id: str | None = None
    ) -> ReconciliationResult:
        if not session_id and not request_id:
            raise ValidationError("session_id", "session_id or request_id is required")

        if request_id:
            return await self._reconcile_quote(request_id)

        existing = await self._reservation_repo.find_by_session_id(session_id)
        if existing:
            self._logger.info(
                "Payment already reconciled",
                extra={"session_id": session_id, "reservations": len(existing)},
            )
            return ReconciliationResult(reservations=existing, already_processed=True)

        request = await self._quote_request_repo.get_by_session_id(session_id)
        if request is not None:
            return await self._reconcile_quote(request.id)

        session = await self._payment_gateway.retrieve_session(session_id)
        if session is None:
            return ReconciliationResult(
                payment_not_found=True, search_criteria={"session_id": session_id}
            )
        if session.metadata.get(METADATA_REQUEST_ID):
            return await self._reconcile_quote(session.metadata[METADATA_REQUEST_ID])
        return await self._replay_cart(session)

    # === Quote flow ===

    async def _reconcile_quote(self, request_id: str) -> ReconciliationResult:
        request = await self._quote_request_repo.get(request_id)
        if request is None:
            raise QuoteRequestNotFoundError(request_id)

        if request.is_converted:
            return await self._already_converted(request)

        if request.quote is None:
            raise InvalidQuoteStatusError(request.status.value, "reconcile payment for")

        stored_session_id = request.quote.gateway_session_id
        existing = await self._reservation_repo.find_by_session_id(stored_session_id)
        if existing:
            # Order was written but the request never got stamped
            await self._stamp_converted(request, existing[0])
            return ReconciliationResult(reservations=existing, already_processed=True)

        criteria = SearchCriteria(
            request_id=request.id,
            email=request.customer.email,
            expected_amount=request.quote.expected_total(self._tax_rate).to_cents(),
        )
        search = await self._payment_locator.locate(stored_session_id, criteria)
        if not search.found:
            return ReconciliationResult(
                payment_not_found=True,
                search_criteria={
                    **criteria.as_dict(),
                    "stored_session_status": search.stored_session_status,
                },
            )

        match = search.match
        draft = ReservationDraft(
            date=request.requested_date,
            fulfillment_type=request.fulfillment_type,
            customer=request.customer,
            line=request.line,
            payment=PaymentInfo(
                gateway_session_id=stored_session_id,
                gateway_payment_intent_id=match.payment_intent_id,
                amount_paid=Money.from_cents(match.amount).amount,
            ),
            source_request_id=request.id,
        )
        try:
            created = await self._writer.create(
                draft,
                skip_buffer_check=True,
                override_capacity=request.override_capacity,
                is_custom_order=True,
            )
        except ReservationAlreadyExistsError:
            existing = await self._reservation_repo.find_by_session_id(stored_session_id)
            await self._stamp_converted(request, existing[0])
            return ReconciliationResult(reservations=existing, already_processed=True)

        if not await self._stamp_converted(request, created.reservation):
            return await self._already_converted(request)

        self._logger.info(
            "Quote payment reconciled",
            extra={
                "request_id": request.id,
                "order_number": created.order_number,
                "matcher": match.matcher,
                "payment_source": match.candidate.source,
            },
        )
        return ReconciliationResult(reservations=[created.reservation])

    async def _stamp_converted(self, request: QuoteRequest, reservation: Reservation) -> bool:
        """Marks the request converted; False when another order already claimed it."""
        async with self._transaction_manager.start():
            current = await self._quote_request_repo.get(request.id)
            if current.is_converted and current.order_number == reservation.order_number:
                return True
            try:
                current.mark_converted(reservation.order_number, reservation.id, self._clock.now())
            except QuoteAlreadyConvertedError as exc:
                self._logger.error(
                    "Quote request converted by another order",
                    extra={
                        "request_id": exc.request_id,
                        "existing_order": exc.order_number,
                        "new_order": reservation.order_number,
                    },
                )
                return False
            await self._quote_request_repo.update(current)
        return True

    async def _already_converted(self, request: QuoteRequest) -> ReconciliationResult:
        existing = await self._reservation_repo.find_by_source_request(request.id)
        self._logger.info(
            "Quote request already converted",
            extra={"request_id": request.id, "order_number": request.order_number},
        )
        return ReconciliationResult(reservations=existing, already_processed=True)

    # === Cart flow ===

    async def _replay_cart(self, session: GatewaySession) -> ReconciliationResult:
        if not session.is_paid:
            raise PaymentNotCompletedError(session.id, session.payment_status)

        checkout = await self._pending_checkout_repo.get(session.id)
        if checkout is not None:
            customer, items = checkout.customer, checkout.cart_items
            if checkout.is_expired(self._clock.now()):
                # Paid anyway, so the cart is still honoured
                self._logger.warning(
                    "Replaying a stale pending checkout",
                    extra={
                        "session_id": session.id,
                        "expires_at": checkout.expires_at.isoformat(),
                    },
                )
        else:
            self._logger.warning(
                "Pending checkout missing; falling back to session metadata",
                extra={"session_id": session.id},
            )
            customer = customer_from_metadata(session.metadata)
            items = decode_cart_metadata(session.metadata.get(METADATA_CART_ITEMS))
        if customer is None or not items:
            raise CheckoutNotFoundError(session.id)

        cart = await write_cart(
            self._writer,
            customer,
            items,
            payment_for=paid_line(session.id, session.payment_intent_id),
        )
        reservations = cart.reservations
        if cart.already_existing:
            reservations = await self._reservation_repo.find_by_session_id(session.id)

        if checkout is not None:
            try:
                async with self._transaction_manager.start():
                    await self._pending_checkout_repo.delete(session.id)
            except DomainError:
                self._logger.error(
                    "Could not delete pending checkout",
                    exc_info=True,
                    extra={"session_id": session.id},
                )

        if cart.errors:
            self._logger.error(
                "Paid cart replayed with failed lines",
                extra={
                    "session_id": session.id,
                    "failed_lines": [e.line_index for e in cart.errors],
                },
            )
        return ReconciliationResult(
            reservations=reservations,
            already_processed=bool(cart.already_existing) and not cart.reservations,
            errors=cart.errors,
        )
