import logging
from datetime import date
from decimal import Decimal
from uuid import uuid4

from bakery.application.interfaces.clock import Clock
from bakery.application.interfaces.payment_gateway import GatewayLineItem, PaymentGateway
from bakery.application.interfaces.quote_request_repo import QuoteRequestRepo
from bakery.application.interfaces.transaction_manager import TransactionManager
from bakery.application.side_effects import SideEffectDispatcher
from bakery.domain.constants import METADATA_REQUEST_ID
from bakery.domain.entities.quote_request import QuoteInfo, QuoteKind, QuoteRequest
from bakery.domain.entities.reservation import CustomerInfo, FulfillmentType, LineDetails
from bakery.domain.errors import QuoteRequestNotFoundError, ValidationError
from bakery.domain.value_objects.money import Money

REQUEST_PREFIXES = {QuoteKind.CUSTOM: "CR", QuoteKind.WEDDING: "WR"}


class SubmitQuoteRequestUseCase:
    def __init__(
        self,
        quote_request_repo: QuoteRequestRepo,
        transaction_manager: TransactionManager,
        clock: Clock,
    ) -> None:
        self._quote_request_repo = quote_request_repo
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    async def execute(
        self,
        kind: QuoteKind,
        requested_date: date,
        fulfillment_type: FulfillmentType,
        customer: CustomerInfo,
        line: LineDetails,
    ) -> QuoteRequest:
        if requested_date < self._clock.today():
            raise ValidationError("requested_date", "must not be in the past")

        request_id = uuid4().hex
        request = QuoteRequest(
            id=request_id,
            request_number=f"{REQUEST_PREFIXES[kind]}-{request_id[:8].upper()}",
            kind=kind,
            requested_date=requested_date,
            fulfillment_type=fulfillment_type,
            customer=customer,
            line=line,
            created_at=self._clock.now(),
        )
        async with self._transaction_manager.start():
            request = await self._quote_request_repo.add(request)
        self._logger.info(
            "Quote request submitted",
            extra={"request_id": request.id, "kind": kind.value, "date": requested_date.isoformat()},
        )
        return request


class SendQuoteUseCase:
    """
    Prices a request and opens the checkout session the customer pays through.

    The session id is stored on the request; it is the key the payment is
    reconciled by later.
    """

    def __init__(
        self,
        quote_request_repo: QuoteRequestRepo,
        payment_gateway: PaymentGateway,
        transaction_manager: TransactionManager,
        side_effects: SideEffectDispatcher,
        clock: Clock,
        tax_rate: Decimal,
        public_base_url: str,
    ) -> None:
        self._quote_request_repo = quote_request_repo
        self._payment_gateway = payment_gateway
        self._transaction_manager = transaction_manager
        self._side_effects = side_effects
        self._clock = clock
        self._tax_rate = tax_rate
        self._public_base_url = public_base_url.rstrip("/")
        self._logger = logging.getLogger(__name__)

    async def execute(
        self,
        request_id: str,
        final_price: Decimal,
        message: str | None = None,
        new_date: date | None = None,
        override_capacity: bool = False,
    ) -> QuoteRequest:
        if final_price <= 0:
            raise ValidationError("final_price", "must be greater than zero")

        request = await self._quote_request_repo.get(request_id)
        if request is None:
            raise QuoteRequestNotFoundError(request_id)
        request.ensure_quotable()

        if new_date is not None:
            request.move_date(new_date)

        price = Money(amount=final_price)
        tax = price.tax(self._tax_rate)
        session = await self._payment_gateway.create_checkout_session(
            line_items=[
                GatewayLineItem(
                    name=f"{request.line.product_name} ({request.request_number})",
                    description=f"{request.kind.value.capitalize()} cake for {request.requested_date.isoformat()}",
                    unit_amount=price.to_cents(),
                ),
                GatewayLineItem(name="Sales Tax", unit_amount=tax.to_cents()),
            ],
            customer_email=request.customer.email,
            metadata={
                METADATA_REQUEST_ID: request.id,
                "request_number": request.request_number,
                "kind": request.kind.value,
                "customer_email": request.customer.email,
            },
            success_url=(
                f"{self._public_base_url}/custom-order/success"
                f"?request_id={request.id}&session_id={{CHECKOUT_SESSION_ID}}"
            ),
            cancel_url=f"{self._public_base_url}/custom-order",
        )

        async with self._transaction_manager.start():
            request.mark_quoted(
                QuoteInfo(
                    final_price=final_price,
                    gateway_session_id=session.id,
                    quoted_at=self._clock.now(),
                    payment_url=session.url,
                    message=message,
                ),
                override_capacity=override_capacity,
            )
            await self._quote_request_repo.update(request)

        self._logger.info(
            "Quote sent",
            extra={
                "request_id": request.id,
                "session_id": session.id,
                "final_price": str(final_price),
                "override_capacity": request.override_capacity,
            },
        )
        await self._side_effects.quote_sent(request)
        return request


class DeclineQuoteUseCase:
    def __init__(self, quote_request_repo: QuoteRequestRepo, transaction_manager: TransactionManager) -> None:
        self._quote_request_repo = quote_request_repo
        self._transaction_manager = transaction_manager

    async def execute(self, request_id: str) -> QuoteRequest:
        async with self._transaction_manager.start():
            request = await self._quote_request_repo.get(request_id)
            if request is None:
                raise QuoteRequestNotFoundError(request_id)
            request.decline()
            await self._quote_request_repo.update(request)
        return request
