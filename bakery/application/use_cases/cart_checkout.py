import json
from collections.abc import Callable
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from bakery.application.interfaces.clock import Clock
from bakery.application.interfaces.payment_gateway import GatewayLineItem, PaymentGateway
from bakery.application.interfaces.pending_checkout_repo import PendingCheckoutRepo
from bakery.application.interfaces.transaction_manager import TransactionManager
from bakery.application.use_cases.check_availability import AvailabilityEngine
from bakery.application.use_cases.create_reservation import ReservationDraft, ReservationWriter
from bakery.domain.constants import GATEWAY_METADATA_VALUE_LIMIT, METADATA_CART_ITEMS
from bakery.domain.entities.pending_checkout import CartItem, PendingCheckout
from bakery.domain.entities.reservation import (
    CustomerInfo,
    FulfillmentType,
    LineDetails,
    PaymentInfo,
    Reservation,
)
from bakery.domain.errors import (
    DateUnavailableError,
    ReservationAlreadyExistsError,
    ValidationError,
)
from bakery.domain.value_objects.money import Money

logger = logging.getLogger(__name__)


@dataclass
class LineError:
    line_index: int
    reason: str | None
    message: str


@dataclass
class CartResult:
    reservations: list[Reservation] = field(default_factory=list)
    errors: list[LineError] = field(default_factory=list)
    already_existing: list[int] = field(default_factory=list)


@dataclass
class CheckoutSessionResult:
    session_id: str
    url: str | None
    total: Money


def encode_cart_metadata(items: list[CartItem]) -> str | None:
    """Compact cart copy for the gateway; ``None`` when it would not fit."""
    compact = [
        {
            "d": item.date.isoformat(),
            "f": item.fulfillment_type.value,
            "n": item.line.product_name,
            "p": str(item.line.price),
            "s": item.line.size,
            "fl": item.line.flavor,
            "q": item.quantity,
        }
        for item in items
    ]
    encoded = json.dumps(compact, separators=(",", ":"))
    if len(encoded) > GATEWAY_METADATA_VALUE_LIMIT:
        return None
    return encoded


def decode_cart_metadata(raw: str | None) -> list[CartItem]:
    if not raw:
        return []
    try:
        compact = json.loads(raw)
    except json.JSONDecodeError:
        return []
    items: list[CartItem] = []
    for entry in compact:
        items.append(
            CartItem(
                date=date.fromisoformat(entry["d"]),
                fulfillment_type=FulfillmentType(entry["f"]),
                line=LineDetails(
                    product_name=entry["n"],
                    price=Decimal(entry["p"]),
                    size=entry.get("s", '6"'),
                    flavor=entry.get("fl", "vanilla"),
                ),
                quantity=int(entry.get("q", 1)),
            )
        )
    return items


def customer_from_metadata(metadata: dict[str, str]) -> CustomerInfo | None:
    email = metadata.get("customer_email")
    if not email:
        return None
    return CustomerInfo(
        name=metadata.get("customer_name", ""),
        email=email,
        phone=metadata.get("customer_phone") or None,
    )


async def write_cart(
    writer: ReservationWriter,
    customer: CustomerInfo,
    items: list[CartItem],
    payment_for: Callable[[CartItem], PaymentInfo] | None = None,
) -> CartResult:
    """Writes one reservation per cart line, collecting per-line failures."""
    result = CartResult()
    for index, item in enumerate(items):
        draft = ReservationDraft(
            date=item.date,
            fulfillment_type=item.fulfillment_type,
            customer=customer,
            line=item.line,
            payment=payment_for(item) if payment_for else None,
            line_index=index,
        )
        try:
            created = await writer.create(draft)
        except DateUnavailableError as exc:
            logger.warning(
                "Cart line could not be reserved",
                extra={"line_index": index, "date": item.date.isoformat(), "reason": exc.reason},
            )
            result.errors.append(LineError(line_index=index, reason=exc.reason, message=exc.message))
            continue
        except ReservationAlreadyExistsError:
            logger.info(
                "Cart line already written by a concurrent request",
                extra={"line_index": index},
            )
            result.already_existing.append(index)
            continue
        result.reservations.append(created.reservation)
    return result


class CreateCheckoutSessionUseCase:
    """
    Validates a cart, opens a gateway checkout session and persists the cart
    under the session id before the customer is redirected to pay.
    """

    def __init__(
        self,
        availability: AvailabilityEngine,
        payment_gateway: PaymentGateway,
        pending_checkout_repo: PendingCheckoutRepo,
        transaction_manager: TransactionManager,
        clock: Clock,
        tax_rate: Decimal,
        public_base_url: str,
    ) -> None:
        self._availability = availability
        self._payment_gateway = payment_gateway
        self._pending_checkout_repo = pending_checkout_repo
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._tax_rate = tax_rate
        self._public_base_url = public_base_url.rstrip("/")
        self._logger = logging.getLogger(__name__)

    async def execute(
        self,
        customer: CustomerInfo,
        cart_items: list[CartItem],
        fulfillment_type: FulfillmentType,
        delivery_fee: Decimal = Decimal("0"),
    ) -> CheckoutSessionResult:
        if not cart_items:
            raise ValidationError("cart_items", "Cart is empty")

        for item in cart_items:
            availability = await self._availability.is_available(item.date, item.fulfillment_type)
            if not availability.available:
                raise DateUnavailableError(
                    reason=availability.reason,
                    message=f'Date unavailable for "{item.line.product_name}": {availability.message}',
                )

        line_items = [
            GatewayLineItem(
                name=item.line.product_name,
                description=f"{item.line.size} {item.line.flavor} - {item.date.isoformat()}",
                unit_amount=Money(amount=item.line.total).to_cents(),
                quantity=item.quantity,
            )
            for item in cart_items
        ]
        subtotal = Money(amount=sum((item.subtotal for item in cart_items), Decimal("0")))
        taxable = subtotal + Money(amount=delivery_fee)
        if delivery_fee > 0:
            line_items.append(
                GatewayLineItem(name="Delivery Fee", unit_amount=Money(amount=delivery_fee).to_cents())
            )
        tax = taxable.tax(self._tax_rate)
        line_items.append(GatewayLineItem(name="Sales Tax", unit_amount=tax.to_cents()))

        metadata = {
            "customer_name": customer.name,
            "customer_email": customer.email,
            "customer_phone": customer.phone or "",
            "fulfillment_type": fulfillment_type.value,
            "delivery_fee": str(delivery_fee),
        }
        encoded_cart = encode_cart_metadata(cart_items)
        if encoded_cart is not None:
            metadata[METADATA_CART_ITEMS] = encoded_cart

        session = await self._payment_gateway.create_checkout_session(
            line_items=line_items,
            customer_email=customer.email,
            metadata=metadata,
            success_url=f"{self._public_base_url}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{self._public_base_url}/cart",
        )

        checkout = PendingCheckout.expiring_from(
            self._clock.now(),
            session_id=session.id,
            customer=customer,
            cart_items=cart_items,
            fulfillment_type=fulfillment_type,
            delivery_fee=delivery_fee,
        )
        async with self._transaction_manager.start():
            await self._pending_checkout_repo.save(checkout)
        self._logger.info(
            "Checkout session created",
            extra={
                "session_id": session.id,
                "items": len(cart_items),
                "cart_in_metadata": encoded_cart is not None,
            },
        )
        return CheckoutSessionResult(session_id=session.id, url=session.url, total=taxable + tax)


class PlaceCartReservationsUseCase:
    """Direct, unpaid cart: each line goes through the writer on its own."""

    def __init__(self, writer: ReservationWriter) -> None:
        self._writer = writer

    async def execute(self, customer: CustomerInfo, cart_items: list[CartItem]) -> CartResult:
        if not cart_items:
            raise ValidationError("cart_items", "Cart is empty")
        return await write_cart(self._writer, customer, cart_items)


def paid_line(session_id: str, payment_intent_id: str | None):
    """Payment stamp for each line of a paid cart."""

    def build(item: CartItem) -> PaymentInfo:
        return PaymentInfo(
            gateway_session_id=session_id,
            gateway_payment_intent_id=payment_intent_id,
            amount_paid=item.subtotal,
        )

    return build
