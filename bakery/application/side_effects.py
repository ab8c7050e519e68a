"""
Best-effort notifications sent after an order is committed.

Nothing here may fail the write that triggered it: every task is awaited in
isolation and any exception is logged and dropped.
"""

import logging
from collections.abc import Awaitable, Callable
from html import escape

from bakery.application.interfaces.notifier import EmailSender, RealtimePublisher
from bakery.domain.constants import NEW_ORDER_CHANNEL, NEW_ORDER_EVENT
from bakery.domain.entities.quote_request import QuoteRequest
from bakery.domain.entities.reservation import FulfillmentType, Reservation

logger = logging.getLogger(__name__)


def _when(reservation: Reservation) -> str:
    line = reservation.line
    slot = line.delivery_time if reservation.fulfillment_type == FulfillmentType.DELIVERY else line.pickup_time
    day = reservation.date.strftime("%A, %B %d, %Y")
    return f"{day} at {slot}" if slot else day


def render_customer_confirmation(reservation: Reservation) -> tuple[str, str]:
    line = reservation.line
    subject = f"Order Confirmed - #{reservation.order_number}"
    html = (
        f"<h1>Thank you, {escape(reservation.customer.name)}!</h1>"
        f"<p>Your order <strong>#{escape(reservation.order_number or '')}</strong> is confirmed.</p>"
        f"<p>{escape(line.product_name)} ({escape(line.size)}, {escape(line.flavor)})</p>"
        f"<p>{reservation.fulfillment_type.value.capitalize()}: {escape(_when(reservation))}</p>"
    )
    if line.delivery_address is not None:
        html += f"<p>Delivery address: {escape(line.delivery_address.full_address)}</p>"
    return subject, html


def render_business_notification(reservation: Reservation, is_custom_order: bool) -> tuple[str, str]:
    label = "Custom Order" if is_custom_order else "New Order"
    subject = f"{label} #{reservation.order_number} - {reservation.date.isoformat()}"
    customer = reservation.customer
    html = (
        f"<h1>{label}</h1>"
        f"<p>Order #{escape(reservation.order_number or '')} for {escape(_when(reservation))}</p>"
        f"<p>{escape(customer.name)} &lt;{escape(customer.email)}&gt; {escape(customer.phone or '')}</p>"
        f"<p>{escape(reservation.line.product_name)}: {escape(reservation.line.design_notes)}</p>"
    )
    return subject, html


def render_quote_email(request: QuoteRequest) -> tuple[str, str]:
    quote = request.quote
    subject = f"Your cake quote is ready - {request.request_number}"
    html = (
        f"<h1>Hi {escape(request.customer.name)},</h1>"
        f"<p>Your quote for {request.requested_date.strftime('%A, %B %d, %Y')} is "
        f"<strong>${quote.final_price:.2f}</strong> (plus tax).</p>"
    )
    if quote.message:
        html += f"<p>{escape(quote.message)}</p>"
    if quote.payment_url:
        html += f'<p><a href="{escape(quote.payment_url)}">Pay now to reserve your date</a></p>'
    return subject, html


class SideEffectDispatcher:
    def __init__(
        self,
        email_sender: EmailSender,
        realtime_publisher: RealtimePublisher,
        business_email: str | None = None,
    ) -> None:
        self._email_sender = email_sender
        self._realtime_publisher = realtime_publisher
        self._business_email = business_email

    async def _run(self, task_name: str, factory: Callable[[], Awaitable[None]], **context) -> bool:
        try:
            await factory()
        except Exception:
            logger.error(
                "Side effect failed; continuing",
                exc_info=True,
                extra={"task": task_name, **context},
            )
            return False
        return True

    async def order_created(self, reservation: Reservation, is_custom_order: bool = False) -> None:
        context = {"order_number": reservation.order_number}
        payload = {
            "order_number": reservation.order_number,
            "reservation_id": reservation.id,
            "customer_name": reservation.customer.name,
            "date": reservation.date.isoformat(),
            "fulfillment_type": reservation.fulfillment_type.value,
            "product_name": reservation.line.product_name,
            "is_custom_order": is_custom_order,
        }
        await self._run(
            "realtime_new_order",
            lambda: self._realtime_publisher.publish(NEW_ORDER_CHANNEL, NEW_ORDER_EVENT, payload),
            **context,
        )
        if self._business_email:
            subject, html = render_business_notification(reservation, is_custom_order)
            await self._run(
                "business_email",
                lambda: self._email_sender.send(self._business_email, subject, html),
                **context,
            )
        subject, html = render_customer_confirmation(reservation)
        await self._run(
            "customer_email",
            lambda: self._email_sender.send(reservation.customer.email, subject, html),
            **context,
        )

    async def quote_sent(self, request: QuoteRequest) -> None:
        subject, html = render_quote_email(request)
        await self._run(
            "quote_email",
            lambda: self._email_sender.send(request.customer.email, subject, html),
            request_id=request.id,
        )
