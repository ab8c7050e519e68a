from decimal import Decimal

import pytest

from bakery.application.side_effects import (
    SideEffectDispatcher,
    render_business_notification,
    render_customer_confirmation,
    render_quote_email,
)
from bakery.domain.entities.quote_request import QuoteInfo, QuoteKind, QuoteRequest, QuoteStatus
from bakery.domain.entities.reservation import DeliveryAddress, FulfillmentType, Reservation
from bakery.infrastructure.in_memory.notifier import RecordingEmailSender, RecordingRealtimePublisher
from tests.builders import FIRST_OPEN_DAY, NOW, make_customer, make_line


def _reservation(**kwargs) -> Reservation:
    defaults = dict(
        date=FIRST_OPEN_DAY,
        fulfillment_type=FulfillmentType.PICKUP,
        customer=make_customer(name="Ana <Ruiz>"),
        line=make_line("Lemon & Berry", design_notes="Write <Happy Birthday>"),
        order_number="100007",
        id=7,
    )
    defaults.update(kwargs)
    return Reservation(**defaults)


def test_customer_confirmation_escapes_user_text():
    subject, html = render_customer_confirmation(_reservation())

    assert subject == "Order Confirmed - #100007"
    assert "Ana &lt;Ruiz&gt;" in html
    assert "Lemon &amp; Berry" in html
    assert "Thursday, November 12, 2026 at 3:00 PM" in html


def test_delivery_confirmation_uses_delivery_slot_and_address():
    line = make_line(
        delivery_time="10:00 AM",
        delivery_address=DeliveryAddress(street="1 Main St", city="Austin", state="TX", zip_code="78701"),
    )
    _, html = render_customer_confirmation(_reservation(fulfillment_type=FulfillmentType.DELIVERY, line=line))

    assert "Delivery: Thursday, November 12, 2026 at 10:00 AM" in html
    assert "1 Main St, Austin, TX 78701" in html


@pytest.mark.parametrize("is_custom, label", [(False, "New Order"), (True, "Custom Order")])
def test_business_notification_label(is_custom, label):
    subject, html = render_business_notification(_reservation(), is_custom)
    assert subject == f"{label} #100007 - 2026-11-12"
    assert "Write &lt;Happy Birthday&gt;" in html


def test_quote_email_links_payment():
    request = QuoteRequest(
        id="req-1",
        request_number="WR-000001",
        kind=QuoteKind.WEDDING,
        requested_date=FIRST_OPEN_DAY,
        fulfillment_type=FulfillmentType.PICKUP,
        customer=make_customer(),
        line=make_line(),
        status=QuoteStatus.QUOTED,
        quote=QuoteInfo(
            final_price=Decimal("150"),
            gateway_session_id="cs_1",
            quoted_at=NOW,
            payment_url="https://pay.test/cs_1",
            message="Fresh flowers included",
        ),
    )

    subject, html = render_quote_email(request)

    assert subject == "Your cake quote is ready - WR-000001"
    assert "$150.00" in html
    assert 'href="https://pay.test/cs_1"' in html
    assert "Fresh flowers included" in html


@pytest.mark.asyncio
async def test_failing_channels_do_not_stop_the_others():
    email_sender = RecordingEmailSender()
    dispatcher = SideEffectDispatcher(
        email_sender=email_sender,
        realtime_publisher=RecordingRealtimePublisher(fail=True),
        business_email="owner@bakery.test",
    )

    await dispatcher.order_created(_reservation())

    assert [m["to"] for m in email_sender.sent] == ["owner@bakery.test", "ana@example.com"]


@pytest.mark.asyncio
async def test_no_business_email_configured():
    email_sender = RecordingEmailSender()
    dispatcher = SideEffectDispatcher(email_sender=email_sender, realtime_publisher=RecordingRealtimePublisher())

    await dispatcher.order_created(_reservation())

    assert [m["to"] for m in email_sender.sent] == ["ana@example.com"]
