from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from bakery.api.schemas.admin import CalendarOverrideRequest, SendQuoteRequest
from bakery.api.schemas.orders import CartRequest, CreateCheckoutSessionRequest, OrderSummary
from bakery.domain.entities.reservation import FulfillmentType, PaymentInfo, Reservation
from tests.builders import FIRST_OPEN_DAY, make_customer, make_line


@pytest.fixture()
def base_cart_payload():
    return {
        "customer": {"name": "  Ana Ruiz ", "email": "ana@example.com", "phone": "512-555-0100"},
        "items": [
            {
                "date": "2026-11-12",
                "fulfillment_type": "delivery",
                "quantity": 2,
                "cake": {
                    "product_name": "Lemon Cake",
                    "price": "45.00",
                    "add_ons": [{"id": "topper", "name": "Gold topper", "price": "8.50"}],
                    "delivery_time": "10:00 AM",
                    "delivery_address": {
                        "street": "1 Main St",
                        "city": "Austin",
                        "state": "TX",
                        "zip_code": "78701",
                    },
                },
            }
        ],
    }


def test_cart_request_maps_to_domain(base_cart_payload):
    request = CartRequest(**base_cart_payload)

    customer = request.customer.to_domain()
    [item] = request.cart_items()

    assert customer.name == "Ana Ruiz"
    assert item.date == date(2026, 11, 12)
    assert item.fulfillment_type == FulfillmentType.DELIVERY
    assert item.quantity == 2
    assert item.line.total == Decimal("53.50")
    assert item.subtotal == Decimal("107.00")
    assert item.line.delivery_address.full_address == "1 Main St, Austin, TX 78701"


def test_cart_request_rejects_empty_cart(base_cart_payload):
    base_cart_payload["items"] = []
    with pytest.raises(ValidationError):
        CartRequest(**base_cart_payload)


def test_cart_request_rejects_zero_quantity(base_cart_payload):
    base_cart_payload["items"][0]["quantity"] = 0
    with pytest.raises(ValidationError):
        CartRequest(**base_cart_payload)


def test_cart_request_rejects_negative_price(base_cart_payload):
    base_cart_payload["items"][0]["cake"]["price"] = "-1.00"
    with pytest.raises(ValidationError):
        CartRequest(**base_cart_payload)


def test_cart_request_rejects_unknown_fields(base_cart_payload):
    base_cart_payload["coupon"] = "FREECAKE"
    with pytest.raises(ValidationError):
        CartRequest(**base_cart_payload)


def test_checkout_request_defaults(base_cart_payload):
    request = CreateCheckoutSessionRequest(**base_cart_payload)
    assert request.fulfillment_type == FulfillmentType.PICKUP
    assert request.delivery_fee == Decimal("0")


def test_calendar_override_capacity_validation():
    assert CalendarOverrideRequest(status="open", capacity=3).capacity == 3
    with pytest.raises(ValidationError):
        CalendarOverrideRequest(status="open", capacity=0)
    with pytest.raises(ValidationError):
        CalendarOverrideRequest(status="holiday")


def test_send_quote_price_must_be_positive():
    assert SendQuoteRequest(final_price="150.00").final_price == Decimal("150.00")
    with pytest.raises(ValidationError):
        SendQuoteRequest(final_price="0")


def test_order_summary_from_domain():
    reservation = Reservation(
        id=7,
        order_number="100007",
        date=FIRST_OPEN_DAY,
        fulfillment_type=FulfillmentType.PICKUP,
        customer=make_customer(),
        line=make_line("Lemon Cake"),
        payment=PaymentInfo(gateway_session_id="cs_1", gateway_payment_intent_id="pi_1", amount_paid=Decimal("48.71")),
    )

    summary = OrderSummary.from_domain(reservation)

    assert summary.order_number == "100007"
    assert summary.status == "pending"
    assert summary.pickup_time == "3:00 PM"
    assert summary.payment_status == "paid"
    assert summary.gateway_session_id == "cs_1"
