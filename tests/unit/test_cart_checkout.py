import json
import unittest
from decimal import Decimal

from bakery.application.use_cases.cart_checkout import (
    CreateCheckoutSessionUseCase,
    PlaceCartReservationsUseCase,
    decode_cart_metadata,
    encode_cart_metadata,
)
from bakery.domain.constants import REASON_CLOSED_DAY, REASON_DAY_FULL
from bakery.domain.entities.pending_checkout import CartItem
from bakery.domain.entities.reservation import FulfillmentType
from bakery.domain.errors import DateUnavailableError, GatewayUnavailableError, ValidationError
from tests.builders import FIRST_OPEN_DAY, MONDAY, SATURDAY, TAX_RATE, build_harness, make_customer, make_line


def _item(on_date=FIRST_OPEN_DAY, name="Lemon Cake", price="45.00", quantity=1) -> CartItem:
    return CartItem(
        date=on_date,
        fulfillment_type=FulfillmentType.PICKUP,
        line=make_line(name, price),
        quantity=quantity,
    )


class TestCartMetadataCodec(unittest.TestCase):
    def test_round_trip_keeps_the_essentials(self):
        items = [_item(quantity=2)]
        decoded = decode_cart_metadata(encode_cart_metadata(items))
        self.assertEqual(decoded[0].date, FIRST_OPEN_DAY)
        self.assertEqual(decoded[0].line.product_name, "Lemon Cake")
        self.assertEqual(decoded[0].line.price, Decimal("45.00"))
        self.assertEqual(decoded[0].quantity, 2)

    def test_oversized_cart_is_not_encoded(self):
        items = [_item(name="X" * 60) for _ in range(10)]
        self.assertIsNone(encode_cart_metadata(items))

    def test_garbage_decodes_to_empty(self):
        self.assertEqual(decode_cart_metadata("not json"), [])
        self.assertEqual(decode_cart_metadata(None), [])


class TestCreateCheckoutSession(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.h = build_harness()
        self.use_case = CreateCheckoutSessionUseCase(
            availability=self.h.availability,
            payment_gateway=self.h.gateway,
            pending_checkout_repo=self.h.pending_checkout_repo,
            transaction_manager=self.h.tx_manager,
            clock=self.h.clock,
            tax_rate=TAX_RATE,
            public_base_url="https://bakery.test/",
        )

    async def test_creates_session_and_persists_cart(self):
        result = await self.use_case.execute(
            make_customer(),
            [_item(quantity=2), _item(SATURDAY, "Carrot Cake", "55.00")],
            FulfillmentType.DELIVERY,
            delivery_fee=Decimal("15.00"),
        )

        # 90 + 55 + 15 = 160, tax 13.20
        self.assertEqual(result.total.amount, Decimal("173.20"))
        session = self.h.gateway.sessions[result.session_id]
        self.assertEqual(session.amount_total, 17320)
        self.assertEqual(session.metadata["customer_email"], "ana@example.com")
        self.assertEqual(session.metadata["fulfillment_type"], "delivery")
        self.assertEqual(len(json.loads(session.metadata["cart_items"])), 2)

        checkout = await self.h.pending_checkout_repo.get(result.session_id)
        self.assertEqual(len(checkout.cart_items), 2)
        self.assertEqual(checkout.delivery_fee, Decimal("15.00"))
        self.assertIsNotNone(checkout.expires_at)

    async def test_unavailable_date_blocks_the_session(self):
        with self.assertRaises(DateUnavailableError) as ctx:
            await self.use_case.execute(make_customer(), [_item(), _item(MONDAY)], FulfillmentType.PICKUP)

        self.assertEqual(ctx.exception.reason, REASON_CLOSED_DAY)
        self.assertEqual(self.h.gateway.sessions, {})
        self.assertEqual(self.h.pending_checkout_repo.checkouts, {})

    async def test_empty_cart(self):
        with self.assertRaises(ValidationError):
            await self.use_case.execute(make_customer(), [], FulfillmentType.PICKUP)

    async def test_gateway_outage_writes_nothing(self):
        self.h.gateway.unavailable = True
        with self.assertRaises(GatewayUnavailableError):
            await self.use_case.execute(make_customer(), [_item()], FulfillmentType.PICKUP)
        self.assertEqual(self.h.pending_checkout_repo.checkouts, {})


class TestPlaceCartReservations(unittest.IsolatedAsyncioTestCase):
    async def test_partial_success_when_one_date_fills_up(self):
        h = build_harness()
        use_case = PlaceCartReservationsUseCase(writer=h.writer)
        # Saturday filled between page load and submit
        await h.seed_reservation(SATURDAY)
        await h.seed_reservation(SATURDAY)

        result = await use_case.execute(make_customer(), [_item(), _item(SATURDAY)])

        self.assertEqual(len(result.reservations), 1)
        self.assertEqual(result.reservations[0].date, FIRST_OPEN_DAY)
        self.assertEqual(len(result.errors), 1)
        self.assertEqual(result.errors[0].line_index, 1)
        self.assertEqual(result.errors[0].reason, REASON_DAY_FULL)

    async def test_unpaid_orders_carry_no_payment(self):
        h = build_harness()
        use_case = PlaceCartReservationsUseCase(writer=h.writer)
        result = await use_case.execute(make_customer(), [_item()])
        self.assertIsNone(result.reservations[0].payment)

    async def test_empty_cart(self):
        h = build_harness()
        with self.assertRaises(ValidationError):
            await PlaceCartReservationsUseCase(writer=h.writer).execute(make_customer(), [])
