"""Shared builders for the in-memory test harness."""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal

from bakery.application.interfaces.clock import FakeClock
from bakery.application.interfaces.payment_gateway import GatewaySession
from bakery.application.payment_matching import PaymentLocator
from bakery.application.side_effects import SideEffectDispatcher
from bakery.application.use_cases.check_availability import AvailabilityEngine
from bakery.application.use_cases.create_reservation import ReservationWriter
from bakery.application.use_cases.reconcile_payment import ReconcilePaymentUseCase
from bakery.domain.entities.calendar_override import CalendarOverride, OverrideStatus
from bakery.domain.entities.quote_request import QuoteInfo, QuoteKind, QuoteRequest, QuoteStatus
from bakery.domain.entities.reservation import (
    CustomerInfo,
    FulfillmentType,
    LineDetails,
    PaymentInfo,
    Reservation,
    ReservationStatus,
)
from bakery.infrastructure.in_memory.calendar_repo import InMemoryCalendarRepo
from bakery.infrastructure.in_memory.notifier import RecordingEmailSender, RecordingRealtimePublisher
from bakery.infrastructure.in_memory.payment_gateway import StubPaymentGateway
from bakery.infrastructure.in_memory.pending_checkout_repo import InMemoryPendingCheckoutRepo
from bakery.infrastructure.in_memory.quote_request_repo import InMemoryQuoteRequestRepo
from bakery.infrastructure.in_memory.reservation_repo import InMemoryReservationRepo
from bakery.infrastructure.in_memory.transaction_manager import NoopTransactionManager

TAX_RATE = Decimal("0.0825")

# Monday 2026-11-02, noon in Chicago
NOW = datetime(2026, 11, 2, 18, 0, tzinfo=timezone.utc)
TODAY = date(2026, 11, 2)
FIRST_OPEN_DAY = date(2026, 11, 12)  # Thursday, first date past the 10 day buffer
FRIDAY = date(2026, 11, 13)
SATURDAY = date(2026, 11, 14)
SUNDAY = date(2026, 11, 15)
MONDAY = date(2026, 11, 16)


def make_customer(email: str = "ana@example.com", name: str = "Ana Ruiz") -> CustomerInfo:
    return CustomerInfo(name=name, email=email, phone="512-555-0100")


def make_line(product_name: str = "Vanilla Dream", price: str = "45.00", **kwargs) -> LineDetails:
    return LineDetails(product_name=product_name, price=Decimal(price), pickup_time="3:00 PM", **kwargs)


@dataclass
class Harness:
    clock: FakeClock
    reservation_repo: InMemoryReservationRepo
    quote_request_repo: InMemoryQuoteRequestRepo
    calendar_repo: InMemoryCalendarRepo
    pending_checkout_repo: InMemoryPendingCheckoutRepo
    gateway: StubPaymentGateway
    email_sender: RecordingEmailSender
    realtime_publisher: RecordingRealtimePublisher
    tx_manager: NoopTransactionManager
    availability: AvailabilityEngine
    side_effects: SideEffectDispatcher
    writer: ReservationWriter

    def reconciler(self) -> ReconcilePaymentUseCase:
        return ReconcilePaymentUseCase(
            reservation_repo=self.reservation_repo,
            quote_request_repo=self.quote_request_repo,
            pending_checkout_repo=self.pending_checkout_repo,
            payment_gateway=self.gateway,
            payment_locator=PaymentLocator(gateway=self.gateway, clock=self.clock),
            writer=self.writer,
            transaction_manager=self.tx_manager,
            clock=self.clock,
            tax_rate=TAX_RATE,
        )

    async def seed_reservation(
        self,
        on_date: date,
        status: ReservationStatus = ReservationStatus.CONFIRMED,
        source_request_id: str | None = None,
        payment: PaymentInfo | None = None,
    ) -> Reservation:
        """Stores a reservation directly, bypassing the availability rules."""
        sequence = await self.reservation_repo.next_order_sequence()
        slot_index = None
        if status in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED):
            taken = await self.reservation_repo.taken_slots(on_date)
            slot_index = next(i for i in range(len(taken) + 1) if i not in taken)
        reservation = Reservation(
            date=on_date,
            fulfillment_type=FulfillmentType.PICKUP,
            customer=make_customer(),
            line=make_line(),
            status=status,
            order_number=str(100000 + sequence),
            payment=payment,
            source_request_id=source_request_id,
            slot_index=slot_index,
            created_at=self.clock.now(),
        )
        return await self.reservation_repo.add(reservation)

    async def set_override(
        self, on_date: date, status: OverrideStatus, capacity: int | None = None, note: str | None = None
    ) -> None:
        await self.calendar_repo.upsert(
            CalendarOverride(date=on_date, status=status, capacity=capacity, note=note)
        )

    async def seed_quote(
        self,
        on_date: date = FIRST_OPEN_DAY,
        final_price: str = "150.00",
        email: str = "a@x.com",
        request_id: str = "req-1",
        with_session: bool = True,
        override_capacity: bool = False,
    ) -> QuoteRequest:
        """Stores a quoted request whose checkout session exists in the stub gateway."""
        session_id = f"cs_quote_{request_id}"
        request = QuoteRequest(
            id=request_id,
            request_number=f"CR-{request_id.upper()}",
            kind=QuoteKind.CUSTOM,
            requested_date=on_date,
            fulfillment_type=FulfillmentType.PICKUP,
            customer=make_customer(email=email),
            line=make_line("Custom Tiered Cake", final_price),
            status=QuoteStatus.QUOTED,
            quote=QuoteInfo(
                final_price=Decimal(final_price),
                gateway_session_id=session_id,
                quoted_at=self.clock.now(),
            ),
            override_capacity=override_capacity,
            created_at=self.clock.now(),
        )
        await self.quote_request_repo.add(request)
        if with_session:
            self.gateway.add_session(
                GatewaySession(
                    id=session_id,
                    payment_status="unpaid",
                    amount_total=None,
                    customer_email=email,
                    metadata={"request_id": request_id},
                    created=self.clock.now(),
                )
            )
        return request


def build_harness(
    now: datetime = NOW,
    default_capacity: int = 2,
    weekly_capacity: int | None = 10,
    business_email: str | None = "owner@bakery.test",
) -> Harness:
    clock = FakeClock(now)
    reservation_repo = InMemoryReservationRepo()
    quote_request_repo = InMemoryQuoteRequestRepo()
    calendar_repo = InMemoryCalendarRepo()
    tx_manager = NoopTransactionManager()
    email_sender = RecordingEmailSender()
    realtime_publisher = RecordingRealtimePublisher()
    availability = AvailabilityEngine(
        reservation_repo=reservation_repo,
        calendar_repo=calendar_repo,
        quote_request_repo=quote_request_repo,
        clock=clock,
        default_capacity=default_capacity,
        weekly_capacity=weekly_capacity,
        min_days_ahead=10,
    )
    side_effects = SideEffectDispatcher(
        email_sender=email_sender,
        realtime_publisher=realtime_publisher,
        business_email=business_email,
    )
    writer = ReservationWriter(
        reservation_repo=reservation_repo,
        availability=availability,
        transaction_manager=tx_manager,
        side_effects=side_effects,
        clock=clock,
    )
    return Harness(
        clock=clock,
        reservation_repo=reservation_repo,
        quote_request_repo=quote_request_repo,
        calendar_repo=calendar_repo,
        pending_checkout_repo=InMemoryPendingCheckoutRepo(),
        gateway=StubPaymentGateway(),
        email_sender=email_sender,
        realtime_publisher=realtime_publisher,
        tx_manager=tx_manager,
        availability=availability,
        side_effects=side_effects,
        writer=writer,
    )
