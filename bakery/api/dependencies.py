from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bakery.api.deps import AsyncSessionLocal
from bakery.application.interfaces.clock import Clock, SystemClock
from bakery.application.payment_matching import PaymentLocator
from bakery.application.side_effects import SideEffectDispatcher
from bakery.application.use_cases.cart_checkout import (
    CreateCheckoutSessionUseCase,
    PlaceCartReservationsUseCase,
)
from bakery.application.use_cases.check_availability import AvailabilityEngine
from bakery.application.use_cases.create_reservation import ReservationWriter
from bakery.application.use_cases.handle_stripe_webhook import HandleStripeWebhookUseCase
from bakery.application.use_cases.lookup_order import LookupOrderUseCase
from bakery.application.use_cases.manage_calendar import ManageCalendarUseCase
from bakery.application.use_cases.manage_quotes import (
    DeclineQuoteUseCase,
    SendQuoteUseCase,
    SubmitQuoteRequestUseCase,
)
from bakery.application.use_cases.modify_reservation import (
    ManageReservationUseCase,
    ModifyReservationUseCase,
)
from bakery.application.use_cases.reconcile_payment import ReconcilePaymentUseCase
from bakery.config import Settings, get_settings
from bakery.infrastructure.db.repositories.calendar_repo_sql import CalendarRepoSQL
from bakery.infrastructure.db.repositories.pending_checkout_repo_sql import PendingCheckoutRepoSQL
from bakery.infrastructure.db.repositories.quote_request_repo_sql import QuoteRequestRepoSQL
from bakery.infrastructure.db.repositories.reservation_repo_sql import ReservationRepoSQL
from bakery.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager
from bakery.infrastructure.gateways.email_http import HttpEmailSender
from bakery.infrastructure.gateways.realtime_http import HttpRealtimePublisher
from bakery.infrastructure.gateways.stripe_gateway import StripePaymentGateway
from bakery.infrastructure.in_memory.calendar_repo import InMemoryCalendarRepo
from bakery.infrastructure.in_memory.notifier import RecordingEmailSender, RecordingRealtimePublisher
from bakery.infrastructure.in_memory.payment_gateway import StubPaymentGateway
from bakery.infrastructure.in_memory.pending_checkout_repo import InMemoryPendingCheckoutRepo
from bakery.infrastructure.in_memory.quote_request_repo import InMemoryQuoteRequestRepo
from bakery.infrastructure.in_memory.reservation_repo import InMemoryReservationRepo
from bakery.infrastructure.in_memory.transaction_manager import NoopTransactionManager


async def get_session(settings: Settings = Depends(get_settings)) -> AsyncSession | None:
    if settings.use_in_memory:
        yield None
        return
    async with AsyncSessionLocal() as session:
        yield session


@lru_cache(maxsize=1)
def _in_memory_bundle():
    settings = get_settings()
    return {
        "reservation_repo": InMemoryReservationRepo(),
        "quote_request_repo": InMemoryQuoteRequestRepo(),
        "calendar_repo": InMemoryCalendarRepo(),
        "pending_checkout_repo": InMemoryPendingCheckoutRepo(),
        "payment_gateway": StubPaymentGateway(),
        "email_sender": RecordingEmailSender(),
        "realtime_publisher": RecordingRealtimePublisher(),
        "tx_manager": NoopTransactionManager(),
        "clock": SystemClock(settings.business_timezone),
    }


@lru_cache(maxsize=1)
def _stripe_gateway() -> StripePaymentGateway:
    settings = get_settings()
    return StripePaymentGateway(api_key=settings.stripe_api_key, currency=settings.currency)


def _sql_bundle(settings: Settings, session: AsyncSession):
    return {
        "reservation_repo": ReservationRepoSQL(session),
        "quote_request_repo": QuoteRequestRepoSQL(session),
        "calendar_repo": CalendarRepoSQL(session),
        "pending_checkout_repo": PendingCheckoutRepoSQL(session),
        "payment_gateway": _stripe_gateway(),
        "email_sender": HttpEmailSender(
            api_url=settings.email_api_url,
            api_token=settings.email_api_token,
            from_email=settings.email_from,
            timeout_seconds=settings.http_timeout_seconds,
        ),
        "realtime_publisher": HttpRealtimePublisher(
            url=settings.realtime_url,
            token=settings.realtime_token,
            timeout_seconds=settings.http_timeout_seconds,
        ),
        "tx_manager": SQLAlchemyTransactionManager(session),
        "clock": SystemClock(settings.business_timezone),
    }


def build_use_cases(settings: Settings, bundle: dict) -> dict:
    clock: Clock = bundle["clock"]
    tx_manager = bundle["tx_manager"]
    gateway = bundle["payment_gateway"]

    availability = AvailabilityEngine(
        reservation_repo=bundle["reservation_repo"],
        calendar_repo=bundle["calendar_repo"],
        quote_request_repo=bundle["quote_request_repo"],
        clock=clock,
        default_capacity=settings.default_daily_capacity,
        weekly_capacity=settings.weekly_capacity,
        min_days_ahead=settings.min_days_ahead,
    )
    side_effects = SideEffectDispatcher(
        email_sender=bundle["email_sender"],
        realtime_publisher=bundle["realtime_publisher"],
        business_email=settings.business_email,
    )
    writer = ReservationWriter(
        reservation_repo=bundle["reservation_repo"],
        availability=availability,
        transaction_manager=tx_manager,
        side_effects=side_effects,
        clock=clock,
    )
    reconcile = ReconcilePaymentUseCase(
        reservation_repo=bundle["reservation_repo"],
        quote_request_repo=bundle["quote_request_repo"],
        pending_checkout_repo=bundle["pending_checkout_repo"],
        payment_gateway=gateway,
        payment_locator=PaymentLocator(
            gateway=gateway,
            clock=clock,
            lookback_days=settings.payment_lookback_days,
        ),
        writer=writer,
        transaction_manager=tx_manager,
        clock=clock,
        tax_rate=settings.tax_rate,
    )
    return {
        "availability": availability,
        "create_checkout_session": CreateCheckoutSessionUseCase(
            availability=availability,
            payment_gateway=gateway,
            pending_checkout_repo=bundle["pending_checkout_repo"],
            transaction_manager=tx_manager,
            clock=clock,
            tax_rate=settings.tax_rate,
            public_base_url=settings.public_base_url,
        ),
        "place_cart": PlaceCartReservationsUseCase(writer=writer),
        "reconcile_payment": reconcile,
        "handle_webhook": HandleStripeWebhookUseCase(
            payment_gateway=gateway,
            reconcile=reconcile,
            stripe_webhook_secret=settings.stripe_webhook_secret,
        ),
        "lookup_order": LookupOrderUseCase(reservation_repo=bundle["reservation_repo"]),
        "modify_reservation": ModifyReservationUseCase(
            reservation_repo=bundle["reservation_repo"],
            availability=availability,
            transaction_manager=tx_manager,
            clock=clock,
            max_push_days=settings.max_push_days,
        ),
        "manage_reservation": ManageReservationUseCase(
            reservation_repo=bundle["reservation_repo"],
            transaction_manager=tx_manager,
            clock=clock,
        ),
        "manage_calendar": ManageCalendarUseCase(
            calendar_repo=bundle["calendar_repo"],
            transaction_manager=tx_manager,
            clock=clock,
        ),
        "submit_quote_request": SubmitQuoteRequestUseCase(
            quote_request_repo=bundle["quote_request_repo"],
            transaction_manager=tx_manager,
            clock=clock,
        ),
        "send_quote": SendQuoteUseCase(
            quote_request_repo=bundle["quote_request_repo"],
            payment_gateway=gateway,
            transaction_manager=tx_manager,
            side_effects=side_effects,
            clock=clock,
            tax_rate=settings.tax_rate,
            public_base_url=settings.public_base_url,
        ),
        "decline_quote": DeclineQuoteUseCase(
            quote_request_repo=bundle["quote_request_repo"],
            transaction_manager=tx_manager,
        ),
    }


def get_use_cases(
    settings: Settings = Depends(get_settings),
    session: AsyncSession | None = Depends(get_session),
):
    if settings.use_in_memory:
        return build_use_cases(settings, _in_memory_bundle())
    return build_use_cases(settings, _sql_bundle(settings, session))
