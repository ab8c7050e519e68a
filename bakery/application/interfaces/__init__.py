"""Ports of the application layer."""

from bakery.application.interfaces.calendar_repo import CalendarRepo
from bakery.application.interfaces.clock import Clock, FakeClock, SystemClock
from bakery.application.interfaces.notifier import EmailSender, RealtimePublisher
from bakery.application.interfaces.payment_gateway import (
    GatewayCharge,
    GatewayLineItem,
    GatewayPaymentIntent,
    GatewaySession,
    PaymentGateway,
)
from bakery.application.interfaces.pending_checkout_repo import PendingCheckoutRepo
from bakery.application.interfaces.quote_request_repo import QuoteRequestRepo
from bakery.application.interfaces.reservation_repo import ReservationRepo
from bakery.application.interfaces.transaction_manager import TransactionManager

__all__ = [
    # Repositories
    "ReservationRepo",
    "QuoteRequestRepo",
    "CalendarRepo",
    "PendingCheckoutRepo",
    # Gateways
    "PaymentGateway",
    "GatewaySession",
    "GatewayPaymentIntent",
    "GatewayCharge",
    "GatewayLineItem",
    "EmailSender",
    "RealtimePublisher",
    # Infrastructure
    "TransactionManager",
    # Utilities
    "Clock",
    "SystemClock",
    "FakeClock",
]
