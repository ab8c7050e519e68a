"""Bakery domain entities."""

from bakery.domain.entities.calendar_override import CalendarOverride, OverrideStatus
from bakery.domain.entities.pending_checkout import CartItem, PendingCheckout
from bakery.domain.entities.quote_request import QuoteInfo, QuoteKind, QuoteRequest, QuoteStatus
from bakery.domain.entities.reservation import (
    ACTIVE_STATUSES,
    AddOn,
    CustomerInfo,
    DeliveryAddress,
    FulfillmentType,
    LineDetails,
    PaymentInfo,
    PaymentStatus,
    Reservation,
    ReservationStatus,
)

__all__ = [
    # Reservation
    "Reservation",
    "ReservationStatus",
    "ACTIVE_STATUSES",
    "FulfillmentType",
    "CustomerInfo",
    "LineDetails",
    "AddOn",
    "DeliveryAddress",
    "PaymentInfo",
    "PaymentStatus",
    # QuoteRequest
    "QuoteRequest",
    "QuoteStatus",
    "QuoteKind",
    "QuoteInfo",
    # Calendar
    "CalendarOverride",
    "OverrideStatus",
    # Checkout
    "PendingCheckout",
    "CartItem",
]
