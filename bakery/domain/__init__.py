"""
Domain layer of the bakery reservation service.

Pure business rules with no framework dependencies.

Layout:
- entities/: Reservation, QuoteRequest, CalendarOverride, PendingCheckout
- value_objects/: immutable values (Money, OrderNumber)
- errors.py: domain exceptions
- constants.py: calendar and matching constants
"""

from bakery.domain.entities import (
    CalendarOverride,
    CartItem,
    CustomerInfo,
    FulfillmentType,
    LineDetails,
    OverrideStatus,
    PaymentInfo,
    PendingCheckout,
    QuoteKind,
    QuoteRequest,
    QuoteStatus,
    Reservation,
    ReservationStatus,
)
from bakery.domain.errors import (
    DateUnavailableError,
    DomainError,
    GatewayUnavailableError,
    InvalidModificationError,
    InvalidReservationStatusError,
    PersistenceError,
    QuoteAlreadyConvertedError,
    QuoteRequestNotFoundError,
    ReservationNotFoundError,
    ValidationError,
)
from bakery.domain.value_objects import Money, OrderNumber

__all__ = [
    # Entities
    "Reservation",
    "ReservationStatus",
    "FulfillmentType",
    "CustomerInfo",
    "LineDetails",
    "PaymentInfo",
    "QuoteRequest",
    "QuoteStatus",
    "QuoteKind",
    "CalendarOverride",
    "OverrideStatus",
    "PendingCheckout",
    "CartItem",
    # Value Objects
    "Money",
    "OrderNumber",
    # Errors
    "DomainError",
    "DateUnavailableError",
    "ReservationNotFoundError",
    "InvalidReservationStatusError",
    "InvalidModificationError",
    "QuoteRequestNotFoundError",
    "QuoteAlreadyConvertedError",
    "GatewayUnavailableError",
    "PersistenceError",
    "ValidationError",
]
