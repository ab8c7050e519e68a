"""Domain exceptions for the bakery reservation system."""


class DomainError(Exception):
    """Base class for every domain error."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


# === Availability ===


class DateUnavailableError(DomainError):
    """The requested date cannot take another reservation."""

    def __init__(self, reason: str, message: str):
        super().__init__(message=message, code="DATE_UNAVAILABLE")
        self.reason = reason


# === Reservations ===


class ReservationNotFoundError(DomainError):
    """The reservation does not exist."""

    def __init__(self, reference: str):
        super().__init__(
            message=f"Order not found: {reference}",
            code="RESERVATION_NOT_FOUND",
        )
        self.reference = reference


class InvalidReservationStatusError(DomainError):
    """The reservation's current status does not allow the operation."""

    def __init__(self, current_status: str, expected_status: str | list[str], operation: str):
        expected = expected_status if isinstance(expected_status, str) else ", ".join(expected_status)
        super().__init__(
            message=f"Cannot {operation}: current status '{current_status}', expected '{expected}'",
            code="INVALID_RESERVATION_STATUS",
        )
        self.current_status = current_status
        self.expected_status = expected_status
        self.operation = operation


class ReservationAlreadyExistsError(DomainError):
    """An order already exists for this checkout session line."""

    def __init__(self, session_id: str, line_index: int):
        super().__init__(
            message=f"Order already exists for session {session_id} line {line_index}",
            code="RESERVATION_ALREADY_EXISTS",
        )
        self.session_id = session_id
        self.line_index = line_index


class InvalidModificationError(DomainError):
    """A customer modification request was rejected before touching the calendar."""

    def __init__(self, message: str):
        super().__init__(message=message, code="INVALID_MODIFICATION")


class CapacitySlotConflictError(DomainError):
    """Another writer claimed the same capacity slot first."""

    def __init__(self, date: str, slot_index: int):
        super().__init__(
            message=f"Capacity slot {slot_index} on {date} was claimed concurrently",
            code="CAPACITY_SLOT_CONFLICT",
        )
        self.date = date
        self.slot_index = slot_index


# === Quote requests ===


class QuoteRequestNotFoundError(DomainError):
    """The quote request does not exist."""

    def __init__(self, request_id: str):
        super().__init__(
            message=f"Quote request not found: {request_id}",
            code="QUOTE_REQUEST_NOT_FOUND",
        )
        self.request_id = request_id


class QuoteAlreadyConvertedError(DomainError):
    """The quote request already produced its order."""

    def __init__(self, request_id: str, order_number: str | None):
        super().__init__(
            message=f"Quote request {request_id} was already converted to order {order_number}",
            code="QUOTE_ALREADY_CONVERTED",
        )
        self.request_id = request_id
        self.order_number = order_number


class InvalidQuoteStatusError(DomainError):
    """The quote request's status does not allow the operation."""

    def __init__(self, current_status: str, operation: str):
        super().__init__(
            message=f"Cannot {operation} a quote request in status '{current_status}'",
            code="INVALID_QUOTE_STATUS",
        )
        self.current_status = current_status
        self.operation = operation


# === Payments ===


class GatewayUnavailableError(DomainError):
    """The payment gateway could not be reached; the caller may retry."""

    def __init__(self, message: str = "Payment gateway temporarily unavailable"):
        super().__init__(message=message, code="GATEWAY_UNAVAILABLE")


class CheckoutNotFoundError(DomainError):
    """No cart was persisted for the checkout session."""

    def __init__(self, session_id: str):
        super().__init__(
            message=f"Order data not found for checkout session {session_id}",
            code="CHECKOUT_NOT_FOUND",
        )
        self.session_id = session_id


class PaymentNotCompletedError(DomainError):
    """The checkout session exists but was not paid."""

    def __init__(self, session_id: str, payment_status: str):
        super().__init__(
            message=f"Payment not completed for session {session_id} (status: {payment_status})",
            code="PAYMENT_NOT_COMPLETED",
        )
        self.session_id = session_id
        self.payment_status = payment_status


class InvalidWebhookError(DomainError):
    """The webhook payload or its signature is invalid."""

    def __init__(self, message: str):
        super().__init__(message=message, code="INVALID_WEBHOOK")


# === Persistence ===


class PersistenceError(DomainError):
    """A store operation failed; the whole operation fails."""

    def __init__(self, operation: str, detail: str | None = None):
        message = f"Persistence failure during {operation}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message=message, code="PERSISTENCE_ERROR")
        self.operation = operation


# === Validation ===


class ValidationError(DomainError):
    """Invalid input data."""

    def __init__(self, field: str, message: str):
        super().__init__(
            message=f"Validation failed on '{field}': {message}",
            code="VALIDATION_ERROR",
        )
        self.field = field
