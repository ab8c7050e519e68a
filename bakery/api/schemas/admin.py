from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, condecimal, field_validator

from bakery.api.schemas.orders import CakeDetails, Customer
from bakery.domain.entities.calendar_override import CalendarOverride, OverrideStatus
from bakery.domain.entities.quote_request import QuoteKind, QuoteRequest
from bakery.domain.entities.reservation import FulfillmentType, ReservationStatus

Price = condecimal(max_digits=10, decimal_places=2, gt=0)


class CalendarOverrideRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: OverrideStatus
    capacity: int | None = None
    note: str | None = None

    @field_validator("capacity")
    @classmethod
    def validate_capacity(cls, value: int | None) -> int | None:
        if value is not None and value < 1:
            raise ValueError("capacity must be a positive integer")
        return value


class CalendarOverrideResponse(BaseModel):
    date: date
    status: OverrideStatus
    capacity: int | None = None
    note: str | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, override: CalendarOverride) -> "CalendarOverrideResponse":
        return cls(
            date=override.date,
            status=override.status,
            capacity=override.capacity,
            note=override.note,
            updated_at=override.updated_at,
        )


class SubmitQuoteRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: QuoteKind = QuoteKind.CUSTOM
    requested_date: date
    fulfillment_type: FulfillmentType = FulfillmentType.PICKUP
    customer: Customer
    cake: CakeDetails


class SendQuoteRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    final_price: Price
    message: str | None = None
    new_date: date | None = None
    override_capacity: bool = False


class QuoteRequestResponse(BaseModel):
    id: str
    request_number: str
    kind: QuoteKind
    status: str
    requested_date: date
    original_requested_date: date | None = None
    customer_name: str
    customer_email: str
    final_price: Decimal | None = None
    payment_url: str | None = None
    gateway_session_id: str | None = None
    override_capacity: bool = False
    order_number: str | None = None

    @classmethod
    def from_domain(cls, request: QuoteRequest) -> "QuoteRequestResponse":
        return cls(
            id=request.id,
            request_number=request.request_number,
            kind=request.kind,
            status=request.status.value,
            requested_date=request.requested_date,
            original_requested_date=request.original_requested_date,
            customer_name=request.customer.name,
            customer_email=request.customer.email,
            final_price=request.quote.final_price if request.quote else None,
            payment_url=request.quote.payment_url if request.quote else None,
            gateway_session_id=request.gateway_session_id,
            override_capacity=request.override_capacity,
            order_number=request.order_number,
        )


class UpdateStatusRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: ReservationStatus


class RescheduleRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    new_date: date
    new_time: str | None = None
