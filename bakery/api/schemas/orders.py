from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, condecimal, constr, field_validator

from bakery.application.use_cases.cart_checkout import CartResult, CheckoutSessionResult, LineError
from bakery.application.use_cases.modify_reservation import ModifyAction
from bakery.application.use_cases.reconcile_payment import ReconciliationResult
from bakery.domain.entities.pending_checkout import CartItem
from bakery.domain.entities.reservation import (
    AddOn,
    CustomerInfo,
    DeliveryAddress,
    FulfillmentType,
    LineDetails,
    Reservation,
)

Money = condecimal(max_digits=10, decimal_places=2, ge=0)


class Customer(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: constr(strip_whitespace=True, min_length=1, max_length=255)
    email: EmailStr
    phone: constr(strip_whitespace=True, max_length=50) | None = None

    def to_domain(self) -> CustomerInfo:
        return CustomerInfo(name=self.name, email=str(self.email), phone=self.phone)


class AddOnItem(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    name: str
    price: Money = Decimal("0")


class Address(BaseModel):
    model_config = ConfigDict(extra="forbid")

    street: str
    city: str
    state: str
    zip_code: str


class CakeDetails(BaseModel):
    model_config = ConfigDict(extra="forbid")

    product_name: constr(strip_whitespace=True, min_length=1, max_length=255)
    price: Money
    product_id: str | None = None
    size: str = '6"'
    flavor: str = "vanilla"
    shape: str | None = None
    filling: str | None = None
    design_notes: str = ""
    add_ons: list[AddOnItem] = Field(default_factory=list)
    pickup_time: str | None = None
    delivery_time: str | None = None
    delivery_address: Address | None = None
    image_url: str | None = None
    edible_image_url: str | None = None
    reference_image_url: str | None = None

    def to_domain(self) -> LineDetails:
        address = self.delivery_address
        return LineDetails(
            product_name=self.product_name,
            price=self.price,
            product_id=self.product_id,
            size=self.size,
            flavor=self.flavor,
            shape=self.shape,
            filling=self.filling,
            design_notes=self.design_notes,
            add_ons=[AddOn(id=a.id, name=a.name, price=a.price) for a in self.add_ons],
            pickup_time=self.pickup_time,
            delivery_time=self.delivery_time,
            delivery_address=DeliveryAddress(**address.model_dump()) if address else None,
            image_url=self.image_url,
            edible_image_url=self.edible_image_url,
            reference_image_url=self.reference_image_url,
        )


class CartLine(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: date
    fulfillment_type: FulfillmentType = FulfillmentType.PICKUP
    quantity: int = 1
    cake: CakeDetails

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, value: int) -> int:
        if value < 1:
            raise ValueError("quantity must be >= 1")
        return value

    def to_domain(self) -> CartItem:
        return CartItem(
            date=self.date,
            fulfillment_type=self.fulfillment_type,
            line=self.cake.to_domain(),
            quantity=self.quantity,
        )


class CartRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    customer: Customer
    items: list[CartLine]

    @field_validator("items")
    @classmethod
    def validate_items(cls, value: list[CartLine]) -> list[CartLine]:
        if not value:
            raise ValueError("Cart is empty")
        return value

    def cart_items(self) -> list[CartItem]:
        return [item.to_domain() for item in self.items]


class CreateCheckoutSessionRequest(CartRequest):
    fulfillment_type: FulfillmentType = FulfillmentType.PICKUP
    delivery_fee: Money = Decimal("0")


class CreateCheckoutSessionResponse(BaseModel):
    session_id: str
    url: str | None = None
    total: Decimal

    @classmethod
    def from_result(cls, result: CheckoutSessionResult) -> "CreateCheckoutSessionResponse":
        return cls(session_id=result.session_id, url=result.url, total=result.total.amount)


class OrderSummary(BaseModel):
    order_number: str
    reservation_id: int
    date: date
    status: str
    fulfillment_type: str
    customer_name: str
    product_name: str
    pickup_time: str | None = None
    delivery_time: str | None = None
    payment_status: str | None = None
    gateway_session_id: str | None = None

    @classmethod
    def from_domain(cls, reservation: Reservation) -> "OrderSummary":
        return cls(
            order_number=reservation.order_number,
            reservation_id=reservation.id,
            date=reservation.date,
            status=reservation.status.value,
            fulfillment_type=reservation.fulfillment_type.value,
            customer_name=reservation.customer.name,
            product_name=reservation.line.product_name,
            pickup_time=reservation.line.pickup_time,
            delivery_time=reservation.line.delivery_time,
            payment_status=reservation.payment.payment_status.value if reservation.payment else None,
            gateway_session_id=reservation.gateway_session_id,
        )


class LineFailure(BaseModel):
    line_index: int
    reason: str | None = None
    message: str

    @classmethod
    def from_domain(cls, error: LineError) -> "LineFailure":
        return cls(line_index=error.line_index, reason=error.reason, message=error.message)


class CartReservationsResponse(BaseModel):
    orders: list[OrderSummary]
    errors: list[LineFailure] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: CartResult) -> "CartReservationsResponse":
        return cls(
            orders=[OrderSummary.from_domain(r) for r in result.reservations],
            errors=[LineFailure.from_domain(e) for e in result.errors],
        )


class ReconcileResponse(BaseModel):
    success: bool
    orders: list[OrderSummary] = Field(default_factory=list)
    already_processed: bool = False
    payment_not_found: bool = False
    errors: list[LineFailure] = Field(default_factory=list)
    search_criteria: dict | None = None

    @classmethod
    def from_result(cls, result: ReconciliationResult) -> "ReconcileResponse":
        return cls(
            success=not result.payment_not_found and bool(result.reservations),
            orders=[OrderSummary.from_domain(r) for r in result.reservations],
            already_processed=result.already_processed,
            payment_not_found=result.payment_not_found,
            errors=[LineFailure.from_domain(e) for e in result.errors],
            search_criteria=result.search_criteria,
        )


class ModifyOrderRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    action: ModifyAction
    new_value: str | None = None


class ModifyOrderResponse(BaseModel):
    success: bool = True
    order: OrderSummary
