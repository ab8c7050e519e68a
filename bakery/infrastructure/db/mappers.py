"""Row <-> entity conversion for the JSON columns and flattened value objects."""

from datetime import date
from decimal import Decimal
from typing import Any

from bakery.domain.entities.pending_checkout import CartItem
from bakery.domain.entities.reservation import (
    AddOn,
    CustomerInfo,
    DeliveryAddress,
    FulfillmentType,
    LineDetails,
)


def line_to_json(line: LineDetails) -> dict[str, Any]:
    return {
        "product_id": line.product_id,
        "product_name": line.product_name,
        "price": str(line.price),
        "size": line.size,
        "flavor": line.flavor,
        "shape": line.shape,
        "filling": line.filling,
        "design_notes": line.design_notes,
        "add_ons": [{"id": a.id, "name": a.name, "price": str(a.price)} for a in line.add_ons],
        "pickup_time": line.pickup_time,
        "delivery_time": line.delivery_time,
        "delivery_address": (
            {
                "street": line.delivery_address.street,
                "city": line.delivery_address.city,
                "state": line.delivery_address.state,
                "zip_code": line.delivery_address.zip_code,
            }
            if line.delivery_address
            else None
        ),
        "image_url": line.image_url,
        "edible_image_url": line.edible_image_url,
        "reference_image_url": line.reference_image_url,
    }


def line_from_json(data: dict[str, Any]) -> LineDetails:
    address = data.get("delivery_address")
    return LineDetails(
        product_id=data.get("product_id"),
        product_name=data["product_name"],
        price=Decimal(data["price"]),
        size=data.get("size") or '6"',
        flavor=data.get("flavor") or "vanilla",
        shape=data.get("shape"),
        filling=data.get("filling"),
        design_notes=data.get("design_notes") or "",
        add_ons=[AddOn(id=a["id"], name=a["name"], price=Decimal(a["price"])) for a in data.get("add_ons") or []],
        pickup_time=data.get("pickup_time"),
        delivery_time=data.get("delivery_time"),
        delivery_address=DeliveryAddress(**address) if address else None,
        image_url=data.get("image_url"),
        edible_image_url=data.get("edible_image_url"),
        reference_image_url=data.get("reference_image_url"),
    )


def customer_columns(customer: CustomerInfo) -> dict[str, Any]:
    return {
        "customer_name": customer.name,
        "customer_email": customer.email,
        "customer_phone": customer.phone,
    }


def customer_from_row(row) -> CustomerInfo:
    return CustomerInfo(
        name=row["customer_name"],
        email=row["customer_email"],
        phone=row["customer_phone"],
    )


def cart_to_json(items: list[CartItem]) -> list[dict[str, Any]]:
    return [
        {
            "date": item.date.isoformat(),
            "fulfillment_type": item.fulfillment_type.value,
            "quantity": item.quantity,
            "line": line_to_json(item.line),
        }
        for item in items
    ]


def cart_from_json(data: list[dict[str, Any]]) -> list[CartItem]:
    return [
        CartItem(
            date=date.fromisoformat(entry["date"]),
            fulfillment_type=FulfillmentType(entry["fulfillment_type"]),
            quantity=entry.get("quantity", 1),
            line=line_from_json(entry["line"]),
        )
        for entry in data
    ]
