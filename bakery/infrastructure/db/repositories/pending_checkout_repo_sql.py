from sqlalchemy import delete, insert, select

from bakery.application.interfaces.pending_checkout_repo import PendingCheckoutRepo
from bakery.domain.entities.pending_checkout import PendingCheckout
from bakery.domain.entities.reservation import FulfillmentType
from bakery.infrastructure.db.mappers import (
    cart_from_json,
    cart_to_json,
    customer_columns,
    customer_from_row,
)
from bakery.infrastructure.db.repository import SQLRepository
from bakery.infrastructure.db.tables import pending_checkouts


class PendingCheckoutRepoSQL(SQLRepository, PendingCheckoutRepo):
    async def save(self, checkout: PendingCheckout) -> None:
        await self._execute(
            insert(pending_checkouts).values(
                session_id=checkout.session_id,
                **customer_columns(checkout.customer),
                cart_items=cart_to_json(checkout.cart_items),
                fulfillment_type=checkout.fulfillment_type.value,
                delivery_fee=checkout.delivery_fee,
                checkout_metadata=checkout.metadata,
                created_at=checkout.created_at,
                expires_at=checkout.expires_at,
            ),
            "pending checkout insert",
        )

    async def get(self, session_id: str) -> PendingCheckout | None:
        result = await self._execute(
            select(pending_checkouts).where(pending_checkouts.c.session_id == session_id),
            "pending checkout lookup",
        )
        row = result.mappings().first()
        if not row:
            return None
        return PendingCheckout(
            session_id=row["session_id"],
            customer=customer_from_row(row),
            cart_items=cart_from_json(row["cart_items"]),
            fulfillment_type=FulfillmentType(row["fulfillment_type"]),
            delivery_fee=row["delivery_fee"],
            created_at=row["created_at"],
            expires_at=row["expires_at"],
            metadata=row["checkout_metadata"] or {},
        )

    async def delete(self, session_id: str) -> None:
        await self._execute(
            delete(pending_checkouts).where(pending_checkouts.c.session_id == session_id),
            "pending checkout delete",
        )
