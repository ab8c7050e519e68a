from datetime import date

from sqlalchemy import insert, select, update

from bakery.application.interfaces.quote_request_repo import QuoteRequestRepo
from bakery.domain.entities.quote_request import QuoteInfo, QuoteKind, QuoteRequest, QuoteStatus
from bakery.domain.entities.reservation import FulfillmentType
from bakery.infrastructure.db.mappers import (
    customer_columns,
    customer_from_row,
    line_from_json,
    line_to_json,
)
from bakery.infrastructure.db.repository import SQLRepository
from bakery.infrastructure.db.tables import quote_requests


def _row_to_request(row) -> QuoteRequest:
    quote = None
    if row["quote_session_id"]:
        quote = QuoteInfo(
            final_price=row["quote_final_price"],
            gateway_session_id=row["quote_session_id"],
            quoted_at=row["quoted_at"],
            payment_url=row["quote_payment_url"],
            message=row["quote_message"],
        )
    return QuoteRequest(
        id=row["id"],
        request_number=row["request_number"],
        kind=QuoteKind(row["kind"]),
        status=QuoteStatus(row["status"]),
        requested_date=row["requested_date"],
        original_requested_date=row["original_requested_date"],
        fulfillment_type=FulfillmentType(row["fulfillment_type"]),
        customer=customer_from_row(row),
        line=line_from_json(row["line_details"]),
        quote=quote,
        override_capacity=bool(row["override_capacity"]),
        order_number=row["order_number"],
        reservation_id=row["reservation_id"],
        converted_at=row["converted_at"],
        created_at=row["created_at"],
        extra=row["extra"] or {},
    )


def _values(request: QuoteRequest) -> dict:
    quote = request.quote
    return {
        "request_number": request.request_number,
        "kind": request.kind.value,
        "status": request.status.value,
        "requested_date": request.requested_date,
        "original_requested_date": request.original_requested_date,
        "fulfillment_type": request.fulfillment_type.value,
        **customer_columns(request.customer),
        "line_details": line_to_json(request.line),
        "quote_final_price": quote.final_price if quote else None,
        "quote_session_id": quote.gateway_session_id if quote else None,
        "quote_payment_url": quote.payment_url if quote else None,
        "quote_message": quote.message if quote else None,
        "quoted_at": quote.quoted_at if quote else None,
        "override_capacity": request.override_capacity,
        "order_number": request.order_number,
        "reservation_id": request.reservation_id,
        "converted_at": request.converted_at,
        "created_at": request.created_at,
        "extra": request.extra,
    }


class QuoteRequestRepoSQL(SQLRepository, QuoteRequestRepo):
    async def add(self, request: QuoteRequest) -> QuoteRequest:
        await self._execute(insert(quote_requests).values(id=request.id, **_values(request)), "quote request insert")
        return request

    async def update(self, request: QuoteRequest) -> None:
        values = _values(request)
        values.pop("created_at")
        await self._execute(
            update(quote_requests).where(quote_requests.c.id == request.id).values(values),
            "quote request update",
        )

    async def _first(self, stmt) -> QuoteRequest | None:
        result = await self._execute(stmt.limit(1), "quote request lookup")
        row = result.mappings().first()
        return _row_to_request(row) if row else None

    async def get(self, request_id: str) -> QuoteRequest | None:
        return await self._first(select(quote_requests).where(quote_requests.c.id == request_id))

    async def get_by_session_id(self, session_id: str) -> QuoteRequest | None:
        return await self._first(select(quote_requests).where(quote_requests.c.quote_session_id == session_id))

    async def list_quoted_on(
        self, on_date: date, exclude_request_id: str | None = None
    ) -> list[QuoteRequest]:
        stmt = select(quote_requests).where(
            quote_requests.c.requested_date == on_date,
            quote_requests.c.status == QuoteStatus.QUOTED.value,
        )
        if exclude_request_id:
            stmt = stmt.where(quote_requests.c.id != exclude_request_id)
        result = await self._execute(stmt.order_by(quote_requests.c.created_at), "quoted requests")
        return [_row_to_request(row) for row in result.mappings().all()]
