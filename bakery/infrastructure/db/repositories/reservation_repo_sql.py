from datetime import date

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import IntegrityError

from bakery.application.interfaces.reservation_repo import ReservationRepo
from bakery.domain.entities.reservation import (
    ACTIVE_STATUSES,
    FulfillmentType,
    PaymentInfo,
    PaymentStatus,
    Reservation,
    ReservationStatus,
)
from bakery.domain.errors import (
    CapacitySlotConflictError,
    PersistenceError,
    ReservationAlreadyExistsError,
)
from bakery.infrastructure.db.mappers import (
    customer_columns,
    customer_from_row,
    line_from_json,
    line_to_json,
)
from bakery.infrastructure.db.repository import SQLRepository
from bakery.infrastructure.db.tables import (
    CAPACITY_SLOT_CONSTRAINT,
    SESSION_LINE_CONSTRAINT,
    order_sequence,
    reservations,
)

ACTIVE_VALUES = [s.value for s in ACTIVE_STATUSES]


def _row_to_reservation(row) -> Reservation:
    payment = None
    if row["payment_session_id"]:
        payment = PaymentInfo(
            gateway_session_id=row["payment_session_id"],
            gateway_payment_intent_id=row["payment_intent_id"],
            amount_paid=row["amount_paid"],
            payment_status=PaymentStatus(row["payment_status"] or PaymentStatus.PAID.value),
        )
    return Reservation(
        id=row["id"],
        order_number=row["order_number"],
        date=row["date"],
        fulfillment_type=FulfillmentType(row["fulfillment_type"]),
        status=ReservationStatus(row["status"]),
        customer=customer_from_row(row),
        line=line_from_json(row["line_details"]),
        payment=payment,
        source_request_id=row["source_request_id"],
        line_index=row["line_index"],
        slot_index=row["slot_index"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        forfeited_at=row["forfeited_at"],
    )


def _values(reservation: Reservation) -> dict:
    payment = reservation.payment
    return {
        "order_number": reservation.order_number,
        "date": reservation.date,
        "fulfillment_type": reservation.fulfillment_type.value,
        "status": reservation.status.value,
        **customer_columns(reservation.customer),
        "line_details": line_to_json(reservation.line),
        "payment_session_id": payment.gateway_session_id if payment else None,
        "payment_intent_id": payment.gateway_payment_intent_id if payment else None,
        "amount_paid": payment.amount_paid if payment else None,
        "payment_status": payment.payment_status.value if payment else None,
        "source_request_id": reservation.source_request_id,
        "line_index": reservation.line_index,
        "slot_index": reservation.slot_index,
        "created_at": reservation.created_at,
        "updated_at": reservation.updated_at,
        "forfeited_at": reservation.forfeited_at,
    }


class ReservationRepoSQL(SQLRepository, ReservationRepo):
    def _translate_integrity(self, exc: IntegrityError, reservation: Reservation) -> Exception:
        message = str(exc.orig)
        if CAPACITY_SLOT_CONSTRAINT in message or "slot_index" in message:
            return CapacitySlotConflictError(reservation.date.isoformat(), reservation.slot_index)
        if SESSION_LINE_CONSTRAINT in message or "payment_session_id" in message:
            return ReservationAlreadyExistsError(reservation.gateway_session_id, reservation.line_index)
        return PersistenceError("reservation write", "integrity violation")

    async def next_order_sequence(self) -> int:
        result = await self._execute(
            insert(order_sequence).values(created_at=func.now()), "order sequence"
        )
        return result.inserted_primary_key[0]

    async def add(self, reservation: Reservation) -> Reservation:
        try:
            result = await self._execute(insert(reservations).values(_values(reservation)), "reservation insert")
        except IntegrityError as exc:
            raise self._translate_integrity(exc, reservation) from exc
        reservation.id = result.inserted_primary_key[0]
        return reservation

    async def update(self, reservation: Reservation) -> None:
        values = _values(reservation)
        values.pop("order_number")
        values.pop("created_at")
        stmt = update(reservations).where(reservations.c.id == reservation.id).values(values)
        try:
            await self._execute(stmt, "reservation update")
        except IntegrityError as exc:
            raise self._translate_integrity(exc, reservation) from exc

    async def _fetch(self, stmt, operation: str) -> list[Reservation]:
        result = await self._execute(stmt, operation)
        return [_row_to_reservation(row) for row in result.mappings().all()]

    async def get_by_id(self, reservation_id: int) -> Reservation | None:
        rows = await self._fetch(
            select(reservations).where(reservations.c.id == reservation_id).limit(1), "reservation lookup"
        )
        return rows[0] if rows else None

    async def get_by_order_number(self, order_number: str) -> Reservation | None:
        rows = await self._fetch(
            select(reservations).where(reservations.c.order_number == order_number).limit(1),
            "reservation lookup",
        )
        return rows[0] if rows else None

    async def find_by_session_id(self, session_id: str) -> list[Reservation]:
        return await self._fetch(
            select(reservations)
            .where(reservations.c.payment_session_id == session_id)
            .order_by(reservations.c.line_index),
            "reservation lookup by session",
        )

    async def find_by_source_request(self, request_id: str) -> list[Reservation]:
        return await self._fetch(
            select(reservations)
            .where(reservations.c.source_request_id == request_id)
            .order_by(reservations.c.id),
            "reservation lookup by request",
        )

    def _active_count(self, exclude_request_id: str | None):
        stmt = select(func.count()).select_from(reservations).where(reservations.c.status.in_(ACTIVE_VALUES))
        if exclude_request_id:
            stmt = stmt.where(
                (reservations.c.source_request_id.is_(None))
                | (reservations.c.source_request_id != exclude_request_id)
            )
        return stmt

    async def count_active(self, on_date: date, exclude_request_id: str | None = None) -> int:
        stmt = self._active_count(exclude_request_id).where(reservations.c.date == on_date)
        result = await self._execute(stmt, "capacity count")
        return result.scalar_one()

    async def count_active_between(
        self, start: date, end: date, exclude_request_id: str | None = None
    ) -> int:
        stmt = self._active_count(exclude_request_id).where(reservations.c.date.between(start, end))
        result = await self._execute(stmt, "weekly capacity count")
        return result.scalar_one()

    async def taken_slots(self, on_date: date) -> set[int]:
        stmt = select(reservations.c.slot_index).where(
            reservations.c.date == on_date,
            reservations.c.slot_index.is_not(None),
        )
        result = await self._execute(stmt, "capacity slots")
        return set(result.scalars().all())
