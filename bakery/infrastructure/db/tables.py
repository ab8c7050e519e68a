from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

CAPACITY_SLOT_CONSTRAINT = "uq_reservations_capacity_slot"
SESSION_LINE_CONSTRAINT = "uq_reservations_session_line"

reservations = Table(
    "reservations",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("order_number", String(32), nullable=False, unique=True),
    Column("date", Date, nullable=False),
    Column("fulfillment_type", String(16), nullable=False),
    Column("status", String(16), nullable=False),
    Column("customer_name", String(255), nullable=False),
    Column("customer_email", String(255), nullable=False),
    Column("customer_phone", String(50)),
    Column("line_details", JSON, nullable=False),
    Column("payment_session_id", String(255)),
    Column("payment_intent_id", String(255)),
    Column("amount_paid", Numeric(12, 2)),
    Column("payment_status", String(16)),
    Column("source_request_id", String(64)),
    Column("line_index", Integer, nullable=False, default=0),
    # NULL once the order leaves pending/confirmed, which frees the slot
    Column("slot_index", Integer),
    Column("created_at", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
    Column("forfeited_at", DateTime(timezone=True)),
    UniqueConstraint("date", "slot_index", name=CAPACITY_SLOT_CONSTRAINT),
    UniqueConstraint("payment_session_id", "line_index", name=SESSION_LINE_CONSTRAINT),
    Index("ix_reservations_date_status", "date", "status"),
    Index("ix_reservations_source_request_id", "source_request_id"),
)

order_sequence = Table(
    "order_sequence",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("created_at", DateTime(timezone=True)),
)

quote_requests = Table(
    "quote_requests",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("request_number", String(32), nullable=False, unique=True),
    Column("kind", String(16), nullable=False),
    Column("status", String(16), nullable=False),
    Column("requested_date", Date, nullable=False),
    Column("original_requested_date", Date),
    Column("fulfillment_type", String(16), nullable=False),
    Column("customer_name", String(255), nullable=False),
    Column("customer_email", String(255), nullable=False),
    Column("customer_phone", String(50)),
    Column("line_details", JSON, nullable=False),
    Column("quote_final_price", Numeric(12, 2)),
    Column("quote_session_id", String(255), index=True),
    Column("quote_payment_url", String(1024)),
    Column("quote_message", Text),
    Column("quoted_at", DateTime(timezone=True)),
    Column("override_capacity", Boolean, nullable=False, default=False),
    Column("order_number", String(32)),
    Column("reservation_id", Integer),
    Column("converted_at", DateTime(timezone=True)),
    Column("created_at", DateTime(timezone=True)),
    Column("extra", JSON),
    Index("ix_quote_requests_date_status", "requested_date", "status"),
)

calendar_overrides = Table(
    "calendar_overrides",
    metadata,
    Column("date", Date, primary_key=True),
    Column("status", String(16), nullable=False),
    Column("capacity", Integer),
    Column("note", String(500)),
    Column("updated_at", DateTime(timezone=True)),
)

pending_checkouts = Table(
    "pending_checkouts",
    metadata,
    Column("session_id", String(255), primary_key=True),
    Column("customer_name", String(255), nullable=False),
    Column("customer_email", String(255), nullable=False),
    Column("customer_phone", String(50)),
    Column("cart_items", JSON, nullable=False),
    Column("fulfillment_type", String(16), nullable=False),
    Column("delivery_fee", Numeric(12, 2), nullable=False, default=0),
    Column("checkout_metadata", JSON),
    Column("created_at", DateTime(timezone=True)),
    Column("expires_at", DateTime(timezone=True)),
)
