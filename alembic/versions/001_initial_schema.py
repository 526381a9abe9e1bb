"""Initial schema: items, events, reservations, allocations, event requests, audit logs.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Items (inventory directory; read-only for the reservation core)
    op.create_table(
        "items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("unique_identifier", sa.String(100), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'in_storage'")),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("purchase_cost", sa.Numeric(12, 2), nullable=True),
        sa.Column("purchase_date", sa.Date(), nullable=True),
        sa.Column("region", sa.String(100), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('in_storage', 'in_transit', 'in_use', 'in_repair', 'retired')",
            name="check_item_status",
        ),
    )
    op.create_index("ix_items_id", "items", ["id"])
    op.create_index("ix_items_unique_identifier", "items", ["unique_identifier"], unique=True)

    # Events
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(50), nullable=False, server_default=sa.text("'Planning'")),
        *_timestamps(),
        sa.CheckConstraint("start_date <= end_date", name="check_event_range"),
    )
    op.create_index("ix_events_id", "events", ["id"])
    # The overlap query filters on start_date <= :end AND end_date >= :start
    op.create_index("ix_events_range", "events", ["start_date", "end_date"])

    # Reservations. event_id has no FK: deleting an event does not cascade.
    op.create_table(
        "reservations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("item_id", sa.Integer(), sa.ForeignKey("items.id"), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("created_by_user_id", sa.Integer(), nullable=False),
        sa.Column("assigned_by_user_id", sa.Integer(), nullable=True),
        sa.Column("condition_note", sa.String(1000), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_reservations_id", "reservations", ["id"])
    op.create_index("ix_reservations_item_id", "reservations", ["item_id"])
    op.create_index("ix_reservations_event_id", "reservations", ["event_id"])
    op.create_index("ix_reservations_item_event", "reservations", ["item_id", "event_id"])

    # Allocations
    op.create_table(
        "allocations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("item_id", sa.Integer(), sa.ForeignKey("items.id"), nullable=False),
        sa.Column("pickup_location", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'Allocated'")),
        sa.Column("allocated_by_user_id", sa.Integer(), nullable=True),
        sa.Column("status_changed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("picked_up_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("returned_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('Allocated', 'Picked Up', 'Returned')",
            name="check_allocation_status",
        ),
    )
    op.create_index("ix_allocations_id", "allocations", ["id"])
    op.create_index("ix_allocations_event_id", "allocations", ["event_id"])
    op.create_index("ix_allocations_item_id", "allocations", ["item_id"])
    # At most one active allocation per item and event; returned ones are history
    op.create_index(
        "uq_active_allocation_item_event",
        "allocations",
        ["item_id", "event_id"],
        unique=True,
        postgresql_where=sa.text("status <> 'Returned'"),
        sqlite_where=sa.text("status <> 'Returned'"),
    )

    # Event requests
    op.create_table(
        "event_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("requested_by_user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("requested_gear", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'Pending'")),
        sa.Column("decided_by_user_id", sa.Integer(), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("event_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("start_date <= end_date", name="check_event_request_range"),
        sa.CheckConstraint(
            "status IN ('Pending', 'Approved', 'Denied')",
            name="check_event_request_status",
        ),
    )
    op.create_index("ix_event_requests_id", "event_requests", ["id"])
    op.create_index("ix_event_requests_requested_by_user_id", "event_requests", ["requested_by_user_id"])
    op.create_index("ix_event_requests_status", "event_requests", ["status"])

    # Audit trail
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_audit_logs_id", "audit_logs", ["id"])
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("event_requests")
    op.drop_table("allocations")
    op.drop_table("reservations")
    op.drop_table("events")
    op.drop_table("items")
