"""Initial database schema.

Revision ID: 001_initial
Revises: None
Create Date: 2024-05-02

Creates the tables for the CourtEase booking core:
- Profiles (mirrored from the auth provider)
- Venues and courts
- Bookings with their payment linkage
"""

from typing import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all database tables."""

    # ==================== PROFILES ====================
    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("full_name", sa.String(200)),
        sa.Column("email", sa.String(255), index=True),
        sa.Column("phone", sa.String(30)),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ==================== VENUES ====================
    op.create_table(
        "venues",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("owner_profile_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id"), index=True),
        sa.Column("slug", sa.String(120), unique=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("city", sa.String(100)),
        sa.Column("address", sa.Text),
        sa.Column("venue_status", sa.String(20), server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "courts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("venue_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("venues.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("slug", sa.String(120), unique=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("sport", sa.String(30), nullable=False),
        sa.Column("price_per_hour", sa.Integer, nullable=False),
        sa.Column("is_active", sa.Boolean, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ==================== BOOKINGS ====================
    op.create_table(
        "bookings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("court_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("courts.id"), nullable=False, index=True),
        sa.Column("profile_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False, index=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payment_status", sa.String(30), nullable=False, server_default="pending"),
        sa.Column("payment_reference", sa.String(64), unique=True, nullable=False),
        sa.Column("payment_token", sa.String(255)),
        sa.Column("payment_redirect_url", sa.Text),
        sa.Column("payment_expired_at", sa.DateTime(timezone=True), index=True),
        sa.Column("payment_completed_at", sa.DateTime(timezone=True)),
        sa.Column("price_total", sa.Integer, nullable=False),
        sa.Column("notes", sa.Text),
        sa.Column("checked_in_at", sa.DateTime(timezone=True)),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("cancelled_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("end_time > start_time", name="ck_bookings_time_window"),
    )
    op.create_index(
        "ix_bookings_status_pair_created",
        "bookings",
        ["status", "payment_status", "created_at"],
    )
    op.create_index(
        "ix_bookings_court_window",
        "bookings",
        ["court_id", "start_time", "end_time"],
    )


def downgrade() -> None:
    """Drop all database tables in reverse order."""
    op.drop_index("ix_bookings_court_window", table_name="bookings")
    op.drop_index("ix_bookings_status_pair_created", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("courts")
    op.drop_table("venues")
    op.drop_table("profiles")
