"""Initial schema: users, preferences, properties.

Revision ID: 001_initial
Revises:
Create Date: 2025-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── 1. users ────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String, unique=True, index=True, nullable=False),
        sa.Column("full_name", sa.String, nullable=True),
        sa.Column(
            "role",
            sa.String,
            nullable=False,
            server_default="tenant",
            comment="tenant / operator / admin",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "is_active",
            sa.Boolean,
            server_default="true",
            nullable=False,
        ),
    )

    # ── 2. preferences (one per tenant) ─────────────────────────────
    op.create_table(
        "preferences",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            unique=True,
            nullable=False,
        ),
        # Essential
        sa.Column("primary_postcode", sa.String(16), nullable=True),
        sa.Column("min_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("max_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("min_bedrooms", sa.Integer, nullable=True),
        # Important
        sa.Column("furnishing", sa.String, nullable=True),
        sa.Column("let_duration", sa.String, nullable=True),
        sa.Column("designer_furniture", sa.Boolean, nullable=True),
        sa.Column("house_shares", sa.String, nullable=True),
        # Useful
        sa.Column("convenience_features", postgresql.JSONB, nullable=True),
        sa.Column("ideal_living_environment", sa.String, nullable=True),
        sa.Column("pets", sa.String, nullable=True),
        sa.Column("smoker", sa.Boolean, nullable=True),
        # Optional
        sa.Column("move_in_date", sa.Date, nullable=True),
        sa.Column("max_bedrooms", sa.Integer, nullable=True),
        sa.Column("min_bathrooms", sa.Integer, nullable=True),
        sa.Column("max_bathrooms", sa.Integer, nullable=True),
        sa.Column("hobbies", postgresql.JSONB, nullable=True),
        sa.Column("additional_info", sa.Text, nullable=True),
        sa.Column("date_property_added", sa.String, nullable=True),
        # Matching-only
        sa.Column(
            "property_type",
            postgresql.JSONB,
            nullable=True,
            comment="Array of preferred property types",
        ),
        sa.Column("lifestyle_features", postgresql.JSONB, nullable=True),
        sa.Column("social_features", postgresql.JSONB, nullable=True),
        sa.Column("work_features", postgresql.JSONB, nullable=True),
        sa.Column("pet_friendly_features", postgresql.JSONB, nullable=True),
        sa.Column("luxury_features", postgresql.JSONB, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    # ── 3. properties ───────────────────────────────────────────────
    op.create_table(
        "properties",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "operator_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("postcode", sa.String(16), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=True, comment="Monthly rent"),
        sa.Column("bedrooms", sa.Integer, nullable=True),
        sa.Column("bathrooms", sa.Integer, nullable=True),
        sa.Column("property_type", sa.String(50), nullable=True),
        sa.Column("furnishing", sa.String(50), nullable=True),
        sa.Column("let_duration", sa.String(50), nullable=True),
        sa.Column(
            "lifestyle_features",
            postgresql.JSONB,
            nullable=True,
            comment="Array of lifestyle feature tags",
        ),
        sa.Column("available_from", sa.Date, nullable=True),
        sa.Column(
            "status",
            sa.String,
            server_default="available",
            nullable=False,
            comment="available / let / archived",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_properties_postcode", "properties", ["postcode"])
    # Catalog query: available listings, newest first
    op.create_index(
        "ix_properties_status_created",
        "properties",
        ["status", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_properties_status_created", table_name="properties")
    op.drop_index("ix_properties_postcode", table_name="properties")
    op.drop_table("properties")
    op.drop_table("preferences")
    op.drop_table("users")
