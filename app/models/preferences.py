"""
RentMatch: Tenant rental preferences (one record per tenant).

Every column is nullable: the record is created by the first wizard step and
filled in incrementally.  ``designer_furniture`` and ``smoker`` are tri-state
(NULL = not answered).
"""

import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Preferences(Base):
    __tablename__ = "preferences"

    id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    # ── Essential ──────────────────────────────────────────────────
    primary_postcode: Mapped[str | None] = mapped_column(String(16), nullable=True)
    min_price: Mapped[float | None] = mapped_column(Numeric(10, 2), nullable=True)
    max_price: Mapped[float | None] = mapped_column(Numeric(10, 2), nullable=True)
    min_bedrooms: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # ── Important ──────────────────────────────────────────────────
    furnishing: Mapped[str | None] = mapped_column(String, nullable=True)
    let_duration: Mapped[str | None] = mapped_column(String, nullable=True)
    designer_furniture: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    house_shares: Mapped[str | None] = mapped_column(String, nullable=True)

    # ── Useful ─────────────────────────────────────────────────────
    convenience_features: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    ideal_living_environment: Mapped[str | None] = mapped_column(String, nullable=True)
    pets: Mapped[str | None] = mapped_column(String, nullable=True)
    smoker: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    # ── Optional ───────────────────────────────────────────────────
    move_in_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    max_bedrooms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    min_bathrooms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_bathrooms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    hobbies: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    additional_info: Mapped[str | None] = mapped_column(Text, nullable=True)
    date_property_added: Mapped[str | None] = mapped_column(String, nullable=True)

    # ── Matching-only (not part of completeness) ───────────────────
    property_type: Mapped[list | None] = mapped_column(
        JSONB, nullable=True, comment="Array of preferred property types"
    )
    lifestyle_features: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    social_features: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    work_features: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    pet_friendly_features: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    luxury_features: Mapped[list | None] = mapped_column(JSONB, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )

    # ── Relationships ──────────────────────────────────────────────
    user: Mapped["User"] = relationship("User", back_populates="preferences")

    @property
    def version(self) -> str:
        """Changes whenever the record is saved; used as a cache key part."""
        stamp = self.updated_at or self.created_at
        return stamp.isoformat() if stamp is not None else "0"

    def __repr__(self) -> str:
        return f"<Preferences user={self.user_id} postcode={self.primary_postcode!r}>"
