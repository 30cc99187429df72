"""
RentMatch: Property listing model (owned by an operator).
"""

import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Property(Base):
    __tablename__ = "properties"

    id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    operator_id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    postcode: Mapped[str | None] = mapped_column(String(16), index=True, nullable=True)
    price: Mapped[float | None] = mapped_column(
        Numeric(10, 2), nullable=True, comment="Monthly rent"
    )
    bedrooms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    property_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    furnishing: Mapped[str | None] = mapped_column(String(50), nullable=True)
    let_duration: Mapped[str | None] = mapped_column(String(50), nullable=True)
    lifestyle_features: Mapped[list | None] = mapped_column(
        JSONB, nullable=True, comment="Array of lifestyle feature tags"
    )
    available_from: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default="available", server_default="available",
        comment="available / let / archived",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )

    # ── Relationships ──────────────────────────────────────────────
    operator: Mapped["User"] = relationship("User", back_populates="properties")

    def __repr__(self) -> str:
        return f"<Property {self.title!r} price={self.price} id={self.id}>"
