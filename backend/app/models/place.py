"""
Places Backend: Place SQLAlchemy Model
========================================

What:  ORM model representing the `places` table.
Who:   Used by the entity store and PlaceService; read by Alembic.

Table Design:
    - creator: foreign key to users.id. The matching back-reference lives in
      users.places and is only written together with this row.
    - location: {"lat": float, "lng": float} resolved from `address` by the
      geocoder at creation time; never changed by updates.
    - Index on creator for "places of this user" checks and cleanups.
"""

import uuid
from datetime import datetime, timezone
from typing import Dict

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.user import User


class Place(Base):
    """
    A place created by exactly one user.

    Lifecycle:
        1. Inserted in the same transaction that appends its id to the
           creator's `places` list
        2. title/description may be updated on their own
        3. Deleted in the same transaction that removes its id from the
           creator's `places` list
    """

    __tablename__ = "places"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier",
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False)

    address: Mapped[str] = mapped_column(String(500), nullable=False)

    location: Mapped[Dict[str, float]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        comment="Coordinates resolved from the address: {lat, lng}",
    )

    image: Mapped[str] = mapped_column(String(1024), nullable=False)

    creator: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        comment="User who created the place",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Joined only on request (EntityStore.find_place_with_creator);
    # lazy="raise" turns an accidental async lazy load into a clear error
    owner: Mapped[User] = relationship(User, lazy="raise")

    __table_args__ = (
        Index("idx_places_creator", "creator"),
    )

    def __repr__(self) -> str:
        return f"<Place(id={self.id}, title='{self.title}', creator={self.creator})>"
