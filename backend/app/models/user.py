"""
Places Backend: User SQLAlchemy Model
=======================================

What:  ORM model representing the `users` table.
Who:   Used by the entity store for lookups and back-reference updates,
       and by Alembic for schema management.

Table Design:
    - UUID primary key, generated in Python so SQLite and PostgreSQL agree
    - email: unique index; duplicate sign-ups are rejected in the service
      layer and by the constraint
    - password: PBKDF2 "salt$hash" string, never the plain password
    - places: ordered JSON array of place id strings (the back-reference).
      The database does not check these ids; the place service keeps them
      in step with `places.creator` inside one transaction.
    - version_id: optimistic lock counter for concurrent updates of `places`
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import JSON, DateTime, Integer, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

# JSONB on PostgreSQL, plain JSON text elsewhere
PlaceIdList = MutableList.as_mutable(JSON().with_variant(JSONB(), "postgresql"))


class User(Base):
    """
    A registered user and the ids of the places they created.

    Invariant (kept by PlaceService, not the database):
        every id in `places` names an existing Place whose creator is this user,
        and every such Place appears in `places` exactly once.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier",
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        index=True,
        comment="Login email, unique across users",
    )

    password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="PBKDF2-HMAC-SHA256 salt$hash",
    )

    image: Mapped[str] = mapped_column(String(1024), nullable=False)

    places: Mapped[List[str]] = mapped_column(
        PlaceIdList,
        nullable=False,
        default=list,
        comment="Ordered ids of places created by this user",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Bumped on every UPDATE; an UPDATE from a stale read raises StaleDataError
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', places={len(self.places or [])})>"
