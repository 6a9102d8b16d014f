"""
Places Backend: Entity Store
==============================

What:  Persistence wrapper for User and Place records with explicit,
       handle-based transactions for multi-entity writes.
How:   Wraps one AsyncSession (one per request). Writes take an optional
       Transaction handle; without one, each write commits on its own.
Who:   Built per request by `get_entity_store`; consumed by the services.

Transaction Model:
    async with store.transaction() as txn:
        await store.save(place, txn)
        await store.save(user, txn)

    - The handle is created by `transaction()` and passed into every write
    - Clean exit commits; any exception rolls back and re-raises, so a
      failure in the second write leaves the first uncommitted
    - A handle is usable only while its block is open and only with the
      store that created it (TransactionStateError otherwise)

Concurrency:
    Read-modify-write of `User.places` happens inside a transaction after
    `find_user(..., for_update=True)`. The row lock serializes writers on
    PostgreSQL; `User.version_id` turns any remaining stale write into
    StaleDataError, which rolls the transaction back.

Errors:
    The store raises SQLAlchemy exceptions unchanged. Services translate
    them into DatabaseError with the operation name.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Iterable, List, Optional, Tuple, Union

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from app.database import Base, get_db_session
from app.exceptions import TransactionStateError
from app.models.place import Place
from app.models.user import User

logger = logging.getLogger(__name__)


class Transaction:
    """
    Handle for one atomic unit of work on an EntityStore.

    States: active → committed | rolled_back. Only active handles are
    accepted by EntityStore.save/delete.
    """

    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"

    def __init__(self, store: "EntityStore"):
        self.store = store
        self.id = uuid.uuid4().hex[:8]
        self.state = self.ACTIVE
        self.writes = 0

    @property
    def active(self) -> bool:
        return self.state == self.ACTIVE

    def __repr__(self) -> str:
        return f"<Transaction(id={self.id}, state={self.state}, writes={self.writes})>"


class EntityStore:
    """
    Reads and writes User and Place entities through one session.

    Read methods return None for missing rows. `find_user_with_places`
    resolves the user's ordered back-reference list into full Place rows.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self._current: Optional[Transaction] = None

    # ── Reads ─────────────────────────────────────────────────────────────

    async def find_place(self, place_id: uuid.UUID) -> Optional[Place]:
        return await self.session.get(Place, place_id)

    async def find_place_with_creator(self, place_id: uuid.UUID) -> Optional[Place]:
        """Fetch a place with its `owner` (creator User) joined in one query."""
        result = await self.session.execute(
            select(Place)
            .options(joinedload(Place.owner))
            .where(Place.id == place_id)
        )
        return result.scalar_one_or_none()

    async def find_user(
        self, user_id: uuid.UUID, for_update: bool = False
    ) -> Optional[User]:
        """
        Fetch a user by id.

        With `for_update`, the row is re-read from the database even if the
        session already holds it, and locked (SELECT ... FOR UPDATE) until
        the surrounding transaction ends. Backends without row locks
        (SQLite) rely on the `version_id` check instead.
        """
        if for_update:
            return await self.session.get(
                User, user_id, with_for_update=True, populate_existing=True
            )
        return await self.session.get(User, user_id)

    async def find_user_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def list_users(self) -> List[User]:
        result = await self.session.execute(select(User).order_by(User.created_at))
        return list(result.scalars().all())

    async def find_user_with_places(
        self, user_id: uuid.UUID
    ) -> Optional[Tuple[User, List[Place]]]:
        """
        Fetch a user and populate its `places` back-references.

        Returns:
            None if the user does not exist, otherwise the user and its
            places in back-reference order. Ids with no matching row are
            skipped and logged; they indicate a broken invariant.
        """
        user = await self.find_user(user_id)
        if user is None:
            return None

        place_ids = _to_uuids(user.places or [])
        if not place_ids:
            return user, []

        result = await self.session.execute(
            select(Place).where(Place.id.in_(place_ids))
        )
        by_id = {place.id: place for place in result.scalars().all()}

        places = []
        for place_id in place_ids:
            place = by_id.get(place_id)
            if place is None:
                logger.warning(
                    "User %s references missing place %s", user.id, place_id
                )
                continue
            places.append(place)
        return user, places

    # ── Writes ────────────────────────────────────────────────────────────

    async def save(self, entity: Base, txn: Optional[Transaction] = None) -> Base:
        """
        Insert or update an entity.

        With `txn`, the write is flushed into the open transaction and
        becomes visible to others only when the transaction commits.
        Without it, the write is committed immediately.
        """
        self._check_handle(txn)
        self.session.add(entity)
        await self.session.flush()
        if txn is None:
            await self.session.commit()
        else:
            txn.writes += 1
        return entity

    async def delete(self, entity: Base, txn: Optional[Transaction] = None) -> None:
        """Delete an entity; same commit rules as `save`."""
        self._check_handle(txn)
        await self.session.delete(entity)
        await self.session.flush()
        if txn is None:
            await self.session.commit()
        else:
            txn.writes += 1

    # ── Transactions ──────────────────────────────────────────────────────

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[Transaction, None]:
        """
        Open an atomic unit of work and yield its handle.

        Commits when the block exits normally. Any exception (including a
        failed commit) rolls back every write made with the handle and is
        re-raised. Nested transactions on one store are not supported.
        """
        if self._current is not None:
            raise TransactionStateError(
                message="A transaction is already open on this store",
                context={"transaction_id": self._current.id},
            )

        txn = Transaction(self)
        self._current = txn
        logger.debug("Transaction %s started", txn.id)
        try:
            yield txn
            await self.session.commit()
            txn.state = Transaction.COMMITTED
            logger.debug("Transaction %s committed (%d writes)", txn.id, txn.writes)
        except BaseException:
            await self.session.rollback()
            txn.state = Transaction.ROLLED_BACK
            logger.debug("Transaction %s rolled back", txn.id)
            raise
        finally:
            self._current = None

    def _check_handle(self, txn: Optional[Transaction]) -> None:
        if txn is None:
            if self._current is not None:
                # A bare write inside an open block would commit half of it
                raise TransactionStateError(
                    message="Write without handle while a transaction is open",
                    context={"transaction_id": self._current.id},
                )
            return
        if txn.store is not self:
            raise TransactionStateError(
                message="Transaction handle belongs to a different store",
                context={"transaction_id": txn.id},
            )
        if not txn.active:
            raise TransactionStateError(
                message=f"Transaction handle is {txn.state}",
                context={"transaction_id": txn.id},
            )


def _to_uuids(values: Iterable[Union[str, uuid.UUID]]) -> List[uuid.UUID]:
    ids = []
    for value in values:
        try:
            ids.append(value if isinstance(value, uuid.UUID) else uuid.UUID(str(value)))
        except ValueError:
            logger.warning("Ignoring malformed place id in back-reference: %r", value)
    return ids


async def get_entity_store(
    db: AsyncSession = Depends(get_db_session),
) -> EntityStore:
    """FastAPI dependency: an EntityStore over the request's session."""
    return EntityStore(db)
