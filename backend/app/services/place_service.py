"""
Places Backend: Place Service (Business Logic)
================================================

What:  The five place operations and the protocol that keeps each place
       and its creator's `places` list in step.
How:   Reads and writes go through an EntityStore; create and delete run
       both of their writes inside one store transaction.
Who:   Called by the places router; calls the entity store and geocoder.

Consistency Protocol:
    create_place:
        look up creator ─▶ geocode address ─▶ ┌ txn ─────────────────────────┐
                                               │ re-read creator FOR UPDATE    │
                                               │ save Place                    │
                                               │ append id to User.places      │
                                               └ commit (or roll back) ────────┘
    delete_place:
        look up place + creator ─▶ ┌ txn ──────────────────────────────┐
                                   │ re-read creator FOR UPDATE         │
                                   │ remove id from User.places         │
                                   │ delete Place                       │
                                   └ commit (or roll back) ─────────────┘

    Every failure inside the transaction leaves both collections as they
    were and surfaces as DatabaseError. update_place touches neither the
    creator nor the back-reference and is a single write.

    Concurrent requests for one creator: the row lock serializes them on
    PostgreSQL. Elsewhere the User.version_id check rejects the second
    write with StaleDataError, and the whole transaction is re-run against
    the fresh list (settings.write_conflict_attempts times at most).

Error Handling Strategy:
    Store exceptions are logged with the operation name and cause, then
    translated into DatabaseError. Missing records become NotFoundError;
    an unknown creator becomes UnprocessableEntityError.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy.orm.exc import StaleDataError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from app.config import settings
from app.exceptions import (
    DatabaseError,
    NotFoundError,
    UnprocessableEntityError,
)
from app.models.place import Place
from app.schemas.place import PlaceResponse
from app.services.geocoding_base import Geocoder
from app.services.geocoding_service import geocoder as default_geocoder
from app.store import EntityStore

logger = logging.getLogger(__name__)

RETRIEVE_FAILED = "Retrieving place unsuccessful. Please try again later."
CREATE_FAILED = "Creating place unsuccessful. Please try again later."
UPDATE_FAILED = "Updating place unsuccessful. Please try again later."
DELETE_FAILED = "Deleting place unsuccessful. Please try again later."


def parse_id(value: str) -> Optional[uuid.UUID]:
    """Parse an id from a path or body; None when it is not a UUID."""
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class PlaceService:
    """
    Business logic layer for place operations.

    Responsibilities:
        - get_place(): single place by id
        - get_places_by_user(): a user's places, back-reference order
        - create_place(): insert + link, atomically
        - update_place(): title/description only
        - delete_place(): unlink + delete, atomically

    Stateless apart from the geocoder; the store is passed per call.
    """

    def __init__(self, geocoder: Optional[Geocoder] = None):
        self._geocoder = geocoder

    @property
    def geocoder(self) -> Geocoder:
        return self._geocoder or default_geocoder

    async def get_place(self, store: EntityStore, place_id: str) -> PlaceResponse:
        """
        Retrieve a single place by id.

        Raises:
            NotFoundError: No place has this id (→ 404)
            DatabaseError: The lookup failed (→ 500)
        """
        logger.info("get_place: place_id=%s", place_id)
        pid = parse_id(place_id)
        if pid is None:
            raise NotFoundError(resource="place", resource_id=place_id)

        try:
            place = await store.find_place(pid)
        except Exception as e:
            raise _store_failure("get_place", e, RETRIEVE_FAILED, place_id=place_id)

        if place is None:
            raise NotFoundError(resource="place", resource_id=place_id)
        return PlaceResponse.model_validate(place)

    async def get_places_by_user(
        self, store: EntityStore, user_id: str
    ) -> List[PlaceResponse]:
        """
        List a user's places by following its `places` back-references.

        A missing user and a user without places both raise NotFoundError;
        `context["reason"]` tells them apart for logs.

        Raises:
            NotFoundError: Unknown user, or no places (→ 404)
            DatabaseError: The lookup failed (→ 500)
        """
        logger.info("get_places_by_user: user_id=%s", user_id)
        uid = parse_id(user_id)

        found = None
        if uid is not None:
            try:
                found = await store.find_user_with_places(uid)
            except Exception as e:
                raise _store_failure(
                    "get_places_by_user", e, RETRIEVE_FAILED, user_id=user_id
                )

        if found is None:
            raise NotFoundError(
                resource="user",
                resource_id=user_id,
                message=f"Could not find a user for the provided id '{user_id}'.",
                context={"reason": "user_not_found"},
            )

        _, places = found
        if not places:
            raise NotFoundError(
                resource="place",
                message=f"Could not find places for the provided user id '{user_id}'.",
                context={"reason": "no_places", "user_id": user_id},
            )
        return [PlaceResponse.model_validate(place) for place in places]

    async def create_place(
        self,
        store: EntityStore,
        title: str,
        description: str,
        address: str,
        creator: str,
    ) -> PlaceResponse:
        """
        Create a place and link it into its creator's `places` list.

        Workflow Steps:
            1. Look up the creator (UnprocessableEntityError if missing)
            2. Resolve the address (GeocodeError, before any write)
            3. Build the Place with the default image
            4. In one transaction: save Place, append its id to the creator

        Raises:
            UnprocessableEntityError: Creator id does not exist (→ 422)
            GeocodeError: Address could not be resolved (→ 422)
            DatabaseError: Lookup or either write failed; nothing persisted (→ 500)
        """
        logger.info("create_place: creator=%s title=%r", creator, title)

        creator_id = parse_id(creator)
        user = None
        if creator_id is not None:
            try:
                user = await store.find_user(creator_id)
            except Exception as e:
                raise _store_failure("create_place", e, CREATE_FAILED, creator=creator)

        if user is None:
            raise UnprocessableEntityError(
                message="Provided Creator ID does not exist",
                context={"creator": creator},
            )

        location = await self.geocoder.resolve(address)

        # Id assigned up front so the back-reference can be written in the
        # same transaction as the row, and stays the same across attempts
        place_id = uuid.uuid4()
        place = None
        try:
            async for attempt in _on_write_conflict("create_place"):
                with attempt:
                    async with store.transaction() as txn:
                        # Re-read under lock: the list may have changed since
                        # the existence check above
                        locked_user = await store.find_user(creator_id, for_update=True)
                        place = Place(
                            id=place_id,
                            title=title,
                            description=description,
                            address=address,
                            location=location.model_dump(),
                            image=settings.default_place_image,
                            creator=creator_id,
                        )
                        await store.save(place, txn)
                        locked_user.places.append(str(place_id))
                        await store.save(locked_user, txn)
        except Exception as e:
            raise _store_failure(
                "create_place", e, CREATE_FAILED, place_id=str(place_id), creator=creator
            )

        logger.info("Place %s created and linked to user %s", place_id, creator_id)
        return PlaceResponse.model_validate(place)

    async def update_place(
        self,
        store: EntityStore,
        place_id: str,
        title: str,
        description: str,
    ) -> PlaceResponse:
        """
        Overwrite a place's title and description.

        Single-entity write; creator, location and the back-reference are
        left alone.

        Raises:
            NotFoundError: No place has this id (→ 404)
            DatabaseError: Lookup or save failed (→ 500)
        """
        logger.info("update_place: place_id=%s", place_id)
        pid = parse_id(place_id)
        if pid is None:
            raise NotFoundError(resource="place", resource_id=place_id)

        try:
            place = await store.find_place(pid)
        except Exception as e:
            raise _store_failure("update_place", e, UPDATE_FAILED, place_id=place_id)

        if place is None:
            raise NotFoundError(resource="place", resource_id=place_id)

        place.title = title
        place.description = description
        try:
            await store.save(place)
        except Exception as e:
            raise _store_failure("update_place", e, UPDATE_FAILED, place_id=place_id)

        return PlaceResponse.model_validate(place)

    async def delete_place(self, store: EntityStore, place_id: str) -> None:
        """
        Unlink a place from its creator and delete it, atomically.

        Raises:
            NotFoundError: No place has this id (→ 404)
            DatabaseError: Lookup or either write failed; nothing changed (→ 500)
        """
        logger.info("delete_place: place_id=%s", place_id)
        pid = parse_id(place_id)
        if pid is None:
            raise NotFoundError(resource="place", resource_id=place_id)

        try:
            place = await store.find_place_with_creator(pid)
        except Exception as e:
            raise _store_failure("delete_place", e, DELETE_FAILED, place_id=place_id)

        if place is None:
            raise NotFoundError(resource="place", resource_id=place_id)

        place_ref = str(place.id)
        creator_id = place.creator
        try:
            async for attempt in _on_write_conflict("delete_place"):
                with attempt:
                    async with store.transaction() as txn:
                        owner = await store.find_user(creator_id, for_update=True)
                        owner.places = [ref for ref in owner.places if ref != place_ref]
                        await store.save(owner, txn)
                        await store.delete(place, txn)
        except Exception as e:
            raise _store_failure("delete_place", e, DELETE_FAILED, place_id=place_id)

        logger.info("Place %s deleted and unlinked", place_ref)


def _on_write_conflict(operation: str) -> AsyncRetrying:
    """
    Re-run a create/delete transaction when the creator row was changed by
    another request between our read and our write.

    Only StaleDataError (version_id mismatch) is retried; the last one is
    re-raised and becomes DatabaseError.
    """
    return AsyncRetrying(
        retry=retry_if_exception_type(StaleDataError),
        stop=stop_after_attempt(settings.write_conflict_attempts),
        before_sleep=lambda state: logger.warning(
            "[%s] Creator changed concurrently (attempt %d); retrying",
            operation,
            state.attempt_number,
        ),
        reraise=True,
    )


def _store_failure(operation: str, error: Exception, message: str, **context) -> DatabaseError:
    """Log a store error with its operation and cause; build the DatabaseError to raise."""
    logger.error(
        "[%s] Database interaction failed: %s: %s",
        operation,
        type(error).__name__,
        error,
        exc_info=True,
    )
    return DatabaseError(
        message=message,
        operation=operation,
        context={"error_type": type(error).__name__, **context},
    )


# ── Singleton Instance ────────────────────────────────────────────────────
place_service = PlaceService()
