"""
Places Backend: Places Route Handlers
=======================================

What:  HTTP surface for places: read one, read by owner, create, update, delete.
How:   Validates bodies with Pydantic, delegates to PlaceService, wraps
       results as {"place": ...} / {"places": [...]}.
Who:   Called by the frontend; errors are formatted by the handlers in main.py.

Routes:
    GET    /api/places/{place_id}
    GET    /api/places/user/{user_id}     (also /api/places/owner/{user_id})
    POST   /api/places                    → 201
    PATCH  /api/places/{place_id}
    DELETE /api/places/{place_id}         → 200, empty body
"""

import logging

from fastapi import APIRouter, Depends, Response

from app.schemas.common import ErrorResponse
from app.schemas.place import (
    PlaceCreate,
    PlaceEnvelope,
    PlaceListEnvelope,
    PlaceUpdate,
)
from app.services.place_service import place_service
from app.store import EntityStore, get_entity_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/places", tags=["Places"])


@router.get(
    "/user/{user_id}",
    response_model=PlaceListEnvelope,
    responses={
        404: {"description": "Unknown user or no places", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="List the places created by a user",
)
@router.get(
    "/owner/{user_id}",
    response_model=PlaceListEnvelope,
    include_in_schema=False,
)
async def get_places_by_user(
    user_id: str,
    store: EntityStore = Depends(get_entity_store),
) -> PlaceListEnvelope:
    """Places in the order the user created them."""
    places = await place_service.get_places_by_user(store, user_id)
    return PlaceListEnvelope(places=places)


@router.get(
    "/{place_id}",
    response_model=PlaceEnvelope,
    responses={
        404: {"description": "Place not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get a single place by id",
)
async def get_place(
    place_id: str,
    store: EntityStore = Depends(get_entity_store),
) -> PlaceEnvelope:
    place = await place_service.get_place(store, place_id)
    return PlaceEnvelope(place=place)


@router.post(
    "",
    status_code=201,
    response_model=PlaceEnvelope,
    responses={
        201: {"description": "Place created and linked to its creator"},
        422: {"description": "Invalid input, unknown creator or address", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create a place",
)
async def create_place(
    body: PlaceCreate,
    store: EntityStore = Depends(get_entity_store),
) -> PlaceEnvelope:
    """
    Create a place for an existing user.

    The place row and the creator's back-reference are written in one
    transaction; on failure neither exists.
    """
    place = await place_service.create_place(
        store,
        title=body.title,
        description=body.description,
        address=body.address,
        creator=body.creator,
    )
    return PlaceEnvelope(place=place)


@router.patch(
    "/{place_id}",
    response_model=PlaceEnvelope,
    responses={
        404: {"description": "Place not found", "model": ErrorResponse},
        422: {"description": "Invalid input", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Update a place's title and description",
)
async def update_place(
    place_id: str,
    body: PlaceUpdate,
    store: EntityStore = Depends(get_entity_store),
) -> PlaceEnvelope:
    place = await place_service.update_place(
        store,
        place_id,
        title=body.title,
        description=body.description,
    )
    return PlaceEnvelope(place=place)


@router.delete(
    "/{place_id}",
    status_code=200,
    response_class=Response,
    responses={
        200: {"description": "Place deleted and unlinked (empty body)"},
        404: {"description": "Place not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Delete a place",
)
async def delete_place(
    place_id: str,
    store: EntityStore = Depends(get_entity_store),
) -> Response:
    await place_service.delete_place(store, place_id)
    return Response(status_code=200)
