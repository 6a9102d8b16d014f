"""
Places Backend: Place Request/Response Schemas
================================================

What:  Pydantic models defining the places API contract.
How:   FastAPI validates request bodies against PlaceCreate/PlaceUpdate
       (422 on failure) and serializes PlaceResponse from ORM objects.

Validation rules:
    title        non-empty (after trimming)
    description  at least 5 characters
    address      non-empty
    creator      non-empty; existence is checked by PlaceService (422)
"""

import uuid
from typing import Any, List

from pydantic import BaseModel, Field, field_validator


class Coordinates(BaseModel):
    """A latitude/longitude pair, stored on Place.location."""
    lat: float = Field(ge=-90, le=90, description="Latitude in degrees")
    lng: float = Field(ge=-180, le=180, description="Longitude in degrees")


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class PlaceCreate(BaseModel):
    """Body of POST /api/places."""
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=5)
    address: str = Field(min_length=1, max_length=500)
    creator: str = Field(min_length=1, description="Id of the creating user")

    model_config = {"str_strip_whitespace": True}


class PlaceUpdate(BaseModel):
    """Body of PATCH /api/places/{place_id}. Only these two fields change."""
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=5)

    model_config = {"str_strip_whitespace": True}


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class PlaceResponse(BaseModel):
    """
    Full representation of a place.

    `id` and `creator` are exposed as strings so clients can use them
    verbatim in URLs and in the creator field of new places.
    """
    id: str = Field(description="Place id")
    title: str
    description: str
    address: str
    location: Coordinates
    image: str = Field(description="Image URL")
    creator: str = Field(description="Id of the user who created the place")

    model_config = {"from_attributes": True}

    @field_validator("id", "creator", mode="before")
    @classmethod
    def stringify_ids(cls, v: Any) -> Any:
        if isinstance(v, uuid.UUID):
            return str(v)
        return v


class PlaceEnvelope(BaseModel):
    """{"place": {...}}, returned by read-one, create and update."""
    place: PlaceResponse


class PlaceListEnvelope(BaseModel):
    """{"places": [...]}, returned by GET /api/places/user/{user_id}."""
    places: List[PlaceResponse]
