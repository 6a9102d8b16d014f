"""
Places Backend: Users Route Handlers
======================================

What:  GET /api/users and POST /api/users/signup.
How:   Thin handlers over UserService; responses never include passwords.
"""

import logging

from fastapi import APIRouter, Depends

from app.schemas.common import ErrorResponse
from app.schemas.user import UserEnvelope, UserListEnvelope, UserSignup
from app.services.user_service import user_service
from app.store import EntityStore, get_entity_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get(
    "",
    response_model=UserListEnvelope,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List users",
)
async def list_users(store: EntityStore = Depends(get_entity_store)) -> UserListEnvelope:
    users = await user_service.list_users(store)
    return UserListEnvelope(users=users)


@router.post(
    "/signup",
    status_code=201,
    response_model=UserEnvelope,
    responses={
        422: {"description": "Invalid input or email already registered", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Sign up a new user",
)
async def signup(
    body: UserSignup,
    store: EntityStore = Depends(get_entity_store),
) -> UserEnvelope:
    user = await user_service.signup(
        store,
        name=body.name,
        email=body.email,
        password=body.password,
        image=body.image,
    )
    return UserEnvelope(user=user)
