"""
Places Backend: User Service
==============================

What:  Lists users and signs up new ones.
Why:   Places need an existing creator; sign-up is how users come to exist.
       Login and tokens are out of scope.
Who:   Called by the users router.
"""

import logging
from typing import List

from sqlalchemy.exc import IntegrityError

from app.exceptions import DatabaseError, UnprocessableEntityError
from app.models.user import User
from app.schemas.user import UserResponse
from app.security import hash_password
from app.store import EntityStore

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "User exists already, please login instead."


class UserService:
    """Business logic for users. Stateless; the store is passed per call."""

    async def list_users(self, store: EntityStore) -> List[UserResponse]:
        logger.info("list_users")
        try:
            users = await store.list_users()
        except Exception as e:
            logger.error("[list_users] Database interaction failed: %s", e, exc_info=True)
            raise DatabaseError(
                message="Fetching users failed, please try again later.",
                operation="list_users",
                context={"error_type": type(e).__name__},
            )
        return [UserResponse.model_validate(user) for user in users]

    async def signup(
        self,
        store: EntityStore,
        name: str,
        email: str,
        password: str,
        image: str,
    ) -> UserResponse:
        """
        Create a user with an empty `places` list.

        Raises:
            UnprocessableEntityError: Email already registered (→ 422)
            DatabaseError: Lookup or save failed (→ 500)
        """
        logger.info("signup: email=%s", email)
        try:
            existing = await store.find_user_by_email(email)
        except Exception as e:
            logger.error("[signup] Database interaction failed: %s", e, exc_info=True)
            raise DatabaseError(
                message="Signing up failed, please try again later.",
                operation="signup",
                context={"error_type": type(e).__name__},
            )

        if existing is not None:
            raise UnprocessableEntityError(message=EMAIL_TAKEN, context={"field": "email"})

        user = User(
            name=name,
            email=email,
            password=hash_password(password),
            image=image,
            places=[],
        )
        try:
            await store.save(user)
        except IntegrityError:
            # Lost a race with a concurrent sign-up for the same email
            raise UnprocessableEntityError(message=EMAIL_TAKEN, context={"field": "email"})
        except Exception as e:
            logger.error("[signup] Database interaction failed: %s", e, exc_info=True)
            raise DatabaseError(
                message="Signing up failed, please try again later.",
                operation="signup",
                context={"error_type": type(e).__name__},
            )

        logger.info("User %s signed up", user.id)
        return UserResponse.model_validate(user)


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
