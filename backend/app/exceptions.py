"""
Places Backend: Custom Exception Hierarchy
============================================

What:  Application-specific exceptions for the places and users API.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by the entity store and services; caught by global handlers.

Exception Hierarchy:
    PlacesError (base)
    ├── UnprocessableEntityError   → 422 Unprocessable Entity (bad reference)
    ├── NotFoundError              → 404 Not Found
    ├── GeocodeError               → 422 Unprocessable Entity (address lookup)
    ├── DatabaseError              → 500 Internal Server Error
    └── TransactionStateError      → 500 (misuse of a transaction handle)
"""

from typing import Any, Dict, Optional


class PlacesError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only for 4xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class UnprocessableEntityError(PlacesError):
    """
    Raised when a request is well-formed but references something unusable.

    When:    Creating a place for a creator id that does not exist,
             signing up with an email that is already registered.
    HTTP:    422 Unprocessable Entity
    """

    def __init__(
        self,
        message: str = "The request could not be processed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(PlacesError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing records; the service layer converts
    that into this exception so routes never deal with None.
    HTTP: 404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"Could not find a {resource} for the provided id '{resource_id}'."
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class GeocodeError(PlacesError):
    """
    Raised when an address cannot be resolved to coordinates.

    Raised before any write, so a failed lookup never leaves partial state.
    HTTP: 422 Unprocessable Entity
    """

    def __init__(
        self,
        message: str = "Could not find location for the specified address.",
        address: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if address:
            ctx["address"] = address
        super().__init__(message=message, context=ctx)
        self.address = address


class DatabaseError(PlacesError):
    """
    Raised when an entity store operation fails.

    Covers lookups, single writes, and transactional writes (after rollback).
    The message returned to the client is always generic; the operation
    name and underlying cause live in `context` and in the server log.
    HTTP: 500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if operation:
            ctx["operation"] = operation
        super().__init__(message=message, context=ctx)
        self.operation = operation


class TransactionStateError(PlacesError):
    """
    Raised when a write is given a transaction handle it cannot use.

    When: The handle was already committed or rolled back, or belongs to
    a different store (session).
    """

    def __init__(
        self,
        message: str = "Transaction handle is not active for this store",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
