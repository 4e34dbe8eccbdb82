"""
Custom exceptions for AdLink.

Every error carries the HTTP status the API answers with.
"""

from typing import Any


class AdLinkError(Exception):
    """Base exception for AdLink."""

    status_code: int = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigError(AdLinkError):
    """Configuration related errors."""

    status_code = 500


class DatabaseError(AdLinkError):
    """Database related errors."""

    status_code = 500


class CacheError(AdLinkError):
    """Cache (Redis) related errors."""

    status_code = 500


class ValidationError(AdLinkError):
    """Request validation errors."""

    status_code = 422


class AuthenticationError(AdLinkError):
    """No signed-in user on a route that needs one."""

    status_code = 401


class AuthorizationError(AdLinkError):
    """Signed-in user lacks the role the route needs."""

    status_code = 403


class NotFoundError(AdLinkError):
    """Requested entity does not exist (or is not visible to the caller)."""

    status_code = 404


class ContentNotFoundError(NotFoundError):
    """Short code has no matching active content link."""

    pass


class VisitNotFoundError(NotFoundError):
    """Gateway visit is unknown or expired."""

    pass


class ProfileNotFoundError(NotFoundError):
    """User has neither a content-provider nor an advertiser profile."""

    pass


class ConflictError(AdLinkError):
    """Request conflicts with the current state."""

    status_code = 409


class ShortCodeCollisionError(ConflictError):
    """Generated short code already exists."""

    pass


class DuplicateCategoryError(ConflictError):
    """Category slug already exists."""

    pass


class GatewayNotReadyError(ConflictError):
    """Continue requested before the countdown finished."""

    pass


class SelectorUnavailableError(AdLinkError):
    """Ad selection failed; callers degrade to the no-ad path."""

    status_code = 503


class EventWriteError(AdLinkError):
    """Impression or click insert failed."""

    status_code = 500
