"""
Domain error taxonomy shared by services and routes.

Each error sits on the matching built-in so callers that only know about
PermissionError / ValueError keep working.
"""
from __future__ import annotations


class Unauthorized(PermissionError):
    """No session, or the caller is not a member of the group."""


class Forbidden(PermissionError):
    """Authenticated, but the caller's role does not allow the action."""


class NotFound(LookupError):
    pass


class ValidationError(ValueError):
    pass


class LimitExceeded(ValueError):
    def __init__(self, message: str, *, limit: int | None = None):
        super().__init__(message)
        self.limit = limit
