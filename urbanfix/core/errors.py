"""
Error taxonomy for the issue lifecycle.

Every business failure raised by the services layer is a LifecycleError.
The API layer maps the class to an HTTP status; nothing else needs to know
about HTTP.
"""

from typing import Optional


class LifecycleError(Exception):
    """Base class for all issue lifecycle failures."""

    status_code: int = 400

    def __init__(self, message: str, detail: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    def to_dict(self) -> dict:
        result = {"detail": self.message, "error": type(self).__name__}
        if self.detail:
            result["context"] = self.detail
        return result


class ValidationError(LifecycleError):
    """Malformed or missing input. Caller's fault, never retried."""

    status_code = 400


class MalformedReferenceError(ValidationError):
    """An identifier that can never reference a document."""


class AuthorizationError(LifecycleError):
    """Role or ownership check failed."""

    status_code = 403


class NotFoundError(LifecycleError):
    """Referenced issue, comment, team or user does not exist."""

    status_code = 404


class ConflictError(LifecycleError):
    """Duplicate upvote, unique number collision, concurrent write conflict."""

    status_code = 409


class TerminalStateError(ConflictError):
    """Mutation attempted on an issue whose work status is terminal."""


class RecoverableError(LifecycleError):
    """Classification backend unavailable or returned garbage."""

    status_code = 503


class StorageError(LifecycleError):
    """Persistence layer failure. Surfaced as an opaque failure."""

    status_code = 500

    def to_dict(self) -> dict:
        return {"detail": "Storage failure, please retry later", "error": type(self).__name__}
