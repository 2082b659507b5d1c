"""Business error hierarchy shared by the approval and contract workflows."""
from __future__ import annotations

from fastapi import status


class BivaError(Exception):
    """Base class for errors reported to the caller as ``{kind, message}``."""

    kind = "Error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class ValidationError(BivaError):
    """Malformed or incomplete input."""

    kind = "ValidationError"
    status_code = 422


class NotFoundError(BivaError):
    """A referenced entity does not exist (or is not visible to the caller)."""

    kind = "NotFoundError"
    status_code = status.HTTP_404_NOT_FOUND


class AuthorizationError(BivaError):
    """The caller lacks the required role or ownership."""

    kind = "AuthorizationError"
    status_code = status.HTTP_403_FORBIDDEN


class InvalidStateError(BivaError):
    """The requested transition is not legal from the current state."""

    kind = "InvalidStateError"
    status_code = status.HTTP_409_CONFLICT


class ConflictError(BivaError):
    """A concurrent change invalidated the expected state, or a live contract exists."""

    kind = "ConflictError"
    status_code = status.HTTP_409_CONFLICT


class PreconditionError(BivaError):
    """A transition-specific requirement is unmet."""

    kind = "PreconditionError"
    status_code = status.HTTP_412_PRECONDITION_FAILED


class InfrastructureError(BivaError):
    """The data store failed; distinct from business-rule errors."""

    kind = "InfrastructureError"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
