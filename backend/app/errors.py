"""
Error taxonomy shared by the record store, the chat pipeline and the API.

Every failure the service reports belongs to one ErrorKind, and every
ErrorKind maps to exactly one HTTP status (UpstreamRejected may instead
carry the provider's own status).
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    VALIDATION = "ValidationError"
    DUPLICATE_KEY = "DuplicateKeyError"
    NOT_FOUND = "NotFoundError"
    CONFIGURATION_MISSING = "ConfigurationMissing"
    UPSTREAM_REJECTED = "UpstreamRejected"
    UPSTREAM_UNREACHABLE = "UpstreamUnreachable"
    PERSISTENCE_FAILURE = "PersistenceFailure"


STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.DUPLICATE_KEY: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFIGURATION_MISSING: 500,
    ErrorKind.UPSTREAM_REJECTED: 502,
    ErrorKind.UPSTREAM_UNREACHABLE: 502,
    ErrorKind.PERSISTENCE_FAILURE: 500,
}


def status_for(kind: ErrorKind, upstream_status: Optional[int] = None) -> int:
    """Resolve the HTTP status for an error kind."""
    if kind == ErrorKind.UPSTREAM_REJECTED and upstream_status and upstream_status >= 400:
        return upstream_status
    return STATUS_CODES[kind]


class AppError(Exception):
    """Base class for failures that are reported to API callers."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def status_code(self) -> int:
        return status_for(self.kind)

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind.value}


class RecordValidationError(AppError):
    """A required field is missing or a field is malformed."""
    kind = ErrorKind.VALIDATION


class DuplicateKeyError(AppError):
    kind = ErrorKind.DUPLICATE_KEY


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND


class PersistenceError(AppError):
    """The durable mirror could not be written."""
    kind = ErrorKind.PERSISTENCE_FAILURE
