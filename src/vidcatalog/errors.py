"""Error taxonomy shared by the catalog services and their transports."""

from __future__ import annotations

from enum import Enum
from typing import ClassVar


class ErrorKind(str, Enum):
    """Tags identifying why a catalog operation failed."""

    INVALID_ARGUMENT = "InvalidArgument"
    NOT_FOUND = "NotFound"
    FORBIDDEN = "Forbidden"
    UPLOAD_FAILED = "UploadFailed"


class CatalogError(RuntimeError):
    """Base exception for failures surfaced to catalog callers."""

    kind: ClassVar[ErrorKind]
    status_code: ClassVar[int] = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class InvalidArgumentError(CatalogError):
    """Raised for malformed identifiers and missing required fields."""

    kind = ErrorKind.INVALID_ARGUMENT
    status_code = 400


class NotFoundError(CatalogError):
    """Raised when no record (with a resolvable owner) exists at an identifier."""

    kind = ErrorKind.NOT_FOUND
    status_code = 404


class ForbiddenError(CatalogError):
    """Raised when the acting principal does not own the record."""

    kind = ErrorKind.FORBIDDEN
    status_code = 403


class UploadFailedError(CatalogError):
    """Raised when the object store cannot produce a reference for an upload."""

    kind = ErrorKind.UPLOAD_FAILED
    status_code = 500


__all__ = [
    "CatalogError",
    "ErrorKind",
    "ForbiddenError",
    "InvalidArgumentError",
    "NotFoundError",
    "UploadFailedError",
]
