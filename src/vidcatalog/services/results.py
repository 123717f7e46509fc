"""Tagged results that let transports map catalog outcomes without catching exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from vidcatalog.errors import CatalogError, ErrorKind


@dataclass(slots=True)
class OperationResult:
    """Either ``ok`` with a value, or an error kind with a human-readable detail."""

    ok: bool
    value: Any = None
    error: Optional[ErrorKind] = None
    detail: Optional[str] = None
    status_code: int = 200

    @classmethod
    def success(cls, value: Any = None, *, status_code: int = 200) -> "OperationResult":
        return cls(ok=True, value=value, status_code=status_code)

    @classmethod
    def failure(cls, error: CatalogError) -> "OperationResult":
        return cls(ok=False, error=error.kind, detail=error.detail, status_code=error.status_code)

    @classmethod
    def capture(
        cls,
        operation: Callable[..., Any],
        *args: Any,
        success_status: int = 200,
        **kwargs: Any,
    ) -> "OperationResult":
        """Run ``operation`` and convert a :class:`CatalogError` into an error result.

        Exceptions outside the catalog taxonomy propagate unchanged.
        """

        try:
            value = operation(*args, **kwargs)
        except CatalogError as exc:
            return cls.failure(exc)
        return cls.success(value, status_code=success_status)


__all__ = ["OperationResult"]
