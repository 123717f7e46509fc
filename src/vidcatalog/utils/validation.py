"""Validation helpers for catalog identifiers and required text fields."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from vidcatalog.errors import InvalidArgumentError


def is_valid_identifier(value: object) -> bool:
    """Return ``True`` when ``value`` is a UUID or a string that parses as one."""

    if isinstance(value, UUID):
        return True
    if not isinstance(value, str):
        return False
    try:
        UUID(value.strip())
    except ValueError:
        return False
    return True


def parse_identifier(value: object, *, label: str = "ID") -> UUID:
    """Parse an identifier, raising :class:`InvalidArgumentError` when malformed."""

    if isinstance(value, UUID):
        return value
    if not is_valid_identifier(value):
        raise InvalidArgumentError(f"Invalid {label}.")
    return UUID(str(value).strip())


def has_text(value: Optional[str]) -> bool:
    """Return ``True`` for strings containing at least one non-whitespace character."""

    return bool(value and value.strip())


__all__ = ["has_text", "is_valid_identifier", "parse_identifier"]
