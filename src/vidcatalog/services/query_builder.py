"""Translate listing parameters into the ordered stage list run by the repository."""

from __future__ import annotations

from typing import List, Optional

from vidcatalog.config.settings import ListingConfig
from vidcatalog.models.query import (
    OwnerFilter,
    PublishedFilter,
    QuerySpec,
    SortDirection,
    SortStage,
    Stage,
    TextFilter,
)
from vidcatalog.utils.validation import parse_identifier

DEFAULT_SORT_COLUMN = "created_at"
DEFAULT_SORT_DIRECTION = SortDirection.DESC


class QueryBuilder:
    """Build stage lists with a fixed precedence: owner, text, published, sort.

    The published filter is always emitted; no parameter can remove it. Building performs
    no I/O and only fails when the owner identifier is malformed.
    """

    def __init__(self, listing: Optional[ListingConfig] = None) -> None:
        self._listing = listing or ListingConfig()

    def build(self, spec: QuerySpec) -> List[Stage]:
        stages: List[Stage] = []

        if spec.owner_id:
            stages.append(OwnerFilter(owner_id=parse_identifier(spec.owner_id, label="User ID")))

        if spec.text_query:
            stages.append(TextFilter(text=spec.text_query))

        stages.append(PublishedFilter())
        stages.append(self._sort_stage(spec.sort_field, spec.sort_direction))
        return stages

    def _sort_stage(self, field: Optional[str], direction: Optional[str]) -> SortStage:
        # Both halves are required; a lone field or direction falls back to the default.
        if not (field and direction):
            return SortStage(column=DEFAULT_SORT_COLUMN, direction=DEFAULT_SORT_DIRECTION)

        column = self._listing.resolve_sort_column(field)
        if column is None:
            return SortStage(column=DEFAULT_SORT_COLUMN, direction=DEFAULT_SORT_DIRECTION)

        resolved = SortDirection.DESC if direction == "desc" else SortDirection.ASC
        return SortStage(column=column, direction=resolved)


__all__ = ["DEFAULT_SORT_COLUMN", "DEFAULT_SORT_DIRECTION", "QueryBuilder"]
