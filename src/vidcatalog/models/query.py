"""Models describing catalog listing queries, their stages, and paginated results."""

from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional, Union
from uuid import UUID

from pydantic import Field

from vidcatalog.models.base import CatalogBaseModel
from vidcatalog.models.video import Video


class SortDirection(str, Enum):
    """Ordering applied by a sort stage."""

    ASC = "asc"
    DESC = "desc"


class OwnerFilter(CatalogBaseModel):
    """Restrict results to records owned by a single owner."""

    kind: Literal["owner"] = "owner"
    owner_id: UUID


class TextFilter(CatalogBaseModel):
    """Case-insensitive match of ``text`` against title OR description."""

    kind: Literal["text"] = "text"
    text: str = Field(min_length=1)


class PublishedFilter(CatalogBaseModel):
    """Restrict results to published records."""

    kind: Literal["published"] = "published"


class SortStage(CatalogBaseModel):
    """Order results by a catalog column."""

    kind: Literal["sort"] = "sort"
    column: str
    direction: SortDirection = SortDirection.DESC


FilterStage = Union[OwnerFilter, TextFilter, PublishedFilter]
Stage = Union[OwnerFilter, TextFilter, PublishedFilter, SortStage]


class QuerySpec(CatalogBaseModel):
    """Normalised listing parameters built for a single request.

    ``sort_field`` is the caller-facing name (``createdAt``, ``title``...); it is resolved to a
    column by :class:`vidcatalog.services.query_builder.QueryBuilder`.
    """

    owner_id: Optional[str] = None
    text_query: Optional[str] = None
    sort_field: Optional[str] = None
    sort_direction: Optional[str] = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1)


class PageInfo(CatalogBaseModel):
    """Navigation metadata accompanying a page of results."""

    total_pages: int = Field(ge=0)
    has_prev_page: bool
    has_next_page: bool
    prev_page: Optional[int] = None
    next_page: Optional[int] = None

    @classmethod
    def compute(cls, *, page: int, page_size: int, total_count: int) -> "PageInfo":
        """Derive navigation fields from the page coordinates and total match count."""

        total_pages = -(-total_count // page_size) if total_count else 0
        has_prev = page > 1
        has_next = page < total_pages
        return cls(
            total_pages=total_pages,
            has_prev_page=has_prev,
            has_next_page=has_next,
            prev_page=page - 1 if has_prev else None,
            next_page=page + 1 if has_next else None,
        )


class VideoPage(CatalogBaseModel):
    """One page of listing results."""

    items: List[Video] = Field(default_factory=list)
    page: int = Field(ge=1)
    page_size: int = Field(ge=1)
    total_count: int = Field(default=0, ge=0)
    page_info: PageInfo


__all__ = [
    "FilterStage",
    "OwnerFilter",
    "PageInfo",
    "PublishedFilter",
    "QuerySpec",
    "SortDirection",
    "SortStage",
    "Stage",
    "TextFilter",
    "VideoPage",
]
