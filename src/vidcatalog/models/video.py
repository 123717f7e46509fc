"""Pydantic models describing catalog records and their owners."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from vidcatalog.models.base import CatalogBaseModel


class Video(CatalogBaseModel):
    """Domain model representing a row in the ``videos`` table.

    ``video_file`` and ``owner_id`` are written once at creation and never updated; the
    repository's update field list omits them. Required-field checks live in
    :class:`vidcatalog.services.catalog.CatalogService` rather than here, so rows written
    before a field became required still load.
    """

    id: Optional[UUID] = None
    owner_id: UUID
    title: str
    description: str
    video_file: str
    thumbnail: str
    duration_seconds: int = Field(default=0, ge=0)
    views: int = Field(default=0, ge=0)
    is_published: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PublishStatus(CatalogBaseModel):
    """Visibility of a record after a publish toggle."""

    is_published: bool


class OwnerProjection(CatalogBaseModel):
    """Display fields of a video owner, joined into the detail view."""

    id: UUID
    username: str
    avatar: Optional[str] = None


class VideoWithOwner(Video):
    """Detail view of a video with its owner's display fields embedded."""

    owner_details: OwnerProjection


__all__ = ["OwnerProjection", "PublishStatus", "Video", "VideoWithOwner"]
