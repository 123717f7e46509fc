"""Repository for interacting with the `videos` table."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence
from uuid import UUID

from vidcatalog.config.settings import SORTABLE_COLUMNS
from vidcatalog.db import ConnectionFactory
from vidcatalog.db.repositories import BaseRepository, RecordNotFoundError, RepositoryError
from vidcatalog.models.query import (
    OwnerFilter,
    PageInfo,
    PublishedFilter,
    SortDirection,
    SortStage,
    Stage,
    TextFilter,
    VideoPage,
)
from vidcatalog.models.video import OwnerProjection, Video, VideoWithOwner

_LIKE_SPECIAL = str.maketrans({"\\": "\\\\", "%": "\\%", "_": "\\_"})


def like_pattern(text: str) -> str:
    """Escape LIKE wildcards in ``text`` and wrap it for substring matching."""

    return f"%{text.translate(_LIKE_SPECIAL)}%"


@dataclass(slots=True)
class CompiledStages:
    """SQL fragments produced from an ordered stage list."""

    where_clause: str
    order_clause: str
    params: Dict[str, object]


def compile_stages(stages: Sequence[Stage]) -> CompiledStages:
    """Translate an ordered stage list into ``WHERE`` and ``ORDER BY`` fragments.

    Filter stages are AND-ed in the order given. Only the last sort stage applies; ties are
    broken on ``id`` in the same direction so page boundaries are stable.
    """

    predicates: List[str] = []
    params: Dict[str, object] = {}
    order_clause = ""

    for index, stage in enumerate(stages):
        if isinstance(stage, OwnerFilter):
            key = f"owner_id_{index}"
            predicates.append(f"owner_id = %({key})s")
            params[key] = str(stage.owner_id)
        elif isinstance(stage, TextFilter):
            key = f"text_{index}"
            predicates.append(f"(title ILIKE %({key})s ESCAPE '\\' OR description ILIKE %({key})s ESCAPE '\\')")
            params[key] = like_pattern(stage.text)
        elif isinstance(stage, PublishedFilter):
            predicates.append("is_published = TRUE")
        elif isinstance(stage, SortStage):
            if stage.column not in SORTABLE_COLUMNS:
                raise RepositoryError(f"Unsupported sort column: {stage.column!r}")
            direction = "DESC" if stage.direction is SortDirection.DESC else "ASC"
            order_clause = f"ORDER BY {stage.column} {direction}, id {direction}"
        else:  # pragma: no cover - closed union
            raise RepositoryError(f"Unsupported stage: {stage!r}")

    where_clause = f"WHERE {' AND '.join(predicates)}" if predicates else ""
    return CompiledStages(where_clause=where_clause, order_clause=order_clause, params=params)


class VideoRepository(BaseRepository[Video]):
    """Data access object encapsulating catalog record persistence logic."""

    table_name = "videos"
    model_type = Video
    insert_fields = (
        "owner_id",
        "title",
        "description",
        "video_file",
        "thumbnail",
        "duration_seconds",
        "views",
        "is_published",
    )
    # video_file, owner_id and duration_seconds are immutable after creation.
    update_fields = (
        "title",
        "description",
        "thumbnail",
        "is_published",
        "views",
    )
    auto_timestamp_field = "updated_at"

    def __init__(self, connection_factory: ConnectionFactory) -> None:
        super().__init__(connection_factory)

    def find_by_id(self, video_id: UUID) -> Optional[Video]:
        """Return a record by id, or ``None`` when it does not exist."""

        try:
            return self.get_by_id(video_id)
        except RecordNotFoundError:
            return None

    def query(self, stages: Sequence[Stage], *, page: int, page_size: int) -> VideoPage:
        """Run the stage list and return one page of matches with the total match count.

        ``page`` is 1-indexed. An empty page is returned (not an error) when nothing matches.
        """

        if page < 1 or page_size < 1:
            raise RepositoryError("page and page_size must be positive integers.")

        compiled = compile_stages(stages)
        count_row = self._fetch_one(
            f"SELECT COUNT(*) AS total FROM {self.table_name} {compiled.where_clause}",
            compiled.params,
        )
        total_count = int(count_row["total"])

        items: List[Video] = []
        if total_count:
            params = {**compiled.params, "limit": page_size, "offset": (page - 1) * page_size}
            rows = self._fetch_many(
                f"SELECT * FROM {self.table_name} {compiled.where_clause} {compiled.order_clause} "
                "LIMIT %(limit)s OFFSET %(offset)s",
                params,
            )
            items = [self.model_type.model_validate(row) for row in rows]

        return VideoPage(
            items=items,
            page=page,
            page_size=page_size,
            total_count=total_count,
            page_info=PageInfo.compute(page=page, page_size=page_size, total_count=total_count),
        )

    def get_owner_projection(self, owner_id: UUID) -> OwnerProjection:
        """Return the display fields of an owner.

        Raises
        ------
        RecordNotFoundError
            If no user exists with ``owner_id``.
        """

        row = self._fetch_one(
            "SELECT id, username, avatar FROM users WHERE id = %(id)s",
            {"id": str(owner_id)},
        )
        return OwnerProjection.model_validate(row)

    def get_with_owner(self, video_id: UUID) -> VideoWithOwner:
        """Return a record joined with its owner's display fields.

        A record whose owner cannot be resolved is reported as missing.
        """

        row = self._fetch_one(
            """
            SELECT v.*, u.username AS owner_username, u.avatar AS owner_avatar
            FROM videos v
            JOIN users u ON u.id = v.owner_id
            WHERE v.id = %(id)s
            """,
            {"id": str(video_id)},
        )
        return self._hydrate_with_owner(row)

    def _hydrate_with_owner(self, row: Mapping[str, object]) -> VideoWithOwner:
        record = dict(row)
        owner = OwnerProjection(
            id=record["owner_id"],
            username=record.pop("owner_username"),
            avatar=record.pop("owner_avatar", None),
        )
        return VideoWithOwner.model_validate({**record, "owner_details": owner})


__all__ = ["CompiledStages", "SORTABLE_COLUMNS", "VideoRepository", "compile_stages", "like_pattern"]
