"""Generic repository abstractions for Postgres-backed persistence."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import ClassVar, Dict, Generic, Iterable, Mapping, Optional, Sequence, Tuple, Type, TypeVar
from uuid import UUID

from psycopg2.extensions import connection as PsycopgConnection
from psycopg2.extras import RealDictCursor

from vidcatalog.db import ConnectionFactory
from vidcatalog.models.base import CatalogBaseModel

ModelT = TypeVar("ModelT", bound=CatalogBaseModel)


class RepositoryError(RuntimeError):
    """Base exception raised for repository layer failures."""


class RecordNotFoundError(RepositoryError):
    """Raised when a requested record cannot be located."""


class BaseRepository(Generic[ModelT]):
    """Reusable building block for table-specific repositories.

    Subclasses declare the table, the model used to hydrate rows, and which columns are
    writable on insert and on update. Columns missing from ``update_fields`` are immutable
    once the row exists.
    """

    table_name: ClassVar[str]
    model_type: ClassVar[Type[ModelT]]
    insert_fields: ClassVar[Sequence[str]]
    update_fields: ClassVar[Sequence[str]]
    auto_timestamp_field: ClassVar[Optional[str]] = None

    def __init__(self, connection_factory: ConnectionFactory) -> None:
        self._connection_factory = connection_factory

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def insert(self, model: ModelT) -> ModelT:
        """Persist a new record to the backing table."""

        payload = self._serialize(model, fields=self.insert_fields)
        columns, placeholders = self._build_insert_clause(payload)
        query = f"INSERT INTO {self.table_name} ({columns}) VALUES ({placeholders}) RETURNING *"
        row = self._fetch_one(query, payload)
        return self.model_type.model_validate(row)

    def update_by_id(self, record_id: object, values: Mapping[str, object]) -> ModelT:
        """Set the given columns on one record and return the stored row.

        Raises
        ------
        RepositoryError
            If ``values`` names a column outside ``update_fields`` or is empty.
        RecordNotFoundError
            If no record exists with ``record_id``.
        """

        disallowed = sorted(set(values) - set(self.update_fields))
        if disallowed:
            raise RepositoryError(f"Columns not updatable on {self.table_name}: {', '.join(disallowed)}")
        if not values:
            raise RepositoryError("No fields provided for update.")

        payload: Dict[str, object] = dict(values)
        payload["id"] = self._normalise_identifier(record_id)

        set_clause = self._build_update_clause(payload.keys())
        query = f"UPDATE {self.table_name} SET {set_clause} WHERE id = %(id)s RETURNING *"
        row = self._fetch_one(query, payload)
        return self.model_type.model_validate(row)

    def get_by_id(self, record_id: object) -> ModelT:
        """Return a single record by its primary key."""

        query = f"SELECT * FROM {self.table_name} WHERE id = %(id)s"
        row = self._fetch_one(query, {"id": self._normalise_identifier(record_id)})
        return self.model_type.model_validate(row)

    def delete_by_id(self, record_id: object) -> None:
        """Delete a record identified by its primary key.

        Raises
        ------
        RecordNotFoundError
            If nothing was deleted.
        """

        query = f"DELETE FROM {self.table_name} WHERE id = %(id)s RETURNING id"
        self._fetch_one(query, {"id": self._normalise_identifier(record_id)})

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _serialize(self, model: ModelT, *, fields: Iterable[str]) -> Dict[str, object]:
        """Dump ``fields`` of ``model`` for SQL parameters, omitting unset (``None``) values."""

        raw_values = model.model_dump(mode="json")
        payload: Dict[str, object] = {}

        for field in fields:
            if field not in raw_values:
                continue
            value = raw_values[field]
            if value is None:
                continue
            payload[field] = value

        return payload

    def _build_insert_clause(self, payload: Mapping[str, object]) -> Tuple[str, str]:
        columns = ", ".join(payload.keys())
        placeholders = ", ".join(f"%({field})s" for field in payload.keys())
        return columns, placeholders

    def _build_update_clause(self, payload_keys: Iterable[str]) -> str:
        assignments = [f"{field} = %({field})s" for field in payload_keys if field != "id"]
        if self.auto_timestamp_field:
            assignments.append(f"{self.auto_timestamp_field} = NOW()")
        if not assignments:
            raise RepositoryError("No columns available for update.")
        return ", ".join(assignments)

    def _fetch_one(self, query: str, params: Mapping[str, object]) -> Mapping[str, object]:
        with self._connection() as connection:
            with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(query, params)
                row = cursor.fetchone()
                if row is None:
                    raise RecordNotFoundError(f"No records returned for query: {query!r}")
                return dict(row)

    def _fetch_many(self, query: str, params: Mapping[str, object]) -> list[Mapping[str, object]]:
        with self._connection() as connection:
            with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(query, params)
                rows = cursor.fetchall()
                return [dict(row) for row in rows]

    def _connection(self) -> AbstractContextManager[PsycopgConnection]:
        return self._connection_factory()

    def _normalise_identifier(self, value: object) -> object:
        if isinstance(value, UUID):
            return str(value)
        return value


__all__ = [
    "BaseRepository",
    "RecordNotFoundError",
    "RepositoryError",
]
