"""Pooled psycopg2 connections for the catalog database."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from psycopg2 import connect
from psycopg2.extensions import connection as PsycopgConnection
from psycopg2.pool import ThreadedConnectionPool

from vidcatalog.config.settings import get_settings


class DatabasePool:
    """Thread-safe pool handing out one transactional connection per unit of work."""

    def __init__(self, dsn: str, *, min_connections: int, max_connections: int) -> None:
        self._pool = ThreadedConnectionPool(min_connections, max_connections, dsn)

    @contextmanager
    def connection(self) -> Iterator[PsycopgConnection]:
        """Yield a connection, committing on success and rolling back on error."""

        conn = self._pool.getconn()
        try:
            yield conn
            conn.commit()
        except Exception:  # pragma: no cover - re-raised after rollback
            conn.rollback()
            raise
        finally:
            self._pool.putconn(conn)

    def close(self) -> None:
        self._pool.closeall()


_pool: Optional[DatabasePool] = None


def _ensure_pool() -> DatabasePool:
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = DatabasePool(
            str(settings.database_url),
            min_connections=settings.db_pool_min,
            max_connections=settings.db_pool_max,
        )
    return _pool


@contextmanager
def get_connection() -> Iterator[PsycopgConnection]:
    """Provide a pooled database connection as a context manager."""

    with _ensure_pool().connection() as conn:
        yield conn


def close_pool() -> None:
    """Close the process-wide pool, if one was opened."""

    global _pool
    if _pool is not None:
        _pool.close()
        _pool = None


def connection_from_dsn(dsn: str) -> PsycopgConnection:
    """Open a standalone (unpooled) connection, used by migrations."""

    return connect(dsn)


__all__ = ["DatabasePool", "close_pool", "connection_from_dsn", "get_connection"]
