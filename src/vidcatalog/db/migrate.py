"""Apply the SQL migrations stored under `db/migrations`, skipping ones already recorded."""

from __future__ import annotations

from pathlib import Path
from typing import List, Set

from psycopg2.extensions import cursor as PsycopgCursor
from rich.console import Console
from rich.table import Table

from vidcatalog.config.settings import get_settings
from vidcatalog.db.connection import connection_from_dsn

MIGRATIONS_ROOT = Path(__file__).resolve().parent / "migrations"

_LEDGER_DDL = """
    CREATE TABLE IF NOT EXISTS schema_migrations (
        name TEXT PRIMARY KEY,
        applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
"""


def load_migration_files(directory: Path = MIGRATIONS_ROOT) -> List[Path]:
    """Return migration files in the order they must be applied."""

    return sorted(directory.glob("*.sql"))


def _applied_migrations(db_cursor: PsycopgCursor) -> Set[str]:
    db_cursor.execute(_LEDGER_DDL)
    db_cursor.execute("SELECT name FROM schema_migrations")
    return {row[0] for row in db_cursor.fetchall()}


def _apply(db_cursor: PsycopgCursor, migration_file: Path) -> None:
    db_cursor.execute(migration_file.read_text(encoding="utf-8"))
    db_cursor.execute("INSERT INTO schema_migrations (name) VALUES (%(name)s)", {"name": migration_file.name})


def run_migrations(console: Console | None = None, *, dsn: str | None = None) -> List[str]:
    """Apply pending migrations in one transaction and return the names applied."""

    console = console or Console()
    migrations = load_migration_files()

    if not migrations:
        console.print("[yellow]No migrations found.[/yellow]")
        return []

    connection = connection_from_dsn(dsn or str(get_settings().database_url))

    table = Table(title="Database Migrations")
    table.add_column("Migration", style="cyan")
    table.add_column("Status", style="green")

    applied: List[str] = []
    try:
        with connection.cursor() as db_cursor:
            already_applied = _applied_migrations(db_cursor)
            for migration in migrations:
                if migration.name in already_applied:
                    table.add_row(migration.name, "skipped")
                    continue
                _apply(db_cursor, migration)
                applied.append(migration.name)
                table.add_row(migration.name, "applied")
        connection.commit()
    except Exception as exc:  # pragma: no cover - surface migration errors
        connection.rollback()
        console.print(f"[red]Migration failed:[/red] {exc}")
        raise
    finally:
        connection.close()

    console.print(table)
    return applied


def main() -> None:
    """Entry point for running migrations via `python -m vidcatalog.db.migrate`."""

    run_migrations()


if __name__ == "__main__":  # pragma: no cover
    main()
