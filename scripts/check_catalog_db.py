"""Quick connectivity and schema check for the catalog database."""

from __future__ import annotations

from psycopg2 import connect

from vidcatalog.config.settings import get_settings

REQUIRED_TABLES = ("users", "videos")


def main() -> None:
    """Connect to DATABASE_URL and report whether the catalog tables exist."""

    dsn = str(get_settings().database_url)
    try:
        with connect(dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT table_name FROM information_schema.tables WHERE table_name = ANY(%(names)s)",
                    {"names": list(REQUIRED_TABLES)},
                )
                present = {row[0] for row in cur.fetchall()}
    except Exception as exc:  # pragma: no cover - diagnostic script
        print("Connection failed:", exc)
        return

    missing = [name for name in REQUIRED_TABLES if name not in present]
    if missing:
        print("Connected, but missing tables:", ", ".join(missing), "- run `vidcatalog migrate`.")
    else:
        print("Connection successful, catalog tables present.")


if __name__ == "__main__":
    main()
