"""Application settings loaded from environment variables and config files."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, PositiveInt, SecretStr, field_validator
from pydantic.networks import PostgresDsn
from pydantic_settings import BaseSettings, SettingsConfigDict

from vidcatalog.config import CONFIG_ROOT

# Columns of the videos table that ORDER BY may reference.
SORTABLE_COLUMNS = frozenset(
    {"created_at", "updated_at", "title", "description", "duration_seconds", "views", "is_published"}
)

DEFAULT_SORTABLE_FIELDS: Dict[str, str] = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "title": "title",
    "description": "description",
    "duration": "duration_seconds",
    "views": "views",
}


class ListingConfig(BaseModel):
    """Listing vocabulary: which caller-facing fields may be sorted on."""

    sortable_fields: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_SORTABLE_FIELDS))

    model_config = ConfigDict(extra="forbid")

    @field_validator("sortable_fields")
    @classmethod
    def _known_columns(cls, value: Dict[str, str]) -> Dict[str, str]:
        unknown = sorted(column for column in value.values() if column not in SORTABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Unsupported sort columns: {', '.join(unknown)}")
        return value

    def resolve_sort_column(self, field: Optional[str]) -> Optional[str]:
        """Return the catalog column for ``field`` or ``None`` when it is not sortable."""

        if not field:
            return None
        return self.sortable_fields.get(field)


def _load_listing_config(listing_path: Path) -> ListingConfig:
    if not listing_path.exists():
        return ListingConfig()

    raw_data = yaml.safe_load(listing_path.read_text(encoding="utf-8")) or {}
    sortable = raw_data.get("sortable_fields") or DEFAULT_SORTABLE_FIELDS
    return ListingConfig(sortable_fields={str(key): str(value) for key, value in sortable.items()})


class Settings(BaseSettings):
    """Primary application settings for the catalog service."""

    database_url: PostgresDsn = Field(alias="DATABASE_URL")
    azure_storage_connection_string: Optional[SecretStr] = Field(
        default=None, alias="AZURE_STORAGE_CONNECTION_STRING"
    )
    azure_blob_container: str = Field(default="videos", alias="AZURE_BLOB_CONTAINER")
    upload_temp_dir: Path = Field(default=Path("./public/temp"), alias="UPLOAD_TEMP_DIR")
    ffprobe_path: str = Field(default="ffprobe", alias="FFPROBE_PATH")

    db_pool_min: PositiveInt = Field(default=1, alias="DB_POOL_MIN")
    db_pool_max: PositiveInt = Field(default=5, alias="DB_POOL_MAX")

    default_page_size: PositiveInt = Field(default=10, alias="DEFAULT_PAGE_SIZE")

    listing: ListingConfig = Field(default_factory=lambda: _load_listing_config(CONFIG_ROOT / "listing.yaml"))

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached instance of the application settings."""

    return Settings()


__all__ = ["DEFAULT_SORTABLE_FIELDS", "ListingConfig", "SORTABLE_COLUMNS", "Settings", "get_settings"]
