"""Object store adapter backed by Azure Blob Storage."""

from __future__ import annotations

import mimetypes
import subprocess
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import unquote, urlparse

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContentSettings
from rich.console import Console

from vidcatalog.config.settings import Settings, get_settings
from vidcatalog.errors import UploadFailedError

FFPROBE_TIMEOUT_SECONDS = 30


@dataclass(slots=True)
class UploadedAsset:
    """Stable reference to an uploaded object plus metadata derived from it."""

    url: str
    blob_name: str
    duration_seconds: Optional[float] = None


class ObjectStoreClient(Protocol):
    """Contract the lifecycle manager relies on for binary assets."""

    def upload(self, local_path: Path) -> UploadedAsset:
        """Upload a local file and return its reference, or raise :class:`UploadFailedError`."""

    def delete(self, ref: str) -> None:
        """Delete a stored object. Deleting a missing object is not an error."""


def blob_name_from_url(ref: str, container: str) -> str:
    """Return the blob path of ``ref`` within ``container``.

    Accepts full blob URLs (with or without a SAS query string) as well as bare blob names.
    """

    parsed = urlparse(ref)
    if not parsed.scheme:
        return ref.lstrip("/")

    path = unquote(parsed.path).lstrip("/")
    # Azurite URLs carry the account name as the first path segment.
    parts = path.split("/")
    if container in parts:
        parts = parts[parts.index(container) + 1 :]
    return "/".join(parts)


def probe_duration(path: Path, *, ffprobe: str = "ffprobe") -> Optional[float]:
    """Return the media duration in seconds reported by ffprobe, or ``None``."""

    cmd = [
        ffprobe,
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(path),
    ]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=FFPROBE_TIMEOUT_SECONDS)
    except (OSError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    try:
        return float(result.stdout.strip())
    except ValueError:
        return None


class AzureBlobObjectStore:
    """Upload and delete catalog assets in a single blob container."""

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        console: Optional[Console] = None,
        service_client: Optional[BlobServiceClient] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._console = console or Console()
        self._container = self._settings.azure_blob_container
        self._service_client = service_client

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #
    def upload(self, local_path: Path) -> UploadedAsset:
        """Upload ``local_path`` and return its blob URL and probed duration.

        The local file is removed after the attempt whether or not it succeeded.

        Raises
        ------
        UploadFailedError
            If the file is missing, storage is not configured, or the SDK call fails.
        """

        local_path = Path(local_path)
        try:
            if not local_path.is_file():
                raise UploadFailedError(f"Local file not found: {local_path}")

            duration = probe_duration(local_path, ffprobe=self._settings.ffprobe_path)
            if duration is None:
                self._console.log(f"[yellow]Object store:[/yellow] could not probe duration of {local_path.name}")

            blob_name = f"{uuid.uuid4().hex}{local_path.suffix.lower()}"
            content_type = mimetypes.guess_type(local_path.name)[0] or "application/octet-stream"
            blob_client = self._client().get_blob_client(container=self._container, blob=blob_name)
            try:
                with local_path.open("rb") as handle:
                    blob_client.upload_blob(
                        handle,
                        overwrite=True,
                        content_settings=ContentSettings(content_type=content_type),
                    )
            except AzureError as exc:
                raise UploadFailedError(f"Failed to upload {local_path.name}: {exc}") from exc

            self._console.log(f"[blue]Object store:[/blue] uploaded {local_path.name} as {blob_name}")
            return UploadedAsset(url=blob_client.url, blob_name=blob_name, duration_seconds=duration)
        finally:
            local_path.unlink(missing_ok=True)

    def delete(self, ref: str) -> None:
        """Delete the blob behind ``ref``; a blob that is already gone is only logged."""

        blob_name = blob_name_from_url(ref, self._container)
        blob_client = self._client().get_blob_client(container=self._container, blob=blob_name)
        try:
            blob_client.delete_blob(delete_snapshots="include")
        except ResourceNotFoundError:
            self._console.log(f"[yellow]Object store:[/yellow] {blob_name} already deleted")
            return
        self._console.log(f"[blue]Object store:[/blue] deleted {blob_name}")

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #
    def _client(self) -> BlobServiceClient:
        if self._service_client is None:
            connection_string = self._settings.azure_storage_connection_string
            if connection_string is None:
                raise UploadFailedError("AZURE_STORAGE_CONNECTION_STRING is not configured.")
            self._service_client = BlobServiceClient.from_connection_string(
                connection_string.get_secret_value()
            )
        return self._service_client


__all__ = [
    "AzureBlobObjectStore",
    "ObjectStoreClient",
    "UploadedAsset",
    "blob_name_from_url",
    "probe_duration",
]
