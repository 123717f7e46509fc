"""CLI commands binding the catalog operations to a terminal transport."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Callable, Optional

import typer
from pydantic import BaseModel
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from vidcatalog.config.settings import get_settings
from vidcatalog.db.connection import get_connection
from vidcatalog.db.migrate import run_migrations
from vidcatalog.db.video_repository import VideoRepository
from vidcatalog.errors import ErrorKind
from vidcatalog.models.query import QuerySpec, VideoPage
from vidcatalog.models.video import Video
from vidcatalog.services.catalog import CatalogService
from vidcatalog.services.object_store import AzureBlobObjectStore
from vidcatalog.services.results import OperationResult
from vidcatalog.utils.uploads import stage_upload

ServiceFactory = Callable[[], CatalogService]

PRINCIPAL_ENV = "VIDCATALOG_PRINCIPAL"


class CatalogExitCode:
    """Mapping of catalog error kinds to CLI exit codes."""

    SUCCESS = 0
    INVALID_ARGUMENT = 1
    NOT_FOUND = 2
    FORBIDDEN = 3
    UPLOAD_FAILED = 4


_EXIT_CODES = {
    ErrorKind.INVALID_ARGUMENT: CatalogExitCode.INVALID_ARGUMENT,
    ErrorKind.NOT_FOUND: CatalogExitCode.NOT_FOUND,
    ErrorKind.FORBIDDEN: CatalogExitCode.FORBIDDEN,
    ErrorKind.UPLOAD_FAILED: CatalogExitCode.UPLOAD_FAILED,
}


def exit_code_for(result: OperationResult) -> int:
    """Return the process exit code for an operation result."""

    if result.ok or result.error is None:
        return CatalogExitCode.SUCCESS
    return _EXIT_CODES[result.error]


def register(app: typer.Typer, console: Console, *, service_factory: Optional[ServiceFactory] = None) -> None:
    """Register catalog commands on the Typer application."""

    @lru_cache(maxsize=1)
    def default_service() -> CatalogService:
        return CatalogService(
            repository=VideoRepository(get_connection),
            object_store=AzureBlobObjectStore(console=console),
            console=console,
        )

    get_service = service_factory or default_service

    def finish(result: OperationResult, json_output: bool, render: Callable[[object], None]) -> None:
        if not result.ok:
            if json_output:
                typer.echo(json.dumps({"error": result.error.value, "detail": result.detail, "status": result.status_code}))
            else:
                console.print(f"[red]{result.error.value}:[/red] {result.detail}")
            raise typer.Exit(code=exit_code_for(result))

        if json_output:
            typer.echo(json.dumps(_json_payload(result.value), ensure_ascii=False, indent=2))
            return
        render(result.value)

    @app.command("list")
    def list_videos(  # pylint: disable=too-many-arguments
        owner: Optional[str] = typer.Option(None, "--owner", help="Only videos owned by this user ID"),
        query: Optional[str] = typer.Option(None, "--query", "-q", help="Match title or description"),
        sort_by: Optional[str] = typer.Option(None, "--sort-by", help="Field to sort on, e.g. title"),
        sort_type: Optional[str] = typer.Option(None, "--sort-type", help="'desc' for descending, anything else ascending"),
        page: int = typer.Option(1, "--page", min=1, help="1-indexed page number"),
        limit: Optional[int] = typer.Option(None, "--limit", min=1, help="Page size"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        spec = QuerySpec(
            owner_id=owner,
            text_query=query,
            sort_field=sort_by,
            sort_direction=sort_type,
            page=page,
            page_size=limit or get_settings().default_page_size,
        )
        result = OperationResult.capture(get_service().list_videos, spec)
        finish(result, json_output, lambda value: _render_page(console, value))

    @app.command("publish")
    def publish(  # pylint: disable=too-many-arguments
        video_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Video file to upload"),
        title: Optional[str] = typer.Option(None, "--title", help="Video title"),
        description: Optional[str] = typer.Option(None, "--description", help="Video description"),
        thumbnail: Optional[str] = typer.Option(None, "--thumbnail", help="URL of an already-uploaded thumbnail"),
        principal: str = typer.Option(..., "--as", envvar=PRINCIPAL_ENV, help="Acting user ID"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        staged = stage_upload(video_file, get_settings().upload_temp_dir)
        result = OperationResult.capture(
            get_service().publish_video,
            title=title,
            description=description,
            thumbnail=thumbnail,
            video_path=staged,
            owner_id=principal,
            success_status=201,
        )
        if not result.ok:
            staged.unlink(missing_ok=True)
        finish(result, json_output, lambda value: _render_video(console, value, title="Video published"))

    @app.command("show")
    def show(
        video_id: str = typer.Argument(..., help="Video ID"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        result = OperationResult.capture(get_service().get_video_detail, video_id)
        finish(result, json_output, lambda value: _render_video(console, value, title="Video"))

    @app.command("update")
    def update(  # pylint: disable=too-many-arguments
        video_id: str = typer.Argument(..., help="Video ID"),
        title: Optional[str] = typer.Option(None, "--title", help="New title"),
        description: Optional[str] = typer.Option(None, "--description", help="New description"),
        thumbnail: Optional[str] = typer.Option(None, "--thumbnail", help="URL of a replacement thumbnail"),
        principal: str = typer.Option(..., "--as", envvar=PRINCIPAL_ENV, help="Acting user ID"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        result = OperationResult.capture(
            get_service().update_video,
            video_id,
            title=title,
            description=description,
            thumbnail=thumbnail,
            acting_owner_id=principal,
        )
        finish(result, json_output, lambda value: _render_video(console, value, title="Video details updated"))

    @app.command("delete")
    def delete(
        video_id: str = typer.Argument(..., help="Video ID"),
        principal: str = typer.Option(..., "--as", envvar=PRINCIPAL_ENV, help="Acting user ID"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        result = OperationResult.capture(get_service().delete_video, video_id, acting_owner_id=principal)
        finish(result, json_output, lambda _: console.print(f"[green]Video {video_id} deleted.[/green]"))

    @app.command("toggle-publish")
    def toggle_publish(
        video_id: str = typer.Argument(..., help="Video ID"),
        principal: str = typer.Option(..., "--as", envvar=PRINCIPAL_ENV, help="Acting user ID"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        result = OperationResult.capture(get_service().toggle_publish, video_id, acting_owner_id=principal)
        finish(
            result,
            json_output,
            lambda value: console.print(f"Published: [bold]{'yes' if value.is_published else 'no'}[/bold]"),
        )

    @app.command("migrate")
    def migrate() -> None:
        """Apply pending database migrations."""

        run_migrations(console=console)


def _json_payload(value: object) -> object:
    if value is None:
        return {}
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return value


def _render_page(console: Console, page: VideoPage) -> None:
    table = Table(title=f"Videos (page {page.page}/{page.page_info.total_pages or 1}, {page.total_count} total)")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Duration", justify="right")
    table.add_column("Views", justify="right")
    table.add_column("Created")

    for video in page.items:
        created = video.created_at.isoformat(timespec="seconds") if video.created_at else "n/a"
        table.add_row(str(video.id), video.title, f"{video.duration_seconds}s", str(video.views), created)

    if not page.items:
        console.print("[yellow]No videos found.[/yellow]")
        return
    console.print(table)


def _render_video(console: Console, video: Video, *, title: str) -> None:
    lines = [
        f"[bold]{video.title}[/bold]",
        video.description,
        "",
        f"ID: {video.id}",
        f"Owner: {video.owner_id}",
        f"Video file: {video.video_file}",
        f"Thumbnail: {video.thumbnail}",
        f"Duration: {video.duration_seconds}s",
        f"Published: {'yes' if video.is_published else 'no'}",
    ]
    owner_details = getattr(video, "owner_details", None)
    if owner_details is not None:
        lines.append(f"Owner username: {owner_details.username}")
    console.print(Panel.fit("\n".join(lines), title=title, border_style="green"))


__all__ = ["CatalogExitCode", "exit_code_for", "register"]
