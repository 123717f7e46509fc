"""Command registration utilities for the catalog CLI."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from vidcatalog.cli.commands import videos
from vidcatalog.cli.commands.videos import ServiceFactory


def register_commands(
    app: typer.Typer,
    console: Console,
    *,
    service_factory: Optional[ServiceFactory] = None,
) -> None:
    """Attach command groups to the provided Typer application."""

    videos.register(app, console, service_factory=service_factory)


__all__ = ["register_commands"]
