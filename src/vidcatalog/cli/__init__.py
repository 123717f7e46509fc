"""Command-line interface package for the video catalog."""

from vidcatalog.cli.main import CLIApplication, create_app

__all__ = ["CLIApplication", "create_app"]
