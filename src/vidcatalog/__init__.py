"""Catalog of user-uploaded videos: publish, update, unpublish, delete and browse."""

__version__ = "0.1.0"
