"""Utility helpers shared across catalog modules."""
