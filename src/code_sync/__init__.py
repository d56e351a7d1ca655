"""Continuously mirror a local file tree into a MongoDB collection."""

__version__ = "1.0.0"
