"""Persistence backends for review state."""
from .database import SqliteBackend
from .files import JsonFileBackend

__all__ = ["JsonFileBackend", "SqliteBackend"]
