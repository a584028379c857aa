"""Data loaders for destination stores."""

from .base import BaseLoader
from .database_loader import DatabaseLoader

__all__ = [
    "BaseLoader",
    "DatabaseLoader",
]
