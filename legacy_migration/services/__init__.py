"""Service layer for the migration application."""

from .transformer import TransformEngine
from .mappings import default_mapping, load_mapping

__all__ = [
    "TransformEngine",
    "default_mapping",
    "load_mapping",
]
