"""Data extractors for legacy sources."""

from .base import BaseExtractor, ExtractionResult
from .dump_extractor import MySQLDumpExtractor, parse_dump, parse_values, split_statements

__all__ = [
    "BaseExtractor",
    "ExtractionResult",
    "MySQLDumpExtractor",
    "parse_dump",
    "parse_values",
    "split_statements",
]
