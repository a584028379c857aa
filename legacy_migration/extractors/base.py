"""Base extractor interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from datetime import datetime
from pathlib import Path
import logging

from ..exceptions import SourceUnavailableError
from ..models.migration import MigrationLog
from ..models.record import ParsedTable

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """Result of an extraction operation."""
    source_path: str
    tables: Dict[str, ParsedTable] = field(default_factory=dict)
    statements_seen: int = 0
    statements_skipped: int = 0
    statements_malformed: int = 0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def total_rows(self) -> int:
        return sum(len(t) for t in self.tables.values())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "source_path": self.source_path,
            "tables": {name: len(table) for name, table in self.tables.items()},
            "total_rows": self.total_rows,
            "statements_seen": self.statements_seen,
            "statements_skipped": self.statements_skipped,
            "statements_malformed": self.statements_malformed,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
        }


class BaseExtractor(ABC):
    """
    Base class for legacy data extractors.

    Extractors read an external artifact once and rebuild the legacy
    tables as ParsedTable objects. They never mutate the source.
    """

    def __init__(self, source_path: str, encoding: str = "utf-8"):
        """
        Initialize the extractor.

        Args:
            source_path: Path of the legacy artifact
            encoding: Text encoding of the artifact
        """
        self.source_path = source_path
        self.encoding = encoding

    @abstractmethod
    def extract(self, log: MigrationLog) -> ExtractionResult:
        """
        Extract all tables from the source.

        Args:
            log: Migration log of the current run

        Returns:
            ExtractionResult containing the parsed tables
        """
        pass

    def read_source(self, log: MigrationLog) -> str:
        """Read the whole source as text, failing the run if it is unavailable."""
        path = Path(self.source_path)

        if not path.is_file():
            log.error(f"Legacy dump file not found: {self.source_path}")
            raise SourceUnavailableError(self.source_path)

        try:
            return path.read_text(encoding=self.encoding)
        except UnicodeDecodeError as e:
            log.error(f"Legacy dump is not valid {self.encoding}: {e}")
            raise SourceUnavailableError(self.source_path, f"not valid {self.encoding}") from e
        except OSError as e:
            log.error(f"Error reading legacy dump: {e}")
            raise SourceUnavailableError(self.source_path, str(e)) from e

    def validate_source(self) -> List[str]:
        """
        Validate the source configuration.

        Returns:
            List of validation error messages
        """
        errors = []
        path = Path(self.source_path)

        if not self.source_path:
            errors.append("Source path is required")
        elif not path.exists():
            errors.append(f"File not found: {self.source_path}")
        elif path.suffix.lower() != ".sql":
            errors.append(f"Unexpected file format: {path.suffix}")

        return errors
