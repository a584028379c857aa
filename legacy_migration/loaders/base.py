"""Base loader interface for destination stores."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List
import logging

from ..models.record import MappedRecord, MigrationResult

logger = logging.getLogger(__name__)


class BaseLoader(ABC):
    """
    Base class for data loaders.

    Loaders write mapped records one at a time and answer the status
    and preview queries of the HTTP boundary.
    """

    def __init__(self, dry_run: bool = False):
        """
        Initialize the loader.

        Args:
            dry_run: If True, simulate without making changes
        """
        self.dry_run = dry_run

    @abstractmethod
    def load_record(self, record: MappedRecord) -> MigrationResult:
        """
        Load a single record to the destination.

        Duplicate natural keys are reported as skipped, never as failures.

        Args:
            record: Mapped record to load

        Returns:
            MigrationResult indicating loaded/skipped/failed
        """
        pass

    @abstractmethod
    def list_tables(self, prefix: str = "") -> List[str]:
        """Names of destination tables starting with ``prefix``."""
        pass

    @abstractmethod
    def preview_table(self, table_name: str, limit: int = 10) -> List[Dict[str, Any]]:
        """Up to ``limit`` rows of an existing destination table."""
        pass

    def validate_connection(self) -> bool:
        """Validate the connection to the destination."""
        return True
