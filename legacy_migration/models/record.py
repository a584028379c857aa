"""Record models for migration data."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from enum import Enum
from datetime import datetime, timezone


class RecordStatus(str, Enum):
    """Outcome of a single legacy row."""
    PENDING = "pending"
    LOADED = "loaded"
    SKIPPED = "skipped"
    FAILED = "failed"


RawRow = List[Optional[str]]


@dataclass
class ParsedTable:
    """A legacy table reconstructed from the dump, rows kept in dump order."""
    name: str
    columns: List[str] = field(default_factory=list)
    rows: List[RawRow] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def to_dict(self, limit: Optional[int] = None) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        rows = self.rows if limit is None else self.rows[:limit]
        return {
            "name": self.name,
            "columns": self.columns,
            "row_count": len(self.rows),
            "rows": rows,
        }

    def row_as_dict(self, index: int) -> Dict[str, Optional[str]]:
        """Pair a row with the column names, falling back to positions."""
        row = self.rows[index]
        names = self.columns if len(self.columns) == len(row) else [str(i) for i in range(len(row))]
        return dict(zip(names, row))


@dataclass
class MappedRecord:
    """A legacy row translated to the target schema."""
    target_table: str
    data: Dict[str, Any]
    source_table: str
    source_index: int
    conflict_columns: List[str] = field(default_factory=list)
    mapped_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def key(self) -> str:
        """Human-readable natural key used in log messages."""
        values = [str(self.data.get(c)) for c in self.conflict_columns if self.data.get(c) is not None]
        return ", ".join(values) if values else f"row {self.source_index + 1}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "target_table": self.target_table,
            "data": {
                k: v.isoformat() if isinstance(v, datetime) else v
                for k, v in self.data.items()
            },
            "source_table": self.source_table,
            "source_index": self.source_index,
            "mapped_at": self.mapped_at.isoformat(),
        }


@dataclass
class MigrationResult:
    """Result of attempting to load a record to the target."""
    record_id: str
    status: RecordStatus = RecordStatus.PENDING
    error: Optional[str] = None
    error_code: Optional[str] = None
    loaded_at: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return self.status == RecordStatus.LOADED

    @property
    def skipped(self) -> bool:
        return self.status == RecordStatus.SKIPPED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "record_id": self.record_id,
            "status": self.status.value,
            "error": self.error,
            "error_code": self.error_code,
            "loaded_at": self.loaded_at.isoformat() if self.loaded_at else None,
        }
