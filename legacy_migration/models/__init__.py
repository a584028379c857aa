"""Data models for the migration application."""

from .schema import (
    TransformType,
    FieldMapping,
    TableMapping,
    MigrationMapping,
)
from .migration import (
    MigrationConfig,
    MigrationRun,
    MigrationStep,
    MigrationStatus,
    MigrationLog,
    LogEntry,
    LogSeverity,
)
from .record import (
    ParsedTable,
    MappedRecord,
    MigrationResult,
    RecordStatus,
)

__all__ = [
    "TransformType",
    "FieldMapping",
    "TableMapping",
    "MigrationMapping",
    "MigrationConfig",
    "MigrationRun",
    "MigrationStep",
    "MigrationStatus",
    "MigrationLog",
    "LogEntry",
    "LogSeverity",
    "ParsedTable",
    "MappedRecord",
    "MigrationResult",
    "RecordStatus",
]
