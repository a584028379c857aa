"""Migration execution models."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from enum import Enum
from datetime import datetime, timezone
import logging
import os
import uuid

logger = logging.getLogger(__name__)

DEFAULT_DUMP_PATH = "attached_assets/legacy_dump.sql"
DEFAULT_DATABASE_URL = "sqlite:///legacy_migration.db"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MigrationStatus(str, Enum):
    """Status of a migration run."""
    PENDING = "pending"
    PARSING = "parsing"
    LOADING = "loading"
    COMPLETED = "completed"
    FAILED = "failed"


class LogSeverity(str, Enum):
    """Severity of a migration log entry."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    LogSeverity.INFO: logging.INFO,
    LogSeverity.WARNING: logging.WARNING,
    LogSeverity.ERROR: logging.ERROR,
}


@dataclass
class LogEntry:
    """A single timestamped migration log entry."""
    message: str
    severity: LogSeverity = LogSeverity.INFO
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "message": self.message,
            "severity": self.severity.value,
        }


class MigrationLog:
    """
    Append-only log owned by one migration run.

    Entries are mirrored to the module logger so a run is visible in the
    process logs as well as in the returned summary.
    """

    def __init__(self):
        self._entries: List[LogEntry] = []

    def log(self, message: str, severity: LogSeverity = LogSeverity.INFO) -> LogEntry:
        entry = LogEntry(message=message, severity=LogSeverity(severity))
        self._entries.append(entry)
        logger.log(_LOG_LEVELS[entry.severity], message)
        return entry

    def info(self, message: str) -> LogEntry:
        return self.log(message, LogSeverity.INFO)

    def warning(self, message: str) -> LogEntry:
        return self.log(message, LogSeverity.WARNING)

    def error(self, message: str) -> LogEntry:
        return self.log(message, LogSeverity.ERROR)

    @property
    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def count(self, severity: LogSeverity) -> int:
        return sum(1 for e in self._entries if e.severity == severity)

    def __len__(self) -> int:
        return len(self._entries)

    def summary(self) -> Dict[str, Any]:
        """Counts of log entries per severity plus the entries themselves."""
        return {
            "total_operations": len(self._entries),
            "error_count": self.count(LogSeverity.ERROR),
            "warning_count": self.count(LogSeverity.WARNING),
            "success_count": self.count(LogSeverity.INFO),
            "log": [e.to_dict() for e in self._entries],
        }


@dataclass
class MigrationStep:
    """Loading of one legacy table."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    source_table: str = ""
    target_table: str = ""
    status: MigrationStatus = MigrationStatus.PENDING
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    records_processed: int = 0
    records_succeeded: int = 0
    records_failed: int = 0
    records_skipped: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "source_table": self.source_table,
            "target_table": self.target_table,
            "status": self.status.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "records_processed": self.records_processed,
            "records_succeeded": self.records_succeeded,
            "records_failed": self.records_failed,
            "records_skipped": self.records_skipped,
        }

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None


@dataclass
class MigrationRun:
    """A complete migration run."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    status: MigrationStatus = MigrationStatus.PENDING
    dump_path: str = ""
    mapping_version: str = ""
    dry_run: bool = False

    # Timing
    created_at: datetime = field(default_factory=_utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    steps: List[MigrationStep] = field(default_factory=list)
    log: MigrationLog = field(default_factory=MigrationLog)

    # Statistics
    total_records_processed: int = 0
    total_records_succeeded: int = 0
    total_records_failed: int = 0
    total_records_skipped: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "dump_path": self.dump_path,
            "mapping_version": self.mapping_version,
            "dry_run": self.dry_run,
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "steps": [s.to_dict() for s in self.steps],
            "total_records_processed": self.total_records_processed,
            "total_records_succeeded": self.total_records_succeeded,
            "total_records_failed": self.total_records_failed,
            "total_records_skipped": self.total_records_skipped,
            "summary": self.summary(),
        }

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def add_step(self, name: str, source_table: str, target_table: str) -> MigrationStep:
        """Add a new step to the migration."""
        step = MigrationStep(name=name, source_table=source_table, target_table=target_table)
        self.steps.append(step)
        return step

    def get_step(self, source_table: str) -> Optional[MigrationStep]:
        for step in self.steps:
            if step.source_table == source_table:
                return step
        return None

    def update_totals(self) -> None:
        """Update total statistics from steps."""
        self.total_records_processed = sum(s.records_processed for s in self.steps)
        self.total_records_succeeded = sum(s.records_succeeded for s in self.steps)
        self.total_records_failed = sum(s.records_failed for s in self.steps)
        self.total_records_skipped = sum(s.records_skipped for s in self.steps)

    def summary(self) -> Dict[str, Any]:
        return self.log.summary()


def _env_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass
class MigrationConfig:
    """Configuration for a migration."""
    name: str = "legacy-import"
    dump_path: str = DEFAULT_DUMP_PATH
    database_url: str = DEFAULT_DATABASE_URL
    encoding: str = "utf-8"

    # Mapping
    mapping_file: Optional[str] = None

    # Execution options
    dry_run: bool = False
    create_schema: bool = True

    # Status and preview
    status_table_prefix: str = "legacy_"
    preview_limit: int = 10

    # Output
    report_dir: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "dump_path": self.dump_path,
            "database_url": self.database_url,
            "encoding": self.encoding,
            "mapping_file": self.mapping_file,
            "dry_run": self.dry_run,
            "create_schema": self.create_schema,
            "status_table_prefix": self.status_table_prefix,
            "preview_limit": self.preview_limit,
            "report_dir": self.report_dir,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationConfig":
        """Create from dictionary representation."""
        return cls(
            name=data.get("name", "legacy-import"),
            dump_path=data.get("dump_path", DEFAULT_DUMP_PATH),
            database_url=data.get("database_url", DEFAULT_DATABASE_URL),
            encoding=data.get("encoding", "utf-8"),
            mapping_file=data.get("mapping_file"),
            dry_run=data.get("dry_run", False),
            create_schema=data.get("create_schema", True),
            status_table_prefix=data.get("status_table_prefix", "legacy_"),
            preview_limit=data.get("preview_limit", 10),
            report_dir=data.get("report_dir"),
        )

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "MigrationConfig":
        """Create from LEGACY_* / DATABASE_URL environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            dump_path=env.get("LEGACY_DUMP_PATH", DEFAULT_DUMP_PATH),
            database_url=env.get("DATABASE_URL", DEFAULT_DATABASE_URL),
            mapping_file=env.get("LEGACY_MAPPING_FILE") or None,
            dry_run=_env_flag(env.get("LEGACY_DRY_RUN")),
            report_dir=env.get("LEGACY_REPORT_DIR") or None,
        )
