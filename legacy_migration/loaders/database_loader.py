"""SQLAlchemy loader writing mapped records to a relational store."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import MetaData, Table, inspect, select, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .base import BaseLoader
from ..database import metadata
from ..exceptions import PersistConflictError, PersistFailureError, TableNotFoundError
from ..models.record import MappedRecord, MigrationResult, RecordStatus

logger = logging.getLogger(__name__)

_INSERT_BUILDERS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class DatabaseLoader(BaseLoader):
    """
    Loader issuing one ``INSERT ... ON CONFLICT DO NOTHING`` per record.

    Every insert runs in its own transaction so one rejected row leaves
    the connection usable for the next. Records whose natural key already
    exists come back as skipped, which makes reruns safe.
    """

    def __init__(self, engine: Engine, dry_run: bool = False):
        """
        Initialize the database loader.

        Args:
            engine: Engine bound to the destination store
            dry_run: If True, map and report without writing
        """
        super().__init__(dry_run)
        dialect = engine.dialect.name
        if dialect not in _INSERT_BUILDERS:
            raise ValueError(f"Unsupported destination dialect: {dialect}")

        self.engine = engine
        self._insert = _INSERT_BUILDERS[dialect]
        self._reflected: Dict[str, Table] = {}

    def _table(self, name: str) -> Table:
        """Known destination table, or a reflected one for custom mappings."""
        if name in metadata.tables:
            return metadata.tables[name]
        if name not in self._reflected:
            self._reflected[name] = Table(name, MetaData(), autoload_with=self.engine)
        return self._reflected[name]

    def _execute_insert(self, record: MappedRecord) -> None:
        try:
            statement = self._insert(self._table(record.target_table)).values(**record.data)
            if record.conflict_columns:
                statement = statement.on_conflict_do_nothing(index_elements=record.conflict_columns)

            with self.engine.begin() as conn:
                result = conn.execute(statement)
        except SQLAlchemyError as e:
            reason = getattr(e, "orig", None) or e
            raise PersistFailureError(f"{record.target_table}: {reason}") from e

        if result.rowcount == 0:
            raise PersistConflictError(f"{record.target_table} already has {record.key}")

    def load_record(self, record: MappedRecord) -> MigrationResult:
        """Insert one record, reporting duplicates as skipped."""
        if self.dry_run:
            return MigrationResult(
                record_id=record.key,
                status=RecordStatus.LOADED,
                loaded_at=datetime.now(timezone.utc),
            )

        try:
            self._execute_insert(record)
        except PersistConflictError as e:
            logger.debug(f"Duplicate skipped: {e}")
            return MigrationResult(
                record_id=record.key,
                status=RecordStatus.SKIPPED,
                error=str(e),
                error_code="persist_conflict",
            )
        except PersistFailureError as e:
            return MigrationResult(
                record_id=record.key,
                status=RecordStatus.FAILED,
                error=str(e),
                error_code="persist_failure",
            )

        return MigrationResult(
            record_id=record.key,
            status=RecordStatus.LOADED,
            loaded_at=datetime.now(timezone.utc),
        )

    def list_tables(self, prefix: str = "") -> List[str]:
        """Destination tables whose name starts with ``prefix``."""
        names = inspect(self.engine).get_table_names()
        return sorted(name for name in names if name.startswith(prefix))

    def preview_table(self, table_name: str, limit: int = 10) -> List[Dict[str, Any]]:
        """Return up to ``limit`` rows of an existing table."""
        if table_name not in inspect(self.engine).get_table_names():
            raise TableNotFoundError(table_name)

        table = Table(table_name, MetaData(), autoload_with=self.engine)
        with self.engine.connect() as conn:
            result = conn.execute(select(table).limit(limit))
            return [dict(row._mapping) for row in result]

    def validate_connection(self) -> bool:
        """Validate connection to the destination."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Destination connection validation failed: {e}")
            return False
