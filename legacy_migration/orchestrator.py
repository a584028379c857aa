"""Migration orchestrator - coordinates the legacy dump import."""

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy.engine import Engine

from .database import create_schema, get_engine
from .exceptions import MappingInvalidError, MigrationInProgressError
from .extractors.base import BaseExtractor, ExtractionResult
from .extractors.dump_extractor import MySQLDumpExtractor
from .loaders.base import BaseLoader
from .loaders.database_loader import DatabaseLoader
from .models.migration import (
    MigrationConfig,
    MigrationLog,
    MigrationRun,
    MigrationStatus,
    MigrationStep,
)
from .models.record import ParsedTable, RecordStatus
from .models.schema import MigrationMapping, TableMapping
from .services.mappings import load_mapping
from .services.transformer import TransformEngine

logger = logging.getLogger(__name__)

# One import at a time per process; a second trigger is rejected, not queued
_RUN_LOCK = threading.Lock()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _pluralize(label: str, count: int) -> str:
    return label if count == 1 else f"{label}s"


class MigrationOrchestrator:
    """
    Orchestrates the legacy import.

    Handles:
    - Parsing the whole dump before anything is written
    - Mapping and loading each known legacy table, row by row
    - Per-run migration log and summary
    - Status checks and table previews on the destination
    """

    def __init__(
        self,
        config: MigrationConfig,
        mapping: Optional[MigrationMapping] = None,
        engine: Optional[Engine] = None,
        extractor: Optional[BaseExtractor] = None,
        loader: Optional[BaseLoader] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Migration configuration
            mapping: Table mappings (defaults to the configured or built-in mapping)
            engine: Destination engine (defaults to one built from config.database_url)
            extractor: Source extractor (defaults to a MySQL dump extractor)
            loader: Destination loader (defaults to a database loader)
        """
        self.config = config
        self.mapping = mapping or load_mapping(config.mapping_file)
        self.engine = engine or get_engine(config.database_url)
        self.extractor = extractor or MySQLDumpExtractor(config.dump_path, encoding=config.encoding)
        self.loader = loader or DatabaseLoader(self.engine, dry_run=config.dry_run)
        self._schema_ready = False

        # Runtime state
        self.run: Optional[MigrationRun] = None

    def _ensure_schema(self):
        if self.config.create_schema and not self._schema_ready:
            create_schema(self.engine)
            self._schema_ready = True

    def run_migration(self) -> MigrationRun:
        """
        Run the complete migration.

        Returns:
            MigrationRun with per-table steps and the run's log

        Raises:
            MigrationInProgressError: another run is active
            SourceUnavailableError: the dump file cannot be read
        """
        if not _RUN_LOCK.acquire(blocking=False):
            raise MigrationInProgressError("A legacy migration is already running")

        try:
            return self._run()
        finally:
            _RUN_LOCK.release()

    def _run(self) -> MigrationRun:
        run = MigrationRun(
            name=self.config.name,
            dump_path=self.config.dump_path,
            mapping_version=self.mapping.version,
            dry_run=self.config.dry_run,
        )
        self.run = run
        run.started_at = _utcnow()
        run.status = MigrationStatus.PARSING

        try:
            # Phase 1: parse the whole dump
            logger.info("=== PHASE 1: PARSING ===")
            extraction = self.extractor.extract(run.log)

            # Phase 2: map and load each known table
            logger.info("=== PHASE 2: LOADING ===")
            run.status = MigrationStatus.LOADING
            if not self.config.dry_run:
                self._ensure_schema()
            self._run_loading(run, extraction)

            run.status = MigrationStatus.COMPLETED
            logger.info("=== MIGRATION COMPLETED ===")

        except Exception as e:
            logger.error(f"Migration failed: {e}")
            run.status = MigrationStatus.FAILED
            raise

        finally:
            run.completed_at = _utcnow()
            run.update_totals()
            if self.config.report_dir:
                self._save_report(run)

        return run

    def _run_loading(self, run: MigrationRun, extraction: ExtractionResult):
        """Load every mapped legacy table in mapping order."""
        transformer = TransformEngine(now=run.started_at)

        for table_mapping in self.mapping.table_mappings:
            parsed = extraction.tables.get(table_mapping.source_table)
            if parsed is None:
                run.log.warning(f"No {table_mapping.display_label} data found")
                continue

            step = run.add_step(
                name=f"Load {table_mapping.source_table} into {table_mapping.target_table}",
                source_table=table_mapping.source_table,
                target_table=table_mapping.target_table,
            )
            self._migrate_table(parsed, table_mapping, transformer, step, run.log)

    def _migrate_table(
        self,
        parsed: ParsedTable,
        table_mapping: TableMapping,
        transformer: TransformEngine,
        step: MigrationStep,
        log: MigrationLog,
    ):
        """Map and write each row; a bad row never stops its siblings."""
        label = table_mapping.display_label
        step.status = MigrationStatus.LOADING
        step.started_at = _utcnow()
        log.info(f"Migrating {len(parsed)} {_pluralize(label, len(parsed))}")

        for index, row in enumerate(parsed.rows):
            step.records_processed += 1

            try:
                record = transformer.transform_row(row, table_mapping, index)
            except MappingInvalidError as e:
                step.records_failed += 1
                log.error(f"Error mapping {label}: {e}")
                continue
            except Exception as e:
                step.records_failed += 1
                logger.exception(f"Unexpected error mapping {label} row {index + 1}")
                log.error(f"Error mapping {label} row {index + 1}: {e}")
                continue

            try:
                result = self.loader.load_record(record)
            except Exception as e:
                step.records_failed += 1
                logger.exception(f"Unexpected error loading {label} {record.key}")
                log.error(f"Error migrating {label} {record.key}: {e}")
                continue

            if result.status == RecordStatus.LOADED:
                step.records_succeeded += 1
                log.info(f"Migrated {label}: {result.record_id}")
            elif result.status == RecordStatus.SKIPPED:
                step.records_skipped += 1
                log.info(f"Skipped duplicate {label}: {result.record_id}")
            else:
                step.records_failed += 1
                log.error(f"Error migrating {label} {result.record_id}: {result.error}")

        step.status = MigrationStatus.COMPLETED
        step.completed_at = _utcnow()
        logger.info(
            f"Loaded {table_mapping.target_table}: {step.records_succeeded} new, "
            f"{step.records_skipped} skipped, {step.records_failed} failed"
        )

    def generate_summary(self) -> Dict[str, Any]:
        """Summary of the last run's log."""
        if not self.run:
            return MigrationLog().summary()
        return self.run.summary()

    def inspect_dump(self) -> ExtractionResult:
        """Parse the dump without loading anything."""
        return self.extractor.extract(MigrationLog())

    def migration_status(self) -> Dict[str, Any]:
        """Which migrated tables exist in the destination."""
        tables = self.loader.list_tables(self.config.status_table_prefix)
        return {
            "migration_tables_exist": len(tables) > 0,
            "tables": tables,
        }

    def preview_table(self, table_name: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """First rows of a destination table."""
        return self.loader.preview_table(table_name, limit or self.config.preview_limit)

    def _save_report(self, run: MigrationRun):
        """Save the migration report."""
        report_dir = Path(self.config.report_dir)
        report_dir.mkdir(parents=True, exist_ok=True)
        filepath = report_dir / f"migration_report_{run.started_at.strftime('%Y%m%d_%H%M%S')}.json"
        with open(filepath, 'w') as f:
            json.dump(run.to_dict(), f, indent=2, default=str)
        logger.info(f"Saved migration report to {filepath}")
