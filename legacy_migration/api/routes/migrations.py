"""Legacy import, status and preview endpoints."""

import logging
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError

from ..models import (
    MigrationRunResponse,
    MigrationStatusResponse,
    MigrationStepResponse,
    MigrationSummaryResponse,
    TablePreviewResponse,
)
from ...exceptions import (
    MigrationError,
    MigrationInProgressError,
    SourceUnavailableError,
    TableNotFoundError,
)
from ...models.migration import MigrationConfig
from ...orchestrator import MigrationOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache(maxsize=1)
def get_orchestrator() -> MigrationOrchestrator:
    """Process-wide orchestrator configured from the environment."""
    return MigrationOrchestrator(MigrationConfig.from_env())


@router.post("/import-legacy-data", response_model=MigrationRunResponse)
def import_legacy_data(orchestrator: MigrationOrchestrator = Depends(get_orchestrator)):
    """Parse the legacy dump and load every known table."""
    try:
        run = orchestrator.run_migration()
    except SourceUnavailableError as e:
        detail = "Legacy database file not found" if e.reason == "not found" else str(e)
        raise HTTPException(status_code=400, detail=detail)
    except MigrationInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (MigrationError, SQLAlchemyError) as e:
        logger.error(f"Legacy import failed: {e}")
        raise HTTPException(status_code=500, detail=f"Migration failed: {e}")

    return MigrationRunResponse(
        success=True,
        message="Legacy data migration completed",
        run_id=run.id,
        status=run.status.value,
        dry_run=run.dry_run,
        summary=MigrationSummaryResponse(**run.summary()),
        steps=[
            MigrationStepResponse(
                source_table=step.source_table,
                target_table=step.target_table,
                status=step.status.value,
                records_processed=step.records_processed,
                records_succeeded=step.records_succeeded,
                records_skipped=step.records_skipped,
                records_failed=step.records_failed,
            )
            for step in run.steps
        ],
    )


@router.get("/migration-status", response_model=MigrationStatusResponse)
def migration_status(orchestrator: MigrationOrchestrator = Depends(get_orchestrator)):
    """Report which migrated tables exist."""
    try:
        status = orchestrator.migration_status()
    except SQLAlchemyError as e:
        raise HTTPException(status_code=500, detail=f"Failed to check migration status: {e}")

    return MigrationStatusResponse(
        migration_tables_exist=status["migration_tables_exist"],
        tables=status["tables"],
    )


@router.get("/preview-legacy/{table_name}", response_model=TablePreviewResponse)
def preview_legacy(
    table_name: str,
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    orchestrator: MigrationOrchestrator = Depends(get_orchestrator),
):
    """Return the first rows of a migrated table."""
    try:
        rows = orchestrator.preview_table(table_name, limit)
    except TableNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SQLAlchemyError as e:
        raise HTTPException(status_code=500, detail=f"Failed to preview {table_name}: {e}")

    return TablePreviewResponse(table_name=table_name, data=rows, count=len(rows))
