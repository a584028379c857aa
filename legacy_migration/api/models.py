"""Pydantic models for API responses."""

from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class LogEntryResponse(BaseModel):
    timestamp: datetime
    message: str
    severity: str


class MigrationSummaryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_operations: int = Field(alias="totalOperations")
    error_count: int = Field(alias="errorCount")
    warning_count: int = Field(alias="warningCount")
    success_count: int = Field(alias="successCount")
    log: List[LogEntryResponse] = Field(default_factory=list)


class MigrationStepResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source_table: str = Field(alias="sourceTable")
    target_table: str = Field(alias="targetTable")
    status: str
    records_processed: int = Field(alias="recordsProcessed")
    records_succeeded: int = Field(alias="recordsSucceeded")
    records_skipped: int = Field(alias="recordsSkipped")
    records_failed: int = Field(alias="recordsFailed")


class MigrationRunResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    run_id: Optional[str] = Field(default=None, alias="runId")
    status: Optional[str] = None
    dry_run: bool = Field(default=False, alias="dryRun")
    summary: MigrationSummaryResponse
    steps: List[MigrationStepResponse] = Field(default_factory=list)


class MigrationStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    migration_tables_exist: bool = Field(alias="migrationTablesExist")
    tables: List[str] = Field(default_factory=list)


class TablePreviewResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    table_name: str = Field(alias="tableName")
    data: List[Dict[str, Any]] = Field(default_factory=list)
    count: int = 0
