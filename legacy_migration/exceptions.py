"""Exceptions raised by the migration pipeline."""

from typing import Optional


class MigrationError(Exception):
    """Base exception for migration operations."""
    pass


class SourceUnavailableError(MigrationError):
    """The dump file is missing or cannot be read."""

    def __init__(self, path: str, reason: str = "not found"):
        self.path = path
        self.reason = reason
        super().__init__(f"Legacy dump {path} unavailable: {reason}")


class ParseMalformedError(MigrationError):
    """A dump statement does not match the expected grammar."""

    def __init__(self, message: str, statement: Optional[str] = None, rows: Optional[list] = None):
        self.statement = statement
        self.rows = rows if rows is not None else []
        super().__init__(message)


class MappingInvalidError(MigrationError):
    """A raw row cannot be mapped to the target shape."""

    def __init__(self, message: str, row_index: Optional[int] = None):
        self.row_index = row_index
        super().__init__(message)


class PersistConflictError(MigrationError):
    """A unique constraint turned an insert into a no-op.

    Raised and handled inside DatabaseLoader; callers see a skipped result.
    """
    pass


class PersistFailureError(MigrationError):
    """The destination store rejected an insert.

    Raised and handled inside DatabaseLoader; callers see a failed result.
    """
    pass


class TableNotFoundError(MigrationError):
    """A previewed table does not exist in the destination store."""

    def __init__(self, table_name: str):
        self.table_name = table_name
        super().__init__(f"Table not found: {table_name}")


class MigrationInProgressError(MigrationError):
    """Another migration run holds the run lock."""
    pass
