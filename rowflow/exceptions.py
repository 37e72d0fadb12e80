"""Error hierarchy for RowFlow.

Connection opening is the only operation retried automatically. Every other
error faults the owning stage or task and propagates to the caller waiting on
it.
"""

from typing import Optional


class RowflowError(Exception):
    """Base exception for all RowFlow errors."""

    def __init__(self, message: str, stage_name: Optional[str] = None):
        self.message = message
        self.stage_name = stage_name
        if stage_name:
            super().__init__(f"[{stage_name}] {message}")
        else:
            super().__init__(message)


class DbConnectionError(RowflowError, ConnectionError):
    """Raised when a connection cannot be opened after all login attempts."""

    def __init__(self, message: str, attempts: int = 0):
        self.attempts = attempts
        super().__init__(message)


class UnsupportedFeatureError(RowflowError):
    """Raised when a dialect cannot express the requested feature."""

    def __init__(self, message: str, dialect: Optional[object] = None):
        self.dialect = dialect
        super().__init__(message)


class SchemaMismatchError(RowflowError):
    """Raised when a column mapping references columns absent from a table."""

    def __init__(
        self,
        message: str,
        table_name: Optional[str] = None,
        missing_columns: Optional[list] = None,
        stage_name: Optional[str] = None,
    ):
        self.table_name = table_name
        self.missing_columns = missing_columns or []
        super().__init__(message, stage_name)


class SourceReadError(RowflowError):
    """Raised when an external feed cannot be opened or fails mid-read."""


class BulkWriteError(RowflowError):
    """Raised when a bulk insert command fails."""

    def __init__(
        self,
        message: str,
        table_name: Optional[str] = None,
        row_count: int = 0,
        stage_name: Optional[str] = None,
    ):
        self.table_name = table_name
        self.row_count = row_count
        super().__init__(message, stage_name)


class TableExistsError(RowflowError):
    """Raised by CreateTableTask when asked to fail on an existing table."""

    def __init__(self, table_name: str):
        self.table_name = table_name
        super().__init__(f"Table {table_name} already exists!")


class UpstreamFaultedError(RowflowError):
    """Raised on a stage whose input was cut short by an upstream fault."""

    def __init__(self, stage_name: str, origin_stage: str, cause: BaseException):
        self.origin_stage = origin_stage
        self.cause = cause
        super().__init__(
            f"Upstream stage '{origin_stage}' faulted: {cause}", stage_name
        )


class PipelineError(RowflowError):
    """Single error reported for a failed pipeline run."""

    def __init__(self, stage_name: str, cause: BaseException):
        self.cause = cause
        super().__init__(f"Pipeline failed: {cause}", stage_name)
