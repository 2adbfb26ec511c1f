"""Exception hierarchy shared by the dairy suite modules."""
from __future__ import annotations


class DairySuiteError(Exception):
    """Base class for application errors."""


class DataAccessError(DairySuiteError):
    """Raised when a database round-trip fails."""


class RecordNotFoundError(DataAccessError):
    """Raised when an update or delete targets a row the owner does not have."""

    def __init__(self, table: str, record_id: str):
        super().__init__(f"No {table} row with id {record_id!r}")
        self.table = table
        self.record_id = record_id


class ValidationError(DairySuiteError):
    """Raised when model input cannot be accepted."""
