"""
Error taxonomy for catalog write operations.

`actionable` errors are caused by the caller's input and can be shown to an
admin as-is ("category is required"); the rest are operational failures the
UI should present as "try again later".
"""
from __future__ import annotations


class CatalogError(Exception):
    kind = "internal"
    actionable = False

    def __init__(self, message: str = "", **details):
        super().__init__(message or self.kind)
        self.message = message or self.kind
        self.details = details

    def as_dict(self) -> dict:
        return {
            "success": False,
            "error": self.kind,
            "message": self.message,
            "actionable": self.actionable,
        }


class ValidationError(CatalogError):
    kind = "validation_error"
    actionable = True


class InvalidReference(CatalogError):
    kind = "invalid_reference"
    actionable = True


class NotFound(CatalogError):
    kind = "not_found"
    actionable = True


class Unauthorized(CatalogError):
    kind = "unauthorized"
    actionable = True


class DuplicateKey(CatalogError):
    kind = "duplicate_key"


class SchemaMismatch(CatalogError):
    """The deployed schema lacks a column the code expects."""

    kind = "schema_mismatch"

    def __init__(self, message: str = "", *, table: str = "", column: str = "", **details):
        super().__init__(message, table=table, column=column, **details)
        self.table = table
        self.column = column


class InternalError(CatalogError):
    kind = "internal"
