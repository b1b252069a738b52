"""
Exception taxonomy for recordkit.

Schema problems are fatal and surface while record classes are being defined.
Setter and filter rejections are ``ValueError`` subclasses raised at the call
site. Missing rows and backend failures propagate unchanged to finder callers.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


class RecordkitError(Exception):
    """Base class for every error raised by recordkit."""


class SchemaViolation(RecordkitError):
    """A schema declaration is inconsistent (e.g. an enum default outside its allowed set)."""


class FieldValidationError(RecordkitError, ValueError):
    """A value was rejected by a field's type or allowed-value constraint."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


class UnknownFieldError(FieldValidationError):
    """A field or filter key does not exist in the schema."""

    def __init__(self, field: str, schema_name: str = "") -> None:
        where = f" in schema '{schema_name}'" if schema_name else ""
        super().__init__(field, f"unknown field{where}")


class NotFoundError(RecordkitError, LookupError):
    """No eligible row exists for the requested primary key."""

    def __init__(self, model: str, pkey: Any) -> None:
        super().__init__(f"{model} {pkey!r} not found")
        self.model = model
        self.pkey = pkey


class DatabaseError(RecordkitError):
    """
    The storage backend failed to execute a statement.

    The original driver exception is chained as ``__cause__``.
    """

    def __init__(self, statement: str, params: Optional[Sequence[Any]] = None, message: str = "") -> None:
        detail = message or "statement failed"
        super().__init__(f"{detail}: {statement}")
        self.statement = statement
        self.params = list(params or [])


# Aliases matching the vocabulary used by callers of the finder layer.
NotFound = NotFoundError
BackendFailure = DatabaseError

__all__ = [
    "BackendFailure",
    "DatabaseError",
    "FieldValidationError",
    "NotFound",
    "NotFoundError",
    "RecordkitError",
    "SchemaViolation",
    "UnknownFieldError",
]
