"""
recordkit - schema-driven records over a single relational table.

This package provides:

- Typed field declarations with defaults and enum constraints
- A storage codec for numbers, booleans, strings, enums and JSON documents
- Record classes validated on write and hydrated from storage rows
- A predicate builder turning filter maps into parameterized WHERE clauses
- Finders running single-table, grouped and count queries over PostgreSQL
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from recordkit.config import Settings, get_settings
from recordkit.domain import (
    Alert,
    AlertFinder,
    AlertResolution,
    AlertState,
    FieldSpec,
    FieldType,
    Model,
    Schema,
    define_schema,
    registry,
)
from recordkit.errors import (
    DatabaseError,
    FieldValidationError,
    NotFoundError,
    RecordkitError,
    SchemaViolation,
    UnknownFieldError,
)
from recordkit.query import Compare, Comparator, Direction, Equals, In, QueryRequest, build_where
from recordkit.query.finder import ModelFinder
from recordkit.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Schema and records
    "FieldSpec",
    "FieldType",
    "Model",
    "Schema",
    "define_schema",
    "registry",
    # Queries
    "Compare",
    "Comparator",
    "Direction",
    "Equals",
    "In",
    "ModelFinder",
    "QueryRequest",
    "build_where",
    # Alerts
    "Alert",
    "AlertFinder",
    "AlertResolution",
    "AlertState",
    # Errors
    "DatabaseError",
    "FieldValidationError",
    "NotFoundError",
    "RecordkitError",
    "SchemaViolation",
    "UnknownFieldError",
    # Logging
    "configure_logging",
    "get_logger",
]
