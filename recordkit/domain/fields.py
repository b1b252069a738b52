"""
Field declarations and schemas for record variants.

A schema is declared once per record class, validated when the class is
defined, and is read-only afterwards. Declarations use the compact tuple form
``name -> (type, allowed_values, default)``:

    STATES = {0: "New", 1: "In Progress", 2: "Resolved"}

    schema = define_schema("Alert", {
        "state": (FieldType.ENUM, STATES, 0),
        "content": (FieldType.STRUCTURED, None, {}),
    })
"""
from __future__ import annotations

import enum
import threading
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator

from recordkit.errors import SchemaViolation


class FieldType(str, enum.Enum):
    """Type tag of a declared field."""

    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING = "string"
    ENUM = "enum"
    STRUCTURED = "structured"


class FieldSpec(BaseModel):
    """
    Declaration of a single field.

    ``allowed_values`` maps each stored enum value to its display label and is
    empty for every other type. A ``None`` default makes the field nullable.
    """

    name: str = Field(..., description="Column name.")
    type: FieldType = Field(..., description="Type tag driving validation and storage coercion.")
    allowed_values: Mapping[Any, str] = Field(
        default_factory=lambda: MappingProxyType({}), description="Enum value -> label."
    )
    default: Any = Field(None, description="Value used when a record omits the field.")

    model_config = {
        "frozen": True,
        "arbitrary_types_allowed": False,
    }

    @field_validator("allowed_values", mode="after")
    @classmethod
    def _freeze_allowed_values(cls, value: Mapping[Any, str]) -> Mapping[Any, str]:
        return MappingProxyType(dict(value))

    @property
    def nullable(self) -> bool:
        return self.default is None

    def label(self, value: Any) -> str:
        return self.allowed_values.get(value, str(value))


Declaration = Union[FieldSpec, Tuple[FieldType, Optional[Mapping[Any, str]], Any]]


def _to_spec(name: str, declaration: Declaration) -> FieldSpec:
    if isinstance(declaration, FieldSpec):
        if declaration.name != name:
            raise SchemaViolation(f"field '{name}' declared with mismatched name '{declaration.name}'")
        return declaration
    try:
        field_type, allowed, default = declaration
    except (TypeError, ValueError) as exc:
        raise SchemaViolation(f"field '{name}' must be declared as (type, allowed_values, default)") from exc
    return FieldSpec(
        name=name,
        type=FieldType(field_type),
        allowed_values=dict(allowed or {}),
        default=default,
    )


def _check_spec(schema_name: str, spec: FieldSpec) -> None:
    if spec.type is FieldType.ENUM:
        if not spec.allowed_values:
            raise SchemaViolation(f"{schema_name}.{spec.name}: enum declares no allowed values")
        try:
            allowed = spec.default in spec.allowed_values
        except TypeError:
            allowed = False
        if not allowed:
            raise SchemaViolation(
                f"{schema_name}.{spec.name}: enum default {spec.default!r} "
                f"not in allowed values {sorted(spec.allowed_values, key=repr)}"
            )
    elif spec.allowed_values:
        raise SchemaViolation(f"{schema_name}.{spec.name}: allowed values are only valid for enum fields")


class Schema(Mapping[str, FieldSpec]):
    """Ordered, read-only mapping of field name to FieldSpec."""

    def __init__(self, name: str, specs: Mapping[str, FieldSpec]) -> None:
        self.name = name
        self._specs: Mapping[str, FieldSpec] = MappingProxyType(dict(specs))

    def __getitem__(self, key: str) -> FieldSpec:
        return self._specs[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def __repr__(self) -> str:
        return f"Schema({self.name!r}, fields={list(self._specs)})"

    def labels(self, field: str) -> Mapping[Any, str]:
        return self._specs[field].allowed_values

    def label(self, field: str, value: Any) -> str:
        return self._specs[field].label(value)


def define_schema(name: str, declarations: Mapping[str, Declaration]) -> Schema:
    """
    Build and validate a schema.

    Raises
    ------
    SchemaViolation
        If any declaration is malformed or an enum default falls outside its
        allowed values.
    """
    specs: Dict[str, FieldSpec] = {}
    for field_name, declaration in declarations.items():
        spec = _to_spec(field_name, declaration)
        _check_spec(name, spec)
        specs[field_name] = spec
    return Schema(name, specs)


class SchemaRegistry:
    """
    Process-wide map of record variant name to Schema.

    Written while record classes are imported, read-only afterwards.
    """

    def __init__(self) -> None:
        self._schemas: Dict[str, Schema] = {}
        self._lock = threading.Lock()

    def register(self, schema: Schema) -> Schema:
        with self._lock:
            existing = self._schemas.get(schema.name)
            if existing is not None and dict(existing) != dict(schema):
                raise SchemaViolation(f"schema '{schema.name}' is already registered with different fields")
            self._schemas[schema.name] = schema
            return schema

    def get(self, name: str) -> Schema:
        try:
            return self._schemas[name]
        except KeyError:
            raise KeyError(f"no schema registered under '{name}'") from None

    def names(self) -> list[str]:
        return sorted(self._schemas)

    def __contains__(self, name: object) -> bool:
        return name in self._schemas


registry = SchemaRegistry()


__all__ = [
    "Declaration",
    "FieldSpec",
    "FieldType",
    "Schema",
    "SchemaRegistry",
    "define_schema",
    "registry",
]
