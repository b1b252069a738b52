"""
Schema-bound records.

Subclasses declare ``table``, ``pkey`` and ``fields``; the schema is built and
validated when the class is defined and registered process-wide under the
class name. Every variant also carries the housekeeping fields ``archived``,
``create_date`` and ``update_date``.

    class Note(Model):
        table = "notes"
        pkey = "note_id"
        fields = {
            "body": (FieldType.STRING, None, ""),
            "meta": (FieldType.STRUCTURED, None, {}),
        }

Values supplied by callers are validated on write. Rows coming back from
storage go through ``deserialize`` and are not re-validated, so rows holding a
since-retired enum value still load.
"""
from __future__ import annotations

import copy
import math
import time
from collections.abc import Mapping as MappingABC
from typing import Any, ClassVar, Dict, Mapping, Optional, Type, TypeVar

from recordkit.domain.codec import StorageScalar, decode_row, encode_row
from recordkit.domain.fields import Declaration, FieldSpec, FieldType, Schema, define_schema, registry
from recordkit.errors import FieldValidationError, UnknownFieldError
from recordkit.infrastructure.backend import StorageBackend, default_backend
from recordkit.query.builder import generate_insert, generate_update

M = TypeVar("M", bound="Model")

HOUSEKEEPING_FIELDS: Dict[str, Declaration] = {
    "archived": (FieldType.BOOLEAN, None, False),
    "create_date": (FieldType.NUMBER, None, 0),
    "update_date": (FieldType.NUMBER, None, 0),
}


_JSON_SCALARS = (str, int, float, bool)


def _json_value(field: str, value: Any, path: str) -> Any:
    """
    Copy ``value`` as plain JSON data: str-keyed dicts, lists and JSON scalars.

    Tuples become lists so the stored form reads back equal.
    """
    if value is None or isinstance(value, _JSON_SCALARS):
        if isinstance(value, float) and not math.isfinite(value):
            raise FieldValidationError(field, f"{path}: {value!r} has no JSON representation")
        return value
    if isinstance(value, MappingABC):
        out: Dict[str, Any] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise FieldValidationError(field, f"{path}: mapping keys must be strings, got {key!r}")
            out[key] = _json_value(field, item, f"{path}.{key}")
        return out
    if isinstance(value, (list, tuple)):
        return [_json_value(field, item, f"{path}[{index}]") for index, item in enumerate(value)]
    raise FieldValidationError(field, f"{path}: {type(value).__name__} has no JSON representation")


def validate_value(spec: FieldSpec, value: Any) -> Any:
    """
    Check ``value`` against ``spec`` and return it in its canonical in-memory form.

    Raises
    ------
    FieldValidationError
        If the value has the wrong type or is not an allowed enum value.
    """
    if value is None:
        if spec.nullable:
            return None
        raise FieldValidationError(spec.name, "may not be None")

    if spec.type is FieldType.NUMBER:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise FieldValidationError(spec.name, f"expected a number, got {type(value).__name__}")
        return value
    if spec.type is FieldType.BOOLEAN:
        if not isinstance(value, (bool, int)):
            raise FieldValidationError(spec.name, f"expected a boolean, got {type(value).__name__}")
        return bool(value)
    if spec.type is FieldType.STRING:
        if not isinstance(value, str):
            raise FieldValidationError(spec.name, f"expected a string, got {type(value).__name__}")
        return value
    if spec.type is FieldType.ENUM:
        try:
            allowed = value in spec.allowed_values or value == spec.default
        except TypeError:
            allowed = False
        if not allowed:
            raise FieldValidationError(
                spec.name, f"{value!r} is not one of {sorted(spec.allowed_values, key=repr)}"
            )
        return value
    if not isinstance(value, (MappingABC, list, tuple)):
        raise FieldValidationError(spec.name, f"expected a mapping or list, got {type(value).__name__}")
    return _json_value(spec.name, value, "$")


class Model:
    """Base class for schema-bound records."""

    table: ClassVar[str]
    pkey: ClassVar[str] = "id"
    fields: ClassVar[Mapping[str, Declaration]] = {}
    schema: ClassVar[Schema]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "fields" in cls.__dict__:
            cls.schema = registry.register(
                define_schema(cls.__name__, {**HOUSEKEEPING_FIELDS, **cls.fields})
            )

    def __init__(self, data: Optional[Mapping[str, Any]] = None) -> None:
        self._id: Optional[int] = None
        self._values: Dict[str, Any] = {
            name: copy.deepcopy(spec.default) for name, spec in self.schema.items()
        }
        if data:
            self.update(data)

    # Typed access

    @property
    def id(self) -> Optional[int]:
        return self._id

    def is_new(self) -> bool:
        return self._id is None

    def _spec(self, name: str) -> FieldSpec:
        try:
            return self.schema[name]
        except KeyError:
            raise UnknownFieldError(name, self.schema.name) from None

    def get(self, name: str) -> Any:
        self._spec(name)
        return self._values[name]

    def set(self, name: str, value: Any) -> None:
        self._values[name] = validate_value(self._spec(name), value)

    def update(self, data: Mapping[str, Any]) -> None:
        """Set several fields; a pkey entry sets the id."""
        for name, value in data.items():
            if name == self.pkey:
                self._id = None if value is None else int(value)
            else:
                self.set(name, value)

    def __getitem__(self, name: str) -> Any:
        return self.get(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def __contains__(self, name: object) -> bool:
        return name in self.schema

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Model) or type(other) is not type(self):
            return NotImplemented
        return self._id == other._id and self._values == other._values

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.pkey}={self._id!r})"

    def to_dict(self) -> Dict[str, Any]:
        """Typed values keyed by field name, with the primary key first."""
        out: Dict[str, Any] = {self.pkey: self._id}
        out.update(copy.deepcopy(self._values))
        return out

    # Storage round trip

    def serialize(self) -> Dict[str, StorageScalar]:
        """Storage scalars for every schema field (the primary key excluded)."""
        return encode_row(self.schema, self._values)

    @classmethod
    def deserialize(cls: Type[M], row: Mapping[str, Any]) -> M:
        """Build a record from a storage row without re-validating enum values."""
        obj = cls()
        obj._values.update(decode_row(cls.schema, row))
        pkey = row.get(cls.pkey)
        obj._id = None if pkey is None else int(pkey)
        return obj

    # Persistence

    def store(self, backend: Optional[StorageBackend] = None) -> "Model":
        """
        INSERT a new record (capturing its generated id) or UPDATE an existing one.

        ``create_date`` is stamped on first store, ``update_date`` on every store.
        The record is left untouched when the backend raises.
        """
        return self._write(backend)

    def delete(self, backend: Optional[StorageBackend] = None) -> "Model":
        """Soft delete: mark the record archived and store it."""
        return self._write(backend, archived=True)

    def _write(self, backend: Optional[StorageBackend], **changes: Any) -> "Model":
        backend = backend or default_backend()
        now = int(time.time())
        values = {**self._values, **changes}
        if self.is_new() and not values["create_date"]:
            values["create_date"] = now
        values["update_date"] = now

        row = encode_row(self.schema, values)
        new_id = self._id
        if self.is_new():
            sql, params = generate_insert(self.table, self.pkey, row)
            rows = backend.execute(" ".join(sql), params)
            new_id = int(rows[0][self.pkey])
        else:
            sql, params = generate_update(self.table, self.pkey, self._id, row)
            backend.execute(" ".join(sql), params)

        self._values = values
        self._id = new_id
        return self


__all__ = ["HOUSEKEEPING_FIELDS", "Model", "validate_value"]
