"""
Conversion between typed field values and storage-row scalars.

Two lenient branches are compatibility requirements of the stored data, not
accidents:

- BOOLEAN columns are truthy-coerced in both directions, whatever the raw
  representation (0/1, "t"/"f", "0"/"1", real booleans).
- STRUCTURED columns that are empty, NULL or not valid JSON containers decode
  to an empty mapping instead of raising.
"""
from __future__ import annotations

import copy
import enum
import json
from typing import Any, Dict, Mapping, Union

from recordkit.domain.fields import FieldSpec, FieldType, Schema
from recordkit.utils.logging import get_logger

log = get_logger(__name__)

StorageScalar = Union[int, float, str, None]

_FALSE_STRINGS = frozenset({"", "0", "f", "false"})


def _truthy(raw: Any) -> bool:
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        return raw.strip().lower() not in _FALSE_STRINGS
    return bool(raw)


def _number(raw: Any) -> Union[int, float]:
    if isinstance(raw, int):
        return int(raw)
    if isinstance(raw, str) and raw.strip().lstrip("+-").isdigit():
        return int(raw)
    # float, Decimal (NUMERIC columns) or a decimal string
    as_float = float(raw)
    return int(as_float) if as_float.is_integer() else as_float


def encode_structured(value: Any) -> str:
    """Canonical JSON text for a structured value; ``None`` encodes as ``{}``."""
    if value is None:
        value = {}
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


def decode_structured(raw: Any) -> Any:
    """Decode structured column data, degrading to ``{}`` on anything unusable."""
    if isinstance(raw, (dict, list)):
        return raw
    if isinstance(raw, (bytes, bytearray, memoryview)):
        raw = bytes(raw).decode("utf-8", errors="replace")
    if not raw:
        return {}
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        log.debug("Structured value degraded to empty mapping", extra={"raw_length": len(str(raw))})
        return {}
    if not isinstance(decoded, (dict, list)):
        log.debug("Structured value is not a container; using empty mapping")
        return {}
    return decoded


def to_storage(spec: FieldSpec, value: Any) -> StorageScalar:
    """
    Convert an in-memory value to the scalar written to the column for ``spec``.
    """
    if spec.type is FieldType.STRUCTURED:
        return encode_structured(value)
    if value is None and spec.nullable:
        return None
    if spec.type is FieldType.BOOLEAN:
        return 1 if _truthy(value) else 0
    if spec.type is FieldType.NUMBER:
        return _number(value)
    if spec.type is FieldType.ENUM:
        # Stored value, never the display label.
        return value.value if isinstance(value, enum.Enum) else value
    return "" if value is None else str(value)


def from_storage(spec: FieldSpec, raw: Any) -> Any:
    """
    Convert a raw column value back to the typed value for ``spec``.

    Enum membership is not checked here; rows written under an older set of
    allowed values must still load.
    """
    if spec.type is FieldType.STRUCTURED:
        return decode_structured(raw)
    if spec.type is FieldType.BOOLEAN:
        return _truthy(raw)
    if raw is None:
        return None if spec.nullable else copy.deepcopy(spec.default)
    if spec.type is FieldType.NUMBER:
        return _number(raw)
    if spec.type is FieldType.ENUM:
        if isinstance(raw, str) and raw.isdigit() and all(isinstance(v, int) for v in spec.allowed_values):
            return int(raw)
        return raw
    return raw if isinstance(raw, str) else str(raw)


def encode_row(schema: Schema, values: Mapping[str, Any]) -> Dict[str, StorageScalar]:
    """Apply ``to_storage`` to every schema field present in ``values``."""
    return {name: to_storage(spec, values[name]) for name, spec in schema.items() if name in values}


def decode_row(schema: Schema, row: Mapping[str, Any]) -> Dict[str, Any]:
    """Apply ``from_storage`` to every schema column in ``row``; other columns are ignored."""
    return {name: from_storage(spec, row[name]) for name, spec in schema.items() if name in row}


__all__ = [
    "StorageScalar",
    "decode_row",
    "decode_structured",
    "encode_row",
    "encode_structured",
    "from_storage",
    "to_storage",
]
