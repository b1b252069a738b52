"""
Domain package for recordkit.

Exports field declarations, the storage codec, the record base class and the
Alert record variant. Keep this package focused on data definitions and
validation concerns.
"""

from recordkit.domain.fields import FieldSpec, FieldType, Schema, define_schema, registry
from recordkit.domain.codec import from_storage, to_storage
from recordkit.domain.model import Model
from recordkit.domain.alert import Alert, AlertFinder, AlertResolution, AlertState

__all__ = [
    "Alert",
    "AlertFinder",
    "AlertResolution",
    "AlertState",
    "FieldSpec",
    "FieldType",
    "Model",
    "Schema",
    "define_schema",
    "from_storage",
    "registry",
    "to_storage",
]
