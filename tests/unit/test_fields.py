from __future__ import annotations

import pytest

from recordkit.domain.alert import STATES, Alert, AlertState
from recordkit.domain.fields import (
    FieldSpec,
    FieldType,
    SchemaRegistry,
    define_schema,
    registry,
)
from recordkit.domain.model import Model
from recordkit.errors import SchemaViolation

COLORS = {0: "red", 1: "green"}


def test_define_schema_keeps_declaration_order():
    schema = define_schema(
        "Palette",
        {
            "name": (FieldType.STRING, None, ""),
            "color": (FieldType.ENUM, COLORS, 0),
            "meta": (FieldType.STRUCTURED, None, {}),
        },
    )
    assert list(schema) == ["name", "color", "meta"]
    assert schema["color"].type is FieldType.ENUM
    assert schema.label("color", 1) == "green"
    assert schema.label("color", 9) == "9"


def test_enum_default_outside_allowed_values_is_rejected():
    with pytest.raises(SchemaViolation, match="default"):
        define_schema("Broken", {"color": (FieldType.ENUM, COLORS, 5)})


def test_enum_without_allowed_values_is_rejected():
    with pytest.raises(SchemaViolation):
        define_schema("Broken", {"color": (FieldType.ENUM, None, 0)})


def test_allowed_values_on_non_enum_field_are_rejected():
    with pytest.raises(SchemaViolation):
        define_schema("Broken", {"count": (FieldType.NUMBER, COLORS, 0)})


def test_malformed_declaration_is_rejected():
    with pytest.raises(SchemaViolation):
        define_schema("Broken", {"count": (FieldType.NUMBER, 0)})


def test_fieldspec_declaration_must_match_its_key():
    spec = FieldSpec(name="other", type=FieldType.STRING, default="")
    with pytest.raises(SchemaViolation):
        define_schema("Broken", {"name": spec})


def test_schema_is_read_only():
    schema = define_schema("Frozen", {"name": (FieldType.STRING, None, "")})
    with pytest.raises(TypeError):
        schema["name"] = FieldSpec(name="name", type=FieldType.NUMBER, default=0)  # type: ignore[index]
    with pytest.raises(Exception):
        schema["name"].default = "x"  # frozen pydantic model


def test_invalid_model_declaration_fails_at_class_definition():
    with pytest.raises(SchemaViolation):

        class BadTicket(Model):
            table = "bad_tickets"
            fields = {"priority": (FieldType.ENUM, {1: "low"}, 3)}


def test_alert_schema_is_registered_with_housekeeping_fields():
    schema = registry.get("Alert")
    assert schema is Alert.schema
    assert list(schema)[:3] == ["archived", "create_date", "update_date"]
    assert schema["state"].allowed_values == STATES
    assert schema["state"].default == AlertState.NEW


def test_every_registered_enum_default_is_allowed():
    for name in registry.names():
        for spec in registry.get(name).values():
            if spec.type is FieldType.ENUM:
                assert spec.default in spec.allowed_values


def test_registry_rejects_conflicting_redefinition():
    local = SchemaRegistry()
    local.register(define_schema("Thing", {"a": (FieldType.STRING, None, "")}))
    # Same fields again is fine (e.g. module re-import).
    local.register(define_schema("Thing", {"a": (FieldType.STRING, None, "")}))
    with pytest.raises(SchemaViolation):
        local.register(define_schema("Thing", {"a": (FieldType.NUMBER, None, 0)}))


def test_registry_unknown_name():
    with pytest.raises(KeyError):
        registry.get("DoesNotExist")
    assert "Alert" in registry


def test_allowed_values_cannot_be_mutated():
    spec = Alert.schema["state"]
    with pytest.raises(TypeError):
        spec.allowed_values[9] = "Hacked"  # type: ignore[index]
    assert 9 not in spec.allowed_values


def test_allowed_values_are_copied_from_declaration():
    colors = dict(COLORS)
    schema = define_schema("Copied", {"color": (FieldType.ENUM, colors, 0)})
    colors[2] = "blue"
    assert 2 not in schema["color"].allowed_values


def test_labels_returns_read_only_enum_labels():
    labels = Alert.schema.labels("state")
    assert labels == STATES
    with pytest.raises(TypeError):
        labels[5] = "Other"  # type: ignore[index]
    assert define_schema("Plain", {"name": (FieldType.STRING, None, "")}).labels("name") == {}


def test_unhashable_enum_default_is_a_schema_violation():
    with pytest.raises(SchemaViolation, match="default"):
        define_schema("Broken", {"color": (FieldType.ENUM, COLORS, [0])})
