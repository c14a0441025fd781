"""Argument validation against a tool's parameter schema.

Validation fails fast: the first violation found is raised. The walk is
deterministic so the same payload always reports the same violation:

1. the payload itself must be an object;
2. declared properties, in declaration order (missing, type, enum, nested);
3. undeclared keys, in payload order, when additional properties are closed.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from .exceptions import (
    ArgumentValidationError,
    InvalidEnumError,
    MissingFieldError,
    TypeMismatchError,
    UnexpectedFieldError,
)
from .schema import ParameterSchema, PropertySchema

ROOT_FIELD = "arguments"


def json_type_name(value: object) -> str:
    """Name a runtime value using JSON vocabulary."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def matches_type(value: object, schema_type: str) -> bool:
    # bool is an int subclass; JSON keeps them apart
    if schema_type == "boolean":
        return isinstance(value, bool)
    if schema_type == "string":
        return isinstance(value, str)
    if schema_type == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if schema_type == "integer":
        if isinstance(value, bool):
            return False
        return isinstance(value, int) or (isinstance(value, float) and value.is_integer())
    if schema_type == "object":
        return isinstance(value, Mapping)
    if schema_type == "array":
        return isinstance(value, (list, tuple))
    return False


def decode_arguments(raw: Any) -> Any:
    """Decode JSON text produced by the model; other values pass through."""
    if not isinstance(raw, (str, bytes, bytearray)):
        return raw
    text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw
    if not text.strip():
        return {}
    try:
        return json.loads(text)
    except RecursionError as exc:
        raise ValueError(f"nesting too deep ({exc})") from exc


def validate_arguments(schema: ParameterSchema, value: Any) -> dict[str, Any]:
    """Return a validated copy of ``value`` or raise ArgumentValidationError."""
    if not isinstance(value, Mapping):
        raise TypeMismatchError(ROOT_FIELD, "object", json_type_name(value))
    return _validate_object(schema, value, prefix="")


def _validate_object(
    schema: ParameterSchema, value: Mapping[str, Any], *, prefix: str
) -> dict[str, Any]:
    validated: dict[str, Any] = {}
    required = set(schema.required)
    for name, prop in schema.properties.items():
        path = f"{prefix}{name}"
        if name not in value:
            if name in required:
                raise MissingFieldError(path)
            continue
        validated[name] = _validate_property(prop, value[name], path)

    for name in value:
        if name in schema.properties:
            continue
        if not schema.additional_properties:
            raise UnexpectedFieldError(f"{prefix}{name}")
        validated[name] = value[name]
    return validated


def _validate_property(prop: PropertySchema, value: Any, path: str) -> Any:
    if not matches_type(value, prop.type):
        raise TypeMismatchError(path, prop.type, json_type_name(value))
    if prop.enum is not None and value not in prop.enum:
        raise InvalidEnumError(path, prop.enum, value)
    nested = prop.nested()
    if nested is not None:
        return _validate_object(nested, value, prefix=f"{path}.")
    return value


__all__ = [
    "ArgumentValidationError",
    "decode_arguments",
    "json_type_name",
    "matches_type",
    "validate_arguments",
]
