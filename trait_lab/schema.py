"""Minimal JSON schema validator and the trait manifest schema."""
from __future__ import annotations

from typing import Any, Iterable, Mapping

_TYPES: Mapping[str, type | tuple[type, ...]] = {
    "object": Mapping,  # type: ignore[dict-item]
    "array": (list, tuple),
    "string": str,
    "number": (int, float),
    "integer": int,
    "boolean": bool,
    "null": type(None),
}


class SchemaValidationError(ValueError):
    """Raised when a document does not comply with its schema."""

    def __init__(self, message: str, *, path: Iterable[str] | None = None):
        self.path = list(path or [])
        if self.path:
            message = f"{'/'.join(self.path)}: {message}"
        super().__init__(message)


def _matches(value: Any, expected: str) -> bool:
    if expected in {"number", "integer"} and isinstance(value, bool):
        return False
    return isinstance(value, _TYPES[expected])


def _validate(value: Any, schema: Mapping[str, Any], path: list[str]) -> None:
    expected = schema.get("type")
    if expected:
        options = expected if isinstance(expected, list) else [expected]
        if not any(_matches(value, option) for option in options):
            raise SchemaValidationError(f"expected type {expected}, got {type(value).__name__}", path=path)
    if "enum" in schema and value not in schema["enum"]:
        raise SchemaValidationError(f"expected one of {schema['enum']}, got {value!r}", path=path)
    if "minimum" in schema and isinstance(value, (int, float)) and value < schema["minimum"]:
        raise SchemaValidationError(f"expected at least {schema['minimum']}, got {value}", path=path)
    if isinstance(value, Mapping):
        for key in schema.get("required", []):
            if key not in value:
                raise SchemaValidationError(f"missing required property '{key}'", path=path + [key])
        for key, sub_schema in schema.get("properties", {}).items():
            if key in value:
                _validate(value[key], sub_schema, path + [key])
    if isinstance(value, (list, tuple)):
        if "minItems" in schema and len(value) < schema["minItems"]:
            raise SchemaValidationError(
                f"expected at least {schema['minItems']} items, got {len(value)}", path=path
            )
        items_schema = schema.get("items")
        if isinstance(items_schema, Mapping):
            for idx, item in enumerate(value):
                _validate(item, items_schema, path + [str(idx)])


def validate(value: Any, schema: Mapping[str, Any]) -> None:
    """Validate *value* against the supplied JSON *schema*."""

    _validate(value, schema, [])


RULE_SCHEMA: Mapping[str, Any] = {
    "type": "object",
    "required": ["type"],
    "properties": {
        "type": {"enum": ["doesnt_mix", "only_mix", "always_pairs", "appears_at_least"]},
        "targets": {"type": "array", "items": {"type": "string"}},
        "value": {"type": "integer", "minimum": 1},
    },
}

TRAIT_SCHEMA: Mapping[str, Any] = {
    "type": "object",
    "required": ["name", "file"],
    "properties": {
        "name": {"type": "string"},
        "file": {"type": "string"},
        "rarity": {"type": "integer", "minimum": 1},
        "rules": {"type": "array", "items": RULE_SCHEMA},
    },
}

MANIFEST_SCHEMA: Mapping[str, Any] = {
    "type": "object",
    "required": ["categories"],
    "properties": {
        "categories": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name"],
                "properties": {
                    "name": {"type": "string"},
                    "order": {"type": "integer"},
                    "traits": {"type": "array", "items": TRAIT_SCHEMA},
                },
            },
        },
    },
}


__all__ = ["MANIFEST_SCHEMA", "SchemaValidationError", "validate"]
