"""Argument parsing and validation against a tool's parameter schema.

Only the subset of JSON Schema that tool definitions actually use is
checked: an object root, ``required`` keys, primitive ``type`` of declared
properties, and ``additionalProperties: false``.
"""
from __future__ import annotations

import json
from typing import Any

from acai.errors import ToolValidationError

_TYPE_CHECKS: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "number": (int, float),
    "integer": (int,),
    "boolean": (bool,),
    "object": (dict,),
    "array": (list,),
    "null": (type(None),),
}


def parse_arguments(raw: str) -> dict[str, Any]:
    """Decode the model's serialized arguments. Empty input means no arguments."""
    if not raw or not raw.strip():
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ToolValidationError(f"arguments are not valid JSON: {e}", cause=e) from e
    if not isinstance(value, dict):
        raise ToolValidationError(
            f"arguments must be a JSON object, got {type(value).__name__}"
        )
    return value


def _matches(value: Any, expected: str | list[str]) -> bool:
    names = [expected] if isinstance(expected, str) else expected
    for name in names:
        types = _TYPE_CHECKS.get(name)
        if types is None:
            # Unknown type keywords are not enforced
            return True
        # bool is an int subclass
        if isinstance(value, bool) and bool not in types:
            continue
        if isinstance(value, types):
            return True
    return False


def validate_arguments(arguments: dict[str, Any], schema: dict[str, Any]) -> None:
    """Raise ToolValidationError if ``arguments`` do not fit ``schema``."""
    properties: dict[str, Any] = schema.get("properties", {})

    missing = [key for key in schema.get("required", []) if key not in arguments]
    if missing:
        raise ToolValidationError(f"missing required argument(s): {', '.join(missing)}")

    for key, value in arguments.items():
        prop = properties.get(key)
        if prop is None:
            if schema.get("additionalProperties") is False:
                raise ToolValidationError(f"unexpected argument: {key}")
            continue
        expected = prop.get("type")
        if expected is not None and not _matches(value, expected):
            raise ToolValidationError(
                f"argument {key!r} must be of type {expected}, got {type(value).__name__}"
            )
