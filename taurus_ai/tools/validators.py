"""Shared argument validation for Hedera tools."""

from __future__ import annotations

import math
import re
from typing import Any, Dict, Mapping, Optional

from taurus_ai.tools.catalog import ENTITY_ID_PATTERN, ToolDefinition

ENTITY_ID_REGEX = re.compile(ENTITY_ID_PATTERN)
_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class ToolValidationError(ValueError):
    """Raised when tool arguments do not satisfy the tool's input schema."""


def is_valid_entity_id(value: Optional[str]) -> bool:
    """Basic format validation for shard.realm.num identifiers."""
    if not value or not isinstance(value, str):
        return False
    return bool(ENTITY_ID_REGEX.fullmatch(value.strip()))


def to_snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _check_type(name: str, value: Any, expected: Optional[str]) -> Any:
    if expected == "string":
        if not isinstance(value, str):
            raise ToolValidationError(f"{name} must be a string")
        return value.strip()
    if expected == "number":
        # bool is an int subclass but never a valid amount.
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ToolValidationError(f"{name} must be a number")
        if isinstance(value, float) and not math.isfinite(value):
            raise ToolValidationError(f"{name} must be a finite number")
        return value
    return value


def validate_arguments(tool: ToolDefinition, arguments: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Check ``arguments`` against ``tool``'s schema and return a normalized copy.

    Required fields must be present and non-empty (zero is a valid number).
    Declared fields are type checked, enum and pattern constraints enforced,
    and schema defaults filled in for missing optional fields. Undeclared
    arguments are dropped.
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        raise ToolValidationError("Arguments must be an object")

    for name in tool.required:
        if _is_missing(arguments.get(name)):
            raise ToolValidationError(f"{name} is required")

    normalized: Dict[str, Any] = {}
    for name, schema in tool.properties.items():
        value = arguments.get(name)
        if _is_missing(value):
            if "default" in schema:
                normalized[name] = schema["default"]
            continue

        value = _check_type(name, value, schema.get("type"))
        allowed = schema.get("enum")
        if allowed and value not in allowed:
            raise ToolValidationError(f"{name} must be one of: {', '.join(allowed)}")
        pattern = schema.get("pattern")
        if pattern and not re.fullmatch(pattern, value):
            raise ToolValidationError(f"{name} must be a Hedera entity ID like 0.0.12345")
        normalized[name] = value

    return normalized


def to_keyword_arguments(arguments: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert wire-style camelCase keys into snake_case keyword names."""
    return {to_snake_case(key): value for key, value in arguments.items()}
