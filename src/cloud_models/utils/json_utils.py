"""
cloud-models: JSON helpers

File: src/cloud_models/utils/json_utils.py

Purpose
- Parse untrusted JSON text without raising, and name JSON value types for error reports.

Functional requirements
- ``try_parse_json`` returns the decoded object only when the root is a JSON object.
- ``canonical_json`` output is deterministic (sorted keys, compact separators).

Non-functional requirements
- Never raises on malformed input; parse failures are reported as debug events.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence

import structlog

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

_logger = structlog.get_logger(__name__)


def try_parse_json(text: object) -> dict[str, JSONValue] | None:
    """Decode ``text`` and return the object, or ``None`` when it is not a JSON object.

    Scalars, arrays and ``null`` decode without error but are still rejected.
    """

    if isinstance(text, (bytes, bytearray)):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as exc:
            _logger.debug("json_parse_failed", error=str(exc))
            return None
    if not isinstance(text, str):
        return None
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        _logger.debug("json_parse_failed", error=str(exc), position=exc.pos)
        return None
    except (ValueError, RecursionError) as exc:
        # Oversized integer literals and pathological nesting.
        _logger.debug("json_parse_failed", error=type(exc).__name__)
        return None
    if isinstance(parsed, dict):
        return parsed
    return None


def json_type_name(value: object) -> str:
    """Return the JSON type name of a decoded value."""

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
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return "array"
    return type(value).__name__


def canonical_json(value: object) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


__all__ = [
    "JSONScalar",
    "JSONValue",
    "canonical_json",
    "json_type_name",
    "try_parse_json",
]
