"""Utility exports for JSON parsing and type naming helpers."""

from cloud_models.utils.json_utils import (
    JSONScalar,
    JSONValue,
    canonical_json,
    json_type_name,
    try_parse_json,
)

__all__ = [
    "JSONScalar",
    "JSONValue",
    "canonical_json",
    "json_type_name",
    "try_parse_json",
]
