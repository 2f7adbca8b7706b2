"""Shared deterministic payloads and backends for entity tests."""

from __future__ import annotations

import copy
import json
from typing import Final

from cloud_models.backend.memory import InMemoryBackend

DEMO_PAYLOAD: Final[dict[str, object]] = {
    "id": "p1",
    "parent": None,
    "original_parent": None,
    "category": "catX",
    "language": "langY",
    "author": "userZ",
    "name": "Demo",
    "description": "d",
    "tags": ["a", "b"],
    "is_dubbed": False,
    "is_edited": False,
    "resolution_x": 1920,
    "resolution_y": 1080,
    "slide_ordering_sequence": [0, 1],
    "slides": [],
}

REFERENCE_FIELDS: Final[dict[str, str]] = {
    "parent": "Project",
    "original_parent": "Project",
    "category": "Category",
    "language": "Language",
    "author": "User",
}

# Validation order of the Project chain.
FIELD_ORDER: Final[tuple[str, ...]] = (
    "id",
    "parent",
    "original_parent",
    "category",
    "language",
    "author",
    "name",
    "description",
    "tags",
    "is_dubbed",
    "is_edited",
    "resolution_x",
    "resolution_y",
    "slides",
    "slide_ordering_sequence",
)

REQUIRED_FIELDS: Final[tuple[str, ...]] = tuple(name for name in FIELD_ORDER if name != "slides")


def demo_payload(**overrides: object) -> dict[str, object]:
    payload = copy.deepcopy(DEMO_PAYLOAD)
    payload.update(overrides)
    return payload


def demo_json(**overrides: object) -> str:
    return json.dumps(demo_payload(**overrides))


def payload_without(field: str) -> str:
    payload = demo_payload()
    del payload[field]
    return json.dumps(payload)


def make_backend() -> InMemoryBackend:
    """Backend holding the objects the demo payload references, plus two projects."""

    backend = InMemoryBackend()
    backend.seed("Category", "catX", name="Animation")
    backend.seed("Language", "langY", code="en")
    backend.seed("User", "userZ", username="zed")
    backend.seed("Project", "p0", name="Root")
    backend.seed("Project", "p00", name="Origin")
    return backend


__all__ = [
    "DEMO_PAYLOAD",
    "FIELD_ORDER",
    "REFERENCE_FIELDS",
    "REQUIRED_FIELDS",
    "demo_json",
    "demo_payload",
    "make_backend",
    "payload_without",
]
