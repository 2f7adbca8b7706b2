"""
cloud-models: in-memory backend

File: src/cloud_models/backend/memory.py

Purpose
- Process-local implementation of the backend contract for tests and offline runs.

Functional requirements
- Lookups copy stored values into a fresh handle; unsaved edits never leak into the store.
- Missing objects raise ``ObjectNotFoundError`` (backend code 101).
- Every lookup suspends once on the event loop, like a real round-trip.
"""

from __future__ import annotations

import asyncio
import copy
import uuid
from typing import TYPE_CHECKING, Any

import structlog

from cloud_models.backend.base import ObjectNotFoundError

if TYPE_CHECKING:
    from cloud_models.utils.json_utils import JSONValue


class MemoryRecord:
    """Record handle backed by an ``InMemoryBackend`` store."""

    def __init__(
        self,
        backend: InMemoryBackend,
        class_name: str,
        *,
        object_id: str | None = None,
        data: dict[str, object] | None = None,
    ) -> None:
        if not isinstance(class_name, str) or not class_name.strip():
            raise ValueError("class_name must be a non-empty string")
        self._backend = backend
        self._class_name = class_name
        self.object_id = object_id
        self._data: dict[str, object] = dict(data or {})

    @property
    def class_name(self) -> str:
        return self._class_name

    def get(self, field_name: str) -> object:
        return self._data.get(field_name)

    def set(self, field_name: str, value: object) -> None:
        if not isinstance(field_name, str) or not field_name:
            raise ValueError("field_name must be a non-empty string")
        self._data[field_name] = value

    def has(self, field_name: str) -> bool:
        return field_name in self._data

    async def save(self) -> MemoryRecord:
        await asyncio.sleep(0)
        self._backend._store_record(self)
        return self

    def to_dict(self) -> dict[str, JSONValue]:
        payload: dict[str, Any] = {key: _to_json(value) for key, value in self._data.items()}
        payload["object_id"] = self.object_id
        payload["class_name"] = self._class_name
        return payload

    def __repr__(self) -> str:
        return f"MemoryRecord(class_name={self._class_name!r}, object_id={self.object_id!r})"


class InMemoryBackend:
    """Dictionary-backed datastore implementing ``cloud_models.backend.base.Backend``."""

    def __init__(self, *, logger: Any | None = None) -> None:
        self._objects: dict[str, dict[str, dict[str, object]]] = {}
        self._types: dict[str, type] = {}
        self.lookup_calls: list[tuple[str, str]] = []
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    async def lookup_by_id(self, class_name: str, object_id: str) -> MemoryRecord:
        self.lookup_calls.append((class_name, object_id))
        await asyncio.sleep(0)
        stored = self._objects.get(class_name, {}).get(object_id)
        if stored is None:
            raise ObjectNotFoundError(class_name, object_id)
        return MemoryRecord(self, class_name, object_id=object_id, data=copy.deepcopy(stored))

    def create_record(self, class_name: str) -> MemoryRecord:
        return MemoryRecord(self, class_name)

    def register_type(self, class_name: str, entity_type: type) -> None:
        existing = self._types.get(class_name)
        if existing is not None and existing is not entity_type:
            raise ValueError(
                f"class {class_name!r} already registered to {existing.__qualname__}"
            )
        self._types[class_name] = entity_type

    def registered_type(self, class_name: str) -> type | None:
        return self._types.get(class_name)

    def seed(self, class_name: str, object_id: str, **fields: object) -> MemoryRecord:
        """Store an object directly, bypassing entity validation."""

        record = MemoryRecord(self, class_name, object_id=object_id, data=fields)
        self._store_record(record)
        return record

    def count(self, class_name: str) -> int:
        return len(self._objects.get(class_name, {}))

    def _store_record(self, record: MemoryRecord) -> None:
        if record.object_id is None:
            record.object_id = uuid.uuid4().hex[:10]
        bucket = self._objects.setdefault(record.class_name, {})
        bucket[record.object_id] = copy.deepcopy(record._data)
        self._logger.debug(
            "backend_record_stored",
            class_name=record.class_name,
            object_id=record.object_id,
        )


def _to_json(value: object) -> object:
    if isinstance(value, tuple):
        return [_to_json(item) for item in value]
    if isinstance(value, list):
        return [_to_json(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _to_json(item) for key, item in value.items()}
    return value


__all__ = ["InMemoryBackend", "MemoryRecord"]
