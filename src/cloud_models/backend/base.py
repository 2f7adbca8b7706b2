"""
cloud-models: backend collaborator contract

File: src/cloud_models/backend/base.py

Purpose
- Protocols for the hosted datastore that entities read from and persist into.

What should be included in this file
- ``RecordHandle``: one persisted object with generic get/set/save.
- ``Backend``: id lookup, record creation, and class-name -> entity type registration.
- Backend-side error taxonomy (``ObjectNotFoundError`` vs. other failures).

Non-functional requirements
- No transport or SDK code; concrete backends live in sibling modules.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final, Protocol, runtime_checkable

if TYPE_CHECKING:
    from cloud_models.utils.json_utils import JSONValue

OBJECT_NOT_FOUND: Final[int] = 101
INTERNAL_SERVER_ERROR: Final[int] = 1
CONNECTION_FAILED: Final[int] = 100


class BackendOperationError(RuntimeError):
    """Failure reported by a backend call, tagged with a numeric backend code."""

    def __init__(self, code: int, detail: str) -> None:
        self.code = code
        self.detail = detail
        super().__init__(f"backend_code={code} detail={detail}")


class ObjectNotFoundError(BackendOperationError):
    def __init__(self, class_name: str, object_id: str) -> None:
        self.class_name = class_name
        self.object_id = object_id
        super().__init__(OBJECT_NOT_FOUND, f"{class_name} {object_id!r} not found")


@runtime_checkable
class RecordHandle(Protocol):
    """Backend object representing one persisted row."""

    object_id: str | None

    @property
    def class_name(self) -> str: ...

    def get(self, field_name: str) -> object: ...

    def set(self, field_name: str, value: object) -> None: ...

    async def save(self) -> RecordHandle: ...

    def to_dict(self) -> dict[str, JSONValue]: ...


@runtime_checkable
class Backend(Protocol):
    """Capabilities consumed from the datastore."""

    async def lookup_by_id(self, class_name: str, object_id: str) -> RecordHandle: ...

    def create_record(self, class_name: str) -> RecordHandle: ...

    def register_type(self, class_name: str, entity_type: type) -> None: ...

    def registered_type(self, class_name: str) -> type | None: ...


__all__ = [
    "CONNECTION_FAILED",
    "INTERNAL_SERVER_ERROR",
    "OBJECT_NOT_FOUND",
    "Backend",
    "BackendOperationError",
    "ObjectNotFoundError",
    "RecordHandle",
]
