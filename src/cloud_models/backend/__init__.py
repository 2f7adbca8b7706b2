"""Backend collaborator contract and the in-memory reference backend."""

from cloud_models.backend.base import (
    OBJECT_NOT_FOUND,
    Backend,
    BackendOperationError,
    ObjectNotFoundError,
    RecordHandle,
)
from cloud_models.backend.memory import InMemoryBackend, MemoryRecord

__all__ = [
    "OBJECT_NOT_FOUND",
    "Backend",
    "BackendOperationError",
    "InMemoryBackend",
    "MemoryRecord",
    "ObjectNotFoundError",
    "RecordHandle",
]
