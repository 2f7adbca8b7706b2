"""
cloud-models: entity type registry

File: src/cloud_models/model/registry.py

Purpose
- Associate backend class names with entity types and rebuild entities from records.

Functional requirements
- Registration is keyed by the class name from the entity's config document,
  never by the Python type name.
- Registered entity types accept ``(parameter, *, backend, configs)``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from cloud_models.config.models import load_model_configs
from cloud_models.model.project import Project

if TYPE_CHECKING:
    from cloud_models.backend.base import Backend, RecordHandle
    from cloud_models.config.models import ModelConfigs
    from cloud_models.model.interface import CloudEntity

# Config document name -> entity type.
ENTITY_TYPES: Final[dict[str, type[CloudEntity]]] = {
    "project": Project,
}


class UnregisteredClassError(LookupError):
    def __init__(self, class_name: str) -> None:
        self.class_name = class_name
        super().__init__(f"no entity type registered for class {class_name!r}")


def register_entity_types(backend: Backend, *, configs: ModelConfigs | None = None) -> None:
    resolved = configs if configs is not None else load_model_configs()
    for entity_name, entity_type in ENTITY_TYPES.items():
        backend.register_type(resolved.class_name(entity_name), entity_type)


async def entity_from_record(
    backend: Backend,
    record: RecordHandle,
    *,
    configs: ModelConfigs | None = None,
) -> CloudEntity:
    """Build the registered entity type for ``record`` from its stored values."""

    entity_type = backend.registered_type(record.class_name)
    if entity_type is None:
        raise UnregisteredClassError(record.class_name)
    entity = entity_type(record, backend=backend, configs=configs)
    return await entity.initialize()


async def fetch_entity(
    backend: Backend,
    class_name: str,
    object_id: str,
    *,
    configs: ModelConfigs | None = None,
) -> CloudEntity:
    record = await backend.lookup_by_id(class_name, object_id)
    return await entity_from_record(backend, record, configs=configs)


__all__ = [
    "ENTITY_TYPES",
    "UnregisteredClassError",
    "entity_from_record",
    "fetch_entity",
    "register_entity_types",
]
