"""Entity contract and concrete backend-mapped entities."""

from cloud_models.model.interface import (
    REQUIRED_CAPABILITIES,
    CloudEntity,
    EntityState,
    ReadOnlyField,
)
from cloud_models.model.project import Project, ProjectFields
from cloud_models.model.registry import (
    UnregisteredClassError,
    entity_from_record,
    fetch_entity,
    register_entity_types,
)

__all__ = [
    "REQUIRED_CAPABILITIES",
    "CloudEntity",
    "EntityState",
    "Project",
    "ProjectFields",
    "ReadOnlyField",
    "UnregisteredClassError",
    "entity_from_record",
    "fetch_entity",
    "register_entity_types",
]
