"""
cloud-models: per-entity field tables

File: src/cloud_models/config/models.py

Purpose
- Load the static ``<name>Config.json`` documents that map each entity's logical field
  roles to the literal field names of the backing record, plus the record class name.

Document format
- ``CLASS_NAME``: backing class name (required, non-empty string).
- ``<ROLE>_FIELD``: field name for role ``<role>`` (e.g. ``PARENT_FIELD`` -> ``parent``).

Functional requirements
- Malformed documents are a fatal startup error (``ConfigLoadError``).
- Loading is cached per directory.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Final

from cloud_models.config.loader import ConfigLoadError

CLASS_NAME_KEY: Final[str] = "CLASS_NAME"
FIELD_KEY_SUFFIX: Final[str] = "_FIELD"
DOCUMENT_SUFFIX: Final[str] = "Config.json"


@dataclass(frozen=True, slots=True)
class EntityConfig:
    """Class name and role -> field-name table for one entity class."""

    name: str
    class_name: str
    fields: Mapping[str, str]

    def field(self, role: str) -> str:
        try:
            return self.fields[role]
        except KeyError as exc:
            raise ConfigLoadError(f"{self.name}Config defines no field for role {role!r}") from exc


@dataclass(frozen=True, slots=True)
class ModelConfigs:
    entities: Mapping[str, EntityConfig]

    def require(self, name: str) -> EntityConfig:
        try:
            return self.entities[name]
        except KeyError as exc:
            known = ", ".join(sorted(self.entities)) or "<none>"
            raise ConfigLoadError(f"no {name}Config document loaded (known: {known})") from exc

    def class_name(self, name: str) -> str:
        return self.require(name).class_name


def parse_entity_config(name: str, payload: object) -> EntityConfig:
    """Validate one decoded config document."""

    if not isinstance(payload, Mapping):
        raise ConfigLoadError(f"{name}Config root must be an object")

    class_name = payload.get(CLASS_NAME_KEY)
    if not isinstance(class_name, str) or not class_name.strip():
        raise ConfigLoadError(f"{name}Config.{CLASS_NAME_KEY} must be a non-empty string")

    fields: dict[str, str] = {}
    seen: dict[str, str] = {}
    for key in sorted(payload):
        if key == CLASS_NAME_KEY:
            continue
        if not isinstance(key, str) or not key.endswith(FIELD_KEY_SUFFIX):
            raise ConfigLoadError(f"{name}Config has unexpected key {key!r}")
        value = payload[key]
        if not isinstance(value, str) or not value.strip():
            raise ConfigLoadError(f"{name}Config.{key} must be a non-empty string")
        if value in seen:
            raise ConfigLoadError(
                f"{name}Config maps both {seen[value]!r} and {key!r} to field {value!r}"
            )
        seen[value] = key
        role = key[: -len(FIELD_KEY_SUFFIX)].lower()
        fields[role] = value.strip()

    return EntityConfig(
        name=name,
        class_name=class_name.strip(),
        fields=MappingProxyType(fields),
    )


def load_entity_config_file(path: str | Path) -> EntityConfig:
    resolved = Path(path)
    name = _entity_name_for(resolved)
    try:
        text = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(f"unable to read {resolved}: {exc}") from exc
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigLoadError(f"{resolved.name} is corrupted: {exc}") from exc
    return parse_entity_config(name, payload)


def load_model_configs(path: str | Path | None = None) -> ModelConfigs:
    """Load every ``*Config.json`` document from ``path`` (bundled documents by default)."""

    directory = _bundled_documents_dir() if path is None else Path(path).expanduser().resolve()
    return _load_model_configs(directory)


@lru_cache(maxsize=8)
def _load_model_configs(directory: Path) -> ModelConfigs:
    if not directory.is_dir():
        raise ConfigLoadError(f"model config directory not found: {directory}")

    entities: dict[str, EntityConfig] = {}
    for document in sorted(directory.glob(f"*{DOCUMENT_SUFFIX}")):
        config = load_entity_config_file(document)
        entities[config.name] = config

    if not entities:
        raise ConfigLoadError(f"no *{DOCUMENT_SUFFIX} documents in {directory}")
    return ModelConfigs(entities=MappingProxyType(entities))


def model_configs_from_settings(settings: Mapping[str, object]) -> ModelConfigs:
    """Load the tables named by ``[models] config_dir``; empty selects the bundled documents."""

    section = settings.get("models")
    config_dir = section.get("config_dir", "") if isinstance(section, Mapping) else ""
    if not isinstance(config_dir, str):
        raise ConfigLoadError("setting models.config_dir must be of type str")
    return load_model_configs(config_dir or None)


def _entity_name_for(path: Path) -> str:
    if not path.name.endswith(DOCUMENT_SUFFIX):
        raise ConfigLoadError(f"config document name must end with {DOCUMENT_SUFFIX!r}: {path}")
    name = path.name[: -len(DOCUMENT_SUFFIX)]
    if not name:
        raise ConfigLoadError(f"config document has no entity name: {path}")
    return name


def _bundled_documents_dir() -> Path:
    return Path(__file__).resolve().with_name("documents")


__all__ = [
    "EntityConfig",
    "ModelConfigs",
    "load_entity_config_file",
    "load_model_configs",
    "model_configs_from_settings",
    "parse_entity_config",
]
