"""
cloud-models config package public API.

File: src/cloud_models/config/__init__.py

Purpose
- Export runtime settings loading and the per-entity field tables.

Functional requirements
- Support loading from ``cloud_models.toml`` + ``CLOUD_MODELS_`` env overrides.
- Fail fast with ``ConfigLoadError`` on malformed settings or model documents.
"""

from cloud_models.config.loader import (
    DEFAULT_SETTINGS_FILE,
    ENV_PREFIX,
    ConfigLoadError,
    default_settings,
    dump_effective_settings,
    load_settings,
    normalize_paths,
    validate_settings,
)
from cloud_models.config.models import (
    EntityConfig,
    ModelConfigs,
    load_entity_config_file,
    load_model_configs,
    model_configs_from_settings,
    parse_entity_config,
)

__all__ = [
    "ConfigLoadError",
    "DEFAULT_SETTINGS_FILE",
    "ENV_PREFIX",
    "EntityConfig",
    "ModelConfigs",
    "default_settings",
    "dump_effective_settings",
    "load_entity_config_file",
    "load_model_configs",
    "model_configs_from_settings",
    "load_settings",
    "normalize_paths",
    "parse_entity_config",
    "validate_settings",
]
