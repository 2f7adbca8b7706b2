"""
cloud-models: runtime settings loader.

File: src/cloud_models/config/loader.py

Purpose
- Load effective runtime settings from defaults, a TOML file, env vars, and explicit overrides.

What should be included in this file
- Precedence logic: overrides > env (CLOUD_MODELS_) > file > defaults.
- TOML loading via ``tomllib``.
- Deterministic environment variable mapping and coercion.
- Path normalization relative to the settings file location.

Functional requirements
- Reject unknown sections/keys and wrongly typed values with ``ConfigLoadError``.
"""

from __future__ import annotations

import copy
import json
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, Literal

DEFAULT_SETTINGS_FILE: Final[str] = "cloud_models.toml"
ENV_PREFIX: Final[str] = "CLOUD_MODELS_"

_BOOLEAN_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_BOOLEAN_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})

_DEFAULT_SETTINGS: Final[dict[str, dict[str, object]]] = {
    "models": {
        # Empty means the documents bundled with the package.
        "config_dir": "",
    },
    "observability": {
        "log_level": "INFO",
        "log_dir": "logs",
        "log_to_stdout": True,
        "redact_secrets": True,
    },
}

PATH_FIELDS: Final[tuple[tuple[str, str], ...]] = (
    ("models", "config_dir"),
    ("observability", "log_dir"),
)

ValueKind = Literal["str", "bool"]


@dataclass(frozen=True, slots=True)
class _Binding:
    path: tuple[str, ...]
    value_type: ValueKind


class ConfigLoadError(ValueError):
    """Raised when settings or model documents cannot be loaded or validated."""


def default_settings() -> dict[str, Any]:
    return copy.deepcopy(_DEFAULT_SETTINGS)


def load_settings(
    config_path: str | Path | None = None,
    *,
    overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Load effective settings with deterministic precedence: overrides > env > file > defaults.

    ``overrides`` keys use dotted paths (``"observability.log_level"``).
    """

    resolved_path = _resolve_settings_path(config_path)
    env_map = dict(os.environ if environ is None else environ)

    file_payload = _load_toml_file(resolved_path, required=config_path is not None)
    merged = default_settings()
    _merge_mapping(merged, file_payload)
    validate_settings(merged)

    _merge_mapping(merged, _collect_env_overrides(env_map))
    _merge_mapping(merged, _materialize_overrides(overrides or {}))
    validate_settings(merged)

    return normalize_paths(merged, base_dir=resolved_path.parent)


def validate_settings(settings: Mapping[str, object]) -> None:
    for section in sorted(settings):
        expected = _DEFAULT_SETTINGS.get(section)
        if expected is None:
            raise ConfigLoadError(f"unknown settings section [{section}]")
        values = settings[section]
        if not isinstance(values, Mapping):
            raise ConfigLoadError(f"settings section [{section}] must be a table")
        for key in sorted(values):
            if key not in expected:
                raise ConfigLoadError(f"unknown setting {section}.{key}")
            kind = _kind_for_value(expected[key])
            if _kind_for_value(values[key]) != kind:
                raise ConfigLoadError(f"setting {section}.{key} must be of type {kind}")


def normalize_paths(settings: Mapping[str, object], *, base_dir: Path) -> dict[str, Any]:
    """Normalize configured path fields relative to ``base_dir``; empty paths stay empty."""

    materialized: dict[str, Any] = {}
    _merge_mapping(materialized, settings)
    for field_path in PATH_FIELDS:
        value = _get_nested(materialized, field_path)
        if isinstance(value, str) and value:
            _set_nested(materialized, field_path, _normalize_one_path(value, base_dir))
    return materialized


def dump_effective_settings(settings: Mapping[str, object]) -> str:
    return json.dumps(settings, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _resolve_settings_path(config_path: str | Path | None) -> Path:
    if config_path is None:
        return (Path.cwd() / DEFAULT_SETTINGS_FILE).resolve()
    return Path(config_path).expanduser().resolve()


def _load_toml_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigLoadError(f"settings file not found: {path}")
        return {}

    try:
        with path.open("rb") as handle:
            parsed = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read settings file {path}: {exc}") from exc

    return parsed


def _collect_env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    bindings = _build_bindings()
    for env_name in sorted(bindings):
        raw = environ.get(env_name)
        if raw is None:
            continue
        binding = bindings[env_name]
        _set_nested(
            overrides,
            binding.path,
            _coerce_env(raw, binding.value_type, env_name, binding.path),
        )
    return overrides


def _build_bindings() -> dict[str, _Binding]:
    bindings: dict[str, _Binding] = {}
    for section, values in _DEFAULT_SETTINGS.items():
        for key, value in values.items():
            kind = _kind_for_value(value)
            if kind is None:
                continue
            path = (section, key)
            bindings[_env_name_for_path(path)] = _Binding(path=path, value_type=kind)
    return bindings


def _kind_for_value(value: object) -> ValueKind | None:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, str):
        return "str"
    return None


def _coerce_env(raw: str, value_type: ValueKind, env_name: str, path: tuple[str, ...]) -> object:
    value = raw.strip()
    if value_type == "str":
        return value

    lowered = value.lower()
    if lowered in _BOOLEAN_TRUE:
        return True
    if lowered in _BOOLEAN_FALSE:
        return False
    raise ConfigLoadError(
        f"{env_name} -> {'.'.join(path)} must be a boolean (true/false/1/0/yes/no/on/off)"
    )


def _materialize_overrides(overrides: Mapping[str, object]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for key in sorted(overrides):
        path = tuple(part for part in key.split(".") if part)
        if len(path) != 2:
            raise ConfigLoadError(f"invalid override key {key!r}; expected 'section.key'")
        _set_nested(payload, path, overrides[key])
    return payload


def _merge_mapping(target: dict[str, Any], source: Mapping[str, object]) -> None:
    for key in sorted(source):
        value = source[key]
        if isinstance(value, Mapping):
            child = target.get(key)
            if not isinstance(child, dict):
                child = {}
                target[key] = child
            _merge_mapping(child, value)
        else:
            target[key] = value


def _set_nested(target: dict[str, Any], path: tuple[str, ...], value: object) -> None:
    cursor = target
    for part in path[:-1]:
        next_node = cursor.get(part)
        if not isinstance(next_node, dict):
            next_node = {}
            cursor[part] = next_node
        cursor = next_node
    cursor[path[-1]] = value


def _get_nested(payload: Mapping[str, object], path: tuple[str, ...]) -> object | None:
    cursor: object = payload
    for part in path:
        if not isinstance(cursor, Mapping) or part not in cursor:
            return None
        cursor = cursor[part]
    return cursor


def _normalize_one_path(raw: str, base_dir: Path) -> str:
    expanded = os.path.expandvars(raw)
    candidate = Path(expanded).expanduser()
    if not candidate.is_absolute():
        candidate = base_dir / candidate
    return Path(os.path.normpath(str(candidate))).as_posix()


def _env_name_for_path(path: tuple[str, ...]) -> str:
    return ENV_PREFIX + "_".join(part.upper() for part in path)


__all__ = [
    "ConfigLoadError",
    "DEFAULT_SETTINGS_FILE",
    "ENV_PREFIX",
    "PATH_FIELDS",
    "default_settings",
    "dump_effective_settings",
    "load_settings",
    "normalize_paths",
    "validate_settings",
]
