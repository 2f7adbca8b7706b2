"""
cloud-models: structured logging

File: src/cloud_models/observability/logging.py

Purpose
- Write entity lifecycle events (``entity_validated``, ``entity_validation_failed``,
  ``entity_saved``, ...) as one JSON object per line under ``<log_dir>/<run_id>/``.

Event shape
- Top level: ``timestamp``, ``level``, ``logger``, ``message``, ``run_id`` and any bound
  correlation keys (``entity_class``, ``entity_id``, ``request_id``, ``correlation_id``).
- Every other event key is nested under ``fields``.

Functional requirements
- structlog events and plain ``logging`` records share one renderer.
- Credential-like keys, inline ``key=value`` secrets and backend session tokens
  (``r:...``) are redacted unless ``redact_secrets`` is off.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

from cloud_models.config.loader import ConfigLoadError

LOG_FILENAME: Final[str] = "cloud_models.jsonl"
REDACTED: Final[str] = "***REDACTED***"

CORRELATION_KEYS: Final[tuple[str, ...]] = (
    "correlation_id",
    "entity_class",
    "entity_id",
    "request_id",
)

_SENSITIVE_KEY = re.compile(
    r"(?i)(secret|token|password|master_?key|api_?key|javascript_?key|authorization|credential|cookie)"
)
_INLINE_SECRET = re.compile(
    r"(?i)\b(api[_-]?key|master[_-]?key|session[_-]?token|token|password|secret)(\s*[:=]\s*)[^\s,;]+"
)
_SESSION_TOKEN = re.compile(r"\br:[A-Za-z0-9]{16,}\b")

_SHARED_PROCESSORS: Final[tuple[Processor, ...]] = (
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
)


@dataclass(frozen=True, slots=True)
class LoggingSettings:
    """The ``[observability]`` settings section, typed."""

    level: int = logging.INFO
    log_dir: Path = Path("logs")
    log_to_stdout: bool = True
    redact_secrets: bool = True

    @classmethod
    def from_settings(cls, settings: Mapping[str, object] | None) -> LoggingSettings:
        section = (settings or {}).get("observability")
        values: Mapping[str, object] = section if isinstance(section, Mapping) else {}
        log_dir = values.get("log_dir") or "logs"
        if not isinstance(log_dir, (str, Path)):
            raise ConfigLoadError("setting observability.log_dir must be a path")
        return cls(
            level=parse_log_level(values.get("log_level", "INFO")),
            log_dir=Path(log_dir),
            log_to_stdout=bool(values.get("log_to_stdout", True)),
            redact_secrets=bool(values.get("redact_secrets", True)),
        )


@dataclass(frozen=True, slots=True)
class LogSink:
    """Handlers attached by :func:`setup_logging`; ``close`` detaches them."""

    logger: logging.Logger
    path: Path
    handlers: tuple[logging.Handler, ...]

    def close(self) -> None:
        for handler in self.handlers:
            self.logger.removeHandler(handler)
            handler.close()


def setup_logging(
    settings: Mapping[str, object] | None = None,
    *,
    run_id: str,
    log_dir: Path | str | None = None,
    logger_name: str = "cloud_models",
) -> LogSink:
    """Attach the JSON-lines sink to ``logger_name`` and route structlog through it.

    ``log_dir`` overrides ``[observability] log_dir``. Handlers left on the logger by an
    earlier call are closed first.
    """

    run_id = run_id.strip()
    if run_id in {"", ".."} or Path(run_id).name != run_id:
        raise ValueError(f"run_id must be a plain directory name, got {run_id!r}")

    options = LoggingSettings.from_settings(settings)
    run_dir = Path(log_dir if log_dir is not None else options.log_dir) / run_id
    run_dir.mkdir(parents=True, exist_ok=True)
    path = run_dir / LOG_FILENAME

    formatter = json_line_formatter(run_id=run_id, redact=options.redact_secrets)
    handlers: list[logging.Handler] = [logging.FileHandler(path, encoding="utf-8")]
    if options.log_to_stdout:
        handlers.append(logging.StreamHandler())

    logger = logging.getLogger(logger_name)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    logger.setLevel(options.level)
    logger.propagate = False
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    configure_structlog()
    return LogSink(logger=logger, path=path, handlers=tuple(handlers))


def configure_structlog() -> None:
    """Send ``structlog.get_logger(...)`` events to the stdlib handlers for rendering."""

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_SHARED_PROCESSORS,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def json_line_formatter(*, run_id: str, redact: bool = True) -> structlog.stdlib.ProcessorFormatter:
    """Formatter rendering structlog and foreign records as one JSON object per line."""

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[*_SHARED_PROCESSORS, structlog.stdlib.ExtraAdder()],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            _EventShaper(run_id=run_id, redact=redact),
            structlog.processors.JSONRenderer(
                sort_keys=True, separators=(",", ":"), ensure_ascii=False
            ),
        ],
    )


class _EventShaper:
    def __init__(self, *, run_id: str, redact: bool) -> None:
        self._run_id = run_id
        self._redact = redact

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        rest = dict(event_dict)
        shaped: dict[str, Any] = {
            "timestamp": rest.pop("timestamp", None),
            "level": str(rest.pop("level", method_name)).upper(),
            "logger": rest.pop("logger", None),
            "message": str(rest.pop("event", "")),
            "run_id": self._run_id,
        }
        for key in CORRELATION_KEYS:
            value = rest.pop(key, None)
            if isinstance(value, str) and value:
                shaped[key] = value
        exception = rest.pop("exception", None)
        if rest:
            shaped["fields"] = rest
        if exception is not None:
            shaped["exception"] = exception
        return default_log_redactor(shaped) if self._redact else shaped


def default_log_redactor(value: Any) -> Any:
    """Redact credential-like mapping keys and inline secrets, recursively."""

    if isinstance(value, str):
        return _SESSION_TOKEN.sub(REDACTED, _INLINE_SECRET.sub(rf"\1\2{REDACTED}", value))
    if isinstance(value, Mapping):
        return {
            str(key): REDACTED if _SENSITIVE_KEY.search(str(key)) else default_log_redactor(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [default_log_redactor(item) for item in value]
    return value


@contextmanager
def correlation_scope(**fields: str | None) -> Iterator[None]:
    """Bind correlation keys for every event logged in this context; ``None`` is skipped."""

    bound = {key: value for key, value in fields.items() if value is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield


def get_correlation_context() -> dict[str, Any]:
    return structlog.contextvars.get_contextvars()


def parse_log_level(value: object) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        level = logging.getLevelName(value.strip().upper())
        if isinstance(level, int):
            return level
    raise ConfigLoadError(f"unsupported log level {value!r}")


__all__ = [
    "CORRELATION_KEYS",
    "LOG_FILENAME",
    "LogSink",
    "LoggingSettings",
    "configure_structlog",
    "correlation_scope",
    "default_log_redactor",
    "get_correlation_context",
    "json_line_formatter",
    "parse_log_level",
    "setup_logging",
]
