"""Structured logging for the session core, built on structlog over stdlib logging.

Output is controlled by two environment variables, read through LogSettings:
- LOG_FORMAT: "json" for one JSON object per line, "console" or unset for
  human-readable output.
- LOG_LEVEL: "DEBUG", "INFO" (default), "WARNING", "ERROR", or "CRITICAL".

Session and player ids are bound with structlog.contextvars by the session
manager and the ledger, so lines emitted while handling a session carry them
without explicit arguments.
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Literal

import structlog
from pydantic import field_validator
from pydantic_settings import BaseSettings

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from typing import Any

LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LogSettings(BaseSettings):
    model_config = {"env_prefix": "LOG_"}

    format: Literal["json", "console", ""] = ""
    level: str = "INFO"

    @field_validator("format", mode="before")
    @classmethod
    def _check_format(cls, value: object) -> object:
        normalized = str(value).lower()
        if normalized not in ("json", "console", ""):
            raise ValueError(f"Invalid LOG_FORMAT={normalized!r}. Must be 'json', 'console', or unset.")
        return normalized

    @field_validator("level", mode="before")
    @classmethod
    def _check_level(cls, value: object) -> str:
        normalized = str(value).upper()
        if normalized not in _LEVELS:
            raise ValueError(f"Invalid LOG_LEVEL={normalized!r}. Must be one of {', '.join(sorted(_LEVELS))}.")
        return normalized

    @property
    def json_mode(self) -> bool:
        return self.format == "json"

    @property
    def level_number(self) -> int:
        return logging.getLevelNamesMapping()[self.level]


def _plain(value: object) -> object:
    return value.value if isinstance(value, Enum) else value


def _serialize_enums(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Replace Enum instances (top level, in dicts and in lists) with their .value."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
        elif isinstance(value, dict):
            event_dict[key] = {k: _plain(v) for k, v in value.items()}
        elif isinstance(value, (list, tuple)):
            event_dict[key] = [_plain(v) for v in value]
    return event_dict


def configure_structlog() -> None:
    """Route structlog through stdlib logging.

    Rendering (and exception formatting) happens in the handler formatters,
    so the same event renders once per handler.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _serialize_enums,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def _is_test() -> bool:
    return "pytest" in sys.modules


def _handler(stream_or_path: object, *, json_mode: bool, colors: bool) -> logging.Handler:
    handler: logging.Handler
    if isinstance(stream_or_path, Path):
        handler = logging.FileHandler(stream_or_path)
    else:
        handler = logging.StreamHandler(stream_or_path)  # type: ignore[arg-type]
    renderer = structlog.processors.JSONRenderer() if json_mode else structlog.dev.ConsoleRenderer(colors=colors)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                renderer,
            ],
        ),
    )
    return handler


def log_file_path(log_dir: Path | str, service: str, now: datetime | None = None) -> Path:
    """Return the timestamped log file path for a service run."""
    stamp = (now or datetime.now(tz=UTC)).strftime(LOG_FILE_TIMESTAMP_FORMAT)
    return Path(log_dir) / f"{service}_{stamp}.log"


def setup_logging(
    log_dir: Path | str | None = None,
    level: int | None = None,
    *,
    service: str = "session",
) -> Path | None:
    """Configure structlog with stdout and optional file output.

    `level` overrides LOG_LEVEL. When log_dir is given (and not running under
    pytest), also writes `<log_dir>/<service>_<timestamp>.log` and returns its
    path; otherwise returns None.
    """
    settings = LogSettings()
    configure_structlog()

    root_logger = logging.getLogger()
    root_logger.setLevel(level if level is not None else settings.level_number)
    root_logger.handlers.clear()
    root_logger.addHandler(_handler(sys.stdout, json_mode=settings.json_mode, colors=sys.stdout.isatty()))

    if log_dir is None or _is_test():
        return None

    file_path = log_file_path(log_dir, service)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    root_logger.addHandler(_handler(file_path, json_mode=settings.json_mode, colors=False))
    return file_path
