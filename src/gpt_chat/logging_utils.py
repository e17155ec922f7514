"""Logging bootstrap: stdlib handlers with structlog JSON rendering."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import structlog

APP_LOGGER_PREFIX = "gpt_chat"
PLAIN_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
QUIET_LIBRARIES = ("httpx", "httpcore")


def _app_only_filter(record: logging.LogRecord) -> bool:
    return record.name == APP_LOGGER_PREFIX or record.name.startswith(
        f"{APP_LOGGER_PREFIX}."
    )


def _shared_processors() -> list[Any]:
    return [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _json_formatter() -> logging.Formatter:
    # structlog loggers and plain ``logging.getLogger`` records share one renderer;
    # ExtraAdder lifts ``extra={...}`` fields into the JSON object.
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    return structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(ensure_ascii=False),
        foreign_pre_chain=[*_shared_processors(), structlog.stdlib.ExtraAdder()],
    )


def _open_log_file(path: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    if os.name == "posix":
        try:
            path.chmod(0o600)
        except OSError:
            logging.getLogger(__name__).warning(
                "logging.permissions.failed",
                extra={"event": "logging.permissions.failed", "path": str(path)},
            )
    return handler


def configure_logging(logging_config: dict[str, Any]) -> None:
    """Install root handlers according to the ``[logging]`` config section.

    The terminal belongs to the UI, so stderr only carries this package's
    warnings and errors. When ``log_to_file`` is set, the file receives every
    record at the configured level. Message text and API keys are never
    passed to loggers by this package.
    """
    level = logging.getLevelName(str(logging_config.get("level", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO
    if logging_config.get("structured", True):
        formatter = _json_formatter()
    else:
        formatter = logging.Formatter(PLAIN_FORMAT)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)

    console = logging.StreamHandler()
    console.setLevel(max(level, logging.WARNING))
    console.addFilter(_app_only_filter)
    console.setFormatter(formatter)
    root.addHandler(console)

    if logging_config.get("log_to_file", False):
        target = Path(
            str(logging_config.get("log_file_path", "~/.local/state/gptterm/app.log"))
        ).expanduser()
        root.addHandler(_open_log_file(target, level, formatter))

    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)
