# resilient_actions/utils/logger.py
from __future__ import annotations

"""Logging setup
----------------
One rich console handler on the root logger (plus an optional rotating JSON
file), and loggers that carry attempt context into every record.

Context comes from two places and is merged when a record is emitted:
  - run-wide keys set with `bind(...)`, e.g. run_id
  - scoped keys given to `log_with_context(...)`, e.g. action="click"
"""

import json
import logging
import os
import threading
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, MutableMapping, Optional, Tuple

from rich.console import Console
from rich.logging import RichHandler

from resilient_actions.utils.config import LogLevel, get_settings


__all__ = [
    "ContextAdapter",
    "JsonFormatter",
    "get_logger",
    "set_log_level",
    "bind",
    "unbind",
    "log_with_context",
    "attach_file_logger",
    "detach_file_logger",
]

ROOT_LOGGER_NAME = "resilient-actions"
_MAX_BYTES = 5 * 1024 * 1024
_QUIET = ("asyncio", "playwright")

_setup_lock = threading.Lock()
_is_setup = False
_run_context: Dict[str, Any] = {}


class JsonFormatter(logging.Formatter):
    """One JSON object per line; attempt context is flattened into the object."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(getattr(record, "context", None) or {})
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        entry["thread"] = record.threadName
        entry["process"] = record.process
        return json.dumps(entry, ensure_ascii=False, default=str)


class ContextAdapter(logging.LoggerAdapter):
    """
    LoggerAdapter whose `extra` holds scoped keys only. Run-wide keys are
    read at emit time, so `bind()` also reaches adapters made earlier.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        context = dict(_run_context)
        context.update(self.extra or {})
        caller_extra = kwargs.pop("extra", None) or {}
        context.update(caller_extra)
        kwargs["extra"] = {"context": context}
        return msg, kwargs

    def scoped(self, **keys: Any) -> "ContextAdapter":
        merged = dict(self.extra or {})
        merged.update(keys)
        return ContextAdapter(self.logger, merged)


# ------------- Handlers -------------


def _level_of(level: LogLevel | str | int) -> int:
    if isinstance(level, int):
        return level
    name = level.value if isinstance(level, LogLevel) else str(level)
    return getattr(logging, name.upper(), logging.INFO)


def _console_handler(level: int, colorized: bool) -> logging.Handler:
    handler = RichHandler(
        console=Console(stderr=True, no_color=not colorized),
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
        omit_repeated_times=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(level)
    return handler


def _json_file_handler(path: os.PathLike | str, level: int, backups: int) -> logging.Handler:
    target = os.fspath(path)
    folder = os.path.dirname(target)
    if folder:
        os.makedirs(folder, exist_ok=True)
    handler = RotatingFileHandler(target, maxBytes=_MAX_BYTES, backupCount=backups, encoding="utf-8", delay=True)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    return handler


def _setup() -> None:
    global _is_setup
    if _is_setup:
        return
    with _setup_lock:
        if _is_setup:
            return
        settings = get_settings()
        level = _level_of(settings.LOG_LEVEL)

        root = logging.getLogger()
        for existing in list(root.handlers):
            root.removeHandler(existing)
        root.setLevel(level)
        root.addHandler(_console_handler(level, settings.COLORIZED_OUTPUT))
        if settings.LOG_TO_FILE:
            root.addHandler(_json_file_handler(settings.LOG_FILE, level, backups=5))

        for name in _QUIET:
            logging.getLogger(name).setLevel(max(level, logging.WARNING))
        _is_setup = True


# ------------- Public API -------------


def get_logger(name: Optional[str] = None) -> ContextAdapter:
    _setup()
    return ContextAdapter(logging.getLogger(name or ROOT_LOGGER_NAME), {})


def log_with_context(logger: logging.LoggerAdapter | logging.Logger, **keys: Any) -> ContextAdapter:
    """
    Scoped logger for one section of work:

        scoped = log_with_context(log, action="click")
        scoped.warning("candidate [0] timed out")
    """
    if isinstance(logger, ContextAdapter):
        return logger.scoped(**keys)
    if isinstance(logger, logging.LoggerAdapter):
        return ContextAdapter(logger.logger, {**(logger.extra or {}), **keys})
    return ContextAdapter(logger, dict(keys))


def bind(**keys: Any) -> None:
    """Add run-wide context (e.g. run_id) to every following record."""
    _run_context.update(keys)


def unbind(*keys: str) -> None:
    for k in keys:
        _run_context.pop(k, None)


def set_log_level(level: LogLevel | str | int) -> None:
    _setup()
    py_level = _level_of(level)
    root = logging.getLogger()
    root.setLevel(py_level)
    for handler in root.handlers:
        handler.setLevel(py_level)


def attach_file_logger(path: os.PathLike | str, level: Optional[int] = None) -> logging.Handler:
    """Add a JSON file handler for one plan run; pass the result to detach_file_logger."""
    _setup()
    root = logging.getLogger()
    handler = _json_file_handler(path, root.level if level is None else level, backups=3)
    root.addHandler(handler)
    return handler


def detach_file_logger(handler: logging.Handler) -> None:
    logging.getLogger().removeHandler(handler)
    handler.close()
