"""Logging setup for applications embedding markroff."""

from __future__ import annotations

import json
import logging
import sys
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

__all__ = [
    "JsonLogFormatter",
    "configure_logger",
]

_FILE_MARKER = "_markroff_file"
_CONSOLE_MARKER = "_markroff_console"


class JsonLogFormatter(logging.Formatter):
    """Render each record as one JSON object per line."""

    _STANDARD_ATTRS = frozenset(
        logging.LogRecord(
            "", logging.INFO, "", 0, "", (), None
        ).__dict__
    ) | {"message", "asctime", "taskName"}

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = {
            key: _jsonable(value)
            for key, value in record.__dict__.items()
            if key not in self._STANDARD_ATTRS
        }
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def configure_logger(
    name: str = "markroff",
    *,
    log_dir: Path | None = None,
    level: str = "INFO",
    verbose: bool = False,
    max_bytes: int = 2 * 1024 * 1024,
    backup_count: int = 3,
) -> tuple[logging.Logger, Path | None]:
    """Configure ``name`` for JSON file output and optional console output.

    Without ``log_dir`` no file handler is installed and the returned path is
    ``None``. Calling this again for the same logger reuses its handlers.
    """

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    threshold = _level_from_name(level)
    if verbose:
        threshold = logging.DEBUG

    log_path: Path | None = None
    if log_dir is not None:
        handler, log_path = _install_file_handler(
            logger,
            log_dir=log_dir,
            filename=f"{name.rsplit('.', 1)[-1]}.log",
            max_bytes=max_bytes,
            backup_count=backup_count,
        )
        handler.setLevel(threshold)

    console = _find_handler(logger, _CONSOLE_MARKER)
    if verbose or log_dir is None:
        if console is None:
            console = logging.StreamHandler(stream=sys.stderr)
            console.setFormatter(
                logging.Formatter("%(levelname)s %(name)s: %(message)s")
            )
            setattr(console, _CONSOLE_MARKER, True)
            logger.addHandler(console)
        console.setLevel(threshold)
    elif console is not None:
        logger.removeHandler(console)
        console.close()

    return logger, log_path


def _level_from_name(level: str) -> int:
    numeric = logging.getLevelName(level.strip().upper())
    if isinstance(numeric, int):
        return numeric
    return logging.INFO


def _find_handler(logger: logging.Logger, marker: str) -> logging.Handler | None:
    for handler in logger.handlers:
        if getattr(handler, marker, False):
            return handler
    return None


def _install_file_handler(
    logger: logging.Logger,
    *,
    log_dir: Path,
    filename: str,
    max_bytes: int,
    backup_count: int,
) -> tuple[logging.Handler, Path]:
    existing = _find_handler(logger, _FILE_MARKER)
    if existing is not None:
        return existing, Path(existing.baseFilename)  # type: ignore[attr-defined]

    target = _writable_dir(log_dir) / filename
    try:
        handler = RotatingFileHandler(
            target,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    except PermissionError:
        target = _writable_dir(_fallback_log_dir()) / filename
        handler = RotatingFileHandler(
            target,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    handler.setFormatter(JsonLogFormatter())
    setattr(handler, _FILE_MARKER, True)
    logger.addHandler(handler)
    return handler, target


def _writable_dir(candidate: Path) -> Path:
    try:
        candidate.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        candidate = _fallback_log_dir()
        candidate.mkdir(parents=True, exist_ok=True)
    return candidate


def _fallback_log_dir() -> Path:
    return Path(tempfile.gettempdir()) / "markroff-logs"


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(item) for item in value]
    return repr(value)
