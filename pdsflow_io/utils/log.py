"""Logging helpers for the pdsflow_io package."""

# Module responsibilities:
# - Configure the ``pdsflow_io`` logger namespace once (rotating file plus console).
# - Render ``extra=`` context as trailing ``key=value`` pairs so structured fields reach the log.

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional

DEFAULT_LOG_BASE = Path.home() / "PDSFlow" / "logs"
LOG_DIR_ENV = "PDSFLOW_LOG_DIR"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_configured_dirs: dict[str, Path] = {}


class ConsoleHandler(logging.StreamHandler):
    """Stream handler bound to whatever ``sys.stderr`` is when a record is emitted."""

    def __init__(self) -> None:
        super().__init__(sys.stderr)

    def emit(self, record: logging.LogRecord) -> None:
        self.stream = sys.stderr
        super().emit(record)


class ContextFormatter(logging.Formatter):
    """Formatter appending ``extra=`` fields, sorted by key, after the message."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}
        if not context:
            return line
        pairs = " ".join(f"{key}={context[key]}" for key in sorted(context))
        return f"{line} | {pairs}"


def resolve_log_dir(log_dir: Optional[Path] = None) -> Path:
    """Explicit directory, else ``$PDSFLOW_LOG_DIR``, else ``~/PDSFlow/logs``; created on demand."""

    env_dir = os.getenv(LOG_DIR_ENV)
    target = log_dir or (Path(env_dir) if env_dir else DEFAULT_LOG_BASE)
    target.mkdir(parents=True, exist_ok=True)
    return target


def configure_namespace(
    namespace: str,
    filename: str,
    *,
    log_dir: Optional[Path] = None,
    console_level: int = logging.WARNING,
) -> logging.Logger:
    """Attach a rotating file handler and a console handler to ``namespace`` once.

    Repeated calls return the already configured logger untouched.
    """

    logger = logging.getLogger(namespace)
    if namespace in _configured_dirs:
        return logger

    directory = resolve_log_dir(log_dir)
    formatter = ContextFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    file_handler = logging.handlers.RotatingFileHandler(
        directory / filename, maxBytes=2_000_000, backupCount=3, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(logging.DEBUG)

    console_handler = ConsoleHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(console_level)

    logger.setLevel(logging.INFO)
    logger.addHandler(file_handler)
    logger.addHandler(console_handler)
    logger.propagate = False
    _configured_dirs[namespace] = directory
    return logger


def get_logger(name: str, log_dir: Optional[Path] = None) -> logging.Logger:
    """Return ``pdsflow_io.<name>``, configuring the package namespace on first use.

    Only warnings reach the console; the file log keeps the INFO trail.
    """

    configure_namespace("pdsflow_io", "pdsflow_io.log", log_dir=log_dir)
    return logging.getLogger(f"pdsflow_io.{name}")
