"""Application logger for the PDSFlow CLI and services."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pdsflow_io.utils.log import LOG_DIR_ENV, configure_namespace

from .workspace import work_dir

APP_NAMESPACE = "pdsflow"


def get_logger(log_dir: Path | None = None) -> logging.Logger:
    """Return the ``pdsflow`` logger writing to ``<log dir>/app.log`` and stderr.

    Service modules log through ``logging.getLogger(__name__)`` and inherit
    these handlers. The log directory is ``log_dir``, else ``$PDSFLOW_LOG_DIR``,
    else ``<work dir>/logs``.
    """

    if log_dir is None and not os.getenv(LOG_DIR_ENV):
        log_dir = work_dir() / "logs"
    return configure_namespace(
        APP_NAMESPACE,
        "app.log",
        log_dir=log_dir,
        console_level=logging.INFO,
    )


def set_level(level_name: str) -> int:
    """Apply ``level_name`` (e.g. ``DEBUG``) to the application and I/O loggers.

    Raises:
        ValueError: When the name is not a logging level.
    """

    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {level_name}")
    logging.getLogger().setLevel(level)
    for namespace in (APP_NAMESPACE, "pdsflow_io"):
        logging.getLogger(namespace).setLevel(level)
    return level
