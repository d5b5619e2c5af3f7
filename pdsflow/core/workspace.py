from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv


load_dotenv(override=False)


def _is_frozen() -> bool:
    return getattr(sys, "frozen", False) and hasattr(sys, "_MEIPASS")


def project_root() -> Path:
    env = os.getenv("PDSFLOW_ROOT")
    if env:
        return Path(env)
    # When frozen (PyInstaller onefile), resources are under sys._MEIPASS
    if _is_frozen():
        return Path(getattr(sys, "_MEIPASS"))  # type: ignore[arg-type]
    # In source layout, this file is under <root>/pdsflow/core
    return Path(__file__).resolve().parents[2]


def work_dir() -> Path:
    """Writable base for runtime files (logs/out)."""
    env = os.getenv("PDSFLOW_WORK_DIR")
    if env:
        return Path(env)
    return project_root() / "work"
