"""YAML-backed coordinate mapping files."""

# Module responsibilities:
# - Load mapping YAML payloads and enforce their required top-level keys.
# - Offer small coercion helpers so registry builders report precise locations on bad input.

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, Mapping

import yaml

from .utils.log import get_logger

logger = get_logger("mapping")


class MappingError(RuntimeError):
    """Raised when mapping configuration is invalid or cannot be applied."""


def load_mapping_yaml(path: Path, required: Iterable[str] = ()) -> Dict[str, Any]:
    """Load a mapping YAML file and check its required top-level keys.

    Args:
        path: Mapping file location.
        required: Keys that must be present at the top level.

    Returns:
        Parsed mapping payload.

    Raises:
        MappingError: When the file is absent, not a mapping, or misses keys.
    """

    if not path.exists():
        raise MappingError(f"Mapping file not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        try:
            payload = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise MappingError(f"Invalid mapping YAML {path.name}: {exc}") from exc
    if not isinstance(payload, dict):
        raise MappingError("Invalid mapping YAML structure (expected mapping)")
    if missing := set(required) - payload.keys():
        raise MappingError(
            f"Mapping YAML missing required keys: {', '.join(sorted(missing))}"
        )
    logger.info("Mapping loaded", extra={"mapping": str(path), "keys": sorted(payload.keys())})
    return payload


def require_keys(entry: Mapping[str, Any], keys: Iterable[str], where: str) -> None:
    """Raise ``MappingError`` naming ``where`` when ``entry`` lacks any of ``keys``."""

    if not isinstance(entry, Mapping):
        raise MappingError(f"{where}: expected a mapping, got {type(entry).__name__}")
    if missing := set(keys) - entry.keys():
        raise MappingError(f"{where}: missing keys {', '.join(sorted(missing))}")


def as_float(entry: Mapping[str, Any], key: str, where: str, default: Any = None) -> float:
    value = entry.get(key, default)
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise MappingError(f"{where}: '{key}' must be a number, got {value!r}") from exc


def as_int(entry: Mapping[str, Any], key: str, where: str, default: Any = None) -> int:
    value = entry.get(key, default)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise MappingError(f"{where}: '{key}' must be an integer, got {value!r}") from exc
