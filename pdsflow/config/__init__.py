"""Runtime settings for PDSFlow renders.

Settings resolve in three layers: built-in defaults rooted at the project
directory, an optional ``settings.yaml`` and finally ``PDSFLOW_*`` environment
variables (a ``.env`` file is honoured through python-dotenv). Coordinate
registries ship beside this module under ``registry/``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from pdsflow.core.errors import ConfigError
from pdsflow.core.workspace import project_root, work_dir


CONFIG_DIR = Path(__file__).resolve().parent
REGISTRY_DIR = CONFIG_DIR / "registry"
DEFAULT_PAGE_REGISTRY = REGISTRY_DIR / "page_canvas.yaml"
DEFAULT_SHEET_REGISTRY = REGISTRY_DIR / "spreadsheet.yaml"
DEFAULT_OVERLAY_REGISTRY = REGISTRY_DIR / "overlay.yaml"
DEFAULT_FORM_CODE = "CS_Form_212"

_ENV_KEYS = {
    "template_pdf": "PDSFLOW_TEMPLATE_PDF",
    "template_xlsx": "PDSFLOW_TEMPLATE_XLSX",
    "font_path": "PDSFLOW_FONT",
    "form_code": "PDSFLOW_FORM_CODE",
    "output_dir": "PDSFLOW_OUTPUT_DIR",
}
_PATH_KEYS = {
    "template_pdf",
    "template_xlsx",
    "font_path",
    "output_dir",
    "page_registry",
    "sheet_registry",
    "overlay_registry",
}


@dataclass(frozen=True)
class Settings:
    """Asset locations and naming used by the renderers."""

    template_pdf: Path
    template_xlsx: Path
    font_path: Optional[Path]
    form_code: str
    output_dir: Path
    page_registry: Path = DEFAULT_PAGE_REGISTRY
    sheet_registry: Path = DEFAULT_SHEET_REGISTRY
    overlay_registry: Path = DEFAULT_OVERLAY_REGISTRY

    def with_overrides(self, **changes: Any) -> "Settings":
        """Return a copy with the given fields replaced (paths are coerced)."""

        coerced = {
            key: (Path(value) if key in _PATH_KEYS and value is not None else value)
            for key, value in changes.items()
        }
        return replace(self, **coerced)


def default_settings() -> Settings:
    root = project_root()
    return Settings(
        template_pdf=root / "templates" / "PDS_2025_Template.pdf",
        template_xlsx=root / "templates" / "CS_Form_212_2025.xlsx",
        font_path=None,
        form_code=DEFAULT_FORM_CODE,
        output_dir=work_dir() / "out",
    )


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Settings file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Settings file is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Settings file must contain a mapping")
    return data


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for field_name, env_key in _ENV_KEYS.items():
        value = environ.get(env_key)
        if value:
            overrides[field_name] = value
    return overrides


def load_settings(
    path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Resolve settings from defaults, an optional YAML file and the environment."""

    settings = default_settings()
    if path is not None:
        raw = _load_yaml(Path(path))
        unknown = set(raw) - set(Settings.__dataclass_fields__)
        if unknown:
            raise ConfigError(f"Unknown settings keys: {', '.join(sorted(unknown))}")
        settings = settings.with_overrides(**raw)
    env = os.environ if environ is None else environ
    return settings.with_overrides(**_env_overrides(env))


__all__ = [
    "CONFIG_DIR",
    "DEFAULT_FORM_CODE",
    "DEFAULT_OVERLAY_REGISTRY",
    "DEFAULT_PAGE_REGISTRY",
    "DEFAULT_SHEET_REGISTRY",
    "Settings",
    "default_settings",
    "load_settings",
]
