"""Coordinate registries, one per render target."""

# Module responsibilities:
# - Own the single top-down/bottom-up y conversion used by every target.
# - Load and validate the page-canvas, spreadsheet and overlay registries from YAML.

from __future__ import annotations

from .geometry import LETTER, Point, to_percent, top_from_y, y_from_top
from .overlay import (
    Condition,
    FieldRequirement,
    OverlayField,
    OverlayRegistry,
    build_overlay_fields,
    load_overlay_registry,
)
from .page import CheckboxGroup, PageRegistry, TableRegion, load_page_registry
from .sheet import SheetRegistry, load_sheet_registry

__all__ = [
    "LETTER",
    "Point",
    "to_percent",
    "top_from_y",
    "y_from_top",
    "Condition",
    "FieldRequirement",
    "OverlayField",
    "OverlayRegistry",
    "build_overlay_fields",
    "load_overlay_registry",
    "CheckboxGroup",
    "PageRegistry",
    "TableRegion",
    "load_page_registry",
    "SheetRegistry",
    "load_sheet_registry",
]
