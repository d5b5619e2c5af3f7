"""Shared schemas for registry payloads and template targets."""

# Module responsibilities:
# - Provide typed containers for the YAML registry payloads before validation.
# - Define lightweight records describing template geometry so callers stay explicit.

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, NotRequired, Optional, TypedDict


class FieldPayload(TypedDict):
    """Scalar field entry as authored in a page-canvas registry file."""

    path: str
    x: float
    top: float
    kind: NotRequired[str]
    size: NotRequired[float]
    max_width: NotRequired[float]
    max_lines: NotRequired[int]


class TablePayload(TypedDict):
    """Repeating region entry for the page-canvas registry."""

    path: str
    start_top: float
    row_step: float
    max_rows: int
    columns: Dict[str, Dict[str, object]]
    slots: NotRequired[bool]


class SheetTablePayload(TypedDict):
    """Repeating region entry for the spreadsheet registry."""

    path: str
    start_row: int
    max_rows: int
    columns: Dict[str, str]
    slots: NotRequired[bool]


class SheetPayload(TypedDict):
    """One worksheet block of the spreadsheet registry."""

    cells: NotRequired[Dict[str, str]]
    details: NotRequired[List[Dict[str, str]]]
    tables: NotRequired[List[SheetTablePayload]]
    lists: NotRequired[List[Dict[str, object]]]


@dataclass(frozen=True)
class PageSize:
    """Page dimensions in PDF points."""

    width: float
    height: float


@dataclass(frozen=True)
class CellRef:
    """Worksheet cell address."""

    sheet: str
    column: str
    row: int

    @property
    def ref(self) -> str:
        return f"{self.column}{self.row}"

    def __str__(self) -> str:
        return f"{self.sheet}!{self.ref}"


@dataclass(frozen=True)
class WordBox:
    """Positioned word extracted from a rendered page (top-left origin)."""

    text: str
    x0: float
    top: float
    x1: float
    bottom: float
    page: int
    size: Optional[float] = None
