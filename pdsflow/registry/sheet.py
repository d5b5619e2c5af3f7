"""Spreadsheet cell registry.

Maps record paths to worksheet cells of the CS Form 212 workbook. Entries with
a blank cell are kept so the renderer can report them as unmapped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple

from openpyxl.utils.cell import coordinate_from_string
from openpyxl.utils.exceptions import CellCoordinatesException

from pdsflow_io.mapping import MappingError, as_int, load_mapping_yaml, require_keys
from pdsflow_io.schema import CellRef, SheetTablePayload

from pdsflow.config import DEFAULT_SHEET_REGISTRY
from pdsflow.core.errors import RegistryError

from .page import VALUE_KINDS


@dataclass(frozen=True)
class SheetCell:
    path: str
    cell: Optional[CellRef]
    kind: str = "text"


@dataclass(frozen=True)
class GroupDetailCell:
    group: str
    member: str
    path: str
    cell: Optional[CellRef]


@dataclass(frozen=True)
class DetailCell:
    """Question detail cell, written only when the question flag is true."""

    question: str
    flag_path: str
    path: str
    cell: Optional[CellRef]
    kind: str = "text"


@dataclass(frozen=True)
class SheetColumn:
    field: str
    column: str
    kind: str = "text"


@dataclass(frozen=True)
class SheetTable:
    path: str
    sheet: str
    start_row: int
    max_rows: int
    columns: Tuple[SheetColumn, ...]
    slots: bool = False

    def row(self, index: int) -> int:
        return self.start_row + index

    @property
    def column_letters(self) -> Tuple[str, ...]:
        return tuple(c.column for c in self.columns)


@dataclass(frozen=True)
class SheetList:
    path: str
    sheet: str
    column: str
    start_row: int
    max_rows: int

    def row(self, index: int) -> int:
        return self.start_row + index


@dataclass(frozen=True)
class SheetRegistry:
    """Static field-to-cell lookup for the spreadsheet renderer."""

    sheets: Tuple[str, ...]
    cells: Tuple[SheetCell, ...]
    group_details: Tuple[GroupDetailCell, ...]
    details: Tuple[DetailCell, ...]
    tables: Tuple[SheetTable, ...]
    lists: Tuple[SheetList, ...]
    source: Optional[Path] = field(default=None, compare=False)

    def table(self, path: str) -> SheetTable:
        for table in self.tables:
            if table.path == path:
                return table
        raise KeyError(f"Unknown table region: {path}")


def _cell_ref(sheet: str, raw: Any, where: str) -> Optional[CellRef]:
    if raw in (None, ""):
        return None
    try:
        column, row = coordinate_from_string(str(raw))
    except CellCoordinatesException as exc:
        raise MappingError(f"{where}: invalid cell reference {raw!r}") from exc
    return CellRef(sheet=sheet, column=column, row=row)


def _kind(raw: Mapping[str, Any], where: str) -> str:
    kind = str(raw.get("kind", "text"))
    if kind not in VALUE_KINDS:
        raise MappingError(f"{where}: unknown kind '{kind}'")
    return kind


def _check_sheet(sheet: str, sheets: Tuple[str, ...], where: str) -> str:
    if sheet not in sheets:
        raise MappingError(f"{where}: sheet '{sheet}' is not declared")
    return sheet


def _table(raw: SheetTablePayload, sheets: Tuple[str, ...], idx: int) -> SheetTable:
    where = f"tables[{idx}]"
    require_keys(raw, ("path", "sheet", "start_row", "max_rows", "columns"), where)
    columns: List[SheetColumn] = []
    for name, spec in raw["columns"].items():
        c_where = f"{where}.columns.{name}"
        if isinstance(spec, Mapping):
            require_keys(spec, ("column",), c_where)
            columns.append(SheetColumn(field=str(name), column=str(spec["column"]), kind=_kind(spec, c_where)))
        else:
            columns.append(SheetColumn(field=str(name), column=str(spec)))
    return SheetTable(
        path=str(raw["path"]),
        sheet=_check_sheet(str(raw["sheet"]), sheets, where),
        start_row=as_int(raw, "start_row", where),
        max_rows=as_int(raw, "max_rows", where),
        columns=tuple(columns),
        slots=bool(raw.get("slots", False)),
    )


def build_sheet_registry(payload: Mapping[str, Any], source: Optional[Path] = None) -> SheetRegistry:
    """Validate a raw spreadsheet payload."""

    sheets = tuple(str(s) for s in payload.get("sheets", ()))
    cells: List[SheetCell] = []
    for sheet, entries in (payload.get("cells") or {}).items():
        _check_sheet(str(sheet), sheets, f"cells.{sheet}")
        for path, spec in (entries or {}).items():
            where = f"cells.{sheet}.{path}"
            if isinstance(spec, Mapping):
                cells.append(
                    SheetCell(path=str(path), cell=_cell_ref(str(sheet), spec.get("cell"), where), kind=_kind(spec, where))
                )
            else:
                cells.append(SheetCell(path=str(path), cell=_cell_ref(str(sheet), spec, where)))

    group_details = []
    for idx, raw in enumerate(payload.get("group_details", ())):
        where = f"group_details[{idx}]"
        require_keys(raw, ("group", "member", "path", "sheet"), where)
        sheet = _check_sheet(str(raw["sheet"]), sheets, where)
        group_details.append(
            GroupDetailCell(
                group=str(raw["group"]),
                member=str(raw["member"]),
                path=str(raw["path"]),
                cell=_cell_ref(sheet, raw.get("cell"), where),
            )
        )

    details = []
    for idx, raw in enumerate(payload.get("details", ())):
        where = f"details[{idx}]"
        require_keys(raw, ("question", "flag", "path", "sheet"), where)
        sheet = _check_sheet(str(raw["sheet"]), sheets, where)
        details.append(
            DetailCell(
                question=str(raw["question"]),
                flag_path=str(raw["flag"]),
                path=str(raw["path"]),
                cell=_cell_ref(sheet, raw.get("cell"), where),
                kind=_kind(raw, where),
            )
        )

    lists = []
    for idx, raw in enumerate(payload.get("lists", ())):
        where = f"lists[{idx}]"
        require_keys(raw, ("path", "sheet", "column", "start_row", "max_rows"), where)
        lists.append(
            SheetList(
                path=str(raw["path"]),
                sheet=_check_sheet(str(raw["sheet"]), sheets, where),
                column=str(raw["column"]),
                start_row=as_int(raw, "start_row", where),
                max_rows=as_int(raw, "max_rows", where),
            )
        )

    registry = SheetRegistry(
        sheets=sheets,
        cells=tuple(cells),
        group_details=tuple(group_details),
        details=tuple(details),
        tables=tuple(_table(raw, sheets, idx) for idx, raw in enumerate(payload.get("tables", ()))),
        lists=tuple(lists),
        source=source,
    )
    paths = [c.path for c in registry.cells] + [g.path for g in registry.group_details]
    paths += [d.path for d in registry.details]
    paths += [f"{t.path}[].{c.field}" for t in registry.tables for c in t.columns]
    paths += [f"{lst.path}[]" for lst in registry.lists]
    duplicates = sorted({p for p in paths if paths.count(p) > 1})
    if duplicates:
        raise MappingError(f"Paths mapped more than once: {', '.join(duplicates)}")
    return registry


def load_sheet_registry(path: Optional[Path] = None) -> SheetRegistry:
    """Load the spreadsheet registry, defaulting to the bundled workbook layout.

    Raises:
        RegistryError: When the file is missing or malformed.
    """

    registry_path = Path(path) if path else DEFAULT_SHEET_REGISTRY
    try:
        payload = load_mapping_yaml(registry_path, required=("sheets",))
        return build_sheet_registry(payload, source=registry_path)
    except MappingError as exc:
        raise RegistryError(f"Invalid spreadsheet registry {registry_path.name}: {exc}") from exc
