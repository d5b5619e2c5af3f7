"""Excel output helpers for writing into pre-formatted workbook templates."""

# Module responsibilities:
# - Open workbook templates from disk or bytes without destroying styles.
# - Write single cells (resolving merged ranges to their anchor) and row blocks.
# - Clear stale rows so re-rendering onto a filled template stays idempotent.

from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence, Union

from openpyxl import Workbook, load_workbook
from openpyxl.cell.cell import MergedCell
from openpyxl.worksheet.worksheet import Worksheet

from .utils.log import get_logger

logger = get_logger("excel_writer")

WorkbookSource = Union[Path, str, bytes]


def open_workbook(source: WorkbookSource) -> Workbook:
    """Load a workbook template.

    Raises:
        FileNotFoundError: When the template workbook is absent.
    """

    if isinstance(source, bytes):
        return load_workbook(BytesIO(source))
    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"Template workbook not found: {path}")
    wb = load_workbook(path)
    logger.info("Workbook template loaded", extra={"template": str(path), "sheets": wb.sheetnames})
    return wb


def require_sheets(wb: Workbook, names: Iterable[str]) -> None:
    """Ensure every named sheet exists.

    Raises:
        KeyError: When a sheet is missing; the message lists the available sheets.
    """

    for name in names:
        if name not in wb.sheetnames:
            raise KeyError(
                f"Sheet '{name}' not found in template. Available sheets: {', '.join(wb.sheetnames)}"
            )


def _anchor_ref(ws: Worksheet, ref: str) -> str:
    cell = ws[ref]
    if not isinstance(cell, MergedCell):
        return ref
    for merged in ws.merged_cells.ranges:
        if ref in merged:
            return ws.cell(row=merged.min_row, column=merged.min_col).coordinate
    return ref


def write_cell(ws: Worksheet, ref: str, value: object) -> str:
    """Write ``value`` into ``ref`` and return the coordinate actually written.

    Cells inside a merged range are redirected to the range's top-left anchor.
    """

    target = _anchor_ref(ws, ref)
    ws[target].value = value
    return target


def write_row(ws: Worksheet, row: int, values: Mapping[str, object]) -> None:
    """Write ``{column_letter: value}`` pairs into one worksheet row."""

    for column, value in values.items():
        write_cell(ws, f"{column}{row}", value)


def clear_rows(ws: Worksheet, columns: Sequence[str], rows: Iterable[int]) -> int:
    """Overwrite the given columns of each row with empty strings.

    Returns:
        Number of rows cleared.
    """

    count = 0
    for row in rows:
        write_row(ws, row, {column: "" for column in columns})
        count += 1
    return count


def save_to_bytes(wb: Workbook, out_path: Optional[Path] = None) -> bytes:
    """Serialize a workbook, optionally also persisting it to ``out_path``."""

    buffer = BytesIO()
    wb.save(buffer)
    data = buffer.getvalue()
    if out_path is not None:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(data)
        logger.info("Workbook written", extra={"output": str(out_path), "bytes": len(data)})
    return data
