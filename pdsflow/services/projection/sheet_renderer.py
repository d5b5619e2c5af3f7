"""Spreadsheet renderer: writes a PDS record into the CS Form 212 workbook."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

from openpyxl import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from pdsflow_io.excel_writer import clear_rows, require_sheets, write_cell
from pdsflow_io.schema import CellRef

from pdsflow.core.errors import TemplateMismatchError
from pdsflow.core.record_paths import MISSING, get_path
from pdsflow.registry.page import CheckboxGroup
from pdsflow.registry.sheet import SheetList, SheetRegistry, SheetTable

from . import report as reasons
from .checkboxes import resolve_groups, resolve_yes_no
from .education import assign_slots
from .formatters import FormatError, format_value
from .report import RenderReport
from .tables import project, redistribute

LOGGER = logging.getLogger(__name__)

# What openpyxl raises for a cell it cannot take.
_WRITE_ERRORS = (AttributeError, ValueError, KeyError)


class SheetRenderer:
    """Writes mapped values into a loaded workbook template.

    Checkbox graphics belong to the template and are never touched; only the
    dependent detail text of a group is written, and only while its member is
    selected. ``groups`` supplies the group definitions used for that check.
    """

    def __init__(self, registry: SheetRegistry, groups: Iterable[CheckboxGroup] = ()) -> None:
        self.registry = registry
        self.groups = tuple(groups)

    def render(self, view: Mapping[str, Any], workbook: Workbook, report: RenderReport) -> None:
        """Fill ``workbook`` in place.

        Raises:
            TemplateMismatchError: When a registry sheet is absent from the workbook.
        """

        try:
            require_sheets(workbook, self.registry.sheets)
        except KeyError as exc:
            raise TemplateMismatchError(exc.args[0]) from exc

        for entry in self.registry.cells:
            self._write_value(workbook, entry.path, entry.kind, get_path(view, entry.path), entry.cell, report)

        group_states = resolve_groups(self.groups, view)
        for detail in self.registry.group_details:
            selected = group_states.get(detail.group, {}).get(detail.member)
            if selected is False:
                report.record_skipped(detail.path, reasons.GROUP_NOT_SELECTED, value=get_path(view, detail.path, None))
                continue
            self._write_value(workbook, detail.path, "text", get_path(view, detail.path), detail.cell, report)

        for detail in self.registry.details:
            answer = resolve_yes_no(get_path(view, detail.flag_path, None), get_path(view, detail.path, None))
            if not answer.yes:
                # Existing cell content is left as is.
                report.record_skipped(detail.path, reasons.ANSWER_NOT_YES, value=answer.detail)
                continue
            self._write_value(workbook, detail.path, detail.kind, get_path(view, detail.path), detail.cell, report)

        for table in self.registry.tables:
            self._write_table(workbook[table.sheet], table, get_path(view, table.path, None) or [], report)
        for lst in self.registry.lists:
            self._write_list(workbook[lst.sheet], lst, get_path(view, lst.path, None) or [], report)

    def _format(self, path: str, kind: str, raw: Any, report: RenderReport) -> Optional[str]:
        try:
            return format_value(kind, raw)
        except FormatError as exc:
            reason = reasons.UNPARSEABLE_DATE if kind in {"date", "year"} else reasons.INVALID_VALUE
            LOGGER.warning("Skipping %s: %s", path, exc)
            report.record_skipped(path, reason, value=raw)
            return None

    def _write(self, ws: Worksheet, path: str, ref: str, text: str, report: RenderReport) -> Optional[str]:
        """Write one cell; a failure is reported against ``path`` and returns ``None``."""

        try:
            return write_cell(ws, ref, text)
        except _WRITE_ERRORS as exc:
            LOGGER.warning("Could not write %s to %s!%s: %s", path, ws.title, ref, exc)
            report.record_skipped(path, reasons.WRITE_FAILED, value=text or None, location=f"{ws.title}!{ref}")
            return None

    def _put(self, ws: Worksheet, path: str, ref: str, text: str, report: RenderReport) -> None:
        written = self._write(ws, path, ref, text, report)
        if written is not None:
            report.record_written(path, f"{ws.title}!{written}", text)

    def _write_value(
        self,
        workbook: Workbook,
        path: str,
        kind: str,
        raw: Any,
        cell: Optional[CellRef],
        report: RenderReport,
    ) -> None:
        if cell is None:
            report.record_skipped(path, reasons.UNMAPPED, value=None if raw is MISSING else raw)
            return
        if raw is MISSING:
            report.record_skipped(path, reasons.MISSING)
            return
        text = self._format(path, kind, raw, report)
        if text is None:
            return
        if not text:
            report.record_skipped(path, reasons.MISSING, location=str(cell))
            return
        self._put(workbook[cell.sheet], path, cell.ref, text, report)

    def _placed_rows(self, table: SheetTable, rows: Sequence[Any], report: RenderReport) -> tuple[list, list]:
        """Return ``(placed, empty_rows)`` where placed holds ``(row_index, record_index, row)``."""

        source_index: Dict[int, int] = {id(row): idx for idx, row in enumerate(rows)}
        if table.slots:
            assignment = assign_slots(rows, table.max_rows)
            for row in assignment.overflow:
                report.record_skipped(f"{table.path}.{source_index[id(row)]}", reasons.NO_FREE_SLOT)
            placed = [
                (slot, source_index[id(row)], row)
                for slot, row in enumerate(assignment.slots)
                if row is not None
            ]
            empty = [slot for slot, row in enumerate(assignment.slots) if row is None]
            return placed, empty

        projection = project(rows, table.max_rows)
        for offset, _ in enumerate(projection.overflow):
            report.record_skipped(f"{table.path}.{table.max_rows + offset}", reasons.ROW_OVERFLOW)
        return [(idx, idx, row) for idx, row in projection.placed], list(projection.cleared)

    def _write_table(self, ws: Worksheet, table: SheetTable, rows: Sequence[Any], report: RenderReport) -> None:
        placed, empty = self._placed_rows(table, rows, report)
        for row_index, record_index, row in placed:
            excel_row = table.row(row_index)
            for column in table.columns:
                path = f"{table.path}.{record_index}.{column.field}"
                text = self._format(path, column.kind, get_path(row, column.field, None), report)
                if text is None:
                    text = ""
                elif not text:
                    report.record_skipped(path, reasons.MISSING, location=f"{ws.title}!{column.column}{excel_row}")
                # Blank columns are still written so stale template content never survives.
                if text:
                    self._put(ws, path, f"{column.column}{excel_row}", text, report)
                else:
                    self._write(ws, path, f"{column.column}{excel_row}", "", report)
        try:
            cleared = clear_rows(ws, table.column_letters, (table.row(i) for i in empty))
        except _WRITE_ERRORS as exc:
            LOGGER.warning("Could not clear unused rows of %s: %s", table.path, exc)
            report.record_skipped(table.path, reasons.WRITE_FAILED, location=ws.title)
            return
        if cleared:
            LOGGER.debug("Cleared %s unused row(s) of %s", cleared, table.path)

    def _write_list(self, ws: Worksheet, lst: SheetList, items: Sequence[Any], report: RenderReport) -> None:
        for index, text in enumerate(redistribute(items, lst.max_rows)):
            ref = f"{lst.column}{lst.row(index)}"
            if text:
                self._put(ws, f"{lst.path}.{index}", ref, text, report)
            else:
                self._write(ws, f"{lst.path}.{index}", ref, "", report)
