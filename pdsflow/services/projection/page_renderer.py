"""Page-canvas renderer: draws a PDS record onto the PDF template."""

from __future__ import annotations

import base64
import binascii
import logging
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pypdf import PdfReader
from reportlab.lib.colors import Color, black
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.pdfgen import canvas

from pdsflow_io.pdf_io import page_size
from pdsflow_io.text_layout import ReportlabMetrics, fit_to_width, wrap

from pdsflow.core.errors import AssetError, TemplateMismatchError
from pdsflow.core.record_paths import MISSING, get_path
from pdsflow.registry.geometry import Point, top_from_y, y_from_top
from pdsflow.registry.page import Column, ListRegion, PageRegistry, Question, SignatureBox, TableRegion

from . import report as reasons
from .checkboxes import resolve_groups, resolve_yes_no
from .education import assign_slots
from .formatters import FormatError, format_value
from .models import RenderOptions
from .report import RenderReport
from .tables import project, redistribute

LOGGER = logging.getLogger(__name__)

STANDARD_FONT = "Helvetica"
CHECK_LINE_WIDTH = 1.2
GRID_STEP = 50
_GRID_COLOR = Color(0.6, 0.6, 0.9, alpha=0.6)


def register_font(font_path: Optional[Path]) -> str:
    """Register the configured TrueType font and return its name.

    Without a configured font the standard Helvetica face is used.

    Raises:
        AssetError: When a configured font file is missing or unreadable.
    """

    if font_path is None:
        return STANDARD_FONT
    font_path = Path(font_path)
    if not font_path.exists():
        raise AssetError(f"Font asset not found: {font_path}")
    name = f"PDS-{font_path.stem}"
    try:
        pdfmetrics.registerFont(TTFont(name, str(font_path)))
    except (TTFError, OSError) as exc:
        raise AssetError(f"Font asset unreadable: {font_path}: {exc}") from exc
    return name


def decode_data_url(data: str) -> bytes:
    """Decode a ``data:image/...;base64,`` payload.

    Raises:
        ValueError: When the payload is not an inline base64 image.
    """

    header, sep, payload = data.partition(",")
    if not sep or not header.startswith("data:image/") or not header.endswith(";base64"):
        raise ValueError("signature is not an inline base64 image")
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"signature payload is not valid base64: {exc}") from exc


def fit_box(image_w: float, image_h: float, box: SignatureBox) -> tuple[float, float, float, float]:
    """Scale an image into the padded box keeping its aspect ratio, centered."""

    avail_w = box.width - 2 * box.padding
    avail_h = box.height - 2 * box.padding
    scale = min(avail_w / image_w, avail_h / image_h)
    draw_w, draw_h = image_w * scale, image_h * scale
    return (
        box.x + (box.width - draw_w) / 2,
        box.y + (box.height - draw_h) / 2,
        draw_w,
        draw_h,
    )


def _location(page: int, at: Point) -> str:
    return f"page {page} ({at.x:.1f}, {at.y:.1f})"


class PageCanvasRenderer:
    """Walks the page-canvas registry and draws every mapped value."""

    def __init__(self, registry: PageRegistry, font_name: str = STANDARD_FONT) -> None:
        self.registry = registry
        self.font_name = font_name
        self.metrics = ReportlabMetrics(font_name)

    def render(
        self,
        view: Mapping[str, Any],
        template: PdfReader,
        options: RenderOptions,
        report: RenderReport,
    ) -> bytes:
        """Return an overlay document with one page per template page.

        Raises:
            TemplateMismatchError: When a registry page is absent from the template.
        """

        page_count = len(template.pages)
        missing = [p for p in self.registry.pages if p > page_count]
        if missing:
            raise TemplateMismatchError(
                f"Template has {page_count} page(s); registry needs page(s) {missing}"
            )

        group_states = resolve_groups(self.registry.groups, view)
        buffer = BytesIO()
        pdf = canvas.Canvas(buffer, invariant=1)
        for page in range(1, page_count + 1):
            size = page_size(template, page - 1)
            pdf.setPageSize((size.width, size.height))
            if page in self.registry.pages:
                if (size.width, size.height) != (self.registry.page_size.width, self.registry.page_size.height):
                    LOGGER.warning(
                        "Template page %s is %sx%s, registry expects %sx%s",
                        page,
                        size.width,
                        size.height,
                        self.registry.page_size.width,
                        self.registry.page_size.height,
                    )
                self._draw_page(pdf, page, view, group_states, options, report)
            if options.debug_grid:
                self._draw_grid(pdf, size.width, size.height)
            pdf.showPage()
        pdf.save()
        return buffer.getvalue()

    def _draw_page(
        self,
        pdf: canvas.Canvas,
        page: int,
        view: Mapping[str, Any],
        group_states: Mapping[str, Mapping[str, bool]],
        options: RenderOptions,
        report: RenderReport,
    ) -> None:
        registry = self.registry.on_page(page)
        pdf.setFillColor(black)
        pdf.setStrokeColor(black)

        for entry in registry.fields:
            self._draw_value(
                pdf, page, entry.path, entry.kind, get_path(view, entry.path), entry.at,
                entry.size, entry.max_width, entry.max_lines, report,
            )
        for group in registry.groups:
            self._draw_group(pdf, page, group, view, group_states[group.name], report)
        for question in registry.questions:
            self._draw_question(pdf, page, question, view, report)
        for table in registry.tables:
            self._draw_table(pdf, page, table, view, report)
        for lst in registry.lists:
            self._draw_list(pdf, page, lst, view, report)
        if registry.signature:
            self._draw_signature(pdf, page, registry.signature, view, options, report)

    def _draw_value(
        self,
        pdf: canvas.Canvas,
        page: int,
        path: str,
        kind: str,
        raw: Any,
        at: Point,
        size: float,
        max_width: float,
        max_lines: int,
        report: RenderReport,
    ) -> None:
        if raw is MISSING:
            report.record_skipped(path, reasons.MISSING)
            return
        try:
            text = format_value(kind, raw)
        except FormatError as exc:
            reason = reasons.UNPARSEABLE_DATE if kind in {"date", "year"} else reasons.INVALID_VALUE
            LOGGER.warning("Skipping %s: %s", path, exc)
            report.record_skipped(path, reason, value=raw)
            return
        if not text:
            report.record_skipped(path, reasons.MISSING)
            return

        pdf.setFont(self.font_name, size)
        if max_lines > 1:
            lines = wrap(self.metrics, text, size, max_width, max_lines)
            for index, line in enumerate(lines):
                baseline = at.line_below(index, size)
                pdf.drawString(baseline.x, baseline.y, line)
            truncated = " ".join(lines) != " ".join(text.split())
        else:
            fitted = fit_to_width(self.metrics, text, size, max_width)
            pdf.drawString(at.x, at.y, fitted)
            truncated = fitted != text
        if truncated:
            LOGGER.info("Truncated %s to fit %.0fpt", path, max_width)
        report.record_written(path, _location(page, at), text, truncated=truncated)

    def _draw_check(self, pdf: canvas.Canvas, at: Point) -> None:
        s = self.registry.checkbox_size
        pdf.setLineWidth(CHECK_LINE_WIDTH)
        pdf.line(at.x + 0.1 * s, at.y + 0.35 * s, at.x + 0.35 * s, at.y + 0.1 * s)
        pdf.line(at.x + 0.35 * s, at.y + 0.1 * s, at.x + 0.9 * s, at.y + 0.85 * s)

    def _draw_group(self, pdf, page, group, view, states, report) -> None:  # type: ignore[no-untyped-def]
        raw = get_path(view, group.path, None)
        checked = [member for member in group.members if states.get(member.id)]
        for member in checked:
            self._draw_check(pdf, member.at)
            report.record_written(group.path, f"{group.name}.{member.id}", member.value)
        if not checked:
            reason = reasons.MISSING if raw in (None, "") else reasons.INVALID_VALUE
            report.record_skipped(group.path, reason, value=raw)

        if group.detail is None:
            return
        detail = group.detail
        if states.get(group.detail_member or ""):
            self._draw_value(
                pdf, page, detail.path, detail.kind, get_path(view, detail.path), detail.at,
                detail.size, detail.max_width, detail.max_lines, report,
            )
        else:
            report.record_skipped(detail.path, reasons.GROUP_NOT_SELECTED, value=get_path(view, detail.path, None))

    def _draw_question(self, pdf: canvas.Canvas, page: int, question: Question, view, report: RenderReport) -> None:  # type: ignore[no-untyped-def]
        answer = resolve_yes_no(get_path(view, question.flag_path, None))
        box = question.yes if answer.yes else question.no
        self._draw_check(pdf, box)
        report.record_written(question.flag_path, f"{question.id}.{'yes' if answer.yes else 'no'}", answer.yes)
        # Detail text is drawn whatever the answer; a "no" keeps any earlier draft text.
        for detail in question.details:
            self._draw_value(
                pdf, page, detail.path, detail.kind, get_path(view, detail.path), detail.at,
                detail.size, detail.max_width, detail.max_lines, report,
            )

    def _placed_rows(self, table: TableRegion, rows: Sequence[Any], report: RenderReport) -> List[tuple[int, int, Any]]:
        """Return ``(template_row, record_index, row)`` triples for a region."""

        source_index: Dict[int, int] = {id(row): idx for idx, row in enumerate(rows)}
        if table.slots:
            assignment = assign_slots(rows, table.max_rows)
            for row in assignment.overflow:
                report.record_skipped(f"{table.path}.{source_index[id(row)]}", reasons.NO_FREE_SLOT)
            return [
                (slot, source_index[id(row)], row)
                for slot, row in enumerate(assignment.slots)
                if row is not None
            ]
        projection = project(rows, table.max_rows)
        for offset, _ in enumerate(projection.overflow):
            report.record_skipped(f"{table.path}.{table.max_rows + offset}", reasons.ROW_OVERFLOW)
        return [(idx, idx, row) for idx, row in projection.placed]

    def _draw_table(self, pdf: canvas.Canvas, page: int, table: TableRegion, view, report: RenderReport) -> None:  # type: ignore[no-untyped-def]
        rows = get_path(view, table.path, None) or []
        for row_index, record_index, row in self._placed_rows(table, rows, report):
            y = table.row_y(row_index)
            for column in table.columns:
                self._draw_cell(pdf, page, table, column, record_index, row, y, report)

    def _draw_cell(
        self,
        pdf: canvas.Canvas,
        page: int,
        table: TableRegion,
        column: Column,
        record_index: int,
        row: Any,
        y: float,
        report: RenderReport,
    ) -> None:
        self._draw_value(
            pdf, page, f"{table.path}.{record_index}.{column.field}", column.kind,
            get_path(row, column.field), Point(column.x, y), column.size, column.max_width, 1, report,
        )

    def _draw_list(self, pdf: canvas.Canvas, page: int, lst: ListRegion, view, report: RenderReport) -> None:  # type: ignore[no-untyped-def]
        items = get_path(view, lst.path, None) or []
        for index, text in enumerate(redistribute(items, lst.max_rows)):
            if not text:
                continue
            self._draw_value(
                pdf, page, f"{lst.path}.{index}", "text", text, Point(lst.x, lst.row_y(index)),
                lst.size, lst.max_width, 1, report,
            )

    def _draw_signature(
        self,
        pdf: canvas.Canvas,
        page: int,
        box: SignatureBox,
        view: Mapping[str, Any],
        options: RenderOptions,
        report: RenderReport,
    ) -> None:
        data = get_path(view, box.path, None)
        if not options.include_signature:
            report.record_skipped(box.path, reasons.SIGNATURE_DISABLED)
            return
        if not data:
            report.record_skipped(box.path, reasons.MISSING)
            return
        try:
            image = ImageReader(BytesIO(decode_data_url(str(data))))
            image_w, image_h = image.getSize()
            x, y, w, h = fit_box(float(image_w), float(image_h), box)
            pdf.drawImage(image, x, y, width=w, height=h, mask="auto")
        except Exception as exc:  # noqa: BLE001 - a bad signature must not abort the render
            LOGGER.warning("Signature not embedded: %s", exc)
            report.record_skipped(box.path, reasons.SIGNATURE_UNREADABLE)
            return
        report.record_written(box.path, _location(page, Point(x, y)), f"{w:.0f}x{h:.0f}")

    def _draw_grid(self, pdf: canvas.Canvas, width: float, height: float) -> None:
        pdf.saveState()
        pdf.setStrokeColor(_GRID_COLOR)
        pdf.setFillColor(_GRID_COLOR)
        pdf.setLineWidth(0.25)
        pdf.setFont(STANDARD_FONT, 5)
        x = 0.0
        while x <= width:
            pdf.line(x, 0, x, height)
            pdf.drawString(x + 1, y_from_top(6, height), f"{x:.0f}")
            x += GRID_STEP
        y = 0.0
        while y <= height:
            pdf.line(0, y, width, y)
            pdf.drawString(1, y + 1, f"{top_from_y(y, height):.0f}")
            y += GRID_STEP
        pdf.restoreState()
