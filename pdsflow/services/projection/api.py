"""Public API for rendering a PDS record onto its templates."""

from __future__ import annotations

import logging
import re
from datetime import date
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union
from zipfile import BadZipFile

from openpyxl.utils.exceptions import InvalidFileException
from pydantic import BaseModel, ConfigDict, ValidationError

from pdsflow_io.excel_writer import open_workbook, save_to_bytes
from pdsflow_io.pdf_io import PdfProcessingError, load_template, merge_overlay

from pdsflow.config import DEFAULT_FORM_CODE, Settings, load_settings
from pdsflow.core.errors import AssetError, PDSFlowError, RenderError
from pdsflow.registry.page import load_page_registry
from pdsflow.registry.sheet import load_sheet_registry

from .models import PDSRecord, RenderOptions, coerce_record
from .page_renderer import PageCanvasRenderer, register_font
from .report import RenderReport
from .sheet_renderer import SheetRenderer
from .view import build_view

LOGGER = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PRODUCER = "PDSFlow"

_WHITESPACE = re.compile(r"\s+")
_NAME_JUNK = re.compile(r"[^A-Z0-9_]")

RecordInput = Union[PDSRecord, Mapping[str, Any]]


class RenderResult(BaseModel):
    """Rendered document plus the per-field outcome report."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    content: bytes
    filename: str
    media_type: str
    report: RenderReport


def _name_part(value: Optional[str]) -> str:
    text = _WHITESPACE.sub("_", (value or "").strip().upper())
    return _NAME_JUNK.sub("", text) or "UNKNOWN"


def generate_filename(
    record: RecordInput,
    ext: str,
    form_code: str = DEFAULT_FORM_CODE,
    year: Optional[int] = None,
) -> str:
    """``<form-code>_<SURNAME>_<FIRSTNAME>_<year>.<ext>``"""

    personal = coerce_record(record if isinstance(record, PDSRecord) else dict(record)).personalInfo
    year = year or date.today().year
    return f"{form_code}_{_name_part(personal.surname)}_{_name_part(personal.firstName)}_{year}.{ext.lstrip('.')}"


def _read_asset(path: Path, label: str) -> bytes:
    if not path.exists():
        raise AssetError(f"{label} not found: {path}")
    try:
        return path.read_bytes()
    except OSError as exc:
        raise AssetError(f"{label} unreadable: {path}: {exc}") from exc


def _prepare(
    record: RecordInput,
    options: Optional[RenderOptions],
    settings: Optional[Settings],
) -> tuple[PDSRecord, RenderOptions, Settings]:
    try:
        rec = coerce_record(record if isinstance(record, PDSRecord) else dict(record))
    except ValidationError as exc:
        raise RenderError(f"Record is not a valid PDS record: {exc}") from exc
    return rec, options or RenderOptions(), settings or load_settings()


def _metadata(record: PDSRecord, settings: Settings) -> Dict[str, str]:
    personal = record.personalInfo
    name = " ".join(part for part in (personal.firstName, personal.surname) if part)
    return {
        "Title": f"{settings.form_code.replace('_', ' ')} - {name}".rstrip(" -"),
        "Producer": PRODUCER,
    }


def render_pdf(
    record: RecordInput,
    options: Optional[RenderOptions] = None,
    settings: Optional[Settings] = None,
) -> RenderResult:
    """Render ``record`` onto the four page PDF template.

    Raises:
        RenderError: Wrapping the fatal cause (missing template or font, page mismatch).
    """

    rec, options, settings = _prepare(record, options, settings)
    report = RenderReport(target="pdf")
    try:
        registry = load_page_registry(settings.page_registry)
        font_name = register_font(settings.font_path)
        try:
            template = load_template(_read_asset(settings.template_pdf, "PDF template"))
        except PdfProcessingError as exc:
            raise AssetError(f"PDF template unreadable: {settings.template_pdf}: {exc}") from exc
        overlay = PageCanvasRenderer(registry, font_name).render(build_view(rec, options), template, options, report)
        content = merge_overlay(template, overlay, metadata=_metadata(rec, settings))
    except PDSFlowError as exc:
        LOGGER.error("PDF render failed: %s", exc)
        raise RenderError(f"PDF render failed: {exc}") from exc

    year = (options.today or date.today()).year
    LOGGER.info("PDF rendered", extra=report.summary())
    return RenderResult(
        content=content,
        filename=generate_filename(rec, "pdf", settings.form_code, year),
        media_type=PDF_MEDIA_TYPE,
        report=report,
    )


def render_workbook(
    record: RecordInput,
    options: Optional[RenderOptions] = None,
    settings: Optional[Settings] = None,
) -> RenderResult:
    """Render ``record`` into the CS Form 212 workbook template.

    Raises:
        RenderError: Wrapping the fatal cause (missing template, missing sheet).
    """

    rec, options, settings = _prepare(record, options, settings)
    report = RenderReport(target="xlsx")
    try:
        sheet_registry = load_sheet_registry(settings.sheet_registry)
        groups = load_page_registry(settings.page_registry).groups
        data = _read_asset(settings.template_xlsx, "Workbook template")
        try:
            workbook = open_workbook(data)
        except (InvalidFileException, BadZipFile, OSError) as exc:
            raise AssetError(f"Workbook template unreadable: {settings.template_xlsx}: {exc}") from exc
        SheetRenderer(sheet_registry, groups).render(build_view(rec, options), workbook, report)
        content = save_to_bytes(workbook)
    except PDSFlowError as exc:
        LOGGER.error("Workbook render failed: %s", exc)
        raise RenderError(f"Workbook render failed: {exc}") from exc

    year = (options.today or date.today()).year
    LOGGER.info("Workbook rendered", extra=report.summary())
    return RenderResult(
        content=content,
        filename=generate_filename(rec, "xlsx", settings.form_code, year),
        media_type=XLSX_MEDIA_TYPE,
        report=report,
    )
