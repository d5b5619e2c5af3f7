"""Projection service: PDS record to PDF and workbook outputs."""

from .api import (
    PDF_MEDIA_TYPE,
    XLSX_MEDIA_TYPE,
    RenderResult,
    generate_filename,
    render_pdf,
    render_workbook,
)
from .models import PDSRecord, RenderOptions
from .report import RenderReport, Skipped, Written
from .validate import MissingField, RequiredCheckResult, check_page, check_required, requirements_for_page

__all__ = [
    "PDF_MEDIA_TYPE",
    "XLSX_MEDIA_TYPE",
    "RenderResult",
    "generate_filename",
    "render_pdf",
    "render_workbook",
    "PDSRecord",
    "RenderOptions",
    "RenderReport",
    "Skipped",
    "Written",
    "MissingField",
    "RequiredCheckResult",
    "check_page",
    "check_required",
    "requirements_for_page",
]
