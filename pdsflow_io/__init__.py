"""`pdsflow_io` top-level package exports the format helpers for PDF and workbook templates."""

# Module responsibilities:
# - Re-export template I/O, text layout and registry-loading helpers so consumers have a stable API surface.
# - Provide package version placeholder for future packaging.

from __future__ import annotations

from .excel_writer import clear_rows, open_workbook, require_sheets, save_to_bytes, write_cell, write_row
from .mapping import MappingError, load_mapping_yaml
from .pdf_io import (
    PdfInfo,
    PdfProcessingError,
    extract_text,
    extract_words,
    load_template,
    merge_overlay,
    read_info,
)
from .text_layout import FontMetrics, ReportlabMetrics, fit_to_width, wrap

__all__ = [
    "clear_rows",
    "open_workbook",
    "require_sheets",
    "save_to_bytes",
    "write_cell",
    "write_row",
    "MappingError",
    "load_mapping_yaml",
    "PdfInfo",
    "PdfProcessingError",
    "extract_text",
    "extract_words",
    "load_template",
    "merge_overlay",
    "read_info",
    "FontMetrics",
    "ReportlabMetrics",
    "fit_to_width",
    "wrap",
]

__version__ = "0.1.0"
