"""PDF template utilities: load, flatten, merge overlays, inspect."""

# Module responsibilities:
# - Load PDF templates fresh per call with pypdf and fail loudly on malformed input.
# - Flatten interactive form widgets so drawn content is never hidden behind them.
# - Merge an overlay document page-by-page onto template pages and emit bytes.
# - Extract positioned words with pdfplumber for calibration and verification.

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

import pdfplumber
from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError
from pypdf.generic import ArrayObject, NameObject

from .schema import PageSize, WordBox
from .utils.log import get_logger

logger = get_logger("pdf_io")

PdfSource = Union[Path, str, bytes]


class PdfProcessingError(RuntimeError):
    """Raised when PDF operations fail."""


@dataclass(frozen=True)
class PdfInfo:
    """Metadata summary for a PDF file."""

    path: Optional[Path]
    page_count: int
    metadata: Dict[str, str]
    page_sizes: List[PageSize]


def _as_stream(source: PdfSource) -> Union[Path, BytesIO]:
    if isinstance(source, bytes):
        return BytesIO(source)
    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"PDF file not found: {path}")
    return path


def load_template(source: PdfSource, *, min_pages: int = 1) -> PdfReader:
    """Open a PDF template for drawing.

    Args:
        source: Template path or raw bytes.
        min_pages: Minimum page count the caller relies on.

    Returns:
        A fresh ``PdfReader`` owned by the caller.

    Raises:
        FileNotFoundError: When the template path does not exist.
        PdfProcessingError: When the file is malformed, encrypted or too short.
    """

    stream = _as_stream(source)
    try:
        reader = PdfReader(stream)
        page_count = len(reader.pages)
    except PdfReadError as exc:
        raise PdfProcessingError(f"Failed to open PDF: {exc}") from exc
    if reader.is_encrypted:
        raise PdfProcessingError("Encrypted PDFs are not supported")
    if page_count < min_pages:
        raise PdfProcessingError(
            f"Template has {page_count} page(s); at least {min_pages} required"
        )
    logger.info(
        "PDF template loaded",
        extra={"source": str(source) if not isinstance(source, bytes) else "<bytes>", "pages": page_count},
    )
    return reader


def page_size(reader: PdfReader, index: int) -> PageSize:
    """Return the media box size of a zero-based page."""

    box = reader.pages[index].mediabox
    return PageSize(width=float(box.width), height=float(box.height))


def flatten_widgets(page) -> int:  # type: ignore[no-untyped-def]
    """Drop interactive widget annotations from a page, keeping other annotations.

    Returns:
        Number of widget annotations removed.
    """

    if "/Annots" not in page:
        return 0
    annots = page["/Annots"].get_object()
    kept = ArrayObject()
    removed = 0
    for annot in annots:
        if annot.get_object().get("/Subtype") == "/Widget":
            removed += 1
        else:
            kept.append(annot)
    if kept:
        page[NameObject("/Annots")] = kept
    else:
        del page["/Annots"]
    return removed


def merge_overlay(
    template: PdfReader,
    overlay: bytes,
    *,
    flatten: bool = True,
    metadata: Optional[Mapping[str, str]] = None,
) -> bytes:
    """Stamp overlay pages onto template pages and return the merged document.

    Overlay page ``i`` is merged onto template page ``i``; template pages without
    an overlay counterpart are copied unchanged.
    """

    try:
        overlay_reader = PdfReader(BytesIO(overlay))
    except PdfReadError as exc:
        raise PdfProcessingError(f"Failed to read overlay: {exc}") from exc

    writer = PdfWriter()
    removed = 0
    for index, page in enumerate(template.pages):
        if index < len(overlay_reader.pages):
            page.merge_page(overlay_reader.pages[index])
        # Flatten after merging; the merge rebuilds /Annots even when it ends up empty.
        if flatten:
            removed += flatten_widgets(page)
        writer.add_page(page)

    if metadata:
        writer.add_metadata({f"/{k}": str(v) for k, v in metadata.items()})

    buffer = BytesIO()
    writer.write(buffer)
    logger.info(
        "Overlay merged",
        extra={
            "pages": len(template.pages),
            "overlay_pages": len(overlay_reader.pages),
            "widgets_removed": removed,
        },
    )
    return buffer.getvalue()


def read_info(source: PdfSource) -> PdfInfo:
    """Read metadata, page count and page sizes for a PDF."""

    reader = load_template(source)
    metadata = {k.lstrip("/"): str(v) for k, v in (reader.metadata or {}).items()}
    sizes = [page_size(reader, idx) for idx in range(len(reader.pages))]
    return PdfInfo(
        path=None if isinstance(source, bytes) else Path(source),
        page_count=len(sizes),
        metadata=metadata,
        page_sizes=sizes,
    )


def extract_words(source: PdfSource, page_number: int) -> List[WordBox]:
    """Extract positioned words from a 1-based page using pdfplumber."""

    stream = _as_stream(source)
    with pdfplumber.open(stream) as pdf:
        total = len(pdf.pages)
        if page_number < 1 or page_number > total:
            raise PdfProcessingError(
                f"Page {page_number} out of range (document has {total} pages)"
            )
        page = pdf.pages[page_number - 1]
        words = page.extract_words(extra_attrs=["size"], keep_blank_chars=False)
    boxes = [
        WordBox(
            text=word["text"],
            x0=float(word["x0"]),
            top=float(word["top"]),
            x1=float(word["x1"]),
            bottom=float(word["bottom"]),
            page=page_number,
            size=float(word["size"]) if word.get("size") is not None else None,
        )
        for word in words
    ]
    logger.info("Extracted words", extra={"page": page_number, "words": len(boxes)})
    return boxes


def extract_text(source: PdfSource) -> List[str]:
    """Extract plain text of every page."""

    stream = _as_stream(source)
    with pdfplumber.open(stream) as pdf:
        return [page.extract_text() or "" for page in pdf.pages]
