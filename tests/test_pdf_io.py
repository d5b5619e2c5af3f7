"""Unit tests for PDF utilities."""

# Module responsibilities:
# - Ensure template loading, overlay merging and word extraction work on generated PDFs.
# - Cover error paths for missing, malformed and short files.

from __future__ import annotations

from io import BytesIO
from pathlib import Path

import pytest
from pypdf import PdfReader
from pypdf.generic import ArrayObject, NameObject
from reportlab.pdfgen import canvas

from pdsflow_io.pdf_io import (
    PdfProcessingError,
    extract_text,
    extract_words,
    flatten_widgets,
    load_template,
    merge_overlay,
    read_info,
)


def _create_sample_pdf(path: Path) -> None:
    header = b"%PDF-1.4\n"
    text = "PDSFlow PDF Test"
    escaped = (
        text.replace("\\", "\\\\")
        .replace("(", r"\(")
        .replace(")", r"\)")
    )
    stream = f"BT\n/F1 14 Tf\n72 720 Td\n({escaped}) Tj\nET\n".encode("utf-8")
    obj1 = b"1 0 obj\n<< /Type /Catalog /Pages 2 0 R >>\nendobj\n"
    obj2 = b"2 0 obj\n<< /Type /Pages /Kids [3 0 R] /Count 1 >>\nendobj\n"
    obj3 = (
        b"3 0 obj\n"
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792]"
        b" /Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>\n"
        b"endobj\n"
    )
    obj4 = (
        f"4 0 obj\n<< /Length {len(stream)} >>\nstream\n".encode("utf-8")
        + stream
        + b"endstream\nendobj\n"
    )
    obj5 = b"5 0 obj\n<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>\nendobj\n"

    objects = [obj1, obj2, obj3, obj4, obj5]
    offsets = []
    data = bytearray()
    data.extend(header)
    for obj in objects:
        offsets.append(len(data))
        data.extend(obj)
    xref_offset = len(data)
    data.extend(b"xref\n0 6\n")
    data.extend(b"0000000000 65535 f \n")
    for offset in offsets:
        data.extend(f"{offset:010d} 00000 n \n".encode("utf-8"))
    data.extend(b"trailer\n<< /Size 6 /Root 1 0 R >>\n")
    data.extend(f"startxref\n{xref_offset}\n%%EOF\n".encode("utf-8"))
    path.write_bytes(data)


def _overlay(pages: int = 1) -> bytes:
    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, invariant=1)
    for index in range(pages):
        pdf.setFont("Helvetica", 10)
        pdf.drawString(100, 700, f"Stamped{index + 1}")
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def test_pdf_read_and_extract(tmp_path: Path) -> None:
    pdf_path = tmp_path / "sample.pdf"
    _create_sample_pdf(pdf_path)

    info = read_info(pdf_path)
    assert info.page_count == 1
    assert info.path == pdf_path
    assert (info.page_sizes[0].width, info.page_sizes[0].height) == (612, 792)

    assert "PDSFlow PDF Test" in extract_text(pdf_path)[0]
    words = extract_words(pdf_path.read_bytes(), 1)
    assert [w.text for w in words] == ["PDSFlow", "PDF", "Test"]
    assert words[0].x0 == pytest.approx(72, abs=0.5)
    assert words[0].size == pytest.approx(14)


def test_load_template_rejects_bad_input(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_template(tmp_path / "missing.pdf")
    with pytest.raises(PdfProcessingError):
        load_template(b"not a pdf")

    pdf_path = tmp_path / "sample.pdf"
    _create_sample_pdf(pdf_path)
    with pytest.raises(PdfProcessingError, match="at least 4"):
        load_template(pdf_path, min_pages=4)


def test_extract_words_page_range(tmp_path: Path) -> None:
    pdf_path = tmp_path / "sample.pdf"
    _create_sample_pdf(pdf_path)
    with pytest.raises(PdfProcessingError, match="out of range"):
        extract_words(pdf_path, 2)


def test_merge_overlay_flattens_and_stamps(pdf_template: Path) -> None:
    merged = merge_overlay(load_template(pdf_template), _overlay(2), metadata={"Title": "Sample"})
    reader = PdfReader(BytesIO(merged))

    assert len(reader.pages) == 4
    assert "/Annots" not in reader.pages[0]
    assert reader.metadata["/Title"] == "Sample"

    texts = extract_text(merged)
    assert "PERSONAL INFORMATION" in texts[0]
    assert "Stamped1" in texts[0]
    assert "Stamped2" in texts[1]
    # Pages without an overlay page are copied unchanged.
    assert "Stamped" not in texts[2]


def test_merge_overlay_can_keep_widgets(pdf_template: Path) -> None:
    merged = merge_overlay(load_template(pdf_template), _overlay(), flatten=False)
    assert "/Annots" in PdfReader(BytesIO(merged)).pages[0]


def test_merge_overlay_rejects_bad_overlay(pdf_template: Path) -> None:
    with pytest.raises(PdfProcessingError):
        merge_overlay(load_template(pdf_template), b"garbage")


def test_flatten_widgets_counts_removed(pdf_template: Path) -> None:
    reader = load_template(pdf_template)
    assert flatten_widgets(reader.pages[0]) == 1
    assert flatten_widgets(reader.pages[1]) == 0


def test_flatten_widgets_drops_empty_annotation_array(pdf_template: Path) -> None:
    page = load_template(pdf_template).pages[1]
    page[NameObject("/Annots")] = ArrayObject()
    assert flatten_widgets(page) == 0
    assert "/Annots" not in page


def test_merge_overlay_is_deterministic_with_colliding_fonts(pdf_template: Path) -> None:
    # Template and overlay both name their first font /F1 with different faces.
    overlay = _overlay(2)
    first = merge_overlay(load_template(pdf_template), overlay)
    second = merge_overlay(load_template(pdf_template), overlay)
    assert first == second
    assert "Stamped1" in extract_text(first)[0]
    assert "PERSONAL INFORMATION" in extract_text(first)[0]
