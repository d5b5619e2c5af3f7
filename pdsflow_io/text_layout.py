"""Glyph-width aware text fitting for fixed-width template boxes."""

# Module responsibilities:
# - Abstract font measurement behind a small protocol so layout rules stay testable.
# - Truncate single-line values and greedily wrap multi-line values within a box width.

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol

from reportlab.pdfbase import pdfmetrics


class FontMetrics(Protocol):
    """Anything able to measure a string at a font size."""

    def width(self, text: str, size: float) -> float:  # pragma: no cover - interface definition
        ...


@dataclass(frozen=True)
class ReportlabMetrics:
    """Font metrics backed by reportlab's registered font table."""

    font_name: str = "Helvetica"

    def width(self, text: str, size: float) -> float:
        return pdfmetrics.stringWidth(text, self.font_name, size)


def fit_to_width(metrics: FontMetrics, text: str, size: float, max_width: float) -> str:
    """Return the longest prefix of ``text`` whose width fits ``max_width``.

    Characters are stripped from the end one at a time, so the result is always a
    prefix of the input and fitting an already fitted value is a no-op.
    """

    if not text:
        return ""
    fitted = text
    while fitted and metrics.width(fitted, size) > max_width:
        fitted = fitted[:-1]
    return fitted


def wrap(
    metrics: FontMetrics,
    text: str,
    size: float,
    max_width: float,
    max_lines: int = 3,
) -> List[str]:
    """Greedy word-wrap limited to ``max_lines`` lines.

    Words are never split. A single word wider than ``max_width`` is emitted on
    its own line and may overflow the box. Words past the last line are dropped.
    """

    words = (text or "").split()
    if not words or max_lines <= 0:
        return []

    lines: List[str] = []
    current = ""
    for word in words:
        candidate = f"{current} {word}" if current else word
        if not current or metrics.width(candidate, size) <= max_width:
            current = candidate
            continue
        lines.append(current)
        if len(lines) >= max_lines:
            return lines
        current = word
    if current and len(lines) < max_lines:
        lines.append(current)
    return lines
