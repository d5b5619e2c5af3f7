"""Vertical coordinate conversion between top-down authoring and PDF space.

Template positions are measured from the top edge of the page while PDF
drawing uses a bottom-left origin. Every conversion between the two goes
through this module; nothing else in the code base subtracts from a page
height.
"""

from __future__ import annotations

from dataclasses import dataclass

from pdsflow_io.schema import PageSize

LETTER = PageSize(width=612.0, height=792.0)
# Gap between wrapped lines, added to the font size.
LINE_GAP = 1.0


def y_from_top(y_top: float, page_height: float = LETTER.height) -> float:
    """Convert a distance from the top edge into a PDF y coordinate."""

    return page_height - y_top


def top_from_y(y: float, page_height: float = LETTER.height) -> float:
    """Inverse of :func:`y_from_top`."""

    return page_height - y


@dataclass(frozen=True)
class Point:
    """A position in PDF space (bottom-left origin)."""

    x: float
    y: float

    @classmethod
    def from_top(cls, x: float, y_top: float, page: PageSize) -> "Point":
        return cls(x=float(x), y=y_from_top(float(y_top), page.height))

    def top(self, page: PageSize) -> float:
        return top_from_y(self.y, page.height)

    def line_below(self, index: int, size: float, gap: float = LINE_GAP) -> "Point":
        """Baseline of wrapped line ``index`` when this point is the first baseline."""

        return Point(self.x, self.y - index * (size + gap))


def to_percent(point: Point, page: PageSize) -> tuple[float, float]:
    """Express a PDF-space point as ``(x_pct, y_pct)`` of the page, top-left origin."""

    return (
        round(point.x / page.width * 100, 3),
        round(point.top(page) / page.height * 100, 3),
    )
