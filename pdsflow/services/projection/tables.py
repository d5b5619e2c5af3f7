"""Projection of repeating record sections onto fixed template rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Sequence, Tuple


@dataclass(frozen=True)
class Projection:
    """Row layout for one repeating region.

    ``placed`` pairs each rendered row index with its source row, ``cleared``
    lists the indices left without data and ``overflow`` holds rows beyond the
    template's budget.
    """

    placed: List[Tuple[int, Any]]
    cleared: range
    overflow: List[Any] = field(default_factory=list)


def project(rows: Sequence[Any], max_rows: int) -> Projection:
    """Lay out ``min(len(rows), max_rows)`` rows; never raises on surplus rows."""

    limit = min(len(rows), max_rows)
    return Projection(
        placed=[(index, rows[index]) for index in range(limit)],
        cleared=range(limit, max_rows),
        overflow=list(rows[limit:]),
    )


def clean_items(items: Iterable[Any]) -> List[str]:
    """Stringify, strip and drop blank list entries."""

    cleaned = []
    for item in items or ():
        if item is None:
            continue
        text = str(item).strip()
        if text:
            cleaned.append(text)
    return cleaned


def redistribute(items: Sequence[Any], max_rows: int, separator: str = ", ") -> List[str]:
    """Spread list items over exactly ``max_rows`` rows without dropping any.

    With no more items than rows each item gets its own row. Otherwise the first
    ``n % max_rows`` rows take one extra item so row sizes differ by at most one.
    Empty rows are returned as ``""``.
    """

    values = clean_items(items)
    if max_rows <= 0:
        return []
    if len(values) <= max_rows:
        return values + [""] * (max_rows - len(values))

    base, extra = divmod(len(values), max_rows)
    rows: List[str] = []
    cursor = 0
    for index in range(max_rows):
        take = base + (1 if index < extra else 0)
        rows.append(separator.join(values[cursor : cursor + take]))
        cursor += take
    return rows
