"""Tests for table projection and list redistribution."""

from __future__ import annotations

from pdsflow.services.projection.tables import clean_items, project, redistribute


def test_project_truncates_and_reports_overflow() -> None:
    rows = [{"i": i} for i in range(30)]
    projection = project(rows, 28)
    assert len(projection.placed) == 28
    assert projection.placed[-1] == (27, {"i": 27})
    assert projection.overflow == [{"i": 28}, {"i": 29}]
    assert list(projection.cleared) == []


def test_project_clears_unused_rows() -> None:
    projection = project(["a", "b"], 5)
    assert [index for index, _ in projection.placed] == [0, 1]
    assert list(projection.cleared) == [2, 3, 4]
    assert projection.overflow == []


def test_redistribute_one_item_per_row_when_it_fits() -> None:
    assert redistribute(["A", "B"], 4) == ["A", "B", "", ""]


def test_redistribute_eight_items_over_seven_rows() -> None:
    rows = redistribute(list("ABCDEFGH"), 7)
    assert len(rows) == 7
    assert rows[0] == "A, B"
    assert rows[1:] == ["C", "D", "E", "F", "G", "H"]
    assert ", ".join(rows).split(", ") == list("ABCDEFGH")


def test_redistribute_row_sizes_differ_by_at_most_one() -> None:
    rows = redistribute([str(i) for i in range(17)], 7)
    sizes = [len(row.split(", ")) for row in rows]
    assert max(sizes) - min(sizes) <= 1
    assert sum(sizes) == 17


def test_clean_items_drops_blanks() -> None:
    assert clean_items([" Driving ", "", None, "  ", 3]) == ["Driving", "3"]
