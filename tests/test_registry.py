"""Tests for the coordinate registries and the shared y conversion."""

from __future__ import annotations

from pathlib import Path

import pytest

from pdsflow.core.errors import RegistryError
from pdsflow.registry import (
    LETTER,
    Point,
    build_overlay_fields,
    load_overlay_registry,
    load_page_registry,
    load_sheet_registry,
    to_percent,
    top_from_y,
    y_from_top,
)
from pdsflow.registry.page import build_page_registry
from pdsflow.registry.sheet import build_sheet_registry
from pdsflow_io.mapping import MappingError


@pytest.fixture(scope="module")
def page_registry():
    return load_page_registry()


def test_y_conversion_round_trips() -> None:
    assert y_from_top(120, 792) == 672
    assert top_from_y(y_from_top(120.5, 792), 792) == 120.5
    assert Point.from_top(150, 120, LETTER) == Point(150.0, 672.0)


def test_wrapped_lines_step_down_by_font_size_plus_gap() -> None:
    first = Point(400.0, 649.0)
    assert first.line_below(0, 6) == first
    assert first.line_below(1, 6) == Point(400.0, 642.0)
    assert first.line_below(2, 6, gap=2) == Point(400.0, 633.0)


def test_fields_are_stored_in_pdf_space(page_registry) -> None:
    surname = next(f for f in page_registry.fields if f.path == "personalInfo.surname")
    assert surname.page == 1
    assert surname.at == Point(150.0, 792.0 - 120.0)
    assert surname.max_width == 280


def test_table_rows_are_computed(page_registry) -> None:
    children = page_registry.table("familyBackground.children")
    assert children.max_rows == 12
    assert children.row_y(0) == pytest.approx(792 - 428)
    assert children.row_y(3) == pytest.approx(792 - (428 + 3 * 14.1))
    assert page_registry.table("workExperience").max_rows == 28
    assert page_registry.table("educationalBackground").slots is True


def test_default_registry_shape(page_registry) -> None:
    assert page_registry.pages == (1, 2, 3, 4)
    assert len(page_registry.questions) == 12
    assert page_registry.group("civilStatus").detail.path == "personalInfo.civilStatusOthers"
    assert page_registry.signature.page == 4
    assert {lst.path for lst in page_registry.lists} == {
        "otherInformation.skills",
        "otherInformation.recognitions",
        "otherInformation.memberships",
    }


def test_question_anchors_load_from_yes_no_keys(page_registry) -> None:
    q34a = page_registry.questions[0]
    assert q34a.id == "q34a"
    assert q34a.yes == Point(388.0, 792.0 - 64.0)
    assert q34a.no == Point(437.0, 792.0 - 65.0)


def test_question_without_anchor_keys_is_rejected() -> None:
    payload = {
        "page_size": [612, 792],
        "pages": [4],
        "questions": [{"id": "q1", "flag": "otherInformation.convicted", "page": 4, True: [1, 1], False: [2, 2]}],
    }
    with pytest.raises(MappingError, match="yes_at"):
        build_page_registry(payload)


def test_on_page_filters_entries(page_registry) -> None:
    page2 = page_registry.on_page(2)
    assert {t.path for t in page2.tables} == {"eligibility", "workExperience"}
    assert page2.fields == ()
    assert page2.signature is None


def test_undeclared_page_is_rejected() -> None:
    payload = {
        "page_size": [612, 792],
        "pages": [1],
        "fields": [{"path": "personalInfo.surname", "page": 5, "x": 1, "top": 1}],
    }
    with pytest.raises(MappingError, match="undeclared pages"):
        build_page_registry(payload)


def test_duplicate_path_is_rejected() -> None:
    field = {"path": "personalInfo.surname", "page": 1, "x": 1, "top": 1}
    payload = {"page_size": [612, 792], "pages": [1], "fields": [field, dict(field, x=5)]}
    with pytest.raises(MappingError, match="more than once"):
        build_page_registry(payload)


def test_unknown_kind_is_rejected() -> None:
    payload = {
        "page_size": [612, 792],
        "pages": [1],
        "fields": [{"path": "a", "page": 1, "x": 1, "top": 1, "kind": "colour"}],
    }
    with pytest.raises(MappingError, match="unknown kind"):
        build_page_registry(payload)


def test_missing_registry_file_raises_registry_error(tmp_path: Path) -> None:
    with pytest.raises(RegistryError):
        load_page_registry(tmp_path / "absent.yaml")


def test_sheet_registry_cells_and_blank_targets() -> None:
    registry = load_sheet_registry()
    assert registry.sheets == ("C1", "C2", "C3", "C4")
    surname = next(c for c in registry.cells if c.path == "personalInfo.surname")
    assert str(surname.cell) == "C1!D10"
    q34b = next(d for d in registry.details if d.question == "q34b")
    assert q34b.cell is None
    assert all(g.cell is None for g in registry.group_details)
    work = registry.table("workExperience")
    assert (work.sheet, work.row(0), work.row(27)) == ("C2", 18, 45)


def test_sheet_registry_rejects_bad_cells_and_sheets() -> None:
    with pytest.raises(MappingError, match="invalid cell"):
        build_sheet_registry({"sheets": ["C1"], "cells": {"C1": {"a": "not a cell"}}})
    with pytest.raises(MappingError, match="not declared"):
        build_sheet_registry({"sheets": ["C1"], "cells": {"C9": {"a": "A1"}}})


def test_overlay_fields_derive_from_page_canvas(page_registry) -> None:
    overlay = load_overlay_registry()
    fields = build_overlay_fields(page_registry, overlay, 1)
    surname = next(f for f in fields if f.path == "personalInfo.surname")
    x_pct, _ = to_percent(Point(150, 0), LETTER)
    assert surname.x_pct == x_pct
    assert surname.required is True
    assert surname.form_key == "personal"

    child_paths = {f.path for f in fields if f.path.startswith("familyBackground.children.")}
    assert len(child_paths) == 12 * 2
    assert "familyBackground.children.11.dateOfBirth" in child_paths

    civil = [f for f in fields if f.path == "personalInfo.civilStatus"]
    assert [f.checkbox_value for f in civil] == ["Single", "Married", "Widowed", "Separated", "Others"]


def test_overlay_fields_split_columns_and_widgets(page_registry) -> None:
    overlay = load_overlay_registry()
    page3 = {f.path for f in build_overlay_fields(page_registry, overlay, 3)}
    assert "voluntaryWork.7.organizationName" in page3
    assert "voluntaryWork.7.organizationAddress" in page3
    assert "voluntaryWork.0.organizationLabel" not in page3
    assert "otherInformation.skills.6" in page3

    page4 = build_overlay_fields(page_registry, overlay, 4)
    keys = {f.key for f in page4}
    assert {"decl_agree", "declaration_signature"} <= keys
    conditional = next(f for f in page4 if f.path == "otherInformation.convictedDetails")
    assert conditional.required is False
    assert conditional.required_when is not None


def test_overlay_field_dict_uses_camel_case(page_registry) -> None:
    field = build_overlay_fields(page_registry, load_overlay_registry(), 2)[0]
    data = field.as_dict()
    assert {"key", "name", "type", "page", "xPct", "yPct", "wPct", "hPct", "formKey"} <= set(data)
