"""Tests for checkbox group and yes/no resolution."""

from __future__ import annotations

import pytest

from pdsflow.registry.page import load_page_registry
from pdsflow.services.projection.checkboxes import normalize_choice, resolve_group, resolve_groups, resolve_yes_no


@pytest.fixture(scope="module")
def registry():
    return load_page_registry()


def _checked(states):
    return [member for member, on in states.items() if on]


@pytest.mark.parametrize("value", ["  Married ", "MARRIED", "married"])
def test_civil_status_normalizes_value(registry, value) -> None:
    states = resolve_group(registry.group("civilStatus"), value)
    assert _checked(states) == ["married"]
    assert set(states) == {"single", "married", "widowed", "separated", "others"}


def test_female_never_resolves_to_male(registry) -> None:
    group = registry.group("sexAtBirth")
    assert _checked(resolve_group(group, "Female")) == ["female"]
    assert _checked(resolve_group(group, "male")) == ["male"]
    assert _checked(resolve_group(group, "F")) == ["female"]


@pytest.mark.parametrize("value", ["", None, "Complicated"])
def test_unmatched_values_leave_group_empty(registry, value) -> None:
    assert _checked(resolve_group(registry.group("civilStatus"), value)) == []


def test_every_member_value_resolves_to_itself(registry) -> None:
    for group in registry.groups:
        for member in group.members:
            assert _checked(resolve_group(group, member.value)) == [member.id]


def test_aliases(registry) -> None:
    assert _checked(resolve_group(registry.group("civilStatus"), "Annulled")) == ["separated"]
    assert _checked(resolve_group(registry.group("citizenship"), "dual")) == ["dual"]


def test_dual_citizenship_type_depends_on_citizenship(registry) -> None:
    filipino = {"personalInfo": {"citizenship": "Filipino", "dualCitizenshipType": "by birth"}}
    states = resolve_groups(registry.groups, filipino)
    assert _checked(states["dualCitizenshipType"]) == []

    dual_blank = {"personalInfo": {"citizenship": "Dual Citizenship", "dualCitizenshipType": ""}}
    states = resolve_groups(registry.groups, dual_blank)
    assert _checked(states["dualCitizenshipType"]) == ["by_birth"]

    naturalized = {"personalInfo": {"citizenship": "Dual Citizenship", "dualCitizenshipType": "By Naturalization"}}
    states = resolve_groups(registry.groups, naturalized)
    assert _checked(states["dualCitizenshipType"]) == ["by_naturalization"]


def test_resolve_yes_no_keeps_detail() -> None:
    answer = resolve_yes_no(False, "stale text")
    assert (answer.yes, answer.no) == (False, True)
    assert answer.detail == "stale text"
    assert resolve_yes_no(True).yes is True
    assert resolve_yes_no(None).no is True


def test_normalize_choice() -> None:
    assert normalize_choice("  Solo-Parent ") == "solo parent"
    assert normalize_choice(None) == ""
