"""Tests for the fixed-slot education classifier."""

from __future__ import annotations

import pytest

from pdsflow.services.projection.education import (
    COLLEGE,
    ELEMENTARY,
    GRADUATE,
    SECONDARY,
    VOCATIONAL,
    assign_slots,
    classify,
    place_fixed,
)


@pytest.mark.parametrize(
    ("entry", "expected"),
    [
        ({"level": "ELEMENTARY"}, ELEMENTARY),
        ({"level": " High School "}, SECONDARY),
        ({"level": "hs"}, SECONDARY),
        ({"level": "TESDA course"}, VOCATIONAL),
        ({"level": "Undergraduate"}, COLLEGE),
        ({"level": "Master's degree"}, GRADUATE),
        ({"level": "", "basicEducationDegreeCourse": "BS Nursing"}, COLLEGE),
        ({"basicEducationDegreeCourse": "Doctor of Philosophy"}, GRADUATE),
        ({"basicEducationDegreeCourse": "Welding NC II"}, VOCATIONAL),
        ({"level": "Other", "basicEducationDegreeCourse": "Arts"}, None),
    ],
)
def test_classify(entry, expected) -> None:
    assert classify(entry) == expected


def test_place_fixed_uses_canonical_order() -> None:
    college = {"level": "College"}
    elementary = {"level": "Elementary"}
    slots = place_fixed([college, elementary])
    assert len(slots) == 5
    assert slots[ELEMENTARY] is elementary
    assert slots[COLLEGE] is college
    assert slots.count(None) == 3


def test_collisions_and_unclassified_take_first_free_slot() -> None:
    first = {"level": "College", "nameOfSchool": "A"}
    second = {"level": "College", "nameOfSchool": "B"}
    unknown = {"nameOfSchool": "C"}
    slots = place_fixed([first, second, unknown])
    assert slots[COLLEGE] is first
    assert slots[ELEMENTARY] is second
    assert slots[SECONDARY] is unknown


def test_placement_follows_input_order() -> None:
    unknown = {"nameOfSchool": "X"}
    elementary = {"level": "Elementary", "nameOfSchool": "E"}
    slots = place_fixed([unknown, elementary])
    assert slots[0] is unknown
    assert slots[1] is elementary
    assert slots[2:] == [None, None, None]


def test_surplus_entries_overflow_without_duplicates() -> None:
    entries = [{"level": "College", "nameOfSchool": str(i)} for i in range(7)]
    assignment = assign_slots(entries)
    placed = [slot for slot in assignment.slots if slot is not None]
    assert len(assignment.slots) == 5
    assert len(placed) == 5
    assert len({id(entry) for entry in placed}) == 5
    assert assignment.overflow == entries[5:]


def test_classifier_does_not_mutate_entries() -> None:
    entry = {"level": "Graduate Studies", "nameOfSchool": "UP"}
    place_fixed([entry])
    assert entry == {"level": "Graduate Studies", "nameOfSchool": "UP"}
