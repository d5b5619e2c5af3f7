"""Fixed-slot classification of education entries.

The template prints five education rows in a fixed order. Free-form entries
are mapped onto them from their declared level, falling back to hints in the
course text. Nothing here mutates the entries.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence

from pdsflow.core.record_paths import get_path

ELEMENTARY, SECONDARY, VOCATIONAL, COLLEGE, GRADUATE = range(5)
SLOT_NAMES = ("elementary", "secondary", "vocational", "college", "graduate")
MAX_SLOTS = len(SLOT_NAMES)
# Level values the overlay editor seeds its rows with, one per slot.
LEVEL_LABELS = ("Elementary", "Secondary", "Vocational/Trade Course", "College", "Graduate Studies")

# Checked in order; "undergraduate" must be seen before "graduate".
_LEVEL_KEYWORDS = (
    (ELEMENTARY, ("elementary", "primary")),
    (SECONDARY, ("secondary", "high school", "highschool", "junior high", "senior high")),
    (VOCATIONAL, ("vocational", "trade", "tesda")),
    (COLLEGE, ("college", "bachelor", "undergraduate")),
    (GRADUATE, ("graduate", "master", "doctor", "phd")),
)
_EXACT_LEVELS = {"hs": SECONDARY, "shs": SECONDARY, "jhs": SECONDARY}

_GRADUATE_COURSE = re.compile(r"\b(doctor|doctorate|phd|ph\.d|master|masters|ma\.?ed|mba)\b")
_COLLEGE_COURSE = re.compile(r"^(bachelor|bs|ba|ab|bsc|bse|bsed|beed)\b|\bbachelor\b")
_VOCATIONAL_COURSE = re.compile(r"\b(tesda|nc\s?(i|ii|iii|iv|[1-4])|trade|vocational)\b")


def _normalize(text: Any) -> str:
    return re.sub(r"\s+", " ", str(text or "").strip().lower())


def classify_level(level: Any) -> Optional[int]:
    """Map a declared level string to a slot index."""

    norm = _normalize(level)
    if not norm:
        return None
    if norm in _EXACT_LEVELS:
        return _EXACT_LEVELS[norm]
    for slot, keywords in _LEVEL_KEYWORDS:
        if any(keyword in norm for keyword in keywords):
            return slot
    return None


def infer_from_course(course: Any) -> Optional[int]:
    """Guess a slot from degree or course text."""

    norm = _normalize(course)
    if not norm:
        return None
    if _GRADUATE_COURSE.search(norm):
        return GRADUATE
    if _COLLEGE_COURSE.search(norm):
        return COLLEGE
    if _VOCATIONAL_COURSE.search(norm):
        return VOCATIONAL
    return None


def classify(entry: Mapping[str, Any]) -> Optional[int]:
    """Slot index for an education entry, or ``None`` when nothing matches."""

    slot = classify_level(get_path(entry, "level", None))
    if slot is None:
        slot = infer_from_course(get_path(entry, "basicEducationDegreeCourse", None))
    return slot


@dataclass
class FixedSlotAssignment:
    slots: List[Optional[Mapping[str, Any]]]
    overflow: List[Mapping[str, Any]] = field(default_factory=list)


def assign_slots(entries: Sequence[Mapping[str, Any]], max_slots: int = MAX_SLOTS) -> FixedSlotAssignment:
    """Place entries into ``max_slots`` fixed rows in a single pass.

    Entries are taken in input order. A classified entry claims its own slot
    while it is free; otherwise, and for unclassified entries, it takes the
    first free slot from the left. Entries arriving once every slot is taken
    are returned as overflow.
    """

    slots: List[Optional[Mapping[str, Any]]] = [None] * max_slots
    overflow: List[Mapping[str, Any]] = []
    for entry in entries:
        slot = classify(entry)
        if slot is not None and slot < max_slots and slots[slot] is None:
            slots[slot] = entry
        elif None in slots:
            slots[slots.index(None)] = entry
        else:
            overflow.append(entry)
    return FixedSlotAssignment(slots=slots, overflow=overflow)


def place_fixed(entries: Sequence[Mapping[str, Any]], max_slots: int = MAX_SLOTS) -> List[Optional[Mapping[str, Any]]]:
    """Return exactly ``max_slots`` items, each an input entry or ``None``."""

    return assign_slots(entries, max_slots).slots
