"""Per-page editing containers of the live overlay editor.

Each container owns a slice of the aggregate record. Repeating sections are
kept materialized to their full template row count so every row has an input,
while only non-empty rows are emitted upward. Two JSON snapshots, one per
direction, stop updates from echoing back and forth between a container and
the session that aggregates it.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

from pdsflow.core.record_paths import get_path, set_path, split_path
from pdsflow.services.projection.checkboxes import normalize_choice
from pdsflow.services.projection.education import LEVEL_LABELS, assign_slots
from pdsflow.services.projection.validate import has_content

LOGGER = logging.getLogger(__name__)

Listener = Callable[[Dict[str, Any]], None]

# Fields cleared when a selection makes them meaningless.
_DEPENDENT_FIELDS: Tuple[Tuple[str, Callable[[Any], bool], Tuple[str, ...]], ...] = (
    (
        "personalInfo.civilStatus",
        lambda value: normalize_choice(value) not in {"other", "others"},
        ("personalInfo.civilStatusOthers",),
    ),
    (
        "personalInfo.citizenship",
        lambda value: normalize_choice(value) == "filipino",
        ("personalInfo.dualCitizenshipType", "personalInfo.dualCitizenshipCountry"),
    ),
)


def snapshot(value: Any) -> str:
    return json.dumps(value, sort_keys=True, ensure_ascii=False, default=str)


@dataclass(frozen=True)
class SectionSpec:
    """The record slice one page edits.

    ``owns`` maps a top-level record key to ``None`` (the whole value) or to the
    sub-keys this page owns. ``rows`` gives the materialized row count of each
    repeating path; paths in ``string_rows`` hold plain strings. Rows of paths in
    ``slotted`` are seeded with their level label and filled by slot, so an edited
    row lands on the template line it was typed into.
    """

    page: int
    owns: Mapping[str, Optional[Tuple[str, ...]]]
    rows: Mapping[str, int] = field(default_factory=dict)
    string_rows: FrozenSet[str] = frozenset()
    slotted: FrozenSet[str] = frozenset()

    def owns_path(self, path: str) -> bool:
        parts = split_path(path)
        if not parts or parts[0] not in self.owns:
            return False
        subkeys = self.owns[parts[0]]
        return subkeys is None or (len(parts) > 1 and parts[1] in subkeys)

    def extract(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """Deep copy of the owned slice of ``record``."""

        sliced: Dict[str, Any] = {}
        for key, subkeys in self.owns.items():
            if key not in record:
                continue
            value = record[key]
            if subkeys is None or not isinstance(value, Mapping):
                sliced[key] = copy.deepcopy(value)
            else:
                sliced[key] = {k: copy.deepcopy(value[k]) for k in subkeys if k in value}
        return sliced

    def materialize(self, values: Dict[str, Any]) -> Dict[str, Any]:
        for path, count in self.rows.items():
            current = get_path(values, path, None)
            rows = list(current) if isinstance(current, list) else []
            if path in self.slotted:
                rows = _seed_slots(rows, count)
            blank: Callable[[], Any] = str if path in self.string_rows else dict
            rows.extend(blank() for _ in range(count - len(rows)))
            set_path(values, path, rows)
        return values

    def trim(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        """Copy of ``values`` with empty rows dropped from every repeating path."""

        trimmed = copy.deepcopy(dict(values))
        for path in self.rows:
            current = get_path(trimmed, path, None)
            if isinstance(current, list):
                keep = _has_slot_content if path in self.slotted else has_content
                set_path(trimmed, path, [row for row in current if keep(row)])
        return trimmed


def _seed_slots(rows: List[Any], count: int) -> List[Any]:
    """One row per slot labelled with its level, incoming rows placed by slot.

    Rows that find no free slot are appended after the seeded ones.
    """

    labels = LEVEL_LABELS[:count]
    assignment = assign_slots([row for row in rows if isinstance(row, Mapping)], len(labels))
    seeded: List[Any] = []
    for label, entry in zip(labels, assignment.slots):
        row: Dict[str, Any] = {"level": label}
        if entry is not None:
            row.update(copy.deepcopy(dict(entry)))
        seeded.append(row)
    seeded.extend(copy.deepcopy(dict(entry)) for entry in assignment.overflow)
    return seeded


def _has_slot_content(row: Any) -> bool:
    if not isinstance(row, Mapping):
        return has_content(row)
    return has_content({key: value for key, value in row.items() if key != "level"})


class EditingContainer:
    """Editable state of one page, synchronized with the aggregate record."""

    def __init__(self, spec: SectionSpec) -> None:
        self.spec = spec
        self.values: Dict[str, Any] = spec.materialize({})
        self._listeners: List[Listener] = []
        self._last_received: Optional[str] = None
        self._last_pushed: Optional[str] = None

    @property
    def page(self) -> int:
        return self.spec.page

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for upward emissions; returns an unsubscribe callable."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def receive(self, record: Mapping[str, Any]) -> bool:
        """Apply an incoming aggregate record unless it only echoes known state.

        Returns:
            ``True`` when the container state was replaced.
        """

        incoming = self.spec.trim(self.spec.extract(record))
        snap = snapshot(incoming)
        if snap in (self._last_received, self._last_pushed):
            self._last_received = snap
            return False
        self.values = self.spec.materialize(copy.deepcopy(incoming))
        self._last_received = snap
        # The applied state is already upstream; do not emit it back.
        self._last_pushed = snap
        return True

    def get(self, path: str, default: Any = None) -> Any:
        return get_path(self.values, path, default)

    def set(self, path: str, value: Any) -> bool:
        """Edit one owned field and emit the result."""

        self._require_owned(path)
        set_path(self.values, path, value)
        return self._emit()

    def select(self, path: str, value: Any, checked: bool = True) -> bool:
        """Checkbox edit: select ``value``, or clear it when unchecked."""

        self._require_owned(path)
        if checked:
            set_path(self.values, path, value)
        elif get_path(self.values, path, None) == value:
            set_path(self.values, path, None)
        for trigger, clears, dependents in _DEPENDENT_FIELDS:
            if path == trigger and clears(get_path(self.values, path, None)):
                for dependent in dependents:
                    if self.spec.owns_path(dependent):
                        set_path(self.values, dependent, "")
        return self._emit()

    def output(self) -> Dict[str, Any]:
        return self.spec.trim(self.values)

    def _require_owned(self, path: str) -> None:
        if not self.spec.owns_path(path):
            raise KeyError(f"Page {self.page} does not edit '{path}'")

    def _emit(self) -> bool:
        out = self.output()
        snap = snapshot(out)
        if snap == self._last_pushed:
            return False
        self._last_pushed = snap
        LOGGER.debug("Page %s emitted an update", self.page)
        for listener in list(self._listeners):
            listener(copy.deepcopy(out))
        return True
