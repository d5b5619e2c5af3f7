"""Checkbox and radio resolution for mutually exclusive template boxes."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pdsflow.core.record_paths import get_path
from pdsflow.registry.page import CheckboxGroup

_NON_ALNUM = re.compile(r"[^0-9a-z]+")


def normalize_choice(value: Any) -> str:
    """Lowercase, turn punctuation into spaces and collapse whitespace."""

    if value is None:
        return ""
    return _NON_ALNUM.sub(" ", str(value).lower()).strip()


def _candidates(group: CheckboxGroup) -> List[Tuple[str, str]]:
    pairs: List[Tuple[str, str]] = []
    for member in group.members:
        for raw in (member.value, member.id, *member.aliases):
            norm = normalize_choice(raw)
            if norm:
                pairs.append((norm, member.id))
    return pairs


def match_member(group: CheckboxGroup, value: Any) -> Optional[str]:
    """Return the id of the member ``value`` selects, if any.

    Exact matches (value, id or alias) win. Otherwise the longest member value
    found as a whole phrase inside ``value`` is used; aliases shorter than three
    characters only ever match exactly.
    """

    needle = normalize_choice(value)
    if not needle:
        return None
    candidates = _candidates(group)
    for norm, member_id in candidates:
        if norm == needle:
            return member_id
    padded = f" {needle} "
    for norm, member_id in sorted(candidates, key=lambda pair: len(pair[0]), reverse=True):
        if len(norm) >= 3 and f" {norm} " in padded:
            return member_id
    return None


def resolve_group(group: CheckboxGroup, value: Any) -> Dict[str, bool]:
    """Map every member id to its checked state; at most one is ``True``."""

    chosen = match_member(group, value)
    return {member.id: member.id == chosen for member in group.members}


@dataclass(frozen=True)
class YesNo:
    yes: bool
    no: bool
    detail: Any = None


def resolve_yes_no(flag: Any, detail: Any = None) -> YesNo:
    """Resolve a compliance question; ``detail`` is carried through untouched."""

    answered = bool(flag)
    return YesNo(yes=answered, no=not answered, detail=detail)


def resolve_groups(groups: Iterable[CheckboxGroup], values: Mapping[str, Any]) -> Dict[str, Dict[str, bool]]:
    """Resolve a set of groups against a record, honouring dependencies and defaults.

    A group that depends on another group's member resolves to all ``False``
    unless that member is checked; when it is checked and the group's own value
    is blank, its default member is selected.
    """

    resolved: Dict[str, Dict[str, bool]] = {}
    for group in groups:
        if group.depends_on:
            parent, member = group.depends_on
            if not resolved.get(parent, {}).get(member, False):
                resolved[group.name] = {m.id: False for m in group.members}
                continue
        states = resolve_group(group, get_path(values, group.path, None))
        if not any(states.values()) and group.default_member:
            states[group.default_member] = True
        resolved[group.name] = states
    return resolved
