"""Required-field checks for the editing wizard and the CLI."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Union

from pdsflow.core.record_paths import get_path
from pdsflow.registry.overlay import FieldRequirement, OverlayRegistry, build_overlay_fields, load_overlay_registry
from pdsflow.registry.page import PageRegistry, load_page_registry

from .models import PDSRecord

# Sections of which a page needs at least one non-empty entry.
_PAGE_SECTIONS = {
    2: (("eligibility", "workExperience"), "At least one eligibility or work experience entry"),
    3: (
        (
            "voluntaryWork",
            "trainings",
            "otherInformation.skills",
            "otherInformation.recognitions",
            "otherInformation.memberships",
        ),
        "At least one voluntary work, training, skill, recognition or membership entry",
    ),
}


@dataclass(frozen=True)
class MissingField:
    path: str
    label: str


@dataclass(frozen=True)
class RequiredCheckResult:
    ok: bool
    missing: List[MissingField] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {"ok": self.ok, "missing": [{"path": m.path, "label": m.label} for m in self.missing]}


def is_filled(value: Any) -> bool:
    """Non-blank string, real number, ``True``, or a non-empty list/dict."""

    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (int, float)):
        return not math.isnan(value)
    if isinstance(value, (list, tuple, dict)):
        return len(value) > 0
    return bool(value)


def has_content(value: Any) -> bool:
    if isinstance(value, Mapping):
        return any(has_content(v) for v in value.values())
    if isinstance(value, list):
        return any(has_content(v) for v in value)
    return is_filled(value)


def check_required(values: Mapping[str, Any], requirements: Iterable[FieldRequirement]) -> RequiredCheckResult:
    """Return which required (or conditionally required) fields are blank."""

    missing = []
    for requirement in requirements:
        needed = requirement.required
        if not needed and requirement.required_when is not None:
            needed = requirement.required_when.applies(values)
        if needed and not is_filled(get_path(values, requirement.path, None)):
            missing.append(MissingField(path=requirement.path, label=requirement.label))
    return RequiredCheckResult(ok=not missing, missing=missing)


def requirements_for_page(
    page: int,
    page_registry: Optional[PageRegistry] = None,
    overlay: Optional[OverlayRegistry] = None,
) -> List[FieldRequirement]:
    """Requirement declarations for the widgets shown on ``page``."""

    page_registry = page_registry or load_page_registry()
    overlay = overlay or load_overlay_registry()
    paths = {widget.path for widget in build_overlay_fields(page_registry, overlay, page)}
    return [r for r in overlay.requirements if r.path in paths]


def check_page(
    record: Union[PDSRecord, Mapping[str, Any]],
    page: int,
    page_registry: Optional[PageRegistry] = None,
    overlay: Optional[OverlayRegistry] = None,
) -> RequiredCheckResult:
    """Field requirements of one page plus its section rule, if any."""

    values = record.to_payload() if isinstance(record, PDSRecord) else record
    result = check_required(values, requirements_for_page(page, page_registry, overlay))
    missing = list(result.missing)
    if page in _PAGE_SECTIONS:
        sections, label = _PAGE_SECTIONS[page]
        if not any(has_content(get_path(values, path, None)) for path in sections):
            missing.append(MissingField(path=sections[0], label=label))
    return RequiredCheckResult(ok=not missing, missing=missing)
