"""Render report: one tagged result per attempted field write."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, List, Optional, Union

import pandas as pd

# Skip reasons.
MISSING = "missing"
UNMAPPED = "unmapped"
UNPARSEABLE_DATE = "unparseable_date"
INVALID_VALUE = "invalid_value"
ROW_OVERFLOW = "row_overflow"
NO_FREE_SLOT = "no_free_slot"
ANSWER_NOT_YES = "answer_not_yes"
GROUP_NOT_SELECTED = "group_not_selected"
SIGNATURE_DISABLED = "signature_disabled"
SIGNATURE_UNREADABLE = "signature_unreadable"
WRITE_FAILED = "write_failed"


@dataclass(frozen=True, slots=True)
class Written:
    status: ClassVar[str] = "written"

    path: str
    target: str
    location: str
    value: Any = None
    truncated: bool = False


@dataclass(frozen=True, slots=True)
class Skipped:
    status: ClassVar[str] = "skipped"

    path: str
    target: str
    reason: str
    value: Any = None
    location: Optional[str] = None


FieldOutcome = Union[Written, Skipped]


@dataclass(slots=True)
class RenderReport:
    """Aggregated field outcomes of one render call."""

    target: str
    outcomes: List[FieldOutcome] = field(default_factory=list)

    def record_written(self, path: str, location: str, value: Any = None, *, truncated: bool = False) -> Written:
        outcome = Written(path=path, target=self.target, location=location, value=value, truncated=truncated)
        self.outcomes.append(outcome)
        return outcome

    def record_skipped(
        self,
        path: str,
        reason: str,
        value: Any = None,
        location: Optional[str] = None,
    ) -> Skipped:
        outcome = Skipped(path=path, target=self.target, reason=reason, value=value, location=location)
        self.outcomes.append(outcome)
        return outcome

    def written(self) -> List[Written]:
        return [o for o in self.outcomes if isinstance(o, Written)]

    def skipped(self) -> List[Skipped]:
        return [o for o in self.outcomes if isinstance(o, Skipped)]

    def for_path(self, path: str) -> List[FieldOutcome]:
        return [o for o in self.outcomes if o.path == path]

    def reasons_for(self, path: str) -> List[str]:
        return [o.reason for o in self.skipped() if o.path == path]

    def was_written(self, path: str) -> bool:
        return any(isinstance(o, Written) for o in self.for_path(path))

    def summary(self) -> dict[str, Any]:
        reasons = Counter(o.reason for o in self.skipped())
        return {
            "target": self.target,
            "written": len(self.written()),
            "skipped": len(self.skipped()),
            "reasons": dict(sorted(reasons.items())),
        }

    def to_frame(self) -> pd.DataFrame:
        rows = [
            {
                "target": o.target,
                "status": o.status,
                "path": o.path,
                "location": o.location,
                "reason": getattr(o, "reason", None),
                "value": None if o.value is None else str(o.value),
            }
            for o in self.outcomes
        ]
        return pd.DataFrame(rows, columns=["target", "status", "path", "location", "reason", "value"])

    def to_csv(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        self.to_frame().to_csv(path, index=False)
        return path
