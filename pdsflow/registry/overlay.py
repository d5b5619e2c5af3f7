"""Overlay registry: editable widget geometry for the live editor.

Widget positions are derived from the page-canvas registry so the editor and
the PDF renderer share one coordinate source. ``overlay.yaml`` contributes the
section each widget belongs to, requirement rules and overlay-only widgets.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pdsflow_io.mapping import MappingError, as_float, as_int, load_mapping_yaml, require_keys
from pdsflow_io.schema import PageSize

from pdsflow.config import DEFAULT_OVERLAY_REGISTRY
from pdsflow.core.errors import RegistryError
from pdsflow.core.record_paths import MISSING, get_path

from .geometry import Point, to_percent
from .page import Column, PageRegistry, TextField

_WIDGET_KINDS = {
    "text": "text",
    "year": "text",
    "date": "date",
    "number": "number",
    "height": "number",
    "hours": "number",
    "flag": "checkbox",
}


@dataclass(frozen=True)
class Condition:
    """``required_when`` rule evaluated against the full record."""

    path: str
    equals: Any = MISSING
    truthy: Optional[bool] = None

    def applies(self, values: Mapping[str, Any]) -> bool:
        current = get_path(values, self.path, None)
        if self.equals is not MISSING:
            if isinstance(current, str) and isinstance(self.equals, str):
                return current.strip().lower() == self.equals.strip().lower()
            return current == self.equals
        if self.truthy is not None:
            return bool(current) is self.truthy
        return False


@dataclass(frozen=True)
class FieldRequirement:
    path: str
    label: str
    required: bool = False
    required_when: Optional[Condition] = None


@dataclass(frozen=True)
class OverlayField:
    """An editable widget positioned as percentages of the page box (top-left origin)."""

    key: str
    path: str
    kind: str
    page: int
    x_pct: float
    y_pct: float
    w_pct: float
    h_pct: float
    form_key: str
    checkbox_value: Any = None
    required: bool = False
    required_when: Optional[Condition] = None
    label: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        data = {
            "key": self.key,
            "name": self.path,
            "type": self.kind,
            "page": self.page,
            "xPct": self.x_pct,
            "yPct": self.y_pct,
            "wPct": self.w_pct,
            "hPct": self.h_pct,
            "formKey": self.form_key,
        }
        if self.checkbox_value is not None:
            data["checkboxValue"] = self.checkbox_value
        if self.required:
            data["required"] = True
        if self.label:
            data["label"] = self.label
        return data


@dataclass(frozen=True)
class OverlayRegistry:
    form_keys: Mapping[str, str]
    requirements: Tuple[FieldRequirement, ...]
    widgets: Tuple[OverlayField, ...]
    split_columns: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    source: Optional[Path] = field(default=None, compare=False)

    def form_key(self, path: str) -> str:
        return self.form_keys.get(path.split(".", 1)[0], "other")

    def requirement(self, path: str) -> Optional[FieldRequirement]:
        for requirement in self.requirements:
            if requirement.path == path:
                return requirement
        return None


def _condition(raw: Mapping[str, Any], where: str) -> Condition:
    require_keys(raw, ("path",), where)
    if "equals" in raw:
        return Condition(path=str(raw["path"]), equals=raw["equals"])
    if "truthy" in raw:
        return Condition(path=str(raw["path"]), truthy=bool(raw["truthy"]))
    raise MappingError(f"{where}: expected 'equals' or 'truthy'")


def build_overlay_registry(payload: Mapping[str, Any], source: Optional[Path] = None) -> OverlayRegistry:
    form_keys = {str(k): str(v) for k, v in (payload.get("form_keys") or {}).items()}
    requirements: List[FieldRequirement] = []
    for idx, raw in enumerate(payload.get("requirements", ())):
        where = f"requirements[{idx}]"
        require_keys(raw, ("path",), where)
        when = _condition(raw["required_when"], f"{where}.required_when") if raw.get("required_when") else None
        requirements.append(
            FieldRequirement(
                path=str(raw["path"]),
                label=str(raw.get("label") or raw["path"]),
                required=bool(raw.get("required", False)),
                required_when=when,
            )
        )
    widgets: List[OverlayField] = []
    for idx, raw in enumerate(payload.get("widgets", ())):
        where = f"widgets[{idx}]"
        require_keys(raw, ("key", "path", "kind", "page", "x_pct", "y_pct", "w_pct", "h_pct"), where)
        path = str(raw["path"])
        requirement = next((r for r in requirements if r.path == path), None)
        widgets.append(
            OverlayField(
                key=str(raw["key"]),
                path=path,
                kind=str(raw["kind"]),
                page=as_int(raw, "page", where),
                x_pct=as_float(raw, "x_pct", where),
                y_pct=as_float(raw, "y_pct", where),
                w_pct=as_float(raw, "w_pct", where),
                h_pct=as_float(raw, "h_pct", where),
                form_key=form_keys.get(path.split(".", 1)[0], "other"),
                checkbox_value=raw.get("checkbox_value"),
                required=bool(requirement and requirement.required),
                required_when=requirement.required_when if requirement else None,
                label=requirement.label if requirement else None,
            )
        )
    split = {
        str(k): tuple(str(part) for part in v)
        for k, v in (payload.get("split_columns") or {}).items()
    }
    return OverlayRegistry(
        form_keys=form_keys,
        requirements=tuple(requirements),
        widgets=tuple(widgets),
        split_columns=split,
        source=source,
    )


def load_overlay_registry(path: Optional[Path] = None) -> OverlayRegistry:
    """Load overlay requirements and widgets.

    Raises:
        RegistryError: When the file is missing or malformed.
    """

    registry_path = Path(path) if path else DEFAULT_OVERLAY_REGISTRY
    try:
        payload = load_mapping_yaml(registry_path, required=("form_keys",))
        return build_overlay_registry(payload, source=registry_path)
    except MappingError as exc:
        raise RegistryError(f"Invalid overlay registry {registry_path.name}: {exc}") from exc


def _pct(value: float, total: float) -> float:
    return round(value / total * 100, 3)


class _Builder:
    def __init__(self, page: int, page_size: PageSize, overlay: OverlayRegistry) -> None:
        self.page = page
        self.page_size = page_size
        self.overlay = overlay
        self.fields: List[OverlayField] = []

    def add(
        self,
        path: str,
        kind: str,
        at: Point,
        width: float,
        height: float,
        checkbox_value: Any = None,
        key: Optional[str] = None,
    ) -> None:
        x_pct, y_pct = to_percent(at, self.page_size)
        requirement = self.overlay.requirement(path)
        suffix = "" if checkbox_value is None else f"_{str(checkbox_value).lower().replace(' ', '_')}"
        self.fields.append(
            OverlayField(
                key=key or path.replace(".", "_") + suffix,
                path=path,
                kind=kind,
                page=self.page,
                x_pct=x_pct,
                y_pct=y_pct,
                w_pct=_pct(width, self.page_size.width),
                h_pct=_pct(height, self.page_size.height),
                form_key=self.overlay.form_key(path),
                checkbox_value=checkbox_value,
                required=bool(requirement and requirement.required),
                required_when=requirement.required_when if requirement else None,
                label=requirement.label if requirement else None,
            )
        )

    def text(self, path: str, entry: TextField) -> None:
        kind = "textarea" if entry.max_lines > 1 else _WIDGET_KINDS[entry.kind]
        height = entry.size * entry.max_lines + 3
        # Widget box starts one text line above the baseline.
        at = Point(entry.at.x, entry.at.y + entry.size + 1)
        self.add(path, kind, at, entry.max_width, height)

    def box(self, path: str, at: Point, size: float, value: Any) -> None:
        self.add(path, "checkbox", Point(at.x, at.y + size), size, size, checkbox_value=value)

    def column(self, path: str, column: Column, y: float, checkbox_size: float) -> None:
        if column.kind == "flag":
            self.box(path, Point(column.x, y), checkbox_size, True)
            return
        at = Point(column.x, y + column.size + 1)
        self.add(path, _WIDGET_KINDS[column.kind], at, column.max_width, column.size + 3)


def build_overlay_fields(
    page_registry: PageRegistry,
    overlay: OverlayRegistry,
    page: int,
) -> List[OverlayField]:
    """Materialize every editable widget of one page, one per row for repeating regions."""

    if page not in page_registry.pages:
        raise KeyError(f"Page {page} is not part of the registry")
    registry = page_registry.on_page(page)
    builder = _Builder(page, registry.page_size, overlay)
    cb = registry.checkbox_size

    for entry in registry.fields:
        builder.text(entry.path, entry)
    for group in registry.groups:
        for member in group.members:
            builder.box(group.path, member.at, cb, member.value)
        if group.detail:
            builder.text(group.detail.path, group.detail)
    for question in registry.questions:
        builder.box(question.flag_path, question.yes, cb, True)
        builder.box(question.flag_path, question.no, cb, False)
        for detail in question.details:
            builder.text(detail.path, detail)
    for table in registry.tables:
        for index in range(table.max_rows):
            y = table.row_y(index)
            for column in table.columns:
                split = overlay.split_columns.get(f"{table.path}.{column.field}")
                if not split:
                    builder.column(f"{table.path}.{index}.{column.field}", column, y, cb)
                    continue
                share = column.max_width / len(split)
                for offset, part in enumerate(split):
                    part_column = Column(
                        field=part,
                        x=column.x + offset * share,
                        kind=column.kind,
                        size=column.size,
                        max_width=share,
                    )
                    builder.column(f"{table.path}.{index}.{part}", part_column, y, cb)
    for lst in registry.lists:
        for index in range(lst.max_rows):
            entry = TextField(
                path=f"{lst.path}.{index}",
                page=page,
                at=Point(lst.x, lst.row_y(index)),
                size=lst.size,
                max_width=lst.max_width,
            )
            builder.text(entry.path, entry)
    if registry.signature:
        sig = registry.signature
        builder.add(
            sig.path,
            "signature",
            Point(sig.x, sig.y + sig.height),
            sig.width,
            sig.height,
            key="declaration_signature",
        )

    fields = builder.fields + [w for w in overlay.widgets if w.page == page]
    return fields
