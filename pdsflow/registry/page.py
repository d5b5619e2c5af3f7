"""Page-canvas coordinate registry.

Loads ``page_canvas.yaml`` into frozen dataclasses. All positions are stored
in PDF space; repeating regions keep ``start_top``/``row_step`` and compute
row positions on demand through :mod:`pdsflow.registry.geometry`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from pdsflow_io.mapping import MappingError, as_float, as_int, load_mapping_yaml, require_keys
from pdsflow_io.schema import FieldPayload, PageSize, TablePayload

from pdsflow.config import DEFAULT_PAGE_REGISTRY
from pdsflow.core.errors import RegistryError

from .geometry import Point, y_from_top

VALUE_KINDS = frozenset({"text", "date", "year", "number", "height", "hours", "flag"})


@dataclass(frozen=True)
class TextField:
    """A single text value drawn at a fixed baseline position."""

    path: str
    page: int
    at: Point
    kind: str = "text"
    size: float = 7.0
    max_width: float = 200.0
    max_lines: int = 1


@dataclass(frozen=True)
class GroupMember:
    id: str
    value: str
    aliases: Tuple[str, ...]
    at: Point


@dataclass(frozen=True)
class CheckboxGroup:
    """Mutually exclusive boxes sharing one logical record field."""

    name: str
    path: str
    page: int
    members: Tuple[GroupMember, ...]
    detail: Optional[TextField] = None
    detail_member: Optional[str] = None
    default_member: Optional[str] = None
    depends_on: Optional[Tuple[str, str]] = None

    def member(self, member_id: str) -> GroupMember:
        for member in self.members:
            if member.id == member_id:
                return member
        raise KeyError(member_id)


@dataclass(frozen=True)
class Question:
    """A yes/no compliance question with its detail fields."""

    id: str
    flag_path: str
    page: int
    yes: Point
    no: Point
    details: Tuple[TextField, ...] = ()


@dataclass(frozen=True)
class Column:
    field: str
    x: float
    kind: str = "text"
    size: float = 7.0
    max_width: float = 200.0


@dataclass(frozen=True)
class TableRegion:
    """Repeating rows described by start offset, row step and row budget."""

    path: str
    page: int
    start_top: float
    row_step: float
    max_rows: int
    columns: Tuple[Column, ...]
    page_size: PageSize
    slots: bool = False

    def row_y(self, index: int) -> float:
        return y_from_top(self.start_top + index * self.row_step, self.page_size.height)


@dataclass(frozen=True)
class ListRegion:
    """Single-column list of strings (skills, recognitions, memberships)."""

    path: str
    page: int
    x: float
    start_top: float
    row_step: float
    max_rows: int
    page_size: PageSize
    size: float = 7.0
    max_width: float = 200.0

    def row_y(self, index: int) -> float:
        return y_from_top(self.start_top + index * self.row_step, self.page_size.height)


@dataclass(frozen=True)
class SignatureBox:
    path: str
    page: int
    x: float
    y: float
    width: float
    height: float
    padding: float = 4.0


@dataclass(frozen=True)
class PageRegistry:
    """Static field-to-position lookup for the page-canvas renderer."""

    page_size: PageSize
    pages: Tuple[int, ...]
    fields: Tuple[TextField, ...]
    groups: Tuple[CheckboxGroup, ...]
    questions: Tuple[Question, ...]
    tables: Tuple[TableRegion, ...]
    lists: Tuple[ListRegion, ...]
    signature: Optional[SignatureBox]
    checkbox_size: float = 8.0
    source: Optional[Path] = field(default=None, compare=False)

    def group(self, name: str) -> CheckboxGroup:
        for group in self.groups:
            if group.name == name:
                return group
        raise KeyError(f"Unknown checkbox group: {name}")

    def table(self, path: str) -> TableRegion:
        for table in self.tables:
            if table.path == path:
                return table
        raise KeyError(f"Unknown table region: {path}")

    def on_page(self, page: int) -> "PageRegistry":
        """Return the subset of entries drawn on one page."""

        return PageRegistry(
            page_size=self.page_size,
            pages=(page,),
            fields=tuple(f for f in self.fields if f.page == page),
            groups=tuple(g for g in self.groups if g.page == page),
            questions=tuple(q for q in self.questions if q.page == page),
            tables=tuple(t for t in self.tables if t.page == page),
            lists=tuple(lst for lst in self.lists if lst.page == page),
            signature=self.signature if self.signature and self.signature.page == page else None,
            checkbox_size=self.checkbox_size,
            source=self.source,
        )

    def paths(self) -> Iterator[str]:
        """Yield every record path the registry draws, table columns included."""

        for entry in self.fields:
            yield entry.path
        for group in self.groups:
            yield group.path
            if group.detail:
                yield group.detail.path
        for question in self.questions:
            yield question.flag_path
            for detail in question.details:
                yield detail.path
        for table in self.tables:
            for column in table.columns:
                yield f"{table.path}[].{column.field}"
        for lst in self.lists:
            yield f"{lst.path}[]"
        if self.signature:
            yield self.signature.path


def _pair(raw: Any, where: str) -> Tuple[float, float]:
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        raise MappingError(f"{where}: expected [x, top] pair, got {raw!r}")
    try:
        return float(raw[0]), float(raw[1])
    except (TypeError, ValueError) as exc:
        raise MappingError(f"{where}: non-numeric coordinate {raw!r}") from exc


def _kind(entry: Mapping[str, Any], where: str) -> str:
    kind = str(entry.get("kind", "text"))
    if kind not in VALUE_KINDS:
        raise MappingError(f"{where}: unknown kind '{kind}'")
    return kind


def _text_field(
    entry: FieldPayload,
    page_size: PageSize,
    defaults: Mapping[str, Any],
    where: str,
    page: Optional[int] = None,
) -> TextField:
    require_keys(entry, ("path", "x", "top"), where)
    return TextField(
        path=str(entry["path"]),
        page=page if page is not None else as_int(entry, "page", where),
        at=Point.from_top(as_float(entry, "x", where), as_float(entry, "top", where), page_size),
        kind=_kind(entry, where),
        size=as_float(entry, "size", where, defaults.get("size", 7)),
        max_width=as_float(entry, "max_width", where, defaults.get("max_width", 200)),
        max_lines=as_int(entry, "max_lines", where, 1),
    )


def _group(raw: Mapping[str, Any], page_size: PageSize, defaults: Mapping[str, Any], idx: int) -> CheckboxGroup:
    where = f"groups[{idx}]"
    require_keys(raw, ("name", "path", "page", "members"), where)
    page = as_int(raw, "page", where)
    members: List[GroupMember] = []
    for m_idx, member in enumerate(raw["members"]):
        m_where = f"{where}.members[{m_idx}]"
        require_keys(member, ("id", "value", "x", "top"), m_where)
        members.append(
            GroupMember(
                id=str(member["id"]),
                value=str(member["value"]),
                aliases=tuple(str(a) for a in member.get("aliases", ())),
                at=Point.from_top(as_float(member, "x", m_where), as_float(member, "top", m_where), page_size),
            )
        )
    member_ids = {m.id for m in members}
    detail = None
    detail_member = None
    if raw.get("detail"):
        detail_raw = raw["detail"]
        detail = _text_field(detail_raw, page_size, defaults, f"{where}.detail", page=page)
        detail_member = str(detail_raw.get("member", ""))
        if detail_member not in member_ids:
            raise MappingError(f"{where}.detail: member '{detail_member}' is not in the group")
    default_member = raw.get("default")
    if default_member is not None and default_member not in member_ids:
        raise MappingError(f"{where}: default '{default_member}' is not in the group")
    depends_on = None
    if raw.get("depends_on"):
        require_keys(raw["depends_on"], ("group", "member"), f"{where}.depends_on")
        depends_on = (str(raw["depends_on"]["group"]), str(raw["depends_on"]["member"]))
    return CheckboxGroup(
        name=str(raw["name"]),
        path=str(raw["path"]),
        page=page,
        members=tuple(members),
        detail=detail,
        detail_member=detail_member,
        default_member=default_member,
        depends_on=depends_on,
    )


def _question(raw: Mapping[str, Any], page_size: PageSize, defaults: Mapping[str, Any], idx: int) -> Question:
    where = f"questions[{idx}]"
    require_keys(raw, ("id", "flag", "page", "yes_at", "no_at"), where)
    page = as_int(raw, "page", where)
    details = tuple(
        _text_field(detail, page_size, defaults, f"{where}.details[{d_idx}]", page=page)
        for d_idx, detail in enumerate(raw.get("details", ()))
    )
    return Question(
        id=str(raw["id"]),
        flag_path=str(raw["flag"]),
        page=page,
        yes=Point.from_top(*_pair(raw["yes_at"], f"{where}.yes_at"), page_size),
        no=Point.from_top(*_pair(raw["no_at"], f"{where}.no_at"), page_size),
        details=details,
    )


def _table(raw: TablePayload, page_size: PageSize, defaults: Mapping[str, Any], idx: int) -> TableRegion:
    where = f"tables[{idx}]"
    require_keys(raw, ("path", "page", "start_top", "row_step", "max_rows", "columns"), where)
    columns: List[Column] = []
    for name, spec in raw["columns"].items():
        c_where = f"{where}.columns.{name}"
        require_keys(spec, ("x",), c_where)
        columns.append(
            Column(
                field=str(name),
                x=as_float(spec, "x", c_where),
                kind=_kind(spec, c_where),
                size=as_float(spec, "size", c_where, defaults.get("size", 7)),
                max_width=as_float(spec, "max_width", c_where, defaults.get("max_width", 200)),
            )
        )
    return TableRegion(
        path=str(raw["path"]),
        page=as_int(raw, "page", where),
        start_top=as_float(raw, "start_top", where),
        row_step=as_float(raw, "row_step", where),
        max_rows=as_int(raw, "max_rows", where),
        columns=tuple(columns),
        page_size=page_size,
        slots=bool(raw.get("slots", False)),
    )


def _list(raw: Mapping[str, Any], page_size: PageSize, defaults: Mapping[str, Any], idx: int) -> ListRegion:
    where = f"lists[{idx}]"
    require_keys(raw, ("path", "page", "x", "start_top", "row_step", "max_rows"), where)
    return ListRegion(
        path=str(raw["path"]),
        page=as_int(raw, "page", where),
        x=as_float(raw, "x", where),
        start_top=as_float(raw, "start_top", where),
        row_step=as_float(raw, "row_step", where),
        max_rows=as_int(raw, "max_rows", where),
        page_size=page_size,
        size=as_float(raw, "size", where, defaults.get("size", 7)),
        max_width=as_float(raw, "max_width", where, defaults.get("max_width", 200)),
    )


def _signature(raw: Mapping[str, Any], page_size: PageSize) -> SignatureBox:
    where = "signature"
    require_keys(raw, ("path", "page", "x", "bottom_top", "width", "height"), where)
    return SignatureBox(
        path=str(raw["path"]),
        page=as_int(raw, "page", where),
        x=as_float(raw, "x", where),
        y=y_from_top(as_float(raw, "bottom_top", where), page_size.height),
        width=as_float(raw, "width", where),
        height=as_float(raw, "height", where),
        padding=as_float(raw, "padding", where, 4),
    )


def build_page_registry(payload: Mapping[str, Any], source: Optional[Path] = None) -> PageRegistry:
    """Validate a raw page-canvas payload and convert it to PDF space."""

    width, height = _pair(payload.get("page_size"), "page_size")
    page_size = PageSize(width=width, height=height)
    defaults: Dict[str, Any] = dict(payload.get("defaults") or {})
    pages = tuple(int(p) for p in payload.get("pages", ()))

    registry = PageRegistry(
        page_size=page_size,
        pages=pages,
        fields=tuple(
            _text_field(entry, page_size, defaults, f"fields[{idx}]")
            for idx, entry in enumerate(payload.get("fields", ()))
        ),
        groups=tuple(_group(raw, page_size, defaults, idx) for idx, raw in enumerate(payload.get("groups", ()))),
        questions=tuple(
            _question(raw, page_size, defaults, idx) for idx, raw in enumerate(payload.get("questions", ()))
        ),
        tables=tuple(_table(raw, page_size, defaults, idx) for idx, raw in enumerate(payload.get("tables", ()))),
        lists=tuple(_list(raw, page_size, defaults, idx) for idx, raw in enumerate(payload.get("lists", ()))),
        signature=_signature(payload["signature"], page_size) if payload.get("signature") else None,
        checkbox_size=float(defaults.get("checkbox_size", 8)),
        source=source,
    )

    used_pages = {f.page for f in registry.fields}
    used_pages |= {g.page for g in registry.groups} | {q.page for q in registry.questions}
    used_pages |= {t.page for t in registry.tables} | {lst.page for lst in registry.lists}
    if undeclared := used_pages - set(pages):
        raise MappingError(f"Entries reference undeclared pages: {sorted(undeclared)}")
    seen: set[str] = set()
    for path in registry.paths():
        if path in seen:
            raise MappingError(f"Path mapped more than once: {path}")
        seen.add(path)
    return registry


def load_page_registry(path: Optional[Path] = None) -> PageRegistry:
    """Load the page-canvas registry, defaulting to the bundled CS Form 212 layout.

    Raises:
        RegistryError: When the file is missing or malformed.
    """

    registry_path = Path(path) if path else DEFAULT_PAGE_REGISTRY
    try:
        payload = load_mapping_yaml(registry_path, required=("page_size", "pages"))
        return build_page_registry(payload, source=registry_path)
    except MappingError as exc:
        raise RegistryError(f"Invalid page registry {registry_path.name}: {exc}") from exc
