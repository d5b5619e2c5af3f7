"""Aggregate record shared by the per-page editing containers."""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pdsflow.registry.page import PageRegistry, load_page_registry
from pdsflow.services.projection.models import OtherInformation, PDSRecord, coerce_record

from .containers import EditingContainer, SectionSpec

LOGGER = logging.getLogger(__name__)

_OTHER_LISTS = ("skills", "recognitions", "memberships")
_OTHER_PAGE4 = tuple(name for name in OtherInformation.model_fields if name not in _OTHER_LISTS)

PAGE_OWNERSHIP: Dict[int, Dict[str, Optional[Tuple[str, ...]]]] = {
    1: {"personalInfo": None, "familyBackground": None, "educationalBackground": None},
    2: {"eligibility": None, "workExperience": None},
    3: {"voluntaryWork": None, "trainings": None, "otherInformation": _OTHER_LISTS},
    4: {"otherInformation": _OTHER_PAGE4},
}


def default_sections(page_registry: Optional[PageRegistry] = None) -> List[SectionSpec]:
    """One section per page, with row counts taken from the page-canvas registry."""

    registry = page_registry or load_page_registry()
    sections = []
    for page, owns in PAGE_OWNERSHIP.items():
        on_page = registry.on_page(page)
        rows = {table.path: table.max_rows for table in on_page.tables}
        rows.update({lst.path: lst.max_rows for lst in on_page.lists})
        sections.append(
            SectionSpec(
                page=page,
                owns=owns,
                rows=rows,
                string_rows=frozenset(lst.path for lst in on_page.lists),
                slotted=frozenset(table.path for table in on_page.tables if table.slots),
            )
        )
    return sections


class OverlaySession:
    """Keeps page containers and the aggregate record converged.

    A container emission is merged into the record by that container's own keys
    only: objects are merged shallowly, arrays are replaced. The merged record
    is then broadcast to every container; their snapshot guards end the cycle.
    """

    def __init__(
        self,
        record: Union[PDSRecord, Mapping[str, Any], None] = None,
        sections: Optional[Iterable[SectionSpec]] = None,
    ) -> None:
        self.record: Dict[str, Any] = self._as_payload(record)
        self.containers: Dict[int, EditingContainer] = {}
        self.merges = 0
        self._listeners: List[Callable[[Dict[str, Any]], None]] = []
        for spec in sections if sections is not None else default_sections():
            container = EditingContainer(spec)
            container.subscribe(lambda values, spec=spec: self._merge(spec, values))
            self.containers[spec.page] = container
        self._broadcast()

    @staticmethod
    def _as_payload(record: Union[PDSRecord, Mapping[str, Any], None]) -> Dict[str, Any]:
        if record is None:
            return {}
        if isinstance(record, PDSRecord):
            return record.to_payload()
        return copy.deepcopy(dict(record))

    def container(self, page: int) -> EditingContainer:
        try:
            return self.containers[page]
        except KeyError:
            raise KeyError(f"No editing container for page {page}") from None

    def subscribe(self, listener: Callable[[Dict[str, Any]], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def load(self, record: Union[PDSRecord, Mapping[str, Any]]) -> None:
        """Replace the aggregate from an external source and push it to every page."""

        self.record = self._as_payload(record)
        self._broadcast()

    def to_record(self) -> PDSRecord:
        return coerce_record(copy.deepcopy(self.record))

    def _merge(self, spec: SectionSpec, values: Mapping[str, Any]) -> None:
        for key, subkeys in spec.owns.items():
            if key not in values:
                continue
            incoming = values[key]
            current = self.record.get(key)
            if isinstance(incoming, Mapping) and isinstance(current, Mapping):
                merged = dict(current)
                for sub, sub_value in incoming.items():
                    if subkeys is None or sub in subkeys:
                        merged[sub] = copy.deepcopy(sub_value)
                self.record[key] = merged
            else:
                self.record[key] = copy.deepcopy(incoming)
        self.merges += 1
        LOGGER.debug("Merged page %s into the aggregate record", spec.page)
        self._broadcast()
        for listener in list(self._listeners):
            listener(copy.deepcopy(self.record))

    def _broadcast(self) -> None:
        for container in self.containers.values():
            container.receive(self.record)
