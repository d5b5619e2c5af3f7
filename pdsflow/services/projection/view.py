"""Render-scoped projection view of a PDS record.

The view is a fresh JSON-shaped copy carrying the derived values both
renderers need. It is discarded after the render; the record is never touched.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Optional

from .formatters import FormatError, csc_date, parse_date
from .models import PDSRecord, RenderOptions

LOGGER = logging.getLogger(__name__)

_ADDRESS_FIELDS = (
    "houseBlockLotNo",
    "street",
    "subdivisionVillage",
    "barangay",
    "cityMunicipality",
    "province",
    "zipCode",
)


def organization_label(name: Optional[str], address: Optional[str]) -> str:
    name = (name or "").strip()
    address = (address or "").strip()
    if name and address:
        return f"{name} - {address}"
    return name or address


def declaration_date(recorded: Any, options: RenderOptions) -> str:
    """``today`` when asked for, else the recorded date, else today."""

    today = options.today or date.today()
    if options.use_current_date:
        return csc_date(today)
    try:
        parsed = parse_date(recorded)
    except FormatError:
        LOGGER.warning("Ignoring unparseable declaration date: %r", recorded)
        parsed = None
    return csc_date(parsed or today)


def build_view(record: PDSRecord, options: RenderOptions) -> Dict[str, Any]:
    view = record.to_payload()

    personal = view["personalInfo"]
    permanent = personal["permanentAddress"]
    if permanent.get("sameAsResidential"):
        for key in _ADDRESS_FIELDS:
            permanent[key] = personal["residentialAddress"].get(key)

    for entry in view["voluntaryWork"]:
        entry["organizationLabel"] = organization_label(
            entry.get("organizationName"), entry.get("organizationAddress")
        )

    declaration = view["otherInformation"]["declaration"]
    declaration["dateAccomplished"] = declaration_date(declaration.get("dateAccomplished"), options)
    return view
