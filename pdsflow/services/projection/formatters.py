"""Value formatting shared by both render targets."""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional

import pandas as pd

PRESENT = "Present"

_YEAR_FIRST = re.compile(r"^\d{4}[/.\-]\d{1,2}(?:[/.\-]\d{1,2})?(?:[ T].*)?$")
_COMPACT = re.compile(r"^(\d{2})(\d{2})(\d{4})$")
_YEAR_ONLY = re.compile(r"^\d{4}$")


class FormatError(ValueError):
    """Raised when a value cannot be rendered in the requested format."""


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def parse_date(value: Any) -> Optional[date]:
    """Parse the date spellings found in PDS drafts; ``None`` for blanks.

    Numeric forms are read day first (``31/12/2020``) unless the year leads
    (``2020-12-31``, ``2020-12``). Missing day or month parts default to the
    first, so ``Jan 2020`` is 1 January 2020.
    """

    if _is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = " ".join(str(value).split())

    if _COMPACT.match(text):
        parsed = pd.to_datetime(text, format="%d%m%Y", errors="coerce")
    elif _YEAR_FIRST.match(text):
        parsed = pd.to_datetime(text, yearfirst=True, errors="coerce")
    else:
        parsed = pd.to_datetime(text, dayfirst=True, errors="coerce")
    if pd.isna(parsed):
        raise FormatError(f"unparseable date: {text!r}")
    return parsed.date()


def csc_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def format_date(value: Any) -> str:
    """Render ``dd/mm/yyyy``; ``Present`` passes through."""

    if isinstance(value, str) and value.strip().lower() == PRESENT.lower():
        return PRESENT
    parsed = parse_date(value)
    return csc_date(parsed) if parsed else ""


def format_year(value: Any) -> str:
    if _is_blank(value):
        return ""
    text = str(value).strip()
    if _YEAR_ONLY.match(text):
        return text
    if text.lower() == PRESENT.lower():
        return PRESENT
    parsed = parse_date(text)
    return str(parsed.year) if parsed else ""


def _as_number(value: Any) -> Optional[float]:
    if _is_blank(value) or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip())
    except ValueError as exc:
        raise FormatError(f"not a number: {value!r}") from exc
    if math.isnan(number):
        return None
    return number


def format_number(value: Any) -> str:
    number = _as_number(value)
    if number is None:
        return ""
    return str(int(number)) if number.is_integer() else str(number)


def format_height(value: Any) -> str:
    """Metres to whole centimetres."""

    number = _as_number(value)
    if number is None:
        return ""
    return str(round(number * 100))


def format_flag(value: Any) -> str:
    if value is None:
        return ""
    return "Y" if bool(value) else "N"


def format_text(value: Any) -> str:
    if _is_blank(value):
        return ""
    return str(value).strip()


_FORMATTERS: Dict[str, Callable[[Any], str]] = {
    "text": format_text,
    "date": format_date,
    "year": format_year,
    "number": format_number,
    "hours": format_number,
    "height": format_height,
    "flag": format_flag,
}


def format_value(kind: str, value: Any) -> str:
    """Format ``value`` for a registry value kind.

    Raises:
        FormatError: When the value cannot be interpreted for ``kind``.
    """

    try:
        formatter = _FORMATTERS[kind]
    except KeyError as exc:
        raise FormatError(f"unknown value kind: {kind}") from exc
    return formatter(value)
