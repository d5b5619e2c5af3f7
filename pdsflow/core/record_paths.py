"""Dotted-path access into JSON-shaped records.

Paths look like ``personalInfo.surname`` or ``familyBackground.children.0.fullName``;
purely numeric segments index into lists.
"""

from __future__ import annotations

from typing import Any, List, MutableMapping


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def split_path(path: str) -> List[str]:
    return [part for part in path.split(".") if part]


def get_path(obj: Any, path: str, default: Any = MISSING) -> Any:
    """Resolve ``path`` inside ``obj``; return ``default`` when any segment is absent."""

    current = obj
    for part in split_path(path):
        if current is None:
            return default
        if isinstance(current, list):
            if not part.isdigit() or int(part) >= len(current):
                return default
            current = current[int(part)]
        elif isinstance(current, MutableMapping):
            if part not in current:
                return default
            current = current[part]
        else:
            return default
    return current


def set_path(obj: MutableMapping[str, Any], path: str, value: Any) -> None:
    """Assign ``value`` at ``path``, creating intermediate dicts and padding lists."""

    parts = split_path(path)
    if not parts:
        raise ValueError("empty path")
    current: Any = obj
    for index, part in enumerate(parts[:-1]):
        nxt = parts[index + 1]
        container: Any = [] if nxt.isdigit() else {}
        if isinstance(current, list):
            pos = int(part)
            while len(current) <= pos:
                current.append(None)
            if not isinstance(current[pos], (dict, list)):
                current[pos] = container
            current = current[pos]
        else:
            if not isinstance(current.get(part), (dict, list)):
                current[part] = container
            current = current[part]
    last = parts[-1]
    if isinstance(current, list):
        pos = int(last)
        while len(current) <= pos:
            current.append(None)
        current[pos] = value
    else:
        current[last] = value
