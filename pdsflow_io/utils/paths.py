"""Output path resolution for rendered documents."""

# Module responsibilities:
# - Create the output directory on demand.
# - Never hand back a path that points at one of the template files.

from __future__ import annotations

from pathlib import Path
from typing import Iterable


def prepare_output_path(filename: str, out_dir: Path, *, protected: Iterable[Path] = ()) -> Path:
    """Return ``out_dir / filename``, creating ``out_dir`` first.

    Args:
        filename: Generated document name.
        out_dir: Target directory.
        protected: Template paths that must never be overwritten.

    Returns:
        Final output path. When the name collides with a protected template the
        stem receives an ``_out`` suffix.
    """

    out_dir.mkdir(parents=True, exist_ok=True)
    candidate = out_dir / filename
    guarded = {Path(p).resolve() for p in protected}
    if candidate.resolve() in guarded:
        candidate = candidate.with_name(f"{candidate.stem}_out{candidate.suffix}")
    return candidate
