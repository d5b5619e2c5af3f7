"""Live overlay editor: page containers converging into one record."""

from .containers import EditingContainer, SectionSpec, snapshot
from .session import PAGE_OWNERSHIP, OverlaySession, default_sections

__all__ = [
    "EditingContainer",
    "SectionSpec",
    "snapshot",
    "PAGE_OWNERSHIP",
    "OverlaySession",
    "default_sections",
]
