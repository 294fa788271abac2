"""Core signing and PDF operations.

``core.pdf`` works on raw bytes; ``core.cms`` on DER. pikepdf is only
needed to read page geometry, so it is imported on first use.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import SigspliceError

if TYPE_CHECKING:
    import types

__all__: list[str] = []


def require_pikepdf() -> types.ModuleType:
    """Return the pikepdf module, importing it on first call."""
    try:
        import pikepdf
    except ImportError as exc:
        raise SigspliceError(
            "Reading page geometry needs pikepdf (pip install pikepdf)"
        ) from exc
    return pikepdf
