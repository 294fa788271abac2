"""
Signature field positioning and page geometry helpers.

A signature rectangle comes either from a user selection drawn on the
rendered page (top-left origin, as browsers report it) or from a preset
name ("bottom-right", "br", etc.) when no selection is given.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ...errors import PDFError

if TYPE_CHECKING:
    import pikepdf

# ── Signature position presets ────────────────────────────────────────

# Default signature field size in PDF points
SIG_WIDTH = 200
SIG_HEIGHT = 50
SIG_MARGIN_H = 36  # horizontal margin from left/right edge (~13 mm)
SIG_MARGIN_V = 60  # vertical margin from top/bottom edge (~21 mm)

# Full names -> short aliases
POSITION_ALIASES = {
    "br": "bottom-right",
    "tr": "top-right",
    "bl": "bottom-left",
    "tl": "top-left",
    "bc": "bottom-center",
}

POSITION_PRESETS = {
    "bottom-right",
    "top-right",
    "bottom-left",
    "top-left",
    "bottom-center",
}


# ── User selection ────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class SelectionRect:
    """A rectangle selected on the rendered page, origin at the top-left.

    Corners may be given in either drag direction; they are normalized
    so that ``start`` is the top-left corner.  NaN and infinities are
    rejected with PDFError.
    """

    start_x: float
    start_y: float
    end_x: float
    end_y: float

    def __post_init__(self) -> None:
        coords = (self.start_x, self.start_y, self.end_x, self.end_y)
        if not all(math.isfinite(float(c)) for c in coords):
            raise PDFError(f"Selection coordinates must be finite numbers, got {coords!r}")
        x0, x1 = sorted((float(self.start_x), float(self.end_x)))
        y0, y1 = sorted((float(self.start_y), float(self.end_y)))
        object.__setattr__(self, "start_x", x0)
        object.__setattr__(self, "end_x", x1)
        object.__setattr__(self, "start_y", y0)
        object.__setattr__(self, "end_y", y1)

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> SelectionRect:
        """Build from a ``{startX, startY, endX, endY}`` mapping."""
        try:
            return cls(
                float(data["startX"]),  # type: ignore[arg-type]
                float(data["startY"]),  # type: ignore[arg-type]
                float(data["endX"]),  # type: ignore[arg-type]
                float(data["endY"]),  # type: ignore[arg-type]
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise PDFError(f"Invalid selection rectangle {dict(data)!r}: {exc}") from exc

    @property
    def width(self) -> float:
        return self.end_x - self.start_x

    @property
    def height(self) -> float:
        return self.end_y - self.start_y

    def to_pdf_rect(
        self, page_width: float, page_height: float
    ) -> tuple[float, float, float, float]:
        """Convert to ``(x, y, w, h)`` in PDF space (origin = bottom-left).

        Raises:
            PDFError: If the rectangle is empty or leaves the page.
        """
        if self.width <= 0 or self.height <= 0:
            raise PDFError(f"Selection rectangle is empty: {self.width:.1f} x {self.height:.1f} pt")
        if (
            self.start_x < 0
            or self.start_y < 0
            or self.end_x > page_width
            or self.end_y > page_height
        ):
            raise PDFError(
                f"Selection ({self.start_x:.0f},{self.start_y:.0f})-"
                f"({self.end_x:.0f},{self.end_y:.0f}) is outside the page "
                f"({page_width:.0f}x{page_height:.0f} pt)"
            )
        return self.start_x, page_height - self.end_y, self.width, self.height


def parse_rect(rect_str: str) -> SelectionRect:
    """Parse ``"x0,y0,x1,y1"`` (top-left origin) into a :class:`SelectionRect`.

    >>> parse_rect("100,200,300,250").width
    200.0
    """
    parts = [p.strip() for p in rect_str.split(",")]
    if len(parts) != 4:
        raise PDFError(f"Invalid rectangle {rect_str!r}. Use x0,y0,x1,y1.")
    try:
        x0, y0, x1, y1 = (float(p) for p in parts)
    except ValueError as exc:
        raise PDFError(f"Invalid rectangle {rect_str!r}: {exc}") from exc
    return SelectionRect(x0, y0, x1, y1)


# ── Presets ───────────────────────────────────────────────────────────


def resolve_position(position_name: str) -> str:
    """Normalize a position name, resolving aliases.

    >>> resolve_position("br")
    'bottom-right'
    >>> resolve_position("bottom-right")
    'bottom-right'

    Raises PDFError for unknown positions.
    """
    name = position_name.lower().strip()
    name = POSITION_ALIASES.get(name, name)
    if name not in POSITION_PRESETS:
        valid = sorted(POSITION_PRESETS) + sorted(POSITION_ALIASES)
        raise PDFError(f"Unknown position {position_name!r}. Valid: {', '.join(valid)}")
    return name


def compute_sig_rect(
    page_width: float,
    page_height: float,
    position: str = "bottom-right",
    sig_w: float = SIG_WIDTH,
    sig_h: float = SIG_HEIGHT,
) -> tuple[float, float, float, float]:
    """Compute ``(x, y, w, h)`` for a preset position, origin = bottom-left.

    Raises:
        PDFError: If the field does not fit on the page.
    """
    if page_width <= 0 or page_height <= 0:
        raise PDFError(f"Invalid page dimensions: {page_width:.1f} x {page_height:.1f} pt")

    position = resolve_position(position)

    if "right" in position:
        x = page_width - SIG_MARGIN_H - sig_w
    elif "left" in position:
        x = SIG_MARGIN_H
    else:  # center
        x = (page_width - sig_w) / 2.0

    if "bottom" in position:
        y = SIG_MARGIN_V
    else:  # top
        y = page_height - SIG_MARGIN_V - sig_h

    if x < 0 or y < 0:
        raise PDFError(
            f"Signature does not fit on page: computed position ({x:.1f}, {y:.1f}) is negative. "
            f"Page: {page_width:.0f}x{page_height:.0f} pt"
        )

    return x, y, sig_w, sig_h


# ── Page lookup ───────────────────────────────────────────────────────


def parse_page_spec(page_str: str) -> str | int:
    """Convert user-facing page specifier to internal format.

    Accepts "first", "last" (returned as-is), or 1-based page numbers
    (returned as 0-based integers).

    Raises:
        PDFError: If the page specifier is invalid.
    """
    spec = page_str.strip().lower()
    if spec in ("first", "last"):
        return spec
    try:
        page_num = int(spec)
    except ValueError as exc:
        raise PDFError(
            f"Invalid page: {page_str!r}. Use 'first', 'last', or a page number."
        ) from exc
    if page_num < 1:
        raise PDFError(f"Page number must be 1 or greater, got {page_num}")
    return page_num - 1


def get_page_dimensions(pdf: pikepdf.Pdf, page_index: int) -> tuple[float, float]:
    """Get effective (width, height) for a page, respecting CropBox and Rotate."""
    page = pdf.pages[page_index]

    # pikepdf falls back to the (possibly inherited) MediaBox when there is no CropBox
    box = page.cropbox
    x0, y0, x1, y1 = float(box[0]), float(box[1]), float(box[2]), float(box[3])
    w = abs(x1 - x0)
    h = abs(y1 - y0)

    # /Rotate is clockwise degrees; 90 and 270 swap width/height
    rotate_val = page.obj.get("/Rotate")
    rotate = (int(rotate_val) if rotate_val is not None else 0) % 360
    if rotate in (90, 270):
        w, h = h, w

    return w, h


def resolve_page_index(pdf: pikepdf.Pdf, page_spec: int | str) -> int:
    """Convert a page specifier ("first", "last" or 0-based) to a checked index."""
    total = len(pdf.pages)

    if isinstance(page_spec, str):
        spec = page_spec.strip().lower()
        if spec == "last":
            return total - 1
        if spec == "first":
            return 0
        try:
            page_spec = int(spec)
        except ValueError as exc:
            raise PDFError(
                f"Invalid page: {page_spec!r}. Use 'first', 'last', or a 0-based number."
            ) from exc

    idx = int(page_spec)
    if idx < 0 or idx >= total:
        raise PDFError(f"Page {idx} out of range (PDF has {total} page(s), 0-based).")
    return idx
