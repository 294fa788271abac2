"""Placeholder allocation.

Appends a true incremental update carrying a visible signature widget,
a /Sig dictionary with a provisional /ByteRange and a zero-filled
/Contents hex field.  The original PDF bytes are preserved exactly.

Reading the original and writing xref/trailer is in incremental.py.
Low-level PDF object syntax is in objects.py.
Object bodies are in render.py.
Position/geometry helpers are in position.py.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from ...constants import (
    DEFAULT_REASON,
    DEFAULT_SIGNATURE_CAPACITY,
    MAX_SIGNATURE_CAPACITY,
    MIN_SIGNATURE_CAPACITY,
    PDF_MAGIC,
)
from ...errors import PDFError
from .incremental import append_update, inspect_document
from .objects import ObjRef, SigObjects, redefine
from .position import SelectionRect, compute_sig_rect
from .render import (
    appearance_lines,
    build_annot_widget,
    build_appearance_stream,
    build_appearance_xobject,
    build_font_object,
    build_sig_dict,
)

_logger = logging.getLogger(__name__)


def _to_bytes(raw: str | bytes) -> bytes:
    """Convert a raw PDF object (str or bytes) to bytes."""
    return raw if isinstance(raw, bytes) else raw.encode("latin-1")


def validate_pdf(pdf_bytes: bytes) -> None:
    """Raise PDFError if bytes don't look like a PDF."""
    if not pdf_bytes or not pdf_bytes.startswith(PDF_MAGIC):
        raise PDFError("Input does not appear to be a PDF file.")


def allocate_placeholder(
    pdf_bytes: bytes,
    page: int | str = 0,
    selection: SelectionRect | None = None,
    *,
    name: str | None = None,
    reason: str = DEFAULT_REASON,
    capacity: int = DEFAULT_SIGNATURE_CAPACITY,
    signing_time: datetime | None = None,
    position: str = "bottom-right",
) -> bytes:
    """
    Append a signature field with placeholders to *pdf_bytes*.

    Args:
        pdf_bytes: Raw PDF content.
        page: Page for the signature -- 0-based int, "first", or "last".
        selection: Rectangle drawn on the rendered page (top-left origin).
            If None, the field is placed at the ``position`` preset.
        name: Signer display name for the appearance and /Name entry.
        reason: Signature reason string.
        capacity: Bytes of DER the /Contents placeholder can hold.
        signing_time: Timestamp for /M and the appearance text.
        position: Preset name used when no selection is given.

    Returns:
        New PDF bytes: the original followed by the incremental update.
    """
    validate_pdf(pdf_bytes)
    if not MIN_SIGNATURE_CAPACITY <= capacity <= MAX_SIGNATURE_CAPACITY:
        raise PDFError(
            f"Signature capacity {capacity} outside "
            f"[{MIN_SIGNATURE_CAPACITY}, {MAX_SIGNATURE_CAPACITY}] bytes"
        )
    if signing_time is None:
        signing_time = datetime.now(timezone.utc)

    facts = inspect_document(pdf_bytes, page)
    if selection is not None:
        x, y, w, h = selection.to_pdf_rect(facts.page_width, facts.page_height)
    else:
        x, y, w, h = compute_sig_rect(facts.page_width, facts.page_height, position)
    _logger.debug(
        "Signature field on page %s at (%.1f, %.1f) size %.1f x %.1f",
        facts.page.ref,
        x,
        y,
        w,
        h,
    )

    objs = SigObjects.after(facts.size)
    widget = ObjRef(objs.annot)
    stream = build_appearance_stream(w, h, appearance_lines(name, signing_time))
    annots = " ".join([*facts.page_annots, widget.ref])

    # The /Sig dictionary goes first so its placeholders precede every other new object
    updates: list[tuple[ObjRef, str | bytes]] = [
        (ObjRef(objs.sig), build_sig_dict(objs.sig, reason, name, capacity, signing_time)),
        (widget, build_annot_widget(objs, facts.page, x, y, w, h)),
        (ObjRef(objs.ap), build_appearance_xobject(objs, w, h, stream)),
        (ObjRef(objs.font), build_font_object(objs.font)),
        (facts.page, redefine(facts.page, facts.page_entries, f"  /Annots [{annots}]")),
        (
            facts.root,
            redefine(
                facts.root,
                facts.catalog_entries,
                f"  /AcroForm << /Fields [{widget.ref}] /SigFlags 3 >>",
            ),
        ),
    ]

    full_pdf = append_update(
        pdf_bytes,
        [(ref, _to_bytes(raw)) for ref, raw in updates],
        facts,
        objs.next_size,
    )
    _logger.debug("Placeholder allocated: %d -> %d bytes", len(pdf_bytes), len(full_pdf))
    return full_pdf
