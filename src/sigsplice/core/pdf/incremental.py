"""Reading the original document and appending the incremental update.

Everything the update needs to know about the original file is gathered
in one read-only pikepdf pass (:func:`inspect_document`).  The update
itself is plain text appended after the untouched original bytes
(:func:`append_update`): new and redefined objects, a classic xref
section and a trailer chained to the previous one with /Prev.
"""

from __future__ import annotations

import io
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from itertools import groupby
from typing import TYPE_CHECKING

from ...errors import PDFError
from .. import require_pikepdf as _require_pikepdf
from .objects import ObjRef, dict_entries, pdf_value
from .position import get_page_dimensions, resolve_page_index

if TYPE_CHECKING:
    import pikepdf

_logger = logging.getLogger(__name__)

_STARTXREF_RE = re.compile(rb"startxref\s+(\d+)\s+%%EOF")


@dataclass(frozen=True, slots=True)
class DocumentFacts:
    """What the signature update needs from the original file.

    Attributes:
        root: The catalog.
        page: The page receiving the widget.
        page_width: Visible page width in points, rotation applied.
        page_height: Visible page height in points, rotation applied.
        page_annots: Existing /Annots items as raw PDF syntax.
        page_entries: Page dictionary lines, /Annots excluded.
        catalog_entries: Catalog dictionary lines, /AcroForm excluded.
        size: Trailer /Size; the first free object number.
        prev_xref: Offset of the last xref section.
        trailer_extra: /Info and /ID entries carried into the new trailer.
    """

    root: ObjRef
    page: ObjRef
    page_width: float
    page_height: float
    page_annots: tuple[str, ...]
    page_entries: tuple[str, ...]
    catalog_entries: tuple[str, ...]
    size: int
    prev_xref: int
    trailer_extra: tuple[str, ...]


# ── Reading ──────────────────────────────────────────────────────────


def find_prev_startxref(pdf_bytes: bytes) -> int:
    """Offset named by the last ``startxref``; junk after %%EOF is tolerated."""
    offsets = _STARTXREF_RE.findall(pdf_bytes)
    if not offsets:
        raise PDFError("Cannot find startxref in PDF.")
    return int(offsets[-1])


def _indirect(obj: pikepdf.Object, what: str) -> ObjRef:
    ref = ObjRef(*obj.objgen)
    if ref.num == 0:
        raise PDFError(f"{what} is not an indirect object")
    return ref


def _carried_trailer_entries(trailer: pikepdf.Dictionary) -> tuple[str, ...]:
    entries: list[str] = []
    info = trailer.get("/Info")
    if info is not None and info.is_indirect:
        entries.append(f"/Info {pdf_value(info)}")
    doc_id = trailer.get("/ID")
    if doc_id is not None:
        entries.append(f"/ID {pdf_value(doc_id)}")
    return tuple(entries)


def inspect_document(pdf_bytes: bytes, page_spec: int | str) -> DocumentFacts:
    """Read the catalog, target page and trailer of *pdf_bytes*.

    pikepdf resolves xref streams and hybrid files a regex would misread;
    the document is never saved through it.

    Raises:
        PDFError: If the file cannot be parsed, the page does not exist,
            or the page or catalog holds values of the wrong type.
    """
    prev_xref = find_prev_startxref(pdf_bytes)
    pikepdf = _require_pikepdf()
    try:
        with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
            page_idx = resolve_page_index(pdf, page_spec)
            page = pdf.pages[page_idx].obj
            width, height = get_page_dimensions(pdf, page_idx)
            catalog = pdf.trailer["/Root"]
            facts = DocumentFacts(
                root=_indirect(catalog, "Catalog"),
                page=_indirect(page, f"Page {page_idx}"),
                page_width=width,
                page_height=height,
                page_annots=tuple(pdf_value(a) for a in page.get("/Annots", ())),
                page_entries=dict_entries(page, "/Annots"),
                catalog_entries=dict_entries(catalog, "/AcroForm"),
                size=int(pdf.trailer["/Size"]),
                prev_xref=prev_xref,
                trailer_extra=_carried_trailer_entries(pdf.trailer),
            )
    except (pikepdf.PdfError, KeyError, IndexError, TypeError, ValueError) as e:
        raise PDFError(f"Cannot read PDF structure: {e}") from e

    _logger.debug(
        "Catalog %s, page %s (%.0fx%.0f pt), /Size %d, prev xref at %d",
        facts.root.ref,
        facts.page.ref,
        facts.page_width,
        facts.page_height,
        facts.size,
        facts.prev_xref,
    )
    return facts


# ── Writing ──────────────────────────────────────────────────────────


def xref_section(offsets: Mapping[ObjRef, int]) -> bytes:
    """Classic xref table, one subsection per run of consecutive numbers.

    Every entry is exactly 20 bytes and ends in CR LF.
    """
    if not offsets:
        raise PDFError("Cannot build xref table: no objects to reference.")
    lines = ["xref"]
    ordered = sorted(offsets.items())
    for _, run in groupby(enumerate(ordered), key=lambda item: item[1][0].num - item[0]):
        entries = [entry for _, entry in run]
        lines.append(f"{entries[0][0].num} {len(entries)}")
        lines.extend(f"{offset:010d} {ref.gen:05d} n\r" for ref, offset in entries)
    return ("\n".join(lines) + "\n").encode("ascii")


def trailer_section(
    *,
    size: int,
    prev_xref: int,
    root: ObjRef,
    extra: tuple[str, ...],
    xref_offset: int,
) -> bytes:
    """Trailer dictionary, ``startxref`` and ``%%EOF``."""
    entries = [f"/Size {size}", f"/Prev {prev_xref}", f"/Root {root.ref}", *extra]
    body = "\n".join(f"  {entry}" for entry in entries)
    return f"trailer\n<<\n{body}\n>>\nstartxref\n{xref_offset}\n%%EOF\n".encode("latin-1")


def append_update(
    pdf_bytes: bytes,
    objects: list[tuple[ObjRef, bytes]],
    facts: DocumentFacts,
    new_size: int,
) -> bytes:
    """Append *objects*, their xref section and a trailer to *pdf_bytes*.

    The original bytes are kept verbatim; at most a newline is added
    after the final ``%%EOF``.
    """
    out = bytearray(pdf_bytes)
    if not out.endswith(b"\n"):
        out += b"\n"

    offsets: dict[ObjRef, int] = {}
    for ref, raw in objects:
        offsets[ref] = len(out)
        out += raw

    xref_offset = len(out)
    out += xref_section(offsets)
    out += trailer_section(
        size=new_size,
        prev_xref=facts.prev_xref,
        root=facts.root,
        extra=facts.trailer_extra,
        xref_offset=xref_offset,
    )
    return bytes(out)
