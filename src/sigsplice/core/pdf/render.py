"""Raw PDF object bodies for the signature field.

Builds the signature dictionary, the widget annotation, and the visible
appearance (a bordered box with two lines of Helvetica text).

These helpers are called by builder.py's orchestration layer.
"""

from __future__ import annotations

from datetime import datetime, timezone

from ...constants import __version__
from .objects import (
    ANNOT_FLAGS_SIG_WIDGET,
    BYTERANGE_PLACEHOLDER_STR,
    ObjRef,
    SigObjects,
    contents_placeholder,
    pdf_string,
)

# ── Appearance layout constants ────────────────────────────────────────

_FONT_SIZE = 12.0
_MIN_FONT_SIZE = 4.0
_LINE_LEADING = 1.2
_PAD = 4.0
_BORDER_WIDTH = 1.0


def pdf_date(moment: datetime) -> str:
    """Format a datetime as a PDF date string (``D:YYYYMMDDHHmmSS+00'00'``)."""
    return moment.astimezone(timezone.utc).strftime("D:%Y%m%d%H%M%S+00'00'")


def appearance_lines(name: str | None, moment: datetime) -> list[str]:
    """Text drawn inside the widget: the signer line and a timestamp line."""
    first = f"Signed by {name}" if name else "Digitally signed"
    return [first, moment.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")]


def build_appearance_stream(w: float, h: float, lines: list[str]) -> bytes:
    """Content stream for /AP /N: a 1pt black border and the text lines.

    The font shrinks when the box is too short for two lines at 12pt.
    """
    size = min(_FONT_SIZE, (h - 2 * _PAD) / (len(lines) * _LINE_LEADING))
    size = max(size, _MIN_FONT_SIZE)
    leading = size * _LINE_LEADING
    half = _BORDER_WIDTH / 2

    ops = [
        "q",
        "0 0 0 RG",
        f"{_BORDER_WIDTH:.2f} w",
        f"{half:.2f} {half:.2f} {w - _BORDER_WIDTH:.2f} {h - _BORDER_WIDTH:.2f} re S",
        "Q",
        "BT",
        f"/F1 {size:.2f} Tf",
        "0 g",
        f"{leading:.2f} TL",
        f"{_PAD:.2f} {h - _PAD - size:.2f} Td",
    ]
    for i, line in enumerate(lines):
        op = "Tj" if i == 0 else "'"
        ops.append(f"({pdf_string(line)}) {op}")
    ops.append("ET")
    return "\n".join(ops).encode("latin-1")


def build_sig_dict(
    obj_num: int,
    reason: str,
    name: str | None,
    capacity: int,
    signing_time: datetime,
) -> str:
    """Build the /Type /Sig dictionary object with both placeholders."""
    name_entry = f"  /Name ({pdf_string(name)})\n" if name else ""
    prop_build = (
        f"  /Prop_Build << /App << /Name /Sigsplice /REx ({__version__}) >> "
        f"/Filter << /Name /Adobe.PPKLite >> >>\n"
    )
    return (
        f"{obj_num} 0 obj\n"
        f"<<\n"
        f"  /Type /Sig\n"
        f"  /Filter /Adobe.PPKLite\n"
        f"  /SubFilter /adbe.pkcs7.detached\n"
        f"  {BYTERANGE_PLACEHOLDER_STR}\n"
        f"  {contents_placeholder(capacity)}\n"
        f"  /M ({pdf_date(signing_time)})\n"
        f"  /Reason ({pdf_string(reason)})\n"
        f"{name_entry}"
        f"{prop_build}"
        f">>\n"
        f"endobj\n"
    )


def build_font_object(obj_num: int) -> bytes:
    """Standard 14 Helvetica, no embedding needed."""
    return (
        f"{obj_num} 0 obj\n"
        f"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica /Encoding /WinAnsiEncoding >>\n"
        f"endobj\n"
    ).encode("latin-1")


def build_appearance_xobject(objs: SigObjects, w: float, h: float, stream: bytes) -> bytes:
    """Wrap the appearance content stream in a form XObject."""
    header = (
        f"{objs.ap} 0 obj\n"
        f"<< /Type /XObject /Subtype /Form /FormType 1\n"
        f"   /BBox [0.00 0.00 {w:.2f} {h:.2f}]\n"
        f"   /Resources << /Font << /F1 {objs.font} 0 R >> >>\n"
        f"   /Length {len(stream)}\n"
        f">>\nstream\n"
    )
    return header.encode("latin-1") + stream + b"\nendstream\nendobj\n"


def build_annot_widget(
    objs: SigObjects,
    page: ObjRef,
    x: float,
    y: float,
    w: float,
    h: float,
) -> str:
    """Build the annotation widget for the signature field."""
    sig, annot, ap, _ = objs
    # The border is drawn by the appearance stream, not the viewer
    return (
        f"{annot} 0 obj\n"
        f"<<\n"
        f"  /Type /Annot\n"
        f"  /Subtype /Widget\n"
        f"  /FT /Sig\n"
        f"  /Rect [{x:.2f} {y:.2f} {x + w:.2f} {y + h:.2f}]\n"
        f"  /V {sig} 0 R\n"
        f"  /T (Signature_{annot})\n"
        f"  /F {ANNOT_FLAGS_SIG_WIDGET}\n"
        f"  /P {page.ref}\n"
        f"  /AP << /N {ap} 0 R >>\n"
        f"  /Border [0 0 0]\n"
        f">>\n"
        f"endobj\n"
    )
