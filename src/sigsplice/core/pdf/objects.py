"""Low-level PDF object syntax for the signature update.

Object references, the two placeholders, literal-string escaping and the
raw serialization used to redefine an existing dictionary.  Object bodies
(signature dictionary, widget, appearance) are in render.py; reading the
original document is in incremental.py.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, NamedTuple

from ...constants import BYTERANGE_TOKEN
from .. import require_pikepdf as _require_pikepdf

if TYPE_CHECKING:
    import pikepdf

_logger = logging.getLogger(__name__)


# ── References ───────────────────────────────────────────────────────


class ObjRef(NamedTuple):
    """Identity of an indirect object."""

    num: int
    gen: int = 0

    @property
    def ref(self) -> str:
        """``"12 0 R"``"""
        return f"{self.num} {self.gen} R"

    def define(self, body: str) -> str:
        """Wrap *body* in this object's ``obj`` / ``endobj`` frame."""
        return f"{self.num} {self.gen} obj\n{body}\nendobj\n"


class SigObjects(NamedTuple):
    """Numbers of the objects the signature update adds, all generation 0."""

    sig: int
    annot: int
    ap: int
    font: int

    @classmethod
    def after(cls, size: int) -> SigObjects:
        """Allocate fresh numbers starting at the previous /Size."""
        return cls(*range(size, size + len(cls._fields)))

    @property
    def next_size(self) -> int:
        return self.font + 1


# ── Placeholders ─────────────────────────────────────────────────────

# "0" plus three fixed-width tokens, rewritten in place by the resolver
BYTERANGE_PLACEHOLDER_STR = (
    f"/ByteRange [0 {BYTERANGE_TOKEN} {BYTERANGE_TOKEN} {BYTERANGE_TOKEN}]"
)
BYTERANGE_PLACEHOLDER = BYTERANGE_PLACEHOLDER_STR.encode("ascii")


def contents_placeholder(capacity: int) -> str:
    """Zero-filled /Contents entry able to hold *capacity* bytes of DER."""
    return f"/Contents <{'0' * (capacity * 2)}>"


# Print (4) | Locked (128)
ANNOT_FLAGS_SIG_WIDGET = 4 | 128


# ── Serialization ────────────────────────────────────────────────────

_STRING_ESCAPES = {
    "\\": "\\\\",
    "(": "\\(",
    ")": "\\)",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def pdf_string(text: str) -> str:
    """Escape *text* for a PDF literal string.

    Helvetica is set up with WinAnsiEncoding, so anything outside
    Latin-1 becomes '?'.
    """
    out: list[str] = []
    lossy = 0
    for char in text:
        code = ord(char)
        if char in _STRING_ESCAPES:
            out.append(_STRING_ESCAPES[char])
        elif code < 0x20 or code == 0x7F:
            out.append(f"\\{code:03o}")
        elif code > 0xFF:
            out.append("?")
            lossy += 1
        else:
            out.append(char)
    if lossy:
        _logger.warning("%d character(s) outside Latin-1 replaced with '?' in %r", lossy, text)
    return "".join(out)


def pdf_value(value: object) -> str:
    """Raw PDF syntax for a value read from a pikepdf dictionary.

    Indirect objects are written as references so a redefinition keeps
    pointing at the original objects.  pikepdf hands out numbers as
    ``int`` and ``Decimal``.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (float, Decimal)):
        return format(Decimal(str(value)).normalize(), "f")
    pikepdf = _require_pikepdf()
    if not isinstance(value, pikepdf.Object):
        raise TypeError(f"Cannot serialize {type(value).__name__} as a PDF value")
    if value.is_indirect:
        return ObjRef(*value.objgen).ref
    return value.unparse(resolved=True).decode("latin-1")


def dict_entries(obj: pikepdf.Dictionary, skip: str) -> tuple[str, ...]:
    """The entries of *obj* as ``"  /Key value"`` lines, without *skip*."""
    return tuple(f"  {key} {pdf_value(obj[key])}" for key in obj.keys() if key != skip)


def redefine(ref: ObjRef, entries: tuple[str, ...], extra: str) -> str:
    """A new definition of *ref*: its kept *entries* followed by *extra*."""
    body = "\n".join([*entries, extra])
    return ref.define(f"<<\n{body}\n>>")
