"""Tests for sigsplice.core.pdf.buffer and locator -- offsets and splices."""

from __future__ import annotations

import pytest

from sigsplice.core.pdf import ByteRange, PdfBuffer, SignaturePlaceholder, find_byterange, find_last
from sigsplice.errors import ByteRangeNotFoundError, MalformedByteRangeError, PDFError

# ── PdfBuffer ───────────────────────────────────────────────────────


def test_splice_preserves_length():
    buf = PdfBuffer(b"abcdefghij")
    out = buf.splice(3, b"XYZ")
    assert out.data == b"abcXYZghij"
    assert len(out) == len(buf)
    # original untouched
    assert buf.data == b"abcdefghij"


def test_splice_at_end_boundary():
    assert PdfBuffer(b"abcd").splice(2, b"ZZ").data == b"abZZ"


@pytest.mark.parametrize(("offset", "data"), [(-1, b"x"), (8, b"xyz"), (11, b"")])
def test_splice_out_of_range(offset, data):
    with pytest.raises(PDFError, match="outside buffer"):
        PdfBuffer(b"0123456789").splice(offset, data)


def test_slice_bounds():
    buf = PdfBuffer(b"0123456789")
    assert buf.slice(2, 5) == b"234"
    with pytest.raises(PDFError):
        buf.slice(5, 2)
    with pytest.raises(PDFError):
        buf.slice(0, 11)


def test_buffer_equality_and_bytes():
    assert PdfBuffer(b"ab") == PdfBuffer(bytearray(b"ab"))
    assert bytes(PdfBuffer(b"ab")) == b"ab"
    assert hash(PdfBuffer(b"ab")) == hash(PdfBuffer(b"ab"))


# ── SignaturePlaceholder / ByteRange ────────────────────────────────


def test_placeholder_geometry():
    ph = SignaturePlaceholder(start=11, length=8)
    assert ph.open_bracket == 10
    assert ph.end == 19
    assert ph.width_with_brackets == 10
    assert ph.capacity == 4


def test_byterange_for_placeholder():
    # "AAAAAAAAAA<00000000>BBBBB" -> '<' at 10, '>' at 19, total 25
    ph = SignaturePlaceholder(start=11, length=8)
    br = ByteRange.for_placeholder(ph, 25)
    assert br.as_tuple() == (0, 10, 20, 5)
    assert br.signed_length == 25 - ph.width_with_brackets


def test_byterange_covered():
    buf = PdfBuffer(b"AAAAAAAAAA<00000000>BBBBB")
    br = ByteRange(0, 10, 20, 5)
    assert br.covered(buf) == b"AAAAAAAAAABBBBB"


@pytest.mark.parametrize(
    "values",
    [(0, 10, 5, 5), (0, 10, 20, 10), (-1, 10, 20, 5), (0, -3, 20, 5)],
    ids=["overlap", "past-eof", "negative-start", "negative-length"],
)
def test_byterange_validate_rejects(values):
    with pytest.raises(MalformedByteRangeError):
        ByteRange(*values).validate(25)


def test_byterange_to_pdf():
    assert ByteRange(0, 1, 2, 3).to_pdf() == "/ByteRange [0 1 2 3]"


# ── Locator ─────────────────────────────────────────────────────────


def test_find_last_absent():
    assert find_last(PdfBuffer(b"nothing here"), b"/ByteRange") == -1


def test_find_byterange_takes_rightmost_spelling():
    data = b"xx /ByteRange [0 1 2 3] yy /ByteRange[0 4 5 6] zz"
    assert find_byterange(PdfBuffer(data)) == data.rfind(b"/ByteRange[")

    data2 = b"xx /ByteRange[0 1 2 3] yy /ByteRange [0 4 5 6] zz"
    assert find_byterange(PdfBuffer(data2)) == data2.rfind(b"/ByteRange [")


def test_find_byterange_missing():
    with pytest.raises(ByteRangeNotFoundError):
        find_byterange(PdfBuffer(b"%PDF-1.7\n%%EOF\n"))
