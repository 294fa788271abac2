"""Byte-level value types for signature placement.

:class:`PdfBuffer` owns the document bytes and only allows splices that
keep every byte offset stable.  :class:`ByteRange` and
:class:`SignaturePlaceholder` describe the two covered spans and the
excluded hex field.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...errors import MalformedByteRangeError, PDFError

__all__ = ["ByteRange", "PdfBuffer", "SignaturePlaceholder"]


class PdfBuffer:
    """Immutable PDF byte buffer with range-checked, length-preserving splices."""

    __slots__ = ("_data",)

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self._data = bytes(data)

    def __len__(self) -> int:
        return len(self._data)

    def __bytes__(self) -> bytes:
        return self._data

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PdfBuffer):
            return self._data == other._data
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._data)

    def __repr__(self) -> str:
        return f"PdfBuffer({len(self._data)} bytes)"

    @property
    def data(self) -> bytes:
        return self._data

    def find(self, marker: bytes, start: int = 0) -> int:
        """Return the first offset of *marker* at or after *start*, or -1."""
        return self._data.find(marker, start)

    def rfind(self, marker: bytes) -> int:
        """Return the last offset of *marker*, or -1."""
        return self._data.rfind(marker)

    def slice(self, start: int, end: int) -> bytes:
        """Return ``data[start:end]`` after checking the bounds."""
        self._check_range(start, end)
        return self._data[start:end]

    def splice(self, offset: int, replacement: bytes) -> PdfBuffer:
        """Overwrite ``len(replacement)`` bytes at *offset*.

        Returns a new buffer of identical length.  Never inserts or
        removes bytes, so offsets computed earlier stay valid.
        """
        end = offset + len(replacement)
        self._check_range(offset, end)
        return PdfBuffer(self._data[:offset] + replacement + self._data[end:])

    def _check_range(self, start: int, end: int) -> None:
        if start < 0 or end < start or end > len(self._data):
            raise PDFError(
                f"Range [{start}, {end}) outside buffer of {len(self._data)} bytes"
            )


@dataclass(frozen=True, slots=True)
class SignaturePlaceholder:
    """The reserved hex field of /Contents.

    Attributes:
        start: Offset of the first hex character (just after ``<``).
        length: Hex width, excluding the angle brackets.
    """

    start: int
    length: int

    @property
    def open_bracket(self) -> int:
        """Offset of the opening ``<``."""
        return self.start - 1

    @property
    def end(self) -> int:
        """Offset of the closing ``>``."""
        return self.start + self.length

    @property
    def width_with_brackets(self) -> int:
        return self.length + 2

    @property
    def capacity(self) -> int:
        """Maximum DER size in bytes that fits into the field."""
        return self.length // 2


@dataclass(frozen=True, slots=True)
class ByteRange:
    """The four integers of a /ByteRange array."""

    start0: int
    length0: int
    start1: int
    length1: int

    @classmethod
    def for_placeholder(cls, placeholder: SignaturePlaceholder, total_length: int) -> ByteRange:
        """Build the ByteRange that excludes *placeholder* (brackets included)."""
        start1 = placeholder.open_bracket + placeholder.width_with_brackets
        return cls(0, placeholder.open_bracket, start1, total_length - start1)

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.start0, self.length0, self.start1, self.length1)

    def validate(self, total_length: int) -> None:
        """Check ``0 <= s0 <= s0+l0 <= s1 <= s1+l1 <= total_length``."""
        values = self.as_tuple()
        if any(v < 0 for v in values):
            raise MalformedByteRangeError(f"ByteRange has negative values: {list(values)}")
        if self.start0 + self.length0 > self.start1:
            raise MalformedByteRangeError(
                f"ByteRange spans overlap: {self.start0}+{self.length0} > {self.start1}"
            )
        if self.start1 + self.length1 > total_length:
            raise MalformedByteRangeError(
                f"ByteRange extends beyond EOF: {self.start1}+{self.length1} > {total_length}"
            )

    @property
    def signed_length(self) -> int:
        return self.length0 + self.length1

    def covered(self, buffer: PdfBuffer) -> bytes:
        """Concatenate the two covered spans of *buffer*."""
        self.validate(len(buffer))
        return buffer.slice(self.start0, self.start0 + self.length0) + buffer.slice(
            self.start1, self.start1 + self.length1
        )

    def to_pdf(self) -> str:
        return f"/ByteRange [{self.start0} {self.length0} {self.start1} {self.length1}]"
