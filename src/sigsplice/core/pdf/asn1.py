"""ASN.1/DER helpers for reading a signature out of its hex placeholder."""

from __future__ import annotations

# ASN.1 SEQUENCE tag -- first byte of any valid CMS/PKCS#7 blob
ASN1_SEQUENCE_TAG = 0x30

# Longest long-form length field accepted (4 bytes = up to 4 GiB)
_MAX_LENGTH_OCTETS = 4


def der_total_length(header: bytes) -> int:
    """Return the full encoded size (header + content) of a DER SEQUENCE.

    Args:
        header: At least the tag and length octets of the value.

    Raises:
        ValueError: If the header is not a definite-length SEQUENCE.
    """
    if len(header) < 2:
        raise ValueError("Too short for an ASN.1 tag and length")
    if header[0] != ASN1_SEQUENCE_TAG:
        raise ValueError(f"Expected ASN.1 SEQUENCE (0x30), got 0x{header[0]:02x}")

    first = header[1]
    if first < 0x80:
        return 2 + first
    if first == 0x80:
        raise ValueError("Indefinite length encoding is not valid in DER")

    octets = first & 0x7F
    if octets > _MAX_LENGTH_OCTETS:
        raise ValueError(f"ASN.1 length field too large: {octets} bytes")
    if len(header) < 2 + octets:
        raise ValueError("Too short for the ASN.1 length field")
    return 2 + octets + int.from_bytes(header[2 : 2 + octets], "big")


def extract_der_from_padded_hex(hex_str: str) -> bytes:
    """Extract the exact DER blob from a zero-padded hex string.

    The size comes from the ASN.1 header rather than stripping trailing
    zeros, which would corrupt blobs that end in 0x00 bytes.

    Raises:
        ValueError: If the hex is invalid or the header claims more data
            than is present.
    """
    # tag + length byte + up to 4 length octets
    header = bytes.fromhex(hex_str[: 2 * (2 + _MAX_LENGTH_OCTETS)])
    total = der_total_length(header)
    if total * 2 > len(hex_str):
        raise ValueError(
            f"ASN.1 length ({total} bytes) exceeds available hex data ({len(hex_str) // 2} bytes)"
        )
    return bytes.fromhex(hex_str[: total * 2])
