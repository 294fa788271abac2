"""
Signature verification and inspection commands.

Both commands work offline with asn1crypto and cryptography; no external
tools are needed.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from ...core.cms import parse_signed_data
from ...core.pdf import extract_signature_data, verify_embedded_signature
from ...errors import SigspliceError
from ..helpers import format_size_kb, safe_read_file

if TYPE_CHECKING:
    import argparse


def _read_pdf(path_str: str) -> tuple[Path, bytes]:
    pdf_path = Path(path_str)
    pdf_bytes = safe_read_file(pdf_path, "PDF")
    if pdf_bytes is None:
        sys.exit(1)
    return pdf_path, pdf_bytes


def cmd_check(args: argparse.Namespace) -> None:
    """Check the embedded PDF signature; exits 1 unless it is valid."""
    pdf_path, pdf_bytes = _read_pdf(args.pdf)
    print(f"Checking {pdf_path.name} ({format_size_kb(len(pdf_bytes))})...")

    result = verify_embedded_signature(pdf_bytes)
    for line in result["details"]:
        print(f"  {line}")

    print()
    if result["valid"]:
        print("  RESULT: Signature VALID")
    else:
        reason = result["reason"]
        suffix = f" ({reason.value})" if reason is not None else ""
        print(f"  RESULT: Signature FAILED{suffix}")
        sys.exit(1)


def cmd_info(args: argparse.Namespace) -> None:
    """Show the ByteRange and certificate of the embedded signature."""
    pdf_path, pdf_bytes = _read_pdf(args.pdf)
    print(f"Document: {pdf_path.name} ({format_size_kb(len(pdf_bytes))})")

    try:
        extracted = extract_signature_data(pdf_bytes)
        decoded = parse_signed_data(extracted.cms_der)
    except SigspliceError as e:
        print(f"  Error: {e}", file=sys.stderr)
        sys.exit(1)

    br = extracted.byte_range
    print(f"  ByteRange: [{br.start0} {br.length0} {br.start1} {br.length1}]")
    print(f"  Signature: {len(extracted.cms_der)} bytes, {decoded.digest_algorithm}")
    if decoded.signing_time is not None:
        print(f"  Signing time: {decoded.signing_time.isoformat()}")

    cert = decoded.certificate
    validity = cert["tbs_certificate"]["validity"]
    print("\nCertificate:")
    print(f"  Subject: {cert.subject.human_friendly}")
    print(f"  Issuer:  {cert.issuer.human_friendly}")
    print(f"  Serial:  {cert.serial_number}")
    print(f"  Valid:   {validity['not_before'].native} - {validity['not_after'].native}")
