"""Signing command handler for Sigsplice CLI."""

from __future__ import annotations

import getpass
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from ...config import get_reason, get_signature_capacity, get_signer_name
from ...constants import __version__
from ...core.pdf import parse_page_spec, parse_rect, resolve_position
from ...core.signing import LocalSigner, SigningOptions, sign_pdf
from ...errors import SigspliceError
from ..helpers import atomic_write, default_output_path, format_size_kb, safe_read_file

if TYPE_CHECKING:
    import argparse


def _load_signer(args: argparse.Namespace) -> LocalSigner:
    password = None
    if getattr(args, "ask_pass", False):
        try:
            password = getpass.getpass("Private key password: ").encode("utf-8")
        except (EOFError, KeyboardInterrupt):
            print()
            sys.exit(1)
    return LocalSigner.from_pem_files(args.key, args.cert, password=password)


def _build_options(args: argparse.Namespace) -> SigningOptions:
    page = parse_page_spec(args.page or "last")
    selection = parse_rect(args.rect) if args.rect else None
    return SigningOptions(
        page=page,
        selection=selection,
        position=resolve_position(args.position or "bottom-right"),
        name=get_signer_name(args.name),
        reason=get_reason(args.reason),
        capacity=get_signature_capacity(args.capacity),
    )


def cmd_sign(args: argparse.Namespace) -> None:
    """Handle the 'sign' subcommand."""
    pdf_path = Path(args.pdf)
    out = Path(args.output) if args.output else default_output_path(pdf_path)

    try:
        options = _build_options(args)
        signer = _load_signer(args)
    except SigspliceError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    pdf_bytes = safe_read_file(pdf_path, "PDF")
    if pdf_bytes is None:
        sys.exit(1)

    placement = (
        f"rect {args.rect}" if options.selection is not None else f"position {options.position}"
    )
    print(f"Sigsplice CLI v{__version__}")
    print(f"Page: {args.page}, {placement}")
    if options.name:
        print(f"Signer name: {options.name}")
    print()
    print(f"  Signing {pdf_path.name} ({format_size_kb(len(pdf_bytes))})...", end=" ", flush=True)

    try:
        signed = sign_pdf(pdf_bytes, signer, options)
    except SigspliceError as e:
        print("FAILED", file=sys.stderr)
        print(f"  {e}", file=sys.stderr)
        sys.exit(1)

    try:
        atomic_write(out, signed)
    except OSError as e:
        print("FAILED", file=sys.stderr)
        print(f"  Cannot write {out}: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"OK -> {out.name} ({format_size_kb(len(signed))})")
