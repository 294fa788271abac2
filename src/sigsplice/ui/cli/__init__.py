"""
Command-line interface for Sigsplice.

Argument parsing and dispatch. Command handlers live in ``sign``,
``verify`` and ``config``.
"""

from __future__ import annotations

import argparse
import sys

from ...config import SETTINGS
from ...constants import __version__
from ...core.pdf import POSITION_ALIASES, POSITION_PRESETS
from .config import cmd_config
from .sign import cmd_sign
from .verify import cmd_check, cmd_info


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sigsplice",
        description="Sign and verify PDFs with embedded detached PKCS#7 signatures.",
        epilog=(
            "Environment variables:\n"
            "  SIGSPLICE_NAME      Signer display name (default: certificate CN)\n"
            "  SIGSPLICE_REASON    Signature reason string\n"
            "  SIGSPLICE_CAPACITY  Bytes reserved for the signature (default: 4096)\n"
            "  SIGSPLICE_TIMEOUT   Remote signer timeout in seconds (default: 60)\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-V", "--version", action="version", version=f"sigsplice {__version__}")

    sub = parser.add_subparsers(dest="command", help="Available commands")

    # sign
    p_sign = sub.add_parser("sign", help="Sign a PDF with a local key")
    p_sign.add_argument("pdf", help="PDF file to sign")
    p_sign.add_argument("--key", required=True, help="PEM private key (RSA or EC)")
    p_sign.add_argument("--cert", required=True, help="Signer certificate (PEM or DER)")
    p_sign.add_argument(
        "--ask-pass",
        action="store_true",
        default=False,
        help="Prompt for the private key password",
    )
    p_sign.add_argument("-o", "--output", help="Output file path (default: <name>_signed.pdf)")
    p_sign.add_argument(
        "--page",
        default="last",
        help=(
            "Page for the signature field (default: last). "
            "Use 'first', 'last', or a 1-based page number"
        ),
    )
    p_sign.add_argument(
        "--rect",
        default=None,
        help="Field rectangle x0,y0,x1,y1 in points, origin at the top-left of the page",
    )
    presets = sorted(POSITION_PRESETS) + sorted(POSITION_ALIASES)
    p_sign.add_argument(
        "-p",
        "--position",
        default="bottom-right",
        help=f"Preset position when --rect is not given (default: bottom-right). "
        f"Presets: {', '.join(presets)}",
    )
    p_sign.add_argument("--name", default=None, help="Signer name shown in the field")
    p_sign.add_argument("--reason", default=None, help="Signature reason string")
    p_sign.add_argument(
        "--capacity", type=int, default=None, help="Bytes reserved for the signature"
    )

    # check
    p_check = sub.add_parser("check", help="Verify the embedded PDF signature")
    p_check.add_argument("pdf", help="Signed PDF file")

    # info
    p_info = sub.add_parser("info", help="Show the embedded signature and certificate")
    p_info.add_argument("pdf", help="Signed PDF file")

    # config
    p_config = sub.add_parser("config", help="Show or change saved settings")
    config_sub = p_config.add_subparsers(dest="action", required=True)
    config_sub.add_parser("show", help="Show effective settings")
    p_set = config_sub.add_parser("set", help="Save a setting")
    p_set.add_argument("key", choices=SETTINGS)
    p_set.add_argument("value")
    p_unset = config_sub.add_parser("unset", help="Remove a saved setting")
    p_unset.add_argument("key", choices=SETTINGS)
    config_sub.add_parser("reset", help="Clear all saved settings")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "sign":
        cmd_sign(args)
    elif args.command == "check":
        cmd_check(args)
    elif args.command == "info":
        cmd_info(args)
    elif args.command == "config":
        cmd_config(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
