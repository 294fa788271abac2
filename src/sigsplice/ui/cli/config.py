"""Config command handler for Sigsplice CLI."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from ...config import (
    CONFIG_FILE,
    get_reason,
    get_signature_capacity,
    get_signer_name,
    get_signer_timeout,
    load_config,
    reset_config,
    set_value,
    unset_value,
)
from ...errors import ConfigError

if TYPE_CHECKING:
    import argparse


def _show() -> None:
    saved = load_config()
    print(f"Config file: {CONFIG_FILE}")
    print()
    print("Effective settings (saved value marked with *):")
    effective: dict[str, object] = {
        "name": get_signer_name() or "(certificate common name)",
        "reason": get_reason(),
        "timeout": get_signer_timeout(),
        "capacity": get_signature_capacity(),
    }
    for key, value in effective.items():
        mark = "*" if key in saved else " "
        print(f"  {mark} {key:<9} {value}")


def cmd_config(args: argparse.Namespace) -> None:
    """Handle the 'config' subcommand."""
    action = args.action
    if action == "show":
        _show()
    elif action == "set":
        try:
            set_value(args.key, args.value)
        except ConfigError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        print(f"Saved {args.key}.")
    elif action == "unset":
        if unset_value(args.key):
            print(f"Removed {args.key}.")
        else:
            print(f"{args.key} was not set.")
    elif action == "reset":
        reset_config()
        print("All configuration cleared.")
