"""
Configuration management.

Import from this package directly instead of from the submodules.
"""

from __future__ import annotations

from ._storage import load_config
from .config import (
    CONFIG_DIR,
    CONFIG_FILE,
    SETTINGS,
    get_reason,
    get_signature_capacity,
    get_signer_name,
    get_signer_timeout,
    reset_config,
    set_value,
    unset_value,
)

__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "SETTINGS",
    "get_reason",
    "get_signature_capacity",
    "get_signer_name",
    "get_signer_timeout",
    "load_config",
    "reset_config",
    "set_value",
    "unset_value",
]
