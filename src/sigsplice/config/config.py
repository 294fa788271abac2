"""
Configuration management for Sigsplice.

Stores the signer display name, signature reason, remote signer timeout
and placeholder capacity in ~/.sigsplice/config.json.

Every getter resolves in the same order: explicit argument > env var >
config file > built-in default.  Invalid values at any level are logged
and skipped so the next level applies.
"""

from __future__ import annotations

__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "SETTINGS",
    "get_reason",
    "get_signature_capacity",
    "get_signer_name",
    "get_signer_timeout",
    "reset_config",
    "set_value",
    "unset_value",
]

import logging
import os

from ..constants import (
    DEFAULT_REASON,
    DEFAULT_SIGNATURE_CAPACITY,
    DEFAULT_SIGNER_TIMEOUT,
    ENV_CAPACITY,
    ENV_NAME,
    ENV_REASON,
    ENV_TIMEOUT,
    MAX_SIGNATURE_CAPACITY,
    MAX_TIMEOUT,
    MIN_SIGNATURE_CAPACITY,
    MIN_TIMEOUT,
)
from ..errors import ConfigError
from ._storage import CONFIG_DIR, CONFIG_FILE, load_config, load_raw_config, save_config

_logger = logging.getLogger(__name__)

# Keys accepted by set_value()
SETTINGS = ("name", "reason", "timeout", "capacity")


# ── Integer settings ─────────────────────────────────────────────────


def _in_range(label: str, value: int, low: int, high: int) -> bool:
    if low <= value <= high:
        return True
    _logger.warning("%s=%d out of range [%d, %d], ignoring", label, value, low, high)
    return False


def _env_int(var: str, low: int, high: int) -> int | None:
    raw = os.environ.get(var, "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        _logger.warning("Invalid %s value %r, ignoring", var, raw)
        return None
    return value if _in_range(var, value, low, high) else None


def _resolve_int(
    arg: int | None, env_var: str, key: str, default: int, low: int, high: int
) -> int:
    if arg is not None and _in_range(key, arg, low, high):
        return arg
    env_value = _env_int(env_var, low, high)
    if env_value is not None:
        return env_value
    file_value = load_config().get(key)
    if isinstance(file_value, int):
        return file_value
    return default


def get_signer_timeout(arg: int | None = None) -> int:
    """Seconds to wait for the remote signer."""
    return _resolve_int(
        arg, ENV_TIMEOUT, "timeout", DEFAULT_SIGNER_TIMEOUT, MIN_TIMEOUT, MAX_TIMEOUT
    )


def get_signature_capacity(arg: int | None = None) -> int:
    """Bytes of DER reserved in the /Contents placeholder."""
    return _resolve_int(
        arg,
        ENV_CAPACITY,
        "capacity",
        DEFAULT_SIGNATURE_CAPACITY,
        MIN_SIGNATURE_CAPACITY,
        MAX_SIGNATURE_CAPACITY,
    )


# ── String settings ──────────────────────────────────────────────────


def _resolve_str(arg: str | None, env_var: str, key: str) -> str | None:
    if arg and arg.strip():
        return arg.strip()
    env_value = os.environ.get(env_var, "").strip()
    if env_value:
        return env_value
    file_value = load_config().get(key)
    return file_value if isinstance(file_value, str) else None


def get_signer_name(arg: str | None = None) -> str | None:
    """
    Get the name shown in the signature appearance.

    Returns:
        The resolved name, or None so the caller can fall back to the
        certificate's common name.
    """
    return _resolve_str(arg, ENV_NAME, "name")


def get_reason(arg: str | None = None) -> str:
    """Get the /Reason written into the signature dictionary."""
    return _resolve_str(arg, ENV_REASON, "reason") or DEFAULT_REASON


# ── Editing ──────────────────────────────────────────────────────────


def set_value(key: str, value: str) -> None:
    """
    Validate and persist one setting.

    Raises:
        ConfigError: If the key is unknown or the value is invalid.
    """
    if key not in SETTINGS:
        raise ConfigError(f"Unknown setting {key!r}; expected one of {', '.join(SETTINGS)}")

    stored: object
    if key in ("timeout", "capacity"):
        low, high = (
            (MIN_TIMEOUT, MAX_TIMEOUT)
            if key == "timeout"
            else (MIN_SIGNATURE_CAPACITY, MAX_SIGNATURE_CAPACITY)
        )
        try:
            stored = int(value)
        except ValueError as e:
            raise ConfigError(f"{key} must be an integer, got {value!r}") from e
        if not low <= stored <= high:
            raise ConfigError(f"{key} must be between {low} and {high}, got {stored}")
    else:
        stored = value.strip()
        if not stored:
            raise ConfigError(f"{key} must not be empty")

    config = load_raw_config()
    config[key] = stored
    save_config(config)
    _logger.info("Config %s updated", key)


def unset_value(key: str) -> bool:
    """Remove one setting. Returns True if it was present."""
    config = load_raw_config()
    if config.pop(key, None) is None:
        return False
    save_config(config)
    return True


def reset_config() -> None:
    """Clear every saved setting."""
    save_config({})
