"""
Low-level config file I/O for Sigsplice.

Handles reading, writing, and validating the on-disk config.json.
"""

from __future__ import annotations

__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "ConfigDict",
    "load_config",
    "load_raw_config",
    "save_config",
]

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, TypedDict, cast

from ..constants import MAX_SIGNATURE_CAPACITY, MAX_TIMEOUT, MIN_SIGNATURE_CAPACITY, MIN_TIMEOUT

_logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".sigsplice"
CONFIG_FILE = CONFIG_DIR / "config.json"


class ConfigDict(TypedDict, total=False):
    """Type definition for the config file structure."""

    name: str
    reason: str
    timeout: int
    capacity: int


# key -> (min, max) for integer settings
_INT_RANGES = {
    "timeout": (MIN_TIMEOUT, MAX_TIMEOUT),
    "capacity": (MIN_SIGNATURE_CAPACITY, MAX_SIGNATURE_CAPACITY),
}


def load_raw_config() -> dict[str, object]:
    """Load raw config dict from disk, preserving all keys.

    Used for merge-and-save operations so keys written by newer versions
    survive a round trip.
    """
    try:
        data: Any = json.loads(CONFIG_FILE.read_text(encoding="utf-8"))
        if isinstance(data, dict):
            return cast("dict[str, object]", data)
        _logger.warning("Config file is not a JSON object, ignoring")
    except FileNotFoundError:
        pass
    except json.JSONDecodeError as e:
        _logger.warning("Config file corrupted, ignoring: %s", e)
    except OSError as e:
        _logger.warning("Cannot read config file: %s", e)
    return {}


def _validate_config_dict(data: dict[str, object]) -> ConfigDict:
    """Pick only known keys with correct types and in-range values."""
    result: ConfigDict = {}
    for key in ("name", "reason"):
        val = data.get(key)
        if isinstance(val, str) and val.strip():
            result[key] = val  # type: ignore[literal-required]  # dynamic key from known set
    for key, (low, high) in _INT_RANGES.items():
        val = data.get(key)
        if val is None:
            continue
        if not isinstance(val, int) or isinstance(val, bool):
            _logger.warning("Config %s=%r is not an integer, ignoring", key, val)
        elif low <= val <= high:
            result[key] = val  # type: ignore[literal-required]
        else:
            _logger.warning("Config %s=%d out of range [%d, %d], ignoring", key, val, low, high)
    return result


def load_config() -> ConfigDict:
    """Load config from disk, returning only known typed keys."""
    return _validate_config_dict(load_raw_config())


def save_config(config: dict[str, object]) -> None:
    """Save config to disk with restricted permissions (0600).

    Uses atomic write (temp file + rename) so an interrupted write never
    leaves a truncated file behind.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True, mode=0o700)
    content = json.dumps(config, indent=2, ensure_ascii=False) + "\n"
    fd, tmp_path = tempfile.mkstemp(dir=CONFIG_DIR, suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if os.name != "nt":
            try:
                tmp.chmod(0o600)
            except OSError:
                _logger.warning("Failed to set restrictive permissions on %s", tmp)
        tmp.replace(CONFIG_FILE)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    _logger.debug("Config saved to %s", CONFIG_FILE)
