"""Tests for sigsplice.config -- storage, resolution order and editing."""

from __future__ import annotations

import json
import os
import stat
from unittest.mock import patch

import pytest

from sigsplice.config import (
    get_reason,
    get_signature_capacity,
    get_signer_name,
    get_signer_timeout,
    reset_config,
    set_value,
    unset_value,
)
from sigsplice.config._storage import load_config, load_raw_config, save_config
from sigsplice.constants import DEFAULT_REASON, DEFAULT_SIGNATURE_CAPACITY, DEFAULT_SIGNER_TIMEOUT
from sigsplice.errors import ConfigError

# ── load_config / save_config ───────────────────────────────────────


def test_load_empty():
    """Loading when no config file exists should return empty dict."""
    assert load_config() == {}


def test_save_and_load(config_dir):
    _, config_file = config_dir
    save_config({"name": "Alice", "timeout": 90})
    assert config_file.exists()
    assert load_config() == {"name": "Alice", "timeout": 90}


def test_load_corrupt_json(config_dir):
    home, config_file = config_dir
    home.mkdir()
    config_file.write_text("{broken json", encoding="utf-8")
    assert load_config() == {}


def test_load_non_object(config_dir):
    home, config_file = config_dir
    home.mkdir()
    config_file.write_text("[1, 2, 3]", encoding="utf-8")
    assert load_raw_config() == {}


def test_load_raw_config_os_error():
    with patch("pathlib.Path.read_text", side_effect=PermissionError("denied")):
        assert load_raw_config() == {}


def test_unknown_keys_survive_round_trip():
    save_config({"name": "Alice", "future_key": [1, 2]})
    assert load_raw_config()["future_key"] == [1, 2]
    assert "future_key" not in load_config()


@pytest.mark.parametrize(
    "stored",
    [
        {"timeout": 99999},
        {"timeout": 0},
        {"timeout": "60"},
        {"timeout": True},
        {"capacity": 100},
        {"capacity": 10**6},
        {"name": "   "},
        {"reason": 42},
    ],
)
def test_invalid_values_are_dropped(stored):
    save_config(stored)
    assert load_config() == {}


def test_save_config_write_failure_cleans_up(config_dir):
    """BaseException during write should clean up temp file and re-raise."""
    home, _ = config_dir

    def failing_fdopen(fd, *args, **kwargs):
        os.close(fd)
        raise OSError("disk full")

    with patch("os.fdopen", failing_fdopen), pytest.raises(OSError, match="disk full"):
        save_config({"name": "test"})
    assert list(home.glob("*.tmp")) == []


def test_save_config_chmod_failure_still_saves(config_dir):
    if os.name == "nt":
        pytest.skip("chmod test not applicable on Windows")
    home, config_file = config_dir

    with patch("pathlib.Path.chmod", side_effect=OSError("permission denied")):
        save_config({"name": "test"})
    assert load_config() == {"name": "test"}
    assert config_file.exists()


def test_config_file_permissions(config_dir):
    """Config file should have restricted permissions (0600)."""
    _, config_file = config_dir
    save_config({"name": "Alice"})
    if os.name != "nt":
        mode = stat.S_IMODE(config_file.stat().st_mode)
        assert mode == 0o600, f"Expected 0600, got {oct(mode)}"


# ── Resolution order ────────────────────────────────────────────────


def test_defaults():
    assert get_signer_timeout() == DEFAULT_SIGNER_TIMEOUT
    assert get_signature_capacity() == DEFAULT_SIGNATURE_CAPACITY
    assert get_signer_name() is None
    assert get_reason() == DEFAULT_REASON


def test_file_over_default():
    save_config({"timeout": 120, "capacity": 8192, "name": "Alice", "reason": "Approved"})
    assert get_signer_timeout() == 120
    assert get_signature_capacity() == 8192
    assert get_signer_name() == "Alice"
    assert get_reason() == "Approved"


def test_env_over_file(monkeypatch):
    save_config({"timeout": 120, "name": "Alice"})
    monkeypatch.setenv("SIGSPLICE_TIMEOUT", "30")
    monkeypatch.setenv("SIGSPLICE_NAME", "Bob")
    assert get_signer_timeout() == 30
    assert get_signer_name() == "Bob"


def test_arg_over_env(monkeypatch):
    monkeypatch.setenv("SIGSPLICE_CAPACITY", "8192")
    monkeypatch.setenv("SIGSPLICE_REASON", "From env")
    assert get_signature_capacity(16384) == 16384
    assert get_reason("From arg") == "From arg"


@pytest.mark.parametrize("raw", ["abc", "0", "99999", "  "])
def test_bad_env_falls_through(monkeypatch, raw):
    save_config({"timeout": 120})
    monkeypatch.setenv("SIGSPLICE_TIMEOUT", raw)
    assert get_signer_timeout() == 120


def test_out_of_range_arg_falls_through():
    save_config({"capacity": 8192})
    assert get_signature_capacity(10) == 8192
    assert get_signer_timeout(-5) == DEFAULT_SIGNER_TIMEOUT


def test_blank_name_arg_falls_through():
    save_config({"name": "Alice"})
    assert get_signer_name("   ") == "Alice"
    assert get_signer_name("  Carol ") == "Carol"


# ── Editing ─────────────────────────────────────────────────────────


def test_set_value_persists(config_dir):
    _, config_file = config_dir
    set_value("timeout", "45")
    set_value("name", "  Alice ")
    data = json.loads(config_file.read_text(encoding="utf-8"))
    assert data == {"timeout": 45, "name": "Alice"}


def test_set_value_preserves_other_keys():
    save_config({"reason": "Approved", "future_key": True})
    set_value("capacity", "8192")
    raw = load_raw_config()
    assert raw == {"reason": "Approved", "future_key": True, "capacity": 8192}


@pytest.mark.parametrize(
    ("key", "value", "match"),
    [
        ("colour", "red", "Unknown setting"),
        ("timeout", "soon", "must be an integer"),
        ("timeout", "0", "must be between"),
        ("capacity", "999999", "must be between"),
        ("name", "   ", "must not be empty"),
    ],
)
def test_set_value_rejects(key, value, match):
    with pytest.raises(ConfigError, match=match):
        set_value(key, value)
    assert load_raw_config() == {}


def test_unset_value():
    save_config({"name": "Alice", "reason": "Approved"})
    assert unset_value("name") is True
    assert unset_value("name") is False
    assert load_config() == {"reason": "Approved"}


def test_reset_config():
    save_config({"name": "Alice", "timeout": 90})
    reset_config()
    assert load_raw_config() == {}
