"""
File and formatting helpers shared by the CLI commands.
"""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

__all__ = [
    "atomic_write",
    "default_output_path",
    "format_size_kb",
    "safe_read_file",
]


def format_size_kb(size_bytes: int) -> str:
    """``51200`` -> ``'50.0 KB'``."""
    return f"{size_bytes / 1024:.1f} KB"


def default_output_path(pdf_path: Path) -> Path:
    """``dir/contract.pdf`` -> ``dir/contract_signed.pdf``."""
    return pdf_path.parent / f"{pdf_path.stem}_signed.pdf"


def safe_read_file(path: Path, kind: str = "file") -> bytes | None:
    """
    Read *path*, reporting problems on stderr.

    Args:
        path: File to read.
        kind: Label used in messages ("PDF", "key", ...).

    Returns:
        The file contents, or None when the file is missing or unreadable.
    """
    try:
        return path.read_bytes()
    except FileNotFoundError:
        print(f"Error: {kind} not found: {path}", file=sys.stderr)
    except OSError as e:
        print(f"Error reading {kind}: {e}", file=sys.stderr)
    return None


def atomic_write(path: Path, data: bytes) -> None:
    """Write *data* to *path* through a temp file in the same directory.

    The target either keeps its old content or gets all of *data*.
    """
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        tmp.replace(path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
