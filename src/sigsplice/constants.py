"""
Application-wide constants for Sigsplice.

Timeouts, placeholder sizes, markers and environment variable names are
centralized here for easy maintenance and configuration.
"""

from __future__ import annotations

import importlib.metadata

try:
    __version__ = importlib.metadata.version("sigsplice")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = [
    "BYTERANGE_TOKEN",
    "DEFAULT_DIGEST_ALGORITHM",
    "DEFAULT_MAX_IN_FLIGHT",
    "DEFAULT_REASON",
    "DEFAULT_SIGNATURE_CAPACITY",
    "DEFAULT_SIGNER_TIMEOUT",
    "ENV_CAPACITY",
    "ENV_NAME",
    "ENV_REASON",
    "ENV_TIMEOUT",
    "MAX_SIGNATURE_CAPACITY",
    "MAX_TIMEOUT",
    "MIN_SIGNATURE_CAPACITY",
    "MIN_TIMEOUT",
    "PDF_MAGIC",
    "SIGNER_ACTION",
    "__version__",
]

# ── Timeout values (seconds) ──────────────────────────────────────────

# Upper bound for one remote-signer round trip
DEFAULT_SIGNER_TIMEOUT = 60

MIN_TIMEOUT = 1
MAX_TIMEOUT = 3600


# ── Placeholder sizing (bytes of raw DER) ─────────────────────────────

# 4 KiB of DER = 8 KiB of hex. Enough for RSA-2048 + one certificate.
DEFAULT_SIGNATURE_CAPACITY = 4096

MIN_SIGNATURE_CAPACITY = 256
MAX_SIGNATURE_CAPACITY = 64 * 1024


# ── Signing defaults ──────────────────────────────────────────────────

DEFAULT_DIGEST_ALGORITHM = "sha256"

DEFAULT_REASON = "Signed with Sigsplice"

# Requests in flight on one signer channel when correlating by id
DEFAULT_MAX_IN_FLIGHT = 8


# ── Protocol constants ────────────────────────────────────────────────

# Action name understood by the remote signer
SIGNER_ACTION = "getCertAndSign"

# Fixed-width token substituted into the provisional /ByteRange
BYTERANGE_TOKEN = "/**********"

# PDF file magic bytes
PDF_MAGIC = b"%PDF-"


# ── Environment variable names ──────────────────────────────────────

ENV_TIMEOUT = "SIGSPLICE_TIMEOUT"
ENV_CAPACITY = "SIGSPLICE_CAPACITY"
ENV_NAME = "SIGSPLICE_NAME"
ENV_REASON = "SIGSPLICE_REASON"
