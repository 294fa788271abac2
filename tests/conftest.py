"""Shared test fixtures for the Sigsplice test suite."""

from __future__ import annotations

import base64
import datetime
import io
import json
from unittest.mock import patch

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed
from cryptography.x509.oid import NameOID


def _make_pdf(pages: int, filler_per_page: int = 0) -> bytes:
    import pikepdf

    pdf = pikepdf.Pdf.new()
    for i in range(pages):
        pdf.add_blank_page(page_size=(612, 792))
        if filler_per_page:
            # Plain path operators need no resources
            line = f"{i * 10} 0 m 612 {i * 10 + 100} l S\n".encode("ascii")
            ops = line * (filler_per_page // len(line) + 1)
            pdf.pages[i].obj["/Contents"] = pdf.make_stream(ops[:filler_per_page])
    buf = io.BytesIO()
    pdf.save(buf, compress_streams=False)
    return buf.getvalue()


def _raw_pdf(page_gen: int = 0, page_extra: bytes = b"") -> bytes:
    """A hand-written one-page PDF; the page is object 3 with generation *page_gen*."""
    objects = [
        (1, 0, b"<< /Type /Catalog /Pages 2 0 R >>"),
        (2, 0, b"<< /Type /Pages /Kids [3 %d R] /Count 1 >>" % page_gen),
        (3, page_gen, b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792]%s >>" % page_extra),
    ]
    out = bytearray(b"%PDF-1.4\n")
    entries = []
    for num, gen, body in objects:
        entries.append(b"%010d %05d n\r\n" % (len(out), gen))
        out += b"%d %d obj\n%s\nendobj\n" % (num, gen, body)
    xref_at = len(out)
    out += b"xref\n0 4\n0000000000 65535 f\r\n" + b"".join(entries)
    out += b"trailer\n<< /Size 4 /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % xref_at
    return bytes(out)


def _self_signed(key, common_name: str) -> bytes:
    name = x509.Name(
        [
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Example Org"),
        ]
    )
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=365))
        .sign(key, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.PEM)


# ── PDFs ─────────────────────────────────────────────────────────────


@pytest.fixture
def valid_pdf_bytes():
    """Create a minimal valid single-page PDF using pikepdf."""
    return _make_pdf(1)


@pytest.fixture
def three_page_pdf():
    """A 3-page US Letter PDF of roughly 50 KB."""
    return _make_pdf(3, filler_per_page=16 * 1024)


@pytest.fixture
def make_raw_pdf():
    return _raw_pdf


# ── Keys and certificates ────────────────────────────────────────────


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_cert_pem(rsa_key):
    return _self_signed(rsa_key, "Test Signer")


@pytest.fixture(scope="session")
def ec_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def ec_cert_pem(ec_key):
    return _self_signed(ec_key, "EC Signer")


@pytest.fixture
def local_signer(rsa_key, rsa_cert_pem):
    from sigsplice.core.signing import LocalSigner

    return LocalSigner(rsa_key, rsa_cert_pem)


@pytest.fixture
def key_files(tmp_path, rsa_key, rsa_cert_pem):
    """Write the RSA key and certificate as PEM files; returns (key, cert) paths."""
    key_path = tmp_path / "key.pem"
    cert_path = tmp_path / "cert.pem"
    key_path.write_bytes(
        rsa_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
    )
    cert_path.write_bytes(rsa_cert_pem)
    return key_path, cert_path


# ── Remote signer doubles ────────────────────────────────────────────


class FakeChannel:
    """Records frames sent to the peer; can be told to fail."""

    def __init__(self) -> None:
        self.sent: list[str] = []
        self.broken = False

    def send(self, frame: str) -> None:
        if self.broken:
            raise OSError("connection reset")
        self.sent.append(frame)

    @property
    def messages(self) -> list[dict]:
        return [json.loads(frame) for frame in self.sent]


@pytest.fixture
def fake_channel():
    return FakeChannel()


@pytest.fixture
def make_channel():
    return FakeChannel


@pytest.fixture
def answer_request(rsa_key, rsa_cert_pem):
    """Build the signer's reply to a ``getCertAndSign`` request dict."""

    def _answer(request: dict, *, with_id: bool = True) -> dict:
        digest = bytes.fromhex(request["digest"])
        signature = rsa_key.sign(digest, padding.PKCS1v15(), Prehashed(hashes.SHA256()))
        reply = {
            "certificate": rsa_cert_pem.decode("ascii"),
            "signature": base64.b64encode(signature).decode("ascii"),
        }
        if with_id:
            reply["requestId"] = request["requestId"]
        return reply

    return _answer


# ── Config isolation ─────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def config_dir(tmp_path, monkeypatch):
    """Redirect config to a temp directory and clear SIGSPLICE_* env vars."""
    for var in ("SIGSPLICE_TIMEOUT", "SIGSPLICE_CAPACITY", "SIGSPLICE_NAME", "SIGSPLICE_REASON"):
        monkeypatch.delenv(var, raising=False)
    config_home = tmp_path / "config-home"
    config_file = config_home / "config.json"
    with (
        patch("sigsplice.config._storage.CONFIG_DIR", config_home),
        patch("sigsplice.config._storage.CONFIG_FILE", config_file),
    ):
        yield config_home, config_file
