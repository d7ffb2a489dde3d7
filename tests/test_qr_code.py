"""
NonMessenger - QR code tests.

Skipped when the optional qrcode dependency is not installed.
"""

import pytest

from nonmessenger import qr_code
from nonmessenger.config import Config
from nonmessenger.errors import ErrorCode, NonMessengerError
from nonmessenger.pairing import build_pairing_payload

pytestmark = pytest.mark.skipif(not qr_code.is_qr_available(), reason="qrcode not installed")


@pytest.fixture
def payload(alice_keypair, contact_words):
    """A complete pairing payload."""
    return build_pairing_payload(alice_keypair.public_key, "c" * 32, timestamp=1700000000).with_contact_words(
        contact_words
    )


def test_generate_qr_code():
    """Test QR code generation from text."""
    qr = qr_code.generate_qr_code("hello")
    assert qr.version >= 1
    assert qr.get_matrix()


def test_generate_qr_code_bad_level():
    """Test that an unknown error correction level is rejected."""
    with pytest.raises(NonMessengerError) as exc_info:
        qr_code.generate_qr_code("hello", error_correction="Z")
    assert exc_info.value.code == ErrorCode.E002_INVALID_ARGUMENT


def test_display_terminal():
    """Test terminal rendering dimensions."""
    qr = qr_code.generate_qr_code("hello")
    size = len(qr.get_matrix())
    lines = qr_code.display_qr_terminal(qr).split("\n")
    assert len(lines) == (size + 1) // 2
    assert all(len(line) == size for line in lines)
    # quiet zone rows are light
    assert lines[0] == "\u2588" * size


def test_pairing_qr_fits_payload(payload):
    """Test that a 2048-bit key payload fits in one QR code."""
    art = qr_code.create_pairing_qr(payload)
    assert art


def test_pairing_qr_uses_config(payload, temp_dir, monkeypatch):
    """Test that QR settings come from the [qr] config section."""
    monkeypatch.delenv("NONMESSENGER_QR_BORDER", raising=False)
    config = Config(temp_dir / "config.toml")
    config.set("qr", "border", 0)

    captured = {}
    original = qr_code.generate_qr_code

    def spy(data, error_correction, box_size, border):
        captured.update(error_correction=error_correction, box_size=box_size, border=border)
        return original(data, error_correction, box_size, border)

    monkeypatch.setattr(qr_code, "generate_qr_code", spy)
    assert qr_code.create_pairing_qr(payload, show_terminal=False, config=config) == ""
    assert captured == {"error_correction": "M", "box_size": 10, "border": 0}


@pytest.mark.skipif(not qr_code.PIL_AVAILABLE, reason="pillow not installed")
def test_export_png(payload, temp_dir):
    """Test PNG export of a pairing QR code."""
    path = temp_dir / "out" / "pairing.png"
    qr_code.create_pairing_qr(payload, output_path=path, show_terminal=False)
    assert path.exists()
    assert path.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


@pytest.mark.skipif(
    not (qr_code.PIL_AVAILABLE and qr_code.PYZBAR_AVAILABLE), reason="pyzbar not installed"
)
def test_scan_roundtrip(payload, temp_dir):
    """Test that a pairing QR code scans back to the same payload."""
    path = temp_dir / "pairing.png"
    qr_code.create_pairing_qr(payload, output_path=path, show_terminal=False)
    assert qr_code.scan_pairing_qr(path) == payload


@pytest.mark.skipif(
    not (qr_code.PIL_AVAILABLE and qr_code.PYZBAR_AVAILABLE), reason="pyzbar not installed"
)
def test_scan_missing_file(temp_dir):
    """Test that scanning a missing image fails clearly."""
    with pytest.raises(NonMessengerError) as exc_info:
        qr_code.scan_pairing_qr(temp_dir / "nope.png")
    assert exc_info.value.code == ErrorCode.E003_FILE_NOT_FOUND
