"""
NonMessenger - QR Codes for Contact Pairing

This module renders pairing payloads as QR codes and reads them back
from images. Requires optional dependencies: qrcode and pillow, plus
pyzbar for scanning.

Install with: pip install nonmessenger-core[qr]
"""

import logging
from pathlib import Path
from typing import Optional

from .config import Config
from .constants import QR_BORDER, QR_BOX_SIZE, QR_ERROR_CORRECTION
from .errors import ErrorCode, NonMessengerError
from .pairing import PairingPayload, parse_pairing_payload

logger = logging.getLogger(__name__)

try:
    import qrcode
    from qrcode.exceptions import DataOverflowError

    QRCODE_AVAILABLE = True
except ImportError:
    QRCODE_AVAILABLE = False
    logger.debug("qrcode not available - QR code generation disabled")

try:
    from PIL import Image

    PIL_AVAILABLE = True
except ImportError:
    PIL_AVAILABLE = False
    logger.debug("pillow not available - PNG export disabled")

try:
    from pyzbar import pyzbar

    PYZBAR_AVAILABLE = True
except ImportError:
    PYZBAR_AVAILABLE = False
    logger.debug("pyzbar not available - QR code scanning disabled")


def is_qr_available() -> bool:
    """Check if QR code generation is available."""
    return QRCODE_AVAILABLE


def generate_qr_code(
    data: str,
    error_correction: str = QR_ERROR_CORRECTION,
    box_size: int = QR_BOX_SIZE,
    border: int = QR_BORDER,
) -> "qrcode.QRCode":
    """Generate a QR code from data.

    Args:
        data: Data to encode in QR code
        error_correction: Error correction level (L, M, Q, H)
        box_size: Size of each box in pixels
        border: Border size in boxes

    Returns:
        QR code object

    Raises:
        NonMessengerError: If QR code generation is not available or fails
    """
    if not QRCODE_AVAILABLE:
        raise NonMessengerError(
            ErrorCode.E001_UNKNOWN_ERROR,
            "QR code generation not available - install qrcode and pillow",
        )

    error_levels = {
        "L": qrcode.constants.ERROR_CORRECT_L,  # 7% correction
        "M": qrcode.constants.ERROR_CORRECT_M,  # 15% correction
        "Q": qrcode.constants.ERROR_CORRECT_Q,  # 25% correction
        "H": qrcode.constants.ERROR_CORRECT_H,  # 30% correction
    }
    if error_correction not in error_levels:
        raise NonMessengerError(
            ErrorCode.E002_INVALID_ARGUMENT,
            f"Unknown QR error correction level: {error_correction}",
        )

    try:
        qr = qrcode.QRCode(
            version=None,  # Smallest version that fits
            error_correction=error_levels[error_correction],
            box_size=box_size,
            border=border,
        )
        qr.add_data(data)
        qr.make(fit=True)
    except (ValueError, DataOverflowError) as e:
        raise NonMessengerError(
            ErrorCode.E001_UNKNOWN_ERROR, f"QR code generation failed: {e}", {"error": str(e)}
        ) from e

    logger.debug(f"Generated QR code: {len(data)} bytes, version {qr.version}")
    return qr


def display_qr_terminal(qr: "qrcode.QRCode") -> str:
    """Render a QR code for a terminal with light text on a dark background.

    Two module rows share one text line through half-block characters, so
    the code stays square in most fonts. Light modules are drawn, dark
    modules are left blank.

    Args:
        qr: QR code object (its matrix already includes the quiet zone)

    Returns:
        Text representation of the QR code
    """
    matrix = qr.get_matrix()
    if len(matrix) % 2:
        matrix = matrix + [[False] * len(matrix[0])]

    glyphs = {
        (False, False): "█",
        (False, True): "▀",
        (True, False): "▄",
        (True, True): " ",
    }
    lines = []
    for top, bottom in zip(matrix[0::2], matrix[1::2]):
        lines.append("".join(glyphs[(bool(a), bool(b))] for a, b in zip(top, bottom)))
    return "\n".join(lines)


def export_qr_png(
    qr: "qrcode.QRCode", output_path: Path, fill_color: str = "black", back_color: str = "white"
) -> None:
    """Export QR code as PNG image.

    Args:
        qr: QR code object
        output_path: Path to save PNG file
        fill_color: Foreground color
        back_color: Background color

    Raises:
        NonMessengerError: If PNG export is not available or fails
    """
    if not PIL_AVAILABLE:
        raise NonMessengerError(ErrorCode.E001_UNKNOWN_ERROR, "PNG export not available - install pillow")

    output_path = Path(output_path)
    try:
        img = qr.make_image(fill_color=fill_color, back_color=back_color)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        img.save(str(output_path))
    except (OSError, ValueError) as e:
        raise NonMessengerError(
            ErrorCode.E001_UNKNOWN_ERROR, f"PNG export failed: {e}", {"error": str(e)}
        ) from e

    logger.info(f"Exported QR code to: {output_path}")


def create_pairing_qr(
    payload: PairingPayload,
    output_path: Optional[Path] = None,
    show_terminal: bool = True,
    config: Optional[Config] = None,
) -> str:
    """Create a QR code for a pairing payload.

    Args:
        payload: Pairing payload, usually with contact words attached
        output_path: Optional path to save PNG
        show_terminal: Whether to return terminal block art
        config: Configuration supplying the [qr] settings

    Returns:
        Block art if show_terminal=True, otherwise empty string

    Raises:
        NonMessengerError: If QR code creation fails
    """
    error_correction = QR_ERROR_CORRECTION
    box_size = QR_BOX_SIZE
    border = QR_BORDER
    if config is not None:
        error_correction = config.get("qr", "error_correction", error_correction)
        box_size = config.get("qr", "box_size", box_size)
        border = config.get("qr", "border", border)

    qr = generate_qr_code(payload.to_json(), error_correction, box_size, border)

    if output_path:
        export_qr_png(qr, output_path)

    if show_terminal:
        return display_qr_terminal(qr)

    return ""


def scan_pairing_qr(image_path: Path) -> PairingPayload:
    """Scan a pairing QR code from an image file.

    If the image holds several QR codes the first one is used.

    Args:
        image_path: Path to image containing the QR code

    Returns:
        Parsed pairing payload

    Raises:
        NonMessengerError: If scanning is not available, the file is missing,
            or no QR code is found
        MalformedPayloadError: If the QR code does not hold a pairing payload
    """
    if not PYZBAR_AVAILABLE or not PIL_AVAILABLE:
        raise NonMessengerError(
            ErrorCode.E001_UNKNOWN_ERROR,
            "QR code scanning not available - install pyzbar and pillow",
        )

    image_path = Path(image_path)
    if not image_path.exists():
        raise NonMessengerError(
            ErrorCode.E003_FILE_NOT_FOUND,
            f"Image file not found: {image_path}",
            {"path": str(image_path)},
        )

    try:
        with Image.open(image_path) as image:
            decoded_objects = pyzbar.decode(image)
    except OSError as e:
        raise NonMessengerError(
            ErrorCode.E001_UNKNOWN_ERROR,
            f"Failed to read image: {e}",
            {"error": str(e), "path": str(image_path)},
        ) from e

    if not decoded_objects:
        raise NonMessengerError(
            ErrorCode.E001_UNKNOWN_ERROR,
            "No QR code found in image",
            {"path": str(image_path)},
        )

    if len(decoded_objects) > 1:
        logger.info(f"Found {len(decoded_objects)} QR codes in image, using first one")

    return parse_pairing_payload(decoded_objects[0].data)
