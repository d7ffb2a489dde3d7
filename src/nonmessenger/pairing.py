"""
NonMessenger - Contact pairing protocol.

Two peers pair out-of-band by exchanging a small JSON payload, usually
through a QR code:

    {
        "version": "1.0",
        "type": "nonmessenger_contact",
        "publicKey": "-----BEGIN PUBLIC KEY-----...",
        "deviceId": "<32 hex chars>",
        "contactWords": ["word", ...],
        "timestamp": 1700000000
    }

The payload is built in two steps: build_pairing_payload() fixes the
marker and timestamp, then the caller attaches the contact words chosen
for that exchange with PairingPayload.with_contact_words().

Before a contact is marked verified both peers compare a 256-character
verification message. Only its length is checked here.

The RSA-OAEP key wrap used by the message cipher is also exposed here so
a voice session can exchange a fresh session key.
"""

import json
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .cipher import KeyInput, unwrap_key, wrap_key
from .constants import (
    DEVICE_ID_BYTES,
    MAX_TIMESTAMP,
    PAIRING_TYPE,
    PAIRING_VERSION,
    SESSION_KEY_SIZE,
    VERIFICATION_MESSAGE_LENGTH,
)
from .entropy import RandomnessProvider, default_provider, resolve_provider
from .errors import (
    ErrorCode,
    InvalidArgumentError,
    MalformedPayloadError,
    WrongPayloadTypeError,
)
from .utils import format_timestamp, secure_compare, truncate_string

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PairingPayload:
    """Contact-pairing payload carried in a QR code."""

    public_key: str
    device_id: str
    timestamp: int
    contact_words: Tuple[str, ...] = field(default_factory=tuple)
    version: str = PAIRING_VERSION
    type: str = PAIRING_TYPE

    def with_contact_words(self, words: Sequence[str]) -> "PairingPayload":
        """Return a copy carrying the given contact words."""
        if isinstance(words, str) or not all(isinstance(w, str) for w in words):
            raise InvalidArgumentError("Contact words must be a list of strings")
        return replace(self, contact_words=tuple(words))

    def to_dict(self) -> Dict[str, Any]:
        """Convert payload to its JSON wire dictionary."""
        return {
            "version": self.version,
            "type": self.type,
            "publicKey": self.public_key,
            "deviceId": self.device_id,
            "contactWords": list(self.contact_words),
            "timestamp": self.timestamp,
        }

    def to_json(self) -> str:
        """Encode payload as compact JSON for a QR code."""
        json_data = json.dumps(self.to_dict(), separators=(",", ":"))
        logger.debug(f"Encoded pairing payload: {len(json_data)} bytes")
        return json_data


def build_pairing_payload(public_key: str, device_id: str,
                          timestamp: Optional[int] = None) -> PairingPayload:
    """
    Build a pairing payload with no contact words yet.

    Args:
        public_key: Local PEM public key
        device_id: Local device identifier
        timestamp: Unix seconds (defaults to now)

    Returns:
        PairingPayload to be completed with with_contact_words()

    Raises:
        InvalidArgumentError: If public_key/device_id are not strings or timestamp is outside unsigned 64-bit range
    """
    if not isinstance(public_key, str) or not isinstance(device_id, str):
        raise InvalidArgumentError("Public key and device ID must be strings")

    if timestamp is None:
        timestamp = int(time.time())
    elif (isinstance(timestamp, bool) or not isinstance(timestamp, int)
          or not 0 <= timestamp <= MAX_TIMESTAMP):
        raise InvalidArgumentError("Timestamp must be unsigned 64-bit Unix seconds")

    return PairingPayload(public_key=public_key, device_id=device_id, timestamp=timestamp)


def _require(data: Dict[str, Any], name: str, expected: type) -> Any:
    value = data.get(name)
    if not isinstance(value, expected) or isinstance(value, bool):
        raise MalformedPayloadError(
            f"Pairing payload field '{name}' missing or wrong type", {"field": name}
        )
    return value


def parse_pairing_payload(raw: Union[str, bytes, Dict[str, Any]]) -> PairingPayload:
    """
    Parse a pairing payload scanned from a QR code.

    Args:
        raw: JSON text, UTF-8 bytes, or an already decoded dictionary

    Returns:
        PairingPayload

    Raises:
        WrongPayloadTypeError: If the JSON is valid but the type marker differs
        MalformedPayloadError: For any other schema or version mismatch
    """
    if isinstance(raw, dict):
        data = raw
    else:
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError, TypeError, RecursionError) as e:
            raise MalformedPayloadError(
                f"Pairing payload is not valid JSON: {e}", {"error": str(e)}
            ) from e

    if not isinstance(data, dict):
        raise MalformedPayloadError("Pairing payload must be a JSON object")

    payload_type = _require(data, "type", str)
    if payload_type != PAIRING_TYPE:
        raise WrongPayloadTypeError(
            f"Unexpected pairing payload type: {payload_type!r}",
            {"type": payload_type, "expected": PAIRING_TYPE},
        )

    version = _require(data, "version", str)
    if version != PAIRING_VERSION:
        raise MalformedPayloadError(
            f"Unsupported pairing payload version: {version!r}",
            {"version": version},
            ErrorCode.E208_UNSUPPORTED_VERSION,
        )

    public_key = _require(data, "publicKey", str)
    device_id = _require(data, "deviceId", str)
    timestamp = _require(data, "timestamp", int)
    if not 0 <= timestamp <= MAX_TIMESTAMP:
        raise MalformedPayloadError(
            "Pairing payload timestamp must be unsigned 64-bit Unix seconds", {"timestamp": timestamp}
        )

    contact_words: List[str] = _require(data, "contactWords", list)
    if not all(isinstance(word, str) for word in contact_words):
        raise MalformedPayloadError("Pairing payload contact words must be strings")

    logger.debug(
        f"Parsed pairing payload from device {truncate_string(device_id, 11)}"
        f" created {format_timestamp(timestamp)}"
    )
    return PairingPayload(
        public_key=public_key,
        device_id=device_id,
        timestamp=timestamp,
        contact_words=tuple(contact_words),
        version=version,
        type=payload_type,
    )


def validate_verification_message(message: str) -> bool:
    """Return True iff message is a string of exactly 256 characters."""
    return isinstance(message, str) and len(message) == VERIFICATION_MESSAGE_LENGTH


def verification_messages_match(expected: str, received: str) -> bool:
    """
    Check that both verification messages are well-formed and equal.

    Comparison is constant-time.
    """
    if not (validate_verification_message(expected) and validate_verification_message(received)):
        return False
    return secure_compare(expected, received)


def generate_device_id(rng: Optional[RandomnessProvider] = None) -> str:
    """Generate a device identifier: 16 random bytes as 32 lowercase hex characters."""
    return resolve_provider(rng).next_bytes(DEVICE_ID_BYTES).hex()


def generate_session_key() -> bytes:
    """Generate a fresh 256-bit symmetric key for a voice session from the system source."""
    return default_provider().next_bytes(SESSION_KEY_SIZE)


def wrap_symmetric_key(key: bytes, public_key: KeyInput) -> bytes:
    """
    Wrap a session key for a peer with RSA-OAEP/SHA-256.

    Raises:
        InvalidArgumentError: If key is empty or not bytes
        CryptoError: If the public key is invalid or the key is too long for it
    """
    return wrap_key(key, public_key)


def unwrap_symmetric_key(wrapped: bytes, private_key: KeyInput) -> bytes:
    """
    Recover a session key wrapped with wrap_symmetric_key().

    Raises:
        CryptoError: If the private key is malformed
        DecryptionFailedError: If the wrapped key does not decrypt
    """
    return unwrap_key(wrapped, private_key)
