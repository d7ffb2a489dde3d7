"""
NonMessenger - Hybrid message encryption.

Each message is sealed with AES-256-GCM under a fresh random key and
96-bit nonce. The AES key is then wrapped for the recipient with
RSA-OAEP (SHA-256, MGF1-SHA-256, no label).

The key and nonce are drawn from the system source inside encrypt_message
on every call. Neither they nor the source are accepted from the caller.

Wire format (all fields base64, standard alphabet with padding):
    encryptedMessage  AES-GCM ciphertext without the tag
    encryptedKey      RSA-OAEP wrapped AES key
    iv                12-byte nonce
    authTag           16-byte GCM tag

encryptedMessage followed by authTag is exactly the AES-GCM output; the two
fields are equivalent to a single concatenated buffer.
"""

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Dict, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .constants import AES_KEY_SIZE, GCM_NONCE_SIZE, GCM_TAG_SIZE, MAX_MESSAGE_SIZE
from .entropy import default_provider
from .errors import (
    CryptoError,
    DecryptionFailedError,
    EncodingError,
    ErrorCode,
    InvalidArgumentError,
)
from .keygen import load_private_key, load_public_key
from .utils import secure_zero

logger = logging.getLogger(__name__)

KeyInput = Union[str, bytes]


def _oaep() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


@dataclass(frozen=True)
class EncryptedMessage:
    """One encrypted message as it travels between peers."""

    cipher_text: bytes
    wrapped_key: bytes
    nonce: bytes
    auth_tag: bytes

    def __post_init__(self):
        for name in ("cipher_text", "wrapped_key", "nonce", "auth_tag"):
            if not isinstance(getattr(self, name), (bytes, bytearray)):
                raise InvalidArgumentError(f"Encrypted message field '{name}' must be bytes")
        if len(self.nonce) != GCM_NONCE_SIZE:
            raise InvalidArgumentError(
                f"Nonce must be {GCM_NONCE_SIZE} bytes", {"length": len(self.nonce)}
            )
        if len(self.auth_tag) != GCM_TAG_SIZE:
            raise InvalidArgumentError(
                f"Auth tag must be {GCM_TAG_SIZE} bytes", {"length": len(self.auth_tag)}
            )

    def to_dict(self) -> Dict[str, str]:
        """Export to the base64 wire representation."""
        return {
            "encryptedMessage": base64.b64encode(self.cipher_text).decode("ascii"),
            "encryptedKey": base64.b64encode(self.wrapped_key).decode("ascii"),
            "iv": base64.b64encode(self.nonce).decode("ascii"),
            "authTag": base64.b64encode(self.auth_tag).decode("ascii"),
        }

    @staticmethod
    def from_dict(data: Dict[str, str]) -> "EncryptedMessage":
        """
        Import from the base64 wire representation.

        Raises:
            InvalidArgumentError: On missing fields, bad base64 or wrong lengths
        """
        if not isinstance(data, dict):
            raise InvalidArgumentError("Encrypted message must be a JSON object")

        decoded = {}
        for wire_name, field_name in (
            ("encryptedMessage", "cipher_text"),
            ("encryptedKey", "wrapped_key"),
            ("iv", "nonce"),
            ("authTag", "auth_tag"),
        ):
            value = data.get(wire_name)
            if not isinstance(value, str):
                raise InvalidArgumentError(
                    f"Encrypted message field '{wire_name}' missing or not a string",
                    {"field": wire_name},
                )
            try:
                decoded[field_name] = base64.b64decode(value, validate=True)
            except (binascii.Error, ValueError) as e:
                raise InvalidArgumentError(
                    f"Encrypted message field '{wire_name}' is not valid base64",
                    {"field": wire_name},
                ) from e

        return EncryptedMessage(**decoded)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @staticmethod
    def from_json(raw: Union[str, bytes]) -> "EncryptedMessage":
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError, TypeError, RecursionError) as e:
            raise InvalidArgumentError(f"Encrypted message is not valid JSON: {e}") from e
        return EncryptedMessage.from_dict(data)


def _public_key(key) -> rsa.RSAPublicKey:
    if isinstance(key, rsa.RSAPublicKey):
        return key
    return load_public_key(key)


def _private_key(key) -> rsa.RSAPrivateKey:
    if isinstance(key, rsa.RSAPrivateKey):
        return key
    return load_private_key(key)


def wrap_key(key: bytes, public_key: KeyInput) -> bytes:
    """
    Wrap a symmetric key for the holder of ``public_key`` with RSA-OAEP/SHA-256.

    Raises:
        InvalidArgumentError: If key is empty or not bytes
        CryptoError: If the public key is invalid or the key is too long for it
    """
    if not isinstance(key, (bytes, bytearray)) or not key:
        raise InvalidArgumentError("Key to wrap must be non-empty bytes")

    rsa_key = _public_key(public_key)
    try:
        return rsa_key.encrypt(bytes(key), _oaep())
    except ValueError as e:
        raise CryptoError(
            f"Key wrap failed: {e}", {"key_length": len(key)}, ErrorCode.E101_ENCRYPTION_FAILED
        ) from e


def unwrap_key(wrapped: bytes, private_key: KeyInput) -> bytes:
    """
    Unwrap a symmetric key with RSA-OAEP/SHA-256.

    Raises:
        InvalidArgumentError: If wrapped is not bytes
        CryptoError: If the private key is malformed
        DecryptionFailedError: If the wrapped key does not decrypt under private_key
    """
    if not isinstance(wrapped, (bytes, bytearray)):
        raise InvalidArgumentError("Wrapped key must be bytes")

    rsa_key = _private_key(private_key)
    try:
        return rsa_key.decrypt(bytes(wrapped), _oaep())
    except ValueError as e:
        raise DecryptionFailedError() from e


def encrypt_message(plaintext: Union[str, bytes], recipient_public_key: KeyInput) -> EncryptedMessage:
    """
    Encrypt a message for a recipient.

    Args:
        plaintext: Message text (UTF-8 encoded) or raw bytes
        recipient_public_key: Recipient's PEM public key

    Returns:
        EncryptedMessage with the tag split from the ciphertext

    Raises:
        InvalidArgumentError: If plaintext is not str/bytes or is too large
        CryptoError: If the recipient key is invalid
        EntropyError: If the system entropy source fails
    """
    if isinstance(plaintext, str):
        data = plaintext.encode("utf-8")
    elif isinstance(plaintext, (bytes, bytearray)):
        data = bytes(plaintext)
    else:
        raise InvalidArgumentError("Plaintext must be str or bytes")

    if len(data) > MAX_MESSAGE_SIZE:
        raise InvalidArgumentError(
            f"Message too large: {len(data)} bytes (max {MAX_MESSAGE_SIZE})",
            {"size": len(data), "max": MAX_MESSAGE_SIZE},
        )

    rsa_key = _public_key(recipient_public_key)
    source = default_provider()

    key = bytearray(source.next_bytes(AES_KEY_SIZE))
    try:
        nonce = source.next_bytes(GCM_NONCE_SIZE)
        sealed = AESGCM(bytes(key)).encrypt(nonce, data, None)
        wrapped = wrap_key(key, rsa_key)
    finally:
        secure_zero(key)

    logger.debug(f"Encrypted message: {len(data)} bytes")
    return EncryptedMessage(
        cipher_text=sealed[:-GCM_TAG_SIZE],
        wrapped_key=wrapped,
        nonce=nonce,
        auth_tag=sealed[-GCM_TAG_SIZE:],
    )


def _as_message(message) -> EncryptedMessage:
    if isinstance(message, EncryptedMessage):
        return message
    if isinstance(message, dict):
        return EncryptedMessage.from_dict(message)
    raise InvalidArgumentError("Expected an EncryptedMessage or its wire dictionary")


def decrypt_message_bytes(message: EncryptedMessage, private_key: KeyInput) -> bytes:
    """
    Decrypt a message to raw bytes.

    No plaintext is returned unless the auth tag verifies.

    Raises:
        InvalidArgumentError: If the message is malformed
        CryptoError: If the private key is malformed
        DecryptionFailedError: If key unwrap fails or the auth tag does not verify
    """
    message = _as_message(message)
    key = bytearray(unwrap_key(message.wrapped_key, private_key))
    try:
        if len(key) != AES_KEY_SIZE:
            raise DecryptionFailedError()
        plaintext = AESGCM(bytes(key)).decrypt(
            bytes(message.nonce), bytes(message.cipher_text) + bytes(message.auth_tag), None
        )
    except InvalidTag as e:
        raise DecryptionFailedError() from e
    finally:
        secure_zero(key)

    logger.debug(f"Decrypted message: {len(plaintext)} bytes")
    return plaintext


def decrypt_message(message: EncryptedMessage, private_key: KeyInput) -> str:
    """
    Decrypt a message to text.

    Raises:
        DecryptionFailedError: If key unwrap fails or the auth tag does not verify
        EncodingError: If the authenticated plaintext is not valid UTF-8
    """
    plaintext = decrypt_message_bytes(message, private_key)
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as e:
        raise EncodingError() from e
