"""
NonMessenger - Cryptographic identity and secure pairing core

Key generation (random and recoverable from word phrases), hybrid
RSA-OAEP + AES-256-GCM message encryption, and the QR contact-pairing
protocol of the NonMessenger peer-to-peer messenger.

Author: NonMessenger Team
Version: 1.0.0
License: GPL-3.0
"""

__version__ = "1.0.0"
__author__ = "NonMessenger Team"
__license__ = "GPL-3.0"

from .cipher import (
    EncryptedMessage,
    decrypt_message,
    decrypt_message_bytes,
    encrypt_message,
)
from .config import Config
from .constants import APP_NAME, VERSION
from .entropy import (
    ChaCha20Stream,
    RandomnessProvider,
    SystemRandomness,
    default_provider,
)
from .errors import (
    ConfigError,
    CryptoError,
    DecryptionFailedError,
    EncodingError,
    EntropyError,
    ErrorCode,
    InvalidArgumentError,
    InvalidPhraseError,
    MalformedPayloadError,
    NonMessengerError,
    WrongPayloadTypeError,
)
from .keygen import (
    KeyPair,
    fingerprint,
    generate_from_contact_phrase,
    generate_from_full_phrase,
    generate_key_pair_from_seed,
    generate_random_key_pair,
)
from .pairing import (
    PairingPayload,
    build_pairing_payload,
    generate_device_id,
    generate_session_key,
    parse_pairing_payload,
    unwrap_symmetric_key,
    validate_verification_message,
    verification_messages_match,
    wrap_symmetric_key,
)
from .phrase import (
    derive_seed,
    generate_contact_code,
    generate_phrase,
    generate_secret_code,
    is_valid_phrase,
)

__all__ = [
    "APP_NAME",
    "VERSION",
    # Entropy
    "ChaCha20Stream",
    "RandomnessProvider",
    "SystemRandomness",
    "default_provider",
    # Phrases
    "derive_seed",
    "generate_contact_code",
    "generate_phrase",
    "generate_secret_code",
    "is_valid_phrase",
    # Keys
    "KeyPair",
    "fingerprint",
    "generate_from_contact_phrase",
    "generate_from_full_phrase",
    "generate_key_pair_from_seed",
    "generate_random_key_pair",
    # Cipher
    "EncryptedMessage",
    "decrypt_message",
    "decrypt_message_bytes",
    "encrypt_message",
    # Pairing
    "PairingPayload",
    "build_pairing_payload",
    "generate_device_id",
    "generate_session_key",
    "parse_pairing_payload",
    "unwrap_symmetric_key",
    "validate_verification_message",
    "verification_messages_match",
    "wrap_symmetric_key",
    # Config
    "Config",
    # Errors
    "ConfigError",
    "CryptoError",
    "DecryptionFailedError",
    "EncodingError",
    "EntropyError",
    "ErrorCode",
    "InvalidArgumentError",
    "InvalidPhraseError",
    "MalformedPayloadError",
    "NonMessengerError",
    "WrongPayloadTypeError",
    "__author__",
    "__license__",
    "__version__",
]
