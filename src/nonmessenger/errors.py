"""
NonMessenger - Custom Exception Classes and Error Codes

This module defines all custom exceptions and error codes used by the
NonMessenger core. Each error has a unique code for logging and debugging.

None of these errors are retried internally; every error is handed back
to the caller.

Author: NonMessenger Team
Version: 1.0.0
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Enumeration of all NonMessenger error codes."""

    # General Errors (E001-E099)
    E001_UNKNOWN_ERROR = "E001"
    E002_INVALID_ARGUMENT = "E002"
    E003_FILE_NOT_FOUND = "E003"

    # Crypto Errors (E100-E199)
    E100_CRYPTO_ERROR = "E100"
    E101_ENCRYPTION_FAILED = "E101"
    E102_DECRYPTION_FAILED = "E102"
    E103_INVALID_KEY = "E103"
    E104_KEY_GENERATION_FAILED = "E104"
    E109_ENTROPY_UNAVAILABLE = "E109"
    E110_INVALID_PHRASE = "E110"
    E111_INVALID_ENCODING = "E111"

    # Payload Errors (E200-E299)
    E206_MALFORMED_PAYLOAD = "E206"
    E207_WRONG_PAYLOAD_TYPE = "E207"
    E208_UNSUPPORTED_VERSION = "E208"

    # Config Errors (E700-E799)
    E700_CONFIG_ERROR = "E700"
    E701_CONFIG_LOAD_FAILED = "E701"
    E702_CONFIG_SAVE_FAILED = "E702"
    E703_INVALID_CONFIG = "E703"
    E704_CONFIG_PARSE_ERROR = "E704"


class NonMessengerError(Exception):
    """Base exception class for all NonMessenger errors.

    All custom exceptions in NonMessenger inherit from this class.

    Attributes:
        code: Error code from ErrorCode enum
        message: Human-readable error message
        details: Additional error details (optional)
    """

    def __init__(self, code: ErrorCode, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize a NonMessenger error.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            details: Additional error context (optional)
        """
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for serialization.

        Returns:
            Dictionary containing error information
        """
        return {"code": self.code.value, "message": self.message, "details": self.details}


class InvalidArgumentError(NonMessengerError):
    """Raised for a wrong word count or otherwise malformed input shape."""

    def __init__(
        self,
        message: str = "Invalid argument",
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.E002_INVALID_ARGUMENT,
    ):
        super().__init__(code, message, details)


class InvalidPhraseError(NonMessengerError):
    """Raised when a word is outside the dictionary or a checksum does not match."""

    def __init__(
        self,
        message: str = "Invalid word phrase",
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.E110_INVALID_PHRASE,
    ):
        super().__init__(code, message, details)


class CryptoError(NonMessengerError):
    """Exception raised for cryptographic operation failures.

    This includes malformed or unsupported keys, key generation
    failures and rejected cipher operations.
    """

    def __init__(
        self,
        message: str = "Cryptographic operation failed",
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.E100_CRYPTO_ERROR,
    ):
        super().__init__(code, message, details)


class DecryptionFailedError(CryptoError):
    """Raised when the auth tag does not verify or the key cannot be unwrapped.

    The two causes share one error so that callers (and attackers) cannot
    tell a wrong key apart from a tampered ciphertext.
    """

    def __init__(
        self,
        message: str = "Decryption failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details, ErrorCode.E102_DECRYPTION_FAILED)


class EncodingError(CryptoError):
    """Raised when decrypted bytes are not valid UTF-8 text."""

    def __init__(
        self,
        message: str = "Decrypted message is not valid UTF-8",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details, ErrorCode.E111_INVALID_ENCODING)


class EntropyError(NonMessengerError):
    """Raised when the operating system entropy source is unavailable.

    This is fatal. There is no fallback to a weaker source.
    """

    def __init__(
        self,
        message: str = "Secure random source unavailable",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(ErrorCode.E109_ENTROPY_UNAVAILABLE, message, details)


class MalformedPayloadError(NonMessengerError):
    """Raised when a pairing payload does not match the expected schema."""

    def __init__(
        self,
        message: str = "Malformed pairing payload",
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.E206_MALFORMED_PAYLOAD,
    ):
        super().__init__(code, message, details)


class WrongPayloadTypeError(MalformedPayloadError):
    """Raised for valid JSON that carries a different protocol marker."""

    def __init__(
        self,
        message: str = "Wrong pairing payload type",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details, ErrorCode.E207_WRONG_PAYLOAD_TYPE)


class ConfigError(NonMessengerError):
    """Exception raised for configuration failures.

    This includes loading, parsing, and validating configuration files.
    """

    def __init__(
        self,
        code: ErrorCode = ErrorCode.E700_CONFIG_ERROR,
        message: str = "Configuration operation failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(code, message, details)
