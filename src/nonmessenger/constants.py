"""
NonMessenger - Global Constants

This module defines all constants used throughout the NonMessenger core.
Cryptographic parameters below are part of the compatibility contract:
changing any of them changes every identity derived from a word phrase.

Author: NonMessenger Team
Version: 1.0.0
"""

# Version Information
VERSION = "1.0.0"
APP_NAME = "NonMessenger"

# Identity Keys
RSA_PUBLIC_EXPONENT = 65537
RSA_KEY_SIZE = 4096  # Long-term identity and full-phrase tier
CONTACT_RSA_KEY_SIZE = 2048  # Contact-phrase tier (initial contact only)
MIN_RSA_KEY_SIZE = 1024

# Deterministic key generation ("keygen v1")
KEYGEN_ALGORITHM_VERSION = 1
KEYGEN_STREAM_NONCE = b"\x00" * 16  # ChaCha20 counter + nonce block
KEYGEN_SIEVE_LIMIT = 2000  # Trial division bound for prime candidates
KEYGEN_MILLER_RABIN_ROUNDS = 40
KEYGEN_MIN_PRIME_DISTANCE_BITS = 100  # |p - q| >= 2^(prime_bits - 100)

# Word Phrases ("phrase v1")
CODE_WORD_COUNT = 8  # Contact code and secret code
FULL_WORD_COUNT = 16  # Contact code followed by secret code
CODE_ENTROPY_BYTES = 10  # 80 bits of entropy per 8-word code
CODE_CHECKSUM_BITS = 8
WORD_INDEX_BITS = 11
WORDLIST_LANGUAGE = "english"
WORDLIST_SIZE = 2048

# Seed Derivation
SEED_SALT = b"nonmessenger-salt"  # Never change without a migration path
PBKDF2_ITERATIONS = 100_000
SEED_SIZE = 32  # 256 bits

# Symmetric Encryption
AES_KEY_SIZE = 32  # 256 bits
GCM_NONCE_SIZE = 12  # 96 bits
GCM_TAG_SIZE = 16  # 128 bits
SESSION_KEY_SIZE = 32  # Voice session key
MAX_MESSAGE_SIZE = 10 * 1024 * 1024  # 10 MB

# Pairing Protocol
PAIRING_VERSION = "1.0"
PAIRING_TYPE = "nonmessenger_contact"
VERIFICATION_MESSAGE_LENGTH = 256
DEVICE_ID_BYTES = 16  # 32 hex characters
MAX_TIMESTAMP = 2 ** 64 - 1  # Unsigned 64-bit Unix seconds

# QR Codes
QR_ERROR_CORRECTION = "M"
QR_BOX_SIZE = 10
QR_BORDER = 4

# File Paths
DEFAULT_DATA_DIR = "~/.nonmessenger"
CONFIG_FILENAME = "config.toml"
LOGS_DIR = "logs"
LOG_FILENAME = "nonmessenger.log"

# Logging Configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_BACKUP_COUNT = 5
