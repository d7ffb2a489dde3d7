"""
NonMessenger - Word phrases and seed derivation.

Word codes are drawn from the BIP-39 English wordlist (2048 words).

Code format ("phrase v1"):
    An 8-word code encodes 80 bits of fresh entropy followed by an 8-bit
    checksum, the first byte of SHA-256(entropy). The 88 bits are split
    into eight big-endian 11-bit indices into the wordlist. This is the
    BIP-39 layout with a code length BIP-39 itself does not define.

    A contact code and a secret code are each 8 words. The 16-word full
    phrase is the contact code followed by the secret code; each half is
    checked on its own.

Seed derivation:
    seed = PBKDF2-HMAC-SHA256(
        password=BIP39-seed(phrase, passphrase=""),
        salt=b"nonmessenger-salt",
        iterations=100000,
        length=32,
    )

The salt and iteration count never change: identical words must map to
an identical seed forever, or memorized identities stop being recoverable.
"""

import hashlib
import logging
from typing import Dict, List, Optional, Sequence, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from mnemonic import Mnemonic

from .constants import (
    CODE_CHECKSUM_BITS,
    CODE_ENTROPY_BYTES,
    CODE_WORD_COUNT,
    FULL_WORD_COUNT,
    PBKDF2_ITERATIONS,
    SEED_SALT,
    SEED_SIZE,
    WORD_INDEX_BITS,
    WORDLIST_LANGUAGE,
)
from .entropy import RandomnessProvider, resolve_provider
from .errors import InvalidArgumentError, InvalidPhraseError
from .utils import secure_zero

logger = logging.getLogger(__name__)

PhraseInput = Union[str, Sequence[str]]

_CODE_BITS = CODE_ENTROPY_BYTES * 8 + CODE_CHECKSUM_BITS
_INDEX_MASK = (1 << WORD_INDEX_BITS) - 1

_mnemonic = Mnemonic(WORDLIST_LANGUAGE)
WORDLIST: List[str] = list(_mnemonic.wordlist)
_WORD_INDEX: Dict[str, int] = {word: i for i, word in enumerate(WORDLIST)}


def _checksum(entropy: bytes) -> int:
    return hashlib.sha256(entropy).digest()[0] >> (8 - CODE_CHECKSUM_BITS)


def _encode_code(entropy: bytes) -> List[str]:
    """Map 80 bits of entropy to an 8-word checksummed code."""
    bits = (int.from_bytes(entropy, "big") << CODE_CHECKSUM_BITS) | _checksum(entropy)
    words = []
    for i in range(CODE_WORD_COUNT):
        shift = _CODE_BITS - WORD_INDEX_BITS * (i + 1)
        words.append(WORDLIST[(bits >> shift) & _INDEX_MASK])
    return words


def _decode_code(words: Sequence[str], offset: int) -> bytes:
    """Recover the entropy of one 8-word code, checking every word and the checksum."""
    bits = 0
    for position, word in enumerate(words):
        index = _WORD_INDEX.get(word)
        if index is None:
            raise InvalidPhraseError(
                f"Word {offset + position + 1} is not in the wordlist",
                {"position": offset + position + 1},
            )
        bits = (bits << WORD_INDEX_BITS) | index

    entropy = (bits >> CODE_CHECKSUM_BITS).to_bytes(CODE_ENTROPY_BYTES, "big")
    if bits & ((1 << CODE_CHECKSUM_BITS) - 1) != _checksum(entropy):
        raise InvalidPhraseError(
            f"Checksum mismatch in words {offset + 1}-{offset + len(words)}",
            {"group_start": offset + 1},
        )
    return entropy


def normalize_phrase(words: PhraseInput) -> List[str]:
    """
    Normalize a phrase to a list of lower-case words.

    Accepts either a list of words or a single whitespace-separated string.

    Raises:
        InvalidArgumentError: If the input is not a string or a sequence of strings
    """
    if isinstance(words, str):
        return [w.lower() for w in words.split()]

    if isinstance(words, (bytes, bytearray)) or not isinstance(words, Sequence):
        raise InvalidArgumentError("Phrase must be a string or a list of words")

    normalized = []
    for word in words:
        if not isinstance(word, str):
            raise InvalidArgumentError("Every word in a phrase must be a string")
        normalized.append(word.strip().lower())
    return normalized


def generate_phrase(word_count: int = CODE_WORD_COUNT,
                    rng: Optional[RandomnessProvider] = None) -> List[str]:
    """
    Generate a new word phrase.

    Every 8-word group draws its own fresh entropy, so consecutive phrases
    (and the two halves of a 16-word phrase) are unrelated.

    Args:
        word_count: Number of words, a positive multiple of 8
        rng: Randomness provider (defaults to the system source)

    Returns:
        List of dictionary words

    Raises:
        InvalidArgumentError: If word_count is not a positive multiple of 8
        EntropyError: If the system entropy source fails
    """
    if (isinstance(word_count, bool) or not isinstance(word_count, int)
            or word_count <= 0 or word_count % CODE_WORD_COUNT):
        raise InvalidArgumentError(
            f"Word count must be a positive multiple of {CODE_WORD_COUNT}",
            {"word_count": repr(word_count)},
        )

    source = resolve_provider(rng)
    words: List[str] = []
    for _ in range(word_count // CODE_WORD_COUNT):
        entropy = bytearray(source.next_bytes(CODE_ENTROPY_BYTES))
        try:
            words.extend(_encode_code(bytes(entropy)))
        finally:
            secure_zero(entropy)

    logger.debug(f"Generated {word_count}-word phrase")
    return words


def generate_contact_code(rng: Optional[RandomnessProvider] = None) -> List[str]:
    """Generate the 8-word code shared publicly for initial contact."""
    return generate_phrase(CODE_WORD_COUNT, rng)


def generate_secret_code(rng: Optional[RandomnessProvider] = None) -> List[str]:
    """Generate the 8-word code kept private for verification."""
    return generate_phrase(CODE_WORD_COUNT, rng)


def phrase_to_entropy(words: PhraseInput) -> bytes:
    """
    Recover the entropy encoded by a phrase.

    Args:
        words: Phrase with a multiple of 8 words

    Returns:
        10 bytes of entropy per 8-word group, concatenated

    Raises:
        InvalidArgumentError: If the word count is not a positive multiple of 8
        InvalidPhraseError: If a word is unknown or a checksum fails
    """
    normalized = normalize_phrase(words)
    if not normalized or len(normalized) % CODE_WORD_COUNT:
        raise InvalidArgumentError(
            f"Phrase must contain a positive multiple of {CODE_WORD_COUNT} words",
            {"word_count": len(normalized)},
        )

    return b"".join(
        _decode_code(normalized[i:i + CODE_WORD_COUNT], i)
        for i in range(0, len(normalized), CODE_WORD_COUNT)
    )


def is_valid_phrase(words: PhraseInput) -> bool:
    """Return True if the phrase decodes with valid checksums."""
    try:
        phrase_to_entropy(words)
    except (InvalidArgumentError, InvalidPhraseError):
        return False
    return True


def derive_seed(words: PhraseInput) -> bytes:
    """
    Derive the 32-byte identity seed for an 8- or 16-word phrase.

    The words are checked first, then stretched through the BIP-39 seed
    function (empty passphrase) and PBKDF2-HMAC-SHA256 with the fixed
    application salt.

    Raises:
        InvalidArgumentError: If the phrase does not have 8 or 16 words
        InvalidPhraseError: If a word is unknown or a checksum fails
    """
    normalized = normalize_phrase(words)
    if len(normalized) not in (CODE_WORD_COUNT, FULL_WORD_COUNT):
        raise InvalidArgumentError(
            f"Phrase must contain {CODE_WORD_COUNT} or {FULL_WORD_COUNT} words",
            {"word_count": len(normalized)},
        )
    phrase_to_entropy(normalized)

    intermediate = bytearray(Mnemonic.to_seed(" ".join(normalized), passphrase=""))
    try:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=SEED_SIZE,
            salt=SEED_SALT,
            iterations=PBKDF2_ITERATIONS,
        )
        return kdf.derive(bytes(intermediate))
    finally:
        secure_zero(intermediate)
