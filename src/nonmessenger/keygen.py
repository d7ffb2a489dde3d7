"""
NonMessenger - Identity key generation.

Identities are RSA key pairs exchanged as PEM strings (SPKI for the
public half, unencrypted PKCS8 for the private half).

Three tiers are offered:
- Random 4096-bit keys for the baseline device identity.
- 2048-bit keys derived from an 8-word contact phrase. The smaller size
  is intentional: this tier only covers low-stakes initial contact.
- 4096-bit keys derived from the 16-word full phrase, for full strength
  recoverable from memorized words alone.

Deterministic generation ("keygen v1") does not depend on any library's
internal prime search. Given a 32-byte seed it:
1. Opens the ChaCha20 keystream for the seed (see entropy.ChaCha20Stream).
2. Reads each prime candidate as key_size/2 big-endian bits, then sets the
   top two bits and the low bit.
3. Skips candidates divisible by a prime below 2000, or whose p - 1 shares
   a factor with e = 65537.
4. Accepts the first candidate passing Miller-Rabin with the first 40
   primes as bases.
5. Draws p, then q, redrawing q while |p - q| < 2^(key_size/2 - 100).
6. Sets d = e^-1 mod lcm(p - 1, q - 1).
The PEM output is therefore fixed by the seed alone.
"""

import logging
from dataclasses import dataclass, field
from math import gcd
from typing import Dict, List

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from .constants import (
    CODE_WORD_COUNT,
    CONTACT_RSA_KEY_SIZE,
    FULL_WORD_COUNT,
    KEYGEN_ALGORITHM_VERSION,
    KEYGEN_MILLER_RABIN_ROUNDS,
    KEYGEN_MIN_PRIME_DISTANCE_BITS,
    KEYGEN_SIEVE_LIMIT,
    MIN_RSA_KEY_SIZE,
    RSA_KEY_SIZE,
    RSA_PUBLIC_EXPONENT,
    SEED_SIZE,
)
from .entropy import ChaCha20Stream
from .errors import CryptoError, ErrorCode, InvalidArgumentError
from .phrase import PhraseInput, derive_seed, normalize_phrase
from .utils import format_fingerprint, secure_zero

logger = logging.getLogger(__name__)


def _small_primes(limit: int) -> List[int]:
    sieve = bytearray([1]) * limit
    sieve[0:2] = b"\x00\x00"
    for i in range(2, int(limit ** 0.5) + 1):
        if sieve[i]:
            sieve[i * i::i] = bytearray(len(sieve[i * i::i]))
    return [i for i, is_prime in enumerate(sieve) if is_prime]


SMALL_PRIMES = _small_primes(KEYGEN_SIEVE_LIMIT)
MILLER_RABIN_BASES = SMALL_PRIMES[:KEYGEN_MILLER_RABIN_ROUNDS]


@dataclass(frozen=True)
class KeyPair:
    """An RSA identity key pair as PEM strings."""

    public_key: str
    private_key: str = field(repr=False)

    def to_dict(self) -> Dict[str, str]:
        """Export key pair to dictionary for storage."""
        return {"publicKey": self.public_key, "privateKey": self.private_key}

    @staticmethod
    def from_dict(data: Dict[str, str]) -> "KeyPair":
        """Import key pair from dictionary."""
        try:
            return KeyPair(public_key=data["publicKey"], private_key=data["privateKey"])
        except (KeyError, TypeError) as e:
            raise InvalidArgumentError(f"Invalid key pair data: {e}") from e

    def fingerprint(self) -> str:
        """Fingerprint of the public half."""
        return fingerprint(self.public_key)


def _to_pem_bytes(pem) -> bytes:
    if isinstance(pem, str):
        return pem.encode("ascii", errors="replace")
    if isinstance(pem, (bytes, bytearray)):
        return bytes(pem)
    raise InvalidArgumentError("PEM key must be str or bytes")


def load_public_key(pem) -> rsa.RSAPublicKey:
    """
    Load an RSA public key from PEM (SubjectPublicKeyInfo).

    Raises:
        CryptoError: If the PEM is malformed or not an RSA key
    """
    try:
        key = serialization.load_pem_public_key(_to_pem_bytes(pem))
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CryptoError("Invalid public key", {"error": str(e)}, ErrorCode.E103_INVALID_KEY) from e

    if not isinstance(key, rsa.RSAPublicKey):
        raise CryptoError("Public key is not an RSA key", code=ErrorCode.E103_INVALID_KEY)
    return key


def load_private_key(pem) -> rsa.RSAPrivateKey:
    """
    Load an unencrypted RSA private key from PEM (PKCS8).

    Raises:
        CryptoError: If the PEM is malformed, encrypted, or not an RSA key
    """
    try:
        key = serialization.load_pem_private_key(_to_pem_bytes(pem), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        # Error text is dropped so no key material ends up in logs.
        raise CryptoError("Invalid private key", code=ErrorCode.E103_INVALID_KEY) from e

    if not isinstance(key, rsa.RSAPrivateKey):
        raise CryptoError("Private key is not an RSA key", code=ErrorCode.E103_INVALID_KEY)
    return key


def _serialize(private_key: rsa.RSAPrivateKey) -> KeyPair:
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return KeyPair(public_key=public_pem.decode("ascii"), private_key=private_pem.decode("ascii"))


def fingerprint(public_key_pem) -> str:
    """
    Hex SHA-256 fingerprint of a public key's DER SubjectPublicKeyInfo.

    Users compare fingerprints out-of-band before trusting a contact.

    Returns a 64-character hexadecimal fingerprint.
    """
    der = load_public_key(public_key_pem).public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    digest = hashes.Hash(hashes.SHA256())
    digest.update(der)
    return digest.finalize().hex()


def _check_key_size(key_size: int) -> None:
    if (isinstance(key_size, bool) or not isinstance(key_size, int)
            or key_size < MIN_RSA_KEY_SIZE or key_size % 256):
        raise InvalidArgumentError(
            f"Key size must be a multiple of 256 and at least {MIN_RSA_KEY_SIZE}",
            {"key_size": repr(key_size)},
        )


def generate_random_key_pair(key_size: int = RSA_KEY_SIZE) -> KeyPair:
    """
    Generate a random RSA key pair for a device identity.

    Randomness comes from OpenSSL's CSPRNG, which is seeded by the
    operating system. A 4096-bit key takes seconds; keep this off
    latency-sensitive paths.

    Raises:
        InvalidArgumentError: If key_size is unsupported
        CryptoError: If the backend rejects key generation
    """
    _check_key_size(key_size)
    try:
        private_key = rsa.generate_private_key(public_exponent=RSA_PUBLIC_EXPONENT, key_size=key_size)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise CryptoError(
            f"Key generation failed: {e}", {"key_size": key_size}, ErrorCode.E104_KEY_GENERATION_FAILED
        ) from e

    keypair = _serialize(private_key)
    logger.info(f"Generated random {key_size}-bit identity: {format_fingerprint(keypair.fingerprint()[:16])}")
    return keypair


def _is_probable_prime(n: int) -> bool:
    """Miller-Rabin with fixed bases; candidates have already been sieved."""
    d = n - 1
    s = 0
    while d % 2 == 0:
        d //= 2
        s += 1

    for base in MILLER_RABIN_BASES:
        x = pow(base, d, n)
        if x == 1 or x == n - 1:
            continue
        for _ in range(s - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False
    return True


def _next_prime(stream: ChaCha20Stream, bits: int) -> int:
    """Draw candidates from the stream until one is a usable RSA prime."""
    top_bits = 0b11 << (bits - 2)
    while True:
        candidate = int.from_bytes(stream.next_bytes(bits // 8), "big") | top_bits | 1
        if any(candidate % p == 0 for p in SMALL_PRIMES):
            continue
        if (candidate - 1) % RSA_PUBLIC_EXPONENT == 0:
            continue
        if _is_probable_prime(candidate):
            return candidate


def generate_key_pair_from_seed(seed: bytes, key_size: int) -> KeyPair:
    """
    Deterministically generate an RSA key pair from a 32-byte seed.

    Same seed and key size always give byte-identical PEM output.

    Raises:
        InvalidArgumentError: If the seed is not 32 bytes or key_size is unsupported
        CryptoError: If the resulting numbers are rejected by the backend
    """
    _check_key_size(key_size)
    if not isinstance(seed, (bytes, bytearray)) or len(seed) != SEED_SIZE:
        raise InvalidArgumentError(f"Seed must be {SEED_SIZE} bytes")

    prime_bits = key_size // 2
    min_distance = 1 << (prime_bits - KEYGEN_MIN_PRIME_DISTANCE_BITS)
    e = RSA_PUBLIC_EXPONENT
    logger.debug(f"Deterministic {key_size}-bit generation, keygen v{KEYGEN_ALGORITHM_VERSION}")

    with ChaCha20Stream(seed) as stream:
        p = _next_prime(stream, prime_bits)
        q = _next_prime(stream, prime_bits)
        while abs(p - q) < min_distance:
            q = _next_prime(stream, prime_bits)

    lam = (p - 1) * (q - 1) // gcd(p - 1, q - 1)
    d = pow(e, -1, lam)

    try:
        private_key = rsa.RSAPrivateNumbers(
            p=p,
            q=q,
            d=d,
            dmp1=rsa.rsa_crt_dmp1(d, p),
            dmq1=rsa.rsa_crt_dmq1(d, q),
            iqmp=rsa.rsa_crt_iqmp(p, q),
            public_numbers=rsa.RSAPublicNumbers(e=e, n=p * q),
        ).private_key()
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise CryptoError(
            "Deterministic key generation failed", code=ErrorCode.E104_KEY_GENERATION_FAILED
        ) from exc

    return _serialize(private_key)


def _generate_from_phrase(words: PhraseInput, expected: int, key_size: int) -> KeyPair:
    normalized = normalize_phrase(words)
    if len(normalized) != expected:
        raise InvalidArgumentError(
            f"Expected exactly {expected} words, got {len(normalized)}",
            {"word_count": len(normalized), "expected": expected},
        )

    seed = bytearray(derive_seed(normalized))
    try:
        keypair = generate_key_pair_from_seed(bytes(seed), key_size)
    finally:
        secure_zero(seed)

    logger.info(f"Derived {key_size}-bit identity from {expected} words: {format_fingerprint(keypair.fingerprint()[:16])}")
    return keypair


def generate_from_contact_phrase(words: PhraseInput) -> KeyPair:
    """
    Derive the 2048-bit contact key pair from an 8-word contact code.

    Raises:
        InvalidArgumentError: Unless exactly 8 words are given
        InvalidPhraseError: If a word is unknown or the checksum fails
    """
    return _generate_from_phrase(words, CODE_WORD_COUNT, CONTACT_RSA_KEY_SIZE)


def generate_from_full_phrase(words: PhraseInput) -> KeyPair:
    """
    Derive the 4096-bit key pair from the 16-word full phrase.

    Raises:
        InvalidArgumentError: Unless exactly 16 words are given
        InvalidPhraseError: If a word is unknown or a checksum fails
    """
    return _generate_from_phrase(words, FULL_WORD_COUNT, RSA_KEY_SIZE)
