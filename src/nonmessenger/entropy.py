"""
NonMessenger - Randomness providers.

Two byte sources are used by the core:

- SystemRandomness: the operating system CSPRNG. Used for fresh keys,
  nonces, word codes and device identifiers. If the OS source fails the
  error propagates as EntropyError; there is no weaker fallback.
- ChaCha20Stream: a deterministic keystream keyed by a 32-byte seed.
  Used only to drive reproducible key generation from a word phrase.

Components that need randomness take an explicit ``rng`` handle so tests
can substitute a fixed source. When no handle is given the process-wide
SystemRandomness instance from default_provider() is used.
"""

import logging
import os
import threading
from typing import Optional

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms

from .constants import KEYGEN_STREAM_NONCE, SEED_SIZE
from .errors import EntropyError, InvalidArgumentError
from .utils import secure_zero

logger = logging.getLogger(__name__)


def _check_count(n: int) -> None:
    if isinstance(n, bool) or not isinstance(n, int) or n < 0:
        raise InvalidArgumentError(
            f"Byte count must be a non-negative integer, got {n!r}", {"count": repr(n)}
        )


class RandomnessProvider:
    """Interface for byte sources."""

    def next_bytes(self, n: int) -> bytes:
        """Return ``n`` bytes from the source."""
        raise NotImplementedError


class SystemRandomness(RandomnessProvider):
    """
    Cryptographically secure random bytes from the operating system.

    os.urandom is safe to call from several threads at once, so no lock
    is held here.
    """

    def next_bytes(self, n: int) -> bytes:
        _check_count(n)
        try:
            return os.urandom(n)
        except (OSError, NotImplementedError) as e:
            logger.critical(f"Operating system entropy source failed: {e}")
            raise EntropyError(
                f"Operating system entropy source failed: {e}", {"error": str(e)}
            ) from e


class ChaCha20Stream(RandomnessProvider):
    """
    Deterministic byte stream: the ChaCha20 keystream for a 32-byte seed.

    The keystream starts at block counter 0 with an all-zero nonce, so the
    same seed yields the same bytes on every platform and library version.
    Reads are serialized by a lock; concurrent readers each get a distinct,
    contiguous slice of the stream.
    """

    def __init__(self, seed: bytes):
        if not isinstance(seed, (bytes, bytearray)) or len(seed) != SEED_SIZE:
            raise InvalidArgumentError(
                f"Stream seed must be {SEED_SIZE} bytes",
                {"length": len(seed) if isinstance(seed, (bytes, bytearray)) else None},
            )
        self._seed = bytearray(seed)
        self._lock = threading.Lock()
        cipher = Cipher(algorithms.ChaCha20(bytes(self._seed), KEYGEN_STREAM_NONCE), mode=None)
        self._encryptor = cipher.encryptor()
        self._position = 0

    @property
    def position(self) -> int:
        """Number of bytes consumed so far."""
        return self._position

    def next_bytes(self, n: int) -> bytes:
        _check_count(n)
        with self._lock:
            if self._encryptor is None:
                raise InvalidArgumentError("Stream has been closed")
            self._position += n
            return self._encryptor.update(b"\x00" * n)

    def close(self) -> None:
        """Drop the cipher state and wipe the stored seed."""
        with self._lock:
            self._encryptor = None
            secure_zero(self._seed)

    def __enter__(self) -> "ChaCha20Stream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


_default_provider: Optional[SystemRandomness] = None
_default_lock = threading.Lock()


def default_provider() -> SystemRandomness:
    """Return the process-wide system randomness provider."""
    global _default_provider
    if _default_provider is None:
        with _default_lock:
            if _default_provider is None:
                _default_provider = SystemRandomness()
    return _default_provider


def resolve_provider(rng: Optional[RandomnessProvider]) -> RandomnessProvider:
    """Return ``rng`` or the default system provider when it is None."""
    return rng if rng is not None else default_provider()
