"""
Pytest configuration and fixtures for NonMessenger tests.

Provides common fixtures and test utilities for unit and integration tests.
Random key pairs use 2048 bits so the suite stays fast; 4096-bit
generation is only exercised by tests marked slow.
"""

import shutil
import tempfile
from pathlib import Path
from typing import Generator, List

import pytest

from nonmessenger.entropy import ChaCha20Stream
from nonmessenger.keygen import KeyPair, generate_random_key_pair
from nonmessenger.phrase import generate_phrase

TEST_KEY_SIZE = 2048


class CountingRandomness:
    """Fixed byte source: 0x00, 0x01, ... wrapping at 0xff."""

    def __init__(self):
        self.counter = 0

    def next_bytes(self, n: int) -> bytes:
        out = bytes((self.counter + i) % 256 for i in range(n))
        self.counter += n
        return out


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for test data.

    Yields:
        Path: Temporary directory path

    Cleanup:
        Automatically removes directory after test
    """
    tmp = Path(tempfile.mkdtemp(prefix="nonmessenger_test_"))
    try:
        yield tmp
    finally:
        shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def fixed_rng() -> Generator[ChaCha20Stream, None, None]:
    """
    Provide a reproducible randomness provider.

    Yields:
        ChaCha20Stream keyed with a constant seed
    """
    with ChaCha20Stream(b"\x42" * 32) as stream:
        yield stream


@pytest.fixture
def counting_rng() -> CountingRandomness:
    """Provide a provider whose output is known byte for byte."""
    return CountingRandomness()


@pytest.fixture(scope="session")
def alice_keypair() -> KeyPair:
    """Session-wide random key pair for the first peer."""
    return generate_random_key_pair(TEST_KEY_SIZE)


@pytest.fixture(scope="session")
def bob_keypair() -> KeyPair:
    """Session-wide random key pair for the second peer."""
    return generate_random_key_pair(TEST_KEY_SIZE)


@pytest.fixture(scope="session")
def contact_words() -> List[str]:
    """A valid 8-word contact code, identical on every run."""
    with ChaCha20Stream(b"\x01" * 32) as stream:
        return generate_phrase(8, stream)


@pytest.fixture(scope="session")
def secret_words() -> List[str]:
    """A valid 8-word secret code, identical on every run."""
    with ChaCha20Stream(b"\x02" * 32) as stream:
        return generate_phrase(8, stream)


@pytest.fixture
def sample_config_toml() -> str:
    """
    Provide sample configuration file contents.

    Returns:
        str: TOML text overriding a few defaults
    """
    return (
        "[logging]\n"
        'level = "DEBUG"\n'
        "file_logging = true\n"
        "\n"
        "[qr]\n"
        'error_correction = "H"\n'
        "box_size = 6\n"
    )


# Pytest marks
def pytest_configure(config):
    """
    Configure pytest markers.

    Args:
        config: Pytest configuration object
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# Test collection hooks
def pytest_collection_modifyitems(config, items):
    """
    Modify test collection to add markers based on test location.

    Args:
        config: Pytest configuration
        items: List of collected test items
    """
    for item in items:
        # Add unit marker to tests in unit/ directory
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

        # Add integration marker to integration test modules
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
