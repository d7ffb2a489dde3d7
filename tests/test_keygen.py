"""
NonMessenger - Identity key generation tests.
"""

import logging
from math import gcd

import pytest
from cryptography.hazmat.primitives import serialization

from nonmessenger.errors import CryptoError, ErrorCode, InvalidArgumentError, InvalidPhraseError
from nonmessenger.keygen import (
    KeyPair,
    fingerprint,
    generate_from_contact_phrase,
    generate_from_full_phrase,
    generate_key_pair_from_seed,
    generate_random_key_pair,
    load_private_key,
    load_public_key,
    _is_probable_prime,
)
from nonmessenger.utils import validate_private_key_pem, validate_public_key_pem


def test_random_keypair_format(alice_keypair):
    """Test that key pairs are exported as SPKI and PKCS8 PEM."""
    assert validate_public_key_pem(alice_keypair.public_key)
    assert validate_private_key_pem(alice_keypair.private_key)
    assert load_public_key(alice_keypair.public_key).key_size == 2048


def test_random_keypairs_differ(alice_keypair, bob_keypair):
    """Test that two random identities are distinct."""
    assert alice_keypair.public_key != bob_keypair.public_key
    assert alice_keypair.private_key != bob_keypair.private_key


def test_random_keypair_halves_match(alice_keypair):
    """Test that the public half belongs to the private half."""
    private_key = load_private_key(alice_keypair.private_key)
    derived = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")
    assert derived == alice_keypair.public_key
    assert private_key.public_key().public_numbers().e == 65537


@pytest.mark.slow
def test_random_keypair_default_size():
    """Test that the default identity is 4096 bits."""
    keypair = generate_random_key_pair()
    assert load_public_key(keypair.public_key).key_size == 4096


@pytest.mark.parametrize("size", [512, 1000, 2047, "2048", True])
def test_random_keypair_rejects_size(size):
    """Test that unsupported key sizes are rejected."""
    with pytest.raises(InvalidArgumentError):
        generate_random_key_pair(size)


def test_random_keypair_logs_grouped_fingerprint(caplog):
    """Test that the identity log line shows the fingerprint prefix in groups of four."""
    caplog.set_level(logging.INFO, logger="nonmessenger.keygen")
    keypair = generate_random_key_pair(2048)
    prefix = keypair.fingerprint()[:16]
    grouped = " ".join(prefix[i : i + 4] for i in range(0, 16, 4))
    assert f"Generated random 2048-bit identity: {grouped}" in caplog.text


def test_keypair_serialization(alice_keypair):
    """Test keypair serialization and deserialization."""
    data = alice_keypair.to_dict()
    assert set(data) == {"publicKey", "privateKey"}
    assert KeyPair.from_dict(data) == alice_keypair


def test_keypair_from_dict_missing_field():
    """Test that incomplete key pair data is rejected."""
    with pytest.raises(InvalidArgumentError):
        KeyPair.from_dict({"publicKey": "x"})


def test_keypair_repr_hides_private_key(alice_keypair):
    """Test that the private key never appears in repr."""
    assert "PRIVATE" not in repr(alice_keypair)


def test_fingerprint(alice_keypair, bob_keypair):
    """Test fingerprint format and stability."""
    fp = fingerprint(alice_keypair.public_key)
    assert len(fp) == 64
    assert all(c in "0123456789abcdef" for c in fp)
    assert alice_keypair.fingerprint() == fp
    assert fingerprint(alice_keypair.public_key.encode("ascii")) == fp
    assert fingerprint(bob_keypair.public_key) != fp


@pytest.mark.parametrize("pem", ["", "not a key", "-----BEGIN PUBLIC KEY-----\nAAAA\n-----END PUBLIC KEY-----\n"])
def test_load_public_key_rejects_garbage(pem):
    """Test that malformed public keys raise CryptoError."""
    with pytest.raises(CryptoError) as exc_info:
        load_public_key(pem)
    assert exc_info.value.code == ErrorCode.E103_INVALID_KEY


def test_load_private_key_rejects_public_pem(alice_keypair):
    """Test that a public key is not accepted as a private key."""
    with pytest.raises(CryptoError):
        load_private_key(alice_keypair.public_key)


def test_load_key_rejects_wrong_type():
    """Test that non-text keys are rejected."""
    with pytest.raises(InvalidArgumentError):
        load_public_key(12345)


def test_miller_rabin():
    """Test the primality check on known primes and composites."""
    assert _is_probable_prime(2003)
    assert _is_probable_prime((1 << 127) - 1)
    assert not _is_probable_prime(2001)
    # Carmichael number
    assert not _is_probable_prime(41041)


def test_seed_keygen_deterministic():
    """Test that one seed always gives byte-identical PEM output."""
    seed = bytes(range(32))
    first = generate_key_pair_from_seed(seed, 1024)
    second = generate_key_pair_from_seed(seed, 1024)
    assert first == second


def test_seed_keygen_seeds_differ():
    """Test that different seeds give different keys."""
    a = generate_key_pair_from_seed(b"\x00" * 32, 1024)
    b = generate_key_pair_from_seed(b"\x01" * 32, 1024)
    assert a.public_key != b.public_key


def test_seed_keygen_key_shape():
    """Test modulus size, exponent and prime spacing of seeded keys."""
    keypair = generate_key_pair_from_seed(b"\x05" * 32, 1024)
    numbers = load_private_key(keypair.private_key).private_numbers()
    p, q = numbers.p, numbers.q
    assert numbers.public_numbers.e == 65537
    assert numbers.public_numbers.n.bit_length() == 1024
    assert p.bit_length() == q.bit_length() == 512
    assert abs(p - q) >= 1 << (512 - 100)
    lam = (p - 1) * (q - 1) // gcd(p - 1, q - 1)
    assert (numbers.d * 65537) % lam == 1


@pytest.mark.parametrize("seed", [b"", b"\x00" * 31, b"\x00" * 33, None])
def test_seed_keygen_rejects_bad_seed(seed):
    """Test that seeds must be 32 bytes."""
    with pytest.raises(InvalidArgumentError):
        generate_key_pair_from_seed(seed, 1024)


def test_contact_phrase_deterministic(contact_words):
    """Test that the contact phrase regenerates the same 2048-bit key pair."""
    first = generate_from_contact_phrase(contact_words)
    second = generate_from_contact_phrase(" ".join(contact_words))
    assert first == second
    assert load_public_key(first.public_key).key_size == 2048


def test_contact_phrases_differ(contact_words, secret_words):
    """Test that different contact phrases give different key pairs."""
    assert (generate_from_contact_phrase(contact_words).public_key
            != generate_from_contact_phrase(secret_words).public_key)


@pytest.mark.parametrize("count", [7, 9, 16])
def test_contact_phrase_word_count(contact_words, secret_words, count):
    """Test that contact generation needs exactly 8 words."""
    pool = list(contact_words) + list(secret_words)
    with pytest.raises(InvalidArgumentError):
        generate_from_contact_phrase(pool[:count])


def test_contact_phrase_unknown_word(contact_words):
    """Test that an unknown word fails contact generation."""
    words = list(contact_words[:7]) + ["xyzzy"]
    with pytest.raises(InvalidPhraseError):
        generate_from_contact_phrase(words)


@pytest.mark.parametrize("count", [8, 15, 17])
def test_full_phrase_word_count(contact_words, secret_words, count):
    """Test that full generation needs exactly 16 words."""
    pool = (list(contact_words) + list(secret_words)) * 2
    with pytest.raises(InvalidArgumentError):
        generate_from_full_phrase(pool[:count])


@pytest.mark.slow
def test_full_phrase_deterministic(contact_words, secret_words):
    """Test that the 16-word phrase regenerates the same 4096-bit key pair."""
    words = list(contact_words) + list(secret_words)
    first = generate_from_full_phrase(words)
    second = generate_from_full_phrase(words)
    assert first == second
    assert load_public_key(first.public_key).key_size == 4096
