"""Unit tests for auth/passwords.py -- bcrypt hashing and verification."""

import pytest

from auth.errors import MalformedHashError
from auth.passwords import DEFAULT_ROUNDS, DUMMY_HASH, hash_password, verify_password

ROUNDS = 4


def test_same_password_hashes_differently() -> None:
    first = hash_password("s3cret-pass", rounds=ROUNDS)
    second = hash_password("s3cret-pass", rounds=ROUNDS)
    assert first != second
    assert verify_password("s3cret-pass", first)
    assert verify_password("s3cret-pass", second)


def test_hash_is_not_the_plaintext() -> None:
    hashed = hash_password("s3cret-pass", rounds=ROUNDS)
    assert "s3cret-pass" not in hashed
    assert hashed.startswith("$2b$04$")


def test_default_cost_factor_is_ten() -> None:
    assert DEFAULT_ROUNDS == 10
    assert hash_password("s3cret-pass").startswith("$2b$10$")


def test_wrong_password_returns_false() -> None:
    hashed = hash_password("s3cret-pass", rounds=ROUNDS)
    assert verify_password("wrong-pass", hashed) is False
    assert verify_password("", hashed) is False


@pytest.mark.parametrize("bad_hash", ["", "plaintext", "$2b$04$tooshort", "sha256$abc$def"])
def test_malformed_hash_raises(bad_hash: str) -> None:
    with pytest.raises(MalformedHashError):
        verify_password("s3cret-pass", bad_hash)


def test_malformed_hash_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        verify_password("s3cret-pass", "not-a-hash")


def test_passwords_longer_than_72_bytes_do_not_raise() -> None:
    long_password = "x" * 100
    hashed = hash_password(long_password, rounds=ROUNDS)
    assert verify_password(long_password, hashed)


def test_non_ascii_passwords_round_trip() -> None:
    hashed = hash_password("pässwörd-ü", rounds=ROUNDS)
    assert verify_password("pässwörd-ü", hashed)
    assert not verify_password("passwort-u", hashed)


def test_dummy_hash_is_a_valid_bcrypt_hash() -> None:
    assert verify_password("anything", DUMMY_HASH) is False
