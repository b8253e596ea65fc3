"""bcrypt password hashing adapter."""

from __future__ import annotations

import pytest
from hiredesk_auth.infra.crypto.bcrypt_hasher import BcryptPasswordHasher


@pytest.fixture(scope="module")
def hasher() -> BcryptPasswordHasher:
    return BcryptPasswordHasher(rounds=4)


def test_hash_is_salted_and_verifiable(hasher):
    first = hasher.hash("correct horse")
    second = hasher.hash("correct horse")

    assert first != second
    assert first.startswith("$2b$04$")
    assert hasher.verify("correct horse", first)
    assert hasher.verify("correct horse", second)
    assert not hasher.verify("wrong horse", first)


def test_verify_never_raises(hasher):
    assert hasher.verify("x", "not-a-bcrypt-digest") is False
    assert hasher.verify("x", None) is False
    assert hasher.verify("", hasher.hash("x")) is False


def test_digest_from_other_cost_still_verifies(hasher):
    digest = BcryptPasswordHasher(rounds=5).hash("pw-12345")

    assert hasher.verify("pw-12345", digest)


def test_long_passwords_are_truncated_to_72_bytes(hasher):
    digest = hasher.hash("a" * 100)

    assert hasher.verify("a" * 72, digest)


def test_rejects_empty_password(hasher):
    with pytest.raises(ValueError):
        hasher.hash("")


@pytest.mark.parametrize("rounds", [3, 32])
def test_rounds_bounds(rounds):
    with pytest.raises(ValueError):
        BcryptPasswordHasher(rounds=rounds)
