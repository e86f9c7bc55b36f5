from __future__ import annotations

import pytest

from userauth.application.services.password_hashing import WerkzeugPasswordHasher
from userauth.domain.users.exceptions import HashingError

FAST_METHOD = "pbkdf2:sha256:1000"


@pytest.fixture()
def hasher() -> WerkzeugPasswordHasher:
    return WerkzeugPasswordHasher(method=FAST_METHOD)


def test_hash_verifies_and_is_salted(hasher: WerkzeugPasswordHasher) -> None:
    first = hasher.hash("secret123")
    second = hasher.hash("secret123")

    assert first != second
    assert first.startswith("pbkdf2:sha256:1000$")
    assert "secret123" not in first
    assert hasher.verify("secret123", first)
    assert hasher.verify("secret123", second)


def test_verify_rejects_wrong_password(hasher: WerkzeugPasswordHasher) -> None:
    hashed = hasher.hash("secret123")

    assert not hasher.verify("secret124", hashed)
    assert not hasher.verify("", hashed)


@pytest.mark.parametrize("hashed", ["", "plain-text", "md5$x$y"])
def test_verify_tolerates_garbage_hashes(hasher: WerkzeugPasswordHasher, hashed: str) -> None:
    assert hasher.verify("secret123", hashed) is False


def test_empty_password_cannot_be_hashed(hasher: WerkzeugPasswordHasher) -> None:
    with pytest.raises(HashingError) as excinfo:
        hasher.hash("")
    assert excinfo.value.context == {"reason": "empty_password"}


def test_unsupported_method_is_a_hashing_error() -> None:
    with pytest.raises(HashingError):
        WerkzeugPasswordHasher(method="rot13").hash("secret123")


def test_dummy_verify_runs_without_a_user(hasher: WerkzeugPasswordHasher) -> None:
    assert hasher.dummy_verify("secret123") is None
    assert hasher.dummy_verify("") is None
