"""Password hashing strategies."""

from __future__ import annotations

import secrets
from functools import cached_property

from werkzeug.security import check_password_hash, generate_password_hash

from userauth.domain.users.exceptions import HashingError
from userauth.domain.users.repositories import PasswordHasher


class WerkzeugPasswordHasher(PasswordHasher):
    """Salted adaptive hashing backed by werkzeug.

    ``method`` is any werkzeug method string, e.g. ``scrypt`` or
    ``pbkdf2:sha256:600000``; the cost factor travels inside the stored hash.
    """

    def __init__(self, method: str = "scrypt") -> None:
        self._method = method

    @cached_property
    def _dummy_hash(self) -> str:
        return str(generate_password_hash(secrets.token_urlsafe(16), method=self._method))

    def hash(self, password: str) -> str:
        if not password:
            raise HashingError(context={"reason": "empty_password"})
        try:
            return str(generate_password_hash(password, method=self._method))
        except ValueError as exc:
            raise HashingError(context={"reason": "unsupported_method"}) from exc

    def verify(self, password: str, hashed: str) -> bool:
        if not password or not hashed:
            return False
        try:
            return bool(check_password_hash(hashed, password))
        except (ValueError, TypeError):
            return False

    def dummy_verify(self, password: str) -> None:
        self.verify(password or "-", self._dummy_hash)
