# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from .entities import AccessClaims, ClientInfo, IssuedToken, Session, User


class UserRepository(Protocol):
    def add(self, email: str, password_hash: str, full_name: str | None = None) -> User: ...
    def find_by_email(self, email: str) -> User | None: ...
    def find_by_id(self, user_id: int) -> User | None: ...
    def set_confirmed(self, user_id: int) -> bool: ...
    def update_password(self, user_id: int, password_hash: str) -> None: ...
    def delete_by_emails(self, emails: Iterable[str]) -> int: ...


class SessionRepository(Protocol):
    def create(
        self,
        user_id: int,
        jti: str,
        expires_at: datetime,
        *,
        max_sessions: int,
        client: ClientInfo | None = None,
    ) -> Session: ...
    def find_by_jti(self, jti: str) -> Session | None: ...
    def count_for_user(self, user_id: int) -> int: ...
    def prune_expired(self, user_id: int, before: datetime) -> int: ...
    def revoke(self, jti: str) -> bool: ...
    def revoke_all(self, user_id: int) -> int: ...


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...
    def verify(self, password: str, hashed: str) -> bool: ...
    def dummy_verify(self, password: str) -> None: ...


class TokenService(Protocol):
    def issue(self, user_id: int, now: datetime | None = None) -> IssuedToken: ...
    def verify(self, token: str, now: datetime | None = None) -> int: ...
    def verify_access(self, token: str, now: datetime | None = None) -> AccessClaims: ...

    def issue_confirmation(self, user_id: int, now: datetime | None = None) -> IssuedToken: ...
    def verify_confirmation(self, token: str, now: datetime | None = None) -> int: ...

    def issue_password_reset(
        self, user_id: int, fingerprint: str, now: datetime | None = None
    ) -> IssuedToken: ...
    def verify_password_reset(
        self, token: str, now: datetime | None = None
    ) -> tuple[int, str]: ...


class Mailer(Protocol):
    def send_confirmation(self, to_email: str, confirmation_link: str) -> None: ...
    def send_password_reset(self, to_email: str, reset_link: str) -> None: ...
