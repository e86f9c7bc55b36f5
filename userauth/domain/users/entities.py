# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from userauth.domain.exceptions import InvariantViolation


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AccountState(StrEnum):
    PENDING = "pending"
    ACTIVE = "active"


@dataclass(slots=True, frozen=True)
class PublicUser:
    """User view that is safe to hand to callers: never carries the hash."""

    id: int
    email: str
    email_confirmed: bool
    created_at: datetime
    full_name: str | None = None


@dataclass(slots=True, frozen=True)
class User:

    id: int
    email: str
    password_hash: str = field(repr=False)
    email_confirmed: bool = False
    full_name: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.password_hash:
            raise InvariantViolation("password hash must not be empty", field="password_hash")
        if self.email != normalize_email(self.email):
            raise InvariantViolation("email must be normalized", field="email")

    @property
    def state(self) -> AccountState:
        return AccountState.ACTIVE if self.email_confirmed else AccountState.PENDING

    def public(self) -> PublicUser:
        return PublicUser(
            id=self.id,
            email=self.email,
            email_confirmed=self.email_confirmed,
            created_at=self.created_at,
            full_name=self.full_name,
        )


@dataclass(slots=True, frozen=True)
class IssuedToken:

    token: str = field(repr=False)
    issued_at: datetime
    expires_at: datetime
    jti: str = ""

    @property
    def expires_in(self) -> int:
        return int((self.expires_at - self.issued_at).total_seconds())


@dataclass(slots=True, frozen=True)
class AccessClaims:
    """Verified contents of an access token."""

    user_id: int
    jti: str
    expires_at: datetime


@dataclass(slots=True, frozen=True)
class Session:
    """Server-side record of one signed-in device, keyed by the token's ``jti``."""

    id: int
    user_id: int
    jti: str
    created_at: datetime
    expires_at: datetime
    ip_address: str | None = None
    user_agent: str | None = None


@dataclass(slots=True, frozen=True)
class ClientInfo:
    ip_address: str | None = None
    user_agent: str | None = None


@dataclass(slots=True, frozen=True)
class SignInResult:

    user: PublicUser
    token: str = field(repr=False)
    expires_at: datetime
    expires_in: int
