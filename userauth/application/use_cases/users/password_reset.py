# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Forgotten-password flow.

Reset tokens are stateless. Each one embeds a fingerprint of the password hash
it was issued against, so it stops working as soon as the password changes and
a link can be used at most once.
"""

from __future__ import annotations

import hashlib
import hmac
from datetime import datetime

from userauth.application.services.links import LinkBuilder
from userauth.domain.users.entities import PublicUser, normalize_email
from userauth.domain.users.exceptions import AccountValidationError, TokenInvalidError
from userauth.domain.users.policies import PasswordPolicy, check_email
from userauth.domain.users.repositories import (
    Mailer,
    PasswordHasher,
    SessionRepository,
    TokenService,
    UserRepository,
)
from userauth.shared.logging import logger


def password_fingerprint(password_hash: str) -> str:
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:32]


class RequestPasswordResetUseCase:
    def __init__(
        self,
        *,
        users: UserRepository,
        tokens: TokenService,
        mailer: Mailer,
        links: LinkBuilder,
    ) -> None:
        self._users = users
        self._tokens = tokens
        self._mailer = mailer
        self._links = links

    def execute(self, email: str) -> None:
        normalized = normalize_email(email)
        violations = check_email(normalized)
        if violations:
            raise AccountValidationError(violations)

        user = self._users.find_by_email(normalized)
        if user is None:
            # Callers get the same answer either way
            logger.info("users.reset_request: unknown email")
            return

        issued = self._tokens.issue_password_reset(user.id, password_fingerprint(user.password_hash))
        try:
            self._mailer.send_password_reset(user.email, self._links.password_reset(issued.token))
        except Exception as exc:
            logger.warning(
                f"users.reset_request: email failed user_id={user.id} "
                f"error={type(exc).__name__}: {exc}"
            )
        else:
            logger.info(f"users.reset_request: email sent user_id={user.id}")


class ResetPasswordUseCase:
    def __init__(
        self,
        *,
        users: UserRepository,
        tokens: TokenService,
        password_hasher: PasswordHasher,
        password_policy: PasswordPolicy,
        sessions: SessionRepository,
    ) -> None:
        self._users = users
        self._tokens = tokens
        self._password_hasher = password_hasher
        self._password_policy = password_policy
        self._sessions = sessions

    def execute(self, token: str, new_password: str, now: datetime | None = None) -> PublicUser:
        user_id, fingerprint = self._tokens.verify_password_reset(token, now)
        user = self._users.find_by_id(user_id)
        if user is None or not hmac.compare_digest(
            fingerprint, password_fingerprint(user.password_hash)
        ):
            logger.warning(f"users.reset: stale or unknown token user_id={user_id}")
            raise TokenInvalidError()

        violations = self._password_policy.check(new_password)
        if violations:
            raise AccountValidationError(violations)

        self._users.update_password(user.id, self._password_hasher.hash(new_password))
        # Whoever held the old password loses every device they signed in on
        revoked = self._sessions.revoke_all(user.id)
        logger.info(f"users.reset: password updated user_id={user.id} sessions_revoked={revoked}")
        return user.public()
