# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from userauth.application.services.links import LinkBuilder
from userauth.domain.users.entities import PublicUser, User, normalize_email
from userauth.domain.users.exceptions import AccountValidationError, DuplicateEmailError
from userauth.domain.users.policies import (
    PasswordPolicy,
    check_email,
    check_full_name,
    normalize_full_name,
)
from userauth.domain.users.repositories import (
    Mailer,
    PasswordHasher,
    TokenService,
    UserRepository,
)
from userauth.shared.logging import logger


class RegisterUserUseCase:
    def __init__(
        self,
        *,
        users: UserRepository,
        tokens: TokenService,
        password_hasher: PasswordHasher,
        mailer: Mailer,
        links: LinkBuilder,
        password_policy: PasswordPolicy,
    ) -> None:
        self._users = users
        self._tokens = tokens
        self._password_hasher = password_hasher
        self._mailer = mailer
        self._links = links
        self._password_policy = password_policy

    def execute(self, email: str, password: str, full_name: str | None = None) -> PublicUser:
        normalized = normalize_email(email)
        full_name = normalize_full_name(full_name)
        violations = (
            check_email(normalized)
            + self._password_policy.check(password)
            + check_full_name(full_name)
        )
        if violations:
            logger.info(f"users.signup: rejected fields={sorted({v['field'] for v in violations})}")
            raise AccountValidationError(violations)

        if self._users.find_by_email(normalized) is not None:
            logger.info("users.signup: duplicate email")
            raise DuplicateEmailError()

        hashed = self._password_hasher.hash(password)
        # The unique index still decides races between concurrent signups
        user = self._users.add(normalized, hashed, full_name)
        logger.info(f"users.signup: created user_id={user.id}")

        self._send_confirmation(user)
        return user.public()

    def _send_confirmation(self, user: User) -> None:
        issued = self._tokens.issue_confirmation(user.id)
        link = self._links.confirmation(issued.token)
        try:
            self._mailer.send_confirmation(user.email, link)
        except Exception as exc:
            logger.warning(
                f"users.signup: confirmation email failed user_id={user.id} "
                f"error={type(exc).__name__}: {exc}"
            )
        else:
            logger.info(f"users.signup: confirmation email sent user_id={user.id}")
