# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import datetime, timedelta

from userauth.domain.users.entities import ClientInfo, SignInResult, normalize_email
from userauth.domain.users.exceptions import EmailNotConfirmedError, InvalidCredentialsError
from userauth.domain.users.repositories import (
    PasswordHasher,
    SessionRepository,
    TokenService,
    UserRepository,
)
from userauth.shared.logging import logger

DEFAULT_MAX_SESSIONS = 6


class LoginUserUseCase:
    def __init__(
        self,
        *,
        users: UserRepository,
        tokens: TokenService,
        password_hasher: PasswordHasher,
        sessions: SessionRepository,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        session_grace: int = 0,
    ) -> None:
        self._users = users
        self._tokens = tokens
        self._password_hasher = password_hasher
        self._sessions = sessions
        self._max_sessions = max(1, max_sessions)
        # Sessions outlive their token by the verification leeway
        self._session_grace = timedelta(seconds=max(0, session_grace))

    def execute(
        self,
        email: str,
        password: str,
        now: datetime | None = None,
        *,
        client: ClientInfo | None = None,
    ) -> SignInResult:
        normalized = normalize_email(email)
        user = self._users.find_by_email(normalized) if normalized else None

        if user is None:
            # Same hashing cost as a real check so response time says nothing
            self._password_hasher.dummy_verify(password)
            logger.info("users.signin: failed reason=unknown_email")
            raise InvalidCredentialsError()

        if not self._password_hasher.verify(password, user.password_hash):
            logger.info(f"users.signin: failed reason=bad_password user_id={user.id}")
            raise InvalidCredentialsError()

        if not user.email_confirmed:
            logger.info(f"users.signin: blocked reason=unconfirmed user_id={user.id}")
            raise EmailNotConfirmedError()

        issued = self._tokens.issue(user.id, now)
        pruned = self._sessions.prune_expired(user.id, issued.issued_at - self._session_grace)
        if pruned:
            logger.debug(f"users.signin: pruned expired sessions user_id={user.id} count={pruned}")
        self._sessions.create(
            user.id,
            issued.jti,
            issued.expires_at,
            max_sessions=self._max_sessions,
            client=client,
        )
        logger.info(f"users.signin: ok user_id={user.id}")
        return SignInResult(
            user=user.public(),
            token=issued.token,
            expires_at=issued.expires_at,
            expires_in=issued.expires_in,
        )
