# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Use-case for turning a bearer token into the session it belongs to."""

from __future__ import annotations

from datetime import datetime

from userauth.domain.users.entities import Session
from userauth.domain.users.exceptions import SessionRevokedError
from userauth.domain.users.repositories import SessionRepository, TokenService
from userauth.shared.logging import logger


class AuthenticateUserUseCase:
    def __init__(self, *, tokens: TokenService, sessions: SessionRepository) -> None:
        self._tokens = tokens
        self._sessions = sessions

    def execute(self, token: str, now: datetime | None = None) -> Session:
        claims = self._tokens.verify_access(token, now)
        session = self._sessions.find_by_jti(claims.jti)
        if session is None or session.user_id != claims.user_id:
            logger.info(f"users.auth: no live session user_id={claims.user_id}")
            raise SessionRevokedError()
        return session
