# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Use-cases for revoking sign-in sessions."""

from __future__ import annotations

from userauth.domain.users.entities import Session
from userauth.domain.users.repositories import SessionRepository
from userauth.shared.logging import logger


class LogoutUserUseCase:
    def __init__(self, *, sessions: SessionRepository) -> None:
        self._sessions = sessions

    def execute(self, session: Session) -> None:
        if self._sessions.revoke(session.jti):
            logger.info(f"users.signout: session revoked user_id={session.user_id}")
        else:
            logger.warning(f"users.signout: session already gone user_id={session.user_id}")


class LogoutEverywhereUseCase:
    def __init__(self, *, sessions: SessionRepository) -> None:
        self._sessions = sessions

    def execute(self, user_id: int) -> int:
        revoked = self._sessions.revoke_all(user_id)
        logger.info(f"users.signout_all: user_id={user_id} sessions_revoked={revoked}")
        return revoked
