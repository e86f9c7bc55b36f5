# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from userauth.domain.users.entities import PublicUser
from userauth.domain.users.exceptions import TokenInvalidError
from userauth.domain.users.repositories import TokenService, UserRepository
from userauth.shared.logging import logger


class ConfirmEmailUseCase:
    def __init__(self, *, users: UserRepository, tokens: TokenService) -> None:
        self._users = users
        self._tokens = tokens

    def execute(self, token: str, now: datetime | None = None) -> PublicUser:
        user_id = self._tokens.verify_confirmation(token, now)
        user = self._users.find_by_id(user_id)
        if user is None:
            logger.warning(f"users.confirm: token for missing user_id={user_id}")
            raise TokenInvalidError()

        if user.email_confirmed:
            # Repeat clicks on the same link succeed quietly
            logger.info(f"users.confirm: already confirmed user_id={user.id}")
            return user.public()

        self._users.set_confirmed(user.id)
        logger.info(f"users.confirm: ok user_id={user.id}")
        return replace(user, email_confirmed=True).public()
