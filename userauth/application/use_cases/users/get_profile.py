"""Use-case for reading the authenticated user's account."""

from __future__ import annotations

from userauth.domain.users.entities import PublicUser
from userauth.domain.users.exceptions import UserNotFoundError
from userauth.domain.users.repositories import UserRepository


class GetProfileUseCase:
    def __init__(self, *, users: UserRepository) -> None:
        self._users = users

    def execute(self, user_id: int) -> PublicUser:
        user = self._users.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError()
        return user.public()
