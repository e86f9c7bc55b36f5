from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from userauth.domain.users.entities import PublicUser, SignInResult


class _Request(BaseModel):
    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)


class SignupRequestDTO(_Request):
    email: str = Field(min_length=1, max_length=255)
    # Strength rules live in the password policy
    password: str = Field(min_length=1, max_length=1024)
    full_name: str | None = Field(None, max_length=255)


class SigninRequestDTO(_Request):
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=1024)


class PasswordResetRequestDTO(_Request):
    email: str = Field(min_length=1, max_length=255)


class PasswordResetConfirmDTO(_Request):
    token: str = Field(min_length=1, max_length=4096)
    password: str = Field(min_length=1, max_length=1024)


class _Response(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class UserDTO(_Response):
    id: int
    email: str
    full_name: str | None = None
    email_confirmed: bool
    created_at: datetime

    @classmethod
    def from_user(cls, user: PublicUser) -> UserDTO:
        return cls(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            email_confirmed=user.email_confirmed,
            created_at=user.created_at,
        )


class UserEnvelopeDTO(_Response):
    user: UserDTO

    @classmethod
    def from_user(cls, user: PublicUser) -> UserEnvelopeDTO:
        return cls(user=UserDTO.from_user(user))


class SignInResponseDTO(_Response):
    user: UserDTO
    token: str
    expires_at: datetime
    expires_in: int

    @classmethod
    def from_result(cls, result: SignInResult) -> SignInResponseDTO:
        return cls(
            user=UserDTO.from_user(result.user),
            token=result.token,
            expires_at=result.expires_at,
            expires_in=result.expires_in,
        )


class MessageDTO(BaseModel):
    ok: bool = True
    message: str


class SignOutAllResponseDTO(_Response):
    ok: bool = True
    message: str
    sessions_revoked: int
