# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from functools import cached_property

from userauth.application.services.links import LinkBuilder
from userauth.application.services.password_hashing import WerkzeugPasswordHasher
from userauth.application.services.tokens import JoseTokenService
from userauth.application.use_cases.users.authenticate_user import AuthenticateUserUseCase
from userauth.application.use_cases.users.confirm_email import ConfirmEmailUseCase
from userauth.application.use_cases.users.get_profile import GetProfileUseCase
from userauth.application.use_cases.users.login_user import LoginUserUseCase
from userauth.application.use_cases.users.logout_user import (
    LogoutEverywhereUseCase,
    LogoutUserUseCase,
)
from userauth.application.use_cases.users.password_reset import (
    RequestPasswordResetUseCase,
    ResetPasswordUseCase,
)
from userauth.application.use_cases.users.register_user import RegisterUserUseCase
from userauth.domain.users.policies import PasswordPolicy
from userauth.domain.users.repositories import Mailer
from userauth.infrastructure.db.session import Database
from userauth.infrastructure.mail.mailers import build_mailer
from userauth.infrastructure.repositories.users.sqlalchemy_user_repository import (
    SqlAlchemySessionRepository,
    SqlAlchemyUserRepository,
)
from userauth.interfaces.http.controllers.health_controller import HealthController
from userauth.interfaces.http.controllers.users_controller import UsersController
from userauth.shared.config import AppConfig
from userauth.shared.middleware.rate_limit import InMemoryRateLimiter, build_rate_limiter


class Container:
    """Builds every component once, from a single ``AppConfig``."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config

    @cached_property
    def database(self) -> Database:
        return Database(self.config.database)

    @cached_property
    def user_repository(self) -> SqlAlchemyUserRepository:
        return SqlAlchemyUserRepository(self.database)

    @cached_property
    def session_repository(self) -> SqlAlchemySessionRepository:
        return SqlAlchemySessionRepository(self.database)

    @cached_property
    def password_hasher(self) -> WerkzeugPasswordHasher:
        return WerkzeugPasswordHasher(method=self.config.password_policy.hash_method)

    @cached_property
    def password_policy(self) -> PasswordPolicy:
        cfg = self.config.password_policy
        return PasswordPolicy(
            min_length=cfg.min_length,
            max_length=cfg.max_length,
            require_letter=cfg.require_letter,
            require_digit=cfg.require_digit,
            require_uppercase=cfg.require_uppercase,
            require_special=cfg.require_special,
        )

    @cached_property
    def token_service(self) -> JoseTokenService:
        return JoseTokenService.from_config(self.config.jwt)

    @cached_property
    def links(self) -> LinkBuilder:
        return LinkBuilder.from_config(self.config.smtp)

    @cached_property
    def mailer(self) -> Mailer:
        return build_mailer(
            self.config.smtp,
            confirmation_ttl=self.config.jwt.confirmation_expiration,
            reset_ttl=self.config.jwt.reset_expiration,
        )

    @cached_property
    def rate_limiter(self) -> InMemoryRateLimiter | None:
        return build_rate_limiter(self.config.security)

    @cached_property
    def register_user_use_case(self) -> RegisterUserUseCase:
        return RegisterUserUseCase(
            users=self.user_repository,
            tokens=self.token_service,
            password_hasher=self.password_hasher,
            mailer=self.mailer,
            links=self.links,
            password_policy=self.password_policy,
        )

    @cached_property
    def login_user_use_case(self) -> LoginUserUseCase:
        return LoginUserUseCase(
            users=self.user_repository,
            tokens=self.token_service,
            password_hasher=self.password_hasher,
            sessions=self.session_repository,
            max_sessions=self.config.security.max_sessions_per_user,
            session_grace=self.config.jwt.leeway,
        )

    @cached_property
    def confirm_email_use_case(self) -> ConfirmEmailUseCase:
        return ConfirmEmailUseCase(users=self.user_repository, tokens=self.token_service)

    @cached_property
    def get_profile_use_case(self) -> GetProfileUseCase:
        return GetProfileUseCase(users=self.user_repository)

    @cached_property
    def request_password_reset_use_case(self) -> RequestPasswordResetUseCase:
        return RequestPasswordResetUseCase(
            users=self.user_repository,
            tokens=self.token_service,
            mailer=self.mailer,
            links=self.links,
        )

    @cached_property
    def reset_password_use_case(self) -> ResetPasswordUseCase:
        return ResetPasswordUseCase(
            users=self.user_repository,
            tokens=self.token_service,
            password_hasher=self.password_hasher,
            password_policy=self.password_policy,
            sessions=self.session_repository,
        )

    @cached_property
    def authenticate_user_use_case(self) -> AuthenticateUserUseCase:
        return AuthenticateUserUseCase(tokens=self.token_service, sessions=self.session_repository)

    @cached_property
    def logout_user_use_case(self) -> LogoutUserUseCase:
        return LogoutUserUseCase(sessions=self.session_repository)

    @cached_property
    def logout_everywhere_use_case(self) -> LogoutEverywhereUseCase:
        return LogoutEverywhereUseCase(sessions=self.session_repository)

    @cached_property
    def users_controller(self) -> UsersController:
        return UsersController(
            register_use_case=self.register_user_use_case,
            login_use_case=self.login_user_use_case,
            confirm_email_use_case=self.confirm_email_use_case,
            request_password_reset_use_case=self.request_password_reset_use_case,
            reset_password_use_case=self.reset_password_use_case,
            get_profile_use_case=self.get_profile_use_case,
            authenticate_use_case=self.authenticate_user_use_case,
            logout_use_case=self.logout_user_use_case,
            logout_everywhere_use_case=self.logout_everywhere_use_case,
            rate_limiter=self.rate_limiter,
        )

    @cached_property
    def health_controller(self) -> HealthController:
        return HealthController(database=self.database)
