# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .use_cases.users.authenticate_user import AuthenticateUserUseCase
from .use_cases.users.confirm_email import ConfirmEmailUseCase
from .use_cases.users.get_profile import GetProfileUseCase
from .use_cases.users.login_user import LoginUserUseCase
from .use_cases.users.logout_user import LogoutEverywhereUseCase, LogoutUserUseCase
from .use_cases.users.password_reset import (
    RequestPasswordResetUseCase,
    ResetPasswordUseCase,
)
from .use_cases.users.register_user import RegisterUserUseCase

__all__ = [
    "AuthenticateUserUseCase",
    "ConfirmEmailUseCase",
    "GetProfileUseCase",
    "LoginUserUseCase",
    "LogoutEverywhereUseCase",
    "LogoutUserUseCase",
    "RegisterUserUseCase",
    "RequestPasswordResetUseCase",
    "ResetPasswordUseCase",
]
