# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .exceptions import InvariantViolation, InvariantViolationError
from .users.entities import (
    AccountState,
    IssuedToken,
    PublicUser,
    SignInResult,
    User,
    normalize_email,
)

__all__ = [
    "AccountState",
    "InvariantViolation",
    "InvariantViolationError",
    "IssuedToken",
    "PublicUser",
    "SignInResult",
    "User",
    "normalize_email",
]
