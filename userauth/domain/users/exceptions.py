# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Sequence
from http import HTTPStatus

from userauth.shared.errors.base import DomainError


class AccountValidationError(DomainError):
    code = "validation_error"
    status = HTTPStatus.BAD_REQUEST

    def __init__(self, violations: Sequence[dict[str, str]]) -> None:
        super().__init__(
            context={
                "fields": sorted({v["field"] for v in violations}),
                "errors": list(violations),
            }
        )


class DuplicateEmailError(DomainError):
    code = "duplicate_email"
    status = HTTPStatus.CONFLICT


class InvalidCredentialsError(DomainError):
    code = "invalid_credentials"
    status = HTTPStatus.UNAUTHORIZED


class EmailNotConfirmedError(DomainError):
    code = "email_not_confirmed"
    status = HTTPStatus.FORBIDDEN


class UserNotFoundError(DomainError):
    code = "user_not_found"
    status = HTTPStatus.NOT_FOUND


class HashingError(DomainError):
    code = "hashing_error"
    status = HTTPStatus.INTERNAL_SERVER_ERROR


class TokenInvalidError(DomainError):
    code = "token_invalid"
    status = HTTPStatus.UNAUTHORIZED


class TokenExpiredError(TokenInvalidError):
    code = "token_expired"


class TokenMalformedError(TokenInvalidError):
    code = "token_malformed"


class InvalidConfirmationLinkError(DomainError):
    """Token failure reported on the browser-facing confirmation and reset links."""

    code = "confirmation_invalid"
    status = HTTPStatus.BAD_REQUEST

    def __init__(self, reason: str) -> None:
        super().__init__(context={"reason": reason})


class SessionRevokedError(TokenInvalidError):
    """Token is well-formed and unexpired but its session was signed out."""

    code = "session_revoked"
