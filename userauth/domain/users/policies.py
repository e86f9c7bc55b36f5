# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Input rules for account credentials.

Every check returns a list of violations instead of raising so that callers
can report every problem with a submission at once. A violation is a mapping
with ``field``, ``type`` and ``message`` keys, the same shape the HTTP layer
uses for request validation errors.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from email_validator import EmailNotValidError, validate_email

MAX_EMAIL_LENGTH = 255
MIN_FULL_NAME_LENGTH = 2
MAX_FULL_NAME_LENGTH = 40

_SPECIAL_RE = re.compile(r"[!@#$%^&*(),.?\":{}|<>_\-+=\[\]\\\/;'`~]")
# Letters of any script, separated by spaces, hyphens or apostrophes
_FULL_NAME_RE = re.compile(r"^[^\W\d_]+(?:[\s'-]+[^\W\d_]+)*$")


def _violation(field: str, kind: str, message: str) -> dict[str, str]:
    return {"field": field, "type": kind, "message": message}


def check_email(email: str) -> list[dict[str, str]]:
    if not email:
        return [_violation("email", "missing", "Email is required")]
    if len(email) > MAX_EMAIL_LENGTH:
        return [
            _violation(
                "email", "email_too_long",
                f"Email is too long (maximum {MAX_EMAIL_LENGTH} characters)",
            )
        ]
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return [_violation("email", "email_invalid", "Invalid email format")]
    return []


def normalize_full_name(full_name: str | None) -> str | None:
    if full_name is None:
        return None
    collapsed = " ".join(full_name.split())
    return collapsed or None


def check_full_name(full_name: str | None) -> list[dict[str, str]]:
    """Full name is optional; when present it must look like a person's name."""
    if full_name is None:
        return []
    if len(full_name) < MIN_FULL_NAME_LENGTH:
        return [
            _violation(
                "fullName", "full_name_too_short",
                f"Full name must be at least {MIN_FULL_NAME_LENGTH} characters long",
            )
        ]
    if len(full_name) > MAX_FULL_NAME_LENGTH:
        return [
            _violation(
                "fullName", "full_name_too_long",
                f"Full name must be at most {MAX_FULL_NAME_LENGTH} characters long",
            )
        ]
    if not _FULL_NAME_RE.match(full_name):
        return [
            _violation(
                "fullName", "full_name_invalid",
                "Full name may only contain letters, spaces, hyphens and apostrophes",
            )
        ]
    return []


@dataclass(slots=True, frozen=True)
class PasswordPolicy:
    min_length: int = 8
    max_length: int = 128
    require_letter: bool = True
    require_digit: bool = True
    require_uppercase: bool = False
    require_special: bool = False

    def check(self, password: str, *, field: str = "password") -> list[dict[str, str]]:
        if not password:
            return [_violation(field, "missing", "Password is required")]

        violations = []
        if len(password) < self.min_length:
            violations.append(
                _violation(
                    field, "password_too_short",
                    f"Password must be at least {self.min_length} characters long",
                )
            )
        if len(password) > self.max_length:
            violations.append(
                _violation(
                    field, "password_too_long",
                    f"Password must be at most {self.max_length} characters long",
                )
            )
        if self.require_letter and not re.search(r"[A-Za-z]", password):
            violations.append(
                _violation(field, "password_no_letter", "Password must contain at least one letter")
            )
        if self.require_digit and not re.search(r"\d", password):
            violations.append(
                _violation(field, "password_no_digit", "Password must contain at least one number")
            )
        if self.require_uppercase and not re.search(r"[A-Z]", password):
            violations.append(
                _violation(
                    field, "password_no_uppercase",
                    "Password must contain at least one uppercase letter",
                )
            )
        if self.require_special and not _SPECIAL_RE.search(password):
            violations.append(
                _violation(
                    field, "password_no_special",
                    "Password must contain at least one special character",
                )
            )
        return violations
