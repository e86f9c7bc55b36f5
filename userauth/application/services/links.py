"""Builds the links embedded in outgoing account emails."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlencode

from userauth.shared.config import SmtpConfig


def _with_token(url: str, token: str) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode({'token': token})}"


@dataclass(slots=True, frozen=True)
class LinkBuilder:
    confirmation_url: str
    password_reset_url: str

    @classmethod
    def from_config(cls, config: SmtpConfig) -> LinkBuilder:
        return cls(
            confirmation_url=config.confirmation_url,
            password_reset_url=config.password_reset_url,
        )

    def confirmation(self, token: str) -> str:
        return _with_token(self.confirmation_url, token)

    def password_reset(self, token: str) -> str:
        return _with_token(self.password_reset_url, token)
