# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import smtplib
import ssl
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid

from userauth.domain.users.repositories import Mailer
from userauth.shared.config import SmtpConfig
from userauth.shared.errors import InfrastructureError
from userauth.shared.logging import logger

from .templates import EmailTemplates

CONFIRMATION_SUBJECT = "Confirm your email address"
PASSWORD_RESET_SUBJECT = "Reset your password"


class MailDeliveryError(InfrastructureError):
    def __init__(self, reason: str) -> None:
        super().__init__("mail_delivery_failed", context={"reason": reason})


@dataclass(frozen=True, slots=True)
class OutgoingEmail:
    to: str
    subject: str
    html: str
    text: str
    link: str


class _TemplatedMailer(ABC):
    def __init__(
        self,
        *,
        app_name: str,
        confirmation_ttl: int,
        reset_ttl: int,
        templates: EmailTemplates | None = None,
    ) -> None:
        self._app_name = app_name
        self._confirmation_ttl = confirmation_ttl
        self._reset_ttl = reset_ttl
        self._templates = templates or EmailTemplates()

    def send_confirmation(self, to_email: str, confirmation_link: str) -> None:
        self._deliver(
            self._compose(
                "confirmation",
                to_email,
                CONFIRMATION_SUBJECT,
                confirmation_link,
                self._confirmation_ttl,
            )
        )

    def send_password_reset(self, to_email: str, reset_link: str) -> None:
        self._deliver(
            self._compose(
                "password_reset", to_email, PASSWORD_RESET_SUBJECT, reset_link, self._reset_ttl
            )
        )

    def _compose(
        self, template: str, to_email: str, subject: str, link: str, ttl: int
    ) -> OutgoingEmail:
        html, text = self._templates.render(
            template,
            app_name=self._app_name,
            link=link,
            expires_minutes=max(1, ttl // 60),
        )
        return OutgoingEmail(to=to_email, subject=subject, html=html, text=text, link=link)

    @abstractmethod
    def _deliver(self, email: OutgoingEmail) -> None: ...


class SmtpMailer(_TemplatedMailer, Mailer):
    def __init__(
        self,
        config: SmtpConfig,
        *,
        confirmation_ttl: int,
        reset_ttl: int,
        templates: EmailTemplates | None = None,
        smtp_factory: Callable[..., smtplib.SMTP] | None = None,
    ) -> None:
        super().__init__(
            app_name=config.from_name,
            confirmation_ttl=confirmation_ttl,
            reset_ttl=reset_ttl,
            templates=templates,
        )
        self._config = config
        self._smtp_factory = smtp_factory

    def _connect(self) -> smtplib.SMTP:
        cfg = self._config
        if self._smtp_factory is not None:
            return self._smtp_factory(cfg.host, cfg.port, timeout=cfg.timeout)
        if cfg.encryption == "ssl":
            return smtplib.SMTP_SSL(
                cfg.host, cfg.port, timeout=cfg.timeout, context=ssl.create_default_context()
            )
        return smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout)

    def _build_message(self, email: OutgoingEmail) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = email.subject
        msg["From"] = formataddr((self._config.from_name, self._config.from_email))
        msg["To"] = email.to
        msg["Message-ID"] = make_msgid()
        # Clients render the last alternative they understand
        msg.attach(MIMEText(email.text, "plain", "utf-8"))
        msg.attach(MIMEText(email.html, "html", "utf-8"))
        return msg

    def _deliver(self, email: OutgoingEmail) -> None:
        message = self._build_message(email)
        try:
            with self._connect() as server:
                if self._config.encryption == "tls":
                    server.starttls(context=ssl.create_default_context())
                if self._config.username:
                    server.login(self._config.username, self._config.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(f"mail.smtp: delivery failed subject={email.subject!r} error={exc}")
            raise MailDeliveryError(type(exc).__name__) from exc
        logger.info(f"mail.smtp: sent subject={email.subject!r} to={email.to}")


class OutboxMailer(_TemplatedMailer, Mailer):
    """Keeps rendered emails in memory instead of sending them.

    Used when no SMTP host is configured, and by the tests to pick up links.
    """

    def __init__(
        self,
        *,
        app_name: str = "UserAuth",
        confirmation_ttl: int = 3600,
        reset_ttl: int = 3600,
        templates: EmailTemplates | None = None,
        maxlen: int = 100,
    ) -> None:
        super().__init__(
            app_name=app_name,
            confirmation_ttl=confirmation_ttl,
            reset_ttl=reset_ttl,
            templates=templates,
        )
        self.outbox: deque[OutgoingEmail] = deque(maxlen=maxlen)

    def _deliver(self, email: OutgoingEmail) -> None:
        self.outbox.append(email)
        logger.info(f"mail.outbox: queued subject={email.subject!r} to={email.to}")

    def last_to(self, to_email: str) -> OutgoingEmail | None:
        for email in reversed(self.outbox):
            if email.to == to_email:
                return email
        return None


def build_mailer(config: SmtpConfig, *, confirmation_ttl: int, reset_ttl: int) -> Mailer:
    if not config.host:
        logger.warning("SMTP_HOST is not set, emails are kept in memory and not delivered")
        return OutboxMailer(
            app_name=config.from_name, confirmation_ttl=confirmation_ttl, reset_ttl=reset_ttl
        )
    return SmtpMailer(config, confirmation_ttl=confirmation_ttl, reset_ttl=reset_ttl)
