from .mailers import MailDeliveryError, OutboxMailer, OutgoingEmail, SmtpMailer, build_mailer
from .templates import EmailTemplates

__all__ = [
    "EmailTemplates",
    "MailDeliveryError",
    "OutboxMailer",
    "OutgoingEmail",
    "SmtpMailer",
    "build_mailer",
]
