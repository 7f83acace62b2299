import logging
import smtplib
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Protocol

from furever_orders.core.config import settings
from furever_orders.errors import DependencyFailure

logger = logging.getLogger(__name__)


class MailTransport(Protocol):
    def send(self, to: str, subject: str, html: str) -> None: ...


class SmtpTransport:
    """Sends HTML mail through any SMTP server (MailHog in dev)."""

    def __init__(self, host: str = None, port: int = None, user: str = None, password: str = None,
                 starttls: bool = None, timeout: float = 10.0):
        self.host = host or settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.user = settings.SMTP_USER if user is None else user
        self.password = settings.SMTP_PASS if password is None else password
        self.starttls = settings.SMTP_STARTTLS if starttls is None else starttls
        self.timeout = timeout

    def send(self, to: str, subject: str, html: str) -> None:
        msg = MIMEText(html, "html", "utf-8")
        msg["Subject"] = subject
        msg["From"] = formataddr((settings.FROM_NAME, settings.FROM_EMAIL))
        msg["To"] = to
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as s:
                if self.starttls:
                    s.starttls()
                if self.user:
                    s.login(self.user, self.password)
                s.sendmail(settings.FROM_EMAIL, [to], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            raise DependencyFailure("smtp", str(e)) from e
        logger.info("Mail %r sent to %s", subject, to)


class NullTransport:
    """Used when MAIL_ENABLED is false."""

    def send(self, to: str, subject: str, html: str) -> None:
        logger.debug("Mail disabled, dropping %r to %s", subject, to)


def get_transport() -> MailTransport:
    return SmtpTransport() if settings.MAIL_ENABLED else NullTransport()
