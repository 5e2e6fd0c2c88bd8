"""
SMTP delivery of transactional emails.

When no SMTP host is configured the message is logged instead of sent and
delivery counts as successful (development mode).
"""

import asyncio
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from commerce_iam.app.services.notification import INotificationService

logger = logging.getLogger(__name__)


def redact_email(email: str) -> str:
    """Redact an email address for logging"""
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


class SmtpNotificationService(INotificationService):
    def __init__(
        self,
        *,
        smtp_host: Optional[str] = None,
        smtp_port: int = 587,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        smtp_use_tls: bool = True,
        from_email: Optional[str] = None,
        from_name: str = "Commerce",
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.smtp_use_tls = smtp_use_tls
        self.from_email = from_email or smtp_user
        self.from_name = from_name

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)

    async def send(self, to: str, subject: str, text: str, html: str) -> bool:
        if not self.is_configured:
            logger.info(f"Email (dev mode) to {redact_email(to)}: {subject} | {text[:200]}")
            return True
        return await asyncio.to_thread(self._send, to, subject, text, html)

    def _send(self, to: str, subject: str, text: str, html: str) -> bool:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to
        msg.attach(MIMEText(text, "plain"))
        msg.attach(MIMEText(html, "html"))

        context = ssl.create_default_context()
        try:
            if self.smtp_use_tls:
                with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
                    server.starttls(context=context)
                    if self.smtp_user and self.smtp_password:
                        server.login(self.smtp_user, self.smtp_password)
                    server.sendmail(self.from_email, to, msg.as_string())
            else:
                with smtplib.SMTP_SSL(
                    self.smtp_host, self.smtp_port, context=context, timeout=30
                ) as server:
                    if self.smtp_user and self.smtp_password:
                        server.login(self.smtp_user, self.smtp_password)
                    server.sendmail(self.from_email, to, msg.as_string())
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP authentication failed: {e}")
            return False
        except smtplib.SMTPRecipientsRefused as e:
            logger.error(f"SMTP recipient {redact_email(to)} refused: {e}")
            return False
        except smtplib.SMTPException as e:
            logger.error(f"SMTP error sending to {redact_email(to)}: {e}")
            return False
        except (ssl.SSLError, OSError) as e:
            logger.error(f"SMTP connection to {self.smtp_host}:{self.smtp_port} failed: {e}")
            return False

        logger.info(f"Email sent to {redact_email(to)}: {subject}")
        return True
