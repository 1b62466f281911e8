"""SMTP mail dispatch"""
import smtplib
from email.message import EmailMessage
from typing import Optional

from app.config import settings
from app.utils.logger import logger


class MailDeliveryError(Exception):
    """Raised when a message cannot be handed to the SMTP server."""


class Mailer:
    """Sends multipart (text + html) messages through the configured SMTP server.

    Sending does not retry; callers decide whether a failure is fatal.
    """

    def send_mail(self, to: str, subject: str, text: str, html: Optional[str] = None) -> None:
        if not settings.mail_configured:
            logger.error(
                "Attempted to send email, but MAIL_HOST/MAIL_USERNAME/MAIL_PASSWORD are not configured",
                extra={"recipient": to, "subject": subject},
            )
            raise MailDeliveryError("Email service is not configured.")
        if not to:
            raise MailDeliveryError("Email recipient address is required.")

        sender = settings.MAIL_FROM or settings.MAIL_USERNAME
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = f"{settings.MAIL_FROM_NAME} <{sender}>"
        msg["To"] = to
        msg.set_content(text)
        if html:
            msg.add_alternative(html, subtype="html")

        try:
            if settings.MAIL_USE_SSL or settings.MAIL_PORT == 465:
                with smtplib.SMTP_SSL(settings.MAIL_HOST, settings.MAIL_PORT, timeout=settings.MAIL_TIMEOUT_SECONDS) as server:
                    server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
                    server.send_message(msg)
            else:
                with smtplib.SMTP(settings.MAIL_HOST, settings.MAIL_PORT, timeout=settings.MAIL_TIMEOUT_SECONDS) as server:
                    if settings.MAIL_USE_TLS:
                        server.starttls()
                    server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
                    server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(
                f"Failed to send email: {exc}",
                extra={"recipient": to, "subject": subject},
                exc_info=True,
            )
            raise MailDeliveryError(f"Failed to send email: {exc}") from exc

        logger.info(f"Email sent: {subject}", extra={"recipient": to, "subject": subject})


_mailer = Mailer()


def get_mailer() -> Mailer:
    """FastAPI dependency; tests override it with a recording fake."""
    return _mailer
