"""Outgoing account emails.

Two delivery modes, chosen by whether the caller is waiting on the message:

- :func:`send_required`: the user cannot proceed without it (verification code,
  reset code). Failures surface as :class:`InternalError`.
- :func:`send_best_effort`: informational (approval notice). Failures are logged
  with enough context to replay by hand and never retried automatically.
"""
from typing import Optional

from app.utils.errors import InternalError
from app.utils.logger import logger
from app.utils.mailer import MailDeliveryError, Mailer


def send_required(mailer: Mailer, to: str, subject: str, text: str, html: Optional[str], failure_message: str) -> None:
    try:
        mailer.send_mail(to=to, subject=subject, text=text, html=html)
    except MailDeliveryError as exc:
        raise InternalError(failure_message, code="mail_delivery_failed") from exc


def send_best_effort(mailer: Mailer, to: str, subject: str, text: str, html: Optional[str],
                     account_id: Optional[int] = None) -> bool:
    try:
        mailer.send_mail(to=to, subject=subject, text=text, html=html)
        return True
    except Exception as exc:
        logger.warning(
            "Notification delivery failed",
            extra={
                "action": "notification_failed",
                "account_id": account_id,
                "recipient": to,
                "subject": subject,
                "error": str(exc),
            },
        )
        return False


def verification_code_email(name: str, code: str, ttl_minutes: int) -> dict:
    return {
        "subject": "Your Job Portal Verification Code",
        "text": (
            f"Hello {name},\n\nYour verification code is: {code}\n\n"
            f"Please use this code on the verification page to set your password.\n\n"
            f"This code expires in {ttl_minutes} minutes."
        ),
        "html": (
            f"<p>Hello {name},</p><p>Your verification code is: <strong>{code}</strong></p>"
            f"<p>Please use this code on the verification page to set your password.</p>"
            f"<p>This code expires in {ttl_minutes} minutes.</p>"
        ),
    }


def employer_approved_email(name: str, login_url: str) -> dict:
    return {
        "subject": "Your Job Portal Employer Account Has Been Approved!",
        "text": (
            f"Hello {name},\n\nYour employer account has been approved by an administrator. "
            f"You can now log in at {login_url}"
        ),
        "html": (
            f"<p>Hello {name},</p><p>Your employer account has been approved by an administrator.</p>"
            f'<p>You can now <a href="{login_url}">log in</a>.</p>'
        ),
    }


def password_reset_email(name: str, code: str, ttl_minutes: int) -> dict:
    return {
        "subject": "Your Password Reset Code",
        "text": (
            f"Hello {name},\n\nYour password reset code is: {code}\n\n"
            f"This code expires in {ttl_minutes} minutes. If you did not request a reset, ignore this email."
        ),
        "html": (
            f"<p>Hello {name},</p><p>Your password reset code is: <strong>{code}</strong></p>"
            f"<p>This code expires in {ttl_minutes} minutes. If you did not request a reset, ignore this email.</p>"
        ),
    }
