"""Password change, forgotten-password codes and resets.

Every path that sets a password also sets ``password_changed_at`` in the same
commit, which invalidates all tokens issued before it (see
:func:`app.services.session_service.validate_token`).
"""
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.middleware.monitoring import record_auth_failure, record_token_revoked
from app.models.account import Account
from app.models.password_reset import PasswordResetRequest
from app.services import notifications
from app.utils import clock
from app.utils.auth import generate_numeric_code, hash_password, verify_password
from app.utils.errors import BadRequestError, InternalError, UnauthorizedError
from app.utils.logger import logger
from app.utils.mailer import Mailer
from app.utils.revocation import RevocationStore

FORGOT_PASSWORD_MESSAGE = "If an account with this email exists, a password reset code has been sent."
PASSWORD_CHANGED = "Password changed successfully. Please log in again."
PASSWORD_RESET = "Password has been reset successfully."


def change_password(
    db: Session,
    store: RevocationStore,
    account_id: int,
    old_password: str,
    new_password: str,
    current_jti: str,
    current_exp: int,
) -> str:
    """Replace the caller's password and deny the session used to do it."""
    logger.info("Password change requested", extra={"account_id": account_id, "action": "change_password"})

    account = db.query(Account).filter(Account.id == account_id).first()
    if not account or not account.password_hash:
        raise InternalError("Could not retrieve user credentials.")
    if not verify_password(old_password, account.password_hash):
        record_auth_failure("incorrect_password")
        raise UnauthorizedError("Incorrect current password.", code="incorrect_password")

    account.password_hash = hash_password(new_password)
    account.password_changed_at = clock.utcnow()
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Failed to update password for account {account_id}: {exc}", extra={"account_id": account_id}, exc_info=True)
        raise InternalError("Failed to update password.")

    try:
        store.revoke(current_jti, current_exp)
        record_token_revoked("password_change")
    except Exception as exc:
        logger.error(
            f"Non-critical: failed to deny token after password change: {exc}",
            extra={"account_id": account_id, "jti": current_jti, "action": "change_password"},
            exc_info=True,
        )

    logger.info("Password changed", extra={"account_id": account_id, "jti": current_jti, "action": "change_password"})
    return PASSWORD_CHANGED


def _generate_reset_code(db: Session) -> str:
    """A 6-digit code not held by any outstanding reset request."""
    for _ in range(settings.RESET_CODE_MAX_ATTEMPTS):
        code = generate_numeric_code()
        if not db.query(PasswordResetRequest.id).filter(PasswordResetRequest.code == code).first():
            return code
    logger.error("Exhausted attempts generating a unique password reset code", extra={"action": "forgot_password"})
    raise InternalError("Could not generate password reset code.")


def forgot_password(db: Session, mailer: Mailer, email: str) -> str:
    """Email a reset code when the account exists and has a password. The reply never reveals which case occurred."""
    logger.info("Forgot password request", extra={"email": email, "action": "forgot_password"})

    account = db.query(Account).filter(Account.email == email).first()
    if not account:
        return FORGOT_PASSWORD_MESSAGE
    if not account.password_hash:
        # Employees set their first password through email verification, not a reset
        logger.info(
            "Forgot password for account without a password; no code issued",
            extra={"account_id": account.id, "action": "forgot_password"},
        )
        return FORGOT_PASSWORD_MESSAGE

    code = _generate_reset_code(db)
    expires_at = clock.utcnow() + timedelta(minutes=settings.RESET_CODE_TTL_MINUTES)

    try:
        db.query(PasswordResetRequest).filter(PasswordResetRequest.account_id == account.id).delete(
            synchronize_session=False
        )
        db.add(PasswordResetRequest(code=code, account_id=account.id, expires_at=expires_at))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Could not save password reset code: {exc}", extra={"account_id": account.id}, exc_info=True)
        raise InternalError("Could not save password reset token.")

    notifications.send_required(
        mailer,
        to=account.email,
        failure_message="Failed to send password reset email.",
        **notifications.password_reset_email(account.name, code, settings.RESET_CODE_TTL_MINUTES),
    )
    logger.info("Password reset code issued", extra={"account_id": account.id, "action": "forgot_password"})
    return FORGOT_PASSWORD_MESSAGE


def reset_password(db: Session, code: str, new_password: str) -> str:
    """Consume a reset code and set a new password."""
    logger.info("Password reset attempt", extra={"action": "reset_password"})

    request = db.query(PasswordResetRequest).filter(PasswordResetRequest.code == code).first()
    if not request:
        raise BadRequestError("Invalid or expired reset token.", code="invalid_code")

    now = clock.utcnow()
    if request.expires_at <= now:
        db.delete(request)
        db.commit()
        raise BadRequestError("Reset token has expired.", code="code_expired")

    account = request.account
    if account is None or not account.password_hash:
        db.delete(request)
        db.commit()
        raise InternalError("Invalid reset token state.")

    account.password_hash = hash_password(new_password)
    account.password_changed_at = now
    db.delete(request)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Password reset failed for account {account.id}: {exc}", extra={"account_id": account.id}, exc_info=True)
        raise InternalError("Failed to update password information.")

    logger.info("Password reset completed", extra={"account_id": account.id, "action": "reset_password"})
    return PASSWORD_RESET
