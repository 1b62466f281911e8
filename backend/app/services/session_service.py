"""Login, per-request token validation and logout"""
from typing import NamedTuple

from sqlalchemy.orm import Session

from app.config import settings
from app.middleware.monitoring import record_auth_failure, record_login, record_token_revoked
from app.models.account import Account, AccountStatus
from app.utils import clock
from app.utils.auth import verify_password
from app.utils.errors import UnauthorizedError
from app.utils.jwt_utils import create_access_token, decode_access_token
from app.utils.logger import logger
from app.utils.revocation import RevocationStore

# Checked in this order so the most specific reason wins
_INACTIVE_REASONS = (
    (AccountStatus.PENDING_EMAIL_VERIFICATION, "account_not_verified", "Account not verified. Please check your email."),
    (AccountStatus.PENDING_ADMIN_APPROVAL, "account_pending_approval", "Account pending administrator approval."),
    (AccountStatus.SUSPENDED, "account_suspended", "Your account has been suspended."),
)


class LoginResult(NamedTuple):
    access_token: str
    expires_in: int
    user_id: int
    role: str
    name: str
    jti: str


class CurrentAccount(NamedTuple):
    """Identity attached to an authenticated request."""
    account_id: int
    email: str      # from the token
    role: str       # from the freshly loaded account
    jti: str
    exp: int


def _deny(message: str, reason: str) -> UnauthorizedError:
    record_auth_failure(reason)
    return UnauthorizedError(message, code=reason)


def login(db: Session, email: str, password: str) -> LoginResult:
    logger.info("Login attempt", extra={"email": email, "action": "login"})

    account = db.query(Account).filter(Account.email == email).first()
    if not account or not account.password_hash:
        raise _deny("Invalid email or password", "invalid_credentials")
    if not verify_password(password, account.password_hash):
        raise _deny("Invalid email or password", "invalid_credentials")

    for status, reason, message in _INACTIVE_REASONS:
        if account.status == status:
            raise _deny(message, reason)
    if account.status != AccountStatus.ACTIVE:
        raise _deny("Account is not active.", "account_inactive")

    token, claims = create_access_token(
        subject=str(account.id),
        extra_claims={"email": account.email, "role": account.role},
    )
    record_login(account.role)
    logger.info(
        f"Login successful for account {account.id}",
        extra={"account_id": account.id, "jti": claims["jti"], "action": "login"},
    )
    return LoginResult(
        access_token=token,
        expires_in=settings.JWT_EXPIRE_SECONDS,
        user_id=account.id,
        role=account.role,
        name=account.name,
        jti=claims["jti"],
    )


def validate_token(db: Session, store: RevocationStore, token: str) -> CurrentAccount:
    """Resolve a bearer token to the calling account.

    Order: signature/expiry/shape, deny-list, account active, password not
    changed since ``iat``. Any failure is ``UnauthorizedError``.
    """
    payload = decode_access_token(token)
    jti = payload["jti"]

    if store.is_revoked(jti):
        logger.warning(f"Rejected revoked token jti={jti}", extra={"jti": jti, "action": "validate_token"})
        raise _deny("Token has been invalidated.", "token_revoked")

    account_id = int(payload["sub"])
    account = db.query(Account).filter(Account.id == account_id).first()
    if not account or account.status != AccountStatus.ACTIVE:
        logger.warning(
            f"Account {account_id} not found or not active during token validation",
            extra={"account_id": account_id, "jti": jti},
        )
        raise _deny("User associated with token not found or inactive.", "account_unavailable")

    # iat carries microseconds, so any token minted before the change fails even within the same second
    if account.password_changed_at and float(payload["iat"]) < clock.to_timestamp(account.password_changed_at):
        logger.warning(
            f"Token for account {account_id} issued before last password change",
            extra={"account_id": account_id, "jti": jti},
        )
        raise _deny(
            "Password has changed since this token was issued. Please log in again.",
            "password_changed",
        )

    return CurrentAccount(
        account_id=account.id,
        email=payload.get("email", ""),
        role=account.role,
        jti=jti,
        exp=int(payload.get("exp", 0)),
    )


def logout(store: RevocationStore, current: CurrentAccount) -> str:
    """Deny the presenting token for the rest of its lifetime."""
    store.revoke(current.jti, current.exp)
    record_token_revoked("logout")
    logger.info(
        f"Account {current.account_id} logged out",
        extra={"account_id": current.account_id, "jti": current.jti, "action": "logout"},
    )
    return "Logout successful."
