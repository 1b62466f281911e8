"""Registration, email verification and employer approval.

Account status transitions handled here::

    (none) --register_employee--> pending_email_verification --verify_email--> active
    (none) --register_employer--> pending_admin_approval --admin_approve_employer--> active

``suspended`` is set outside this module and blocks login until reactivated.
"""
from datetime import timedelta
from typing import List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.middleware.monitoring import record_registration
from app.models.account import Account, AccountRole, AccountStatus
from app.models.employee_profile import EmployeeProfile
from app.services import notifications
from app.utils import clock
from app.utils.auth import generate_numeric_code, hash_password
from app.utils.errors import BadRequestError, ConflictError, InternalError, NotFoundError
from app.utils.logger import logger
from app.utils.mailer import Mailer

REGISTRATION_STARTED = "Registration initiated. Please check your email for your verification code."
EMPLOYER_SUBMITTED = (
    "Registration submitted successfully. Your account requires administrator approval before you can log in."
)
EMAIL_VERIFIED = "Email verified successfully. You can now log in."


def _raise_existing(account: Account) -> None:
    """Conflict for an email already taken, discriminated by the holder's status."""
    if account.status == AccountStatus.PENDING_ADMIN_APPROVAL:
        raise ConflictError(
            "This email is registered and pending administrator approval.",
            code="already_pending_approval",
        )
    if account.status == AccountStatus.ACTIVE:
        raise ConflictError("An active account with this email already exists.", code="already_active")
    raise ConflictError("User with this email already exists.", code="already_exists")


def _insert_account(db: Session, account: Account) -> Account:
    db.add(account)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        db.rollback()
        raise ConflictError("User with this email already exists.", code="already_exists")
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Could not create account: {exc}", extra={"email": account.email}, exc_info=True)
        raise InternalError("Could not create user account.")
    db.refresh(account)
    record_registration(account.role)
    return account


# ---------------------------------------------------------------------------
# Employees
# ---------------------------------------------------------------------------

def register_employee(db: Session, mailer: Mailer, name: str, email: str) -> str:
    """Start (or restart) employee registration and email a verification code.

    Re-registering while still pending replaces the previous code and expiry.
    The account is kept even if the email cannot be delivered.
    """
    logger.info("Employee registration requested", extra={"email": email, "action": "register_employee"})

    code = generate_numeric_code()
    expires_at = clock.utcnow() + timedelta(minutes=settings.VERIFICATION_CODE_TTL_MINUTES)

    account = db.query(Account).filter(Account.email == email).first()
    if account:
        if account.status != AccountStatus.PENDING_EMAIL_VERIFICATION:
            _raise_existing(account)

        account.email_verification_code = code
        account.email_verification_expires_at = expires_at
        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(f"Could not refresh verification code: {exc}", extra={"account_id": account.id}, exc_info=True)
            raise InternalError("Employee registration failed.")
        logger.info(
            "Resending verification code for pending account",
            extra={"account_id": account.id, "action": "register_employee"},
        )
    else:
        account = _insert_account(db, Account(
            name=name,
            email=email,
            role=AccountRole.EMPLOYEE,
            status=AccountStatus.PENDING_EMAIL_VERIFICATION,
            password_hash=None,
            email_verification_code=code,
            email_verification_expires_at=expires_at,
        ))
        logger.info(
            f"Created pending employee account {account.id}",
            extra={"account_id": account.id, "action": "register_employee"},
        )

    notifications.send_required(
        mailer,
        to=email,
        failure_message="Failed to send verification email.",
        **notifications.verification_code_email(name, code, settings.VERIFICATION_CODE_TTL_MINUTES),
    )
    return REGISTRATION_STARTED


def _bootstrap_employee_profile(db: Session, account: Account) -> None:
    """Create an empty profile for a freshly activated employee. Failures are logged only."""
    try:
        if account.employee_profile is None:
            db.add(EmployeeProfile(account_id=account.id, bio="", skills=[], years_of_experience=0))
            db.commit()
            logger.info("Employee profile created", extra={"account_id": account.id, "action": "create_profile"})
    except Exception as exc:
        db.rollback()
        logger.error(
            f"Failed to create employee profile for verified account {account.id}: {exc}",
            extra={"account_id": account.id, "action": "create_profile"},
            exc_info=True,
        )


def verify_email(db: Session, email: str, code: str, password: str) -> str:
    """Activate a pending employee with the emailed code and set their first password.

    The code is compared exactly and is treated as expired from its expiry instant onward.
    """
    logger.info("Email verification attempt", extra={"email": email, "action": "verify_email"})

    account = db.query(Account).filter(
        Account.email == email,
        Account.status == AccountStatus.PENDING_EMAIL_VERIFICATION,
    ).first()
    if not account:
        raise BadRequestError(
            "Invalid verification request. User not found or already verified.",
            code="invalid_verification_request",
        )
    if not account.email_verification_code or not account.email_verification_expires_at:
        raise InternalError("Verification data missing for user.")
    if account.email_verification_code != code:
        raise BadRequestError("Invalid verification code.", code="invalid_code")

    now = clock.utcnow()
    if account.email_verification_expires_at <= now:
        raise BadRequestError("Verification code has expired. Please register again.", code="code_expired")

    account.password_hash = hash_password(password)
    account.status = AccountStatus.ACTIVE
    account.email_verification_code = None
    account.email_verification_expires_at = None
    account.password_changed_at = now
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Failed to activate account {account.id}: {exc}", extra={"account_id": account.id}, exc_info=True)
        raise InternalError("Failed to complete email verification.")

    logger.info(f"Account {account.id} verified and activated", extra={"account_id": account.id, "action": "verify_email"})
    _bootstrap_employee_profile(db, account)
    return EMAIL_VERIFIED


# ---------------------------------------------------------------------------
# Employers
# ---------------------------------------------------------------------------

def register_employer(
    db: Session,
    name: str,
    email: str,
    password: str,
    company_name: str,
    company_website: str,
) -> str:
    """Create an employer account awaiting administrator approval. No email step."""
    logger.info("Employer registration requested", extra={"email": email, "action": "register_employer"})

    existing = db.query(Account).filter(Account.email == email).first()
    if existing:
        _raise_existing(existing)

    account = _insert_account(db, Account(
        name=name,
        email=email,
        role=AccountRole.EMPLOYER,
        status=AccountStatus.PENDING_ADMIN_APPROVAL,
        password_hash=hash_password(password),
        password_changed_at=clock.utcnow(),
        company_name=company_name,
        company_website=company_website,
    ))
    logger.info(
        f"Employer account {account.id} pending approval",
        extra={"account_id": account.id, "action": "register_employer"},
    )
    return EMPLOYER_SUBMITTED


def admin_approve_employer(db: Session, mailer: Mailer, account_id: int) -> Account:
    """Activate a pending employer. Approving an already active employer is a no-op."""
    logger.warning(f"ADMIN ACTION: approving employer {account_id}", extra={"account_id": account_id, "action": "approve_employer"})

    account = db.query(Account).filter(Account.id == account_id).first()
    if not account:
        raise NotFoundError(f"Employer user with ID {account_id} not found.")
    if account.role != AccountRole.EMPLOYER:
        raise BadRequestError(f"User {account_id} is not an employer.", code="not_an_employer")
    if account.status == AccountStatus.ACTIVE:
        logger.warning(f"Employer {account_id} is already active", extra={"account_id": account_id})
        return account
    if account.status != AccountStatus.PENDING_ADMIN_APPROVAL:
        raise BadRequestError(
            f"Employer is not pending approval (current status: {account.status}).",
            code="not_pending_approval",
        )

    account.status = AccountStatus.ACTIVE
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Could not approve employer {account_id}: {exc}", extra={"account_id": account_id}, exc_info=True)
        raise InternalError("Could not approve employer.")
    db.refresh(account)

    logger.info(f"ADMIN ACTION: employer {account_id} approved", extra={"account_id": account_id, "action": "approve_employer"})
    notifications.send_best_effort(
        mailer,
        to=account.email,
        account_id=account.id,
        **notifications.employer_approved_email(account.name, settings.FRONTEND_LOGIN_URL),
    )
    return account


def list_pending_employers(db: Session) -> List[Account]:
    """Employers awaiting approval, oldest first"""
    return (
        db.query(Account)
        .filter(Account.role == AccountRole.EMPLOYER, Account.status == AccountStatus.PENDING_ADMIN_APPROVAL)
        .order_by(Account.created_at.asc(), Account.id.asc())
        .all()
    )


def get_pending_employer(db: Session, account_id: int) -> Account:
    account = db.query(Account).filter(
        Account.id == account_id,
        Account.role == AccountRole.EMPLOYER,
        Account.status == AccountStatus.PENDING_ADMIN_APPROVAL,
    ).first()
    if account:
        return account

    if db.query(Account.id).filter(Account.id == account_id).first():
        raise NotFoundError(f"User with ID {account_id} found, but is not a pending employer.")
    raise NotFoundError(f"Pending employer with ID {account_id} not found.")
