"""Registration, verification, login, logout and password endpoints"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_account
from app.database import get_db
from app.middleware.rate_limit import get_rate_limit, limiter
from app.schemas.auth import (
    ChangePasswordRequest,
    CurrentAccountResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterEmployeeRequest,
    RegisterEmployerRequest,
    ResetPasswordRequest,
    VerifyEmailRequest,
)
from app.services import password_service, registration_service, session_service
from app.services.session_service import CurrentAccount
from app.utils.mailer import Mailer, get_mailer
from app.utils.revocation import RevocationStore, get_revocation_store

router = APIRouter(prefix="/auth", tags=["authentication"])


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

@router.post("/register/employee", response_model=MessageResponse, status_code=status.HTTP_202_ACCEPTED)
@limiter.limit(get_rate_limit("register"))
def register_employee(
    request: Request,
    data: RegisterEmployeeRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """
    Start employee registration.

    Emails a 6-digit verification code valid for 15 minutes. Calling again while
    the account is still unverified sends a fresh code and voids the old one.
    """
    message = registration_service.register_employee(db, mailer, name=data.name, email=data.email)
    return MessageResponse(message=message)


@router.post("/register/employer", response_model=MessageResponse, status_code=status.HTTP_202_ACCEPTED)
@limiter.limit(get_rate_limit("register"))
def register_employer(
    request: Request,
    data: RegisterEmployerRequest,
    db: Session = Depends(get_db),
):
    """
    Submit an employer registration.

    The account cannot log in until an administrator approves it.
    """
    message = registration_service.register_employer(
        db,
        name=data.name,
        email=data.email,
        password=data.password,
        company_name=data.company_name,
        company_website=str(data.company_website),
    )
    return MessageResponse(message=message)


@router.post("/verify-email/complete", response_model=MessageResponse)
@limiter.limit(get_rate_limit("verify_email"))
def complete_email_verification(
    request: Request,
    data: VerifyEmailRequest,
    db: Session = Depends(get_db),
):
    """Activate an employee account with the emailed code and choose a password."""
    message = registration_service.verify_email(db, email=data.email, code=data.code, password=data.password)
    return MessageResponse(message=message)


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

@router.post("/login", response_model=LoginResponse)
@limiter.limit(get_rate_limit("login"))
def login(
    request: Request,
    data: LoginRequest,
    db: Session = Depends(get_db),
):
    """
    Exchange email and password for a bearer token.

    Use the token as `Authorization: Bearer <token>`. It expires after one hour,
    on logout, or when the password changes.
    """
    result = session_service.login(db, email=data.email, password=data.password)
    return LoginResponse(
        access_token=result.access_token,
        expires_in=result.expires_in,
        user_id=result.user_id,
        role=result.role,
        name=result.name,
    )


@router.post("/logout", response_model=MessageResponse)
def logout(
    current: CurrentAccount = Depends(get_current_account),
    store: RevocationStore = Depends(get_revocation_store),
):
    """Invalidate the presenting token immediately."""
    return MessageResponse(message=session_service.logout(store, current))


@router.get("/me", response_model=CurrentAccountResponse)
def me(current: CurrentAccount = Depends(get_current_account)):
    """Return the identity resolved from the bearer token."""
    return CurrentAccountResponse(
        account_id=current.account_id,
        email=current.email,
        role=current.role,
        jti=current.jti,
    )


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------

@router.patch("/change-password", response_model=MessageResponse)
@limiter.limit(get_rate_limit("change_password"))
def change_password(
    request: Request,
    data: ChangePasswordRequest,
    current: CurrentAccount = Depends(get_current_account),
    db: Session = Depends(get_db),
    store: RevocationStore = Depends(get_revocation_store),
):
    """
    Change the caller's password.

    Every token issued before the change stops working, including the one used
    for this request. Log in again with the new password.
    """
    message = password_service.change_password(
        db,
        store,
        account_id=current.account_id,
        old_password=data.old_password,
        new_password=data.new_password,
        current_jti=current.jti,
        current_exp=current.exp,
    )
    return MessageResponse(message=message)


@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit(get_rate_limit("forgot_password"))
def forgot_password(
    request: Request,
    data: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """Email a password reset code. The response is identical whether or not the email is registered."""
    return MessageResponse(message=password_service.forgot_password(db, mailer, email=data.email))


@router.post("/reset-password", response_model=MessageResponse)
@limiter.limit(get_rate_limit("reset_password"))
def reset_password(
    request: Request,
    data: ResetPasswordRequest,
    db: Session = Depends(get_db),
):
    """Set a new password using a code from the reset email."""
    return MessageResponse(message=password_service.reset_password(db, code=data.code, new_password=data.password))
