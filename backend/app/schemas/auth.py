"""Authentication request/response schemas"""
from typing import Annotated, Literal

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, Field, HttpUrl, model_validator

PASSWORD_MIN_LENGTH = 6


def _check_email(value: str) -> str:
    """Reject malformed addresses but keep the value exactly as submitted (no case folding)"""
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(str(exc))
    return value


EmailAddress = Annotated[str, AfterValidator(_check_email)]


class RegisterEmployeeRequest(BaseModel):
    """Employees register with name and email only; the password is set at verification."""

    name: str = Field(..., min_length=1, max_length=100)
    email: EmailAddress


class RegisterEmployerRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Contact person name")
    email: EmailAddress = Field(..., description="Contact person email")
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)
    company_name: str = Field(..., min_length=1, max_length=255)
    company_website: HttpUrl = Field(..., description="e.g. https://company.com")


class VerifyEmailRequest(BaseModel):
    email: EmailAddress
    code: str = Field(..., min_length=6, max_length=6, description="6-digit code from the verification email")
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)


class LoginRequest(BaseModel):
    email: EmailAddress
    password: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: EmailAddress


class ResetPasswordRequest(BaseModel):
    code: str = Field(..., min_length=6, max_length=6)
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)
    confirm_password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Password confirmation must match new password")
        return self


class MessageResponse(BaseModel):
    message: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int   # seconds until expiry
    user_id: int
    role: Literal["employee", "employer", "admin"]
    name: str


class CurrentAccountResponse(BaseModel):
    """Identity resolved from a validated bearer token"""

    account_id: int
    email: str
    role: str
    jti: str
