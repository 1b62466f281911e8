"""Pydantic schemas for request/response validation"""
from app.schemas.account import PendingEmployerResponse
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

__all__ = [
    "RegisterEmployeeRequest",
    "RegisterEmployerRequest",
    "VerifyEmailRequest",
    "LoginRequest",
    "LoginResponse",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "ChangePasswordRequest",
    "MessageResponse",
    "CurrentAccountResponse",
    "PendingEmployerResponse",
]
