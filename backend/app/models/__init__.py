"""Database models"""
from app.models.account import Account, AccountRole, AccountStatus
from app.models.employee_profile import EmployeeProfile
from app.models.password_reset import PasswordResetRequest
from app.models.revoked_token import RevokedToken

__all__ = ["Account", "AccountRole", "AccountStatus", "EmployeeProfile", "PasswordResetRequest", "RevokedToken"]
