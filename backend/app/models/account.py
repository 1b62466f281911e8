"""Account model: login identities and their lifecycle status"""
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils.clock import utcnow


class AccountRole:
    EMPLOYEE = "employee"
    EMPLOYER = "employer"
    ADMIN = "admin"

    ALL = (EMPLOYEE, EMPLOYER, ADMIN)


class AccountStatus:
    PENDING_EMAIL_VERIFICATION = "pending_email_verification"
    PENDING_ADMIN_APPROVAL = "pending_admin_approval"
    ACTIVE = "active"
    SUSPENDED = "suspended"

    ALL = (PENDING_EMAIL_VERIFICATION, PENDING_ADMIN_APPROVAL, ACTIVE, SUSPENDED)


class Account(Base):
    """A job-portal user: employee, employer or admin.

    ``password_hash`` stays null for employees until they verify their email.
    ``email_verification_code``/``email_verification_expires_at`` are only set
    while ``status`` is ``pending_email_verification``.
    ``password_changed_at`` is compared against a token's ``iat`` on every request.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False)                                   # employee|employer|admin
    status = Column(String(40), nullable=False, default=AccountStatus.ACTIVE, index=True)
    email_verification_code = Column(String(6), nullable=True)
    email_verification_expires_at = Column(DateTime, nullable=True)
    password_changed_at = Column(DateTime, nullable=True)

    # Employer contact details
    company_name = Column(String(255), nullable=True)
    company_website = Column(String(500), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    employee_profile = relationship(
        "EmployeeProfile", back_populates="account", uselist=False, cascade="all, delete-orphan"
    )
    reset_requests = relationship(
        "PasswordResetRequest", back_populates="account", cascade="all, delete-orphan"
    )
