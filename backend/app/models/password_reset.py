"""PasswordResetRequest model: one-time 6-digit reset codes"""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils.clock import utcnow


class PasswordResetRequest(Base):
    """A pending password reset.

    At most one unexpired row per account: issuing a new code deletes the
    account's earlier rows in the same transaction.
    """

    __tablename__ = "password_reset_requests"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(6), unique=True, nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    account = relationship("Account", back_populates="reset_requests")
