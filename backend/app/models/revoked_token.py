"""RevokedToken model: shared jti deny-list for the database revocation backend"""
from sqlalchemy import Column, DateTime, Integer, String

from app.database import Base
from app.utils.clock import utcnow


class RevokedToken(Base):
    """Stores revoked session token IDs (jti claims).

    Used when ``REVOCATION_BACKEND=database`` so every server instance sees
    logouts and password-change revocations. ``expires_at`` mirrors the token's
    original exp so the sweeper can prune rows safely.
    """

    __tablename__ = "revoked_tokens"

    id = Column(Integer, primary_key=True, index=True)
    jti = Column(String(36), unique=True, nullable=False, index=True)
    revoked_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)  # original token exp: for TTL cleanup
