"""JWT utilities: session token signing and verification"""
import uuid
from typing import Any, Dict, Tuple

from jose import JWTError, jwt

from app.config import settings
from app.utils import clock
from app.utils.errors import UnauthorizedError
from app.utils.logger import logger

_REQUIRED_CLAIMS = ("sub", "jti", "iat", "exp")


def _signing_key() -> str:
    if not settings.JWT_SECRET:
        # Settings already refuses a missing value; this guards an explicit empty string.
        raise RuntimeError("JWT_SECRET is empty; refusing to sign or verify tokens")
    return settings.JWT_SECRET


# ---------------------------------------------------------------------------
# Token creation
# ---------------------------------------------------------------------------

def create_access_token(subject: str, extra_claims: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
    """Sign and return a session token together with its claims.

    Args:
        subject:      Value for the 'sub' claim (the account id as a string).
        extra_claims: Additional claims to embed (email, role).

    Returns:
        ``(token, payload)`` so callers can log the ``jti`` without decoding.
    """
    now = clock.utcnow()

    payload: Dict[str, Any] = {
        "sub": subject,
        "jti": str(uuid.uuid4()),
        "iat": clock.to_timestamp(now),
        "exp": clock.to_epoch(now) + settings.JWT_EXPIRE_SECONDS,
        **extra_claims,
    }

    if settings.JWT_KEY_ID:
        payload["kid"] = settings.JWT_KEY_ID

    token = jwt.encode(payload, _signing_key(), algorithm=settings.JWT_ALGORITHM)
    return token, payload


# ---------------------------------------------------------------------------
# Token verification
# ---------------------------------------------------------------------------

def decode_access_token(token: str) -> Dict[str, Any]:
    """Verify signature and expiry, then check the payload shape.

    Revocation and account checks live in
    :func:`app.services.session_service.validate_token`.

    Raises:
        UnauthorizedError: on any signature, expiry or structural failure.
    """
    try:
        payload = jwt.decode(
            token,
            _signing_key(),
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError as exc:
        logger.debug(f"JWT decode failed: {exc}")
        raise UnauthorizedError("Invalid or expired token", code="token_invalid")

    missing = [claim for claim in _REQUIRED_CLAIMS if not payload.get(claim)]
    if missing:
        logger.warning(f"JWT payload missing claims: {', '.join(missing)}")
        raise UnauthorizedError("Invalid token payload", code="token_invalid")

    try:
        int(payload["sub"])
    except (TypeError, ValueError):
        raise UnauthorizedError("Invalid token payload", code="token_invalid")

    return payload
