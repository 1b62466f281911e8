"""Rate limiting for the public authentication endpoints"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request
from app.config import settings


def get_identifier(request: Request) -> str:
    """
    Get identifier for rate limiting

    Bearer-authenticated calls are keyed by the resolved account when the
    auth dependency has stored it on request.state; everything else by IP.
    """
    account_id = getattr(request.state, "account_id", None)
    if account_id is not None:
        return f"account:{account_id}"

    return get_remote_address(request)


# Create limiter instance
limiter = Limiter(
    key_func=get_identifier,
    default_limits=settings.RATE_LIMIT_DEFAULT,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


# Rate limit configurations for different endpoints
RATE_LIMITS = {
    # Credential guessing targets
    "login": "10/minute",
    "verify_email": "10/minute",
    "reset_password": "10/minute",

    # Endpoints that send mail
    "register": "5/minute",
    "forgot_password": "5/minute",

    # Authenticated account actions
    "change_password": "10/minute",

    # Admin endpoints
    "admin_read": "200/hour",
    "admin_write": "50/hour",
}


def get_rate_limit(endpoint: str) -> str:
    """Get rate limit for specific endpoint"""
    return RATE_LIMITS.get(endpoint, settings.RATE_LIMIT_DEFAULT[0])
