"""Middleware modules for production-ready features"""
from app.middleware.monitoring import (
    MonitoringMiddleware,
    record_auth_failure,
    record_login,
    record_registration,
    record_token_revoked,
    set_revoked_tokens
)
from app.middleware.rate_limit import limiter, get_rate_limit

__all__ = [
    "MonitoringMiddleware",
    "record_auth_failure",
    "record_login",
    "record_registration",
    "record_token_revoked",
    "set_revoked_tokens",
    "limiter",
    "get_rate_limit"
]
