"""Request metrics, account lifecycle counters and the request-tracing middleware"""
import time
import uuid
from typing import Callable
from fastapi import Request, Response
from prometheus_client import Counter, Histogram, Gauge
from starlette.middleware.base import BaseHTTPMiddleware
from app.utils.logger import logger

SLOW_REQUEST_SECONDS = 2.0


# ===== Prometheus Metrics =====

# Request metrics
http_requests_total = Counter(
    "jobportal_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "jobportal_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"]
)

http_errors_total = Counter(
    "jobportal_http_errors_total",
    "Total HTTP errors",
    ["method", "endpoint", "status"]
)

# Account lifecycle metrics
registrations_total = Counter(
    "jobportal_registrations_total",
    "Accounts registered",
    ["role"]
)

logins_total = Counter(
    "jobportal_logins_total",
    "Successful logins",
    ["role"]
)

authentication_failures_total = Counter(
    "jobportal_authentication_failures_total",
    "Total authentication failures",
    ["reason"]  # invalid_credentials, account_suspended, token_revoked, password_changed, ...
)

tokens_revoked_total = Counter(
    "jobportal_tokens_revoked_total",
    "Session tokens added to the deny list",
    ["reason"]  # logout, password_change
)

revoked_tokens_gauge = Gauge(
    "jobportal_revoked_tokens",
    "Entries currently held by the revocation store"
)


def _route_label(request: Request) -> str:
    """Templated route path (``/users/admin/pending-employer/{account_id}``) to bound label cardinality"""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class MonitoringMiddleware(BaseHTTPMiddleware):
    """Counts and times every request and tags it with an ``X-Request-ID``."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        method = request.method
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception as exc:
            endpoint = _route_label(request)
            http_errors_total.labels(method=method, endpoint=endpoint, status=500).inc()
            logger.error(
                f"Request failed: {method} {request.url.path}: {exc}",
                extra={"request_id": request_id, "method": method, "path": request.url.path, "status": 500},
                exc_info=True
            )
            raise

        duration = time.perf_counter() - started
        endpoint = _route_label(request)
        status = response.status_code

        http_requests_total.labels(method=method, endpoint=endpoint, status=status).inc()
        http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)
        if status >= 400:
            http_errors_total.labels(method=method, endpoint=endpoint, status=status).inc()

        context = {
            "request_id": request_id,
            "method": method,
            "path": request.url.path,
            "status": status,
            "duration_ms": round(duration * 1000, 1),
            "account_id": getattr(request.state, "account_id", None),
        }
        # bcrypt makes auth endpoints slower than most; only flag outliers
        if duration > SLOW_REQUEST_SECONDS:
            logger.warning(f"Slow request: {method} {request.url.path}", extra={**context, "action": "slow_request"})
        else:
            logger.debug(f"{method} {request.url.path} -> {status}", extra=context)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response


def record_registration(role: str):
    """Record a newly created account"""
    registrations_total.labels(role=role).inc()


def record_login(role: str):
    """Record a successful login"""
    logins_total.labels(role=role).inc()


def record_auth_failure(reason: str):
    """Record authentication failure"""
    authentication_failures_total.labels(reason=reason).inc()


def record_token_revoked(reason: str):
    """Record a token added to the deny list"""
    tokens_revoked_total.labels(reason=reason).inc()


def set_revoked_tokens(count: int):
    """Publish the current revocation store size"""
    revoked_tokens_gauge.set(count)
