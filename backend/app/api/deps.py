"""API dependencies for authentication and authorization.

Every protected endpoint takes ``Authorization: Bearer <JWT>``. The token is
resolved by :func:`get_current_account`; role-gated endpoints use
:func:`require_role`.
"""
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.database import get_db
from app.services import session_service
from app.services.session_service import CurrentAccount
from app.utils.errors import ForbiddenError, UnauthorizedError
from app.utils.revocation import RevocationStore, get_revocation_store

_bearer_scheme = HTTPBearer(auto_error=False)


def get_current_account(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
    store: RevocationStore = Depends(get_revocation_store),
) -> CurrentAccount:
    """Validate the bearer token and return the caller's identity.

    Raises 401 when the header is missing or the token fails any check in
    :func:`app.services.session_service.validate_token`.
    """
    if not credentials:
        raise UnauthorizedError("Authorization: Bearer <token> header required", code="missing_token")

    current = session_service.validate_token(db, store, credentials.credentials)
    # Lets the rate limiter key authenticated calls by account
    request.state.account_id = current.account_id
    return current


def require_role(*roles: str) -> Callable:
    """Return a FastAPI dependency that admits only the given roles.

    Usage::

        @router.get("/admin/thing")
        def endpoint(current: CurrentAccount = Depends(require_role("admin"))):
            ...
    """
    allowed = set(roles)

    def _role_dep(current: CurrentAccount = Depends(get_current_account)) -> CurrentAccount:
        if current.role not in allowed:
            raise ForbiddenError(
                f"Role {' or '.join(sorted(allowed))} required (your role: '{current.role}')",
                code="insufficient_role",
            )
        return current

    # Give FastAPI a unique name so it doesn't collapse distinct dependencies
    _role_dep.__name__ = f"require_role_{'_'.join(sorted(allowed))}"
    return _role_dep
