"""Administrator endpoints for employer approval"""
from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.api.deps import require_role
from app.database import get_db
from app.middleware.rate_limit import get_rate_limit, limiter
from app.models.account import AccountRole
from app.schemas.account import PendingEmployerResponse
from app.services import registration_service
from app.services.session_service import CurrentAccount
from app.utils.logger import logger
from app.utils.mailer import Mailer, get_mailer

router = APIRouter(prefix="/users", tags=["users"])

require_admin = require_role(AccountRole.ADMIN)


@router.get("/admin/pending-employers", response_model=List[PendingEmployerResponse])
@limiter.limit(get_rate_limit("admin_read"))
def list_pending_employers(
    request: Request,
    db: Session = Depends(get_db),
    admin: CurrentAccount = Depends(require_admin),
):
    """List employer registrations awaiting approval, oldest first (admin only)."""
    logger.info("ADMIN ACTION: listing pending employers", extra={"account_id": admin.account_id})
    return registration_service.list_pending_employers(db)


@router.get("/admin/pending-employer/{account_id}", response_model=PendingEmployerResponse)
@limiter.limit(get_rate_limit("admin_read"))
def get_pending_employer(
    request: Request,
    account_id: int,
    db: Session = Depends(get_db),
    _: CurrentAccount = Depends(require_admin),
):
    """Show one pending employer registration (admin only)."""
    return registration_service.get_pending_employer(db, account_id)


@router.patch("/admin/approve-employer/{account_id}", response_model=PendingEmployerResponse)
@limiter.limit(get_rate_limit("admin_write"))
def approve_employer(
    request: Request,
    account_id: int,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    admin: CurrentAccount = Depends(require_admin),
):
    """
    Approve an employer registration (admin only).

    Approving an employer that is already active succeeds without changes.
    The employer is emailed on a best-effort basis.
    """
    logger.info(
        f"ADMIN ACTION: approve employer {account_id} requested by {admin.account_id}",
        extra={"account_id": admin.account_id, "action": "approve_employer"},
    )
    return registration_service.admin_approve_employer(db, mailer, account_id)
