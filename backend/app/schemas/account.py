"""Account schemas for admin views"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class PendingEmployerResponse(BaseModel):
    """Employer account as shown to administrators (never includes credentials)"""

    id: int
    name: str
    email: str
    role: str
    status: str
    company_name: Optional[str]
    company_website: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
