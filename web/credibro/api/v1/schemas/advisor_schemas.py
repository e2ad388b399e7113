"""Advisor dashboard schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from ....models import ReferralStatus
from .auth_schemas import ProfileOut


class AdvisorDashboardOut(BaseModel):
    profile: ProfileOut
    referral_link: str
    apply_link: str | None = None


class AdvisorReferralOut(BaseModel):
    id: str
    name: str
    mobile_no: str  # masked
    status: ReferralStatus
    created_at: datetime | None = None


class ReferralStatsOut(BaseModel):
    total: int
    in_progress: int
    approved: int
    declined: int
