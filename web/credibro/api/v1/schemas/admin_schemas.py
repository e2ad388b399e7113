"""Staff review schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from ....models import ReferralStatus


class ReviewReferralOut(BaseModel):
    id: str
    referrer_user_id: str
    name: str
    mobile_no: str
    residency_pincode: str
    employment_type: str
    employer_name: str | None = None
    monthly_net_income: Decimal
    referral_code: str | None = None
    terms_accepted_at: datetime
    status: ReferralStatus
    processed_by: str | None = None
    processed_at: datetime | None = None
    created_at: datetime | None = None
    referrer_name: str
    referrer_mobile: str
    referrer_rm_name: str
    referrer_code: str


class StatusUpdateIn(BaseModel):
    status: ReferralStatus


class StatusUpdateOut(BaseModel):
    id: str
    status: ReferralStatus
    processed_by: str | None = None
    processed_at: datetime | None = None

    model_config = {"from_attributes": True}


class AdvisorSummaryOut(BaseModel):
    id: str
    name: str
    email: str
    mobile_no: str
    referral_code: str | None = None
    is_admin: bool
    created_at: datetime | None = None
    referral_count: int


class UsedCodesOut(BaseModel):
    codes: list[str]
    count: int
