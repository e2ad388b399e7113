"""Admin endpoints for reviewing referral submissions."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ....deps import SessionDep
from ....models import ReferralStatus
from ....roles import Role
from ....security import current_user, role_required
from ....services.review_service import ReviewService
from ....core.exceptions import NotFoundError
from ..schemas.admin_schemas import (
    ReviewReferralOut,
    StatusUpdateIn,
    StatusUpdateOut,
    AdvisorSummaryOut,
    UsedCodesOut,
)
from ..schemas.advisor_schemas import ReferralStatsOut
from ..schemas.auth_schemas import ProfileOut
from ..utils import get_user_id

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(role_required(Role.admin))],
)


# Referral review
@router.get("/referrals", response_model=list[ReviewReferralOut])
async def list_referrals(
    sess: SessionDep,
    status_filter: ReferralStatus | None = Query(None, alias="status"),
    reveal: bool = Query(False, description="Show full mobile numbers"),
):
    """List all submissions with referrer details."""
    service = ReviewService(sess)
    rows = await service.list_referrals(
        status=status_filter.value if status_filter else None, reveal=reveal
    )
    return [ReviewReferralOut(**row) for row in rows]


@router.get("/referrals/pending", response_model=list[ReviewReferralOut])
async def list_pending(sess: SessionDep, reveal: bool = False):
    """Submissions awaiting a decision, oldest first."""
    service = ReviewService(sess)
    rows = await service.list_pending(reveal=reveal)
    return [ReviewReferralOut(**row) for row in rows]


@router.patch("/referrals/{referral_id}/status", response_model=StatusUpdateOut)
async def update_status(
    referral_id: str,
    body: StatusUpdateIn,
    sess: SessionDep,
    user=Depends(current_user),
):
    """Set the review status of a submission."""
    service = ReviewService(sess)
    try:
        referral = await service.update_status(referral_id, body.status, get_user_id(user))
    except NotFoundError as e:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=e.message)
    return StatusUpdateOut.model_validate(referral)


@router.get("/stats", response_model=ReferralStatsOut)
async def stats(sess: SessionDep):
    """Counts per review status across all submissions."""
    service = ReviewService(sess)
    return ReferralStatsOut(**await service.get_stats())


# Advisors
@router.get("/advisors", response_model=list[AdvisorSummaryOut])
async def list_advisors(
    sess: SessionDep,
    limit: int = Query(100, gt=0, le=500),
    offset: int = Query(0, ge=0),
    reveal: bool = Query(False, description="Show full emails and mobile numbers"),
):
    """List advisors with their submission counts."""
    service = ReviewService(sess)
    rows = await service.list_advisors(skip=offset, limit=limit, reveal=reveal)
    return [AdvisorSummaryOut(**row) for row in rows]


@router.post("/advisors/{advisor_id}/promote", response_model=ProfileOut)
async def promote(advisor_id: str, sess: SessionDep):
    """Grant staff access to an advisor."""
    service = ReviewService(sess)
    try:
        profile = await service.promote_to_admin(advisor_id)
    except NotFoundError as e:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=e.message)
    return ProfileOut.model_validate(profile)


# Referral codes
@router.get("/referral-codes/used", response_model=UsedCodesOut)
async def used_codes(sess: SessionDep):
    """Codes bound to advisors or typed on submissions."""
    service = ReviewService(sess)
    codes = await service.used_codes()
    return UsedCodesOut(codes=codes, count=len(codes))
