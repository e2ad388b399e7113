"""Advisor dashboard endpoints."""

from __future__ import annotations

import io

import qrcode
from qrcode.image.pil import PilImage
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ....deps import SessionDep
from ....models import ReferralStatus
from ....roles import Role
from ....security import current_user, role_required
from ....services.advisor_service import AdvisorService
from ....core.exceptions import NotFoundError
from ..schemas.auth_schemas import ProfileOut
from ..schemas.advisor_schemas import AdvisorDashboardOut, AdvisorReferralOut, ReferralStatsOut
from ..utils import get_user_id

router = APIRouter(
    tags=["advisor"],
    dependencies=[Depends(role_required(Role.advisor, Role.admin))],
)


def _qr_png(data: str) -> bytes:
    """Render *data* as a PNG QR code."""
    img = qrcode.make(data, image_factory=PilImage)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@router.get("/me", response_model=AdvisorDashboardOut)
async def me(sess: SessionDep, user=Depends(current_user)):
    """Profile and shareable links. Assigns a referral code if one is missing."""
    advisor_id = get_user_id(user)
    service = AdvisorService(sess)
    try:
        profile = await service.ensure_referral_code(advisor_id)
    except NotFoundError as e:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=e.message)

    return AdvisorDashboardOut(
        profile=ProfileOut.model_validate(profile),
        referral_link=service.referral_link(advisor_id),
        apply_link=service.apply_link(profile.referral_code),
    )


@router.get("/referrals", response_model=list[AdvisorReferralOut])
async def my_referrals(
    sess: SessionDep,
    status_filter: ReferralStatus | None = Query(None, alias="status"),
    user=Depends(current_user),
):
    """Submissions credited to the current advisor, mobiles masked."""
    service = AdvisorService(sess)
    rows = await service.list_referrals(
        get_user_id(user), status=status_filter.value if status_filter else None
    )
    return [AdvisorReferralOut(**row) for row in rows]


@router.get("/stats", response_model=ReferralStatsOut)
async def my_stats(sess: SessionDep, user=Depends(current_user)):
    """Counts per review status for the current advisor."""
    service = AdvisorService(sess)
    stats = await service.get_stats(get_user_id(user))
    return ReferralStatsOut(**stats)


@router.get("/qr.png", response_class=Response)
async def my_qr_code(sess: SessionDep, user=Depends(current_user)):
    """QR code of the advisor's referral link, as a downloadable PNG."""
    advisor_id = get_user_id(user)
    service = AdvisorService(sess)
    try:
        await service.get_profile(advisor_id)
    except NotFoundError as e:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=e.message)

    png = _qr_png(service.referral_link(advisor_id))
    headers = {"Content-Disposition": f'attachment; filename="qr-code-{advisor_id}.png"'}
    return Response(content=png, media_type="image/png", headers=headers)
