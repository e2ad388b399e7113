"""Public endpoints used by prospects: code checks and application intake."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Path, status

from ....deps import SessionDep
from ....services.application_service import ApplicationService
from ....core.exceptions import ExternalServiceError, NotFoundError, ValidationError
from ..schemas.application_schemas import (
    ApplicationIn,
    ApplicationOut,
    LinkReferrerOut,
    ReferralCodeCheckOut,
)

router = APIRouter(tags=["public"])

CODE_PATTERN = r"^[1-9][0-9]{2}$"


@router.get("/referral-codes/{code}", response_model=ReferralCodeCheckOut)
async def check_referral_code(
    sess: SessionDep,
    code: str = Path(..., pattern=CODE_PATTERN, description="3-digit referral code (100-999)"),
):
    """Tell the apply form who owns a typed code.

    404 means the code is unknown, 503 means the check failed and can be retried.
    """
    service = ApplicationService(sess)
    try:
        referrer = await service.check_code(code)
    except ValidationError as e:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=e.message)
    except ExternalServiceError as e:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)
    return ReferralCodeCheckOut(code=code, referrer=LinkReferrerOut(id=referrer.id, name=referrer.name))


@router.get("/r/{advisor_id}", response_model=LinkReferrerOut)
async def link_referrer(advisor_id: str, sess: SessionDep):
    """Landing data for an advisor's personal referral link."""
    service = ApplicationService(sess)
    try:
        referrer = await service.get_link_referrer(advisor_id)
    except NotFoundError as e:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=e.message)
    return LinkReferrerOut(id=referrer.id, name=referrer.name)


@router.post("/applications", response_model=ApplicationOut, status_code=status.HTTP_201_CREATED)
async def submit_application(payload: ApplicationIn, sess: SessionDep):
    """Submit the generic apply form. The referral code is mandatory here."""
    service = ApplicationService(sess)
    try:
        referral = await service.submit_with_code(payload)
    except ValidationError as e:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=e.message)
    except ExternalServiceError as e:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)
    return ApplicationOut.model_validate(referral)


@router.post(
    "/r/{advisor_id}/applications",
    response_model=ApplicationOut,
    status_code=status.HTTP_201_CREATED,
)
async def submit_link_application(advisor_id: str, payload: ApplicationIn, sess: SessionDep):
    """Submit through an advisor's personal link; that advisor gets the credit."""
    service = ApplicationService(sess)
    try:
        referral = await service.submit_via_link(advisor_id, payload)
    except NotFoundError as e:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=e.message)
    except ExternalServiceError as e:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)
    return ApplicationOut.model_validate(referral)
