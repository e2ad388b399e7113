"""Application intake: prospects submitting the referral form."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.base import BaseService
from ..core.exceptions import ExternalServiceError, NotFoundError, ValidationError
from ..infrastructure.repositories import ProfileRepository, ReferralRepository
from ..models import Referral, ReferralStatus
from .referral_code_service import LookupStatus, ReferralCodeService, ReferrerInfo

if TYPE_CHECKING:
    from ..api.v1.schemas.application_schemas import ApplicationIn

logger = logging.getLogger(__name__)


class ApplicationService(BaseService):
    """Service for creating referral submissions."""

    def __init__(
        self,
        session: AsyncSession,
        profile_repo: Optional[ProfileRepository] = None,
        referral_repo: Optional[ReferralRepository] = None,
        code_service: Optional[ReferralCodeService] = None,
    ):
        super().__init__(session)
        self.profile_repo = profile_repo or ProfileRepository(session)
        self.referral_repo = referral_repo or ReferralRepository(session)
        self.code_service = code_service or ReferralCodeService(
            session, profile_repo=self.profile_repo, referral_repo=self.referral_repo
        )

    async def get_link_referrer(self, advisor_id: str) -> ReferrerInfo:
        """Advisor behind a shared ``/r/<id>`` link.

        Raises:
            NotFoundError: If no advisor has this id
        """
        profile = await self.profile_repo.get(advisor_id)
        if not profile:
            raise NotFoundError("Advisor", advisor_id)
        return ReferrerInfo(id=profile.id, name=profile.name)

    async def check_code(self, code: str) -> ReferrerInfo:
        """Resolve a typed code for the form, separating invalid from unavailable.

        Raises:
            ValidationError: If no advisor owns the code
            ExternalServiceError: If the lookup itself failed
        """
        lookup = await self.code_service.lookup_referrer(code)
        if lookup.status is LookupStatus.error:
            raise ExternalServiceError("referral-store", "Could not validate referral code, please retry")
        if not lookup.found:
            raise ValidationError("Invalid referral code. Please check and try again.", field="referral_code")
        return lookup.referrer

    async def submit_with_code(self, payload: "ApplicationIn") -> Referral:
        """Submit from the generic apply form; the typed code picks the referrer.

        Raises:
            ValidationError: If the code is missing or matches no advisor
            ExternalServiceError: If the code could not be checked
        """
        if not payload.referral_code:
            raise ValidationError(
                "Valid referral code is required to submit the application", field="referral_code"
            )

        referrer = await self.check_code(payload.referral_code)
        return await self._create(referrer.id, payload)

    async def submit_via_link(self, advisor_id: str, payload: "ApplicationIn") -> Referral:
        """Submit from an advisor's personal link; the link picks the referrer.

        A code typed on this form is optional but must belong to some advisor.
        It is stored as typed and does not change who gets credit.

        Raises:
            NotFoundError: If the link's advisor does not exist
            ValidationError: If a typed code matches no advisor
            ExternalServiceError: If the code could not be checked
        """
        referrer = await self.get_link_referrer(advisor_id)
        if payload.referral_code:
            await self.check_code(payload.referral_code)
        return await self._create(referrer.id, payload)

    async def _create(self, referrer_id: str, payload: "ApplicationIn") -> Referral:
        referral = await self.referral_repo.create(obj_in={
            "referrer_user_id": referrer_id,
            "name": payload.name,
            "mobile_no": payload.mobile_no,
            "residency_pincode": payload.residency_pincode,
            "employment_type": payload.employment_type.value,
            "employer_name": payload.employer_name,
            "monthly_net_income": payload.monthly_net_income,
            "referral_code": payload.referral_code,
            "terms_accepted_at": datetime.now(timezone.utc),
            "status": ReferralStatus.in_progress.value,
        })
        await self.session.commit()
        await self.session.refresh(referral)
        logger.info("Referral %s submitted for advisor %s", referral.id, referrer_id)
        return referral
