"""Staff review of submitted referrals."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.base import BaseService
from ..core.exceptions import NotFoundError
from ..infrastructure.repositories import ProfileRepository, ReferralRepository
from ..masking import mask_email, mask_mobile_number
from ..models import Profile, Referral, ReferralStatus
from .advisor_service import summarize_statuses
from .referral_code_service import ReferralCodeService

logger = logging.getLogger(__name__)


class ReviewService(BaseService):
    """Service for staff triage of referral submissions."""

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

    async def list_referrals(
        self,
        status: Optional[str] = None,
        reveal: bool = False,
    ) -> List[Dict[str, Any]]:
        """All submissions newest first, joined with their referrer.

        Args:
            status: Only this review status, when given
            reveal: Show full mobile numbers instead of masked ones

        Returns:
            List of flat dicts ready for ``ReviewReferralOut``
        """
        referrals = await self.referral_repo.get_with_referrers(status=status)
        return [self._review_row(ref, reveal) for ref in referrals]

    async def list_pending(self, reveal: bool = False) -> List[Dict[str, Any]]:
        """Submissions still in progress, oldest first."""
        referrals = await self.referral_repo.get_with_referrers(
            status=ReferralStatus.in_progress.value, oldest_first=True
        )
        return [self._review_row(ref, reveal) for ref in referrals]

    async def get_stats(self) -> Dict[str, int]:
        counts = await self.referral_repo.count_by_status()
        return summarize_statuses(counts)

    async def update_status(
        self,
        referral_id: str,
        status: ReferralStatus,
        admin_id: str,
    ) -> Referral:
        """Move a submission to *status* and record who processed it.

        Raises:
            NotFoundError: If the submission does not exist
        """
        referral = await self.referral_repo.get(referral_id)
        if not referral:
            raise NotFoundError("Referral", referral_id)

        previous = referral.status
        referral.status = ReferralStatus(status).value
        referral.processed_by = admin_id
        referral.processed_at = datetime.now(timezone.utc)
        await self.session.commit()
        await self.session.refresh(referral)

        logger.info(
            "Referral %s moved from %s to %s by %s", referral_id, previous, referral.status, admin_id
        )
        return referral

    async def list_advisors(
        self,
        skip: int = 0,
        limit: int = 100,
        reveal: bool = False,
    ) -> List[Dict[str, Any]]:
        """Advisor profiles with the number of submissions credited to each.

        Email and mobile are masked unless *reveal* is set.
        """
        rows = await self.profile_repo.list_with_referral_counts(skip=skip, limit=limit)
        return [
            {
                "id": profile.id,
                "name": profile.name,
                "email": profile.email if reveal else mask_email(profile.email),
                "mobile_no": profile.mobile_no if reveal else mask_mobile_number(profile.mobile_no),
                "referral_code": profile.referral_code,
                "is_admin": profile.is_admin,
                "created_at": profile.created_at,
                "referral_count": count,
            }
            for profile, count in rows
        ]

    async def promote_to_admin(self, advisor_id: str) -> Profile:
        """Grant staff access to an advisor.

        Raises:
            NotFoundError: If the advisor does not exist
        """
        profile = await self.profile_repo.set_admin(advisor_id, True)
        if not profile:
            raise NotFoundError("Advisor", advisor_id)
        await self.session.commit()
        logger.info("Advisor %s promoted to admin", advisor_id)
        return profile

    async def used_codes(self) -> List[str]:
        return await self.code_service.get_used_codes()

    @staticmethod
    def _review_row(ref: Referral, reveal: bool) -> Dict[str, Any]:
        referrer: Optional[Profile] = ref.referrer
        return {
            "id": ref.id,
            "referrer_user_id": ref.referrer_user_id,
            "name": ref.name,
            "mobile_no": ref.mobile_no if reveal else mask_mobile_number(ref.mobile_no),
            "residency_pincode": ref.residency_pincode,
            "employment_type": ref.employment_type,
            "employer_name": ref.employer_name,
            "monthly_net_income": ref.monthly_net_income,
            "referral_code": ref.referral_code,
            "terms_accepted_at": ref.terms_accepted_at,
            "status": ref.status,
            "processed_by": ref.processed_by,
            "processed_at": ref.processed_at,
            "created_at": ref.created_at,
            "referrer_name": referrer.name if referrer else "Unknown",
            "referrer_mobile": referrer.mobile_no if referrer else "N/A",
            "referrer_rm_name": (referrer.rm_name if referrer else None) or "N/A",
            "referrer_code": (referrer.referral_code if referrer else None) or "N/A",
        }
