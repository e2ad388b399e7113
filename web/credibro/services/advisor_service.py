"""Advisor accounts: signup, login and the advisor's own dashboard data."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core import BaseService, get_settings
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError
from ..infrastructure.repositories import ProfileRepository, ReferralRepository
from ..masking import mask_mobile_number
from ..models import Profile, ReferralStatus
from ..roles import Role
from ..security import create_token, decode_token, hash_password, mint_tokens, verify_password
from .referral_code_service import ReferralCodeService

logger = logging.getLogger(__name__)

# Rounds of generate + assign before signup gives up on a code
CODE_ASSIGN_ROUNDS = 3


def summarize_statuses(counts: Dict[str, int]) -> Dict[str, int]:
    """Turn a ``{status: n}`` map into dashboard counters."""
    in_progress = counts.get(ReferralStatus.in_progress.value, 0)
    approved = counts.get(ReferralStatus.approved.value, 0)
    declined = counts.get(ReferralStatus.declined.value, 0)
    return {
        "total": sum(counts.values()),
        "in_progress": in_progress,
        "approved": approved,
        "declined": declined,
    }


class AdvisorService(BaseService):
    """Service for advisor accounts and the advisor dashboard."""

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

    async def signup(
        self,
        email: str,
        password: str,
        name: str,
        mobile_no: str,
        rm_name: str,
    ) -> Profile:
        """Create an advisor profile and give it a referral code.

        The profile is committed before the code is assigned, so a code that
        cannot be claimed never fails the signup itself.

        Raises:
            ConflictError: If the email is already registered
        """
        email = email.lower()
        if await self.profile_repo.exists_by_email(email):
            raise ConflictError("Email already registered")

        try:
            profile = await self.profile_repo.create(obj_in={
                "email": email,
                "password_hash": hash_password(password),
                "name": name,
                "mobile_no": mobile_no,
                "rm_name": rm_name.upper(),
                "is_admin": False,
            })
            await self.session.commit()
        except IntegrityError as exc:
            # A concurrent signup took the email between the check and the insert
            await self.session.rollback()
            raise ConflictError("Email already registered") from exc
        logger.info("Advisor %s signed up", profile.id)

        await self._claim_code(profile.id)
        await self.session.refresh(profile)
        return profile

    async def authenticate(self, email: str, password: str) -> Tuple[Profile, str, str]:
        """Check credentials and return the profile with an access/refresh pair."""
        profile = await self.profile_repo.get_by_email(email.lower())
        if not profile or not verify_password(password, profile.password_hash):
            raise AuthenticationError("Invalid email or password")

        role = Role.admin if profile.is_admin else Role.advisor
        access_token, refresh_token = mint_tokens(sub=profile.id, role=role.value)
        return profile, access_token, refresh_token

    async def refresh_access_token(self, refresh_token: str) -> str:
        """Generate new access token from refresh token"""
        try:
            payload = decode_token(refresh_token)
        except HTTPException as exc:
            raise AuthenticationError("Invalid refresh token") from exc
        if payload.get("token_type") != "refresh":
            raise AuthenticationError("Invalid refresh token")

        extra = {k: v for k, v in payload.items() if k not in ("sub", "role", "exp", "token_type")}
        return create_token(sub=payload["sub"], role=payload["role"], **extra)

    async def get_profile(self, advisor_id: str) -> Profile:
        profile = await self.profile_repo.get(advisor_id)
        if not profile:
            raise NotFoundError("Advisor", advisor_id)
        return profile

    async def ensure_referral_code(self, advisor_id: str) -> Profile:
        """Give the advisor a code if they have none. Existing codes are kept."""
        profile = await self.get_profile(advisor_id)
        if profile.referral_code:
            return profile

        await self._claim_code(advisor_id)
        await self.session.refresh(profile)
        return profile

    async def list_referrals(
        self,
        advisor_id: str,
        status: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """The advisor's own submissions, newest first, with masked mobiles."""
        referrals = await self.referral_repo.get_for_referrer(advisor_id, status=status)
        return [
            {
                "id": ref.id,
                "name": ref.name,
                "mobile_no": mask_mobile_number(ref.mobile_no),
                "status": ref.status,
                "created_at": ref.created_at,
            }
            for ref in referrals
        ]

    async def get_stats(self, advisor_id: str) -> Dict[str, int]:
        counts = await self.referral_repo.count_by_status(referrer_id=advisor_id)
        return summarize_statuses(counts)

    def referral_link(self, advisor_id: str) -> str:
        return f"{get_settings().PUBLIC_BASE_URL}/r/{advisor_id}"

    def apply_link(self, code: Optional[str]) -> Optional[str]:
        if not code:
            return None
        return f"{get_settings().PUBLIC_BASE_URL}/apply?ref={code}"

    async def _claim_code(self, advisor_id: str) -> Optional[str]:
        """Generate and assign a code, retrying when the assignment is refused."""
        for round_no in range(1, CODE_ASSIGN_ROUNDS + 1):
            code = await self.code_service.generate_unique_code()
            if await self.code_service.assign_code_to_profile(advisor_id, code):
                return code
            logger.warning(
                "Referral code %s not assigned to advisor %s (round %d/%d)",
                code, advisor_id, round_no, CODE_ASSIGN_ROUNDS,
            )

        logger.error("Advisor %s left without a referral code after %d rounds", advisor_id, CODE_ASSIGN_ROUNDS)
        return None
