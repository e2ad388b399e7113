from typing import Optional, List, Tuple
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from credibro.core import BaseRepository
from credibro.models import Profile, Referral, referral_validation


class ProfileRepository(BaseRepository[Profile]):
    """Advisor profile repository.

    Code lookups go through the ``referral_validation`` view rather than the
    profiles table so that only ``{id, name, referral_code}`` is ever read.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(Profile, session)

    async def get_by_email(self, email: str) -> Optional[Profile]:
        """Get profile by email"""
        query = select(Profile).where(Profile.email == email)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def exists_by_email(self, email: str) -> bool:
        """Check if a profile exists by email"""
        query = select(Profile.id).where(Profile.email == email)
        result = await self.session.execute(query)
        return result.scalar() is not None

    async def validation_code_exists(self, code: str) -> bool:
        """Check the validation view for an assigned code"""
        query = (
            select(referral_validation.c.referral_code)
            .where(referral_validation.c.referral_code == code)
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalar() is not None

    async def get_validation_row(self, code: str) -> Optional[Tuple[str, str]]:
        """Return ``(id, name)`` of the advisor owning *code*, if any"""
        query = (
            select(referral_validation.c.id, referral_validation.c.name)
            .where(referral_validation.c.referral_code == code)
            .order_by(referral_validation.c.id)
            .limit(1)
        )
        result = await self.session.execute(query)
        row = result.first()
        if row is None:
            return None
        return row.id, row.name

    async def list_validation_codes(self) -> List[str]:
        """All codes currently bound to an advisor"""
        query = select(referral_validation.c.referral_code).where(
            referral_validation.c.referral_code.is_not(None)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def set_referral_code(self, profile_id: str, code: str) -> bool:
        """Write *code* onto the profile. Returns False when no row matched."""
        stmt = (
            update(Profile)
            .where(Profile.id == profile_id)
            .values(referral_code=code)
        )
        result = await self.session.execute(stmt)
        return (result.rowcount or 0) > 0

    async def set_admin(self, profile_id: str, is_admin: bool = True) -> Optional[Profile]:
        """Grant or revoke staff access"""
        profile = await self.get(profile_id)
        if not profile:
            return None

        profile.is_admin = is_admin
        await self.session.flush()
        return profile

    async def list_with_referral_counts(
        self,
        *,
        skip: int = 0,
        limit: int = 100
    ) -> List[Tuple[Profile, int]]:
        """Profiles newest first, each with the number of submissions credited to it"""
        query = (
            select(Profile, func.count(Referral.id))
            .outerjoin(Referral, Referral.referrer_user_id == Profile.id)
            .group_by(Profile.id)
            .order_by(Profile.created_at.desc(), Profile.id)
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return [(profile, count) for profile, count in result.all()]
