from typing import Optional, List, Dict
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from credibro.core import BaseRepository
from credibro.models import Referral


class ReferralRepository(BaseRepository[Referral]):
    """Referral submission repository"""

    def __init__(self, session: AsyncSession):
        super().__init__(Referral, session)

    async def code_exists(self, code: str) -> bool:
        """Check whether any submission carries *code* as its typed code"""
        query = select(Referral.id).where(Referral.referral_code == code).limit(1)
        result = await self.session.execute(query)
        return result.scalar() is not None

    async def list_codes(self) -> List[str]:
        """Distinct typed codes across all submissions"""
        query = (
            select(Referral.referral_code)
            .where(Referral.referral_code.is_not(None))
            .distinct()
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_for_referrer(
        self,
        referrer_id: str,
        *,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[Referral]:
        """Submissions credited to one advisor, newest first"""
        query = select(Referral).where(Referral.referrer_user_id == referrer_id)
        if status:
            query = query.where(Referral.status == status)
        query = (
            query.order_by(Referral.created_at.desc(), Referral.id)
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_with_referrers(
        self,
        *,
        status: Optional[str] = None,
        oldest_first: bool = False,
        skip: int = 0,
        limit: int = 500
    ) -> List[Referral]:
        """All submissions with the referrer relationship loaded"""
        order = Referral.created_at.asc() if oldest_first else Referral.created_at.desc()
        query = select(Referral).options(selectinload(Referral.referrer))
        if status:
            query = query.where(Referral.status == status)
        query = query.order_by(order, Referral.id).offset(skip).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_by_status(self, referrer_id: Optional[str] = None) -> Dict[str, int]:
        """Map of status value to number of submissions"""
        query = select(Referral.status, func.count(Referral.id)).group_by(Referral.status)
        if referrer_id is not None:
            query = query.where(Referral.referrer_user_id == referrer_id)
        result = await self.session.execute(query)
        return {status: count for status, count in result.all()}
