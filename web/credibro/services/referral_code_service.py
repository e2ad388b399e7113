"""Allocation and lookup of the 3-digit referral codes advisors hand out.

Codes are strings in the range ``"100"``..``"999"``. Every lookup reads the
store afresh; nothing is cached between calls. Store failures never escape the
public sentinel methods (``generate_unique_code``, ``code_exists``,
``resolve_referrer_by_code``, ``assign_code_to_profile``): they are logged and
turned into ``False`` / ``None`` / a fallback code. ``lookup_referrer`` keeps
"not found" and "store failed" apart for callers that need to tell them apart.
"""

from __future__ import annotations

import logging
import random
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.base import BaseService
from ..infrastructure.repositories import ProfileRepository, ReferralRepository

logger = logging.getLogger(__name__)

CODE_MIN = 100
CODE_MAX = 999
MAX_ATTEMPTS = 10

# Errors that mean "the store could not answer", as opposed to bugs
STORE_ERRORS = (SQLAlchemyError, OSError)

_CODE_RE = re.compile(r"[1-9][0-9]{2}")


def is_valid_code(code: object) -> bool:
    """True for a 3-character decimal string in ``"100"``..``"999"``."""
    return isinstance(code, str) and _CODE_RE.fullmatch(code) is not None


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def timestamp_fallback_code(now_ms: int) -> str:
    """Last three digits of an epoch-millisecond timestamp, lifted into 100..999."""
    value = int(str(now_ms)[-3:])
    if value < CODE_MIN:
        value = int(str(value + CODE_MIN)[-3:])
    return f"{value:03d}"


class LookupStatus(str, Enum):
    found = "found"
    not_found = "not_found"
    error = "error"


@dataclass(frozen=True)
class ReferrerInfo:
    id: str
    name: str


@dataclass(frozen=True)
class ReferrerLookup:
    status: LookupStatus
    referrer: Optional[ReferrerInfo] = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.found


class ReferralCodeService(BaseService):
    """Generates, checks, resolves and assigns advisor referral codes."""

    def __init__(
        self,
        session: AsyncSession,
        profile_repo: Optional[ProfileRepository] = None,
        referral_repo: Optional[ReferralRepository] = None,
        rng: Optional[random.Random] = None,
    ):
        super().__init__(session)
        self.profile_repo = profile_repo or ProfileRepository(session)
        self.referral_repo = referral_repo or ReferralRepository(session)
        self.rng = rng or random.SystemRandom()

    async def generate_unique_code(self) -> str:
        """Return a code not seen in the validation view or on any submission.

        Tries ``MAX_ATTEMPTS`` random candidates. A failed existence check
        counts as a used attempt. When every attempt is spent, the used codes
        are read in one query and a free one is drawn from the rest. Only if
        that read fails or nothing is free is the code derived from the
        current timestamp, without a further check; callers that persist it
        rely on the unique constraint on ``profiles``.

        Nothing is written.
        """
        for attempt in range(1, MAX_ATTEMPTS + 1):
            candidate = str(self.rng.randint(CODE_MIN, CODE_MAX))
            try:
                assigned = await self.profile_repo.validation_code_exists(candidate)
                typed = await self.referral_repo.code_exists(candidate)
            except STORE_ERRORS as exc:
                logger.error(
                    "Error checking referral code %s uniqueness (attempt %d/%d): %s",
                    candidate, attempt, MAX_ATTEMPTS, exc,
                )
                await self._reset_session()
                continue

            if not assigned and not typed:
                return candidate
            logger.debug("Referral code %s already in use (attempt %d/%d)", candidate, attempt, MAX_ATTEMPTS)

        free = await self._free_codes()
        if free:
            code = self.rng.choice(free)
            logger.info(
                "Random search exhausted after %d attempts, picked %s from %d free codes",
                MAX_ATTEMPTS, code, len(free),
            )
            return code

        fallback = timestamp_fallback_code(_now_ms())
        logger.warning(
            "No free referral code after %d attempts, using unchecked timestamp code %s",
            MAX_ATTEMPTS, fallback,
        )
        return fallback

    async def code_exists(self, code: str) -> bool:
        """Whether *code* is bound to an advisor. Store errors read as False."""
        try:
            return await self.profile_repo.validation_code_exists(code)
        except STORE_ERRORS as exc:
            logger.error("Error checking referral code %s: %s", code, exc)
            await self._reset_session()
            return False

    async def lookup_referrer(self, code: str) -> ReferrerLookup:
        """Resolve *code* to its advisor, keeping store failures distinct."""
        try:
            row = await self.profile_repo.get_validation_row(code)
        except STORE_ERRORS as exc:
            logger.error("Error fetching referrer by code %s: %s", code, exc)
            await self._reset_session()
            return ReferrerLookup(LookupStatus.error)

        if row is None:
            return ReferrerLookup(LookupStatus.not_found)
        referrer_id, name = row
        return ReferrerLookup(LookupStatus.found, ReferrerInfo(id=referrer_id, name=name))

    async def resolve_referrer_by_code(self, code: str) -> Optional[ReferrerInfo]:
        """The advisor owning *code*, or None when unknown or the lookup failed."""
        lookup = await self.lookup_referrer(code)
        return lookup.referrer if lookup.found else None

    async def assign_code_to_profile(self, advisor_id: str, code: str) -> bool:
        """Persist *code* on the advisor's profile and commit.

        Returns False when the profile does not exist or the write fails,
        including a unique-constraint violation on the code.
        """
        try:
            updated = await self.profile_repo.set_referral_code(advisor_id, code)
            if not updated:
                logger.warning("Cannot assign referral code %s: advisor %s not found", code, advisor_id)
                return False
            await self.session.commit()
        except STORE_ERRORS as exc:
            logger.error("Error assigning referral code %s to advisor %s: %s", code, advisor_id, exc)
            await self._reset_session()
            return False
        return True

    async def get_used_codes(self) -> List[str]:
        """Every code bound to an advisor or typed on a submission, sorted."""
        try:
            assigned = await self.profile_repo.list_validation_codes()
            typed = await self.referral_repo.list_codes()
        except STORE_ERRORS as exc:
            logger.error("Error fetching used referral codes: %s", exc)
            await self._reset_session()
            return []
        return sorted({code for code in [*assigned, *typed] if code})

    async def _free_codes(self) -> List[str]:
        """Codes in range used nowhere, read in one pass. Empty on store error."""
        try:
            assigned = await self.profile_repo.list_validation_codes()
            typed = await self.referral_repo.list_codes()
        except STORE_ERRORS as exc:
            logger.error("Error listing used referral codes for the widened search: %s", exc)
            await self._reset_session()
            return []
        used = set(assigned) | set(typed)
        return [str(n) for n in range(CODE_MIN, CODE_MAX + 1) if str(n) not in used]

    async def _reset_session(self) -> None:
        # A failed statement leaves the transaction aborted on PostgreSQL
        try:
            await self.session.rollback()
        except STORE_ERRORS:
            logger.exception("Rollback after referral code store error failed")
