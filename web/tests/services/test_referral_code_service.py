"""
Unit tests for the referral code allocator.

Tests focus on:
- Generated codes always being 3-digit strings in 100..999
- Termination when the code space is (almost) full
- Store failures turning into sentinels instead of exceptions
- Found / not-found / error being kept apart by lookup_referrer
"""
import random
import pytest
from unittest.mock import patch, AsyncMock, MagicMock

from sqlalchemy.exc import IntegrityError, OperationalError

from credibro.services.referral_code_service import (
    ReferralCodeService,
    LookupStatus,
    ReferrerInfo,
    MAX_ATTEMPTS,
    is_valid_code,
    timestamp_fallback_code,
)


def _db_down():
    return OperationalError("SELECT 1", {}, Exception("connection refused"))


def _service(mock_session, mock_profile_repo, mock_referral_repo, rng=None):
    return ReferralCodeService(
        mock_session,
        profile_repo=mock_profile_repo,
        referral_repo=mock_referral_repo,
        rng=rng,
    )


ALL_BUT_100 = [str(n) for n in range(101, 1000)]


class TestIsValidCode:
    """Tests for the 3-digit code format check"""

    @pytest.mark.parametrize("code", ["100", "482", "999"])
    def test_accepts_codes_in_range(self, code):
        assert is_valid_code(code) is True

    @pytest.mark.parametrize("code", ["099", "1000", "12", "", "4a2", " 482", 482, None])
    def test_rejects_everything_else(self, code):
        assert is_valid_code(code) is False


class TestTimestampFallbackCode:
    """Tests for the last-resort code derived from epoch milliseconds"""

    @pytest.mark.parametrize("now_ms,expected", [
        (1760000000482, "482"),
        (1760000000999, "999"),
        (1760000000100, "100"),
        (1760000000042, "142"),
        (1760000000099, "199"),
        (1760000000000, "100"),
        (7, "107"),
    ])
    def test_derivation(self, now_ms, expected):
        assert timestamp_fallback_code(now_ms) == expected


class TestGenerateUniqueCode:
    """Tests for generate_unique_code"""

    @pytest.mark.asyncio
    async def test_generated_codes_are_always_valid(self, mock_session, mock_profile_repo, mock_referral_repo):
        """Should only ever produce codes in 100..999"""
        service = _service(mock_session, mock_profile_repo, mock_referral_repo, rng=random.Random(7))

        codes = [await service.generate_unique_code() for _ in range(200)]

        assert all(is_valid_code(code) for code in codes)

    @pytest.mark.asyncio
    async def test_returns_first_free_candidate(self, mock_session, mock_profile_repo, mock_referral_repo):
        """Should skip candidates seen in the view or on a submission"""
        rng = MagicMock()
        rng.randint.side_effect = [482, 517, 630]
        mock_profile_repo.validation_code_exists = AsyncMock(side_effect=lambda c: c == "482")
        mock_referral_repo.code_exists = AsyncMock(side_effect=lambda c: c == "517")
        service = _service(mock_session, mock_profile_repo, mock_referral_repo, rng=rng)

        code = await service.generate_unique_code()

        assert code == "630"
        assert rng.randint.call_count == 3
        rng.randint.assert_called_with(100, 999)

    @pytest.mark.asyncio
    async def test_all_but_one_code_used(self, mock_session, mock_profile_repo, mock_referral_repo):
        """With only "100" free it should still terminate with a valid code"""
        mock_profile_repo.validation_code_exists = AsyncMock(side_effect=lambda c: c != "100")
        mock_profile_repo.list_validation_codes = AsyncMock(return_value=ALL_BUT_100)
        service = _service(mock_session, mock_profile_repo, mock_referral_repo, rng=random.Random(1))

        code = await service.generate_unique_code()

        assert code == "100"
        assert mock_profile_repo.validation_code_exists.await_count <= MAX_ATTEMPTS

    @pytest.mark.asyncio
    async def test_widened_search_after_exhaustion(self, mock_session, mock_profile_repo, mock_referral_repo):
        """After the random budget is spent a free code is drawn from one listing"""
        rng = MagicMock()
        rng.randint.return_value = 500
        rng.choice.side_effect = lambda seq: seq[0]
        mock_profile_repo.validation_code_exists = AsyncMock(return_value=True)
        mock_profile_repo.list_validation_codes = AsyncMock(return_value=[str(n) for n in range(100, 700)])
        mock_referral_repo.list_codes = AsyncMock(return_value=["700", "701"])
        service = _service(mock_session, mock_profile_repo, mock_referral_repo, rng=rng)

        code = await service.generate_unique_code()

        assert code == "702"
        assert rng.randint.call_count == MAX_ATTEMPTS
        mock_profile_repo.list_validation_codes.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_store_errors_fall_back_to_timestamp(self, mock_session, mock_profile_repo, mock_referral_repo):
        """Every failed check counts as an attempt; the result is still a valid code"""
        mock_profile_repo.validation_code_exists = AsyncMock(side_effect=_db_down())
        mock_profile_repo.list_validation_codes = AsyncMock(side_effect=_db_down())
        service = _service(mock_session, mock_profile_repo, mock_referral_repo, rng=random.Random(3))

        with patch("credibro.services.referral_code_service._now_ms", return_value=1760000000042):
            code = await service.generate_unique_code()

        assert code == "142"
        assert mock_profile_repo.validation_code_exists.await_count == MAX_ATTEMPTS
        mock_referral_repo.code_exists.assert_not_awaited()
        assert mock_session.rollback.await_count == MAX_ATTEMPTS + 1

    @pytest.mark.asyncio
    async def test_full_code_space_falls_back_to_timestamp(self, mock_session, mock_profile_repo, mock_referral_repo):
        """With every code used the unchecked timestamp code is returned"""
        mock_profile_repo.validation_code_exists = AsyncMock(return_value=True)
        mock_profile_repo.list_validation_codes = AsyncMock(return_value=["100", *ALL_BUT_100])
        service = _service(mock_session, mock_profile_repo, mock_referral_repo, rng=random.Random(5))

        with patch("credibro.services.referral_code_service._now_ms", return_value=1760000000777):
            code = await service.generate_unique_code()

        assert code == "777"

    @pytest.mark.asyncio
    async def test_never_writes(self, mock_session, mock_profile_repo, mock_referral_repo):
        service = _service(mock_session, mock_profile_repo, mock_referral_repo)

        await service.generate_unique_code()

        mock_profile_repo.set_referral_code.assert_not_awaited()
        mock_session.commit.assert_not_awaited()


class TestCodeExists:
    """Tests for code_exists"""

    @pytest.mark.asyncio
    async def test_assigned_code(self, mock_session, mock_profile_repo, mock_referral_repo):
        mock_profile_repo.validation_code_exists = AsyncMock(return_value=True)
        service = _service(mock_session, mock_profile_repo, mock_referral_repo)

        assert await service.code_exists("123") is True
        mock_profile_repo.validation_code_exists.assert_awaited_once_with("123")

    @pytest.mark.asyncio
    async def test_only_checks_the_validation_view(self, mock_session, mock_profile_repo, mock_referral_repo):
        """A code typed on a submission is not 'assigned'"""
        mock_referral_repo.code_exists = AsyncMock(return_value=True)
        service = _service(mock_session, mock_profile_repo, mock_referral_repo)

        assert await service.code_exists("123") is False
        mock_referral_repo.code_exists.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_error_reads_as_false(self, mock_session, mock_profile_repo, mock_referral_repo):
        mock_profile_repo.validation_code_exists = AsyncMock(side_effect=_db_down())
        service = _service(mock_session, mock_profile_repo, mock_referral_repo)

        assert await service.code_exists("123") is False
        mock_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_idempotent(self, mock_session, mock_profile_repo, mock_referral_repo):
        mock_profile_repo.validation_code_exists = AsyncMock(return_value=True)
        service = _service(mock_session, mock_profile_repo, mock_referral_repo)

        first = await service.code_exists("321")
        second = await service.code_exists("321")

        assert first == second


class TestLookupReferrer:
    """Tests for lookup_referrer and resolve_referrer_by_code"""

    @pytest.mark.asyncio
    async def test_found(self, mock_session, mock_profile_repo, mock_referral_repo):
        mock_profile_repo.get_validation_row = AsyncMock(return_value=("adv-1", "Asha Rao"))
        service = _service(mock_session, mock_profile_repo, mock_referral_repo)

        lookup = await service.lookup_referrer("482")

        assert lookup.status is LookupStatus.found
        assert lookup.found is True
        assert lookup.referrer == ReferrerInfo(id="adv-1", name="Asha Rao")
        assert await service.resolve_referrer_by_code("482") == ReferrerInfo(id="adv-1", name="Asha Rao")

    @pytest.mark.asyncio
    async def test_not_found(self, mock_session, mock_profile_repo, mock_referral_repo):
        service = _service(mock_session, mock_profile_repo, mock_referral_repo)

        lookup = await service.lookup_referrer("555")

        assert lookup.status is LookupStatus.not_found
        assert lookup.referrer is None
        assert await service.resolve_referrer_by_code("555") is None

    @pytest.mark.asyncio
    async def test_error_is_distinct_from_not_found(self, mock_session, mock_profile_repo, mock_referral_repo):
        mock_profile_repo.get_validation_row = AsyncMock(side_effect=_db_down())
        service = _service(mock_session, mock_profile_repo, mock_referral_repo)

        lookup = await service.lookup_referrer("482")

        assert lookup.status is LookupStatus.error
        assert lookup.found is False
        assert await service.resolve_referrer_by_code("482") is None


class TestAssignCodeToProfile:
    """Tests for assign_code_to_profile"""

    @pytest.mark.asyncio
    async def test_success_commits(self, mock_session, mock_profile_repo, mock_referral_repo):
        service = _service(mock_session, mock_profile_repo, mock_referral_repo)

        assert await service.assign_code_to_profile("adv-1", "482") is True
        mock_profile_repo.set_referral_code.assert_awaited_once_with("adv-1", "482")
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_profile(self, mock_session, mock_profile_repo, mock_referral_repo):
        mock_profile_repo.set_referral_code = AsyncMock(return_value=False)
        service = _service(mock_session, mock_profile_repo, mock_referral_repo)

        assert await service.assign_code_to_profile("ghost", "482") is False
        mock_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unique_violation_reads_as_false(self, mock_session, mock_profile_repo, mock_referral_repo):
        """A code already held by another advisor is refused, not raised"""
        mock_session.commit = AsyncMock(
            side_effect=IntegrityError("UPDATE profiles", {}, Exception("UNIQUE constraint failed"))
        )
        service = _service(mock_session, mock_profile_repo, mock_referral_repo)

        assert await service.assign_code_to_profile("adv-2", "482") is False
        mock_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_rollback_is_logged_not_raised(self, mock_session, mock_profile_repo, mock_referral_repo):
        mock_profile_repo.set_referral_code = AsyncMock(side_effect=_db_down())
        mock_session.rollback = AsyncMock(side_effect=_db_down())
        service = _service(mock_session, mock_profile_repo, mock_referral_repo)

        assert await service.assign_code_to_profile("adv-1", "482") is False


class TestGetUsedCodes:
    """Tests for get_used_codes"""

    @pytest.mark.asyncio
    async def test_merges_assigned_and_typed(self, mock_session, mock_profile_repo, mock_referral_repo):
        mock_profile_repo.list_validation_codes = AsyncMock(return_value=["482", "101"])
        mock_referral_repo.list_codes = AsyncMock(return_value=["482", "999", "300"])
        service = _service(mock_session, mock_profile_repo, mock_referral_repo)

        assert await service.get_used_codes() == ["101", "300", "482", "999"]

    @pytest.mark.asyncio
    async def test_store_error_gives_empty_list(self, mock_session, mock_profile_repo, mock_referral_repo):
        mock_referral_repo.list_codes = AsyncMock(side_effect=_db_down())
        service = _service(mock_session, mock_profile_repo, mock_referral_repo)

        assert await service.get_used_codes() == []
