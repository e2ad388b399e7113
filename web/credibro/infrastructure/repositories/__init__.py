from .profile_repository import ProfileRepository
from .referral_repository import ReferralRepository

__all__ = [
    "ProfileRepository",
    "ReferralRepository",
]
