from .referral_code_service import ReferralCodeService, ReferrerInfo, ReferrerLookup, LookupStatus
from .advisor_service import AdvisorService
from .application_service import ApplicationService
from .review_service import ReviewService

__all__ = [
    "ReferralCodeService",
    "ReferrerInfo",
    "ReferrerLookup",
    "LookupStatus",
    "AdvisorService",
    "ApplicationService",
    "ReviewService",
]
