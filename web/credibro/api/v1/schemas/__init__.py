from .auth_schemas import (
    SignupRequest, LoginRequest, LoginResponse, RefreshTokenRequest, RefreshTokenResponse, ProfileOut
)
from .application_schemas import ApplicationIn, ApplicationOut, LinkReferrerOut, ReferralCodeCheckOut
from .advisor_schemas import AdvisorDashboardOut, AdvisorReferralOut, ReferralStatsOut
from .admin_schemas import (
    ReviewReferralOut, StatusUpdateIn, StatusUpdateOut, AdvisorSummaryOut, UsedCodesOut
)

__all__ = [
    # Auth schemas
    "SignupRequest",
    "LoginRequest",
    "LoginResponse",
    "RefreshTokenRequest",
    "RefreshTokenResponse",
    "ProfileOut",

    # Application schemas
    "ApplicationIn",
    "ApplicationOut",
    "LinkReferrerOut",
    "ReferralCodeCheckOut",

    # Advisor schemas
    "AdvisorDashboardOut",
    "AdvisorReferralOut",
    "ReferralStatsOut",

    # Admin schemas
    "ReviewReferralOut",
    "StatusUpdateIn",
    "StatusUpdateOut",
    "AdvisorSummaryOut",
    "UsedCodesOut",
]
