from fastapi import APIRouter

from credibro.api.v1.endpoints import auth, public, advisor, admin


# Create main API router
api_v1_router = APIRouter()

# Include auth endpoints (public access)
api_v1_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["auth"]
)

# Include public endpoints (prospects, no login)
api_v1_router.include_router(
    public.router,
    prefix="/public",
    tags=["public"]
)

# Include advisor dashboard endpoints (advisor or admin access)
api_v1_router.include_router(
    advisor.router,
    prefix="/advisor",
    tags=["advisor"]
)

# Include admin endpoints (admin access, prefix set on the router)
api_v1_router.include_router(
    admin.router,
    tags=["admin"]
)
