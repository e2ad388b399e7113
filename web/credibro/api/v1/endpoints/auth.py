"""Advisor signup and login."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from ....deps import SessionDep
from ....services.advisor_service import AdvisorService
from ....core.exceptions import AuthenticationError, ConflictError
from ..schemas.auth_schemas import (
    SignupRequest,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
    ProfileOut,
)

router = APIRouter(tags=["auth"])


@router.post("/signup", response_model=ProfileOut, status_code=status.HTTP_201_CREATED)
async def signup(payload: SignupRequest, sess: SessionDep):
    """Create an advisor account; a referral code is assigned on the way."""
    service = AdvisorService(sess)
    try:
        profile = await service.signup(
            email=payload.email,
            password=payload.password,
            name=payload.name,
            mobile_no=payload.mobile_no,
            rm_name=payload.rm_name,
        )
    except ConflictError as e:
        raise HTTPException(status.HTTP_409_CONFLICT, detail=e.message)
    return ProfileOut.model_validate(profile)


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, sess: SessionDep):
    """Exchange email and password for an access/refresh token pair."""
    service = AdvisorService(sess)
    try:
        profile, access_token, refresh_token = await service.authenticate(payload.email, payload.password)
    except AuthenticationError as e:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail=e.message)

    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        user=ProfileOut.model_validate(profile).model_dump(),
    )


@router.post("/refresh", response_model=RefreshTokenResponse)
async def refresh(payload: RefreshTokenRequest, sess: SessionDep):
    """Mint a new access token from a refresh token."""
    service = AdvisorService(sess)
    try:
        access_token = await service.refresh_access_token(payload.refresh_token)
    except AuthenticationError as e:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail=e.message)
    return RefreshTokenResponse(access_token=access_token)
