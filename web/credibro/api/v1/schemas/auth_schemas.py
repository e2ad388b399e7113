from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from ....phone import normalize_mobile_number


class SignupRequest(BaseModel):
    """Schema for advisor signup"""
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=120)
    mobile_no: str = Field(..., max_length=20)
    rm_name: str = Field(..., min_length=1, max_length=120)

    @field_validator("name", "rm_name")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Field cannot be blank")
        return value

    @field_validator("mobile_no")
    @classmethod
    def _mobile(cls, value: str) -> str:
        return normalize_mobile_number(value)


class LoginRequest(BaseModel):
    """Schema for login request"""
    email: EmailStr
    # no length rule here, signup enforces it
    password: str


class LoginResponse(BaseModel):
    """Schema for login response"""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: dict


class RefreshTokenRequest(BaseModel):
    """Schema for refresh token request"""
    refresh_token: str


class RefreshTokenResponse(BaseModel):
    """Schema for refresh token response"""
    access_token: str
    token_type: str = "bearer"


class ProfileOut(BaseModel):
    """Schema for advisor profile response"""
    id: str
    email: str
    name: str
    mobile_no: str
    rm_name: Optional[str] = None
    referral_code: Optional[str] = None
    is_admin: bool = False

    model_config = {
        "from_attributes": True,
    }
