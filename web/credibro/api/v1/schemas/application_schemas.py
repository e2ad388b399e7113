"""Application form schemas (prospect-facing)."""

from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

from ....models import EmploymentType, ReferralStatus
from ....phone import normalize_mobile_number
from ....services.referral_code_service import is_valid_code


class ApplicationIn(BaseModel):
    """Everything a prospect types on the apply form.

    Validation here is the only gate in front of the code allocator: a code
    that is not ``"100"``..``"999"`` never reaches a lookup.
    """

    name: str = Field(..., max_length=120)
    mobile_no: str = Field(..., max_length=20)
    residency_pincode: str = Field(..., max_length=12)
    employment_type: EmploymentType
    employer_name: str | None = Field(None, max_length=200)
    monthly_net_income: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    referral_code: str | None = None
    terms_accepted: bool

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please enter your full name")
        return value

    @field_validator("mobile_no")
    @classmethod
    def _mobile(cls, value: str) -> str:
        return normalize_mobile_number(value)

    @field_validator("residency_pincode")
    @classmethod
    def _pincode(cls, value: str) -> str:
        digits = re.sub(r"\D", "", value)
        if len(digits) != 6:
            raise ValueError("Pincode must be exactly 6 digits")
        return digits

    @field_validator("referral_code", mode="before")
    @classmethod
    def _referral_code(cls, value):
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("Referral code must be a string of 3 digits")
        value = value.strip()
        if not value:
            return None
        if not is_valid_code(value):
            raise ValueError("Referral code must be 3 digits between 100 and 999")
        return value

    @field_validator("terms_accepted")
    @classmethod
    def _terms(cls, value: bool) -> bool:
        if not value:
            raise ValueError("Please accept the terms and conditions")
        return value

    @model_validator(mode="after")
    def _employer_for_salaried(self) -> "ApplicationIn":
        if self.employment_type is EmploymentType.salaried:
            employer = (self.employer_name or "").strip()
            if not employer:
                raise ValueError("Employer name is required for salaried employees")
            self.employer_name = employer
        else:
            self.employer_name = None
        return self


class ApplicationOut(BaseModel):
    id: str
    referrer_user_id: str
    name: str
    status: ReferralStatus
    referral_code: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class LinkReferrerOut(BaseModel):
    id: str
    name: str

    model_config = {"from_attributes": True}


class ReferralCodeCheckOut(BaseModel):
    code: str
    referrer: LinkReferrerOut
