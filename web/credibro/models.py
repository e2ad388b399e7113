from enum import Enum
import uuid

from sqlalchemy import (
    String, Boolean, Numeric, DateTime, ForeignKey, Column, MetaData, Table,
    Index, func
)
from sqlalchemy.orm import mapped_column, relationship, DeclarativeBase


def _new_id() -> str:
    return str(uuid.uuid4())


class ReferralStatus(str, Enum):
    """Review states of a submission. Values are the stored strings."""

    in_progress = "InProgress"
    approved = "Approved"
    declined = "Decline"


class EmploymentType(str, Enum):
    salaried = "salaried"
    self_employed = "self-employed"


class Base(DeclarativeBase): ...


# ---------- Advisors ----------
class Profile(Base):
    __tablename__ = "profiles"
    id            = mapped_column(String(36), primary_key=True, default=_new_id)
    email         = mapped_column(String(128), unique=True, nullable=False)
    password_hash = mapped_column(String(128), nullable=False)
    name          = mapped_column(String(120), nullable=False)
    mobile_no     = mapped_column(String(16), nullable=False)
    rm_name       = mapped_column(String(120), nullable=True)   # relationship manager, stored upper-case
    # 3-digit code prospects type on the apply form ("100".."999")
    referral_code = mapped_column(String(3), unique=True, nullable=True)
    is_admin      = mapped_column(Boolean, default=False, nullable=False)
    created_at    = mapped_column(DateTime(timezone=True), server_default=func.now())

    referrals = relationship(
        "Referral",
        back_populates="referrer",
        foreign_keys="Referral.referrer_user_id",
    )


# ---------- Submissions ----------
class Referral(Base):
    __tablename__ = "referrals"
    id                 = mapped_column(String(36), primary_key=True, default=_new_id)
    referrer_user_id   = mapped_column(ForeignKey("profiles.id"), nullable=False)
    name               = mapped_column(String(120), nullable=False)
    mobile_no          = mapped_column(String(16), nullable=False)
    residency_pincode  = mapped_column(String(6), nullable=False)
    employment_type    = mapped_column(String(16), nullable=False, comment="salaried | self-employed")
    employer_name      = mapped_column(String(200), nullable=True)
    monthly_net_income = mapped_column(Numeric(12, 2), nullable=False)
    # Free-text copy of what the prospect typed; need not resolve to an advisor
    referral_code      = mapped_column(String(3), nullable=True)
    terms_accepted_at  = mapped_column(DateTime(timezone=True), nullable=False)
    status             = mapped_column(
        String(16), default=ReferralStatus.in_progress.value, nullable=False,
        comment="InProgress | Approved | Decline",
    )
    processed_by       = mapped_column(ForeignKey("profiles.id"), nullable=True)
    processed_at       = mapped_column(DateTime(timezone=True), nullable=True)
    created_at         = mapped_column(DateTime(timezone=True), server_default=func.now())

    referrer  = relationship("Profile", back_populates="referrals", foreign_keys=[referrer_user_id])
    processor = relationship("Profile", foreign_keys=[processed_by])

    __table_args__ = (
        Index("ix_referrals_referrer_user_id", "referrer_user_id"),
        Index("ix_referrals_referral_code", "referral_code"),
        Index("ix_referrals_status", "status"),
    )


# ---------- Views ----------
# Views live in their own metadata so ``create_all`` and autogenerate ignore them.
view_metadata = MetaData()

# Read-only projection used to check code ownership without exposing profiles
referral_validation = Table(
    "referral_validation",
    view_metadata,
    Column("id", String(36)),
    Column("name", String(120)),
    Column("referral_code", String(3)),
)

REFERRAL_VALIDATION_VIEW_SQL = (
    "CREATE VIEW referral_validation AS "
    "SELECT id, name, referral_code FROM profiles "
    "WHERE referral_code IS NOT NULL"
)
