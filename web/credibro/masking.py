"""Helpers that hide personal data in listings shown to advisors and staff."""

from __future__ import annotations


def mask_mobile_number(mobile_no: str | None) -> str | None:
    """Keep only the last 4 digits: ``9876543210`` -> ``******3210``."""
    if not mobile_no or len(mobile_no) < 4:
        return mobile_no
    return "*" * (len(mobile_no) - 4) + mobile_no[-4:]


def mask_email(email: str | None) -> str | None:
    """Keep the first character and the domain: ``u***@example.com``."""
    if not email or "@" not in email:
        return email

    username, domain = email.split("@", 1)
    if len(username) <= 1:
        return email
    return f"{username[0]}{'*' * (len(username) - 1)}@{domain}"

