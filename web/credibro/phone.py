"""Normalisation of the Indian mobile numbers collected on forms."""

from __future__ import annotations

import phonenumbers

INDIA_REGION = "IN"
INDIA_COUNTRY_CODE = 91


def normalize_mobile_number(raw: str) -> str:
    """Return the 10-digit national number or raise ``ValueError``.

    Accepts common spellings such as ``98765 43210``, ``+91-9876543210`` or
    ``09876543210``. The national part must be 10 digits starting with 6-9.
    """
    if not raw or not raw.strip():
        raise ValueError("Mobile number is required")

    try:
        parsed = phonenumbers.parse(raw, INDIA_REGION)
    except phonenumbers.NumberParseException as exc:
        raise ValueError("Mobile number must be exactly 10 digits") from exc

    if parsed.country_code != INDIA_COUNTRY_CODE:
        raise ValueError("Only Indian mobile numbers (+91) are accepted")

    national = str(parsed.national_number)
    if len(national) != 10:
        raise ValueError("Mobile number must be exactly 10 digits")
    if national[0] not in "6789":
        raise ValueError("Mobile number must start with 6, 7, 8, or 9")
    return national
