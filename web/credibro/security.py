from __future__ import annotations

import logging
import time
from typing import Annotated, Callable, Iterable

import bcrypt
from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt

from .core import get_settings
from .roles import Role

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
#  Password hashing
# ---------------------------------------------------------------------------
def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash"""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError as exc:
        # A malformed stored hash fails authentication
        logger.warning("Password verification error: %s", exc)
        return False


# ---------------------------------------------------------------------------
#  Basic JWT helpers
# ---------------------------------------------------------------------------
def _now() -> int:
    return int(time.time())


def create_token(
    sub: str,
    role: str,
    *,
    expires_in: int | None = None,
    **extra_claims,
) -> str:
    """Return a signed JWT including any *extra_claims*.

    Standard claims:
    • sub  – profile identifier
    • role – ``advisor`` or ``admin``
    • exp  – expiry (unix epoch)
    """
    settings = get_settings()
    if expires_in is None:
        expires_in = settings.ACCESS_TOKEN_EXPIRE_SECONDS
    payload = {
        "sub": str(sub),
        "role": role,
        "exp": _now() + expires_in,
    }
    payload.update(extra_claims)
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    """Verify *token* and return its payload."""
    settings = get_settings()
    try:
        payload: dict = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as exc:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token") from exc
    return payload


def mint_tokens(sub: str, role: str, **extra_claims) -> tuple[str, str]:
    """Return *(access, refresh)* pair embedding *extra_claims* in both."""
    settings = get_settings()
    access = create_token(sub, role, expires_in=settings.ACCESS_TOKEN_EXPIRE_SECONDS, **extra_claims)
    refresh = create_token(
        sub, role, expires_in=settings.REFRESH_TOKEN_EXPIRE_SECONDS, token_type="refresh", **extra_claims
    )
    return access, refresh


# ---------------------------------------------------------------------------
#  Dependencies
# ---------------------------------------------------------------------------
async def _extract_token(req: Request) -> str | None:
    """Return JWT from Authorization header *or* access_token cookie."""
    auth: str | None = req.headers.get("Authorization")
    if auth and auth.startswith("Bearer "):
        return auth.split(" ", 1)[1]
    return req.cookies.get("access_token")


async def current_user(req: Request) -> dict:
    """FastAPI dependency returning the JWT payload or raises 401."""
    token = await _extract_token(req)
    if not token:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing credentials")
    payload = decode_token(token)
    if payload.get("token_type") == "refresh":
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    return payload


def _to_role_str(value: "str | Role") -> str:
    """Return the *string* value of a Role or raw str."""
    if isinstance(value, Role):
        return value.value
    return str(value)


def role_required(*allowed: "str | Role | Iterable[str | Role]") -> Callable[[dict], dict]:
    """Return a dependency that checks *current_user* role is within *allowed*.

    Usage:
        @router.get("/admin", dependencies=[Depends(role_required("admin"))])
        async def admin_only():
            ...
    """
    if len(allowed) == 1 and isinstance(allowed[0], (list, tuple, set)):
        allowed = tuple(allowed[0])
    allowed_set = {_to_role_str(a) for a in allowed}

    async def _dep(user: Annotated[dict, Depends(current_user)]):
        role: str | None = user.get("role")
        if role not in allowed_set:
            raise HTTPException(status.HTTP_403_FORBIDDEN, "Forbidden")
        return user

    return _dep
