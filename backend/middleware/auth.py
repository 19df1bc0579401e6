"""
Admin authentication helpers.

Admin endpoints require ``Authorization: Bearer <jwt>`` where the token is an
HS256 access token signed with JWT_SECRET and carrying a ``role`` claim:
  - admin        order list, draft confirmation, product edits
  - super_admin  everything admin can do, plus catalog sync

Tokens are issued out of band (scripts/issue_admin_token.py); storefront
checkout endpoints are public.
"""
import logging
from datetime import datetime, timezone, timedelta
from typing import Optional

import jwt
from fastapi import Header, HTTPException

from config import settings
from domain.enums import AdminRole
from domain.errors import PermissionDeniedError, UnauthorizedError

logger = logging.getLogger(__name__)

_ADMIN_ROLES = {r.value for r in AdminRole}


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


def _require_secret() -> str:
    if not settings.jwt_secret:
        raise HTTPException(
            status_code=500,
            detail="Server auth misconfigured (JWT secret missing).",
        )
    return settings.jwt_secret


def decode_access_token(token: str) -> dict:
    secret = _require_secret()
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "iat", "iss", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Access token expired.")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid access token.")


def issue_access_token(*, subject: str, role: str, ttl_minutes: Optional[int] = None) -> str:
    if role not in _ADMIN_ROLES:
        raise ValueError(f"Unknown admin role: {role}")
    now = _now_utc()
    ttl = ttl_minutes if ttl_minutes is not None else settings.jwt_access_ttl_minutes
    exp = now.replace(microsecond=0) + timedelta(minutes=ttl)
    payload = {
        "iss": settings.jwt_issuer,
        "sub": subject,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, _require_secret(), algorithm="HS256")


async def require_admin(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> dict:
    """Dependency: any admin role. Returns the token claims."""
    token = _parse_bearer_token(authorization)
    if not token:
        raise UnauthorizedError("Authentication required. Provide Authorization: Bearer <token>.")
    claims = decode_access_token(token)
    if claims.get("role") not in _ADMIN_ROLES:
        logger.warning(f"Admin access denied for {claims.get('sub')} (role={claims.get('role')})")
        raise PermissionDeniedError("Admin role required for this endpoint.")
    return claims


async def require_super_admin(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> dict:
    """Dependency: super_admin only."""
    claims = await require_admin(authorization=authorization)
    if claims.get("role") != AdminRole.SUPER_ADMIN.value:
        logger.warning(f"Super admin access denied for {claims.get('sub')}")
        raise PermissionDeniedError("Super admin role required for this endpoint.")
    return claims
