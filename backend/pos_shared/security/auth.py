"""
Authentication and authorization utilities.
Handles JWT bearer tokens for outlet staff.
"""

from __future__ import annotations

import time
import uuid
from typing import Any

import jwt
from fastapi import Header, HTTPException, status

from pos_shared.config.settings import (
    JWT_SECRET,
    JWT_ISSUER,
    JWT_AUDIENCE,
    settings,
)
from pos_shared.config.constants import Roles
from pos_shared.config.logging import get_logger

logger = get_logger(__name__)


def sign_jwt(payload: dict[str, Any], ttl_seconds: int | None = None) -> str:
    """
    Sign an access token with the given payload.

    Args:
        payload: Claims to include (sub, role, outlet_id, email).
        ttl_seconds: Token lifetime in seconds. Defaults to the access token expiry.

    Returns:
        Signed JWT token string.
    """
    if ttl_seconds is None:
        ttl_seconds = settings.jwt_access_token_expire_minutes * 60

    now = int(time.time())
    data = {
        **payload,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": now,
        "exp": now + ttl_seconds,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(data, JWT_SECRET, algorithm="HS256")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def verify_jwt(token: str) -> dict[str, Any]:
    """
    Verify and decode a JWT token.

    Raises:
        HTTPException: 401 if the token is invalid, expired or missing claims.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=["HS256"],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError as e:
        # Log the actual error, return a generic message to the client
        logger.warning("JWT validation failed", error=str(e))
        raise _unauthorized("Invalid token")

    if "sub" not in payload:
        raise _unauthorized("Invalid token: missing subject claim")

    try:
        uuid.UUID(str(payload["sub"]))
    except ValueError:
        raise _unauthorized("Invalid token: malformed subject claim")

    if payload.get("role") not in {r.value for r in Roles}:
        raise _unauthorized("Invalid token: invalid role claim")

    outlet_id = payload.get("outlet_id")
    if outlet_id is not None:
        try:
            uuid.UUID(str(outlet_id))
        except ValueError:
            raise _unauthorized("Invalid token: malformed outlet_id claim")

    return payload


def get_bearer_token(authorization: str | None) -> str:
    """
    Extract bearer token from Authorization header.

    Raises:
        HTTPException: If header is missing or malformed.
    """
    if not authorization:
        raise _unauthorized("Missing Authorization header")
    if not authorization.startswith("Bearer "):
        raise _unauthorized("Invalid Authorization header format. Expected: Bearer <token>")
    return authorization.split(" ", 1)[1].strip()


def current_user_context(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict[str, Any]:
    """
    FastAPI dependency to get the current user context from JWT.

    Usage:
        @router.get("/api/orders")
        def list_orders(ctx = Depends(current_user_context)):
            user_id = ctx["sub"]
            outlet_id = ctx["outlet_id"]

    Returns:
        Dict with: sub (user id), role, outlet_id (effective outlet), email
    """
    token = get_bearer_token(authorization)
    return verify_jwt(token)


def require_roles(ctx: dict[str, Any], allowed: list[str]) -> None:
    """
    Verify that the user has one of the allowed roles.

    Raises:
        HTTPException: 403 if the user's role is not allowed.
    """
    if ctx.get("role") not in set(allowed):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Insufficient permissions. Required role: one of {allowed}",
        )


def is_admin(ctx: dict[str, Any]) -> bool:
    return ctx.get("role") == Roles.ADMIN.value


def require_outlet(ctx: dict[str, Any], outlet_id: uuid.UUID | str) -> None:
    """
    Verify that the user may act on the given outlet.

    Admins reach every outlet; other roles only their effective outlet.

    Raises:
        HTTPException: 403 if the outlet is outside the user's scope.
    """
    if is_admin(ctx):
        return
    if str(ctx.get("outlet_id")) != str(outlet_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"No access to outlet {outlet_id}",
        )


def resolve_outlet_id(ctx: dict[str, Any], requested: uuid.UUID | None) -> uuid.UUID:
    """
    Pick the outlet a request operates on.

    An explicit outlet wins when the user may reach it; otherwise the
    token's effective outlet is used.

    Raises:
        HTTPException: 400 when neither is available, 403 when out of scope.
    """
    if requested is not None:
        require_outlet(ctx, requested)
        return requested

    outlet_id = ctx.get("outlet_id")
    if not outlet_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Outlet ID is required",
        )
    return uuid.UUID(str(outlet_id))
