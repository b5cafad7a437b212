"""
Authentication router.
Handles staff login and the current-user lookup.
"""

import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from pos_api.models import User
from pos_shared.config.logging import audit_auth_event
from pos_shared.config.settings import settings
from pos_shared.infrastructure.db import get_db
from pos_shared.security.auth import current_user_context, sign_jwt
from pos_shared.security.password import verify_password
from pos_shared.security.rate_limit import limiter
from pos_shared.utils.schemas import LoginRequest, LoginResponse, UserInfo

router = APIRouter(prefix="/api/auth", tags=["auth"])


def access_token_for(user: User) -> str:
    """Access token whose outlet_id claim is the user's effective outlet."""
    outlet_id = user.effective_outlet_id
    return sign_jwt({
        "sub": str(user.id),
        "role": user.role,
        "outlet_id": str(outlet_id) if outlet_id else None,
        "email": user.email,
    })


def _user_info(user: User) -> UserInfo:
    return UserInfo(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        outlet_id=user.effective_outlet_id,
    )


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.login_rate_limit)
def login(request: Request, body: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    """
    Authenticate a staff member and return an access token.

    The token contains:
    - sub: user ID
    - role: admin, cashier or staff
    - outlet_id: effective outlet (the switched-to outlet when set)
    - email
    """
    client_ip = request.client.host if request.client else None

    user = db.scalar(select(User).where(User.email == body.email, User.is_active.is_(True)))
    if not user:
        audit_auth_event("LOGIN_FAILED", email=body.email, success=False, reason="user_not_found", ip_address=client_ip)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    if not verify_password(body.password, user.password):
        audit_auth_event(
            "LOGIN_FAILED", user_id=str(user.id), email=body.email,
            success=False, reason="invalid_password", ip_address=client_ip,
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    token = access_token_for(user)

    audit_auth_event("LOGIN", user_id=str(user.id), email=user.email, ip_address=client_ip, role=user.role)

    return LoginResponse(
        access_token=token,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        user=_user_info(user),
    )


@router.get("/me", response_model=UserInfo)
def me(
    db: Session = Depends(get_db),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> UserInfo:
    """Profile of the token's user."""
    user = db.get(User, uuid.UUID(str(ctx["sub"])))
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )
    return _user_info(user)
