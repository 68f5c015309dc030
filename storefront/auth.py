"""
Token authentication and role checks.

Access tokens are HS256 JWTs carrying the user's id, email and role.
Route handlers declare ``Depends(get_current_user)`` for any signed-in
user or ``Depends(require_admin)`` for catalog mutations.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import APIRouter, Depends, Header, HTTPException, Request

from .config import Settings
from .logger import get_logger
from .models import LoginRequest, LoginResponse, Principal, User
from .storage import authenticate_user

logger = get_logger("auth")

router = APIRouter(prefix="/api/auth", tags=["auth"])


def create_access_token(user: User, settings: Settings) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_expires_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> Principal:
    """Verify ``token`` and return its principal.

    Raises ``jwt.InvalidTokenError`` (or a subclass such as
    ``ExpiredSignatureError``) when the token cannot be trusted.
    """
    claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    try:
        return Principal(id=str(claims["id"]), email=claims["email"], role=claims["role"])
    except KeyError as exc:
        raise jwt.InvalidTokenError(f"missing claim {exc}") from exc


def get_current_user(request: Request, authorization: Optional[str] = Header(None)) -> Principal:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Unauthorized")

    token = authorization.split(" ", 1)[1].strip()
    try:
        principal = decode_access_token(token, request.app.state.settings)
    except jwt.InvalidTokenError as exc:
        logger.info("Rejected token: %s", exc)
        raise HTTPException(status_code=401, detail="Invalid token")

    # Picked up by the audit middleware
    request.state.user = principal
    return principal


def require_role(*roles: str):
    def dependency(user: Principal = Depends(get_current_user)) -> Principal:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Forbidden")
        return user

    return dependency


require_admin = require_role("admin")


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, request: Request) -> LoginResponse:
    user = authenticate_user(payload.email, payload.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token(user, request.app.state.settings)
    logger.info("User %s logged in", user.id)
    return LoginResponse(
        token=token,
        user=Principal(id=user.id, email=user.email, role=user.role),
    )
