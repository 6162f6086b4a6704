"""Auth dependencies — JWT validation, role enforcement."""

from __future__ import annotations

import uuid
from typing import Callable

from fastapi import Depends, Request
from fastapi.exceptions import HTTPException
from jose import ExpiredSignatureError, JWTError, jwt

from leave_portal.common.constants import ADMIN_ROLES, Role
from leave_portal.common.exceptions import ForbiddenException
from leave_portal.config import settings
from leave_portal.dependencies import get_repository
from leave_portal.storage.base import LeaveRepository
from leave_portal.users.schemas import UserOut


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header.")
    return auth_header[7:]


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    repo: LeaveRepository = Depends(get_repository),
) -> UserOut:
    """Validate the JWT and return the caller's current account snapshot."""
    token = _extract_bearer(request)

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired.")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token.")

    if payload.get("type") != "access":
        raise HTTPException(status_code=401, detail="Invalid token type.")

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token subject.")

    # Role is re-read from storage; the token's claim may be stale
    user = await repo.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="User account not found.")
    return user


# ── Role-based dependency ───────────────────────────────────────────

def require_role(*allowed_roles: Role) -> Callable:
    """Return a FastAPI dependency that enforces role membership."""

    async def _check(user: UserOut = Depends(get_current_user)) -> UserOut:
        if user.role not in allowed_roles:
            raise ForbiddenException(
                detail=f"Role '{user.role.value}' is not permitted. Required: {[r.value for r in allowed_roles]}.",
            )
        return user

    return _check


require_admin = require_role(*sorted(ADMIN_ROLES, key=lambda r: r.value))
