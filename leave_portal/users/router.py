"""Users router — staff administration for Admin-variant accounts.

All endpoints require an Admin, Admin 1 or Admin 2 account.
"""

import uuid

from fastapi import APIRouter, Depends

from leave_portal.auth.dependencies import require_admin
from leave_portal.dependencies import get_repository
from leave_portal.storage.base import LeaveRepository
from leave_portal.users.schemas import (
    AccessCodeOut,
    AccessCodeUpdate,
    QuotaUpdate,
    StaffCreate,
    UserOut,
)
from leave_portal.users.service import UserService

router = APIRouter(prefix="", tags=["users"])


# ── GET / ───────────────────────────────────────────────────────────

@router.get("", response_model=list[UserOut])
async def list_users(
    admin: UserOut = Depends(require_admin),
    repo: LeaveRepository = Depends(get_repository),
):
    return await UserService.list_users(repo)


# ── POST / ──────────────────────────────────────────────────────────

@router.post("", response_model=UserOut, status_code=201)
async def add_staff(
    body: StaffCreate,
    admin: UserOut = Depends(require_admin),
    repo: LeaveRepository = Depends(get_repository),
):
    """Create a staff account with default balances."""
    return await UserService.add_staff(repo, body)


# ── DELETE /{user_id} ───────────────────────────────────────────────

@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: uuid.UUID,
    admin: UserOut = Depends(require_admin),
    repo: LeaveRepository = Depends(get_repository),
):
    """Delete an account and every leave request it owns."""
    await UserService.delete_user(repo, user_id, admin)


# ── PUT /{user_id}/quotas ───────────────────────────────────────────

@router.put("/{user_id}/quotas", response_model=UserOut)
async def update_quotas(
    user_id: uuid.UUID,
    body: QuotaUpdate,
    admin: UserOut = Depends(require_admin),
    repo: LeaveRepository = Depends(get_repository),
):
    """Replace all five balances of a user."""
    return await UserService.update_quotas(repo, user_id, body.to_quota_set())


# ── Access code ─────────────────────────────────────────────────────

@router.get("/settings/access-code", response_model=AccessCodeOut)
async def get_access_code(
    admin: UserOut = Depends(require_admin),
    repo: LeaveRepository = Depends(get_repository),
):
    return AccessCodeOut(code=await UserService.get_access_code(repo))


@router.put("/settings/access-code", response_model=AccessCodeOut)
async def set_access_code(
    body: AccessCodeUpdate,
    admin: UserOut = Depends(require_admin),
    repo: LeaveRepository = Depends(get_repository),
):
    return AccessCodeOut(code=await UserService.set_access_code(repo, body.code))
