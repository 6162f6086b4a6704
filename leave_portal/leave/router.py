"""Leave router — apply, history, dashboard, approval queue and decisions.

All endpoints require authentication. Decision endpoints additionally check
that the caller is the request's approver (or an Admin variant).
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query

from leave_portal.auth.dependencies import get_current_user
from leave_portal.common.constants import LeaveStatus
from leave_portal.dependencies import get_repository
from leave_portal.leave.schemas import (
    BulkApprovalOut,
    DashboardOut,
    LeaveCategoryOut,
    LeaveRequestCreate,
    LeaveRequestOut,
)
from leave_portal.leave.service import LeaveService
from leave_portal.storage.base import LeaveRepository
from leave_portal.users.schemas import UserOut

router = APIRouter(prefix="", tags=["leave"])


# ── GET /categories ─────────────────────────────────────────────────

@router.get("/categories", response_model=list[LeaveCategoryOut])
async def list_categories(user: UserOut = Depends(get_current_user)):
    return LeaveService.list_categories()


# ── POST /apply ─────────────────────────────────────────────────────

@router.post("/apply", response_model=LeaveRequestOut, status_code=201)
async def apply_leave(
    body: LeaveRequestCreate,
    user: UserOut = Depends(get_current_user),
    repo: LeaveRepository = Depends(get_repository),
):
    """Apply for leave. Validates category, working days and balance."""
    return await LeaveService.submit_leave(repo, user.id, body)


# ── GET /my-leaves ──────────────────────────────────────────────────

@router.get("/my-leaves", response_model=list[LeaveRequestOut])
async def my_leaves(
    user: UserOut = Depends(get_current_user),
    repo: LeaveRepository = Depends(get_repository),
):
    """The caller's requests, newest first."""
    return await LeaveService.list_my_requests(repo, user.id)


# ── GET /dashboard ──────────────────────────────────────────────────

@router.get("/dashboard", response_model=DashboardOut)
async def dashboard(
    user: UserOut = Depends(get_current_user),
    repo: LeaveRepository = Depends(get_repository),
):
    return await LeaveService.get_dashboard(repo, user.id)


# ── GET /approvals ──────────────────────────────────────────────────

@router.get("/approvals", response_model=list[LeaveRequestOut])
async def approval_queue(
    status: Optional[LeaveStatus] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    user: UserOut = Depends(get_current_user),
    repo: LeaveRepository = Depends(get_repository),
):
    """Requests routed to the caller, filterable by status and applicant name."""
    return await LeaveService.get_approval_queue(repo, user, status=status, search=search)


# ── POST /approvals/approve-all ─────────────────────────────────────

@router.post("/approvals/approve-all", response_model=BulkApprovalOut)
async def approve_all(
    user: UserOut = Depends(get_current_user),
    repo: LeaveRepository = Depends(get_repository),
):
    return await LeaveService.approve_all_pending(repo, user)


# ── PUT /{request_id}/approve ───────────────────────────────────────

@router.put("/{request_id}/approve", response_model=LeaveRequestOut)
async def approve_leave(
    request_id: uuid.UUID,
    user: UserOut = Depends(get_current_user),
    repo: LeaveRepository = Depends(get_repository),
):
    return await LeaveService.approve_leave(repo, request_id, user)


# ── PUT /{request_id}/reject ────────────────────────────────────────

@router.put("/{request_id}/reject", response_model=LeaveRequestOut)
async def reject_leave(
    request_id: uuid.UUID,
    user: UserOut = Depends(get_current_user),
    repo: LeaveRepository = Depends(get_repository),
):
    return await LeaveService.reject_leave(repo, request_id, user)
