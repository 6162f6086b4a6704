"""Auth Pydantic schemas for request / response validation."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from leave_portal.common.constants import ApproverRole, Department, Role
from leave_portal.users.schemas import UserOut


# ── Requests ────────────────────────────────────────────────────────

class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=4, max_length=128)
    role: Role = Role.teaching_staff
    department: Department = Department.comps
    date_of_joining: Optional[date] = None
    approver_role: Optional[ApproverRole] = ApproverRole.hod
    # Only meaningful with approver_role=Admin: the admin picked on the form
    approver_id: Optional[uuid.UUID] = None
    # Required for Admin-variant roles
    access_code: Optional[str] = Field(None, max_length=64)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


# ── Responses ───────────────────────────────────────────────────────

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserOut
