"""User Pydantic v2 schemas — the account snapshot the core works with,
plus admin request bodies.

Naming conventions:
  - *Create / *Update  → request bodies (write)
  - *Out               → snapshots returned by the repository and the API
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from leave_portal.common.constants import ApproverRole, Department, LeaveCategory, Role


# ═════════════════════════════════════════════════════════════════════
# Account snapshot
# ═════════════════════════════════════════════════════════════════════


class UserOut(BaseModel):
    """Immutable view of one staff account.

    ``password_hash`` and ``deducted_request_ids`` travel with the snapshot
    so storage round-trips keep them, but they are never serialised.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: uuid.UUID
    email: str
    name: str
    role: Role
    department: Department
    date_of_joining: Optional[date] = None
    approver_role: Optional[ApproverRole] = None
    approver_id: Optional[uuid.UUID] = None
    quotas: dict[LeaveCategory, int]
    created_at: Optional[datetime] = None
    password_hash: Optional[str] = Field(default=None, exclude=True, repr=False)
    # Requests whose deduction the balances above already reflect
    deducted_request_ids: frozenset[uuid.UUID] = Field(
        default_factory=frozenset, exclude=True, repr=False,
    )

    @field_validator("quotas")
    @classmethod
    def _quotas_complete(cls, v: dict[LeaveCategory, int]) -> dict[LeaveCategory, int]:
        missing = [c.value for c in LeaveCategory if c not in v]
        if missing:
            raise ValueError(f"Missing balance for: {', '.join(missing)}")
        if any(days < 0 for days in v.values()):
            raise ValueError("Balances cannot be negative")
        return v


# ═════════════════════════════════════════════════════════════════════
# Admin: add staff / quotas / access code
# ═════════════════════════════════════════════════════════════════════


class StaffCreate(BaseModel):
    """Admin-created account. Admin-variant roles are not offered here."""

    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=4, max_length=128)
    role: Role = Role.teaching_staff
    department: Department = Department.comps
    date_of_joining: Optional[date] = None
    approver_role: Optional[ApproverRole] = ApproverRole.hod
    approver_id: Optional[uuid.UUID] = None


class QuotaUpdate(BaseModel):
    """Full replacement of a user's balances."""

    CL: int = Field(..., ge=0)
    CO: int = Field(..., ge=0)
    ML: int = Field(..., ge=0)
    VL: int = Field(..., ge=0)
    EL: int = Field(..., ge=0)

    def to_quota_set(self) -> dict[LeaveCategory, int]:
        return {category: getattr(self, category.value) for category in LeaveCategory}


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    department: Optional[Department] = None
    date_of_joining: Optional[date] = None


class AccessCodeUpdate(BaseModel):
    code: str = Field(..., min_length=4, max_length=64)


class AccessCodeOut(BaseModel):
    code: str
