"""Leave Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Request  → request bodies (write)
  - *Out                → snapshots / response bodies (read)
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from leave_portal.common.constants import (
    LEAVE_CATEGORY_LABELS,
    Department,
    LeaveCategory,
    LeaveStatus,
)


# ═════════════════════════════════════════════════════════════════════
# Leave Request — Create
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    """Payload for applying a leave request."""

    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description='Leave label or code, e.g. "Casual Leave (CL)" or "CL"',
    )
    start_date: date = Field(..., description="Leave start date (inclusive)")
    end_date: date = Field(..., description="Leave end date (inclusive)")
    manual_days: Optional[int] = Field(
        default=None,
        ge=0,
        description="Explicit chargeable-day count; overrides the weekday count when positive",
    )
    reason: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def validate_dates(self) -> "LeaveRequestCreate":
        # A positive manual_days is charged as given, whatever the range
        if not self.manual_days and self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date.")
        return self


# ═════════════════════════════════════════════════════════════════════
# Leave Request — Snapshot / Response
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestOut(BaseModel):
    """Full leave request as stored."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: Optional[uuid.UUID] = None
    user_id: uuid.UUID
    user_name: str
    department: Department
    category: LeaveCategory
    start_date: date
    end_date: date
    manual_days: Optional[int] = None
    total_days: int
    reason: Optional[str] = None
    status: LeaveStatus = LeaveStatus.pending
    applied_at: datetime
    approver_id: Optional[uuid.UUID] = None
    decided_by_id: Optional[uuid.UUID] = None
    decided_by_name: Optional[str] = None
    decided_at: Optional[datetime] = None
    deduction_applied: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def category_label(self) -> str:
        return LEAVE_CATEGORY_LABELS[self.category]


class DeciderInfo(BaseModel):
    """Who decided a request, stamped together with the status write."""

    decided_by_id: Optional[uuid.UUID] = None
    decided_by_name: Optional[str] = None
    decided_at: Optional[datetime] = None
    deduction_applied: bool = False


# ═════════════════════════════════════════════════════════════════════
# Bulk approval / Dashboard
# ═════════════════════════════════════════════════════════════════════


class BulkApprovalFailure(BaseModel):
    request_id: uuid.UUID
    error: str


class BulkApprovalOut(BaseModel):
    """Outcome of approving every pending request in a queue."""

    approved: list[LeaveRequestOut] = Field(default_factory=list)
    failed: list[BulkApprovalFailure] = Field(default_factory=list)


class LeaveCategoryOut(BaseModel):
    code: LeaveCategory
    label: str


class DashboardOut(BaseModel):
    """Per-user summary: balances, counts and the latest requests."""

    quotas: dict[LeaveCategory, int]
    total_remaining: int
    pending_count: int
    approved_count: int
    rejected_count: int
    recent_requests: list[LeaveRequestOut]
