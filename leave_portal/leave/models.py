"""Leave ORM models: LeaveRequest."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leave_portal.common.constants import Department, LeaveCategory, LeaveStatus
from leave_portal.common.models import enum_column
from leave_portal.database import Base

if TYPE_CHECKING:
    from leave_portal.users.models import User


class LeaveRequest(Base):
    __tablename__ = "leave_requests"
    __table_args__ = (
        sa.Index("ix_leave_requests_user_id", "user_id"),
        sa.Index("ix_leave_requests_approver_status", "approver_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    # Snapshot of the requester at submission time
    user_name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    department: Mapped[Department] = mapped_column(
        enum_column(Department, "department"), nullable=False
    )
    category: Mapped[LeaveCategory] = mapped_column(
        enum_column(LeaveCategory, "leave_category"), nullable=False
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    manual_days: Mapped[Optional[int]] = mapped_column(sa.Integer)
    total_days: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    status: Mapped[LeaveStatus] = mapped_column(
        enum_column(LeaveStatus, "leave_status"),
        nullable=False,
        default=LeaveStatus.pending,
    )
    applied_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False
    )
    # Plain reference, not a FK: the approver may be deleted later
    approver_id: Mapped[Optional[uuid.UUID]] = mapped_column(sa.Uuid)
    decided_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(sa.Uuid)
    decided_by_name: Mapped[Optional[str]] = mapped_column(sa.String(200))
    decided_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    deduction_applied: Mapped[bool] = mapped_column(
        sa.Boolean, nullable=False, default=False
    )

    # Relationships
    user: Mapped[User] = relationship(
        back_populates="leave_requests", foreign_keys=[user_id]
    )
