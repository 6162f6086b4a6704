"""User ORM model — staff accounts with their leave quotas."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leave_portal.common.constants import ApproverRole, Department, Role
from leave_portal.common.models import enum_column
from leave_portal.database import Base

if TYPE_CHECKING:
    from leave_portal.leave.models import LeaveRequest


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    password_hash: Mapped[Optional[str]] = mapped_column(sa.String(255))
    role: Mapped[Role] = mapped_column(enum_column(Role, "staff_role"), nullable=False)
    department: Mapped[Department] = mapped_column(
        enum_column(Department, "department"), nullable=False
    )
    date_of_joining: Mapped[Optional[date]] = mapped_column(sa.Date)
    approver_role: Mapped[Optional[ApproverRole]] = mapped_column(
        enum_column(ApproverRole, "approver_role")
    )
    approver_id: Mapped[Optional[uuid.UUID]] = mapped_column(sa.Uuid)
    # QuotaSet: {"CL": 12, "CO": 5, ...}, always rewritten whole
    quotas: Mapped[dict] = mapped_column(sa.JSON, nullable=False)
    # Leave request ids already charged to ``quotas``, written with them
    deducted_request_ids: Mapped[list] = mapped_column(
        sa.JSON, nullable=False, default=list
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )

    # Relationships
    leave_requests: Mapped[list[LeaveRequest]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        foreign_keys="LeaveRequest.user_id",
    )
