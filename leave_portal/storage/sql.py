"""SQLAlchemy-backed repository (PostgreSQL in production, SQLite in tests).

All writes go through the request's AsyncSession and are flushed, not
committed: the ``get_db`` dependency commits once per HTTP request, so a
ledger deduction and its status write land in the same transaction.
Driver / SQL errors roll the session back and surface as
PersistenceUnavailableException.
"""

from __future__ import annotations

import functools
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Iterable, Optional, TypeVar, Union

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leave_portal.common.constants import ACCESS_CODE_SETTING_KEY, LeaveCategory, LeaveStatus
from leave_portal.common.exceptions import NotFoundException, PersistenceUnavailableException
from leave_portal.common.models import AppSetting
from leave_portal.config import settings
from leave_portal.leave.models import LeaveRequest
from leave_portal.leave.schemas import DeciderInfo, LeaveRequestOut
from leave_portal.storage.base import LeaveRepository
from leave_portal.users.models import User
from leave_portal.users.schemas import UserOut

T = TypeVar("T")


def _quotas_to_json(quotas: dict[LeaveCategory, int]) -> dict[str, int]:
    return {LeaveCategory(k).value: int(v) for k, v in quotas.items()}


def _ids_to_json(ids: Iterable[Union[str, uuid.UUID]]) -> list[str]:
    # JSON column: sorted strings, so rewrites of the same set compare equal
    return sorted({str(i) for i in ids})


def _storage_errors(method: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """Roll back and re-raise SQLAlchemy errors as PersistenceUnavailableException."""

    @functools.wraps(method)
    async def wrapper(self: "SqlLeaveRepository", *args: Any, **kwargs: Any) -> T:
        try:
            return await method(self, *args, **kwargs)
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise PersistenceUnavailableException(
                method.__name__, reason=exc.__class__.__name__,
            ) from exc

    return wrapper


class SqlLeaveRepository(LeaveRepository):
    """LeaveRepository over one AsyncSession."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ── Users ───────────────────────────────────────────────────────

    @_storage_errors
    async def list_users(self) -> list[UserOut]:
        result = await self.db.execute(
            select(User).order_by(User.created_at, User.email)
        )
        return [UserOut.model_validate(u) for u in result.scalars().all()]

    @_storage_errors
    async def get_user(self, user_id: uuid.UUID) -> Optional[UserOut]:
        user = await self.db.get(User, user_id)
        return UserOut.model_validate(user) if user else None

    @_storage_errors
    async def get_user_by_email(self, email: str) -> Optional[UserOut]:
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        user = result.scalars().first()
        return UserOut.model_validate(user) if user else None

    @_storage_errors
    async def upsert_user(self, user: UserOut) -> UserOut:
        now = datetime.now(timezone.utc)
        row = await self.db.get(User, user.id)
        if row is None:
            row = User(id=user.id, created_at=user.created_at or now)
            self.db.add(row)

        row.email = user.email
        row.name = user.name
        row.password_hash = user.password_hash
        row.role = user.role
        row.department = user.department
        row.date_of_joining = user.date_of_joining
        row.approver_role = user.approver_role
        row.approver_id = user.approver_id
        row.quotas = _quotas_to_json(user.quotas)
        row.deducted_request_ids = _ids_to_json(user.deducted_request_ids)
        row.updated_at = now

        await self.db.flush()
        await self.db.refresh(row)
        return UserOut.model_validate(row)

    @_storage_errors
    async def delete_user(self, user_id: uuid.UUID) -> None:
        # Explicit cascade: SQLite does not enforce ON DELETE CASCADE by default
        await self.db.execute(
            delete(LeaveRequest).where(LeaveRequest.user_id == user_id)
        )
        await self.db.execute(delete(User).where(User.id == user_id))
        await self.db.flush()

    @_storage_errors
    async def set_user_quotas(
        self,
        user_id: uuid.UUID,
        quotas: dict[LeaveCategory, int],
        deducted_for: Optional[uuid.UUID] = None,
    ) -> None:
        row = await self.db.get(User, user_id)
        if row is None:
            raise NotFoundException("User", str(user_id))
        row.quotas = _quotas_to_json(quotas)
        if deducted_for is not None:
            row.deducted_request_ids = _ids_to_json(
                {*(row.deducted_request_ids or ()), deducted_for}
            )
        row.updated_at = datetime.now(timezone.utc)
        await self.db.flush()

    # ── Leave requests ──────────────────────────────────────────────

    @_storage_errors
    async def list_leave_requests(self) -> list[LeaveRequestOut]:
        result = await self.db.execute(
            select(LeaveRequest).order_by(
                LeaveRequest.applied_at.desc(), LeaveRequest.id
            )
        )
        return [LeaveRequestOut.model_validate(r) for r in result.scalars().all()]

    @_storage_errors
    async def get_leave_request(self, request_id: uuid.UUID) -> Optional[LeaveRequestOut]:
        row = await self.db.get(LeaveRequest, request_id)
        return LeaveRequestOut.model_validate(row) if row else None

    @_storage_errors
    async def create_leave_request(self, request: LeaveRequestOut) -> LeaveRequestOut:
        row = LeaveRequest(
            id=request.id or uuid.uuid4(),
            user_id=request.user_id,
            user_name=request.user_name,
            department=request.department,
            category=request.category,
            start_date=request.start_date,
            end_date=request.end_date,
            manual_days=request.manual_days,
            total_days=request.total_days,
            reason=request.reason,
            status=request.status,
            applied_at=request.applied_at,
            approver_id=request.approver_id,
            decided_by_id=request.decided_by_id,
            decided_by_name=request.decided_by_name,
            decided_at=request.decided_at,
            deduction_applied=request.deduction_applied,
        )
        self.db.add(row)
        await self.db.flush()
        return LeaveRequestOut.model_validate(row)

    @_storage_errors
    async def set_leave_request_status(
        self,
        request_id: uuid.UUID,
        status: LeaveStatus,
        decider: DeciderInfo,
    ) -> None:
        row = await self.db.get(LeaveRequest, request_id)
        if row is None:
            raise NotFoundException("LeaveRequest", str(request_id))
        row.status = status
        row.decided_by_id = decider.decided_by_id
        row.decided_by_name = decider.decided_by_name
        row.decided_at = decider.decided_at
        # The ledger flag only ever moves False → True
        row.deduction_applied = row.deduction_applied or decider.deduction_applied
        await self.db.flush()

    # ── Configuration ───────────────────────────────────────────────

    @_storage_errors
    async def get_access_code(self) -> str:
        row = await self.db.get(AppSetting, ACCESS_CODE_SETTING_KEY)
        return row.value if row else settings.DEFAULT_ACCESS_CODE

    @_storage_errors
    async def set_access_code(self, code: str) -> None:
        row = await self.db.get(AppSetting, ACCESS_CODE_SETTING_KEY)
        if row is None:
            row = AppSetting(
                key=ACCESS_CODE_SETTING_KEY,
                value=code,
                description="Shared secret gating Admin self-registration",
            )
            self.db.add(row)
        else:
            row.value = code
        row.updated_at = datetime.now(timezone.utc)
        await self.db.flush()
