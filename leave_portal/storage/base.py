"""Repository interface the leave core depends on.

Every operation is a coroutine. Implementations return pydantic snapshots
(`UserOut`, `LeaveRequestOut`) rather than ORM rows, so the core works
identically against any backend.
"""

from __future__ import annotations

import abc
import uuid
from typing import Optional

from leave_portal.common.constants import LeaveCategory, LeaveStatus
from leave_portal.leave.schemas import DeciderInfo, LeaveRequestOut
from leave_portal.users.schemas import UserOut


class LeaveRepository(abc.ABC):
    """Storage collaborator: users, leave requests and the admin access code."""

    # ── Users ───────────────────────────────────────────────────────

    @abc.abstractmethod
    async def list_users(self) -> list[UserOut]:
        """All users, oldest registration first (ties broken by email)."""

    @abc.abstractmethod
    async def upsert_user(self, user: UserOut) -> UserOut:
        """Insert or fully replace a user by id."""

    @abc.abstractmethod
    async def delete_user(self, user_id: uuid.UUID) -> None:
        """Delete a user and every leave request they own."""

    @abc.abstractmethod
    async def set_user_quotas(
        self,
        user_id: uuid.UUID,
        quotas: dict[LeaveCategory, int],
        deducted_for: Optional[uuid.UUID] = None,
    ) -> None:
        """Replace the user's whole QuotaSet.

        ``deducted_for`` names the leave request this write charges; it is
        recorded on the user in the same write, so a retried approval can
        tell that the balance already reflects it.
        """

    # ── Leave requests ──────────────────────────────────────────────

    @abc.abstractmethod
    async def list_leave_requests(self) -> list[LeaveRequestOut]:
        """All requests, most recently submitted first."""

    @abc.abstractmethod
    async def create_leave_request(self, request: LeaveRequestOut) -> LeaveRequestOut:
        """Persist a new request, assigning an id when it has none."""

    @abc.abstractmethod
    async def set_leave_request_status(
        self,
        request_id: uuid.UUID,
        status: LeaveStatus,
        decider: DeciderInfo,
    ) -> None:
        """Write status, decider stamp and ledger flag in one write."""

    # ── Configuration ───────────────────────────────────────────────

    @abc.abstractmethod
    async def get_access_code(self) -> str:
        ...

    @abc.abstractmethod
    async def set_access_code(self, code: str) -> None:
        ...

    # ── Derived lookups (override for efficiency) ───────────────────

    async def get_user(self, user_id: uuid.UUID) -> Optional[UserOut]:
        for user in await self.list_users():
            if user.id == user_id:
                return user
        return None

    async def get_user_by_email(self, email: str) -> Optional[UserOut]:
        needle = email.strip().lower()
        for user in await self.list_users():
            if user.email.lower() == needle:
                return user
        return None

    async def get_leave_request(self, request_id: uuid.UUID) -> Optional[LeaveRequestOut]:
        for request in await self.list_leave_requests():
            if request.id == request_id:
                return request
        return None
