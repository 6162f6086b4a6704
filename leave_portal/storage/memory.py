"""In-memory repository — the process-lifetime mirror used as a storage
fallback and in unit tests.

Constructed once at startup (see ``main.lifespan``) and injected; there is no
module-level state. Snapshots are frozen pydantic models, so updates replace
entries instead of mutating them.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional

from leave_portal.common.constants import LeaveCategory, LeaveStatus
from leave_portal.common.exceptions import NotFoundException
from leave_portal.config import settings
from leave_portal.leave.schemas import DeciderInfo, LeaveRequestOut
from leave_portal.storage.base import LeaveRepository
from leave_portal.users.schemas import UserOut

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _aware(value: Optional[datetime]) -> datetime:
    if value is None:
        return _EPOCH
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class InMemoryLeaveRepository(LeaveRepository):
    """Dict-backed LeaveRepository."""

    def __init__(
        self,
        users: Iterable[UserOut] = (),
        requests: Iterable[LeaveRequestOut] = (),
        access_code: Optional[str] = None,
    ) -> None:
        self._users: dict[uuid.UUID, UserOut] = {u.id: u for u in users}
        self._requests: dict[uuid.UUID, LeaveRequestOut] = {}
        for request in requests:
            rid = request.id or uuid.uuid4()
            self._requests[rid] = request.model_copy(update={"id": rid})
        self._access_code = access_code or settings.DEFAULT_ACCESS_CODE

    # ── Users ───────────────────────────────────────────────────────

    async def list_users(self) -> list[UserOut]:
        return sorted(
            self._users.values(),
            key=lambda u: (_aware(u.created_at), u.email.lower()),
        )

    async def get_user(self, user_id: uuid.UUID) -> Optional[UserOut]:
        return self._users.get(user_id)

    async def upsert_user(self, user: UserOut) -> UserOut:
        existing = self._users.get(user.id)
        created_at = user.created_at or (
            existing.created_at if existing else datetime.now(timezone.utc)
        )
        stored = user.model_copy(update={"created_at": created_at})
        self._users[user.id] = stored
        return stored

    async def delete_user(self, user_id: uuid.UUID) -> None:
        self._users.pop(user_id, None)
        self._requests = {
            rid: r for rid, r in self._requests.items() if r.user_id != user_id
        }

    async def set_user_quotas(
        self,
        user_id: uuid.UUID,
        quotas: dict[LeaveCategory, int],
        deducted_for: Optional[uuid.UUID] = None,
    ) -> None:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundException("User", str(user_id))
        update: dict = {"quotas": dict(quotas)}
        if deducted_for is not None:
            update["deducted_request_ids"] = user.deducted_request_ids | {deducted_for}
        self._users[user_id] = user.model_copy(update=update)

    # ── Leave requests ──────────────────────────────────────────────

    async def list_leave_requests(self) -> list[LeaveRequestOut]:
        return sorted(
            self._requests.values(),
            key=lambda r: _aware(r.applied_at),
            reverse=True,
        )

    async def get_leave_request(self, request_id: uuid.UUID) -> Optional[LeaveRequestOut]:
        return self._requests.get(request_id)

    async def create_leave_request(self, request: LeaveRequestOut) -> LeaveRequestOut:
        rid = request.id or uuid.uuid4()
        stored = request.model_copy(update={"id": rid})
        self._requests[rid] = stored
        return stored

    async def set_leave_request_status(
        self,
        request_id: uuid.UUID,
        status: LeaveStatus,
        decider: DeciderInfo,
    ) -> None:
        request = self._requests.get(request_id)
        if request is None:
            raise NotFoundException("LeaveRequest", str(request_id))
        self._requests[request_id] = request.model_copy(
            update={
                "status": status,
                "decided_by_id": decider.decided_by_id,
                "decided_by_name": decider.decided_by_name,
                "decided_at": decider.decided_at,
                "deduction_applied": request.deduction_applied or decider.deduction_applied,
            }
        )

    # ── Configuration ───────────────────────────────────────────────

    async def get_access_code(self) -> str:
        return self._access_code

    async def set_access_code(self, code: str) -> None:
        self._access_code = code
