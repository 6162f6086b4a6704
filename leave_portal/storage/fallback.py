"""Fallback decorator — keeps the portal usable when the primary store is down.

``FallbackLeaveRepository`` implements the same interface as the repository it
wraps and lives for one unit of work (one HTTP request). Each call goes to the
primary first; on a storage failure it logs a warning and replays the call
against the fallback (normally the in-memory mirror). If the fallback fails
too, PersistenceUnavailableException is raised: the caller never sees a silent
success.

Once the primary has accepted a write in the unit of work, a later primary
failure is not absorbed: the primary's rollback has discarded that write, so
answering from the fallback would report work that never reached storage.
Writes accepted by the primary are queued and copied to the fallback by
``flush_mirror`` when the unit of work completes.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from leave_portal.common.constants import LeaveCategory, LeaveStatus
from leave_portal.common.exceptions import (
    NotFoundException,
    PersistenceUnavailableException,
)
from leave_portal.leave.schemas import DeciderInfo, LeaveRequestOut
from leave_portal.storage.base import LeaveRepository
from leave_portal.users.schemas import UserOut

logger = logging.getLogger(__name__)

# Failures that mean "the store is unreachable", as opposed to domain errors
# (not found, validation) which must propagate unchanged.
STORAGE_ERRORS: tuple[type[BaseException], ...] = (
    PersistenceUnavailableException,
    OSError,
)


class FallbackLeaveRepository(LeaveRepository):
    def __init__(
        self,
        primary: LeaveRepository,
        fallback: LeaveRepository,
        *,
        mirror_writes: bool = True,
    ) -> None:
        self.primary = primary
        self.fallback = fallback
        self.mirror_writes = mirror_writes
        self._primary_wrote = False
        self._pending_mirror: list[tuple[str, tuple[Any, ...]]] = []

    def _refuse_after_writes(self, operation: str, cause: BaseException) -> None:
        if not self._primary_wrote:
            return
        logger.error(
            "Primary storage failed on %s after accepting writes in this unit "
            "of work (%s); not falling back",
            operation, cause,
        )
        self._pending_mirror.clear()
        raise PersistenceUnavailableException(
            operation, reason="Earlier writes in this unit of work were lost.",
        ) from cause

    async def _read(self, operation: str, *args: Any) -> Any:
        try:
            return await getattr(self.primary, operation)(*args)
        except STORAGE_ERRORS as exc:
            self._refuse_after_writes(operation, exc)
            logger.warning(
                "Primary storage failed on %s (%s); serving from fallback",
                operation, exc,
            )
            return await self._from_fallback(operation, *args, cause=exc)

    async def _write(self, operation: str, *args: Any) -> Any:
        try:
            result = await getattr(self.primary, operation)(*args)
        except STORAGE_ERRORS as exc:
            self._refuse_after_writes(operation, exc)
            logger.warning(
                "Primary storage failed on %s (%s); writing to fallback",
                operation, exc,
            )
            return await self._from_fallback(operation, *args, cause=exc)

        self._primary_wrote = True
        if self.mirror_writes:
            self._pending_mirror.append((operation, args))
        return result

    async def _from_fallback(self, operation: str, *args: Any, cause: BaseException) -> Any:
        try:
            return await getattr(self.fallback, operation)(*args)
        except STORAGE_ERRORS as exc:
            logger.error("Fallback storage failed on %s: %s", operation, exc)
            raise PersistenceUnavailableException(
                operation, reason="Primary and fallback storage both failed.",
            ) from cause

    # ── Unit of work ────────────────────────────────────────────────

    async def flush_mirror(self) -> None:
        """Copy the writes the primary accepted onto the fallback, in order."""
        pending, self._pending_mirror = self._pending_mirror, []
        for operation, args in pending:
            try:
                await getattr(self.fallback, operation)(*args)
            except NotFoundException:
                # Entity never reached the mirror (created while it was bypassed)
                logger.debug("Mirror skipped %s: entity not present", operation)

    def discard_mirror(self) -> None:
        """Drop queued mirror writes; the unit of work did not complete."""
        self._pending_mirror.clear()

    # ── Users ───────────────────────────────────────────────────────

    async def list_users(self) -> list[UserOut]:
        return await self._read("list_users")

    async def get_user(self, user_id: uuid.UUID) -> Optional[UserOut]:
        return await self._read("get_user", user_id)

    async def get_user_by_email(self, email: str) -> Optional[UserOut]:
        return await self._read("get_user_by_email", email)

    async def upsert_user(self, user: UserOut) -> UserOut:
        return await self._write("upsert_user", user)

    async def delete_user(self, user_id: uuid.UUID) -> None:
        await self._write("delete_user", user_id)

    async def set_user_quotas(
        self,
        user_id: uuid.UUID,
        quotas: dict[LeaveCategory, int],
        deducted_for: Optional[uuid.UUID] = None,
    ) -> None:
        await self._write("set_user_quotas", user_id, quotas, deducted_for)

    # ── Leave requests ──────────────────────────────────────────────

    async def list_leave_requests(self) -> list[LeaveRequestOut]:
        return await self._read("list_leave_requests")

    async def get_leave_request(self, request_id: uuid.UUID) -> Optional[LeaveRequestOut]:
        return await self._read("get_leave_request", request_id)

    async def create_leave_request(self, request: LeaveRequestOut) -> LeaveRequestOut:
        try:
            created = await self.primary.create_leave_request(request)
        except STORAGE_ERRORS as exc:
            self._refuse_after_writes("create_leave_request", exc)
            logger.warning(
                "Primary storage failed on create_leave_request (%s); writing to fallback",
                exc,
            )
            return await self._from_fallback("create_leave_request", request, cause=exc)
        self._primary_wrote = True
        if self.mirror_writes:
            # Mirror under the primary-assigned id
            self._pending_mirror.append(("create_leave_request", (created,)))
        return created

    async def set_leave_request_status(
        self,
        request_id: uuid.UUID,
        status: LeaveStatus,
        decider: DeciderInfo,
    ) -> None:
        await self._write("set_leave_request_status", request_id, status, decider)

    # ── Configuration ───────────────────────────────────────────────

    async def get_access_code(self) -> str:
        return await self._read("get_access_code")

    async def set_access_code(self, code: str) -> None:
        await self._write("set_access_code", code)
