"""User service — staff administration, quota edits, profile and access code."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Mapping, Union

from leave_portal.auth.service import hash_password
from leave_portal.common.constants import LeaveCategory, Role, is_admin_role
from leave_portal.common.exceptions import (
    ConflictError,
    NotFoundException,
    ValidationException,
)
from leave_portal.leave.approvers import resolve_registration_approver
from leave_portal.leave.quota import default_quotas, validate_quotas
from leave_portal.storage.base import LeaveRepository
from leave_portal.users.schemas import ProfileUpdate, StaffCreate, UserOut

logger = logging.getLogger(__name__)


class UserService:
    """Static service class for account administration."""

    @staticmethod
    async def _get_user(repo: LeaveRepository, user_id: uuid.UUID) -> UserOut:
        user = await repo.get_user(user_id)
        if user is None:
            raise NotFoundException("User", str(user_id))
        return user

    # ── Staff ───────────────────────────────────────────────────────

    @staticmethod
    async def list_users(repo: LeaveRepository) -> list[UserOut]:
        return await repo.list_users()

    @staticmethod
    async def add_staff(repo: LeaveRepository, data: StaffCreate) -> UserOut:
        """Admin-created account with default balances.

        Admin-variant accounts are only created through gated sign-up.
        """
        if is_admin_role(data.role):
            raise ValidationException(
                {"role": ["Admin accounts must register with the admin access code."]}
            )

        email = data.email.strip().lower()
        if await repo.get_user_by_email(email) is not None:
            raise ConflictError("email", email)

        approver_id = resolve_registration_approver(
            data.role,
            data.department,
            data.approver_role,
            data.approver_id,
            await repo.list_users(),
        )
        user = UserOut(
            id=uuid.uuid4(),
            email=email,
            name=data.name.strip(),
            role=data.role,
            department=data.department,
            date_of_joining=data.date_of_joining,
            approver_role=None if data.role == Role.principal else data.approver_role,
            approver_id=approver_id,
            quotas=default_quotas(),
            created_at=datetime.now(timezone.utc),
            password_hash=hash_password(data.password),
        )
        return await repo.upsert_user(user)

    @staticmethod
    async def delete_user(
        repo: LeaveRepository,
        user_id: uuid.UUID,
        actor: UserOut,
    ) -> None:
        """Delete an account together with all of its leave requests."""
        if user_id == actor.id:
            raise ValidationException({"user_id": ["You cannot delete your own account."]})
        user = await UserService._get_user(repo, user_id)
        await repo.delete_user(user.id)
        logger.info("User %s (%s) deleted by %s", user.id, user.email, actor.id)

    @staticmethod
    async def update_quotas(
        repo: LeaveRepository,
        user_id: uuid.UUID,
        quotas: Mapping[Union[str, LeaveCategory], int],
    ) -> UserOut:
        normalised = validate_quotas(quotas)
        user = await UserService._get_user(repo, user_id)
        await repo.set_user_quotas(user.id, normalised)
        return user.model_copy(update={"quotas": normalised})

    # ── Profile ─────────────────────────────────────────────────────

    @staticmethod
    async def update_profile(
        repo: LeaveRepository,
        user: UserOut,
        data: ProfileUpdate,
    ) -> UserOut:
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            return user
        if "name" in changes:
            changes["name"] = changes["name"].strip()
        return await repo.upsert_user(user.model_copy(update=changes))

    # ── Admin access code ───────────────────────────────────────────

    @staticmethod
    async def get_access_code(repo: LeaveRepository) -> str:
        return await repo.get_access_code()

    @staticmethod
    async def set_access_code(repo: LeaveRepository, code: str) -> str:
        code = code.strip()
        if not code:
            raise ValidationException({"code": ["Access code cannot be blank."]})
        await repo.set_access_code(code)
        return code
