"""Auth service — password hashing, JWT issuance, sign-up and login."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta, timezone

import bcrypt
from fastapi.exceptions import HTTPException
from jose import jwt

from leave_portal.auth.schemas import SignupRequest
from leave_portal.common.constants import DEFAULT_ACCOUNTS, Department, Role, is_admin_role
from leave_portal.common.exceptions import ConflictError, ValidationException
from leave_portal.config import settings
from leave_portal.leave.approvers import resolve_registration_approver
from leave_portal.leave.quota import default_quotas
from leave_portal.storage.base import LeaveRepository
from leave_portal.users.schemas import UserOut


# ── Passwords ───────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    """Constant-time bcrypt check; a missing or malformed hash never matches."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


# ── JWT helpers ─────────────────────────────────────────────────────

def create_access_token(user: UserOut) -> tuple[str, int]:
    """Return (encoded_jwt, expires_in_seconds)."""
    expires_in = settings.JWT_EXPIRY_HOURS * 3600
    payload = {
        "sub": str(user.id),
        "role": user.role.value,
        "type": "access",
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS),
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, expires_in


# ── Sign-up / login ─────────────────────────────────────────────────

async def register_user(repo: LeaveRepository, data: SignupRequest) -> UserOut:
    """Create an account with default balances and a resolved approver.

    Admin-variant roles must present the current admin access code. Checks
    run before anything is written.
    """
    email = data.email.strip().lower()

    if is_admin_role(data.role):
        current_code = await repo.get_access_code()
        if data.access_code != current_code:
            raise ValidationException({"access_code": ["Invalid admin access code."]})

    if await repo.get_user_by_email(email) is not None:
        raise ConflictError("email", email)

    records_approver = not (is_admin_role(data.role) or data.role == Role.principal)
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
        approver_role=data.approver_role if records_approver else None,
        approver_id=approver_id,
        quotas=default_quotas(),
        created_at=datetime.now(timezone.utc),
        password_hash=hash_password(data.password),
    )
    return await repo.upsert_user(user)


def build_default_accounts() -> list[UserOut]:
    """The initial Admin and Principal accounts, ready to store."""
    now = datetime.now(timezone.utc)
    accounts = []
    for offset, seed in enumerate(DEFAULT_ACCOUNTS):
        accounts.append(
            UserOut(
                id=uuid.uuid4(),
                email=seed["email"],
                name=seed["name"],
                role=Role(seed["role"]),
                department=Department(seed["department"]),
                date_of_joining=date.fromisoformat(seed["date_of_joining"]),
                quotas=default_quotas(),
                # Keeps registration order stable for approver resolution
                created_at=now + timedelta(microseconds=offset),
                password_hash=hash_password(seed["password"]),
            )
        )
    return accounts


async def authenticate(repo: LeaveRepository, email: str, password: str) -> UserOut:
    """Case-insensitive email lookup plus bcrypt check, or 401."""
    user = await repo.get_user_by_email(email)
    if user is None or not verify_password(password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password.")
    return user
