"""Approver resolution — who decides a given requester's leave.

Resolution runs once per submission and the result is stamped on the request;
later org changes never move in-flight requests. "First" always means the
order of ``all_users`` as returned by the repository (registration order).
"""

from __future__ import annotations

import uuid
from typing import Iterable, Optional, Sequence

from leave_portal.common.constants import ApproverRole, Department, Role, is_admin_role
from leave_portal.users.schemas import UserOut


def _first(users: Iterable[UserOut], *, exclude: Optional[uuid.UUID] = None, **match) -> Optional[UserOut]:
    for user in users:
        if exclude is not None and user.id == exclude:
            continue
        if all(getattr(user, attr) == value for attr, value in match.items()):
            return user
    return None


def _first_admin(users: Iterable[UserOut], *, exclude: Optional[uuid.UUID] = None) -> Optional[UserOut]:
    for user in users:
        if user.id != exclude and is_admin_role(user.role):
            return user
    return None


def _by_declared_role(
    approver_role: Optional[ApproverRole],
    department: Department,
    chosen_admin_id: Optional[uuid.UUID],
    users: Sequence[UserOut],
    exclude: Optional[uuid.UUID],
) -> Optional[uuid.UUID]:
    if approver_role == ApproverRole.hod:
        hod = _first(users, exclude=exclude, role=Role.hod, department=department)
        return hod.id if hod else None

    if approver_role == ApproverRole.principal:
        principal = _first(users, exclude=exclude, role=Role.principal)
        return principal.id if principal else None

    if approver_role == ApproverRole.admin:
        if chosen_admin_id is not None and chosen_admin_id != exclude:
            chosen = _first(users, id=chosen_admin_id)
            if chosen is not None and is_admin_role(chosen.role):
                return chosen.id
        admin = _first_admin(users, exclude=exclude)
        return admin.id if admin else None

    return None


def resolve_approver(requester: UserOut, all_users: Sequence[UserOut]) -> Optional[uuid.UUID]:
    """Return the id of the single user who approves ``requester``'s leave.

    - Admin variants go to the Principal.
    - The Principal has no approver (their requests are auto-approved).
    - HODs go to the Principal.
    - Everyone else follows their declared ApproverRole: the HOD of their
      own department, the Principal, or their chosen Admin (falling back to
      the first Admin).

    Returns None when nobody qualifies; the requester is never their own
    approver.
    """
    if is_admin_role(requester.role) or requester.role == Role.hod:
        principal = _first(all_users, exclude=requester.id, role=Role.principal)
        return principal.id if principal else None

    if requester.role == Role.principal:
        return None

    return _by_declared_role(
        requester.approver_role,
        requester.department,
        requester.approver_id,
        all_users,
        exclude=requester.id,
    )


def resolve_registration_approver(
    role: Role,
    department: Department,
    approver_role: Optional[ApproverRole],
    chosen_admin_id: Optional[uuid.UUID],
    existing_users: Sequence[UserOut],
) -> Optional[uuid.UUID]:
    """Approver recorded on a new account at sign-up.

    Admin variants and the Principal record none; other roles resolve their
    declared ApproverRole against the users registered so far.
    """
    if is_admin_role(role) or role == Role.principal:
        return None
    return _by_declared_role(
        approver_role, department, chosen_admin_id, existing_users, exclude=None,
    )
