"""Enums and constants for the leave portal — stored as plain strings."""

from __future__ import annotations

import enum


# ── Staff / Organisation ────────────────────────────────────────────

class Role(str, enum.Enum):
    teaching_staff = "Teaching Staff"
    non_teaching_staff = "Non-Teaching Staff"
    hod = "HOD"
    principal = "Principal"
    admin = "Admin"
    admin_1 = "Admin 1"
    admin_2 = "Admin 2"


ADMIN_ROLES: frozenset[Role] = frozenset({Role.admin, Role.admin_1, Role.admin_2})


def is_admin_role(role: Role) -> bool:
    return role in ADMIN_ROLES


class ApproverRole(str, enum.Enum):
    hod = "HOD"
    principal = "Principal"
    admin = "Admin"


class Department(str, enum.Enum):
    aiml = "AIML"
    aida = "AIDA"
    comps = "COMPS"
    it = "IT"
    civil = "CIVIL"
    mech = "MECH"
    automobile = "AUTOMOBILE"
    student_section = "Student Section"
    tpo = "TPO"
    exam_cell = "Exam Cell"
    not_applicable = "Not Applicable"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveCategory(str, enum.Enum):
    CL = "CL"
    CO = "CO"
    ML = "ML"
    VL = "VL"
    EL = "EL"

    @property
    def label(self) -> str:
        return LEAVE_CATEGORY_LABELS[self]


LEAVE_CATEGORY_LABELS: dict[LeaveCategory, str] = {
    LeaveCategory.CL: "Casual Leave (CL)",
    LeaveCategory.CO: "Compensatory Off (CO)",
    LeaveCategory.ML: "Medical Leave (ML)",
    LeaveCategory.VL: "Vacation Leave (VL)",
    LeaveCategory.EL: "Earned Leave (EL)",
}


class LeaveStatus(str, enum.Enum):
    pending = "Pending"
    approved = "Approved"
    rejected = "Rejected"


TERMINAL_STATUSES: frozenset[LeaveStatus] = frozenset(
    {LeaveStatus.approved, LeaveStatus.rejected}
)


# ── Quotas ──────────────────────────────────────────────────────────

DEFAULT_QUOTAS: dict[LeaveCategory, int] = {
    LeaveCategory.CL: 12,
    LeaveCategory.CO: 5,
    LeaveCategory.ML: 10,
    LeaveCategory.VL: 15,
    LeaveCategory.EL: 15,
}


# ── Seed accounts (created on first start when storage is empty) ────

DEFAULT_ACCOUNTS: list[dict[str, str]] = [
    {
        "name": "College Admin",
        "email": "admin@scoe.edu",
        "password": "admin",
        "role": Role.admin_1.value,
        "department": Department.comps.value,
        "date_of_joining": "2020-01-01",
    },
    {
        "name": "Dr. Manjusha Deshmukh",
        "email": "principal@scoe.edu",
        "password": "principal",
        "role": Role.principal.value,
        "department": Department.comps.value,
        "date_of_joining": "2015-06-15",
    },
]


# ── Misc ────────────────────────────────────────────────────────────

ACCESS_CODE_SETTING_KEY = "admin_access_code"
