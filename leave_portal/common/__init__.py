"""Common module — shared enums, exceptions and rate limiting."""

from leave_portal.common.constants import (
    ADMIN_ROLES,
    DEFAULT_QUOTAS,
    LEAVE_CATEGORY_LABELS,
    TERMINAL_STATUSES,
    ApproverRole,
    Department,
    LeaveCategory,
    LeaveStatus,
    Role,
    is_admin_role,
)
from leave_portal.common.exceptions import (
    AppException,
    ConflictError,
    ForbiddenException,
    NotFoundException,
    PersistenceUnavailableException,
    UnknownLeaveCategoryException,
    ValidationException,
    register_exception_handlers,
)

__all__ = [
    # Constants / Enums
    "ADMIN_ROLES",
    "DEFAULT_QUOTAS",
    "LEAVE_CATEGORY_LABELS",
    "TERMINAL_STATUSES",
    "ApproverRole",
    "Department",
    "LeaveCategory",
    "LeaveStatus",
    "Role",
    "is_admin_role",
    # Exceptions
    "AppException",
    "ConflictError",
    "ForbiddenException",
    "NotFoundException",
    "PersistenceUnavailableException",
    "UnknownLeaveCategoryException",
    "ValidationException",
    "register_exception_handlers",
]
