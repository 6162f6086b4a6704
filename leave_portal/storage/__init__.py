"""Storage collaborators implementing the LeaveRepository interface."""

from leave_portal.storage.base import LeaveRepository
from leave_portal.storage.fallback import FallbackLeaveRepository
from leave_portal.storage.memory import InMemoryLeaveRepository
from leave_portal.storage.sql import SqlLeaveRepository

__all__ = [
    "FallbackLeaveRepository",
    "InMemoryLeaveRepository",
    "LeaveRepository",
    "SqlLeaveRepository",
]
