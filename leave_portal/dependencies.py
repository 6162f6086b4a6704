"""Shared FastAPI dependencies."""

from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from leave_portal.config import settings
from leave_portal.database import get_db
from leave_portal.storage.base import LeaveRepository
from leave_portal.storage.fallback import FallbackLeaveRepository
from leave_portal.storage.sql import SqlLeaveRepository


async def get_repository(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AsyncGenerator[LeaveRepository, None]:
    """Per-request repository over the request's session.

    With ENABLE_MEMORY_FALLBACK the SQL repository is wrapped so storage
    outages are served from the app's in-memory mirror (built in lifespan).
    The session is committed before the request's writes are copied to the
    mirror, so the mirror never holds work the database rolled back.
    """
    repo = SqlLeaveRepository(db)
    mirror = getattr(request.app.state, "memory_repository", None)
    if not settings.ENABLE_MEMORY_FALLBACK or mirror is None:
        yield repo
        return

    wrapped = FallbackLeaveRepository(repo, mirror)
    try:
        yield wrapped
    except Exception:
        wrapped.discard_mirror()
        raise
    await db.commit()
    await wrapped.flush_mirror()
