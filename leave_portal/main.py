"""SCOE Leave Portal — FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from leave_portal.auth.router import router as auth_router
from leave_portal.auth.service import build_default_accounts
from leave_portal.common.exceptions import (
    PersistenceUnavailableException,
    register_exception_handlers,
)
from leave_portal.common.rate_limit import limiter
from leave_portal.config import settings
from leave_portal.database import async_session_factory, engine
from leave_portal.leave.router import router as leave_router
from leave_portal.storage.memory import InMemoryLeaveRepository
from leave_portal.storage.sql import SqlLeaveRepository
from leave_portal.users.router import router as users_router

logger = logging.getLogger(__name__)


async def build_memory_repository() -> InMemoryLeaveRepository:
    """Seed the database on first start and warm the in-memory mirror from it.

    When the database is unreachable the mirror starts from the default
    Admin and Principal accounts alone.
    """
    seed = build_default_accounts()
    try:
        async with async_session_factory() as session:
            sql = SqlLeaveRepository(session)
            if settings.SEED_DEFAULT_ACCOUNTS and not await sql.list_users():
                for user in seed:
                    await sql.upsert_user(user)
                await session.commit()
                logger.info("Seeded %d default account(s)", len(seed))
            return InMemoryLeaveRepository(
                users=await sql.list_users(),
                requests=await sql.list_leave_requests(),
                access_code=await sql.get_access_code(),
            )
    except (PersistenceUnavailableException, OSError) as exc:
        logger.warning(
            "Database unavailable at startup (%s); in-memory store starts from default accounts",
            exc,
        )
        return InMemoryLeaveRepository(users=seed)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    # Startup
    app.state.memory_repository = await build_memory_repository()
    yield
    # Shutdown
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    app = FastAPI(
        title="SCOE Leave Portal",
        description="Staff leave applications, approvals and quota tracking",
        version="1.0.0",
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": "1.0.0",
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(auth_router, prefix="/api/v1/auth", tags=["auth"])
    app.include_router(leave_router, prefix="/api/v1/leave", tags=["leave"])
    app.include_router(users_router, prefix="/api/v1/users", tags=["users"])

    return app


app = create_app()
