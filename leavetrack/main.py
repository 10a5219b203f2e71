"""LeaveTrack — FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from leavetrack.attendance.router import router as attendance_router
from leavetrack.auth.router import router as auth_router
from leavetrack.common.exceptions import register_exception_handlers
from leavetrack.common.logging import setup_logging
from leavetrack.common.rate_limit import limiter
from leavetrack.config import settings
from leavetrack.database import engine
from leavetrack.employees.router import router as employees_router
from leavetrack.leave.router import legacy_router as leaves_router
from leavetrack.leave.router import router as leave_management_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("LeaveTrack starting (environment=%s)", settings.ENVIRONMENT)
    yield
    await engine.dispose()
    logger.info("LeaveTrack stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="LeaveTrack",
        description="Leave balances, leave requests and daily attendance",
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
    app.include_router(leaves_router, prefix="/api/v1/leaves", tags=["leaves"])
    app.include_router(
        leave_management_router,
        prefix="/api/v1/leave-management",
        tags=["leave-management"],
    )
    app.include_router(
        attendance_router, prefix="/api/v1/users/attendance", tags=["attendance"],
    )
    app.include_router(employees_router, prefix="/api/v1/users", tags=["users"])

    return app


app = create_app()
