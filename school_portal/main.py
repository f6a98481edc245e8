"""School admin portal FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from school_portal.core.config import settings
from school_portal.core.exceptions import AppException
from school_portal.core.exceptions.handlers import (
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from school_portal.modules.announcements.router import router as announcements_router
from school_portal.modules.branches.router import router as branches_router
from school_portal.modules.calendar.router import router as calendar_router
from school_portal.modules.holidays.router import router as holidays_router
from school_portal.modules.installment_invoices.router import router as installment_invoices_router
from school_portal.modules.invoices.router import router as invoices_router
from school_portal.modules.merchandise.router import router as merchandise_router
from school_portal.modules.reports.router import router as reports_router


def configure_logging(level: str = settings.log_level) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logging.getLogger(__name__).info("Backend API: %s", settings.api_base_url)
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    configure_logging()

    app = FastAPI(
        title="School Admin Portal",
        description="Dashboard API for school branches over the school management backend",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    # Routers
    app.include_router(branches_router, prefix="/api/v1")
    app.include_router(calendar_router, prefix="/api/v1")
    app.include_router(holidays_router, prefix="/api/v1")
    app.include_router(invoices_router, prefix="/api/v1")
    app.include_router(installment_invoices_router, prefix="/api/v1")
    app.include_router(merchandise_router, prefix="/api/v1")
    app.include_router(reports_router, prefix="/api/v1")
    app.include_router(announcements_router, prefix="/api/v1")

    return app


app = create_app()
