"""Main FastAPI application"""
import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from contextlib import asynccontextmanager

from judging.core.config import settings
from judging.core.database import engine, get_db, mask_url
from judging.api.routes import (
    certifications_router,
    deductions_router,
    uncertification_router,
    resets_router,
)
from judging.api.exception_handlers import (
    workflow_error_handler,
    validation_exception_handler,
    integrity_error_handler,
    unhandled_exception_handler,
)
from judging.exceptions import WorkflowError

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info(f"Starting judging workflow service ({settings.environment}) on {mask_url(settings.database_url)}")

    # Note: schema is managed by Alembic migrations (judging db init for local setups)

    yield

    await engine.dispose()
    logger.info("Judging workflow service stopped")


app = FastAPI(
    title="Judging Certification Workflow",
    description="Multi-role certification, deduction and uncertification workflows for contest judging",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
app.add_exception_handler(WorkflowError, workflow_error_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(IntegrityError, integrity_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# Include routers
app.include_router(certifications_router, prefix="/api/v1")
app.include_router(deductions_router, prefix="/api/v1")
app.include_router(uncertification_router, prefix="/api/v1")
app.include_router(resets_router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "name": "Judging Certification Workflow",
        "version": "0.1.0",
        "description": "Certification and approval workflows for contest judging",
        "status": "operational",
    }


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Health check endpoint"""
    try:
        await db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        database = "unavailable"
    return {
        "status": "healthy" if database == "connected" else "degraded",
        "database": database,
    }
