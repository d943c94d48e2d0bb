"""API layer - Routes, dependencies, and exception handlers"""
from judging.api.routes import (
    certifications_router,
    deductions_router,
    uncertification_router,
    resets_router,
)
from judging.api.dependencies import (
    get_certification_engine,
    get_deduction_workflow,
    get_uncertification_workflow,
    get_reset_service,
)
from judging.api.exception_handlers import (
    workflow_error_handler,
    validation_exception_handler,
    integrity_error_handler,
    unhandled_exception_handler,
)

__all__ = [
    # Routers
    "certifications_router",
    "deductions_router",
    "uncertification_router",
    "resets_router",
    # Dependencies
    "get_certification_engine",
    "get_deduction_workflow",
    "get_uncertification_workflow",
    "get_reset_service",
    # Exception Handlers
    "workflow_error_handler",
    "validation_exception_handler",
    "integrity_error_handler",
    "unhandled_exception_handler",
]
