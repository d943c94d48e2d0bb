"""API route modules"""
from judging.api.routes.certifications import router as certifications_router
from judging.api.routes.deductions import router as deductions_router
from judging.api.routes.uncertification import router as uncertification_router
from judging.api.routes.resets import router as resets_router

__all__ = [
    "certifications_router",
    "deductions_router",
    "uncertification_router",
    "resets_router",
]
