"""FastAPI dependency injection for workflow services"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from judging.core.database import get_db
from judging.workflow.certification import CertificationEngine
from judging.workflow.deductions import DeductionWorkflow
from judging.workflow.reset import CertificationResetService
from judging.workflow.uncertification import UncertificationWorkflow


def get_certification_engine(db: AsyncSession = Depends(get_db)) -> CertificationEngine:
    """Get certification engine bound to the request session"""
    return CertificationEngine(db)


def get_deduction_workflow(db: AsyncSession = Depends(get_db)) -> DeductionWorkflow:
    """Get deduction workflow bound to the request session"""
    return DeductionWorkflow(db)


def get_uncertification_workflow(db: AsyncSession = Depends(get_db)) -> UncertificationWorkflow:
    """Get uncertification workflow bound to the request session"""
    return UncertificationWorkflow(db)


def get_reset_service(db: AsyncSession = Depends(get_db)) -> CertificationResetService:
    """Get bulk reset service bound to the request session"""
    return CertificationResetService(db)
