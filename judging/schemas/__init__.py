"""Pydantic schemas for API requests and responses"""
from judging.schemas.certifications import (
    CertifyRequest,
    ContestantCertifyRequest,
    CertificationResponse,
    ProgressResponse,
)
from judging.schemas.deductions import (
    DeductionCreate,
    DeductionDecision,
    DeductionResponse,
    DeductionApprovalResponse,
    ApprovalStatusResponse,
)
from judging.schemas.uncertification import (
    UncertificationCreate,
    UncertificationReject,
    UncertificationResponse,
    SignatureResponse,
)
from judging.schemas.resets import ResetRequest

__all__ = [
    # Certifications
    "CertifyRequest",
    "ContestantCertifyRequest",
    "CertificationResponse",
    "ProgressResponse",
    # Deductions
    "DeductionCreate",
    "DeductionDecision",
    "DeductionResponse",
    "DeductionApprovalResponse",
    "ApprovalStatusResponse",
    # Uncertification
    "UncertificationCreate",
    "UncertificationReject",
    "UncertificationResponse",
    "SignatureResponse",
    # Resets
    "ResetRequest",
]
