"""Certification workflow engine - multi-role sign-offs, deductions and uncertification"""
from judging.workflow.error_codes import ErrorCode, ErrorCodeDictionary, ErrorKind
from judging.workflow.result import Result
from judging.workflow.policy import (
    CertificationPolicy,
    DeductionPolicy,
    UncertificationPolicy,
    ScopeRule,
    CERTIFICATION_SEQUENCE,
    RESET_ROLES,
)

__all__ = [
    "ErrorCode",
    "ErrorCodeDictionary",
    "ErrorKind",
    "Result",
    "CertificationPolicy",
    "DeductionPolicy",
    "UncertificationPolicy",
    "ScopeRule",
    "CERTIFICATION_SEQUENCE",
    "RESET_ROLES",
]
