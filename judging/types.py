"""Type definitions for workflow results - TypedDict classes for type safety"""
from typing import TypedDict, Optional, List, Dict, Any


# ============================================================================
# Certification Types
# ============================================================================

class CertificationRecord(TypedDict):
    """Serialized certification row"""
    id: str
    scope_type: str
    scope_key: str
    role: str
    actor_user_id: str
    actor_role: str
    comment: Optional[str]
    certified_at: str


class ProgressView(TypedDict):
    """Certification progress of a single scope"""
    scope: Dict[str, str]
    roles: Dict[str, bool]
    optional_roles: Dict[str, bool]
    certifications: List[CertificationRecord]
    lower_certified: int
    lower_required: int
    is_fully_certified_below: bool
    is_complete: bool


# ============================================================================
# Deduction Types
# ============================================================================

class ApprovalStatus(TypedDict):
    """Per-slot decisions on a deduction request"""
    request_id: str
    status: str
    required: List[str]
    approved: List[str]
    rejected: List[str]
    is_fully_approved: bool
    applied: bool


class DecisionResult(TypedDict):
    """Outcome of one deduction decision"""
    request: Any
    approval: Any
    approval_status: ApprovalStatus


# ============================================================================
# Uncertification Types
# ============================================================================

class SignResult(TypedDict):
    """Outcome of a (possibly repeated) uncertification signature"""
    request: Any
    all_signed: bool
    signed_roles: List[str]
    missing_roles: List[str]
    already_signed: bool


class UncertificationView(TypedDict):
    """A request together with its collected signatures"""
    request: Any
    signatures: List[Any]
    signed_roles: List[str]
    missing_roles: List[str]
    all_signed: bool


class ExecutionResult(TypedDict):
    """Outcome of executing an uncertification request"""
    message: str
    request: Any
    certifications_removed: int
    by_level: Dict[str, int]
    scores_removed: int


# ============================================================================
# Reset / Listing Types
# ============================================================================

class ResetResult(TypedDict):
    """Outcome of a bulk certification reset"""
    reset_count: int
    by_level: Dict[str, int]
    message: str


class Pagination(TypedDict):
    """Pagination metadata for list endpoints"""
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class Page(TypedDict):
    """One page of results"""
    items: List[Any]
    pagination: Pagination
