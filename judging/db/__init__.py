"""Database models and enumerations"""

from judging.db.enums import Role, ScopeKind, RequestStatus, Decision

from judging.db.models import (
    Event, Contest, Category, Contestant, Judge,
    CategoryContestant, CategoryJudge, Score,
    Certification, DeductionRequest, DeductionApproval,
    UncertificationRequest, UncertificationSignature, SystemEvent,
)

__all__ = [
    # Enums
    "Role", "ScopeKind", "RequestStatus", "Decision",
    # Models
    "Event", "Contest", "Category", "Contestant", "Judge",
    "CategoryContestant", "CategoryJudge", "Score",
    "Certification", "DeductionRequest", "DeductionApproval",
    "UncertificationRequest", "UncertificationSignature", "SystemEvent",
]
