"""Pydantic schemas for certification requests and responses"""
from pydantic import BaseModel, Field
from typing import Optional, Dict, List
from uuid import UUID
from datetime import datetime


class CertifyRequest(BaseModel):
    """Request model for certifying a category, contest or event"""
    comment: Optional[str] = Field(None, max_length=2000)


class ContestantCertifyRequest(BaseModel):
    """
    Request model for certifying a contestant in a category.

    With judge_id the judge-contestant pair is certified; without it the
    contestant's category review is.
    """
    judge_id: Optional[UUID] = None
    comment: Optional[str] = Field(None, max_length=2000)


class CertificationResponse(BaseModel):
    """Response model for a certification"""
    id: UUID
    scope_type: str
    scope_key: str
    role: str
    actor_user_id: str
    actor_role: str
    comment: Optional[str] = None
    certified_at: datetime
    event_id: Optional[UUID] = None
    contest_id: Optional[UUID] = None
    category_id: Optional[UUID] = None
    judge_id: Optional[UUID] = None
    contestant_id: Optional[UUID] = None

    class Config:
        from_attributes = True


class ProgressResponse(BaseModel):
    """Response model for scope certification progress"""
    scope: Dict[str, str]
    roles: Dict[str, bool]
    optional_roles: Dict[str, bool] = {}
    certifications: List[Dict] = []
    lower_certified: int
    lower_required: int
    is_fully_certified_below: bool
    is_complete: bool
