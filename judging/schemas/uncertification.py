"""Pydantic schemas for judge uncertification requests and responses"""
from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID
from datetime import datetime


class UncertificationCreate(BaseModel):
    """Request model for a judge asking to be uncertified in a category"""
    judge_id: UUID
    category_id: UUID
    reason: str = Field(..., max_length=2000)


class UncertificationReject(BaseModel):
    """Request model for rejecting an uncertification request"""
    reason: str = Field(..., max_length=2000)


class UncertificationResponse(BaseModel):
    """Response model for an uncertification request"""
    id: UUID
    judge_id: UUID
    category_id: UUID
    reason: str
    requested_by: str
    requested_at: datetime
    status: str
    rejection_reason: Optional[str] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    executed_by: Optional[str] = None
    executed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SignatureResponse(BaseModel):
    """Response model for an uncertification co-signature"""
    id: UUID
    request_id: UUID
    signer_user_id: str
    signer_role: str
    signed_at: datetime

    class Config:
        from_attributes = True
