"""Pydantic schemas for deduction requests and responses"""
from pydantic import BaseModel, Field, validator
from typing import Optional, List
from uuid import UUID
from datetime import datetime


class DeductionCreate(BaseModel):
    """Request model for opening a deduction request"""
    contestant_id: UUID
    category_id: UUID
    points: float = Field(..., allow_inf_nan=False, description="Points to deduct, must be greater than 0")
    reason: str

    @validator("reason")
    def strip_reason(cls, v):
        return v.strip()


class DeductionDecision(BaseModel):
    """Request model for approving or rejecting a deduction"""
    notes: Optional[str] = Field(None, max_length=2000)


class DeductionResponse(BaseModel):
    """Response model for a deduction request"""
    id: UUID
    category_id: UUID
    contestant_id: UUID
    requested_by: str
    requester_role: str
    points: float
    reason: str
    status: str
    rejection_reason: Optional[str] = None
    decided_at: Optional[datetime] = None
    applied_at: Optional[datetime] = None
    applied_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class DeductionApprovalResponse(BaseModel):
    """Response model for one approver slot's decision"""
    id: UUID
    request_id: UUID
    approver_user_id: str
    approver_role: str
    decision: str
    notes: Optional[str] = None
    decided_at: datetime

    class Config:
        from_attributes = True


class ApprovalStatusResponse(BaseModel):
    """Response model for deduction approval status"""
    request_id: str
    status: str
    required: List[str]
    approved: List[str]
    rejected: List[str]
    is_fully_approved: bool
    applied: bool
