"""Deduction routes: request, approve, reject, apply and review"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from judging.api.dependencies import get_deduction_workflow
from judging.core.auth import Principal
from judging.core.security.rbac import Operation, require_permission
from judging.db.enums import RequestStatus
from judging.schemas.deductions import (
    ApprovalStatusResponse,
    DeductionApprovalResponse,
    DeductionCreate,
    DeductionDecision,
    DeductionResponse,
)
from judging.utils.responses import format_success_response
from judging.workflow.deductions import DeductionWorkflow

router = APIRouter(prefix="/deductions", tags=["deductions"])


def _request_data(request) -> dict:
    return DeductionResponse.model_validate(request).model_dump(mode="json")


def _decision_data(outcome: dict) -> dict:
    return {
        "request": _request_data(outcome["request"]),
        "approval": DeductionApprovalResponse.model_validate(outcome["approval"]).model_dump(mode="json"),
        "approval_status": ApprovalStatusResponse(**outcome["approval_status"]).model_dump(),
    }


@router.post("/request", status_code=201)
async def create_deduction_request(
    request: DeductionCreate,
    principal: Principal = Depends(require_permission(Operation.REQUEST_DEDUCTION)),
    workflow: DeductionWorkflow = Depends(get_deduction_workflow),
):
    """Open a deduction request for a contestant in a category"""
    result = await workflow.create_request(
        contestant_id=request.contestant_id,
        category_id=request.category_id,
        requester_id=principal.user_id,
        requester_role=principal.role,
        points=request.points,
        reason=request.reason,
    )
    return format_success_response("Deduction request created", data=_request_data(result.unwrap()))


@router.post("/{request_id}/approve")
async def approve_deduction(
    request_id: UUID,
    decision: DeductionDecision,
    principal: Principal = Depends(require_permission(Operation.DECIDE_DEDUCTION)),
    workflow: DeductionWorkflow = Depends(get_deduction_workflow),
):
    """Approve a deduction in the caller's approver slot"""
    result = await workflow.approve(request_id, principal.user_id, principal.role, decision.notes)
    return format_success_response("Deduction approved", data=_decision_data(result.unwrap()))


@router.post("/{request_id}/reject")
async def reject_deduction(
    request_id: UUID,
    decision: DeductionDecision,
    principal: Principal = Depends(require_permission(Operation.DECIDE_DEDUCTION)),
    workflow: DeductionWorkflow = Depends(get_deduction_workflow),
):
    """Reject a deduction; a single rejection vetoes the request"""
    result = await workflow.reject(request_id, principal.user_id, principal.role, decision.notes)
    return format_success_response("Deduction rejected", data=_decision_data(result.unwrap()))


@router.post("/{request_id}/apply")
async def apply_deduction(
    request_id: UUID,
    principal: Principal = Depends(require_permission(Operation.APPLY_DEDUCTION)),
    workflow: DeductionWorkflow = Depends(get_deduction_workflow),
):
    """Apply an approved deduction to the contestant's category total"""
    result = await workflow.apply(request_id, principal.user_id, principal.role)
    return format_success_response("Deduction applied", data=_request_data(result.unwrap()))


@router.get("/{request_id}/approval-status")
async def get_approval_status(
    request_id: UUID,
    principal: Principal = Depends(require_permission(Operation.VIEW_DEDUCTIONS)),
    workflow: DeductionWorkflow = Depends(get_deduction_workflow),
):
    """Which approver slots have decided on a request"""
    status = ApprovalStatusResponse(**(await workflow.get_approval_status(request_id)).unwrap())
    return format_success_response("Deduction approval status", data=status.model_dump())


@router.get("")
async def list_deductions(
    status: Optional[RequestStatus] = None,
    category_id: Optional[UUID] = None,
    contestant_id: Optional[UUID] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    principal: Principal = Depends(require_permission(Operation.VIEW_DEDUCTIONS)),
    workflow: DeductionWorkflow = Depends(get_deduction_workflow),
):
    """Deduction request history, newest first"""
    result = await workflow.list_requests(
        status=status,
        category_id=category_id,
        contestant_id=contestant_id,
        page=page,
        limit=limit,
    )
    return format_success_response(
        "Deduction requests",
        data=[_request_data(item) for item in result["items"]],
        pagination=result["pagination"],
    )
