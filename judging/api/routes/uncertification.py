"""Judge uncertification routes"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from judging.api.dependencies import get_uncertification_workflow
from judging.core.auth import Principal
from judging.core.security.rbac import Operation, require_permission
from judging.db.enums import RequestStatus
from judging.schemas.uncertification import (
    SignatureResponse,
    UncertificationCreate,
    UncertificationReject,
    UncertificationResponse,
)
from judging.utils.responses import format_success_response
from judging.workflow.uncertification import UncertificationWorkflow

router = APIRouter(prefix="/judge-uncertification", tags=["uncertification"])


def _request_data(request) -> dict:
    return UncertificationResponse.model_validate(request).model_dump(mode="json")


@router.post("/request", status_code=201)
async def request_uncertification(
    request: UncertificationCreate,
    principal: Principal = Depends(require_permission(Operation.REQUEST_UNCERTIFICATION)),
    workflow: UncertificationWorkflow = Depends(get_uncertification_workflow),
):
    """A judge asks to revoke their own certifications in a category"""
    result = await workflow.request(
        judge_id=request.judge_id,
        category_id=request.category_id,
        requester_id=principal.user_id,
        requester_role=principal.role,
        reason=request.reason,
    )
    return format_success_response("Uncertification request created", data=_request_data(result.unwrap()))


@router.post("/{request_id}/approve")
async def sign_uncertification(
    request_id: UUID,
    principal: Principal = Depends(require_permission(Operation.SIGN_UNCERTIFICATION)),
    workflow: UncertificationWorkflow = Depends(get_uncertification_workflow),
):
    """Co-sign a request in the caller's role"""
    outcome = (await workflow.sign(request_id, principal.user_id, principal.role)).unwrap()
    message = "Signature already recorded" if outcome["already_signed"] else "Signature recorded"
    return format_success_response(
        message,
        data={
            "request": _request_data(outcome["request"]),
            "all_signed": outcome["all_signed"],
            "signed_roles": outcome["signed_roles"],
            "missing_roles": outcome["missing_roles"],
        },
    )


@router.post("/{request_id}/execute")
async def execute_uncertification(
    request_id: UUID,
    principal: Principal = Depends(require_permission(Operation.EXECUTE_UNCERTIFICATION)),
    workflow: UncertificationWorkflow = Depends(get_uncertification_workflow),
):
    """Remove the judge's certifications and scores once every role has signed"""
    outcome = (await workflow.execute(request_id, principal.user_id, principal.role)).unwrap()
    return format_success_response(
        outcome["message"],
        data={
            "request": _request_data(outcome["request"]),
            "certifications_removed": outcome["certifications_removed"],
            "by_level": outcome["by_level"],
            "scores_removed": outcome["scores_removed"],
        },
    )


@router.post("/{request_id}/reject")
async def reject_uncertification(
    request_id: UUID,
    body: UncertificationReject,
    principal: Principal = Depends(require_permission(Operation.REJECT_UNCERTIFICATION)),
    workflow: UncertificationWorkflow = Depends(get_uncertification_workflow),
):
    """Close a pending request without changing any certification"""
    result = await workflow.reject(request_id, principal.user_id, principal.role, body.reason)
    return format_success_response("Uncertification request rejected", data=_request_data(result.unwrap()))


@router.get("")
async def list_uncertifications(
    status: Optional[RequestStatus] = None,
    judge_id: Optional[UUID] = None,
    category_id: Optional[UUID] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    principal: Principal = Depends(require_permission(Operation.VIEW_UNCERTIFICATIONS)),
    workflow: UncertificationWorkflow = Depends(get_uncertification_workflow),
):
    """Uncertification requests, newest first"""
    result = await workflow.list_requests(
        status=status,
        judge_id=judge_id,
        category_id=category_id,
        page=page,
        limit=limit,
    )
    return format_success_response(
        "Uncertification requests",
        data=[_request_data(item) for item in result["items"]],
        pagination=result["pagination"],
    )


@router.get("/{request_id}")
async def get_uncertification(
    request_id: UUID,
    principal: Principal = Depends(require_permission(Operation.VIEW_UNCERTIFICATIONS)),
    workflow: UncertificationWorkflow = Depends(get_uncertification_workflow),
):
    """A request with its signatures and the roles still missing"""
    view = (await workflow.get_request(request_id)).unwrap()
    return format_success_response(
        "Uncertification request",
        data={
            "request": _request_data(view["request"]),
            "signatures": [
                SignatureResponse.model_validate(signature).model_dump(mode="json")
                for signature in view["signatures"]
            ],
            "signed_roles": view["signed_roles"],
            "missing_roles": view["missing_roles"],
            "all_signed": view["all_signed"],
        },
    )
