"""Bulk certification reset route"""
from fastapi import APIRouter, Depends

from judging.api.dependencies import get_reset_service
from judging.core.auth import Principal
from judging.core.security.rbac import Operation, require_permission
from judging.schemas.resets import ResetRequest
from judging.utils.responses import format_success_response
from judging.workflow.error_codes import ErrorCodeDictionary
from judging.workflow.reset import CertificationResetService
from judging.workflow.result import Result
from judging.workflow.scope_tree import ScopeRef

router = APIRouter(prefix="/bulk-certification-reset", tags=["resets"])


@router.post("")
async def reset_certifications(
    request: ResetRequest,
    principal: Principal = Depends(require_permission(Operation.RESET_CERTIFICATIONS)),
    service: CertificationResetService = Depends(get_reset_service),
):
    """
    Remove every certification at and beneath an event, contest or
    category, or every certification when reset_all is set.
    """
    scopes = []
    if request.event_id is not None:
        scopes.append(ScopeRef.event(request.event_id))
    if request.contest_id is not None:
        scopes.append(ScopeRef.contest(request.contest_id))
    if request.category_id is not None:
        scopes.append(ScopeRef.category(request.category_id))
    if len(scopes) > 1:
        Result.failure(ErrorCodeDictionary.RESET_002).unwrap()

    result = await service.reset_certifications(
        scopes[0] if scopes else None,
        actor_id=principal.user_id,
        actor_role=principal.role,
        reset_all=request.reset_all,
    )
    outcome = result.unwrap()
    return format_success_response(
        outcome["message"],
        data={"reset_count": outcome["reset_count"], "by_level": outcome["by_level"]},
    )
