"""Certification routes: progress views and role sign-offs"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from judging.api.dependencies import get_certification_engine
from judging.core.auth import Principal, get_current_principal
from judging.core.security.rbac import Operation, ensure_permitted, require_permission
from judging.db.enums import ScopeKind
from judging.schemas.certifications import (
    CertificationResponse,
    CertifyRequest,
    ContestantCertifyRequest,
    ProgressResponse,
)
from judging.utils.responses import format_success_response
from judging.workflow.certification import CertificationEngine
from judging.workflow.scope_tree import ScopeRef

router = APIRouter(prefix="/certifications", tags=["certifications"])


def _progress(result) -> dict:
    progress = ProgressResponse(**result.unwrap())
    return format_success_response("Certification progress", data=progress.model_dump(mode="json"))


def _certified(result) -> dict:
    certification = CertificationResponse.model_validate(result.unwrap())
    return format_success_response("Certification recorded", data=certification.model_dump(mode="json"))


@router.get("/category/{category_id}/progress")
async def get_category_progress(
    category_id: UUID,
    principal: Principal = Depends(require_permission(Operation.VIEW_PROGRESS)),
    engine: CertificationEngine = Depends(get_certification_engine),
):
    """Certification progress of a category and everything beneath it"""
    return _progress(await engine.get_progress(ScopeRef.category(category_id)))


@router.get("/contest/{contest_id}/progress")
async def get_contest_progress(
    contest_id: UUID,
    principal: Principal = Depends(require_permission(Operation.VIEW_PROGRESS)),
    engine: CertificationEngine = Depends(get_certification_engine),
):
    """Certification progress of a contest"""
    return _progress(await engine.get_progress(ScopeRef.contest(contest_id)))


@router.get("/event/{event_id}/progress")
async def get_event_progress(
    event_id: UUID,
    principal: Principal = Depends(require_permission(Operation.VIEW_PROGRESS)),
    engine: CertificationEngine = Depends(get_certification_engine),
):
    """Certification progress of an event"""
    return _progress(await engine.get_progress(ScopeRef.event(event_id)))


@router.get("/category/{category_id}/contestant/{contestant_id}/progress")
async def get_contestant_progress(
    category_id: UUID,
    contestant_id: UUID,
    judge_id: Optional[UUID] = None,
    principal: Principal = Depends(require_permission(Operation.VIEW_PROGRESS)),
    engine: CertificationEngine = Depends(get_certification_engine),
):
    """
    Certification progress of a contestant in a category.

    With judge_id, the progress of that judge's sign-off on the contestant.
    """
    if judge_id is not None:
        scope = ScopeRef.judge_contestant(judge_id, contestant_id, category_id)
    else:
        scope = ScopeRef.contestant_category(contestant_id, category_id)
    return _progress(await engine.get_progress(scope))


@router.post("/category/{category_id}/contestant/{contestant_id}/certify", status_code=201)
async def certify_contestant(
    category_id: UUID,
    contestant_id: UUID,
    request: ContestantCertifyRequest,
    principal: Principal = Depends(get_current_principal),
    engine: CertificationEngine = Depends(get_certification_engine),
):
    """
    Certify a contestant in a category.

    A body with judge_id certifies the judge-contestant pair (the judge
    themselves, or an override by tally master, auditor or admin);
    without it the contestant's category review is certified.
    """
    if request.judge_id is not None:
        scope = ScopeRef.judge_contestant(request.judge_id, contestant_id, category_id)
    else:
        scope = ScopeRef.contestant_category(contestant_id, category_id)
    ensure_permitted(principal, Operation.CERTIFY, scope.kind)
    return _certified(await engine.certify(scope, principal.role, principal.user_id, request.comment))


@router.post("/category/{category_id}/certify", status_code=201)
async def certify_category(
    category_id: UUID,
    request: CertifyRequest,
    principal: Principal = Depends(require_permission(Operation.CERTIFY, ScopeKind.CATEGORY)),
    engine: CertificationEngine = Depends(get_certification_engine),
):
    """Certify a category once every judge and contestant beneath it is certified"""
    return _certified(
        await engine.certify_category(category_id, principal.role, principal.user_id, request.comment)
    )


@router.post("/contest/{contest_id}/certify", status_code=201)
async def certify_contest(
    contest_id: UUID,
    request: CertifyRequest,
    principal: Principal = Depends(require_permission(Operation.CERTIFY, ScopeKind.CONTEST)),
    engine: CertificationEngine = Depends(get_certification_engine),
):
    """Certify a contest once all of its categories are complete"""
    return _certified(
        await engine.certify_contest(contest_id, principal.role, principal.user_id, request.comment)
    )


@router.post("/event/{event_id}/certify", status_code=201)
async def certify_event(
    event_id: UUID,
    request: CertifyRequest,
    principal: Principal = Depends(require_permission(Operation.CERTIFY, ScopeKind.EVENT)),
    engine: CertificationEngine = Depends(get_certification_engine),
):
    """Certify an event once all of its contests are complete"""
    return _certified(
        await engine.certify_event(event_id, principal.role, principal.user_id, request.comment)
    )
