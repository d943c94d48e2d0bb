"""
Judge uncertification: a judge asks to revoke their own certifications in
a category, every required signer role co-signs, then the request is
executed: the judge's sign-offs and scores in that category are removed,
along with every certification above them that they unlocked.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from judging.db.enums import RequestStatus, Role, ScopeKind
from judging.db.models import (
    Certification,
    Judge,
    Score,
    UncertificationRequest,
    UncertificationSignature,
)
from judging.types import ExecutionResult, Page, SignResult, UncertificationView
from judging.utils.database import get_or_none, paginate, run_atomic
from judging.workflow.error_codes import ErrorCodeDictionary
from judging.workflow.event_logger import EventLogger
from judging.workflow.policy import UncertificationPolicy
from judging.workflow.result import Result
from judging.workflow.scope_tree import ResolvedScope, ScopeRef, ScopeTree

logger = logging.getLogger(__name__)


class UncertificationWorkflow:
    """Request, co-sign, execute or reject judge uncertification"""

    def __init__(self, db: AsyncSession, policy: Optional[UncertificationPolicy] = None):
        self.db = db
        self.policy = policy or UncertificationPolicy()

    def _may_decide(self, role: Role) -> bool:
        return role == Role.ADMIN or self.policy.is_signer(role)

    async def request(
        self,
        judge_id: UUID,
        category_id: UUID,
        requester_id: str,
        requester_role: Role,
        reason: str,
    ) -> Result[UncertificationRequest]:
        """
        Open an uncertification request for the requesting judge.

        Returns:
            Result with the request, or UNCERT_001/UNCERT_002 (forbidden),
            UNCERT_003 (validation), SCOPE_* (not found), UNCERT_009 (a
            pending request already exists)
        """
        if requester_role != Role.JUDGE:
            return Result.failure(ErrorCodeDictionary.UNCERT_001, role=requester_role.value)
        if not reason or not reason.strip():
            return Result.failure(ErrorCodeDictionary.UNCERT_003)

        async def operation() -> Result[UncertificationRequest]:
            judge = await get_or_none(self.db, Judge, judge_id)
            if not judge:
                return Result.failure(ErrorCodeDictionary.SCOPE_001, entity_id=judge_id, entity="judge")
            if judge.user_id != requester_id:
                return Result.failure(ErrorCodeDictionary.UNCERT_002, entity_id=judge_id)

            tree = ScopeTree(self.db)
            if judge_id not in await tree.judge_ids(category_id):
                return Result.failure(ErrorCodeDictionary.SCOPE_002, entity_id=judge_id, entity="judge")

            pending = await self.db.execute(
                select(UncertificationRequest.id).where(
                    UncertificationRequest.judge_id == judge_id,
                    UncertificationRequest.category_id == category_id,
                    UncertificationRequest.status == RequestStatus.PENDING.value,
                )
            )
            if pending.first() is not None:
                return Result.failure(ErrorCodeDictionary.UNCERT_009, entity_id=judge_id)

            request = UncertificationRequest(
                judge_id=judge_id,
                category_id=category_id,
                reason=reason.strip(),
                requested_by=requester_id,
                status=RequestStatus.PENDING.value,
            )
            self.db.add(request)
            await self.db.flush()

            EventLogger.log_uncertification(
                self.db,
                "uncertification_requested",
                request.id,
                requester_id,
                {"judge_id": str(judge_id), "category_id": str(category_id)},
            )
            logger.info(f"Uncertification request {request.id} opened by judge {judge_id}")
            return Result.success(request)

        return await run_atomic(
            self.db,
            operation,
            on_conflict=Result.failure(ErrorCodeDictionary.UNCERT_009, entity_id=judge_id),
        )

    async def sign(
        self,
        request_id: UUID,
        signer_id: str,
        signer_role: Role,
    ) -> Result[SignResult]:
        """
        Add the signature of one required role.

        Signing a role that is already signed changes nothing and reports
        the current state.

        Returns:
            Result with SignResult, or UNCERT_004 (not found), UNCERT_005
            (not pending), UNCERT_006/UNCERT_007 (forbidden)
        """
        async def already_signed() -> Result[SignResult]:
            logger.info(f"Signature race on uncertification request {request_id} resolved as no-op")
            return Result.success(await self._sign_state(request_id, already_signed=True))

        return await run_atomic(
            self.db,
            lambda: self._sign(request_id, signer_id, signer_role),
            on_conflict=already_signed,
        )

    async def _sign(self, request_id: UUID, signer_id: str, signer_role: Role) -> Result[SignResult]:
        request = await get_or_none(self.db, UncertificationRequest, request_id)
        if not request:
            return Result.failure(ErrorCodeDictionary.UNCERT_004, entity_id=request_id)
        if request.status != RequestStatus.PENDING.value:
            return Result.failure(ErrorCodeDictionary.UNCERT_005, entity_id=request_id, status=request.status)
        if not self.policy.is_signer(signer_role):
            return Result.failure(ErrorCodeDictionary.UNCERT_006, entity_id=request_id, role=signer_role.value)
        if signer_id == request.requested_by:
            logger.warning(f"Requester {signer_id} tried to sign uncertification request {request_id}")
            return Result.failure(ErrorCodeDictionary.UNCERT_007, entity_id=request_id)

        signed = {signature.signer_role for signature in await self.list_signatures(request_id)}
        if signer_role.value in signed:
            return Result.success(await self._sign_state(request_id, already_signed=True))

        self.db.add(UncertificationSignature(
            request_id=request_id,
            signer_user_id=signer_id,
            signer_role=signer_role.value,
        ))
        await self.db.flush()

        EventLogger.log_uncertification(
            self.db,
            "uncertification_signed",
            request_id,
            signer_id,
            {"role": signer_role.value},
        )
        logger.info(f"Uncertification request {request_id} signed as {signer_role.value} by {signer_id}")
        return Result.success(await self._sign_state(request_id, already_signed=False))

    async def execute(
        self,
        request_id: UUID,
        actor_id: str,
        actor_role: Role,
    ) -> Result[ExecutionResult]:
        """
        Remove the judge's judge-contestant certifications and scores in the
        category once every required role has signed. Contestant reviews and
        category, contest and event certifications on the category's path are
        removed in the same transaction, so nothing stays certified above
        an incomplete level.

        Returns:
            Result with ExecutionResult, or UNCERT_006 (forbidden),
            UNCERT_004 (not found), UNCERT_005 (not pending),
            UNCERT_008 (signatures missing)
        """
        if not self._may_decide(actor_role):
            return Result.failure(ErrorCodeDictionary.UNCERT_006, entity_id=request_id, role=actor_role.value)

        async def operation() -> Result[ExecutionResult]:
            request = await get_or_none(self.db, UncertificationRequest, request_id)
            if not request:
                return Result.failure(ErrorCodeDictionary.UNCERT_004, entity_id=request_id)
            if request.status != RequestStatus.PENDING.value:
                return Result.failure(ErrorCodeDictionary.UNCERT_005, entity_id=request_id, status=request.status)

            signed = {signature.signer_role for signature in await self.list_signatures(request_id)}
            missing = [role.value for role in self.policy.required_signers if role.value not in signed]
            if missing:
                return Result.failure(ErrorCodeDictionary.UNCERT_008, entity_id=request_id, missing_roles=missing)

            resolved = await ScopeTree(self.db).resolve(ScopeRef.category(request.category_id))
            if not resolved.ok:
                return resolved
            by_level = await self._remove_certifications(request, resolved.value)
            removed = sum(by_level.values())
            scores = await self.db.execute(
                delete(Score).where(
                    Score.judge_id == request.judge_id,
                    Score.category_id == request.category_id,
                )
            )

            moved = await self.db.execute(
                update(UncertificationRequest)
                .where(
                    UncertificationRequest.id == request_id,
                    UncertificationRequest.status == RequestStatus.PENDING.value,
                )
                .values(
                    status=RequestStatus.APPROVED.value,
                    executed_by=actor_id,
                    executed_at=datetime.utcnow(),
                )
            )
            if moved.rowcount == 0:
                logger.warning(f"Uncertification request {request_id} left PENDING concurrently")
                return Result.failure(ErrorCodeDictionary.UNCERT_005, entity_id=request_id)
            await self.db.refresh(request)

            EventLogger.log_uncertification(
                self.db,
                "uncertification_executed",
                request_id,
                actor_id,
                {
                    "certifications_removed": removed,
                    "by_level": by_level,
                    "scores_removed": scores.rowcount,
                    "actor_role": actor_role.value,
                },
            )
            logger.info(
                f"Uncertification request {request_id} executed by {actor_id}: "
                f"{removed} certifications, {scores.rowcount} scores removed"
            )
            return Result.success({
                "message": "Uncertification executed",
                "request": request,
                "certifications_removed": removed,
                "by_level": by_level,
                "scores_removed": scores.rowcount,
            })

        return await run_atomic(self.db, operation)

    async def _remove_certifications(
        self,
        request: UncertificationRequest,
        path: ResolvedScope,
    ) -> Dict[str, int]:
        """
        Delete the judge's pair sign-offs and every certification built on
        them: the category's contestant reviews, the category itself, and
        the contest and event above it.
        """
        criteria = {
            ScopeKind.JUDGE_CONTESTANT: (
                Certification.judge_id == request.judge_id,
                Certification.category_id == request.category_id,
            ),
            ScopeKind.CONTESTANT_CATEGORY: (Certification.category_id == request.category_id,),
            ScopeKind.CATEGORY: (Certification.category_id == request.category_id,),
            ScopeKind.CONTEST: (Certification.contest_id == path.contest_id,),
            ScopeKind.EVENT: (Certification.event_id == path.event_id,),
        }
        by_level: Dict[str, int] = {}
        for kind, where in criteria.items():
            result = await self.db.execute(
                delete(Certification).where(Certification.scope_type == kind.value, *where)
            )
            by_level[kind.value] = result.rowcount
        return by_level

    async def reject(
        self,
        request_id: UUID,
        actor_id: str,
        actor_role: Role,
        reason: str,
    ) -> Result[UncertificationRequest]:
        """Close a pending request without touching any certification"""
        if not self._may_decide(actor_role):
            return Result.failure(ErrorCodeDictionary.UNCERT_006, entity_id=request_id, role=actor_role.value)
        if not reason or not reason.strip():
            return Result.failure(ErrorCodeDictionary.UNCERT_003)

        async def operation() -> Result[UncertificationRequest]:
            request = await get_or_none(self.db, UncertificationRequest, request_id)
            if not request:
                return Result.failure(ErrorCodeDictionary.UNCERT_004, entity_id=request_id)
            if request.status != RequestStatus.PENDING.value:
                return Result.failure(ErrorCodeDictionary.UNCERT_005, entity_id=request_id, status=request.status)

            moved = await self.db.execute(
                update(UncertificationRequest)
                .where(
                    UncertificationRequest.id == request_id,
                    UncertificationRequest.status == RequestStatus.PENDING.value,
                )
                .values(
                    status=RequestStatus.REJECTED.value,
                    rejection_reason=reason.strip(),
                    rejected_by=actor_id,
                    rejected_at=datetime.utcnow(),
                )
            )
            if moved.rowcount == 0:
                return Result.failure(ErrorCodeDictionary.UNCERT_005, entity_id=request_id)
            await self.db.refresh(request)

            EventLogger.log_uncertification(
                self.db,
                "uncertification_rejected",
                request_id,
                actor_id,
                {"reason": reason.strip(), "actor_role": actor_role.value},
            )
            logger.info(f"Uncertification request {request_id} rejected by {actor_id}")
            return Result.success(request)

        return await run_atomic(self.db, operation)

    async def get_request(self, request_id: UUID) -> Result[UncertificationView]:
        request = await get_or_none(self.db, UncertificationRequest, request_id)
        if not request:
            return Result.failure(ErrorCodeDictionary.UNCERT_004, entity_id=request_id)
        return Result.success(await self._view(request))

    async def list_requests(
        self,
        status: Optional[RequestStatus] = None,
        judge_id: Optional[UUID] = None,
        category_id: Optional[UUID] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Page:
        """Uncertification requests, newest first, optionally filtered"""
        query = select(UncertificationRequest).order_by(UncertificationRequest.requested_at.desc())
        if status is not None:
            query = query.where(UncertificationRequest.status == status.value)
        if judge_id is not None:
            query = query.where(UncertificationRequest.judge_id == judge_id)
        if category_id is not None:
            query = query.where(UncertificationRequest.category_id == category_id)
        return await paginate(self.db, query, page=page, limit=limit)

    async def list_signatures(self, request_id: UUID) -> List[UncertificationSignature]:
        result = await self.db.execute(
            select(UncertificationSignature)
            .where(UncertificationSignature.request_id == request_id)
            .order_by(UncertificationSignature.signed_at)
        )
        return list(result.scalars().all())

    async def _view(self, request: UncertificationRequest) -> UncertificationView:
        signatures = await self.list_signatures(request.id)
        signed = {signature.signer_role for signature in signatures}
        required = [role.value for role in self.policy.required_signers]
        return {
            "request": request,
            "signatures": signatures,
            "signed_roles": [role for role in required if role in signed],
            "missing_roles": [role for role in required if role not in signed],
            "all_signed": all(role in signed for role in required),
        }

    async def _sign_state(self, request_id: UUID, already_signed: bool) -> SignResult:
        request = await self.db.get(UncertificationRequest, request_id, populate_existing=True)
        view = await self._view(request)
        return {
            "request": request,
            "all_signed": view["all_signed"],
            "signed_roles": view["signed_roles"],
            "missing_roles": view["missing_roles"],
            "already_signed": already_signed,
        }
