"""
Deduction workflow: a proposed point deduction needs every required
approver slot to approve before it can be applied, and any rejection
vetoes it.

Request status only ever moves PENDING -> APPROVED or PENDING -> REJECTED,
through conditional updates guarded on the current status.
"""
import logging
import math
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from judging.db.enums import Decision, RequestStatus, Role
from judging.db.models import (
    CategoryContestant,
    CategoryJudge,
    DeductionApproval,
    DeductionRequest,
    Judge,
)
from judging.types import ApprovalStatus, DecisionResult, Page
from judging.utils.database import get_or_none, paginate, run_atomic
from judging.workflow.error_codes import ErrorCodeDictionary
from judging.workflow.event_logger import EventLogger
from judging.workflow.policy import DeductionPolicy
from judging.workflow.result import Result
from judging.workflow.scope_tree import ScopeRef, ScopeTree

logger = logging.getLogger(__name__)


class DeductionWorkflow:
    """Creates, decides and applies deduction requests"""

    def __init__(self, db: AsyncSession, policy: Optional[DeductionPolicy] = None):
        self.db = db
        self.policy = policy or DeductionPolicy()

    async def create_request(
        self,
        contestant_id: UUID,
        category_id: UUID,
        requester_id: str,
        requester_role: Role,
        points: float,
        reason: str,
    ) -> Result[DeductionRequest]:
        """
        Open a PENDING deduction request.

        Returns:
            Result with the request, or DEDUCT_001 (forbidden),
            DEDUCT_002/DEDUCT_003 (validation), SCOPE_* (not found)
        """
        if requester_role not in self.policy.REQUESTER_ROLES:
            return Result.failure(ErrorCodeDictionary.DEDUCT_001, role=requester_role.value)
        if points is None or not math.isfinite(points) or points <= 0:
            return Result.failure(ErrorCodeDictionary.DEDUCT_002, points=points)
        if not reason or not reason.strip():
            return Result.failure(ErrorCodeDictionary.DEDUCT_003)

        async def operation() -> Result[DeductionRequest]:
            resolved = await ScopeTree(self.db).resolve(
                ScopeRef.contestant_category(contestant_id, category_id)
            )
            if not resolved.ok:
                return resolved

            request = DeductionRequest(
                category_id=category_id,
                contestant_id=contestant_id,
                requested_by=requester_id,
                requester_role=requester_role.value,
                points=points,
                reason=reason.strip(),
                status=RequestStatus.PENDING.value,
            )
            self.db.add(request)
            await self.db.flush()

            EventLogger.log_deduction(
                self.db,
                "deduction_requested",
                request.id,
                requester_id,
                {"points": points, "category_id": str(category_id), "contestant_id": str(contestant_id)},
            )
            logger.info(f"Deduction request {request.id} opened by {requester_id} for {points} points")
            return Result.success(request)

        return await run_atomic(self.db, operation)

    async def decide(
        self,
        request_id: UUID,
        approver_id: str,
        approver_role: Role,
        decision: Decision,
        notes: Optional[str] = None,
    ) -> Result[DecisionResult]:
        """
        Record one approver slot's decision.

        A rejection moves the request to REJECTED immediately. An approval
        moves it to APPROVED once every required slot has approved.

        Returns:
            Result with the request, the approval row and the approval
            status, or DEDUCT_004 (not found), DEDUCT_005 (not pending),
            DEDUCT_006/DEDUCT_007 (forbidden), DEDUCT_008 (slot already decided)
        """
        conflict = Result.failure(
            ErrorCodeDictionary.DEDUCT_008,
            entity_id=request_id,
            role=approver_role.value,
        )
        return await run_atomic(
            self.db,
            lambda: self._decide(request_id, approver_id, approver_role, decision, notes),
            on_conflict=conflict,
        )

    async def _decide(
        self,
        request_id: UUID,
        approver_id: str,
        approver_role: Role,
        decision: Decision,
        notes: Optional[str],
    ) -> Result[DecisionResult]:
        request = await get_or_none(self.db, DeductionRequest, request_id)
        if not request:
            return Result.failure(ErrorCodeDictionary.DEDUCT_004, entity_id=request_id)
        if request.status != RequestStatus.PENDING.value:
            return Result.failure(ErrorCodeDictionary.DEDUCT_005, entity_id=request_id, status=request.status)

        slot = self.policy.approver_slot(approver_role)
        if slot is None:
            logger.warning(f"{approver_role.value} is not a deduction approver (request {request_id})")
            return Result.failure(ErrorCodeDictionary.DEDUCT_006, entity_id=request_id, role=approver_role.value)

        if approver_role == Role.JUDGE and not await self._is_head_judge(approver_id, request.category_id):
            return Result.failure(ErrorCodeDictionary.DEDUCT_007, entity_id=request_id)

        if await self._slot_decided(request_id, slot):
            return Result.failure(ErrorCodeDictionary.DEDUCT_008, entity_id=request_id, role=slot.value)

        approval = DeductionApproval(
            request_id=request_id,
            approver_user_id=approver_id,
            approver_role=slot.value,
            decision=decision.value,
            notes=notes,
        )
        self.db.add(approval)
        await self.db.flush()

        if decision == Decision.REJECTED:
            moved = await self._transition(request, RequestStatus.REJECTED, rejection_reason=notes)
        elif await self._is_fully_approved(request_id):
            moved = await self._transition(request, RequestStatus.APPROVED)
        else:
            moved = True

        if not moved:
            return Result.failure(ErrorCodeDictionary.DEDUCT_005, entity_id=request_id)

        EventLogger.log_deduction(
            self.db,
            "deduction_decided",
            request_id,
            approver_id,
            {"slot": slot.value, "actor_role": approver_role.value, "decision": decision.value},
        )
        logger.info(f"Deduction request {request_id}: {slot.value} {decision.value} by {approver_id}")

        return Result.success({
            "request": request,
            "approval": approval,
            "approval_status": await self._approval_status(request),
        })

    async def approve(
        self,
        request_id: UUID,
        approver_id: str,
        approver_role: Role,
        notes: Optional[str] = None,
    ) -> Result[DecisionResult]:
        return await self.decide(request_id, approver_id, approver_role, Decision.APPROVED, notes)

    async def reject(
        self,
        request_id: UUID,
        approver_id: str,
        approver_role: Role,
        reason: Optional[str] = None,
    ) -> Result[DecisionResult]:
        return await self.decide(request_id, approver_id, approver_role, Decision.REJECTED, reason)

    async def get_approval_status(self, request_id: UUID) -> Result[ApprovalStatus]:
        """Current per-slot decisions on a request, recomputed from rows"""
        request = await get_or_none(self.db, DeductionRequest, request_id)
        if not request:
            return Result.failure(ErrorCodeDictionary.DEDUCT_004, entity_id=request_id)
        return Result.success(await self._approval_status(request))

    async def apply(
        self,
        request_id: UUID,
        actor_id: str,
        actor_role: Role,
    ) -> Result[DeductionRequest]:
        """
        Apply an approved deduction to the contestant's category total, once.

        Returns:
            Result with the request, or DEDUCT_011 (forbidden), DEDUCT_004
            (not found), DEDUCT_009 (not approved), DEDUCT_010 (already applied)
        """
        if actor_role not in self.policy.APPLIER_ROLES:
            return Result.failure(ErrorCodeDictionary.DEDUCT_011, role=actor_role.value)

        async def operation() -> Result[DeductionRequest]:
            request = await get_or_none(self.db, DeductionRequest, request_id)
            if not request:
                return Result.failure(ErrorCodeDictionary.DEDUCT_004, entity_id=request_id)
            if request.status != RequestStatus.APPROVED.value:
                return Result.failure(ErrorCodeDictionary.DEDUCT_009, entity_id=request_id, status=request.status)
            if request.applied_at is not None:
                return Result.failure(ErrorCodeDictionary.DEDUCT_010, entity_id=request_id)

            marked = await self.db.execute(
                update(DeductionRequest)
                .where(
                    DeductionRequest.id == request_id,
                    DeductionRequest.status == RequestStatus.APPROVED.value,
                    DeductionRequest.applied_at.is_(None),
                )
                .values(applied_at=datetime.utcnow(), applied_by=actor_id)
            )
            if marked.rowcount == 0:
                logger.warning(f"Deduction request {request_id} applied concurrently")
                return Result.failure(ErrorCodeDictionary.DEDUCT_010, entity_id=request_id)
            await self.db.refresh(request)

            added = await self.db.execute(
                update(CategoryContestant)
                .where(
                    CategoryContestant.category_id == request.category_id,
                    CategoryContestant.contestant_id == request.contestant_id,
                )
                .values(deduction_points=CategoryContestant.deduction_points + request.points)
            )
            if added.rowcount == 0:
                return Result.failure(
                    ErrorCodeDictionary.SCOPE_002,
                    entity_id=request.contestant_id,
                    entity="contestant",
                )

            EventLogger.log_deduction(
                self.db,
                "deduction_applied",
                request_id,
                actor_id,
                {"points": request.points, "actor_role": actor_role.value},
            )
            logger.info(f"Deduction request {request_id} applied by {actor_id}")
            return Result.success(request)

        return await run_atomic(self.db, operation)

    async def list_requests(
        self,
        status: Optional[RequestStatus] = None,
        category_id: Optional[UUID] = None,
        contestant_id: Optional[UUID] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Page:
        """Deduction requests, newest first, optionally filtered"""
        query = select(DeductionRequest).order_by(DeductionRequest.created_at.desc())
        if status is not None:
            query = query.where(DeductionRequest.status == status.value)
        if category_id is not None:
            query = query.where(DeductionRequest.category_id == category_id)
        if contestant_id is not None:
            query = query.where(DeductionRequest.contestant_id == contestant_id)
        return await paginate(self.db, query, page=page, limit=limit)

    async def list_approvals(self, request_id: UUID) -> List[DeductionApproval]:
        result = await self.db.execute(
            select(DeductionApproval)
            .where(DeductionApproval.request_id == request_id)
            .order_by(DeductionApproval.decided_at)
        )
        return list(result.scalars().all())

    async def _is_head_judge(self, user_id: str, category_id: UUID) -> bool:
        result = await self.db.execute(
            select(Judge.id)
            .join(CategoryJudge, CategoryJudge.judge_id == Judge.id)
            .where(
                Judge.user_id == user_id,
                Judge.is_head_judge.is_(True),
                CategoryJudge.category_id == category_id,
            )
        )
        return result.first() is not None

    async def _slot_decided(self, request_id: UUID, slot: Role) -> bool:
        result = await self.db.execute(
            select(DeductionApproval.id).where(
                DeductionApproval.request_id == request_id,
                DeductionApproval.approver_role == slot.value,
            )
        )
        return result.first() is not None

    async def _is_fully_approved(self, request_id: UUID) -> bool:
        approved = {
            approval.approver_role
            for approval in await self.list_approvals(request_id)
            if approval.decision == Decision.APPROVED.value
        }
        return all(role.value in approved for role in self.policy.required_approvers)

    async def _transition(
        self,
        request: DeductionRequest,
        target: RequestStatus,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        """PENDING -> target; False if another transaction moved it first"""
        values = {"status": target.value, "decided_at": datetime.utcnow()}
        if target == RequestStatus.REJECTED:
            values["rejection_reason"] = rejection_reason
        result = await self.db.execute(
            update(DeductionRequest)
            .where(
                DeductionRequest.id == request.id,
                DeductionRequest.status == RequestStatus.PENDING.value,
            )
            .values(**values)
        )
        if result.rowcount == 0:
            logger.warning(f"Deduction request {request.id} left PENDING concurrently")
            return False
        await self.db.refresh(request)
        return True

    async def _approval_status(self, request: DeductionRequest) -> ApprovalStatus:
        approvals = await self.list_approvals(request.id)
        approved = [a.approver_role for a in approvals if a.decision == Decision.APPROVED.value]
        rejected = [a.approver_role for a in approvals if a.decision == Decision.REJECTED.value]
        required = [role.value for role in self.policy.required_approvers]
        return {
            "request_id": str(request.id),
            "status": request.status,
            "required": required,
            "approved": approved,
            "rejected": rejected,
            "is_fully_approved": all(role in approved for role in required),
            "applied": request.applied_at is not None,
        }
