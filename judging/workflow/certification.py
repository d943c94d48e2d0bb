"""
Certification engine: role sign-offs on scopes with hierarchical gating.

Each certify call runs its checks and its insert in one transaction. The
unique constraint on (scope_type, scope_key, role) backs the duplicate
check, so two concurrent sign-offs for the same slot produce exactly one
row and one CERT_003 conflict.
"""
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from judging.db.enums import Role, ScopeKind
from judging.db.models import Certification
from judging.types import CertificationRecord, ProgressView
from judging.utils.database import run_atomic
from judging.workflow.error_codes import ErrorCodeDictionary
from judging.workflow.event_logger import EventLogger
from judging.workflow.policy import CertificationPolicy
from judging.workflow.result import Result
from judging.workflow.scope_tree import ScopeRef, ScopeTree

logger = logging.getLogger(__name__)


def serialize_certification(certification: Certification) -> CertificationRecord:
    return {
        "id": str(certification.id),
        "scope_type": certification.scope_type,
        "scope_key": certification.scope_key,
        "role": certification.role,
        "actor_user_id": certification.actor_user_id,
        "actor_role": certification.actor_role,
        "comment": certification.comment,
        "certified_at": certification.certified_at.isoformat() if certification.certified_at else None,
    }


class CertificationEngine:
    """Records and reports role certifications over the scope hierarchy"""

    def __init__(self, db: AsyncSession, policy: Optional[CertificationPolicy] = None):
        self.db = db
        self.policy = policy or CertificationPolicy()
        self.scope_tree = ScopeTree(db, self.policy)

    async def get_progress(self, scope: ScopeRef) -> Result[ProgressView]:
        """
        Report which slots are certified on a scope and how much of the
        hierarchy beneath it is done.

        Returns:
            Result with ProgressView, or SCOPE_* failure if the scope is missing
        """
        resolved = await self.scope_tree.resolve(scope)
        if not resolved.ok:
            return resolved

        rows = await self.list_certifications(scope)
        certified = {Role(row.role) for row in rows}
        rule = self.policy.rule(scope.kind)
        lower_certified, lower_required = await self.scope_tree.lower_progress(scope)
        below_done = lower_certified == lower_required

        roles = {role.value: role in certified for role in rule.required}
        optional_roles = {
            role.value: role in certified
            for role in rule.slots
            if role not in rule.required
        }

        return Result.success({
            "scope": scope.to_dict(),
            "roles": roles,
            "optional_roles": optional_roles,
            "certifications": [serialize_certification(row) for row in rows],
            "lower_certified": lower_certified,
            "lower_required": lower_required,
            "is_fully_certified_below": below_done,
            "is_complete": below_done and all(roles.values()),
        })

    async def certify(
        self,
        scope: ScopeRef,
        actor_role: Role,
        actor_id: str,
        comment: Optional[str] = None,
    ) -> Result[Certification]:
        """
        Certify a scope in the slot the actor's role maps to.

        Args:
            scope: What is being certified
            actor_role: Role of the authenticated principal
            actor_id: User id of the principal
            comment: Optional note stored with the certification

        Returns:
            Result with the new Certification, or:
            CERT_001/CERT_002 (forbidden), SCOPE_* (not found),
            CERT_003 (already certified), CERT_004 (earlier slots missing),
            CERT_005 (lower levels incomplete)
        """
        slot = self.policy.slot_for(scope.kind, actor_role)
        if slot is None:
            logger.warning(f"{actor_role.value} may not certify {scope.kind.value} {scope.key}")
            return Result.failure(
                ErrorCodeDictionary.CERT_001,
                role=actor_role.value,
                scope_kind=scope.kind.value,
            )

        conflict = Result.failure(
            ErrorCodeDictionary.CERT_003,
            scope=scope.to_dict(),
            role=slot.value,
        )
        return await run_atomic(
            self.db,
            lambda: self._certify(scope, slot, actor_role, actor_id, comment),
            on_conflict=conflict,
        )

    async def _certify(
        self,
        scope: ScopeRef,
        slot: Role,
        actor_role: Role,
        actor_id: str,
        comment: Optional[str],
    ) -> Result[Certification]:
        resolved = await self.scope_tree.resolve(scope)
        if not resolved.ok:
            return resolved
        path = resolved.value

        if (
            scope.kind == ScopeKind.JUDGE_CONTESTANT
            and actor_role == Role.JUDGE
            and path.judge_user_id != actor_id
        ):
            logger.warning(f"User {actor_id} is not the judge assigned to {scope.key}")
            return Result.failure(ErrorCodeDictionary.CERT_002, entity_id=scope.judge_id)

        certified = await self.scope_tree.certified_roles(scope)
        if slot in certified:
            return Result.failure(
                ErrorCodeDictionary.CERT_003,
                scope=scope.to_dict(),
                role=slot.value,
            )

        missing_before = [
            role.value
            for role in self.policy.preceding_required(scope.kind, slot)
            if role not in certified
        ]
        if missing_before:
            return Result.failure(
                ErrorCodeDictionary.CERT_004,
                scope=scope.to_dict(),
                missing_roles=missing_before,
            )

        lower_certified, lower_required = await self.scope_tree.lower_progress(scope)
        if lower_certified < lower_required:
            return Result.failure(
                ErrorCodeDictionary.CERT_005,
                scope=scope.to_dict(),
                certified=lower_certified,
                required=lower_required,
                missing=lower_required - lower_certified,
            )

        certification = Certification(
            scope_type=scope.kind.value,
            scope_key=scope.key,
            role=slot.value,
            actor_user_id=actor_id,
            actor_role=actor_role.value,
            comment=comment,
            event_id=path.event_id,
            contest_id=path.contest_id,
            category_id=path.category_id,
            judge_id=scope.judge_id,
            contestant_id=scope.contestant_id,
        )
        self.db.add(certification)
        await self.db.flush()

        EventLogger.log_certification(
            self.db,
            certification.id,
            actor_id,
            {
                "scope": scope.to_dict(),
                "role": slot.value,
                "actor_role": actor_role.value,
            },
        )
        logger.info(
            f"Certified {scope.kind.value} {scope.key} as {slot.value} "
            f"(actor {actor_id}, role {actor_role.value})"
        )
        return Result.success(certification)

    async def certify_judge_contestant(
        self,
        judge_id: UUID,
        contestant_id: UUID,
        category_id: UUID,
        actor_role: Role,
        actor_id: str,
        comment: Optional[str] = None,
    ) -> Result[Certification]:
        scope = ScopeRef.judge_contestant(judge_id, contestant_id, category_id)
        return await self.certify(scope, actor_role, actor_id, comment)

    async def certify_contestant(
        self,
        contestant_id: UUID,
        category_id: UUID,
        actor_role: Role,
        actor_id: str,
        comment: Optional[str] = None,
    ) -> Result[Certification]:
        scope = ScopeRef.contestant_category(contestant_id, category_id)
        return await self.certify(scope, actor_role, actor_id, comment)

    async def certify_category(
        self,
        category_id: UUID,
        actor_role: Role,
        actor_id: str,
        comment: Optional[str] = None,
    ) -> Result[Certification]:
        return await self.certify(ScopeRef.category(category_id), actor_role, actor_id, comment)

    async def certify_contest(
        self,
        contest_id: UUID,
        actor_role: Role,
        actor_id: str,
        comment: Optional[str] = None,
    ) -> Result[Certification]:
        return await self.certify(ScopeRef.contest(contest_id), actor_role, actor_id, comment)

    async def certify_event(
        self,
        event_id: UUID,
        actor_role: Role,
        actor_id: str,
        comment: Optional[str] = None,
    ) -> Result[Certification]:
        return await self.certify(ScopeRef.event(event_id), actor_role, actor_id, comment)

    async def list_certifications(self, scope: ScopeRef) -> List[Certification]:
        """Certifications on exactly this scope, oldest first"""
        result = await self.db.execute(
            select(Certification)
            .where(
                Certification.scope_type == scope.kind.value,
                Certification.scope_key == scope.key,
            )
            .order_by(Certification.certified_at)
        )
        return list(result.scalars().all())
