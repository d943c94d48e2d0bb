"""Bulk certification reset: atomic removal across a scope and everything beneath it."""
import logging
from typing import Dict, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from judging.db.enums import Role, ScopeKind
from judging.db.models import Certification
from judging.types import ResetResult
from judging.utils.database import run_atomic
from judging.workflow.error_codes import ErrorCodeDictionary
from judging.workflow.event_logger import EventLogger
from judging.workflow.policy import RESET_ROLES
from judging.workflow.result import Result
from judging.workflow.scope_tree import ScopeRef, ScopeTree

logger = logging.getLogger(__name__)

# Leaf to root; every level is deleted inside the same transaction
RESET_LEVELS = (
    ScopeKind.JUDGE_CONTESTANT,
    ScopeKind.CONTESTANT_CATEGORY,
    ScopeKind.CATEGORY,
    ScopeKind.CONTEST,
    ScopeKind.EVENT,
)

# Denormalized path column that places a certification under a reset root
_ROOT_COLUMNS = {
    ScopeKind.CATEGORY: Certification.category_id,
    ScopeKind.CONTEST: Certification.contest_id,
    ScopeKind.EVENT: Certification.event_id,
}


class CertificationResetService:
    """Removes certifications for a category, contest, event or everything"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def reset_certifications(
        self,
        scope: Optional[ScopeRef],
        actor_id: str,
        actor_role: Role,
        reset_all: bool = False,
    ) -> Result[ResetResult]:
        """
        Delete every certification at and beneath the scope.

        Args:
            scope: CATEGORY, CONTEST or EVENT scope; None with reset_all
            actor_id: User id of the principal
            actor_role: Role of the principal
            reset_all: Remove every certification in the system

        Returns:
            Result with ResetResult, or RESET_001 (forbidden), RESET_002
            (validation), SCOPE_* (not found)
        """
        if actor_role not in RESET_ROLES:
            logger.warning(f"{actor_role.value} {actor_id} attempted a certification reset")
            return Result.failure(ErrorCodeDictionary.RESET_001, role=actor_role.value)

        if reset_all == (scope is not None):
            return Result.failure(ErrorCodeDictionary.RESET_002)
        if scope is not None and scope.kind not in _ROOT_COLUMNS:
            return Result.failure(ErrorCodeDictionary.RESET_002, scope_kind=scope.kind.value)

        return await run_atomic(self.db, lambda: self._reset(scope, actor_id, actor_role))

    async def _reset(
        self,
        scope: Optional[ScopeRef],
        actor_id: str,
        actor_role: Role,
    ) -> Result[ResetResult]:
        if scope is not None:
            resolved = await ScopeTree(self.db).resolve(scope)
            if not resolved.ok:
                return resolved

        by_level: Dict[str, int] = {}
        for kind in RESET_LEVELS:
            by_level[kind.value] = await self._delete_level(kind, scope)
        total = sum(by_level.values())

        target = "all" if scope is None else scope.to_dict()
        EventLogger.log_reset(
            self.db,
            actor_id,
            {"target": target, "by_level": by_level, "actor_role": actor_role.value},
        )
        logger.info(f"Certification reset by {actor_id} on {target}: {total} removed")

        if scope is None:
            message = f"Reset {total} certifications"
        else:
            message = f"Reset {total} certifications for {scope.kind.value.lower()} {scope.key}"
        return Result.success({"reset_count": total, "by_level": by_level, "message": message})

    async def _delete_level(self, kind: ScopeKind, scope: Optional[ScopeRef]) -> int:
        statement = delete(Certification).where(Certification.scope_type == kind.value)
        if scope is not None:
            root_id = getattr(scope, f"{scope.kind.value.lower()}_id")
            statement = statement.where(_ROOT_COLUMNS[scope.kind] == root_id)
        result = await self.db.execute(statement)
        return result.rowcount
