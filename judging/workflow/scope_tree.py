"""Scope hierarchy: JudgeContestant < ContestantCategory < Category < Contest < Event."""
from dataclasses import dataclass
from typing import List, Optional, Set, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from judging.db.enums import Role, ScopeKind
from judging.db.models import (
    Category,
    CategoryContestant,
    CategoryJudge,
    Certification,
    Contest,
    Contestant,
    Event,
    Judge,
)
from judging.workflow.error_codes import ErrorCodeDictionary
from judging.workflow.policy import CertificationPolicy
from judging.workflow.result import Result

# Ids each scope kind must carry
_REQUIRED_IDS = {
    ScopeKind.JUDGE_CONTESTANT: ("judge_id", "contestant_id", "category_id"),
    ScopeKind.CONTESTANT_CATEGORY: ("contestant_id", "category_id"),
    ScopeKind.CATEGORY: ("category_id",),
    ScopeKind.CONTEST: ("contest_id",),
    ScopeKind.EVENT: ("event_id",),
}


@dataclass(frozen=True)
class ScopeRef:
    """Identifies what is being certified."""

    kind: ScopeKind
    judge_id: Optional[UUID] = None
    contestant_id: Optional[UUID] = None
    category_id: Optional[UUID] = None
    contest_id: Optional[UUID] = None
    event_id: Optional[UUID] = None

    @classmethod
    def judge_contestant(cls, judge_id: UUID, contestant_id: UUID, category_id: UUID) -> "ScopeRef":
        return cls(
            ScopeKind.JUDGE_CONTESTANT,
            judge_id=judge_id,
            contestant_id=contestant_id,
            category_id=category_id,
        )

    @classmethod
    def contestant_category(cls, contestant_id: UUID, category_id: UUID) -> "ScopeRef":
        return cls(ScopeKind.CONTESTANT_CATEGORY, contestant_id=contestant_id, category_id=category_id)

    @classmethod
    def category(cls, category_id: UUID) -> "ScopeRef":
        return cls(ScopeKind.CATEGORY, category_id=category_id)

    @classmethod
    def contest(cls, contest_id: UUID) -> "ScopeRef":
        return cls(ScopeKind.CONTEST, contest_id=contest_id)

    @classmethod
    def event(cls, event_id: UUID) -> "ScopeRef":
        return cls(ScopeKind.EVENT, event_id=event_id)

    @property
    def is_well_formed(self) -> bool:
        return all(getattr(self, name) is not None for name in _REQUIRED_IDS[self.kind])

    @property
    def key(self) -> str:
        """Canonical storage key, unique within the scope kind"""
        return ":".join(str(getattr(self, name)) for name in _REQUIRED_IDS[self.kind])

    def to_dict(self) -> dict:
        data = {"kind": self.kind.value}
        for name in _REQUIRED_IDS[self.kind]:
            data[name] = str(getattr(self, name))
        return data


@dataclass(frozen=True)
class ResolvedScope:
    """A scope whose entities exist, with its ancestor path"""

    scope: ScopeRef
    event_id: Optional[UUID] = None
    contest_id: Optional[UUID] = None
    category_id: Optional[UUID] = None
    judge_user_id: Optional[str] = None


class ScopeTree:
    """
    Reads the scope hierarchy and its certification state.

    Every answer is recomputed from the current rows through the session it
    was built with, so calling it inside a write transaction sees that
    transaction's view. Nothing is cached.
    """

    def __init__(self, db: AsyncSession, policy: Optional[CertificationPolicy] = None):
        self.db = db
        self.policy = policy or CertificationPolicy()

    async def resolve(self, scope: ScopeRef) -> Result[ResolvedScope]:
        """
        Check that the scope's entities exist and build its ancestor path.

        Returns:
            Result with ResolvedScope, or SCOPE_001/SCOPE_002/SCOPE_003
        """
        if not scope.is_well_formed:
            return Result.failure(ErrorCodeDictionary.SCOPE_003, scope=scope.to_dict())

        if scope.kind == ScopeKind.EVENT:
            event = await self.db.get(Event, scope.event_id)
            if not event:
                return Result.failure(ErrorCodeDictionary.SCOPE_001, entity_id=scope.event_id, entity="event")
            return Result.success(ResolvedScope(scope, event_id=event.id))

        if scope.kind == ScopeKind.CONTEST:
            contest = await self.db.get(Contest, scope.contest_id)
            if not contest:
                return Result.failure(ErrorCodeDictionary.SCOPE_001, entity_id=scope.contest_id, entity="contest")
            return Result.success(ResolvedScope(scope, event_id=contest.event_id, contest_id=contest.id))

        category = await self.db.get(Category, scope.category_id)
        if not category:
            return Result.failure(ErrorCodeDictionary.SCOPE_001, entity_id=scope.category_id, entity="category")
        contest = await self.db.get(Contest, category.contest_id)
        path = dict(
            event_id=contest.event_id if contest else None,
            contest_id=category.contest_id,
            category_id=category.id,
        )

        if scope.kind == ScopeKind.CATEGORY:
            return Result.success(ResolvedScope(scope, **path))

        contestant = await self.db.get(Contestant, scope.contestant_id)
        if not contestant:
            return Result.failure(ErrorCodeDictionary.SCOPE_001, entity_id=scope.contestant_id, entity="contestant")
        if scope.contestant_id not in await self.contestant_ids(category.id):
            return Result.failure(ErrorCodeDictionary.SCOPE_002, entity_id=scope.contestant_id, entity="contestant")

        if scope.kind == ScopeKind.CONTESTANT_CATEGORY:
            return Result.success(ResolvedScope(scope, **path))

        judge = await self.db.get(Judge, scope.judge_id)
        if not judge:
            return Result.failure(ErrorCodeDictionary.SCOPE_001, entity_id=scope.judge_id, entity="judge")
        if scope.judge_id not in await self.judge_ids(category.id):
            return Result.failure(ErrorCodeDictionary.SCOPE_002, entity_id=scope.judge_id, entity="judge")

        return Result.success(ResolvedScope(scope, judge_user_id=judge.user_id, **path))

    async def judge_ids(self, category_id: UUID) -> List[UUID]:
        result = await self.db.execute(
            select(CategoryJudge.judge_id).where(CategoryJudge.category_id == category_id)
        )
        return list(result.scalars().all())

    async def contestant_ids(self, category_id: UUID) -> List[UUID]:
        result = await self.db.execute(
            select(CategoryContestant.contestant_id).where(CategoryContestant.category_id == category_id)
        )
        return list(result.scalars().all())

    async def certified_roles(self, scope: ScopeRef) -> Set[Role]:
        """Slots currently certified on exactly this scope"""
        result = await self.db.execute(
            select(Certification.role).where(
                Certification.scope_type == scope.kind.value,
                Certification.scope_key == scope.key,
            )
        )
        return {Role(value) for value in result.scalars().all()}

    async def missing_roles(self, scope: ScopeRef) -> List[Role]:
        certified = await self.certified_roles(scope)
        return [role for role in self.policy.required_roles(scope.kind) if role not in certified]

    async def is_scope_complete(self, scope: ScopeRef) -> bool:
        """All required slots certified here and everything beneath certified too"""
        if await self.missing_roles(scope):
            return False
        return await self.is_fully_certified_below(scope)

    async def is_fully_certified_below(self, scope: ScopeRef) -> bool:
        certified, required = await self.lower_progress(scope)
        return certified == required

    async def lower_progress(self, scope: ScopeRef) -> Tuple[int, int]:
        """
        Count certified vs required lower-scope units beneath a scope.

        Returns:
            Tuple of (certified, required); empty scopes are (0, 0)
        """
        if scope.kind == ScopeKind.JUDGE_CONTESTANT:
            return 0, 0

        if scope.kind == ScopeKind.CONTESTANT_CATEGORY:
            judges = set(await self.judge_ids(scope.category_id))
            certified_judges = await self._certified_judges(scope.category_id, scope.contestant_id)
            return len(judges & certified_judges), len(judges)

        if scope.kind == ScopeKind.CATEGORY:
            return await self._category_progress(scope.category_id)

        if scope.kind == ScopeKind.CONTEST:
            result = await self.db.execute(select(Category.id).where(Category.contest_id == scope.contest_id))
            children = [ScopeRef.category(category_id) for category_id in result.scalars().all()]
        else:
            result = await self.db.execute(select(Contest.id).where(Contest.event_id == scope.event_id))
            children = [ScopeRef.contest(contest_id) for contest_id in result.scalars().all()]

        certified = 0
        for child in children:
            if await self.is_scope_complete(child):
                certified += 1
        return certified, len(children)

    async def _certified_judges(self, category_id: UUID, contestant_id: UUID) -> Set[UUID]:
        result = await self.db.execute(
            select(Certification.judge_id).where(
                Certification.scope_type == ScopeKind.JUDGE_CONTESTANT.value,
                Certification.category_id == category_id,
                Certification.contestant_id == contestant_id,
                Certification.role == Role.JUDGE.value,
            )
        )
        return set(result.scalars().all())

    async def _category_progress(self, category_id: UUID) -> Tuple[int, int]:
        """Judge x contestant pairs plus each contestant's own review scope"""
        judges = set(await self.judge_ids(category_id))
        contestants = set(await self.contestant_ids(category_id))

        pair_rows = await self.db.execute(
            select(Certification.judge_id, Certification.contestant_id).where(
                Certification.scope_type == ScopeKind.JUDGE_CONTESTANT.value,
                Certification.category_id == category_id,
                Certification.role == Role.JUDGE.value,
            )
        )
        certified_pairs = {
            (judge_id, contestant_id)
            for judge_id, contestant_id in pair_rows.all()
            if judge_id in judges and contestant_id in contestants
        }

        review_rows = await self.db.execute(
            select(Certification.contestant_id, Certification.role).where(
                Certification.scope_type == ScopeKind.CONTESTANT_CATEGORY.value,
                Certification.category_id == category_id,
            )
        )
        reviewed = {}
        for contestant_id, role in review_rows.all():
            reviewed.setdefault(contestant_id, set()).add(Role(role))

        required_review = set(self.policy.required_roles(ScopeKind.CONTESTANT_CATEGORY))
        certified_reviews = 0
        for contestant_id in contestants:
            judges_done = all((judge_id, contestant_id) in certified_pairs for judge_id in judges)
            if judges_done and required_review <= reviewed.get(contestant_id, set()):
                certified_reviews += 1

        required = len(judges) * len(contestants) + len(contestants)
        return len(certified_pairs) + certified_reviews, required
