"""Pytest configuration and shared fixtures"""
import pytest
import os
from types import SimpleNamespace
from typing import AsyncGenerator, Callable, Dict
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from judging.db.enums import Role
from judging.db.models import (
    Category,
    CategoryContestant,
    CategoryJudge,
    Contest,
    Contestant,
    Event,
    Judge,
    Score,
)

# Test database URL (use in-memory SQLite for unit tests)
TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL",
    "sqlite+aiosqlite:///:memory:"
)


@pytest.fixture
async def test_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create test database session"""
    from judging.core.database import Base

    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False} if "sqlite" in TEST_DATABASE_URL else {},
        poolclass=StaticPool if "sqlite" in TEST_DATABASE_URL else None,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(engine, expire_on_commit=False)

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def seeded(test_db_session: AsyncSession) -> SimpleNamespace:
    """
    Event with two contests.

    Contest "main" holds category "solo" with judges judge-1 (head judge) and
    judge-2 and contestants p1, p2, each judge having scored each contestant.
    Contest "side" holds category "empty" with nobody assigned.

    Only ids are returned; tests re-read rows through the session.
    """
    db = test_db_session
    event = Event(name="Spring Pageant")
    db.add(event)
    await db.flush()

    main = Contest(event_id=event.id, name="Main Stage")
    side = Contest(event_id=event.id, name="Side Stage")
    db.add_all([main, side])
    await db.flush()

    solo = Category(contest_id=main.id, name="Solo")
    empty = Category(contest_id=side.id, name="Empty")
    db.add_all([solo, empty])
    await db.flush()

    judge_1 = Judge(user_id="judge-1", name="Ada", is_head_judge=True)
    judge_2 = Judge(user_id="judge-2", name="Grace", is_head_judge=False)
    p1 = Contestant(name="Alex", contestant_number=1)
    p2 = Contestant(name="Sam", contestant_number=2)
    db.add_all([judge_1, judge_2, p1, p2])
    await db.flush()

    for judge in (judge_1, judge_2):
        db.add(CategoryJudge(category_id=solo.id, judge_id=judge.id))
    for contestant in (p1, p2):
        db.add(CategoryContestant(category_id=solo.id, contestant_id=contestant.id))
    for judge in (judge_1, judge_2):
        for contestant in (p1, p2):
            db.add(Score(category_id=solo.id, contestant_id=contestant.id, judge_id=judge.id, value=8.5))
    await db.commit()

    return SimpleNamespace(
        event_id=event.id,
        contest_id=main.id,
        side_contest_id=side.id,
        category_id=solo.id,
        empty_category_id=empty.id,
        judge_1_id=judge_1.id,
        judge_2_id=judge_2.id,
        judge_ids=[judge_1.id, judge_2.id],
        contestant_1_id=p1.id,
        contestant_2_id=p2.id,
        contestant_ids=[p1.id, p2.id],
    )


@pytest.fixture
def auth_headers() -> Callable[[str, Role], Dict[str, str]]:
    """Build an Authorization header for a user acting in a role"""
    from judging.core.auth import create_access_token

    def _headers(user_id: str, role: Role) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}

    return _headers


@pytest.fixture
def mock_user_id():
    """Mock user id for testing"""
    from uuid import uuid4
    return str(uuid4())


@pytest.fixture
def certify_below(test_db_session: AsyncSession, seeded: SimpleNamespace):
    """
    Certify every judge-contestant pair and contestant review in the
    seeded "solo" category, leaving the category itself uncertified.
    """
    from judging.workflow.certification import CertificationEngine
    from judging.workflow.scope_tree import ScopeRef

    async def _certify() -> None:
        engine = CertificationEngine(test_db_session)
        judge_users = {seeded.judge_1_id: "judge-1", seeded.judge_2_id: "judge-2"}
        for contestant_id in seeded.contestant_ids:
            for judge_id, user_id in judge_users.items():
                result = await engine.certify(
                    ScopeRef.judge_contestant(judge_id, contestant_id, seeded.category_id),
                    Role.JUDGE,
                    user_id,
                )
                assert result.ok, result.error
            review = ScopeRef.contestant_category(contestant_id, seeded.category_id)
            for role, user_id in ((Role.TALLY_MASTER, "tally-1"), (Role.AUDITOR, "auditor-1")):
                result = await engine.certify(review, role, user_id)
                assert result.ok, result.error

    return _certify
