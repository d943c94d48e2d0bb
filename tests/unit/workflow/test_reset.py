"""Unit tests for bulk certification reset"""
import pytest
from sqlalchemy import func, select

from judging.db.enums import Role, ScopeKind
from judging.db.models import Certification, SystemEvent
from judging.workflow.certification import CertificationEngine
from judging.workflow.error_codes import ErrorCodeDictionary, ErrorKind
from judging.workflow.reset import CertificationResetService
from judging.workflow.scope_tree import ScopeRef


async def _count(db, *criteria) -> int:
    return (await db.execute(select(func.count()).select_from(Certification).where(*criteria))).scalar_one()


@pytest.fixture
def certify_category(test_db_session, seeded, certify_below):
    """Certify the "solo" category completely, lower levels included"""

    async def _certify() -> None:
        await certify_below()
        engine = CertificationEngine(test_db_session)
        for role in (Role.TALLY_MASTER, Role.AUDITOR, Role.BOARD):
            result = await engine.certify_category(seeded.category_id, role, f"{role.value.lower()}-1")
            assert result.ok, result.error

    return _certify


class TestReset:
    """Tests for reset_certifications"""

    async def test_contest_reset_removes_everything_beneath(self, test_db_session, seeded, certify_category):
        """Test that a contest reset leaves no certification under the contest"""
        await certify_category()
        service = CertificationResetService(test_db_session)

        outcome = (await service.reset_certifications(ScopeRef.contest(seeded.contest_id), "organizer-1", Role.ORGANIZER)).unwrap()

        # 4 pairs + 2 reviews x 2 roles + 3 category sign-offs
        assert outcome["reset_count"] == 11
        assert outcome["by_level"] == {
            "JUDGE_CONTESTANT": 4,
            "CONTESTANT_CATEGORY": 4,
            "CATEGORY": 3,
            "CONTEST": 0,
            "EVENT": 0,
        }
        assert await _count(test_db_session, Certification.contest_id == seeded.contest_id) == 0

    async def test_category_reset_keeps_other_categories(self, test_db_session, seeded, certify_category):
        """Test that a category reset only touches its own subtree"""
        await certify_category()
        engine = CertificationEngine(test_db_session)
        for role in (Role.TALLY_MASTER, Role.AUDITOR, Role.BOARD):
            assert (await engine.certify_category(seeded.empty_category_id, role, "someone")).ok
        service = CertificationResetService(test_db_session)

        outcome = (await service.reset_certifications(ScopeRef.category(seeded.category_id), "board-1", Role.BOARD)).unwrap()

        assert outcome["reset_count"] == 11
        assert await _count(test_db_session, Certification.category_id == seeded.empty_category_id) == 3

    async def test_reset_all(self, test_db_session, seeded, certify_category):
        """Test wiping every certification"""
        await certify_category()
        service = CertificationResetService(test_db_session)

        outcome = (await service.reset_certifications(None, "admin-1", Role.ADMIN, reset_all=True)).unwrap()

        assert outcome["reset_count"] == 11
        assert await _count(test_db_session) == 0

    async def test_failure_mid_reset_rolls_back(self, test_db_session, seeded, certify_category, monkeypatch):
        """Test that a failure on one level leaves every level intact"""
        await certify_category()
        service = CertificationResetService(test_db_session)
        original = service._delete_level

        async def failing(kind, scope):
            if kind == ScopeKind.CATEGORY:
                raise RuntimeError("disk full")
            return await original(kind, scope)

        monkeypatch.setattr(service, "_delete_level", failing)
        with pytest.raises(RuntimeError):
            await service.reset_certifications(ScopeRef.contest(seeded.contest_id), "admin-1", Role.ADMIN)

        assert await _count(test_db_session, Certification.contest_id == seeded.contest_id) == 11

    async def test_reset_is_audited(self, test_db_session, seeded, certify_category):
        """Test that a reset writes a system event"""
        await certify_category()
        service = CertificationResetService(test_db_session)

        await service.reset_certifications(ScopeRef.category(seeded.category_id), "admin-1", Role.ADMIN)

        events = (await test_db_session.execute(
            select(SystemEvent).where(SystemEvent.event_type == "certifications_reset")
        )).scalars().all()
        assert len(events) == 1
        assert events[0].actor_user_id == "admin-1"

    @pytest.mark.parametrize("role", [Role.TALLY_MASTER, Role.AUDITOR, Role.JUDGE])
    async def test_role_forbidden(self, test_db_session, seeded, certify_category, role):
        """Test that only admin, organizer and board may reset"""
        await certify_category()
        service = CertificationResetService(test_db_session)

        result = await service.reset_certifications(ScopeRef.category(seeded.category_id), "someone", role)

        assert result.error == ErrorCodeDictionary.RESET_001
        assert result.error.kind == ErrorKind.FORBIDDEN
        assert await _count(test_db_session) == 11

    async def test_target_required(self, test_db_session, seeded):
        """Test that a reset needs exactly one target"""
        service = CertificationResetService(test_db_session)

        no_target = await service.reset_certifications(None, "admin-1", Role.ADMIN)
        both = await service.reset_certifications(ScopeRef.event(seeded.event_id), "admin-1", Role.ADMIN, reset_all=True)

        assert no_target.error == ErrorCodeDictionary.RESET_002
        assert both.error == ErrorCodeDictionary.RESET_002
        assert both.error.kind == ErrorKind.VALIDATION

    async def test_leaf_scopes_not_resettable(self, test_db_session, seeded):
        """Test that resets start at a category or above"""
        service = CertificationResetService(test_db_session)
        scope = ScopeRef.contestant_category(seeded.contestant_1_id, seeded.category_id)

        result = await service.reset_certifications(scope, "admin-1", Role.ADMIN)

        assert result.error == ErrorCodeDictionary.RESET_002

    async def test_unknown_scope(self, test_db_session, seeded):
        """Test resetting a contest that does not exist"""
        from uuid import uuid4

        result = await CertificationResetService(test_db_session).reset_certifications(
            ScopeRef.contest(uuid4()), "admin-1", Role.ADMIN
        )

        assert result.error == ErrorCodeDictionary.SCOPE_001
