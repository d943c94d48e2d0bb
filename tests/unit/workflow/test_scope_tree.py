"""Unit tests for the scope tree"""
from uuid import uuid4

from judging.db.enums import Role, ScopeKind
from judging.workflow.certification import CertificationEngine
from judging.workflow.error_codes import ErrorCodeDictionary
from judging.workflow.scope_tree import ScopeRef, ScopeTree


class TestScopeRef:
    """Tests for scope identifiers"""

    def test_key_is_stable(self):
        """Test that the storage key joins the scope's ids in order"""
        judge_id, contestant_id, category_id = uuid4(), uuid4(), uuid4()

        scope = ScopeRef.judge_contestant(judge_id, contestant_id, category_id)

        assert scope.key == f"{judge_id}:{contestant_id}:{category_id}"
        assert scope.to_dict() == {
            "kind": "JUDGE_CONTESTANT",
            "judge_id": str(judge_id),
            "contestant_id": str(contestant_id),
            "category_id": str(category_id),
        }

    def test_missing_ids_not_well_formed(self):
        """Test that a scope without its ids is flagged"""
        scope = ScopeRef(ScopeKind.CONTESTANT_CATEGORY, category_id=uuid4())

        assert scope.is_well_formed is False


class TestResolve:
    """Tests for resolve"""

    async def test_judge_contestant_path(self, test_db_session, seeded):
        """Test that a pair resolves with its full ancestor path"""
        tree = ScopeTree(test_db_session)

        resolved = (await tree.resolve(
            ScopeRef.judge_contestant(seeded.judge_2_id, seeded.contestant_1_id, seeded.category_id)
        )).unwrap()

        assert resolved.event_id == seeded.event_id
        assert resolved.contest_id == seeded.contest_id
        assert resolved.judge_user_id == "judge-2"

    async def test_malformed_scope(self, test_db_session, seeded):
        """Test that missing ids are a validation failure"""
        result = await ScopeTree(test_db_session).resolve(ScopeRef(ScopeKind.CATEGORY))

        assert result.error == ErrorCodeDictionary.SCOPE_003

    async def test_pair_outside_category(self, test_db_session, seeded):
        """Test that a pair in a category the contestant is not in does not resolve"""
        scope = ScopeRef.judge_contestant(seeded.judge_1_id, seeded.contestant_1_id, seeded.empty_category_id)

        result = await ScopeTree(test_db_session).resolve(scope)

        # contestant is checked before the judge
        assert result.error == ErrorCodeDictionary.SCOPE_002
        assert result.context["entity"] == "contestant"


class TestLowerProgress:
    """Tests for lower_progress"""

    async def test_empty_category_is_trivially_complete_below(self, test_db_session, seeded):
        """Test that a category with nobody assigned has nothing beneath it"""
        tree = ScopeTree(test_db_session)

        assert await tree.lower_progress(ScopeRef.category(seeded.empty_category_id)) == (0, 0)
        assert await tree.is_fully_certified_below(ScopeRef.category(seeded.empty_category_id)) is True

    async def test_contestant_review_counts_judges(self, test_db_session, seeded):
        """Test that a review counts the judges certified for that contestant"""
        engine = CertificationEngine(test_db_session)
        await engine.certify(
            ScopeRef.judge_contestant(seeded.judge_2_id, seeded.contestant_2_id, seeded.category_id),
            Role.JUDGE,
            "judge-2",
        )
        tree = ScopeTree(test_db_session)

        progress = await tree.lower_progress(ScopeRef.contestant_category(seeded.contestant_2_id, seeded.category_id))

        assert progress == (1, 2)

    async def test_contest_counts_complete_categories(self, test_db_session, seeded, certify_below):
        """Test that a contest counts only fully certified categories"""
        await certify_below()
        tree = ScopeTree(test_db_session)

        assert await tree.lower_progress(ScopeRef.contest(seeded.contest_id)) == (0, 1)
        assert await tree.lower_progress(ScopeRef.event(seeded.event_id)) == (0, 2)

    async def test_missing_roles_in_policy_order(self, test_db_session, seeded):
        """Test that missing roles follow the configured order"""
        tree = ScopeTree(test_db_session)

        missing = await tree.missing_roles(ScopeRef.contest(seeded.contest_id))

        assert missing == [Role.TALLY_MASTER, Role.AUDITOR, Role.BOARD, Role.ORGANIZER]
