"""Unit tests for the deduction workflow"""
import math

import pytest
from sqlalchemy import select

from judging.db.enums import Decision, RequestStatus, Role
from judging.db.models import CategoryContestant
from judging.workflow.deductions import DeductionWorkflow
from judging.workflow.error_codes import ErrorCodeDictionary, ErrorKind
from judging.workflow.policy import DeductionPolicy

APPROVERS = [
    (Role.JUDGE, "judge-1"),
    (Role.TALLY_MASTER, "tally-1"),
    (Role.AUDITOR, "auditor-1"),
    (Role.BOARD, "board-1"),
]


async def _open(workflow, seeded, points=2.0, reason="Costume malfunction"):
    result = await workflow.create_request(
        contestant_id=seeded.contestant_1_id,
        category_id=seeded.category_id,
        requester_id="organizer-1",
        requester_role=Role.ORGANIZER,
        points=points,
        reason=reason,
    )
    return result.unwrap()


async def _deducted(db, seeded) -> float:
    result = await db.execute(
        select(CategoryContestant.deduction_points).where(
            CategoryContestant.category_id == seeded.category_id,
            CategoryContestant.contestant_id == seeded.contestant_1_id,
        )
    )
    return result.scalar_one()


class TestCreateRequest:
    """Tests for opening deduction requests"""

    async def test_create_pending_request(self, test_db_session, seeded):
        """Test that a valid request starts PENDING"""
        request = await _open(DeductionWorkflow(test_db_session), seeded)

        assert request.status == RequestStatus.PENDING.value
        assert request.points == 2.0
        assert request.requester_role == "ORGANIZER"

    @pytest.mark.parametrize("points", [0, -1.5, math.inf, -math.inf, math.nan])
    async def test_points_must_be_positive_and_finite(self, test_db_session, seeded, points):
        """Test that non-positive and non-finite points are rejected before anything is stored"""
        result = await DeductionWorkflow(test_db_session).create_request(
            seeded.contestant_1_id, seeded.category_id, "judge-1", Role.JUDGE, points, "Late"
        )

        assert result.error == ErrorCodeDictionary.DEDUCT_002
        assert result.error.kind == ErrorKind.VALIDATION
        page = await DeductionWorkflow(test_db_session).list_requests()
        assert page["pagination"]["total"] == 0

    async def test_reason_required(self, test_db_session, seeded):
        """Test that a blank reason is rejected"""
        result = await DeductionWorkflow(test_db_session).create_request(
            seeded.contestant_1_id, seeded.category_id, "judge-1", Role.JUDGE, 1.0, "   "
        )

        assert result.error == ErrorCodeDictionary.DEDUCT_003

    async def test_requester_role_restricted(self, test_db_session, seeded):
        """Test that tally masters cannot open deduction requests"""
        result = await DeductionWorkflow(test_db_session).create_request(
            seeded.contestant_1_id, seeded.category_id, "tally-1", Role.TALLY_MASTER, 1.0, "Late"
        )

        assert result.error == ErrorCodeDictionary.DEDUCT_001
        assert result.error.kind == ErrorKind.FORBIDDEN

    async def test_contestant_must_be_in_category(self, test_db_session, seeded):
        """Test that the contestant must be assigned to the category"""
        result = await DeductionWorkflow(test_db_session).create_request(
            seeded.contestant_1_id, seeded.empty_category_id, "judge-1", Role.JUDGE, 1.0, "Late"
        )

        assert result.error == ErrorCodeDictionary.SCOPE_002


class TestDecide:
    """Tests for approvals and rejections"""

    async def test_approved_only_after_every_slot(self, test_db_session, seeded):
        """Test that the request is APPROVED exactly when all slots approved"""
        workflow = DeductionWorkflow(test_db_session)
        request = await _open(workflow, seeded)

        for index, (role, user_id) in enumerate(APPROVERS):
            outcome = (await workflow.approve(request.id, user_id, role)).unwrap()
            expected = RequestStatus.APPROVED if index == len(APPROVERS) - 1 else RequestStatus.PENDING
            assert outcome["request"].status == expected.value
        assert outcome["request"].decided_at is not None

        status = (await workflow.get_approval_status(request.id)).unwrap()
        assert status["is_fully_approved"] is True
        assert sorted(status["approved"]) == sorted(role.value for role, _ in APPROVERS)

    async def test_rejection_vetoes(self, test_db_session, seeded):
        """Test that one rejection moves the request to REJECTED"""
        workflow = DeductionWorkflow(test_db_session)
        request = await _open(workflow, seeded)
        await workflow.approve(request.id, "tally-1", Role.TALLY_MASTER)

        outcome = (await workflow.reject(request.id, "auditor-1", Role.AUDITOR, "Not supported by video")).unwrap()

        assert outcome["request"].status == RequestStatus.REJECTED.value
        assert outcome["request"].rejection_reason == "Not supported by video"
        assert outcome["request"].decided_at is not None
        late = await workflow.approve(request.id, "board-1", Role.BOARD)
        assert late.error == ErrorCodeDictionary.DEDUCT_005

    async def test_organizer_decides_in_board_slot(self, test_db_session, seeded):
        """Test that organizer and board share one approver slot"""
        workflow = DeductionWorkflow(test_db_session)
        request = await _open(workflow, seeded)

        outcome = (await workflow.approve(request.id, "organizer-2", Role.ORGANIZER)).unwrap()
        assert outcome["approval"].approver_role == Role.BOARD.value

        repeat = await workflow.approve(request.id, "board-1", Role.BOARD)

        assert repeat.error == ErrorCodeDictionary.DEDUCT_008
        assert repeat.error.kind == ErrorKind.CONFLICT

    async def test_judge_approver_must_be_head_judge(self, test_db_session, seeded):
        """Test that only a head judge of the category decides as judge"""
        workflow = DeductionWorkflow(test_db_session)
        request = await _open(workflow, seeded)

        result = await workflow.approve(request.id, "judge-2", Role.JUDGE)

        assert result.error == ErrorCodeDictionary.DEDUCT_007

    async def test_non_approver_role_forbidden(self, test_db_session, seeded):
        """Test that roles outside the quorum cannot decide"""
        workflow = DeductionWorkflow(test_db_session)
        request = await _open(workflow, seeded)

        result = await workflow.decide(request.id, "emcee-1", Role.EMCEE, Decision.APPROVED)

        assert result.error == ErrorCodeDictionary.DEDUCT_006

    async def test_unknown_request_not_found(self, test_db_session, seeded):
        """Test deciding on a missing request"""
        from uuid import uuid4

        result = await DeductionWorkflow(test_db_session).approve(uuid4(), "tally-1", Role.TALLY_MASTER)

        assert result.error == ErrorCodeDictionary.DEDUCT_004
        assert result.error.kind == ErrorKind.NOT_FOUND

    async def test_lost_race_on_slot_is_conflict(self, test_db_session, seeded, monkeypatch):
        """Test that the approval unique constraint reports DEDUCT_008"""
        workflow = DeductionWorkflow(test_db_session)
        request = await _open(workflow, seeded)
        request_id = request.id
        await workflow.approve(request_id, "tally-1", Role.TALLY_MASTER)

        async def not_decided(_request_id, _slot):
            return False

        # Simulate a concurrent decision the explicit check did not see
        monkeypatch.setattr(workflow, "_slot_decided", not_decided)
        result = await workflow.approve(request_id, "tally-2", Role.TALLY_MASTER)

        assert result.error == ErrorCodeDictionary.DEDUCT_008
        approvals = await workflow.list_approvals(request_id)
        assert len(approvals) == 1

    async def test_configured_quorum(self, test_db_session, seeded):
        """Test a deployment requiring only the tally master"""
        workflow = DeductionWorkflow(test_db_session, DeductionPolicy(required_approvers=(Role.TALLY_MASTER,)))
        request = await _open(workflow, seeded)

        outcome = (await workflow.approve(request.id, "tally-1", Role.TALLY_MASTER)).unwrap()

        assert outcome["request"].status == RequestStatus.APPROVED.value
        assert (await workflow.approve(request.id, "auditor-1", Role.AUDITOR)).error == ErrorCodeDictionary.DEDUCT_005


class TestApply:
    """Tests for applying deductions"""

    async def test_apply_once(self, test_db_session, seeded):
        """Test that an approved deduction is applied exactly once"""
        workflow = DeductionWorkflow(test_db_session)
        request = await _open(workflow, seeded, points=1.5)
        for role, user_id in APPROVERS:
            await workflow.approve(request.id, user_id, role)

        applied = (await workflow.apply(request.id, "tally-1", Role.TALLY_MASTER)).unwrap()
        assert applied.applied_by == "tally-1"
        assert applied.applied_at is not None

        again = await workflow.apply(request.id, "board-1", Role.BOARD)

        assert again.error == ErrorCodeDictionary.DEDUCT_010
        assert await _deducted(test_db_session, seeded) == 1.5

    async def test_apply_requires_approval(self, test_db_session, seeded):
        """Test that a pending request cannot be applied"""
        workflow = DeductionWorkflow(test_db_session)
        request = await _open(workflow, seeded)

        result = await workflow.apply(request.id, "tally-1", Role.TALLY_MASTER)

        assert result.error == ErrorCodeDictionary.DEDUCT_009
        assert await _deducted(test_db_session, seeded) == 0.0

    async def test_apply_role_restricted(self, test_db_session, seeded):
        """Test that judges cannot apply deductions"""
        workflow = DeductionWorkflow(test_db_session)
        request = await _open(workflow, seeded)

        result = await workflow.apply(request.id, "judge-1", Role.JUDGE)

        assert result.error == ErrorCodeDictionary.DEDUCT_011


class TestListRequests:
    """Tests for deduction history"""

    async def test_pagination_and_filters(self, test_db_session, seeded):
        """Test paging through requests filtered by status"""
        workflow = DeductionWorkflow(test_db_session)
        for points in (1.0, 2.0, 3.0):
            await _open(workflow, seeded, points=points)
        rejected = await _open(workflow, seeded, points=4.0)
        await workflow.reject(rejected.id, "auditor-1", Role.AUDITOR, "Duplicate")

        page = await workflow.list_requests(status=RequestStatus.PENDING, page=1, limit=2)

        assert len(page["items"]) == 2
        assert page["pagination"] == {
            "page": 1,
            "limit": 2,
            "total": 3,
            "total_pages": 2,
            "has_next": True,
            "has_prev": False,
        }
        rejected_page = await workflow.list_requests(status=RequestStatus.REJECTED)
        assert [item.points for item in rejected_page["items"]] == [4.0]
