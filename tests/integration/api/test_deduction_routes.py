"""Integration tests for deduction API routes"""
import pytest

from judging.db.enums import Role

pytestmark = pytest.mark.integration

APPROVERS = [
    ("judge-1", Role.JUDGE),
    ("tally-1", Role.TALLY_MASTER),
    ("auditor-1", Role.AUDITOR),
    ("board-1", Role.BOARD),
]


async def _create(client, seeded, auth_headers, points=2.0):
    response = await client.post(
        "/api/v1/deductions/request",
        json={
            "contestant_id": str(seeded.contestant_1_id),
            "category_id": str(seeded.category_id),
            "points": points,
            "reason": "Exceeded time limit",
        },
        headers=auth_headers("organizer-1", Role.ORGANIZER),
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]["id"]


class TestDeductionRoutes:
    """Tests for the deduction lifecycle over HTTP"""

    async def test_full_lifecycle(self, client, seeded, auth_headers):
        """Test request, every approval, then apply"""
        request_id = await _create(client, seeded, auth_headers)

        for user_id, role in APPROVERS:
            response = await client.post(
                f"/api/v1/deductions/{request_id}/approve",
                json={"notes": "ok"},
                headers=auth_headers(user_id, role),
            )
            assert response.status_code == 200, response.text
        assert response.json()["data"]["request"]["status"] == "APPROVED"
        assert response.json()["data"]["approval_status"]["is_fully_approved"] is True

        applied = await client.post(
            f"/api/v1/deductions/{request_id}/apply",
            headers=auth_headers("tally-1", Role.TALLY_MASTER),
        )
        assert applied.status_code == 200
        assert applied.json()["data"]["applied_by"] == "tally-1"

        again = await client.post(
            f"/api/v1/deductions/{request_id}/apply",
            headers=auth_headers("tally-1", Role.TALLY_MASTER),
        )
        assert again.status_code == 409
        assert again.json()["error"]["code"] == "DEDUCT_010"

    async def test_non_positive_points_is_422(self, client, seeded, auth_headers):
        """Test that the workflow's validation maps to 422"""
        response = await client.post(
            "/api/v1/deductions/request",
            json={
                "contestant_id": str(seeded.contestant_1_id),
                "category_id": str(seeded.category_id),
                "points": 0,
                "reason": "Exceeded time limit",
            },
            headers=auth_headers("judge-1", Role.JUDGE),
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "DEDUCT_002"

    async def test_non_finite_points_is_422(self, client, seeded, auth_headers):
        """Test that infinite points never reach the workflow"""
        response = await client.post(
            "/api/v1/deductions/request",
            json={
                "contestant_id": str(seeded.contestant_1_id),
                "category_id": str(seeded.category_id),
                "points": "Infinity",
                "reason": "Exceeded time limit",
            },
            headers=auth_headers("judge-1", Role.JUDGE),
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_malformed_body_is_422(self, client, seeded, auth_headers):
        """Test that request schema errors use the error envelope"""
        response = await client.post(
            "/api/v1/deductions/request",
            json={"points": 1},
            headers=auth_headers("judge-1", Role.JUDGE),
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_reject_and_status(self, client, seeded, auth_headers):
        """Test that a rejection shows up in the approval status"""
        request_id = await _create(client, seeded, auth_headers)

        rejected = await client.post(
            f"/api/v1/deductions/{request_id}/reject",
            json={"notes": "Timer fault"},
            headers=auth_headers("auditor-1", Role.AUDITOR),
        )
        status = await client.get(
            f"/api/v1/deductions/{request_id}/approval-status",
            headers=auth_headers("board-1", Role.BOARD),
        )

        assert rejected.json()["data"]["request"]["status"] == "REJECTED"
        assert rejected.json()["data"]["request"]["rejection_reason"] == "Timer fault"
        assert status.json()["data"]["rejected"] == ["AUDITOR"]

    async def test_auditor_cannot_request(self, client, seeded, auth_headers):
        """Test route-level permission on deduction requests"""
        response = await client.post(
            "/api/v1/deductions/request",
            json={
                "contestant_id": str(seeded.contestant_1_id),
                "category_id": str(seeded.category_id),
                "points": 1,
                "reason": "Late",
            },
            headers=auth_headers("auditor-1", Role.AUDITOR),
        )

        assert response.status_code == 403

    async def test_list_paginates(self, client, seeded, auth_headers):
        """Test the list endpoint's pagination block"""
        for points in (1.0, 2.0, 3.0):
            await _create(client, seeded, auth_headers, points=points)

        response = await client.get(
            "/api/v1/deductions",
            params={"status": "PENDING", "limit": 2},
            headers=auth_headers("tally-1", Role.TALLY_MASTER),
        )

        body = response.json()
        assert len(body["data"]) == 2
        assert body["pagination"]["total"] == 3
        assert body["pagination"]["has_next"] is True
