"""Integration tests for judge uncertification and reset API routes"""
import pytest

from judging.db.enums import Role

pytestmark = pytest.mark.integration

SIGNERS = [
    ("admin-1", Role.ADMIN),
    ("organizer-1", Role.ORGANIZER),
    ("tally-1", Role.TALLY_MASTER),
    ("auditor-1", Role.AUDITOR),
    ("board-1", Role.BOARD),
]


async def _request(client, seeded, auth_headers):
    response = await client.post(
        "/api/v1/judge-uncertification/request",
        json={
            "judge_id": str(seeded.judge_1_id),
            "category_id": str(seeded.category_id),
            "reason": "Scored the wrong sheet",
        },
        headers=auth_headers("judge-1", Role.JUDGE),
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]["id"]


class TestUncertificationRoutes:
    """Tests for the uncertification lifecycle over HTTP"""

    async def test_sign_and_execute(self, client, seeded, auth_headers):
        """Test that execution waits for every default signer"""
        request_id = await _request(client, seeded, auth_headers)

        early = await client.post(
            f"/api/v1/judge-uncertification/{request_id}/execute",
            headers=auth_headers("board-1", Role.BOARD),
        )
        assert early.status_code == 409
        assert early.json()["error"]["code"] == "UNCERT_008"

        for user_id, role in SIGNERS:
            signed = await client.post(
                f"/api/v1/judge-uncertification/{request_id}/approve",
                headers=auth_headers(user_id, role),
            )
            assert signed.status_code == 200, signed.text
        assert signed.json()["data"]["all_signed"] is True

        executed = await client.post(
            f"/api/v1/judge-uncertification/{request_id}/execute",
            headers=auth_headers("board-1", Role.BOARD),
        )
        assert executed.status_code == 200
        data = executed.json()["data"]
        assert data["request"]["status"] == "APPROVED"
        assert data["scores_removed"] == 2

    async def test_judge_cannot_sign(self, client, seeded, auth_headers):
        """Test that judges are not co-signers"""
        request_id = await _request(client, seeded, auth_headers)

        response = await client.post(
            f"/api/v1/judge-uncertification/{request_id}/approve",
            headers=auth_headers("judge-2", Role.JUDGE),
        )

        assert response.status_code == 403

    async def test_get_shows_missing_roles(self, client, seeded, auth_headers):
        """Test the request view after one signature"""
        request_id = await _request(client, seeded, auth_headers)
        await client.post(
            f"/api/v1/judge-uncertification/{request_id}/approve",
            headers=auth_headers("auditor-1", Role.AUDITOR),
        )

        response = await client.get(
            f"/api/v1/judge-uncertification/{request_id}",
            headers=auth_headers("board-1", Role.BOARD),
        )

        data = response.json()["data"]
        assert data["signed_roles"] == ["AUDITOR"]
        assert "BOARD" in data["missing_roles"]
        assert data["signatures"][0]["signer_user_id"] == "auditor-1"

    async def test_reject(self, client, seeded, auth_headers):
        """Test rejecting a pending request"""
        request_id = await _request(client, seeded, auth_headers)

        response = await client.post(
            f"/api/v1/judge-uncertification/{request_id}/reject",
            json={"reason": "Scores verified"},
            headers=auth_headers("organizer-1", Role.ORGANIZER),
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "REJECTED"


class TestResetRoute:
    """Tests for bulk certification reset over HTTP"""

    async def test_reset_category(self, client, seeded, auth_headers, certify_below):
        """Test resetting a category's certifications"""
        await certify_below()

        response = await client.post(
            "/api/v1/bulk-certification-reset",
            json={"category_id": str(seeded.category_id)},
            headers=auth_headers("board-1", Role.BOARD),
        )

        assert response.status_code == 200
        assert response.json()["data"]["reset_count"] == 8

    async def test_two_targets_is_422(self, client, seeded, auth_headers):
        """Test that exactly one target is accepted"""
        response = await client.post(
            "/api/v1/bulk-certification-reset",
            json={"category_id": str(seeded.category_id), "contest_id": str(seeded.contest_id)},
            headers=auth_headers("admin-1", Role.ADMIN),
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "RESET_002"

    async def test_auditor_forbidden(self, client, seeded, auth_headers):
        """Test that auditors cannot reset"""
        response = await client.post(
            "/api/v1/bulk-certification-reset",
            json={"reset_all": True},
            headers=auth_headers("auditor-1", Role.AUDITOR),
        )

        assert response.status_code == 403
