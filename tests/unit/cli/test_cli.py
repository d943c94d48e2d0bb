"""Unit tests for the judging CLI"""
from click.testing import CliRunner

from judging.cli.main import cli
from judging.core.auth import principal_from_token
from judging.db.enums import Role


class TestTokenCommand:
    """Tests for the token command"""

    def test_issues_token_for_role(self):
        """Test that the issued token carries the user and role"""
        result = CliRunner().invoke(cli, ["token", "judge-1", "judge"])

        assert result.exit_code == 0, result.output
        principal = principal_from_token(result.output.strip())
        assert principal.user_id == "judge-1"
        assert principal.role == Role.JUDGE

    def test_unknown_role_rejected(self):
        """Test that click refuses roles outside the enum"""
        result = CliRunner().invoke(cli, ["token", "someone", "superuser"])

        assert result.exit_code != 0
        assert "superuser" in result.output
