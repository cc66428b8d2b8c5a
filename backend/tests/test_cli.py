"""
CLI tests for the permission inspection commands.
"""

from app.permissions import describe_role


class TestPermsShow:
    def test_scoped_role_prints_its_table(self, app):
        result = app.test_cli_runner().invoke(args=["perms", "show", "CLIENT"])

        assert result.exit_code == 0
        assert "boxes" in result.output
        assert "if is-self" in result.output
        assert f"{len(describe_role('CLIENT'))} rules" in result.output

    def test_wildcard_role(self, app):
        result = app.test_cli_runner().invoke(args=["perms", "show", "SYSTEM"])

        assert result.exit_code == 0
        assert "full access" in result.output

    def test_unknown_role_is_rejected(self, app):
        result = app.test_cli_runner().invoke(args=["perms", "show", "GHOST"])

        assert result.exit_code != 0
