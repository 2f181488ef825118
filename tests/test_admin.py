"""Tests for admin bootstrap: first-admin setup and the command-line grant."""

import pytest

from glowify import admin as admin_cli
from glowify.api.auth import is_admin, make_admin, setup_first_admin
from glowify.core.errors import ConflictError
from glowify.data import database


def _is_admin(session, user_id):
    result = is_admin(session, user_id)
    session.commit()
    return result


class TestSetupFirstAdmin:
    def test_first_caller_becomes_admin(self, session):
        setup_first_admin(session, "owner")
        assert _is_admin(session, "owner") is True

    def test_closed_once_an_admin_exists(self, session):
        setup_first_admin(session, "owner")
        with pytest.raises(ConflictError):
            setup_first_admin(session, "intruder")
        assert _is_admin(session, "intruder") is False

    def test_closed_when_admin_granted_elsewhere(self, session):
        make_admin(session, "ops")
        with pytest.raises(ConflictError):
            setup_first_admin(session, "owner")


class TestAdminCommand:
    @pytest.fixture(autouse=True)
    def _restore_module_engine(self, monkeypatch):
        monkeypatch.setattr(database, "engine", database.engine)
        monkeypatch.setattr(database, "SessionLocal", database.SessionLocal)

    def test_grant_then_check(self, tmp_path, capsys):
        url = f"sqlite:///{tmp_path / 'cli.db'}"

        assert admin_cli.main(["--database-url", url, "check", "owner"]) == 1
        assert admin_cli.main(["--database-url", url, "grant", "owner"]) == 0
        assert admin_cli.main(["--database-url", url, "check", "owner"]) == 0

        out = capsys.readouterr().out
        assert "owner is now an admin" in out
        assert "owner: admin" in out
        database.engine.dispose()
