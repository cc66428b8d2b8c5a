"""
Commit and retry helper tests.

Verifies:
- A commit that fails is rolled back and raised, never reported as saved
- A route whose commit fails answers 500 and leaves nothing behind
- run_with_retry replays OperationalError and gives up after its attempts
"""

import pytest
from sqlalchemy.exc import OperationalError

from app.errors import BadRequestError
from app.extensions import db
from app.models import Box
from app.services import box_service
from app.services import concurrency
from app.services.concurrency import commit_session, run_with_retry


def _database_locked():
    return OperationalError("COMMIT", {}, Exception("database is locked"))


@pytest.fixture
def no_sleep(monkeypatch):
    monkeypatch.setattr(concurrency.time, "sleep", lambda seconds: None)


# =============================================================================
# COMMIT
# =============================================================================


class TestCommitSession:
    """A failed commit propagates after a rollback."""

    def test_failed_commit_discards_the_box(self, db_session, shipper, as_principal, monkeypatch):
        box = box_service.create_box(as_principal(shipper), label="Lagos run")
        calls = []

        def locked_commit():
            calls.append(1)
            raise _database_locked()

        monkeypatch.setattr(db.session, "commit", locked_commit)
        with pytest.raises(OperationalError):
            commit_session()
        monkeypatch.undo()

        # One attempt only; a second commit would have run on an empty session
        assert len(calls) == 1
        assert db_session.get(Box, box["id"]) is None
        assert db_session.query(Box).count() == 0

    def test_successful_commit(self, db_session, shipper, as_principal):
        box = box_service.create_box(as_principal(shipper), label="Lagos run")
        commit_session()
        db_session.rollback()

        assert db_session.get(Box, box["id"]) is not None

    def test_route_answers_500_when_commit_fails(self, client, db_session, shipper, login, monkeypatch):
        headers = login(shipper)
        real_commit = db.session.commit

        def commit_unless_box_pending():
            # Session bookkeeping commits go through; the box insert does not
            if any(isinstance(obj, Box) for obj in db.session.identity_map.values()):
                raise _database_locked()
            real_commit()

        monkeypatch.setattr(db.session, "commit", commit_unless_box_pending)
        resp = client.post("/api/boxes", json={"label": "A"}, headers=headers)
        monkeypatch.undo()

        assert resp.status_code == 500
        assert resp.json == {"error": "Internal server error"}
        assert db_session.query(Box).count() == 0


# =============================================================================
# RETRY
# =============================================================================


class TestRunWithRetry:
    """Transient database errors replay the whole operation."""

    def test_replays_until_success(self, db_session, no_sleep):
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise _database_locked()
            return "done"

        assert run_with_retry(flaky) == "done"
        assert len(attempts) == 3

    def test_gives_up_after_last_attempt(self, db_session, no_sleep):
        attempts = []

        def always_locked():
            attempts.append(1)
            raise _database_locked()

        with pytest.raises(OperationalError):
            run_with_retry(always_locked, attempts=2)
        assert len(attempts) == 2

    def test_service_errors_are_not_retried(self, db_session, no_sleep):
        attempts = []

        def rejected():
            attempts.append(1)
            raise BadRequestError("nope")

        with pytest.raises(BadRequestError):
            run_with_retry(rejected)
        assert attempts == [1]
