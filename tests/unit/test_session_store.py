"""
Unit tests for snapshot persistence.
"""

import json
from datetime import datetime, timedelta

import pytest

from valkompass.core.errors import StorageError
from valkompass.core.models import Answer, SessionSnapshot, SessionState, index_answers
from valkompass.session.store import SessionStore


@pytest.fixture
def snapshot(sample_questions, analysis_result):
    return SessionSnapshot(
        state=SessionState.QUIZ,
        questions=sample_questions,
        answers=index_answers([Answer(1, 4), Answer(2, 0, is_important=True, comment="Osäker")]),
        result=None,
        last_updated=datetime(2026, 3, 1, 12, 0, 0).isoformat(),
    )


def store_at(tmp_path, now):
    return SessionStore(session_dir=tmp_path, clock=lambda: now)


class TestSessionStore:
    """Tests for SessionStore."""

    def test_load_missing_returns_none(self, tmp_path):
        assert SessionStore(session_dir=tmp_path).load() is None

    def test_save_then_load(self, tmp_path, snapshot):
        store = store_at(tmp_path, datetime(2026, 3, 1, 13, 0, 0))
        store.save(snapshot)

        loaded = store.load()

        assert loaded is not None
        assert loaded.state == SessionState.QUIZ
        assert loaded.answers[2].comment == "Osäker"

    def test_file_named_after_key(self, tmp_path):
        store = SessionStore(session_dir=tmp_path, key="valkompass_session_v3")

        assert store.path == tmp_path / "valkompass_session_v3.json"

    def test_resave_is_byte_identical(self, tmp_path, snapshot, analysis_result):
        snapshot.result = analysis_result
        store = store_at(tmp_path, datetime(2026, 3, 1, 13, 0, 0))
        store.save(snapshot)
        first = store.path.read_bytes()

        store.save(store.load())

        assert store.path.read_bytes() == first

    def test_expired_snapshot_is_absent_and_removed(self, tmp_path, snapshot):
        store = store_at(tmp_path, datetime(2026, 3, 1, 12, 0, 0) + timedelta(hours=25))
        store.save(snapshot)

        assert store.load() is None
        assert not store.path.exists()

    def test_snapshot_within_ttl_is_kept(self, tmp_path, snapshot):
        store = store_at(tmp_path, datetime(2026, 3, 1, 12, 0, 0) + timedelta(hours=23))
        store.save(snapshot)

        assert store.load() is not None

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            json.dumps({"state": "QUIZ"}),
            json.dumps({"state": "NOPE", "questions": [], "answers": [], "result": None,
                        "lastUpdated": "2026-03-01T12:00:00"}),
            json.dumps([1, 2, 3]),
            json.dumps({"state": "QUIZ", "questions": [], "answers": [], "result": None,
                        "lastUpdated": "2026-03-01T10:00:00+00:00"}),
        ],
    )
    def test_corrupt_snapshot_is_absent(self, tmp_path, content):
        store = SessionStore(session_dir=tmp_path)
        store.path.write_text(content, encoding="utf-8")

        assert store.load() is None
        assert not store.path.exists()

    def test_clear(self, tmp_path, snapshot):
        store = SessionStore(session_dir=tmp_path)
        store.save(snapshot)

        assert store.clear() is True
        assert store.clear() is False

    def test_save_failure_raises_storage_error(self, tmp_path, snapshot):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("x", encoding="utf-8")
        store = SessionStore(session_dir=blocker)

        with pytest.raises(StorageError):
            store.save(snapshot)

    def test_non_ascii_kept_readable(self, tmp_path, snapshot):
        store = SessionStore(session_dir=tmp_path)
        store.save(snapshot)

        assert "Påstående" in store.path.read_text(encoding="utf-8")
