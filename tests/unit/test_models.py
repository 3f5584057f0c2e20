"""
Unit tests for the session data model.
"""

import json
from datetime import datetime, timedelta

import pytest

from valkompass.ai.schemas import parse_analysis
from valkompass.core.analysis import AnalysisResult, party_name
from valkompass.core.models import (
    NO_OPINION,
    Answer,
    Question,
    SessionSnapshot,
    SessionState,
    index_answers,
    upsert_answer,
)


class TestQuestion:
    """Tests for the Question dataclass."""

    def test_to_dict_uses_camel_case(self):
        question = Question(1, "Text", "Förklaring", "Ekonomi", search_query="sök")

        data = question.to_dict()

        assert data["searchQuery"] == "sök"
        assert "search_query" not in data

    def test_from_dict_defaults_search_query(self):
        question = Question.from_dict(
            {"id": "7", "text": "T", "explanation": "E", "category": "Miljö"}
        )

        assert question.id == 7
        assert question.search_query == ""

    def test_is_immutable(self):
        question = Question(1, "Text", "Förklaring", "Ekonomi")

        with pytest.raises(AttributeError):
            question.text = "Annan text"


class TestAnswer:
    """Tests for the Answer dataclass."""

    @pytest.mark.parametrize("value", [-1, 6])
    def test_rejects_out_of_range_value(self, value):
        with pytest.raises(ValueError):
            Answer(question_id=1, value=value)

    def test_zero_is_no_opinion(self):
        answer = Answer(question_id=1, value=NO_OPINION)

        assert answer.value == 0

    def test_to_dict_omits_missing_comment(self):
        data = Answer(question_id=3, value=4, is_important=True).to_dict()

        assert data == {"questionId": 3, "value": 4, "isImportant": True}

    def test_has_comment_ignores_whitespace(self):
        assert not Answer(question_id=1, value=2, comment="   ").has_comment
        assert Answer(question_id=1, value=2, comment="För dyrt").has_comment


class TestAnswerSet:
    """Tests for answer set helpers."""

    def test_upsert_replaces_existing_answer(self):
        answers = {}
        upsert_answer(answers, Answer(question_id=1, value=2))
        upsert_answer(answers, Answer(question_id=1, value=5))

        assert len(answers) == 1
        assert answers[1].value == 5

    def test_index_answers_last_one_wins(self):
        indexed = index_answers([Answer(1, 1), Answer(2, 3), Answer(1, 4)])

        assert set(indexed) == {1, 2}
        assert indexed[1].value == 4


class TestSessionSnapshot:
    """Tests for SessionSnapshot."""

    def test_is_expired_at_ttl_boundary(self):
        saved = datetime(2026, 3, 1, 12, 0, 0)
        snapshot = SessionSnapshot(state=SessionState.QUIZ, last_updated=saved.isoformat())

        assert not snapshot.is_expired(24, now=saved + timedelta(hours=23, minutes=59))
        assert snapshot.is_expired(24, now=saved + timedelta(hours=24))

    def test_from_dict_rejects_unknown_state(self):
        with pytest.raises(ValueError):
            SessionSnapshot.from_dict(
                {"state": "PAUSED", "questions": [], "answers": [], "result": None,
                 "lastUpdated": datetime.now().isoformat()}
            )

    def test_from_dict_rejects_bad_timestamp(self):
        with pytest.raises(ValueError):
            SessionSnapshot.from_dict(
                {"state": "QUIZ", "questions": [], "answers": [], "result": None,
                 "lastUpdated": "igår"}
            )

    def test_to_dict_and_back(self, sample_questions, analysis_result):
        snapshot = SessionSnapshot(
            state=SessionState.RESULTS,
            questions=sample_questions,
            answers=index_answers([Answer(1, 5, comment="Viktigt"), Answer(2, 0)]),
            result=analysis_result,
        )

        restored = SessionSnapshot.from_dict(snapshot.to_dict())

        assert restored.state == SessionState.RESULTS
        assert restored.questions == sample_questions
        assert restored.answers[1].comment == "Viktigt"
        assert restored.result == analysis_result


class TestAnalysisResult:
    """Tests for the analysis payload model."""

    def test_from_camel_case_payload(self, analysis_payload):
        result = AnalysisResult.from_dict(analysis_payload)

        assert result.devil_advocate.user_stance == "Helt emot"
        assert result.party_positions[0].party_id == "c"

    def test_to_dict_restores_camel_case(self, analysis_payload):
        data = AnalysisResult.from_dict(analysis_payload).to_dict()

        assert "devilAdvocate" in data
        assert data["coalitions"][0]["totalMatch"] == 73

    def test_ranked_matches_best_first(self, analysis_result):
        assert [m.party for m in analysis_result.ranked_matches()] == ["c", "s"]

    def test_coordinates_passed_through_unclamped(self, analysis_payload):
        analysis_payload["coordinates"] = {"x": 104.0, "y": -3.0}

        result = parse_analysis(json.dumps(analysis_payload))

        assert result.coordinates.x == 104.0
        assert result.coordinates.y == -3.0

    def test_party_name(self):
        assert party_name("MP") == "Miljöpartiet"
        assert party_name("pirat") == "pirat"
