"""
Session data model: questions, answers and the persisted snapshot.

Dictionaries produced by to_dict() use the camelCase field names of the
stored snapshot format; attributes are snake_case.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable

from valkompass.core.analysis import AnalysisResult

NO_OPINION = 0
MIN_VALUE = 0
MAX_VALUE = 5


class SessionState(str, Enum):
    """Top-level states of a questionnaire session."""

    INTRO = "INTRO"
    LOADING_QUESTIONS = "LOADING_QUESTIONS"
    QUIZ = "QUIZ"
    ANALYZING = "ANALYZING"
    RESULTS = "RESULTS"
    ERROR = "ERROR"


@dataclass(frozen=True)
class Question:
    """A single generated statement. Immutable once created."""

    id: int
    text: str
    explanation: str
    category: str
    search_query: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "explanation": self.explanation,
            "category": self.category,
            "searchQuery": self.search_query,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Question":
        return cls(
            id=int(data["id"]),
            text=data["text"],
            explanation=data["explanation"],
            category=data["category"],
            search_query=data.get("searchQuery", ""),
        )


@dataclass(frozen=True)
class Answer:
    """The user's answer to one question. 0 means "no opinion"."""

    question_id: int
    value: int
    is_important: bool = False
    comment: str | None = None

    def __post_init__(self) -> None:
        if not MIN_VALUE <= self.value <= MAX_VALUE:
            raise ValueError(f"Answer value must be in [{MIN_VALUE}, {MAX_VALUE}], got {self.value}")

    @property
    def has_comment(self) -> bool:
        return bool(self.comment and self.comment.strip())

    def to_dict(self) -> dict:
        data = {
            "questionId": self.question_id,
            "value": self.value,
            "isImportant": self.is_important,
        }
        if self.comment is not None:
            data["comment"] = self.comment
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Answer":
        return cls(
            question_id=int(data["questionId"]),
            value=int(data["value"]),
            is_important=bool(data.get("isImportant", False)),
            comment=data.get("comment"),
        )


def upsert_answer(answers: dict[int, Answer], answer: Answer) -> dict[int, Answer]:
    """Store an answer, replacing any earlier answer to the same question."""
    answers[answer.question_id] = answer
    return answers


def index_answers(answers: Iterable[Answer]) -> dict[int, Answer]:
    """Key answers by question id; later entries win."""
    indexed: dict[int, Answer] = {}
    for answer in answers:
        upsert_answer(indexed, answer)
    return indexed


@dataclass
class SessionSnapshot:
    """Serializable session state, one per stored session."""

    state: SessionState
    questions: list[Question] = field(default_factory=list)
    answers: dict[int, Answer] = field(default_factory=dict)
    result: AnalysisResult | None = None
    last_updated: str = field(default_factory=lambda: datetime.now().isoformat())

    def is_expired(self, ttl_hours: int, now: datetime | None = None) -> bool:
        """Check if the snapshot is older than the TTL."""
        last_updated = datetime.fromisoformat(self.last_updated)
        now = now or datetime.now()
        return now - last_updated >= timedelta(hours=ttl_hours)

    def answered_ids(self) -> set[int]:
        return set(self.answers)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "state": self.state.value,
            "questions": [q.to_dict() for q in self.questions],
            "answers": [a.to_dict() for a in self.answers.values()],
            "result": self.result.to_dict() if self.result is not None else None,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SessionSnapshot":
        """Create from dictionary. Raises on any malformed field."""
        result = data.get("result")
        if datetime.fromisoformat(data["lastUpdated"]).tzinfo is not None:
            raise ValueError(f"lastUpdated must be local time: {data['lastUpdated']!r}")
        return cls(
            state=SessionState(data["state"]),
            questions=[Question.from_dict(q) for q in data["questions"]],
            answers=index_answers(Answer.from_dict(a) for a in data["answers"]),
            result=AnalysisResult.from_dict(result) if result is not None else None,
            last_updated=data["lastUpdated"],
        )
