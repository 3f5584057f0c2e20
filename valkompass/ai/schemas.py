"""Parsing of raw Gemini responses into session types."""

from __future__ import annotations

import json
import re

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from valkompass.core.analysis import AnalysisResult
from valkompass.core.errors import ResponseValidationError
from valkompass.core.models import Question

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class QuestionPayload(BaseModel):
    id: int
    text: str = Field(..., min_length=1)
    explanation: str
    category: str
    search_query: str = Field(default="", alias="searchQuery")

    def to_question(self) -> Question:
        return Question(
            id=self.id,
            text=self.text.strip(),
            explanation=self.explanation.strip(),
            category=self.category.strip(),
            search_query=self.search_query.strip(),
        )


_QUESTION_LIST = TypeAdapter(list[QuestionPayload])


def _load_json(text: str | None):
    if not text or not text.strip():
        raise ResponseValidationError("No data returned from AI")
    cleaned = text.strip()
    fence = _FENCE_PATTERN.match(cleaned)
    if fence:
        cleaned = fence.group(1)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ResponseValidationError(f"Response is not valid JSON: {e}") from e


def parse_questions(text: str | None) -> list[Question]:
    """Parse a JSON array of questions."""
    data = _load_json(text)
    try:
        payloads = _QUESTION_LIST.validate_python(data)
    except ValidationError as e:
        raise ResponseValidationError(f"Malformed question batch: {e.error_count()} errors") from e
    return [p.to_question() for p in payloads]


def parse_analysis(text: str | None) -> AnalysisResult:
    """Parse the analysis JSON object."""
    data = _load_json(text)
    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as e:
        raise ResponseValidationError(f"Malformed analysis: {e.error_count()} errors") from e
