"""
Gemini client for the valkompass.

Wraps the three AI calls the session controller depends on:
- generate_questions: a batch of statements, steered away from earlier ones
- analyze: party matching and profile for a finished questionnaire
- chat: one counter-argument reply

Question generation and analysis go through retry_async; chat is a single
attempt and lets the caller fall back softly. Every failure is mapped onto
the ServiceError taxonomy before it leaves this module.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence

from google.api_core import exceptions as google_exceptions
from loguru import logger

from config import Settings, get_settings
from valkompass.ai.prompts import (
    build_analysis_prompt,
    build_chat_prompt,
    build_question_prompt,
)
from valkompass.ai.retry import retry_async
from valkompass.ai.schemas import parse_analysis, parse_questions
from valkompass.core.analysis import AnalysisResult, DevilAdvocate
from valkompass.core.errors import (
    FatalServiceError,
    ResponseValidationError,
    ServiceError,
    TransientServiceError,
)
from valkompass.core.models import Answer, Question

EMPTY_REPLY_FALLBACK = "Jag måste fundera lite på det där..."

TRANSIENT_GOOGLE_ERRORS = (
    google_exceptions.ResourceExhausted,
    google_exceptions.TooManyRequests,
    google_exceptions.ServiceUnavailable,
    google_exceptions.InternalServerError,
    google_exceptions.DeadlineExceeded,
)

_TRANSIENT_MARKERS = ("429", "503", "quota", "rate limit")


class AIService(Protocol):
    """The calls the session controller needs from the AI service."""

    async def generate_questions(
        self, count: int, start_id: int, exclude: Sequence[Question]
    ) -> list[Question]: ...

    async def analyze(
        self, questions: Sequence[Question], answers: Sequence[Answer]
    ) -> AnalysisResult: ...

    async def chat(self, history: Sequence[tuple[str, str]], context: DevilAdvocate) -> str: ...


def classify_error(error: Exception) -> ServiceError:
    """Map an SDK exception onto the service error taxonomy."""
    if isinstance(error, ServiceError):
        return error
    if isinstance(error, TRANSIENT_GOOGLE_ERRORS):
        return TransientServiceError(str(error))
    if isinstance(error, google_exceptions.GoogleAPIError):
        # Unauthenticated, PermissionDenied, InvalidArgument, NotFound, ...
        return FatalServiceError(str(error))

    message = str(error).lower()
    if any(marker in message for marker in _TRANSIENT_MARKERS):
        return TransientServiceError(str(error))
    return FatalServiceError(str(error))


class GeminiService:
    """Gemini implementation of AIService."""

    def __init__(
        self,
        api_key: str | None = None,
        settings: Settings | None = None,
    ):
        """
        Initialize the service.

        Args:
            api_key: Gemini API key (uses settings if not provided)
            settings: Settings instance (uses cached settings if not provided)
        """
        self.settings = settings or get_settings()
        self.api_key = api_key or self.settings.gemini_api_key
        self._models: dict[str, Any] = {}
        self._configured = False

    @property
    def is_available(self) -> bool:
        return bool(self.api_key)

    def _get_model(self, model_name: str) -> Any:
        if not self.is_available:
            raise FatalServiceError("Gemini API key is missing")

        if model_name not in self._models:
            import google.generativeai as genai

            if not self._configured:
                genai.configure(api_key=self.api_key)
                self._configured = True
            self._models[model_name] = genai.GenerativeModel(model_name=model_name)
        return self._models[model_name]

    async def _generate(self, model_name: str, prompt: str, **generation_config: Any) -> str:
        """Single generate_content call, errors classified."""
        model = self._get_model(model_name)
        try:
            response = await model.generate_content_async(
                prompt, generation_config=generation_config
            )
        except Exception as e:
            raise classify_error(e) from e

        try:
            return response.text
        except ValueError as e:
            # Raised by the SDK when the candidate was blocked or empty
            raise ResponseValidationError(f"No usable text in response: {e}") from e

    async def _with_retry(self, operation, label: str):
        return await retry_async(
            operation,
            attempts=self.settings.retry_attempts,
            base_delay=self.settings.retry_base_delay_seconds,
            label=label,
        )

    async def generate_questions(
        self,
        count: int,
        start_id: int,
        exclude: Sequence[Question] = (),
    ) -> list[Question]:
        """Generate `count` questions numbered from `start_id`."""
        prompt = build_question_prompt(count, start_id, exclude)

        async def attempt() -> list[Question]:
            text = await self._generate(
                self.settings.question_model,
                prompt,
                response_mime_type="application/json",
                temperature=self.settings.question_temperature,
            )
            return parse_questions(text)

        questions = await self._with_retry(attempt, f"generate_questions(start={start_id})")
        logger.debug(f"Generated {len(questions)} questions from id {start_id}")
        return questions

    async def analyze(
        self,
        questions: Sequence[Question],
        answers: Sequence[Answer],
    ) -> AnalysisResult:
        """Analyze a finished questionnaire."""
        prompt = build_analysis_prompt(questions, answers)

        async def attempt() -> AnalysisResult:
            text = await self._generate(
                self.settings.analysis_model,
                prompt,
                response_mime_type="application/json",
            )
            return parse_analysis(text)

        return await self._with_retry(attempt, "analyze")

    async def chat(
        self,
        history: Sequence[tuple[str, str]],
        context: DevilAdvocate,
    ) -> str:
        """One counter-argument reply. Not retried; raises ServiceError on failure."""
        prompt = build_chat_prompt(history, context)
        try:
            text = await self._generate(
                self.settings.chat_model,
                prompt,
                temperature=self.settings.chat_temperature,
                max_output_tokens=self.settings.chat_max_output_tokens,
            )
        except ResponseValidationError:
            return EMPTY_REPLY_FALLBACK
        return text.strip() or EMPTY_REPLY_FALLBACK
