"""
Unit tests for the Gemini service wrapper.

The SDK model is replaced by an AsyncMock; no network access.
"""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from google.api_core import exceptions as google_exceptions

from valkompass.ai.gemini_service import EMPTY_REPLY_FALLBACK, GeminiService, classify_error
from valkompass.core.errors import (
    FatalServiceError,
    ResponseValidationError,
    ServiceError,
    TransientServiceError,
)
from valkompass.core.models import Answer


class BlockedResponse:
    """Mimics an SDK response whose candidate was blocked."""

    @property
    def text(self):
        raise ValueError("response.text quick accessor requires a valid Part")


def question_json(start_id, count):
    return json.dumps(
        [
            {
                "id": i,
                "text": f"Påstående {i}",
                "explanation": "Bakgrund",
                "category": "Ekonomi",
                "searchQuery": "sök",
            }
            for i in range(start_id, start_id + count)
        ],
        ensure_ascii=False,
    )


@pytest.fixture
def model():
    mock = MagicMock()
    mock.generate_content_async = AsyncMock()
    return mock


@pytest.fixture
def service(settings, model):
    service = GeminiService(settings=settings)
    for name in (settings.question_model, settings.analysis_model, settings.chat_model):
        service._models[name] = model
    return service


class TestClassifyError:
    """Tests for classify_error."""

    @pytest.mark.parametrize(
        "error",
        [
            google_exceptions.ResourceExhausted("quota"),
            google_exceptions.TooManyRequests("slow down"),
            google_exceptions.ServiceUnavailable("down"),
            google_exceptions.InternalServerError("oops"),
            google_exceptions.DeadlineExceeded("timeout"),
        ],
    )
    def test_transient_google_errors(self, error):
        assert isinstance(classify_error(error), TransientServiceError)

    @pytest.mark.parametrize(
        "error",
        [
            google_exceptions.Unauthenticated("bad key"),
            google_exceptions.PermissionDenied("no access"),
            google_exceptions.InvalidArgument("bad request"),
        ],
    )
    def test_fatal_google_errors(self, error):
        assert isinstance(classify_error(error), FatalServiceError)

    def test_message_markers(self):
        assert isinstance(classify_error(RuntimeError("HTTP 429 Too Many")), TransientServiceError)
        assert isinstance(classify_error(RuntimeError("Rate limit hit")), TransientServiceError)
        assert isinstance(classify_error(RuntimeError("boom")), FatalServiceError)

    def test_service_errors_pass_through(self):
        error = ResponseValidationError("bad shape")

        assert classify_error(error) is error


class TestGeminiService:
    """Tests for GeminiService."""

    def test_unavailable_without_key(self, settings):
        settings.gemini_api_key = None
        service = GeminiService(settings=settings)

        assert not service.is_available
        with pytest.raises(FatalServiceError):
            service._get_model(settings.question_model)

    @pytest.mark.asyncio
    async def test_generate_questions(self, service, model):
        model.generate_content_async.return_value = SimpleNamespace(text=question_json(6, 3))

        questions = await service.generate_questions(3, 6, [])

        assert [q.id for q in questions] == [6, 7, 8]
        assert questions[0].search_query == "sök"

    @pytest.mark.asyncio
    async def test_generate_questions_sends_exclusions(self, service, model, sample_questions):
        model.generate_content_async.return_value = SimpleNamespace(text=question_json(6, 1))

        await service.generate_questions(1, 6, sample_questions)

        prompt = model.generate_content_async.call_args.args[0]
        assert "Påstående nummer 3" in prompt
        assert "Börja numreringen av ID på 6" in prompt

    @pytest.mark.asyncio
    async def test_transient_failure_retried(self, service, model):
        model.generate_content_async.side_effect = [
            google_exceptions.ResourceExhausted("quota"),
            SimpleNamespace(text=question_json(1, 5)),
        ]

        questions = await service.generate_questions(5, 1)

        assert len(questions) == 5
        assert model.generate_content_async.call_count == 2

    @pytest.mark.asyncio
    async def test_fatal_failure_not_retried(self, service, model):
        model.generate_content_async.side_effect = google_exceptions.Unauthenticated("bad key")

        with pytest.raises(FatalServiceError):
            await service.generate_questions(5, 1)

        assert model.generate_content_async.call_count == 1

    @pytest.mark.asyncio
    async def test_malformed_json_is_validation_error(self, service, model):
        model.generate_content_async.return_value = SimpleNamespace(text="[{\"id\": 1}]")

        with pytest.raises(ResponseValidationError):
            await service.generate_questions(5, 1)

        assert model.generate_content_async.call_count == 1

    @pytest.mark.asyncio
    async def test_analyze(self, service, model, analysis_payload, sample_questions):
        model.generate_content_async.return_value = SimpleNamespace(
            text=f"```json\n{json.dumps(analysis_payload)}\n```"
        )

        result = await service.analyze(sample_questions, [Answer(1, 5, is_important=True)])

        assert result.ranked_matches()[0].party == "c"
        prompt = model.generate_content_async.call_args.args[0]
        assert "[EXTRA VIKTIG]" in prompt

    @pytest.mark.asyncio
    async def test_chat_reply(self, service, model, analysis_result):
        model.generate_content_async.return_value = SimpleNamespace(text="  Men elpriset då?  ")

        reply = await service.chat([("model", "Motargument"), ("user", "Nej")], analysis_result.devil_advocate)

        assert reply == "Men elpriset då?"

    @pytest.mark.asyncio
    async def test_chat_empty_reply_falls_back(self, service, model, analysis_result):
        model.generate_content_async.return_value = BlockedResponse()

        reply = await service.chat([("user", "Hej")], analysis_result.devil_advocate)

        assert reply == EMPTY_REPLY_FALLBACK

    @pytest.mark.asyncio
    async def test_chat_failure_propagates_without_retry(self, service, model, analysis_result):
        model.generate_content_async.side_effect = google_exceptions.ServiceUnavailable("down")

        with pytest.raises(ServiceError):
            await service.chat([("user", "Hej")], analysis_result.devil_advocate)

        assert model.generate_content_async.call_count == 1
