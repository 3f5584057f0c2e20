"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests:
a manually advanced scheduler for grace timers, a scriptable fake AI
service, sample questions and a sample analysis payload.
"""
import asyncio
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import Settings  # noqa: E402
from valkompass.core.analysis import AnalysisResult  # noqa: E402
from valkompass.core.models import Question  # noqa: E402
from valkompass.session.store import SessionStore  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (whole session flows)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


# ========================================
# Test doubles
# ========================================

CATEGORIES = ["Ekonomi", "Migration", "Miljö", "Lag & Ordning", "Försvar"]


def make_question(question_id: int) -> Question:
    return Question(
        id=question_id,
        text=f"Påstående nummer {question_id}",
        explanation=f"Bakgrund till påstående {question_id}",
        category=CATEGORIES[question_id % len(CATEGORIES)],
        search_query=f"påstående {question_id}",
    )


def make_questions(start_id: int, count: int) -> list[Question]:
    return [make_question(i) for i in range(start_id, start_id + count)]


class ManualHandle:
    def __init__(self, due: float, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False


class ManualScheduler:
    """Scheduler with a virtual clock; timers fire only inside advance()."""

    def __init__(self):
        self.now = 0.0
        self.handles: list[ManualHandle] = []

    def schedule(self, delay, callback):
        handle = ManualHandle(self.now + delay, callback)
        self.handles.append(handle)
        return handle

    def cancel(self, handle):
        handle.cancelled = True

    @property
    def pending(self) -> list[ManualHandle]:
        return [h for h in self.handles if not (h.cancelled or h.fired)]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = sorted((h for h in self.pending if h.due <= target), key=lambda h: h.due)
            if not due:
                break
            handle = due[0]
            self.now = handle.due
            handle.fired = True
            handle.callback()
        self.now = target


class FakeAIService:
    """
    Scriptable AIService.

    - failures[start_id]: exception raised by that question batch
    - overrides[start_id]: questions returned instead of the generated ones
    - gates[start_id]: asyncio.Event the batch waits on before returning
    """

    def __init__(self, analysis: AnalysisResult | None = None):
        self.question_calls: list[tuple[int, int, list[int]]] = []
        self.analyze_calls: list[tuple[list[int], list]] = []
        self.chat_calls: list[list[tuple[str, str]]] = []
        self.failures: dict[int, Exception] = {}
        self.overrides: dict[int, list[Question]] = {}
        self.gates: dict[int, asyncio.Event] = {}
        self.analysis = analysis
        self.analysis_error: Exception | None = None
        self.analysis_gate: asyncio.Event | None = None
        self.chat_replies: list = []

    async def generate_questions(self, count, start_id, exclude=()):
        self.question_calls.append((count, start_id, [q.id for q in exclude]))
        gate = self.gates.get(start_id)
        if gate is not None:
            await gate.wait()
        if start_id in self.failures:
            raise self.failures[start_id]
        if start_id in self.overrides:
            return list(self.overrides[start_id])
        return make_questions(start_id, count)

    async def analyze(self, questions, answers):
        self.analyze_calls.append(([q.id for q in questions], list(answers)))
        if self.analysis_gate is not None:
            await self.analysis_gate.wait()
        if self.analysis_error is not None:
            raise self.analysis_error
        return self.analysis

    async def chat(self, history, context):
        self.chat_calls.append(list(history))
        reply = self.chat_replies.pop(0) if self.chat_replies else "Men har du tänkt på kostnaden?"
        if isinstance(reply, Exception):
            raise reply
        return reply


# ========================================
# Fixtures
# ========================================


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def analysis_payload():
    """Provide an analysis result as returned on the wire (camelCase)."""
    return {
        "summary": "Du är en pragmatisk mittenväljare med gröna inslag.",
        "matches": [
            {
                "party": "s",
                "score": 64,
                "reason": "Ni delar synen på välfärden.",
                "strongestAgreements": ["Vinstförbud"],
                "strongestDisagreements": ["Kärnkraft"],
            },
            {
                "party": "c",
                "score": 82,
                "reason": "Ni delar synen på landsbygden och klimatet.",
                "strongestAgreements": ["Vindkraft", "Företagande", "Landsbygd"],
                "strongestDisagreements": ["Skatter"],
            },
        ],
        "categoryScores": [
            {"category": "Ekonomi", "score": 55, "description": "Marknadsvänlig med sociala hänsyn."},
        ],
        "coordinates": {"x": 12.5, "y": -30.0},
        "partyPositions": [
            {"partyId": "c", "x": 20.0, "y": -20.0},
            {"partyId": "s", "x": -30.0, "y": -5.0},
        ],
        "coalitions": [
            {"parties": ["s", "c"], "totalMatch": 73, "description": "En mittenregering."},
        ],
        "devilAdvocate": {
            "questionText": "Sverige ska bygga nya kärnkraftverk oavsett kostnad.",
            "userStance": "Helt emot",
            "counterArgument": "Utan planerbar kraft blir elpriset i södra Sverige ännu mer volatilt.",
        },
        "historicalContext": {
            "topic": "Kärnkraft",
            "comparison": "Centerpartiet drev avveckling på 1990-talet men har i dag bytt fot.",
        },
    }


@pytest.fixture
def analysis_result(analysis_payload):
    return AnalysisResult.from_dict(analysis_payload)


@pytest.fixture
def sample_questions():
    """Provide five sample questions with ids 1..5."""
    return make_questions(1, 5)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def fake_service(analysis_result):
    return FakeAIService(analysis=analysis_result)


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from .env, with the snapshot in a temp directory."""
    return Settings(
        _env_file=None,
        gemini_api_key="test-key",
        session_dir=tmp_path,
        retry_base_delay_seconds=0.0,
    )


@pytest.fixture
def store(tmp_path):
    return SessionStore(session_dir=tmp_path)
