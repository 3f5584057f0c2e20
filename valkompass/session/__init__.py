"""
Session controller for the valkompass questionnaire.

Components:
- orchestrator: top-level state machine (INTRO -> QUIZ -> RESULTS)
- pipeline: batched, deduplicating question acquisition
- capture: per-question answering with grace-period auto-advance
- store: snapshot persistence with a 24h TTL
- debate: devil's advocate chat on the results screen
"""

from .capture import AnswerCapture, AnswerPhase, QuizProgress
from .debate import DebateSession
from .orchestrator import SessionOrchestrator
from .pipeline import AcquisitionPipeline, BatchPlan, plan_batches
from .scheduler import AsyncioScheduler, Scheduler
from .store import SessionStore
from .tokens import SessionTokens

__all__ = [
    "AcquisitionPipeline",
    "AnswerCapture",
    "AnswerPhase",
    "AsyncioScheduler",
    "BatchPlan",
    "DebateSession",
    "QuizProgress",
    "Scheduler",
    "SessionOrchestrator",
    "SessionStore",
    "SessionTokens",
    "plan_batches",
]
