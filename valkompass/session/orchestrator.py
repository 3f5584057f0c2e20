"""
Session orchestrator: the questionnaire's top-level state machine.

INTRO -> LOADING_QUESTIONS -> QUIZ -> ANALYZING -> RESULTS, with ERROR
reachable from the two loading states. Owns session identity (tokens), the
question list and the result; starts the acquisition pipeline, hands the
finished answers to the analysis call and writes a snapshot after every
committed transition.

Ownership:
- question list: written here only (foreground + merged background batches)
- answer set: written by AnswerCapture while in QUIZ; copied here on completion
- persisted snapshot: written here only
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Callable, Iterable

from loguru import logger

from config import Settings, get_settings
from valkompass.ai.gemini_service import AIService
from valkompass.core.analysis import AnalysisResult
from valkompass.core.errors import ServiceError, SessionStateError, StorageError
from valkompass.core.models import Answer, Question, SessionSnapshot, SessionState, index_answers
from valkompass.session.capture import AnswerCapture, first_unanswered_index
from valkompass.session.debate import DebateSession
from valkompass.session.pipeline import AcquisitionPipeline, dedupe_questions
from valkompass.session.scheduler import AsyncioScheduler, Scheduler
from valkompass.session.store import SessionStore
from valkompass.session.tokens import SessionTokens

QUESTIONS_ERROR_MESSAGE = "Kunde inte generera frågor. Kontrollera din anslutning eller försök igen."
ANALYSIS_ERROR_MESSAGE = "Kunde inte analysera resultaten. Försök igen."

# Nothing worth resuming in INTRO; a stored ERROR would be shown again instead of retried
UNPERSISTED_STATES = frozenset({SessionState.INTRO, SessionState.ERROR})
STARTABLE_STATES = frozenset({SessionState.INTRO, SessionState.ERROR})


def _log_task_failure(task: asyncio.Task) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.opt(exception=task.exception()).error("Analysis task failed")


class SessionOrchestrator:
    """
    Orchestrator for one questionnaire session.

    Rehydrates from the session store on construction: a valid snapshot puts
    the orchestrator straight into the stored state.
    """

    def __init__(
        self,
        service: AIService,
        store: SessionStore,
        scheduler: Scheduler | None = None,
        settings: Settings | None = None,
        confirm: Callable[[], bool] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            service: AI service for questions, analysis and chat
            store: Snapshot persistence
            scheduler: Grace timer scheduler (asyncio call_later if not provided)
            settings: Settings instance (uses cached settings if not provided)
            confirm: Asks the user to confirm a restart
            clock: Source of snapshot timestamps
        """
        settings = settings or get_settings()
        self.target_questions = settings.target_questions
        self.grace_period = settings.grace_period_seconds
        self.phase_size = settings.phase_size

        self._service = service
        self._store = store
        self._scheduler = scheduler or AsyncioScheduler()
        self._confirm = confirm
        self._clock = clock

        self._tokens = SessionTokens()
        self._pipeline = AcquisitionPipeline(
            service,
            self._tokens,
            foreground_size=settings.foreground_batch_size,
            background_size=settings.background_batch_size,
        )

        # State Management
        self.state = SessionState.INTRO
        self.error: str | None = None
        self.capture: AnswerCapture | None = None
        self.on_change: Callable[[], None] | None = None
        self._questions: list[Question] = []
        self._answers: dict[int, Answer] = {}
        self._result: AnalysisResult | None = None
        self._analysis_task: asyncio.Task | None = None
        # Bumped on restart so an in-flight analysis can tell it was superseded
        self._epoch = 0

        snapshot = store.load()
        if snapshot:
            self._restore_from_snapshot(snapshot)

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def questions(self) -> tuple[Question, ...]:
        return tuple(self._questions)

    @property
    def answers(self) -> dict[int, Answer]:
        if self.capture is not None:
            return self.capture.answers
        return dict(self._answers)

    @property
    def result(self) -> AnalysisResult | None:
        return self._result

    @property
    def tokens(self) -> SessionTokens:
        return self._tokens

    @property
    def pipeline(self) -> AcquisitionPipeline:
        return self._pipeline

    @property
    def can_resume(self) -> bool:
        return self.state in STARTABLE_STATES and bool(self._questions)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self.state,
            questions=list(self._questions),
            answers=self.answers,
            result=self._result,
            last_updated=self._clock().isoformat(),
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Begin a new session: fetch the foreground batch and open the quiz."""
        if self.state not in STARTABLE_STATES:
            raise SessionStateError("start", self.state.value)

        # The old token must be stale before any new network call goes out
        token = self._tokens.mint()
        self._close_capture()
        self._questions = []
        self._answers = {}
        self._result = None
        self.error = None
        self._transition(SessionState.LOADING_QUESTIONS)

        try:
            questions = await self._pipeline.acquire(
                token, self.target_questions, self._merge_background_batch
            )
        except ServiceError as e:
            if not self._tokens.is_current(token):
                logger.info(f"Ignoring failure of superseded run {token}: {e}")
                return
            logger.error(f"Foreground question batch failed: {e}")
            self._tokens.invalidate()
            self._fail(QUESTIONS_ERROR_MESSAGE)
            return

        if questions is None:
            return

        self._questions = list(questions)
        logger.info(f"Run {token}: quiz opens with {len(self._questions)} questions")
        self._open_capture(start_index=0)
        self._transition(SessionState.QUIZ)

    async def complete_quiz(self, answers: Iterable[Answer]) -> None:
        """Store the final answers and run the analysis."""
        if self.state != SessionState.QUIZ:
            raise SessionStateError("complete_quiz", self.state.value)

        self._close_capture()
        self._answers = index_answers(answers)
        # The questionnaire is closed; late background batches are dropped
        self._tokens.invalidate()
        epoch = self._epoch
        self._transition(SessionState.ANALYZING)

        try:
            result = await self._service.analyze(self.questions, list(self._answers.values()))
        except ServiceError as e:
            if epoch != self._epoch:
                return
            logger.error(f"Analysis failed: {e}")
            self._fail(ANALYSIS_ERROR_MESSAGE)
            return

        if epoch != self._epoch:
            logger.info("Discarding analysis of a session that was restarted")
            return

        self._result = result
        self._transition(SessionState.RESULTS)

    def restart(self, confirmed: bool | None = None) -> bool:
        """
        Throw the session away and go back to INTRO.

        Destructive, so it needs confirmation: either `confirmed=True` or a
        confirm callback that returns True. Returns whether the restart happened.
        """
        if confirmed is None:
            confirmed = self._confirm() if self._confirm else False
        if not confirmed:
            return False

        self._tokens.invalidate()
        self._epoch += 1
        self._close_capture()
        self._questions = []
        self._answers = {}
        self._result = None
        self.error = None
        self._store.clear()
        self._transition(SessionState.INTRO)
        return True

    def resume(self) -> SessionState:
        """Jump back into an existing session: RESULTS if analyzed, else QUIZ."""
        if self.state not in STARTABLE_STATES:
            raise SessionStateError("resume", self.state.value)

        if self._questions and self._result is not None:
            self.error = None
            self._transition(SessionState.RESULTS)
        elif self._questions:
            self.error = None
            self._open_capture()
            self._transition(SessionState.QUIZ)
        return self.state

    def open_debate(self) -> DebateSession | None:
        """Counter-argument chat seeded from the analysis, if there is one."""
        if self._result is None:
            return None
        return DebateSession(self._service, self._result.devil_advocate)

    async def wait_for_analysis(self) -> None:
        """Wait until an analysis started by auto-advance has finished."""
        if self._analysis_task is not None:
            await self._analysis_task

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _restore_from_snapshot(self, snapshot: SessionSnapshot) -> None:
        """Restores session context from disk."""
        self._questions = list(snapshot.questions)
        self._answers = dict(snapshot.answers)
        self._result = snapshot.result

        state = snapshot.state
        # In-flight work does not survive a restart; repair the transient states
        if state == SessionState.LOADING_QUESTIONS:
            state = SessionState.QUIZ
        elif state == SessionState.ANALYZING:
            state = SessionState.RESULTS if self._result is not None else SessionState.QUIZ
        if state == SessionState.RESULTS and self._result is None:
            state = SessionState.QUIZ
        if state in (SessionState.QUIZ, SessionState.RESULTS) and not self._questions:
            state = SessionState.INTRO
        if state == SessionState.ERROR:
            state = SessionState.INTRO

        if state == SessionState.QUIZ:
            self._open_capture()
        self.state = state
        logger.info(
            f"Restored session in {state.value}: "
            f"{len(self._questions)} questions, {len(self._answers)} answers"
        )

    def _merge_background_batch(self, token: int, batch: list[Question]) -> None:
        if not self._tokens.is_current(token):
            logger.debug(f"Dropping background batch of stale run {token}")
            return

        new_questions = dedupe_questions(batch, self._questions)
        if not new_questions:
            return
        self._questions.extend(new_questions)
        logger.info(f"Run {token}: {len(self._questions)} questions available")

        if self.state not in UNPERSISTED_STATES:
            self._persist()
        self._notify()

    def _open_capture(self, start_index: int | None = None) -> None:
        self._close_capture()
        if start_index is None:
            start_index = first_unanswered_index(self._questions, self._answers)
        self.capture = AnswerCapture(
            questions=self._question_view,
            scheduler=self._scheduler,
            nominal_total=self.target_questions,
            grace_period=self.grace_period,
            phase_size=self.phase_size,
            answers=self._answers,
            start_index=start_index,
            on_commit=self._on_answer_committed,
            on_complete=self._on_quiz_completed,
            on_change=self._notify,
        )

    def _close_capture(self) -> None:
        if self.capture is not None:
            self._answers = self.capture.answers
            self.capture.close()
            self.capture = None

    def _question_view(self) -> tuple[Question, ...]:
        return tuple(self._questions)

    def _on_answer_committed(self, answer: Answer) -> None:
        logger.debug(f"Answer committed for question {answer.question_id}: {answer.value}")
        if self.state not in UNPERSISTED_STATES:
            self._persist()

    def _on_quiz_completed(self, answers: list[Answer]) -> None:
        logger.info(f"Quiz completed with {len(answers)} answers")
        task = asyncio.get_running_loop().create_task(self._complete_if_current(answers, self._epoch))
        task.add_done_callback(_log_task_failure)
        self._analysis_task = task

    async def _complete_if_current(self, answers: list[Answer], epoch: int) -> None:
        # A restart can land before the task gets its first step
        if epoch != self._epoch or self.state != SessionState.QUIZ:
            logger.info("Skipping analysis of a questionnaire that was restarted")
            return
        await self.complete_quiz(answers)

    def _fail(self, message: str) -> None:
        self.error = message
        self._close_capture()
        self._transition(SessionState.ERROR)

    def _transition(self, state: SessionState) -> None:
        logger.debug(f"{self.state.value} -> {state.value}")
        self.state = state
        if state not in UNPERSISTED_STATES:
            self._persist()
        self._notify()

    def _persist(self) -> None:
        try:
            self._store.save(self.snapshot())
        except StorageError as e:
            logger.warning(f"Session snapshot not saved: {e}")

    def _notify(self) -> None:
        if self.on_change:
            self.on_change()
