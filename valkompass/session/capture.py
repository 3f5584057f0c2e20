"""
Answer capture: per-question interaction with auto-advance.

Selecting a value starts a grace timer; when it elapses the answer is
committed and the quiz moves on. The user can interrupt the timer to write
a comment ("nuancing"), pick another value (restarts the timer), go back
(restores the saved answer), or skip ahead explicitly with next().

At most one grace timer exists. Every switch of question cancels it first.
The answer set is owned here; the orchestrator learns about committed answers
through on_commit and about the end of the quiz through on_complete.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Sequence

from loguru import logger

from valkompass.core.models import MAX_VALUE, MIN_VALUE, Answer, Question, upsert_answer
from valkompass.session.scheduler import Scheduler

DEFAULT_GRACE_PERIOD = 5.5
DEFAULT_PHASE_SIZE = 10


class AnswerPhase(str, Enum):
    """Commit state of the current question."""

    UNSET = "unset"
    SELECTED_PENDING = "selected_pending"
    CONFIRMED = "confirmed"


@dataclass(frozen=True)
class QuizProgress:
    """Where the user is, as shown in the progress header."""

    position: int
    total: int
    available: int
    percent: float
    phase: int
    phase_count: int
    is_last_available: bool


def first_unanswered_index(questions: Sequence[Question], answers: Mapping[int, Answer]) -> int:
    """Index of the first question without an answer; the last question if all are answered."""
    for index, question in enumerate(questions):
        if question.id not in answers:
            return index
    return max(len(questions) - 1, 0)


class AnswerCapture:
    """State machine for answering the questions one at a time."""

    def __init__(
        self,
        questions: Callable[[], Sequence[Question]],
        scheduler: Scheduler,
        nominal_total: int,
        grace_period: float = DEFAULT_GRACE_PERIOD,
        phase_size: int = DEFAULT_PHASE_SIZE,
        answers: Mapping[int, Answer] | None = None,
        start_index: int = 0,
        on_commit: Callable[[Answer], None] | None = None,
        on_complete: Callable[[list[Answer]], None] | None = None,
        on_change: Callable[[], None] | None = None,
    ):
        """
        Args:
            questions: Returns the current question list; it may grow while answering
            scheduler: Runs the grace timer
            nominal_total: Target question count, used as the progress denominator
            grace_period: Seconds between selection and auto-commit
            phase_size: Questions per progress phase
            answers: Previously saved answers keyed by question id
            start_index: Question to open first
            on_commit: Called with each committed answer
            on_complete: Called once with all answers when the last available question is committed
            on_change: Called whenever the current question changes or the quiz completes
        """
        self._questions = questions
        self._scheduler = scheduler
        self.nominal_total = nominal_total
        self.grace_period = grace_period
        self.phase_size = phase_size
        self._on_commit = on_commit
        self._on_complete = on_complete
        self._on_change = on_change

        self._answers: dict[int, Answer] = dict(answers or {})
        self._timer: Any = None
        self._completed = False
        self._closed = False

        self._selected: int | None = None
        self._is_important = False
        self._comment = ""
        self._nuancing = False
        self._phase = AnswerPhase.UNSET

        available = len(self._questions())
        self._index = min(max(start_index, 0), max(available - 1, 0))
        self._load_current()

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def index(self) -> int:
        return self._index

    @property
    def current_question(self) -> Question | None:
        questions = self._questions()
        if self._index < len(questions):
            return questions[self._index]
        return None

    @property
    def selected_value(self) -> int | None:
        return self._selected

    @property
    def is_important(self) -> bool:
        return self._is_important

    @property
    def comment(self) -> str:
        return self._comment

    @property
    def is_nuancing(self) -> bool:
        return self._nuancing

    @property
    def phase(self) -> AnswerPhase:
        return self._phase

    @property
    def is_auto_advancing(self) -> bool:
        return self._timer is not None

    @property
    def is_completed(self) -> bool:
        return self._completed

    @property
    def is_active(self) -> bool:
        return not (self._completed or self._closed)

    @property
    def answers(self) -> dict[int, Answer]:
        return dict(self._answers)

    def ordered_answers(self) -> list[Answer]:
        """Answers to the available questions, in question order."""
        return [self._answers[q.id] for q in self._questions() if q.id in self._answers]

    def progress(self) -> QuizProgress:
        available = len(self._questions())
        total = max(self.nominal_total, available, 1)
        return QuizProgress(
            position=self._index + 1,
            total=total,
            available=available,
            percent=self._index / total * 100,
            phase=self._index // self.phase_size + 1,
            phase_count=math.ceil(total / self.phase_size),
            is_last_available=self._index >= available - 1,
        )

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def select(self, value: int) -> bool:
        """Pick a value (0 = no opinion). Starts or restarts the grace timer unless nuancing."""
        if not MIN_VALUE <= value <= MAX_VALUE:
            raise ValueError(f"Answer value must be in [{MIN_VALUE}, {MAX_VALUE}], got {value}")
        if not self.is_active or self.current_question is None:
            return False

        self._selected = value
        self._phase = AnswerPhase.SELECTED_PENDING

        if self._nuancing:
            return True

        self._cancel_timer()
        self._timer = self._scheduler.schedule(
            self.grace_period, lambda: self._on_grace_elapsed(value)
        )
        return True

    def pause(self) -> bool:
        """Stop the grace timer and open the comment box. The selection stays."""
        if not self.is_active:
            return False
        interrupted = self._cancel_timer()
        self._nuancing = True
        return interrupted

    def close_comment(self) -> None:
        """Close the comment box. Does not restart the timer; the comment text is kept."""
        self._nuancing = False

    def set_comment(self, text: str) -> None:
        self._comment = text

    def set_important(self, important: bool) -> None:
        self._is_important = important

    def toggle_important(self) -> bool:
        self._is_important = not self._is_important
        return self._is_important

    def next(self) -> bool:
        """Commit the selected value now, whatever the timer state."""
        if not self.is_active or self._selected is None:
            return False
        self._cancel_timer()
        self._commit_and_advance(self._selected)
        return True

    def back(self) -> bool:
        """Return to the previous question, restoring its saved answer."""
        self._cancel_timer()
        if not self.is_active or self._index == 0:
            return False
        self._index -= 1
        self._load_current()
        self._notify()
        return True

    def close(self) -> None:
        """Cancel any pending timer and refuse further actions."""
        self._cancel_timer()
        self._closed = True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _on_grace_elapsed(self, value: int) -> None:
        self._timer = None
        if not self.is_active:
            return
        logger.debug(f"Grace period elapsed on question index {self._index}, committing {value}")
        self._commit_and_advance(value)

    def _cancel_timer(self) -> bool:
        if self._timer is None:
            return False
        self._scheduler.cancel(self._timer)
        self._timer = None
        return True

    def _commit_and_advance(self, value: int) -> None:
        question = self.current_question
        if question is None:
            return

        answer = Answer(
            question_id=question.id,
            value=value,
            is_important=self._is_important,
            comment=self._comment if self._comment.strip() else None,
        )
        upsert_answer(self._answers, answer)
        self._phase = AnswerPhase.CONFIRMED
        if self._on_commit:
            self._on_commit(answer)

        if self._index < len(self._questions()) - 1:
            self._index += 1
            self._load_current()
            self._notify()
            return

        self._completed = True
        self._notify()
        if self._on_complete:
            self._on_complete(self.ordered_answers())

    def _load_current(self) -> None:
        self._cancel_timer()
        question = self.current_question
        existing = self._answers.get(question.id) if question else None

        if existing:
            self._selected = existing.value
            self._is_important = existing.is_important
            self._comment = existing.comment or ""
            self._nuancing = bool(existing.comment)
            self._phase = AnswerPhase.CONFIRMED
        else:
            self._selected = None
            self._is_important = False
            self._comment = ""
            self._nuancing = False
            self._phase = AnswerPhase.UNSET

    def _notify(self) -> None:
        if self._on_change:
            self._on_change()
