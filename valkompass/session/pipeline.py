"""
Question acquisition pipeline.

Fetches a small foreground batch so the quiz can open quickly, then fills up
to the nominal target with larger background batches while the user is
already answering. Background batches run strictly one after another: each
batch is told about every question accumulated so far so the AI service can
steer away from repeats.

The pipeline never touches session state. Results go back to the caller
(foreground) or through the on_batch callback (background), always tagged
with the token of the run that produced them.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable, Iterable

from loguru import logger

from valkompass.ai.gemini_service import AIService
from valkompass.core.errors import ResponseValidationError, ServiceError
from valkompass.core.models import Question
from valkompass.session.tokens import SessionTokens

BatchCallback = Callable[[int, list[Question]], None]


@dataclass(frozen=True)
class BatchPlan:
    """One generate_questions call: `count` questions numbered from `start_id`."""

    count: int
    start_id: int
    foreground: bool = False


def plan_batches(
    target_total: int,
    foreground_size: int = 5,
    background_size: int = 15,
) -> list[BatchPlan]:
    """
    Split the nominal target into one foreground and N background batches.

    For 50 questions with the defaults: (5 from 1), (15 from 6), (15 from 21),
    (15 from 36).
    """
    if target_total < 1:
        raise ValueError("target_total must be at least 1")
    if foreground_size < 1 or background_size < 1:
        raise ValueError("batch sizes must be at least 1")

    first = min(foreground_size, target_total)
    plan = [BatchPlan(count=first, start_id=1, foreground=True)]

    start = first + 1
    while start <= target_total:
        count = min(background_size, target_total - start + 1)
        plan.append(BatchPlan(count=count, start_id=start))
        start += count
    return plan


def dedupe_questions(incoming: Iterable[Question], existing: Iterable[Question]) -> list[Question]:
    """Questions from `incoming` whose id is neither in `existing` nor repeated earlier in `incoming`."""
    seen = {q.id for q in existing}
    unique = []
    for question in incoming:
        if question.id in seen:
            continue
        seen.add(question.id)
        unique.append(question)
    return unique


class AcquisitionPipeline:
    """Runs foreground + background question batches for one token at a time."""

    def __init__(
        self,
        service: AIService,
        tokens: SessionTokens,
        foreground_size: int = 5,
        background_size: int = 15,
    ):
        self._service = service
        self._tokens = tokens
        self.foreground_size = foreground_size
        self.background_size = background_size
        self._tasks: set[asyncio.Task] = set()

    @property
    def has_pending_batches(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def acquire(
        self,
        token: int,
        target_total: int,
        on_batch: BatchCallback,
    ) -> list[Question] | None:
        """
        Fetch the foreground batch and start background acquisition.

        Args:
            token: Token of the run; results are dropped once it is stale
            target_total: Nominal number of questions for the session
            on_batch: Receives (token, new_questions) for each background batch

        Returns:
            The foreground questions, or None if the token went stale meanwhile

        Raises:
            ServiceError: The foreground batch failed (after retries)
        """
        plan = plan_batches(target_total, self.foreground_size, self.background_size)
        foreground = plan[0]

        batch = await self._service.generate_questions(foreground.count, foreground.start_id, [])

        if not self._tokens.is_current(token):
            logger.info(f"Discarding foreground batch of stale run {token}")
            return None

        questions = dedupe_questions(batch, [])
        if not questions:
            raise ResponseValidationError("Foreground batch contained no questions")

        if len(plan) > 1:
            task = asyncio.create_task(
                self._run_background(token, plan[1:], list(questions), on_batch)
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        return questions

    async def _run_background(
        self,
        token: int,
        batches: list[BatchPlan],
        accumulated: list[Question],
        on_batch: BatchCallback,
    ) -> None:
        for batch in batches:
            if not self._tokens.is_current(token):
                logger.debug(f"Run {token} superseded before batch from id {batch.start_id}")
                return

            try:
                incoming = await self._service.generate_questions(
                    batch.count, batch.start_id, list(accumulated)
                )
            except ServiceError as e:
                logger.warning(
                    f"Background batch from id {batch.start_id} failed, "
                    f"halting acquisition with {len(accumulated)} questions: {e}"
                )
                return

            if not self._tokens.is_current(token):
                logger.info(f"Discarding background batch from id {batch.start_id} of stale run {token}")
                return

            unique = dedupe_questions(incoming, accumulated)
            accumulated.extend(unique)
            if unique:
                on_batch(token, unique)

        logger.info(f"Run {token} acquired {len(accumulated)} questions")

    async def drain(self) -> None:
        """Wait for every background run to finish."""
        pending = [task for task in self._tasks if not task.done()]
        while pending:
            await asyncio.gather(*pending)
            pending = [task for task in self._tasks if not task.done()]
