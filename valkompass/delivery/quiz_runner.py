"""
Terminal driver for a questionnaire session.

Reads commands line by line on a worker thread so the event loop keeps
running while the user thinks: the grace timer and background batches are
not blocked by a pending prompt. The screen is redrawn whenever the
orchestrator reports a change.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Callable

from loguru import logger
from rich.console import Console

from valkompass.core.models import MAX_VALUE, MIN_VALUE, SessionState
from valkompass.delivery.visuals import (
    render_debate,
    render_error_panel,
    render_loading_panel,
    render_quiz_screen,
    render_results,
)
from valkompass.session.capture import AnswerCapture
from valkompass.session.orchestrator import SessionOrchestrator

QUIT = "quit"
RESTART = "restart"


def handle_quiz_command(capture: AnswerCapture, line: str) -> str | None:
    """
    Apply one line of user input to the answer capture.

    Commands:
        0-5       select value (0 = no opinion)
        "" / n    commit the selection and go to the next question
        p         pause auto-advance and open the comment box
        c <text>  write a comment (pauses auto-advance)
        x         close the comment box
        i         toggle "extra important"
        b         previous question
        r         restart the session
        q         quit

    Returns:
        QUIT or RESTART for the runner to act on, otherwise None
    """
    command = line.strip()
    lowered = command.lower()

    if lowered in ("q", "quit"):
        return QUIT
    if lowered == "r":
        return RESTART

    if command.isdigit():
        value = int(command)
        if MIN_VALUE <= value <= MAX_VALUE:
            capture.select(value)
        return None

    if lowered in ("", "n"):
        capture.next()
    elif lowered == "p":
        capture.pause()
    elif lowered.startswith("c ") or lowered == "c":
        capture.pause()
        capture.set_comment(command[1:].strip())
    elif lowered == "x":
        capture.close_comment()
    elif lowered == "i":
        capture.toggle_important()
    elif lowered == "b":
        capture.back()
    else:
        logger.debug(f"Unknown quiz command: {command!r}")
    return None


class QuizRunner:
    """Runs one session from INTRO (or a resumed state) to the debate."""

    def __init__(
        self,
        orchestrator: SessionOrchestrator,
        console: Console | None = None,
        read_line: Callable[[str], str] | None = None,
    ):
        self.orchestrator = orchestrator
        self.console = console or Console()
        self._read_line = read_line or self.console.input
        self._pending_input: asyncio.Future | None = None
        self._left_quiz: asyncio.Event | None = None

    async def run(self) -> SessionState:
        orchestrator = self.orchestrator
        self._left_quiz = asyncio.Event()
        orchestrator.on_change = self._on_change

        if orchestrator.state in (SessionState.INTRO, SessionState.ERROR):
            if orchestrator.can_resume:
                orchestrator.resume()
            else:
                with self.console.status("Genererar frågor..."):
                    await orchestrator.start()

        while True:
            if orchestrator.state == SessionState.QUIZ:
                if not await self._quiz_loop():
                    break
            elif orchestrator.state == SessionState.ANALYZING:
                with self.console.status("Analyserar dina svar..."):
                    await orchestrator.wait_for_analysis()
            elif orchestrator.state == SessionState.LOADING_QUESTIONS:
                self.console.print(render_loading_panel())
                break
            elif orchestrator.state == SessionState.RESULTS:
                await self._results()
                break
            else:
                if orchestrator.error:
                    self.console.print(render_error_panel(orchestrator.error))
                break

        orchestrator.on_change = None
        if self._pending_input is not None:
            self._pending_input.cancel()
        return orchestrator.state

    async def _quiz_loop(self) -> bool:
        """Feed commands to the capture until the quiz is left. False means quit."""
        self._left_quiz.clear()
        self._render()
        leave = asyncio.ensure_future(self._left_quiz.wait())
        try:
            while self.orchestrator.state == SessionState.QUIZ:
                line_task = self._input_task("> ")
                done, _ = await asyncio.wait({line_task, leave}, return_when=asyncio.FIRST_COMPLETED)
                # A line typed as the quiz ended belongs to the next screen
                if leave in done or self.orchestrator.state != SessionState.QUIZ:
                    break

                self._pending_input = None
                capture = self.orchestrator.capture
                if capture is None:
                    break
                line = line_task.result()
                if line is None:
                    return False
                action = handle_quiz_command(capture, line)
                if action == QUIT:
                    return False
                if action == RESTART:
                    if self.orchestrator.restart():
                        with self.console.status("Genererar frågor..."):
                            await self.orchestrator.start()
                        return True
                self._render()
        finally:
            leave.cancel()
        return True

    async def _results(self) -> None:
        result = self.orchestrator.result
        if result is None:
            return
        self.console.print(render_results(result))

        debate = self.orchestrator.open_debate()
        if debate is None:
            return
        self.console.print(render_debate(debate))
        while True:
            line = await self._input_task("Ditt motargument (tom rad avslutar): ")
            self._pending_input = None
            if line is None or not line.strip():
                break
            with self.console.status("Djävulens advokat funderar..."):
                await debate.send(line)
            self.console.print(render_debate(debate))

    def _input_task(self, prompt: str) -> asyncio.Future:
        # A prompt left open when the quiz ended is reused by the next reader
        if self._pending_input is None:
            self._pending_input = self._read_in_background(prompt)
        return self._pending_input

    def _read_in_background(self, prompt: str) -> asyncio.Future:
        """Read one line on a daemon thread; an unanswered prompt never blocks exit."""
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def deliver(line: str | None, error: BaseException | None) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(line)

        def reader() -> None:
            error = None
            try:
                line = self._read_line(prompt)
            except (EOFError, KeyboardInterrupt):
                line = None
            except Exception as e:
                line, error = None, e
            try:
                loop.call_soon_threadsafe(deliver, line, error)
            except RuntimeError:
                # Loop already closed; nobody is waiting for this line
                return

        threading.Thread(target=reader, name="valkompass-input", daemon=True).start()
        return future

    def _on_change(self) -> None:
        if self.orchestrator.state != SessionState.QUIZ:
            if self._left_quiz is not None:
                self._left_quiz.set()
            return
        self._render()

    def _render(self) -> None:
        capture = self.orchestrator.capture
        if capture is None or not capture.is_active:
            return
        self.console.print(render_quiz_screen(capture))
