"""
Devil's advocate chat on the results screen.

The analysis picks one of the user's strongest stances and writes a counter
argument; this session lets the user argue back. Replies are single
attempts: a failed call turns into a short in-character fallback line
instead of an error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from loguru import logger

from valkompass.ai.gemini_service import AIService
from valkompass.core.analysis import DevilAdvocate
from valkompass.core.errors import ServiceError

LOST_THREAD_FALLBACK = "Jag tappade tråden lite... kan du formulera om det?"


@dataclass
class ChatTurn:
    """A single message in the debate."""
    role: Literal["user", "model"]
    content: str
    timestamp: datetime = field(default_factory=datetime.now)


class DebateSession:
    """Conversation state for one devil's advocate debate."""

    def __init__(self, service: AIService, context: DevilAdvocate):
        self._service = service
        self.context = context
        self.turns: list[ChatTurn] = [ChatTurn(role="model", content=context.counter_argument)]
        self._pending = False

    @property
    def is_pending(self) -> bool:
        return self._pending

    def history(self) -> list[tuple[str, str]]:
        return [(turn.role, turn.content) for turn in self.turns]

    async def send(self, text: str) -> str | None:
        """
        Post a user message and wait for the reply.

        Returns the reply, or None if the message was blank or a reply is
        still being generated.
        """
        text = text.strip()
        if not text or self._pending:
            return None

        self.turns.append(ChatTurn(role="user", content=text))
        self._pending = True
        try:
            reply = await self._service.chat(self.history(), self.context)
        except ServiceError as e:
            logger.warning(f"Debate reply failed: {e}")
            reply = LOST_THREAD_FALLBACK
        finally:
            self._pending = False

        self.turns.append(ChatTurn(role="model", content=reply))
        return reply
