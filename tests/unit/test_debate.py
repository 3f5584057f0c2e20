"""
Unit tests for the devil's advocate debate session.
"""

import pytest

from valkompass.core.errors import FatalServiceError
from valkompass.session.debate import LOST_THREAD_FALLBACK, DebateSession


@pytest.fixture
def debate(fake_service, analysis_result):
    return DebateSession(fake_service, analysis_result.devil_advocate)


class TestDebateSession:
    """Tests for DebateSession."""

    def test_opens_with_counter_argument(self, debate, analysis_result):
        assert debate.history() == [("model", analysis_result.devil_advocate.counter_argument)]

    @pytest.mark.asyncio
    async def test_send_appends_both_turns(self, debate, fake_service):
        fake_service.chat_replies = ["Men vem ska betala?"]

        reply = await debate.send("  Vindkraft räcker  ")

        assert reply == "Men vem ska betala?"
        assert [role for role, _ in debate.history()] == ["model", "user", "model"]
        assert fake_service.chat_calls[0][-1] == ("user", "Vindkraft räcker")

    @pytest.mark.asyncio
    async def test_blank_message_ignored(self, debate, fake_service):
        assert await debate.send("   ") is None
        assert fake_service.chat_calls == []
        assert len(debate.turns) == 1

    @pytest.mark.asyncio
    async def test_failure_becomes_fallback_reply(self, debate, fake_service):
        fake_service.chat_replies = [FatalServiceError("offline")]

        reply = await debate.send("Hej")

        assert reply == LOST_THREAD_FALLBACK
        assert debate.turns[-1].content == LOST_THREAD_FALLBACK
        assert not debate.is_pending
