"""Unit tests for the conversation orchestrator (backend mocked)."""

from unittest.mock import MagicMock

import pytest

from chatbot.agent.orchestrator import (
    GREETING,
    RESET_MESSAGE,
    ConversationOrchestrator,
    response_time,
)
from chatbot.api.client import BackendError
from chatbot.api.schemas import ChatResponse, MessageRecord
from chatbot.core import database
from chatbot.core.commands import CALC_HELP
from chatbot.core.enhancer import DRINKWARE_SUGGESTION
from chatbot.core.persistence import ConversationStore
from chatbot.core.state import TurnPhase


class TestStart:

    def test_greets_empty_transcript(self, orchestrator):
        orchestrator.start()
        assert len(orchestrator.messages) == 1
        assert orchestrator.messages[0].sender == "bot"
        assert orchestrator.messages[0].content == GREETING

    def test_restores_same_session(self, mock_client, store):
        saved = (MessageRecord(sender="user", content="hi"),
                 MessageRecord(sender="bot", content="hello"))
        store.save(saved)
        orch = ConversationOrchestrator(mock_client, ConversationStore("user_1"))
        orch.start()
        assert orch.messages == saved

    def test_ignores_other_session(self, mock_client, store):
        store.save((MessageRecord(sender="user", content="hi"),))
        orch = ConversationOrchestrator(mock_client, ConversationStore("user_2"))
        orch.start()
        assert [m.content for m in orch.messages] == [GREETING]

    def test_checks_health(self, mock_client, store):
        monitor = MagicMock()
        monitor.check.return_value = {"chat": "offline", "products": "offline", "outlets": "offline"}
        orch = ConversationOrchestrator(mock_client, store, health_monitor=monitor)
        orch.start()
        monitor.check.assert_called_once()
        assert orch.backend_offline


class TestSendSuccess:

    def test_user_then_bot_message(self, orchestrator, chat_response):
        reply = orchestrator.send("  Show me outlets in Petaling Jaya  ")
        user, bot = orchestrator.messages
        assert user.sender == "user"
        assert user.content == "Show me outlets in Petaling Jaya"
        assert bot is reply
        assert bot.content == chat_response.response
        assert bot.intent == "outlet_search"
        assert bot.tools == ("outlets_text2sql",)
        assert bot.timestamp == "10:15:30"

    def test_backend_called_with_session_id(self, orchestrator, mock_client):
        orchestrator.send("Show me all outlets")
        mock_client.chat.assert_called_once_with("user_1", "Show me all outlets")

    def test_activity_sequence(self, orchestrator, mock_client):
        mock_client.chat.return_value = ChatResponse(
            response="65", intent="calculation", tools_used=["calculator", "formatter"],
        )
        orchestrator.send("Calculate 15 + 25 * 2")
        assert orchestrator.activity.kinds() == ["processing", "api", "tool", "tool", "success"]
        assert "calculator" in list(orchestrator.activity)[2].text

    def test_returns_to_idle(self, orchestrator):
        orchestrator.send("hello")
        assert orchestrator.state.phase == TurnPhase.IDLE
        assert not orchestrator.busy

    def test_activity_cleared_each_turn(self, orchestrator):
        orchestrator.send("hello")
        orchestrator.send("hello again")
        assert orchestrator.activity.kinds() == ["processing", "api", "tool", "success"]

    def test_pacing_runs_between_steps(self, mock_client, store):
        seen = []
        orch = ConversationOrchestrator(mock_client, store, pacing=lambda: seen.append(orch.activity.kinds()))
        orch.send("hello")
        assert seen == [["processing"]]

    def test_transcript_persisted(self, orchestrator, store):
        orchestrator.send("hello")
        assert store.load() == orchestrator.messages

    def test_message_ids_unique(self, orchestrator):
        orchestrator.start()
        for i in range(5):
            orchestrator.send(f"message {i}")
        ids = [m.id for m in orchestrator.messages]
        assert len(ids) == len(set(ids)) == 11


class TestProductQuery:

    def test_enhanced_for_backend_only(self, orchestrator, mock_client):
        orchestrator.send("What products do you have?")
        sent = mock_client.chat.call_args.args[1]
        assert "cup mug glass drinkware coffee" in sent
        assert orchestrator.messages[0].content == "What products do you have?"

    def test_no_products_fixup(self, orchestrator, mock_client):
        mock_client.chat.return_value = ChatResponse(
            response="No products found", intent="product_search", tools_used=["product_rag"],
        )
        reply = orchestrator.send("What products do you have?")
        assert reply.content == DRINKWARE_SUGGESTION

    def test_products_command(self, orchestrator, mock_client):
        orchestrator.send("/products")
        assert orchestrator.messages[0].content == "What products do you have?"
        assert mock_client.chat.call_args.args[1].endswith("drinkware coffee")


class TestCommands:

    def test_calc_rewritten(self, orchestrator, mock_client):
        orchestrator.send("/calc 15 + 25 * 2")
        mock_client.chat.assert_called_once_with("user_1", "Calculate 15 + 25 * 2")
        assert orchestrator.messages[0].content == "Calculate 15 + 25 * 2"

    def test_calc_without_args_starts_no_turn(self, orchestrator, mock_client):
        assert orchestrator.send("/calc") is None
        assert orchestrator.messages == ()
        assert orchestrator.state.notice == CALC_HELP
        mock_client.chat.assert_not_called()

    def test_notice_cleared_by_next_send(self, orchestrator):
        orchestrator.send("/calc")
        orchestrator.send("hello")
        assert orchestrator.state.notice is None

    def test_reset(self, orchestrator, mock_client, store):
        orchestrator.start()
        orchestrator.send("hello")
        assert orchestrator.send("/reset") is None
        assert len(orchestrator.messages) == 1
        assert orchestrator.messages[0].content == RESET_MESSAGE
        assert len(orchestrator.activity) == 0
        assert mock_client.chat.call_count == 1
        assert store.load() == orchestrator.messages
        assert not orchestrator.busy


class TestEntryGuard:

    @pytest.mark.parametrize("text", ["", "   ", "\n\t", None])
    def test_empty_input_ignored(self, orchestrator, mock_client, text):
        assert orchestrator.send(text) is None
        assert orchestrator.messages == ()
        mock_client.chat.assert_not_called()

    def test_send_while_awaiting_is_noop(self, orchestrator, mock_client, chat_response):
        nested = []

        def reentrant_chat(user_id, message):
            assert orchestrator.state.phase == TurnPhase.AWAITING_BACKEND
            nested.append(orchestrator.send("second message"))
            return chat_response

        mock_client.chat.side_effect = reentrant_chat
        orchestrator.send("first message")

        assert nested == [None]
        assert mock_client.chat.call_count == 1
        assert [m.content for m in orchestrator.messages] == ["first message", chat_response.response]


class TestBackendFailure:

    def test_error_entry_and_message(self, orchestrator, mock_client):
        mock_client.chat.side_effect = BackendError("API error: 500", status_code=500)
        reply = orchestrator.send("Show me all outlets")

        assert reply.error is True
        assert mock_client.base_url in reply.content
        assert "/reset" in reply.content
        assert orchestrator.activity.kinds().count("error") == 1
        assert orchestrator.activity.kinds()[-1] == "error"
        assert [m.error for m in orchestrator.messages] == [False, True]

    def test_next_send_allowed_immediately(self, orchestrator, mock_client, chat_response):
        mock_client.chat.side_effect = [BackendError("Cannot connect to the backend"), chat_response]
        orchestrator.send("first")
        assert not orchestrator.busy
        reply = orchestrator.send("second")
        assert reply.error is False
        assert len(orchestrator.messages) == 4

    def test_broken_persistence_does_not_block(self, orchestrator, monkeypatch):
        monkeypatch.setattr(database, "_SessionLocal", None)
        reply = orchestrator.send("hello")
        assert reply is not None
        assert len(orchestrator.messages) == 2


class TestClose:

    def test_reply_discarded_after_close(self, orchestrator, mock_client, chat_response):
        def close_mid_flight(user_id, message):
            orchestrator.close()
            return chat_response

        mock_client.chat.side_effect = close_mid_flight
        assert orchestrator.send("hello") is None
        assert [m.sender for m in orchestrator.messages] == ["user"]
        assert "success" not in orchestrator.activity.kinds()

    def test_failure_discarded_after_close(self, orchestrator, mock_client):
        def close_then_fail(user_id, message):
            orchestrator.close()
            raise BackendError("API error: 502")

        mock_client.chat.side_effect = close_then_fail
        assert orchestrator.send("hello") is None
        assert "error" not in orchestrator.activity.kinds()

    def test_closed_rejects_sends(self, orchestrator, mock_client):
        orchestrator.close()
        assert orchestrator.send("hello") is None
        mock_client.chat.assert_not_called()


class TestViews:

    def test_quick_actions_until_first_exchange(self, orchestrator):
        orchestrator.start()
        assert orchestrator.show_quick_actions
        orchestrator.send("hello")
        assert not orchestrator.show_quick_actions

    def test_refresh_health_without_monitor(self, orchestrator):
        assert orchestrator.refresh_health()["chat"] == "unknown"
        assert not orchestrator.backend_offline


class TestResponseTime:

    def test_naive_iso(self):
        assert response_time(ChatResponse(response="x", timestamp="2025-01-15T08:05:09.123456")) == "08:05:09"

    def test_invalid_falls_back(self):
        assert len(response_time(ChatResponse(response="x", timestamp="yesterday"))) == 8

    def test_missing_falls_back(self):
        assert len(response_time(ChatResponse(response="x"))) == 8
