"""Conversation orchestrator.

Turn lifecycle: parse -> enhance -> call backend -> interpret -> append.
Phases: IDLE -> PARSING -> ENHANCING -> AWAITING_BACKEND -> INTERPRETING -> IDLE,
or AWAITING_BACKEND -> ERRORED -> IDLE when the backend call fails.

The orchestrator is the only writer of the transcript and the activity log.
Every transcript change is snapshotted through the ConversationStore.
"""

import time
from collections.abc import Callable
from datetime import datetime

import structlog

from chatbot.api.client import BackendClient, BackendError
from chatbot.api.schemas import ChatResponse, MessageRecord, display_time
from chatbot.core import activity as trace
from chatbot.core import state as transitions
from chatbot.core.commands import parse_command
from chatbot.core.config import ClientConfig
from chatbot.core.enhancer import enhance_query, fix_up_response
from chatbot.core.health import HealthMonitor
from chatbot.core.persistence import ConversationStore
from chatbot.core.state import ConversationState, TurnPhase

logger = structlog.get_logger(__name__)

GREETING = (
    "Hello! I'm the ChatBot AI assistant. I can help you with:\n\n"
    "• Finding ZUS Coffee outlets\n"
    "• Product information and drinkware\n"
    "• Calculations\n"
    "• Store hours and locations\n\n"
    "Quick commands: type `/` to see available commands"
)

RESET_MESSAGE = "Conversation reset. How can I help you today?"

QUICK_ACTIONS = [
    ("Find outlets in PJ", "Show me outlets in Petaling Jaya"),
    ("Glass coffee cups", "Show me glass coffee cups"),
    ("Calculate 15 + 25", "Calculate 15 + 25 * 2"),
    ("Eco-friendly cups", "Do you have eco-friendly bamboo cups?"),
]


def new_session_id() -> str:
    return f"user_{int(time.time() * 1000)}"


def response_time(data: ChatResponse) -> str:
    """Display time from the backend's ISO timestamp, or now if unusable."""
    if data.timestamp:
        try:
            moment = datetime.fromisoformat(data.timestamp.replace("Z", "+00:00"))
        except ValueError:
            logger.debug("turn.bad_timestamp", value=data.timestamp)
        else:
            if moment.tzinfo is not None:
                moment = moment.astimezone()
            return display_time(moment)
    return display_time()


def error_message_text(reason: str, api_url: str) -> str:
    return (
        f"Sorry, I encountered an error: {reason}\n\n"
        "Please check:\n"
        f"• Is the backend running on {api_url}?\n"
        "• Try the /reset command to start fresh"
    )


class ConversationOrchestrator:
    """Owns the conversation state and drives each turn.

    Example:
        orchestrator = ConversationOrchestrator(client, store, HealthMonitor(client))
        orchestrator.start()
        reply = orchestrator.send("/products glass cup")
    """

    def __init__(
        self,
        client: BackendClient,
        store: ConversationStore,
        health_monitor: HealthMonitor | None = None,
        pacing: Callable[[], None] | None = None,
    ):
        self._client = client
        self._store = store
        self._health_monitor = health_monitor
        self._pacing = pacing
        self._closed = False
        self._state = ConversationState(session_id=store.session_id)

    # Read-only views

    @property
    def state(self) -> ConversationState:
        return self._state

    @property
    def session_id(self) -> str:
        return self._state.session_id

    @property
    def messages(self) -> tuple[MessageRecord, ...]:
        return self._state.messages

    @property
    def activity(self) -> trace.ActivityLog:
        return self._state.activity

    @property
    def busy(self) -> bool:
        return self._state.busy

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def backend_offline(self) -> bool:
        return self._state.api_status.get("chat") == "offline"

    @property
    def show_quick_actions(self) -> bool:
        return len(self._state.messages) <= 1

    # Lifecycle

    def start(self) -> None:
        """Restore the stored transcript, greet if empty, then check health."""
        restored = self._store.load()
        self._state = transitions.replace_transcript(self._state, restored)
        if not restored:
            self._append(MessageRecord(sender="bot", content=GREETING))
        logger.info("session.started", session_id=self.session_id, restored=len(restored))
        self.refresh_health()

    def close(self) -> None:
        """Dispose the orchestrator. A reply still in flight is discarded."""
        self._closed = True
        logger.info("session.closed", session_id=self.session_id)

    def refresh_health(self) -> dict[str, str]:
        if self._health_monitor is None:
            return self._state.api_status
        statuses = self._health_monitor.check()
        self._state = transitions.set_api_status(self._state, statuses)
        return statuses

    def reset(self) -> None:
        """Start over with a single reset message and an empty activity log."""
        self._store.clear()
        self._state = transitions.reset_conversation(
            self._state, MessageRecord(sender="bot", content=RESET_MESSAGE)
        )
        self._store.save(self._state.messages)
        logger.info("session.reset", session_id=self.session_id)

    # Turn

    def send(self, raw: str) -> MessageRecord | None:
        """Run one turn.

        Args:
            raw: Text as typed by the user.

        Returns:
            The bot message appended for this turn, or None when nothing was
            sent (empty input, busy, command handled locally, or closed).
        """
        text = (raw or "").strip()
        if not text or self._closed:
            return None
        if self.busy:
            logger.warning("turn.rejected", reason="busy", phase=self._state.phase.value)
            return None

        self._state = transitions.begin_turn(self._state)
        try:
            return self._run_turn(text)
        finally:
            if not self._closed:
                self._state = transitions.end_turn(self._state)

    def _run_turn(self, text: str) -> MessageRecord | None:
        working = text
        if text.startswith("/"):
            parsed = parse_command(text)
            if parsed.reset:
                self.reset()
                return None
            if not parsed.should_send:
                self._state = transitions.set_notice(self._state, parsed.notice)
                return None
            working = parsed.message

        self._advance(TurnPhase.ENHANCING)
        enhanced = enhance_query(working)
        self._append(MessageRecord(sender="user", content=working))
        self._state = transitions.clear_activity(self._state)
        self._log(trace.ANALYZING_INTENT, "processing")

        if self._pacing is not None:
            self._pacing()

        self._advance(TurnPhase.AWAITING_BACKEND)
        self._log(trace.CALLING_BACKEND, "api")
        logger.info("turn.request", session_id=self.session_id, msg_len=len(enhanced),
                    enhanced=enhanced != working)

        try:
            data = self._client.chat(self.session_id, enhanced)
        except BackendError as e:
            if self._closed:
                logger.info("turn.discarded", session_id=self.session_id)
                return None
            return self._fail(e.reason)

        if self._closed:
            logger.info("turn.discarded", session_id=self.session_id)
            return None

        return self._interpret(data, working)

    def _interpret(self, data: ChatResponse, user_text: str) -> MessageRecord:
        self._advance(TurnPhase.INTERPRETING)
        for tool in data.tools_used:
            self._log(trace.tool_used(tool), "tool")
        self._log(trace.RESPONSE_GENERATED, "success")

        reply = MessageRecord(
            sender="bot",
            content=fix_up_response(data.response, user_text),
            intent=data.intent,
            tools=tuple(data.tools_used),
            timestamp=response_time(data),
        )
        self._append(reply)
        logger.info("turn.response", session_id=self.session_id, intent=data.intent,
                    tools=data.tools_used)
        return reply

    def _fail(self, reason: str) -> MessageRecord:
        self._advance(TurnPhase.ERRORED)
        logger.error("turn.backend_failed", session_id=self.session_id, error=reason)
        self._log(trace.error_text(reason), "error")

        reply = MessageRecord(
            sender="bot",
            content=error_message_text(reason, self._client.base_url),
            error=True,
        )
        self._append(reply)
        return reply

    # Helpers

    def _advance(self, phase: TurnPhase) -> None:
        self._state = transitions.advance(self._state, phase)

    def _log(self, text: str, kind: trace.ActivityKind) -> None:
        self._state = transitions.log_activity(self._state, text, kind)

    def _append(self, message: MessageRecord) -> None:
        self._state = transitions.append_message(self._state, message)
        self._store.save(self._state.messages)


def build_orchestrator(config: ClientConfig, session_id: str | None = None) -> ConversationOrchestrator:
    """Wire an orchestrator from a ClientConfig."""
    client = BackendClient(config.api_url, config.chat_timeout, config.health_timeout)
    store = ConversationStore(session_id or new_session_id())
    delay = config.activity_delay_ms / 1000

    def pacing() -> None:
        time.sleep(delay)

    return ConversationOrchestrator(
        client, store, HealthMonitor(client), pacing=pacing if delay > 0 else None
    )
