"""Conversation state and its transitions.

ConversationState is frozen. Every change goes through one of the functions
below, which return a new state, so a turn can be replayed and inspected
without any rendering layer.
"""

from dataclasses import dataclass, field, replace
from enum import Enum

from chatbot.api.schemas import SERVICES, MessageRecord
from chatbot.core.activity import ActivityKind, ActivityLog


class TurnPhase(str, Enum):
    IDLE = "idle"
    PARSING = "parsing"
    ENHANCING = "enhancing"
    AWAITING_BACKEND = "awaiting_backend"
    INTERPRETING = "interpreting"
    ERRORED = "errored"


def unknown_status() -> dict[str, str]:
    return {name: "unknown" for name in SERVICES}


@dataclass(frozen=True)
class ConversationState:
    """Everything the orchestrator owns.

    Attributes:
        session_id: Backend user_id and persistence owner key.
        messages: Transcript, oldest first.
        activity: Trace of the current (or last) turn.
        phase: Where the current turn is in its lifecycle.
        api_status: Subsystem name -> status from the last health check.
        notice: Transient hint for the input box (e.g. missing command args).
    """
    session_id: str
    messages: tuple[MessageRecord, ...] = ()
    activity: ActivityLog = field(default_factory=ActivityLog)
    phase: TurnPhase = TurnPhase.IDLE
    api_status: dict[str, str] = field(default_factory=unknown_status)
    notice: str | None = None

    @property
    def busy(self) -> bool:
        return self.phase != TurnPhase.IDLE


def begin_turn(state: ConversationState) -> ConversationState:
    return replace(state, phase=TurnPhase.PARSING, notice=None)


def advance(state: ConversationState, phase: TurnPhase) -> ConversationState:
    return replace(state, phase=phase)


def end_turn(state: ConversationState) -> ConversationState:
    return replace(state, phase=TurnPhase.IDLE)


def append_message(state: ConversationState, message: MessageRecord) -> ConversationState:
    return replace(state, messages=state.messages + (message,))


def replace_transcript(state: ConversationState, messages) -> ConversationState:
    return replace(state, messages=tuple(messages))


def log_activity(state: ConversationState, text: str, kind: ActivityKind) -> ConversationState:
    return replace(state, activity=state.activity.add(text, kind))


def clear_activity(state: ConversationState) -> ConversationState:
    return replace(state, activity=state.activity.cleared())


def reset_conversation(state: ConversationState, reset_message: MessageRecord) -> ConversationState:
    """Transcript replaced by the single reset message, activity cleared."""
    return replace(state, messages=(reset_message,), activity=ActivityLog(), notice=None)


def set_notice(state: ConversationState, notice: str | None) -> ConversationState:
    return replace(state, notice=notice)


def set_api_status(state: ConversationState, statuses: dict[str, str]) -> ConversationState:
    return replace(state, api_status=dict(statuses))
