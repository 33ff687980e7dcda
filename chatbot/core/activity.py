"""Per-turn activity trace.

An ActivityLog is immutable: adding or clearing returns a new log. The
orchestrator clears it at the start of every send, and it is never persisted.
"""

from dataclasses import dataclass, field
from typing import Literal

from chatbot.api.schemas import display_time, new_message_id

ActivityKind = Literal["processing", "api", "tool", "success", "error"]

ANALYZING_INTENT = "[SYS] Analyzing intent..."
CALLING_BACKEND = "[API] Calling chat endpoint..."
RESPONSE_GENERATED = "[OK] Response generated"


def tool_used(name: str) -> str:
    return f"[TOOL] Tool used: {name}"


def error_text(reason: str) -> str:
    return f"[ERROR] Error: {reason}"


@dataclass(frozen=True)
class ActivityEntry:
    """One orchestration step.

    Attributes:
        text: Human-readable step description.
        kind: processing, api, tool, success or error.
        id: Unique entry id.
        timestamp: Capture time for display.
    """
    text: str
    kind: ActivityKind
    id: str = field(default_factory=new_message_id)
    timestamp: str = field(default_factory=display_time)


@dataclass(frozen=True)
class ActivityLog:
    entries: tuple[ActivityEntry, ...] = ()

    def add(self, text: str, kind: ActivityKind = "processing") -> "ActivityLog":
        return ActivityLog(self.entries + (ActivityEntry(text=text, kind=kind),))

    def cleared(self) -> "ActivityLog":
        return ActivityLog()

    def kinds(self) -> list[str]:
        return [entry.kind for entry in self.entries]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)
