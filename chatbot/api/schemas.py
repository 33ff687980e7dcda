"""Pydantic models for the backend API and the persisted conversation.

Defines request/response schemas for the chat and health endpoints,
plus the transcript message and snapshot stored between sessions.
"""

import time
from datetime import datetime
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

ServiceStatus = Literal["operational", "healthy", "offline", "unknown"]

SERVICES = ("chat", "products", "outlets")

DISPLAY_TIME_FORMAT = "%H:%M:%S"


def new_message_id() -> str:
    """Epoch milliseconds plus a random tiebreak."""
    return f"{int(time.time() * 1000)}-{uuid4().hex[:8]}"


def display_time(moment: datetime | None = None) -> str:
    return (moment or datetime.now()).strftime(DISPLAY_TIME_FORMAT)


class ChatRequest(BaseModel):
    """Outgoing chat message to the backend."""
    user_id: str = Field(..., min_length=1, description="Session identifier")
    message: str = Field(..., min_length=1, description="Enhanced user text")


class ChatResponse(BaseModel):
    """Backend answer for one turn."""
    response: str
    intent: str = ""
    tools_used: list[str] = Field(default_factory=list)
    timestamp: str | None = None

    @field_validator("tools_used", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return value or []


class HealthServices(BaseModel):
    """Per-subsystem availability reported by the backend."""
    chat: ServiceStatus = "unknown"
    products: ServiceStatus = "unknown"
    outlets: ServiceStatus = "unknown"

    @field_validator("chat", "products", "outlets", mode="before")
    @classmethod
    def _coerce_status(cls, value):
        if isinstance(value, str) and value.lower() in ("operational", "healthy", "offline"):
            return value.lower()
        return "unknown"


class HealthResponse(BaseModel):
    services: HealthServices = Field(default_factory=HealthServices)


class MessageRecord(BaseModel):
    """Single transcript entry. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_message_id)
    sender: Literal["user", "bot"]
    content: str
    timestamp: str = Field(default_factory=display_time)
    intent: str | None = None
    tools: tuple[str, ...] | None = None
    error: bool = False


class ConversationSnapshot(BaseModel):
    """Persisted transcript, owned by one session id."""
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="userId")
    messages: list[MessageRecord] = Field(default_factory=list)
    saved_at: str = Field(alias="timestamp", default_factory=lambda: datetime.now().isoformat())
