"""Conversation persistence keyed by session id.

The whole transcript is written under one fixed key on every change. A stored
snapshot is only adopted when it belongs to the current session. Storage is
best-effort: failures are logged and the conversation keeps working in memory.
"""

import json
from collections.abc import Iterable

import structlog

from chatbot.api.schemas import ConversationSnapshot, MessageRecord
from chatbot.core.database import delete_value, get_value, put_value

logger = structlog.get_logger(__name__)

STORAGE_KEY = "chatbot_conversation"


class ConversationStore:
    """Loads and saves the transcript for one session."""

    def __init__(self, session_id: str, key: str = STORAGE_KEY):
        self.session_id = session_id
        self.key = key

    def save(self, messages: Iterable[MessageRecord]) -> bool:
        """Overwrite the stored snapshot. Returns False if the write failed."""
        try:
            snapshot = ConversationSnapshot(session_id=self.session_id, messages=list(messages))
            put_value(self.key, snapshot.model_dump_json(by_alias=True))
            return True
        except Exception as e:
            logger.error("persistence.save_failed", key=self.key, error=str(e))
            return False

    def load(self) -> tuple[MessageRecord, ...]:
        """Return the stored transcript if it belongs to this session, else ()."""
        try:
            raw = get_value(self.key)
            if raw is None:
                return ()
            snapshot = ConversationSnapshot.model_validate(json.loads(raw))
        except Exception as e:
            logger.error("persistence.load_failed", key=self.key, error=str(e))
            return ()

        if snapshot.session_id != self.session_id:
            logger.info("persistence.session_mismatch", stored=snapshot.session_id,
                        current=self.session_id)
            return ()

        logger.info("persistence.loaded", session_id=self.session_id,
                    messages=len(snapshot.messages))
        return tuple(snapshot.messages)

    def clear(self) -> None:
        try:
            delete_value(self.key)
        except Exception as e:
            logger.error("persistence.clear_failed", key=self.key, error=str(e))
