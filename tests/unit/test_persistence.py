"""Unit tests for key-value storage and conversation persistence (in-memory)."""

import pytest

from chatbot.api.schemas import MessageRecord
from chatbot.core import database
from chatbot.core.database import delete_value, get_value, init_db, put_value
from chatbot.core.persistence import STORAGE_KEY, ConversationStore


@pytest.fixture(autouse=True)
def setup_db():
    """Create a fresh in-memory database for each test."""
    init_db("sqlite:///:memory:")
    yield


@pytest.fixture
def transcript():
    return (
        MessageRecord(sender="user", content="Show me all outlets"),
        MessageRecord(sender="bot", content="Here are 3 outlets", intent="outlet_search",
                      tools=("outlets_text2sql",)),
    )


class TestKeyValue:

    def test_put_and_get(self):
        put_value("k", "v1")
        assert get_value("k") == "v1"

    def test_overwrite(self):
        put_value("k", "v1")
        put_value("k", "v2")
        assert get_value("k") == "v2"

    def test_missing_key(self):
        assert get_value("nope") is None

    def test_delete(self):
        put_value("k", "v1")
        assert delete_value("k")
        assert get_value("k") is None
        assert not delete_value("k")


class TestConversationStore:

    def test_roundtrip(self, transcript):
        store = ConversationStore("user_1")
        assert store.save(transcript)
        assert store.load() == transcript

    def test_save_load_fixed_point(self, transcript):
        store = ConversationStore("user_1")
        store.save(transcript)
        store.save(store.load())
        assert store.load() == transcript

    def test_other_session_gets_empty(self, transcript):
        ConversationStore("user_1").save(transcript)
        assert ConversationStore("user_2").load() == ()

    def test_save_overwrites(self, transcript):
        store = ConversationStore("user_1")
        store.save(transcript)
        store.save(transcript[:1])
        assert store.load() == transcript[:1]

    def test_stored_under_fixed_key(self, transcript):
        ConversationStore("user_1").save(transcript)
        assert '"userId":"user_1"' in get_value(STORAGE_KEY)

    def test_clear(self, transcript):
        store = ConversationStore("user_1")
        store.save(transcript)
        store.clear()
        assert store.load() == ()

    def test_corrupt_snapshot_loads_empty(self):
        put_value(STORAGE_KEY, "{not json")
        assert ConversationStore("user_1").load() == ()


class TestBrokenStorage:

    def test_failures_are_swallowed(self, monkeypatch, transcript):
        monkeypatch.setattr(database, "_SessionLocal", None)
        store = ConversationStore("user_1")
        assert store.save(transcript) is False
        assert store.load() == ()
        store.clear()
