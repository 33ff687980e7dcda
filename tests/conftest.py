"""Shared fixtures for all tests."""

from unittest.mock import MagicMock

import pytest

from chatbot.agent.orchestrator import ConversationOrchestrator
from chatbot.api.client import BackendClient
from chatbot.api.schemas import ChatResponse
from chatbot.core.database import init_db
from chatbot.core.persistence import ConversationStore

TEST_API_URL = "http://test-backend"


@pytest.fixture
def memory_db():
    """Fresh in-memory key-value store for each test."""
    init_db("sqlite:///:memory:")
    yield


@pytest.fixture
def chat_response() -> ChatResponse:
    return ChatResponse(
        response="There are 3 outlets in Petaling Jaya.",
        intent="outlet_search",
        tools_used=["outlets_text2sql"],
        timestamp="2025-01-15T10:15:30",
    )


@pytest.fixture
def mock_client(chat_response):
    client = MagicMock(spec=BackendClient)
    client.base_url = TEST_API_URL
    client.chat.return_value = chat_response
    return client


@pytest.fixture
def store(memory_db) -> ConversationStore:
    return ConversationStore("user_1")


@pytest.fixture
def orchestrator(mock_client, store) -> ConversationOrchestrator:
    return ConversationOrchestrator(mock_client, store)
