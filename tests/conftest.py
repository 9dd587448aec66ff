"""
Core pytest configuration and fixtures for chatrelay testing.

This module provides shared test fixtures, configuration, and utilities
used by both the unit and the integration tests.
"""

import tempfile
from pathlib import Path
from typing import Callable, List

import httpx
import pytest
from chatrelay import ChatRelay
from chatrelay.diagnostics import DiagnosticsRecorder
from chatrelay.llm import Mock, OpenAI
from chatrelay.models import (
    ASSISTANT_ROLE,
    USER_ROLE,
    ChatMessage,
    ChatRequest,
    Configuration,
    Conversation,
    ConversationMessage,
)
from chatrelay.registry import MOCK_PROVIDER, OPENAI_PROVIDER, ProviderRegistry
from chatrelay.settings import Settings

# ===== TEST DATA FIXTURES =====


@pytest.fixture
def sample_messages() -> List[ChatMessage]:
    """Sample chat messages for testing."""
    return [
        ChatMessage(role=USER_ROLE, content="Hello, how are you?"),
        ChatMessage(
            role=ASSISTANT_ROLE,
            content="I'm doing well, thank you! How can I help you today?",
        ),
        ChatMessage(role=USER_ROLE, content="Can you explain quantum computing?"),
    ]


@pytest.fixture
def sample_request(sample_messages) -> ChatRequest:
    return ChatRequest(messages=sample_messages)


@pytest.fixture
def hello_request() -> ChatRequest:
    return ChatRequest(messages=[ChatMessage(role=USER_ROLE, content="hello")])


@pytest.fixture
def sample_conversation(sample_messages) -> Conversation:
    """Sample conversation for testing."""
    return Conversation(
        id="001",
        title="Hello, how are you?",
        messages=[
            ConversationMessage(role=m.role, content=m.content) for m in sample_messages
        ],
    )


@pytest.fixture
def mock_config() -> Configuration:
    return Configuration()


@pytest.fixture
def openai_config() -> Configuration:
    return Configuration(
        provider_id="openai", model="gpt-4o-mini", temperature=0.2, max_tokens=64
    )


# ===== DIRECTORY FIXTURES =====


@pytest.fixture
def temp_dir():
    """Temporary directory for file-based tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ===== PROVIDER FIXTURES =====


@pytest.fixture
def fast_mock() -> Mock:
    """Mock provider without simulated delays."""
    return Mock(delay=(0, 0), token_delay=(0, 0))


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        provider_id="mock",
        model="default",
        openai_api_key=None,
        openrouter_api_key=None,
        deepseek_api_key=None,
    )


@pytest.fixture
def make_openai() -> Callable[[Callable[[httpx.Request], httpx.Response]], OpenAI]:
    """Builds an OpenAI adapter whose HTTP traffic goes to ``handler``."""

    def factory(handler):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return OpenAI(api_key="sk-test-secret", client=client)

    return factory


# ===== APP FIXTURES =====


@pytest.fixture
def test_registry(fast_mock) -> ProviderRegistry:
    registry = ProviderRegistry()
    registry.register(MOCK_PROVIDER, fast_mock)
    registry.register(OPENAI_PROVIDER, OpenAI(api_key="sk-test-secret"))
    return registry


@pytest.fixture
def test_relay(test_registry, test_settings) -> ChatRelay:
    """
    Provides a ChatRelay instance with simple, predictable collaborators.

    The mock provider answers instantly and no real network access happens.
    """
    return ChatRelay(
        registry=test_registry,
        diagnostics=DiagnosticsRecorder(),
        settings=test_settings,
    )


# ===== CONFIGURATION =====


def pytest_configure(config):
    """Pytest configuration."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on location."""
    for item in items:
        # Mark integration tests
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
