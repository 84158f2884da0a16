"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - config: Client configuration pointing at a fake backend, pacing off
    - store: Empty conversation history
    - async_client: HTTPX client for the host application
"""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from ragdesk.chat.store import MessageStore
from ragdesk.config import ClientConfig
from ragdesk.server import create_app
from tests.helpers import BASE_URL


@pytest.fixture
def config() -> ClientConfig:
    """Configuration with pacing disabled for deterministic tests.

    Returns:
        ClientConfig pointing at the fake backend.
    """
    return ClientConfig(
        api_base_url=BASE_URL,
        chat_top_k=5,
        token_delay=0.0,
        max_pending_tokens=200,
        request_timeout=5.0,
        stream_idle_timeout=5.0,
        parse_poll_interval=0.01,
        parse_timeout=1.0,
    )


@pytest.fixture
def store() -> MessageStore:
    return MessageStore()


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for the host application.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=create_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
