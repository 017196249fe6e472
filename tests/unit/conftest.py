"""Unit test fixtures (mocks and stubs).

Provides mock Redis objects and an in-memory repository for testing without
external dependencies.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pii_chat.config import Settings


@pytest.fixture
def mock_async_redis():
    """Mock AsyncRedis client for unit tests (async)."""
    mock = AsyncMock()
    mock.set = AsyncMock(return_value=True)
    mock.setex = AsyncMock(return_value=True)
    mock.get = AsyncMock(return_value=None)
    mock.mget = AsyncMock(return_value=[])
    mock.delete = AsyncMock(return_value=1)
    mock.zadd = AsyncMock(return_value=1)
    mock.zrem = AsyncMock(return_value=1)
    mock.zrevrange = AsyncMock(return_value=[])
    mock.ping = AsyncMock(return_value=True)

    # MULTI/EXEC pipeline: commands are queued, applied by execute()
    pipe = MagicMock()
    pipe.__aenter__ = AsyncMock(return_value=pipe)
    pipe.__aexit__ = AsyncMock(return_value=False)
    pipe.execute = AsyncMock(return_value=[True, 1])
    mock.pipeline = MagicMock(return_value=pipe)
    mock.pipe = pipe
    return mock


@pytest.fixture
def mock_settings():
    """Mock settings for the persistence layer."""
    settings = MagicMock(spec=Settings)
    settings.CONVERSATION_KEY_PREFIX = "chat:conversation:"
    settings.CONVERSATION_INDEX_KEY = "chat:conversations:index"
    settings.CONVERSATION_TTL_SECONDS = 0
    settings.REDIS_URL = "redis://localhost:6379/0"
    settings.REDIS_MAX_CONNECTIONS = 50
    settings.REDIS_SOCKET_TIMEOUT = 5.0
    return settings


@pytest.fixture
def mock_repository():
    """Mock ConversationRepository with an in-memory dict behind it."""
    store: dict = {}
    repository = MagicMock()

    async def _save(conversation):
        store[conversation.id] = conversation

    async def _get(conversation_id):
        return store.get(conversation_id)

    repository.save = AsyncMock(side_effect=_save)
    repository.get = AsyncMock(side_effect=_get)
    repository.store = store
    return repository
