"""Integration test fixtures (service checks and prerequisites).

Provides fixtures for checking if external services are available.
Tests that need a real Redis are skipped if it is not running.
"""

import pytest
import pytest_asyncio
from redis.asyncio import Redis as AsyncRedis

TEST_REDIS_URL = "redis://localhost:6379/15"  # Test database


@pytest_asyncio.fixture
async def real_async_redis_client():
    """Real AsyncRedis client instance for integration tests (async).

    Skips the test if Redis is not reachable. Uses database 15 and clears
    it before and after the test.
    """
    client = AsyncRedis.from_url(TEST_REDIS_URL, decode_responses=True)
    try:
        await client.ping()
    except Exception as e:
        await client.aclose()
        pytest.skip(f"Redis not available: {e}")

    await client.flushdb()

    yield client

    await client.flushdb()
    await client.aclose()


@pytest.fixture
def integration_settings(test_settings):
    """Settings for integration tests with real services.

    Points to localhost services on standard ports.
    """
    test_settings.REDIS_URL = TEST_REDIS_URL
    test_settings.PROMETHEUS_ENABLED = False
    return test_settings
