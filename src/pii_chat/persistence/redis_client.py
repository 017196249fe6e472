"""
Shared asyncio Redis connection pool for the conversation store.

The pool is created lazily by the first request that needs history and is
torn down on application shutdown. Streaming never touches it: an
exchange is saved from a background task after the stream has closed.
"""

from typing import Optional

import structlog
from redis.asyncio import ConnectionPool as AsyncConnectionPool
from redis.asyncio import Redis as AsyncRedis

from pii_chat.config import Settings

logger = structlog.get_logger(__name__)


class RedisClient:
    """Process-wide holder of the async connection pool."""

    _async_pool: Optional[AsyncConnectionPool] = None

    @classmethod
    def get_async_client(cls, settings: Settings) -> AsyncRedis:
        """Client bound to the shared pool (strings in, strings out)."""
        if cls._async_pool is None:
            cls._async_pool = AsyncConnectionPool.from_url(
                settings.REDIS_URL,
                max_connections=settings.REDIS_MAX_CONNECTIONS,
                decode_responses=True,
                socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
                socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
                health_check_interval=30,
            )
            logger.info(
                "Conversation store pool created",
                max_connections=settings.REDIS_MAX_CONNECTIONS,
            )

        return AsyncRedis(connection_pool=cls._async_pool)

    @classmethod
    async def close_async_pool(cls) -> None:
        pool, cls._async_pool = cls._async_pool, None
        if pool is not None:
            await pool.disconnect()
            logger.info("Conversation store pool closed")
