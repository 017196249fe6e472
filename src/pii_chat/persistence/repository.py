"""
Repository pattern for Redis-based conversation persistence.

Storage Strategy:
- Conversation: JSON string per record, key = "chat:conversation:{id}"
- Index by date: Sorted set "chat:conversations:index" (score = record date)
- Saves replace the whole record; concurrent saves of one id are
  last-writer-wins
- TTL: optional, 0 keeps records forever
"""

from typing import Optional
from uuid import UUID

import structlog
from pydantic import ValidationError
from redis.asyncio import Redis as AsyncRedis
from redis.exceptions import RedisError

from pii_chat.config import Settings
from pii_chat.models.chat_models import Conversation
from pii_chat.persistence.exceptions import CorruptConversationRecord, PersistenceError

logger = structlog.get_logger(__name__)


class ConversationRepository:
    """
    Repository for conversation records.

    Exposes a pull-style interface: save, get by id, list most recent
    first, delete.
    """

    def __init__(self, redis_client: AsyncRedis, settings: Settings):
        """
        Initialize repository.

        Args:
            redis_client: AsyncRedis client instance
            settings: Application settings
        """
        self.redis = redis_client
        self.key_prefix = settings.CONVERSATION_KEY_PREFIX
        self.index_key = settings.CONVERSATION_INDEX_KEY
        self.ttl = settings.CONVERSATION_TTL_SECONDS

    def _key(self, conversation_id: UUID | str) -> str:
        return f"{self.key_prefix}{conversation_id}"

    async def save(self, conversation: Conversation) -> None:
        """
        Store a conversation, replacing any previous record with the same id.

        Raises:
            PersistenceError: Redis rejected the write
        """
        record_json = conversation.model_dump_json(by_alias=True)
        key = self._key(conversation.id)

        try:
            # Record and index entry land together or not at all (MULTI/EXEC)
            async with self.redis.pipeline(transaction=True) as pipe:
                if self.ttl > 0:
                    pipe.setex(name=key, time=self.ttl, value=record_json)
                else:
                    pipe.set(name=key, value=record_json)
                pipe.zadd(
                    self.index_key,
                    {str(conversation.id): conversation.date.timestamp()}
                )
                await pipe.execute()
        except RedisError as e:
            logger.error(
                "Failed to save conversation",
                conversation_id=str(conversation.id),
                error=str(e),
            )
            raise PersistenceError(
                "Failed to save conversation",
                details={"conversation_id": str(conversation.id)}
            ) from e

        logger.info(
            "Saved conversation",
            conversation_id=str(conversation.id),
            message_count=len(conversation.messages),
            ttl=self.ttl,
        )

    async def get(self, conversation_id: UUID | str) -> Optional[Conversation]:
        """
        Retrieve a conversation by id.

        Returns:
            Conversation if found, None otherwise

        Raises:
            CorruptConversationRecord: a record exists but does not parse
        """
        try:
            record_json = await self.redis.get(self._key(conversation_id))
        except RedisError as e:
            logger.error(
                "Failed to retrieve conversation",
                conversation_id=str(conversation_id),
                error=str(e),
            )
            raise PersistenceError(
                "Failed to retrieve conversation",
                details={"conversation_id": str(conversation_id)}
            ) from e

        if record_json is None:
            logger.debug("Conversation not found", conversation_id=str(conversation_id))
            return None

        return self._parse(record_json, conversation_id)

    async def list_recent(self, limit: int = 50) -> list[Conversation]:
        """
        List conversations, most recent first.

        Index entries whose record has expired are dropped from the index;
        corrupt records are skipped.
        """
        if limit <= 0:
            return []

        try:
            conversation_ids = await self.redis.zrevrange(self.index_key, 0, limit - 1)
            if not conversation_ids:
                return []
            records = await self.redis.mget([self._key(cid) for cid in conversation_ids])

            stale = [cid for cid, record in zip(conversation_ids, records) if record is None]
            if stale:
                await self.redis.zrem(self.index_key, *stale)
                logger.info("Pruned expired conversations from index", count=len(stale))
        except RedisError as e:
            logger.error("Failed to list conversations", error=str(e))
            raise PersistenceError("Failed to list conversations") from e

        conversations = []
        for cid, record in zip(conversation_ids, records):
            if record is None:
                continue
            try:
                conversations.append(self._parse(record, cid))
            except CorruptConversationRecord:
                continue

        logger.debug("Listed conversations", count=len(conversations))
        return conversations

    async def delete(self, conversation_id: UUID | str) -> bool:
        """
        Delete a conversation.

        Returns:
            True if a record was deleted
        """
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.delete(self._key(conversation_id))
                pipe.zrem(self.index_key, str(conversation_id))
                deleted, _ = await pipe.execute()
        except RedisError as e:
            logger.error(
                "Failed to delete conversation",
                conversation_id=str(conversation_id),
                error=str(e),
            )
            raise PersistenceError(
                "Failed to delete conversation",
                details={"conversation_id": str(conversation_id)}
            ) from e

        logger.info(
            "Deleted conversation" if deleted else "Conversation not found for deletion",
            conversation_id=str(conversation_id),
        )
        return bool(deleted)

    async def ping(self) -> bool:
        """Health probe; never raises."""
        try:
            return bool(await self.redis.ping())
        except RedisError as e:
            logger.warning("Redis ping failed", error=str(e))
            return False

    def _parse(self, record_json: str, conversation_id) -> Conversation:
        try:
            return Conversation.model_validate_json(record_json)
        except ValidationError as e:
            logger.error(
                "Corrupt conversation record",
                conversation_id=str(conversation_id),
                error_count=e.error_count(),
            )
            raise CorruptConversationRecord(
                "Stored conversation record is corrupt",
                details={"conversation_id": str(conversation_id)}
            ) from e
