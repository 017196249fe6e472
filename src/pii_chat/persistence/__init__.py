"""
Redis persistence layer.

- redis_client.py: Redis connection pooling
- repository.py: Repository pattern for conversation records
- exceptions.py: PersistenceError, CorruptConversationRecord, ConversationNotFound

Storage Strategy:
- Conversations stored as JSON, replaced whole on every save
- Sorted-set index by record date for most-recent-first listing
"""

from pii_chat.persistence.exceptions import (
    ConversationNotFound,
    CorruptConversationRecord,
    PersistenceError,
)
from pii_chat.persistence.redis_client import RedisClient
from pii_chat.persistence.repository import ConversationRepository

__all__ = [
    "RedisClient",
    "ConversationRepository",
    "ConversationNotFound",
    "CorruptConversationRecord",
    "PersistenceError",
]
