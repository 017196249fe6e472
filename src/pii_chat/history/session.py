"""
Conversation sessions.

A session is opened explicitly for one conversation id, seeded with the
turns already stored under that id, and closed when the user switches
away. The active conversation id is always passed in; nothing here keeps
a module-level "current conversation".
"""

from datetime import datetime, timezone
from typing import Optional, Sequence
from uuid import UUID, uuid4

import structlog

from pii_chat.models.chat_models import ChatTurn, Conversation
from pii_chat.persistence.repository import ConversationRepository


logger = structlog.get_logger(__name__)


class ConversationSession:
    """Buffered turns of one conversation, saved as a whole record."""

    def __init__(
        self,
        conversation_id: UUID,
        seed_turns: Sequence[ChatTurn],
        repository: ConversationRepository,
    ):
        self.conversation_id = conversation_id
        self.repository = repository
        self._turns: list[ChatTurn] = list(seed_turns)
        self._closed = False

    @property
    def turns(self) -> list[ChatTurn]:
        return list(self._turns)

    @property
    def closed(self) -> bool:
        return self._closed

    def append(self, *turns: ChatTurn) -> None:
        if self._closed:
            raise RuntimeError(f"Session {self.conversation_id} is closed")
        self._turns.extend(turns)

    async def commit(self) -> Conversation:
        """
        Save the buffered turns, replacing the stored record.

        Raises:
            PersistenceError: the store rejected the write
        """
        if self._closed:
            raise RuntimeError(f"Session {self.conversation_id} is closed")

        conversation = Conversation(
            id=self.conversation_id,
            date=datetime.now(timezone.utc),
            messages=self._turns,
        )
        await self.repository.save(conversation)
        return conversation

    def close(self) -> None:
        self._closed = True
        self._turns = []
        logger.debug("Session closed", conversation_id=str(self.conversation_id))


class SessionManager:
    """Opens sessions against the conversation repository."""

    def __init__(self, repository: ConversationRepository):
        self.repository = repository

    async def open(self, conversation_id: Optional[UUID] = None) -> ConversationSession:
        """
        Open a session; a missing id (or an unknown one) starts empty.

        A fresh id is minted when none is given. A stored record that no
        longer parses raises CorruptConversationRecord instead of seeding
        an empty session, so a commit never overwrites it.
        """
        if conversation_id is None:
            conversation_id = uuid4()
            seed: list[ChatTurn] = []
            logger.info("Started new conversation", conversation_id=str(conversation_id))
        else:
            stored = await self.repository.get(conversation_id)
            seed = stored.messages if stored is not None else []
            logger.debug(
                "Opened conversation",
                conversation_id=str(conversation_id),
                seed_turns=len(seed),
            )

        return ConversationSession(conversation_id, seed, self.repository)

    async def switch(
        self,
        current: Optional[ConversationSession],
        conversation_id: Optional[UUID],
    ) -> ConversationSession:
        """Close `current` (if any) and open `conversation_id`."""
        if current is not None:
            current.close()
        return await self.open(conversation_id)
