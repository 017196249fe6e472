"""Unit tests for conversation sessions."""

import uuid
from unittest.mock import AsyncMock

import pytest

from pii_chat.history.session import SessionManager
from pii_chat.models.chat_models import Conversation
from pii_chat.models.enums import TurnType
from pii_chat.persistence.exceptions import CorruptConversationRecord


@pytest.mark.asyncio
async def test_open_without_id_mints_new_conversation(mock_repository):
    session = await SessionManager(mock_repository).open()

    assert isinstance(session.conversation_id, uuid.UUID)
    assert session.turns == []
    mock_repository.get.assert_not_called()


@pytest.mark.asyncio
async def test_open_seeds_stored_turns(mock_repository, create_turn):
    stored = Conversation(
        id=uuid.uuid4(),
        date="2026-03-01T09:30:00Z",
        messages=[create_turn("Hi"), create_turn("Hello", TurnType.ANSWER)],
    )
    mock_repository.store[stored.id] = stored

    session = await SessionManager(mock_repository).open(stored.id)

    assert [t.message for t in session.turns] == ["Hi", "Hello"]


@pytest.mark.asyncio
async def test_open_unknown_id_starts_empty(mock_repository):
    conversation_id = uuid.uuid4()

    session = await SessionManager(mock_repository).open(conversation_id)

    assert session.conversation_id == conversation_id
    assert session.turns == []


@pytest.mark.asyncio
async def test_commit_replaces_whole_record(mock_repository, create_turn):
    manager = SessionManager(mock_repository)
    session = await manager.open()
    session.append(create_turn("Q1"), create_turn("A1", TurnType.ANSWER))
    await session.commit()
    session.close()

    reopened = await manager.open(session.conversation_id)
    reopened.append(create_turn("Q2"))
    conversation = await reopened.commit()

    assert [m.message for m in conversation.messages] == ["Q1", "A1", "Q2"]
    assert conversation.message_ids == [m.id for m in conversation.messages]
    assert mock_repository.save.await_count == 2


@pytest.mark.asyncio
async def test_closed_session_rejects_writes(mock_repository, create_turn):
    session = await SessionManager(mock_repository).open()
    session.close()

    with pytest.raises(RuntimeError):
        session.append(create_turn("late"))
    with pytest.raises(RuntimeError):
        await session.commit()


@pytest.mark.asyncio
async def test_switch_closes_current(mock_repository):
    manager = SessionManager(mock_repository)
    current = await manager.open()
    target = uuid.uuid4()

    switched = await manager.switch(current, target)

    assert current.closed
    assert switched.conversation_id == target


@pytest.mark.asyncio
async def test_open_corrupt_record_raises(mock_repository):
    conversation_id = uuid.uuid4()
    mock_repository.get = AsyncMock(
        side_effect=CorruptConversationRecord("Stored conversation record is corrupt")
    )

    with pytest.raises(CorruptConversationRecord):
        await SessionManager(mock_repository).open(conversation_id)
