"""
Unit tests for chat data models.
"""

import uuid

import pytest
from pydantic import ValidationError

from pii_chat.models.chat_models import ChatRequest, ChatTurn, Conversation


def _request_data(**overrides):
    data = {
        "id": str(uuid.uuid4()),
        "date": "2026-03-01T09:30:00.000Z",
        "message": "My name is John Doe",
        "type": "question",
    }
    data.update(overrides)
    return data


class TestChatRequest:
    def test_valid_request(self):
        request = ChatRequest.model_validate(_request_data())

        assert request.message == "My name is John Doe"
        assert request.conversation_id is None
        assert request.date.tzinfo is not None

    def test_conversation_id_alias(self):
        conversation_id = uuid.uuid4()

        request = ChatRequest.model_validate(_request_data(conversationId=str(conversation_id)))

        assert request.conversation_id == conversation_id

    @pytest.mark.parametrize(
        "field,value",
        [
            ("id", "not-a-uuid"),
            ("date", "yesterday"),
            ("date", "2026-03-01"),
            ("date", 1767225600),
            ("message", ""),
            ("type", "comment"),
        ],
    )
    def test_invalid_fields(self, field, value):
        with pytest.raises(ValidationError) as exc_info:
            ChatRequest.model_validate(_request_data(**{field: value}))

        assert exc_info.value.errors()[0]["loc"][0] == field

    def test_missing_message(self):
        data = _request_data()
        del data["message"]

        with pytest.raises(ValidationError):
            ChatRequest.model_validate(data)


class TestChatTurn:
    def test_empty_pii_is_absent(self, create_turn):
        turn = create_turn("Sunny.", pii=[])

        assert turn.pii is None
        assert "pii" not in turn.model_dump(mode="json")

    def test_pii_serialized_when_present(self, create_turn):
        turn = create_turn("Hello $1!", pii=["John Doe"])

        assert turn.model_dump(mode="json")["pii"] == ["John Doe"]

    def test_message_must_not_be_empty(self):
        with pytest.raises(ValidationError):
            ChatTurn(id=uuid.uuid4(), date="2026-03-01T09:30:00Z", message="", type="answer")


class TestConversation:
    def test_message_ids_derived_from_messages(self, create_turn):
        turns = [create_turn("Q"), create_turn("A")]

        conversation = Conversation(id=uuid.uuid4(), date="2026-03-01T09:30:00Z", messages=turns)

        assert conversation.message_ids == [t.id for t in turns]

    def test_mismatched_message_ids_rejected(self, create_turn):
        with pytest.raises(ValidationError):
            Conversation(
                id=uuid.uuid4(),
                date="2026-03-01T09:30:00Z",
                messages=[create_turn("Q")],
                messageIds=[str(uuid.uuid4())],
            )

    def test_json_round_trip_uses_camel_case(self, create_turn):
        conversation = Conversation(
            id=uuid.uuid4(),
            date="2026-03-01T09:30:00Z",
            messages=[create_turn("Hello $1!", pii=["John Doe"])],
        )

        raw = conversation.model_dump_json(by_alias=True)

        assert '"messageIds"' in raw
        assert Conversation.model_validate_json(raw) == conversation
