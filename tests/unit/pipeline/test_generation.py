"""Unit tests for the generation adapter and its event stream."""

import pytest

from pii_chat.llm.exceptions import LLMConnectionError, ProviderError
from pii_chat.pipeline.generation import GenerationAdapter


@pytest.fixture
def make_adapter(fake_llm_client, prompt_builder):
    def _make(**client_kwargs):
        client = fake_llm_client(**client_kwargs)
        adapter = GenerationAdapter(client, prompt_builder, model="qwen2.5:7b")
        return adapter, client

    return _make


@pytest.mark.asyncio
async def test_events_in_protocol_order(make_adapter):
    adapter, _ = make_adapter(stream_chunks=["Hello ", "$1", "!"])

    stream = await adapter.generate("My name is John Doe", "sys")
    events = [event async for event in stream]

    assert [e.type for e in events] == [
        "start-step",
        "text-start",
        "text-delta",
        "text-delta",
        "text-delta",
        "text-end",
        "finish-step",
    ]
    assert [e.delta for e in events if e.type == "text-delta"] == ["Hello ", "$1", "!"]
    # One text part id shared by start, deltas and end
    assert len({e.id for e in events if hasattr(e, "id")}) == 1


@pytest.mark.asyncio
async def test_text_resolves_after_drain(make_adapter):
    adapter, _ = make_adapter(stream_chunks=["Hello ", "$1!"])

    stream = await adapter.generate("My name is John Doe", "sys")
    async for _ in stream:
        pass

    assert await stream.text() == "Hello $1!"


@pytest.mark.asyncio
async def test_request_carries_prompt_and_instructions(make_adapter):
    adapter, client = make_adapter(stream_chunks=["ok"])

    await adapter.generate("raw user text", "placeholder rules")

    request = client.requests[0]
    assert request.prompt == "raw user text"
    assert request.system == "placeholder rules"
    assert request.stream is True
    assert request.model == "qwen2.5:7b"


@pytest.mark.asyncio
async def test_connect_failure_raises_before_any_event(make_adapter):
    adapter, _ = make_adapter(stream_error=LLMConnectionError("refused"))

    with pytest.raises(LLMConnectionError):
        await adapter.generate("hi", "sys")


@pytest.mark.asyncio
async def test_mid_stream_failure_propagates_and_fails_text(make_adapter):
    adapter, client = make_adapter(stream_chunks=["a", "b"], fail_after=1)

    stream = await adapter.generate("hi", "sys")
    received = []
    with pytest.raises(ProviderError):
        async for event in stream:
            received.append(event.type)

    assert received == ["start-step", "text-start", "text-delta"]
    assert client.streams[0].closed
    with pytest.raises(ProviderError):
        await stream.text()


@pytest.mark.asyncio
async def test_stream_can_only_be_iterated_once(make_adapter):
    adapter, _ = make_adapter(stream_chunks=["x"])

    stream = await adapter.generate("hi", "sys")
    async for _ in stream:
        pass

    with pytest.raises(RuntimeError):
        stream.__aiter__()


@pytest.mark.asyncio
async def test_empty_generation(make_adapter):
    adapter, _ = make_adapter(stream_chunks=[])

    stream = await adapter.generate("hi", "sys")
    types = [event.type async for event in stream]

    assert types == ["start-step", "text-start", "text-end", "finish-step"]
    assert await stream.text() == ""
