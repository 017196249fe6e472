"""
Unit tests for OllamaClient against an in-process httpx.MockTransport.
"""

import json

import httpx
import pytest

from pii_chat.llm.exceptions import (
    LLMConnectionError,
    LLMGenerationError,
    LLMModelNotAvailableError,
    LLMTimeoutError,
)
from pii_chat.llm.ollama_client import OllamaClient
from pii_chat.models.llm_models import LLMGenerationRequest


def _ndjson(*lines: dict) -> bytes:
    return "".join(json.dumps(line) + "\n" for line in lines).encode()


def _client(handler) -> OllamaClient:
    return OllamaClient(
        base_url="http://ollama.test",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def stream_request():
    return LLMGenerationRequest(
        prompt="My name is John Doe",
        system="use placeholders",
        model="qwen2.5:7b",
        temperature=0.7,
        max_tokens=128,
        stream=True,
    )


@pytest.fixture
def detect_request():
    return LLMGenerationRequest(
        prompt="My name is John Doe",
        system="wrap pii",
        model="qwen2.5:3b",
        temperature=0.0,
        max_tokens=128,
    )


@pytest.mark.asyncio
async def test_open_stream_yields_content_chunks(stream_request):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["payload"] = json.loads(request.content)
        body = _ndjson(
            {"message": {"role": "assistant", "content": "Hello "}, "done": False},
            {"message": {"role": "assistant", "content": "$1!"}, "done": False},
            {"message": {"role": "assistant", "content": ""}, "done": True,
             "done_reason": "stop", "prompt_eval_count": 10, "eval_count": 3},
        )
        return httpx.Response(200, content=body)

    async with _client(handler) as client:
        stream = await client.open_stream(stream_request)
        chunks = [chunk async for chunk in stream]

    assert chunks == ["Hello ", "$1!"]
    assert stream.done_reason == "stop"
    assert seen["path"] == "/api/chat"
    assert seen["payload"]["stream"] is True
    assert seen["payload"]["messages"] == [
        {"role": "system", "content": "use placeholders"},
        {"role": "user", "content": "My name is John Doe"},
    ]
    assert seen["payload"]["options"]["num_predict"] == 128


@pytest.mark.asyncio
async def test_open_stream_maps_404_to_model_not_available(stream_request):
    def handler(request):
        return httpx.Response(404, json={"error": "model not found"})

    async with _client(handler) as client:
        with pytest.raises(LLMModelNotAvailableError):
            await client.open_stream(stream_request)


@pytest.mark.asyncio
async def test_open_stream_maps_connect_error(stream_request):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(LLMConnectionError):
            await client.open_stream(stream_request)


@pytest.mark.asyncio
async def test_open_stream_maps_timeout(stream_request):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    async with _client(handler) as client:
        with pytest.raises(LLMTimeoutError):
            await client.open_stream(stream_request)


@pytest.mark.asyncio
async def test_error_line_mid_stream_raises(stream_request):
    def handler(request):
        body = _ndjson(
            {"message": {"content": "Hel"}, "done": False},
            {"error": "out of memory"},
        )
        return httpx.Response(200, content=body)

    async with _client(handler) as client:
        stream = await client.open_stream(stream_request)
        received = []
        with pytest.raises(LLMGenerationError):
            async for chunk in stream:
                received.append(chunk)

    assert received == ["Hel"]


@pytest.mark.asyncio
async def test_stream_is_not_restartable(stream_request):
    def handler(request):
        return httpx.Response(200, content=_ndjson({"message": {"content": "x"}, "done": True}))

    async with _client(handler) as client:
        stream = await client.open_stream(stream_request)
        [chunk async for chunk in stream]
        with pytest.raises(RuntimeError):
            stream.__aiter__()


@pytest.mark.asyncio
async def test_generate_returns_response_text(detect_request):
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["payload"] = json.loads(request.content)
        return httpx.Response(200, json={
            "model": "qwen2.5:3b",
            "response": "My name is <s>John Doe</s>",
            "done": True,
            "done_reason": "stop",
            "prompt_eval_count": 40,
            "eval_count": 9,
        })

    async with _client(handler) as client:
        response = await client.generate(detect_request)

    assert response.content == "My name is <s>John Doe</s>"
    assert response.finish_reason == "stop"
    assert response.completion_tokens == 9
    assert seen["path"] == "/api/generate"
    assert seen["payload"]["system"] == "wrap pii"
    assert seen["payload"]["stream"] is False


@pytest.mark.asyncio
async def test_generate_maps_server_error(detect_request):
    def handler(request):
        return httpx.Response(500, text="boom")

    async with _client(handler) as client:
        with pytest.raises(LLMGenerationError) as exc_info:
            await client.generate(detect_request)

    assert exc_info.value.details["status"] == 500


@pytest.mark.asyncio
async def test_generate_maps_unexpected_transport_error(detect_request):
    def handler(request):
        raise httpx.RemoteProtocolError("peer closed connection", request=request)

    async with _client(handler) as client:
        with pytest.raises(LLMGenerationError) as exc_info:
            await client.generate(detect_request)

    assert exc_info.value.details["error_type"] == "RemoteProtocolError"


@pytest.mark.asyncio
async def test_open_stream_maps_unexpected_transport_error(stream_request):
    def handler(request):
        raise httpx.DecodingError("bad gzip", request=request)

    async with _client(handler) as client:
        with pytest.raises(LLMGenerationError):
            await client.open_stream(stream_request)


@pytest.mark.asyncio
async def test_health_check():
    def ok(request):
        return httpx.Response(200, json={"models": []})

    def down(request):
        raise httpx.ConnectError("refused", request=request)

    async with _client(ok) as client:
        assert await client.health_check() is True
    async with _client(down) as client:
        assert await client.health_check() is False
