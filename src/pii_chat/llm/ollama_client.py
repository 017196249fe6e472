"""
Ollama client implementation for LLM inference.

Communicates with Ollama API using httpx AsyncClient. Supports:
- One-shot generation (POST /api/generate), used for PII detection
- Streamed chat (POST /api/chat, NDJSON lines), used for answer generation
- Connection pooling and health checks
"""

import json
import time
from typing import AsyncIterator, Optional
import httpx
import structlog

from pii_chat.llm.base_client import BaseLLMClient, LLMTextStream
from pii_chat.llm.exceptions import (
    LLMConnectionError,
    LLMGenerationError,
    LLMTimeoutError,
    LLMModelNotAvailableError,
    ProviderError,
)
from pii_chat.models.llm_models import LLMGenerationRequest, LLMGenerationResponse
from pii_chat.monitoring.metrics import llm_tokens_total


logger = structlog.get_logger(__name__)


def _build_options(request: LLMGenerationRequest) -> dict:
    options = {
        "temperature": request.temperature,
        "num_predict": request.max_tokens,
    }
    if request.seed is not None:
        options["seed"] = request.seed
    if request.stop_sequences:
        options["stop"] = request.stop_sequences
    return options


def _record_tokens(model: str, data: dict) -> None:
    prompt_tokens = data.get("prompt_eval_count")
    completion_tokens = data.get("eval_count")
    if prompt_tokens:
        llm_tokens_total.labels(model=model, token_type="prompt").inc(prompt_tokens)
    if completion_tokens:
        llm_tokens_total.labels(model=model, token_type="completion").inc(completion_tokens)


async def _raise_for_status(response: httpx.Response, model: str) -> None:
    """Translate an error status into the matching ProviderError."""
    if response.is_success:
        return

    await response.aread()
    status_code = response.status_code
    error_text = response.text

    logger.error(
        "Ollama HTTP error",
        status_code=status_code,
        error_text=error_text,
        model=model,
    )

    if status_code == 404:
        raise LLMModelNotAvailableError(
            f"Model not found: {model}",
            details={"model": model, "status": status_code}
        )
    if status_code >= 500:
        raise LLMGenerationError(
            f"Ollama server error: {status_code}",
            details={"status": status_code, "error": error_text}
        )
    raise LLMGenerationError(
        f"Ollama client error: {status_code}",
        details={"status": status_code, "error": error_text}
    )


class OllamaTextStream(LLMTextStream):
    """
    Streamed /api/chat response.

    Each NDJSON line carries a `message.content` fragment; the final line
    has `done: true` plus token counts. An `error` line aborts the stream.
    """

    def __init__(self, response: httpx.Response, model: str):
        self._response = response
        self._model = model
        self._consumed = False
        self.done_reason: Optional[str] = None

    def __aiter__(self) -> AsyncIterator[str]:
        if self._consumed:
            raise RuntimeError("Ollama stream can only be iterated once")
        self._consumed = True
        return self._chunks()

    async def _chunks(self) -> AsyncIterator[str]:
        try:
            async for line in self._response.aiter_lines():
                if not line.strip():
                    continue

                try:
                    chunk = json.loads(line)
                except json.JSONDecodeError as e:
                    raise LLMGenerationError(
                        "Invalid JSON line in Ollama stream",
                        details={"parse_error": str(e)}
                    )

                if "error" in chunk:
                    raise LLMGenerationError(
                        f"Ollama stream error: {chunk['error']}",
                        details={"model": self._model}
                    )

                content = chunk.get("message", {}).get("content", "")
                if content:
                    yield content

                if chunk.get("done"):
                    self.done_reason = chunk.get("done_reason", "stop")
                    _record_tokens(chunk.get("model", self._model), chunk)
                    break

        except httpx.TimeoutException as e:
            logger.warning("Ollama stream timeout", model=self._model, error=str(e))
            raise LLMTimeoutError(
                "Stream timed out",
                details={"model": self._model}
            )
        except httpx.HTTPError as e:
            logger.warning("Ollama stream interrupted", model=self._model, error=str(e))
            raise LLMConnectionError(
                f"Stream interrupted: {str(e)}",
                details={"error_type": type(e).__name__}
            )
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if not self._response.is_closed:
            await self._response.aclose()


class OllamaClient(BaseLLMClient):
    """
    Ollama-specific LLM client using httpx for async HTTP communication.

    API Endpoints:
    - POST /api/generate: One-shot completion (detection pass)
    - POST /api/chat: Streamed chat completion (generation pass)
    - GET /api/tags: Health check

    Every call is a single attempt; failures are mapped onto ProviderError
    subclasses and never retried here.
    """

    def __init__(
        self,
        base_url: str = "http://ollama:11434",
        timeout: int = 120,
        connection_limits: Optional[httpx.Limits] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs
    ):
        """
        Initialize Ollama client.

        Args:
            base_url: Ollama server URL
            timeout: Request timeout in seconds
            connection_limits: httpx connection pool limits (default: 10 max connections)
            transport: Optional httpx transport (tests plug in httpx.MockTransport)
            **kwargs: Additional config
        """
        super().__init__(base_url, timeout, **kwargs)

        if connection_limits is None:
            connection_limits = httpx.Limits(
                max_keepalive_connections=5,
                max_connections=10,
                keepalive_expiry=30.0
            )

        self._client: Optional[httpx.AsyncClient] = None
        self._connection_limits = connection_limits
        self._transport = transport

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                limits=self._connection_limits,
                transport=self._transport,
                follow_redirects=True
            )
            logger.debug("Created new httpx AsyncClient")
        return self._client

    async def generate(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        """
        Generate a completion using POST /api/generate.

        Payload:
        {
            "model": "qwen2.5:3b",
            "prompt": "...",
            "system": "...",
            "stream": false,
            "options": {"temperature": 0.0, "num_predict": 1024}
        }
        """
        start_time = time.time()

        payload = {
            "model": request.model,
            "prompt": request.prompt,
            "stream": False,
            "options": _build_options(request),
        }
        if request.system:
            payload["system"] = request.system

        logger.info(
            "Sending generation request to Ollama",
            model=request.model,
            prompt_length=len(request.prompt),
            temperature=request.temperature,
            max_tokens=request.max_tokens,
        )

        try:
            client = await self._get_client()
            response = await client.post("/api/generate", json=payload)
            await _raise_for_status(response, request.model)
            response_data = response.json()

        except httpx.TimeoutException as e:
            logger.warning("Ollama request timeout", timeout=self.timeout, error=str(e))
            raise LLMTimeoutError(
                f"Request timeout after {self.timeout}s",
                details={"timeout": self.timeout}
            )
        except (httpx.NetworkError, httpx.ConnectError) as e:
            logger.warning("Ollama network error", error=str(e))
            raise LLMConnectionError(
                f"Network error: {str(e)}",
                details={"error_type": type(e).__name__}
            )
        except json.JSONDecodeError as e:
            logger.error("Failed to parse Ollama response JSON", error=str(e))
            raise LLMGenerationError(
                "Invalid JSON response from Ollama",
                details={"parse_error": str(e)}
            )
        except ProviderError:
            raise
        except Exception as e:
            logger.error(
                "Unexpected error in Ollama generation",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise LLMGenerationError(
                f"Unexpected error: {str(e)}",
                details={"error_type": type(e).__name__}
            ) from e

        latency_ms = int((time.time() - start_time) * 1000)
        model_version = response_data.get("model", request.model)
        finish_reason = response_data.get("done_reason") or (
            "stop" if response_data.get("done") else "incomplete"
        )

        logger.info(
            "Ollama generation successful",
            model=model_version,
            latency_ms=latency_ms,
            prompt_tokens=response_data.get("prompt_eval_count"),
            completion_tokens=response_data.get("eval_count"),
            finish_reason=finish_reason,
        )
        _record_tokens(model_version, response_data)

        return LLMGenerationResponse(
            content=response_data.get("response", ""),
            model_version=model_version,
            finish_reason=finish_reason,
            prompt_tokens=response_data.get("prompt_eval_count"),
            completion_tokens=response_data.get("eval_count"),
            latency_ms=latency_ms,
            created_at=response_data.get("created_at"),
            raw_metadata={
                "total_duration": response_data.get("total_duration"),
                "load_duration": response_data.get("load_duration"),
                "eval_duration": response_data.get("eval_duration"),
            }
        )

    async def open_stream(self, request: LLMGenerationRequest) -> OllamaTextStream:
        """
        Open a streamed chat completion using POST /api/chat.

        Payload:
        {
            "model": "qwen2.5:7b",
            "messages": [
                {"role": "system", "content": "..."},
                {"role": "user", "content": "..."}
            ],
            "stream": true,
            "options": {...}
        }

        The request is sent and the status line checked before returning.
        """
        messages = []
        if request.system:
            messages.append({"role": "system", "content": request.system})
        messages.append({"role": "user", "content": request.prompt})

        payload = {
            "model": request.model,
            "messages": messages,
            "stream": True,
            "options": _build_options(request),
        }

        logger.info(
            "Opening chat stream to Ollama",
            model=request.model,
            prompt_length=len(request.prompt),
            temperature=request.temperature,
            max_tokens=request.max_tokens,
        )

        try:
            client = await self._get_client()
            http_request = client.build_request("POST", "/api/chat", json=payload)
            response = await client.send(http_request, stream=True)
        except httpx.TimeoutException as e:
            logger.warning("Ollama stream open timeout", timeout=self.timeout, error=str(e))
            raise LLMTimeoutError(
                f"Request timeout after {self.timeout}s",
                details={"timeout": self.timeout}
            )
        except (httpx.NetworkError, httpx.ConnectError) as e:
            logger.warning("Ollama network error", error=str(e))
            raise LLMConnectionError(
                f"Network error: {str(e)}",
                details={"error_type": type(e).__name__}
            )
        except Exception as e:
            logger.error(
                "Unexpected error opening Ollama stream",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise LLMGenerationError(
                f"Unexpected error: {str(e)}",
                details={"error_type": type(e).__name__}
            ) from e

        try:
            await _raise_for_status(response, request.model)
        except Exception:
            await response.aclose()
            raise

        return OllamaTextStream(response, request.model)

    async def health_check(self) -> bool:
        """
        Check Ollama server health via GET /api/tags.

        Returns True if server responds, False otherwise.
        """
        try:
            client = await self._get_client()
            response = await client.get("/api/tags", timeout=5.0)
            response.raise_for_status()
            logger.debug("Ollama health check passed")
            return True
        except Exception as e:
            logger.warning("Ollama health check failed", error=str(e))
            return False

    async def close(self):
        """Close the HTTP client connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed Ollama client connection")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
