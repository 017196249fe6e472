"""
LLM-specific data models for the request/response cycle.

These models are internal to the provider layer and describe the raw
communication with the inference server. They are separate from the chat
models (ChatTurn, Conversation) so the client implementation can change
without touching the pipeline.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict


class LLMGenerationRequest(BaseModel):
    """
    Internal request model for a single model call.

    Used for both the streamed generation call and the one-shot detection
    call; `stream` selects the transport.
    """
    model_config = ConfigDict(frozen=True)

    prompt: str = Field(..., description="User content sent to the model")
    system: Optional[str] = Field(default=None, description="System instructions")
    model: str = Field(..., description="Model name/identifier (e.g., 'qwen2.5:7b')")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: int = Field(default=2048, ge=1, le=32768, description="Maximum tokens to generate")
    stream: bool = Field(default=False, description="Whether the response is streamed")
    stop_sequences: Optional[list[str]] = Field(default=None, description="Stop sequences for generation")
    seed: Optional[int] = Field(default=None, description="Random seed for reproducibility")


class LLMGenerationResponse(BaseModel):
    """
    Internal response model from a one-shot model call.

    Contains the raw generated text plus metadata for logging and metrics.
    """
    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Generated text")
    model_version: str = Field(..., description="Actual model version used")
    finish_reason: str = Field(
        ...,
        description="Why generation stopped: 'stop', 'length', 'incomplete', etc."
    )
    prompt_tokens: Optional[int] = Field(default=None, description="Tokens in prompt")
    completion_tokens: Optional[int] = Field(default=None, description="Tokens in completion")
    latency_ms: int = Field(..., ge=0, description="Generation latency in milliseconds")
    created_at: Optional[str] = Field(default=None, description="ISO timestamp from server")
    raw_metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Provider-specific metadata (for debugging)"
    )
