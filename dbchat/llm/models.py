"""
LLM Request and Response Models

Pydantic models for LLM provider interactions.
Provider-agnostic models that work across OpenAI, Anthropic and local servers.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field


class LLMMessage(BaseModel):
    """Single message in an LLM conversation."""

    role: Literal["system", "user", "assistant"] = Field(..., description="Message role")
    content: str = Field(..., description="Message content", min_length=1)


class LLMRequest(BaseModel):
    """Request to an LLM provider."""

    messages: list[LLMMessage] = Field(..., description="Conversation messages", min_length=1)
    temperature: float | None = Field(
        None, ge=0.0, le=2.0, description="Sampling temperature (overrides default)"
    )
    max_tokens: int | None = Field(
        None, gt=0, description="Maximum tokens to generate (overrides default)"
    )
    model: str | None = Field(None, description="Specific model to use (overrides default)")
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Additional provider-specific parameters"
    )


class LLMUsage(BaseModel):
    """Token usage information."""

    prompt_tokens: int = Field(..., ge=0, description="Number of tokens in the prompt")
    completion_tokens: int = Field(..., ge=0, description="Number of tokens in the completion")
    total_tokens: int = Field(..., ge=0, description="Total tokens used")


class LLMResponse(BaseModel):
    """Response from an LLM provider."""

    content: str = Field(..., description="Generated text content")
    model: str = Field(..., description="Model that generated the response")
    usage: LLMUsage = Field(..., description="Token usage information")
    finish_reason: Literal["stop", "length", "content_filter", "error"] = Field(
        ..., description="Reason the generation stopped"
    )
    provider: str = Field(..., description="Provider that handled the request")
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Additional provider-specific response data"
    )
