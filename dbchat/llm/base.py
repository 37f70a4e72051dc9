"""
Base LLM Provider

Abstract base class defining the interface for all LLM providers.
Ensures consistent API across OpenAI, Anthropic and local model servers,
including structured output: given a prompt and a pydantic model, return
an instance of that model or fail.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from dbchat.llm.models import LLMMessage, LLMRequest, LLMResponse

logger = logging.getLogger(__name__)

StructuredT = TypeVar("StructuredT", bound=BaseModel)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)
_BARE_JSON = re.compile(r"\{.*\}", re.DOTALL)


class StructuredOutputError(ValueError):
    """LLM content could not be parsed into the requested shape."""

    def __init__(self, message: str, content: str | None = None):
        self.content = content
        super().__init__(message)


class BaseLLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    Attributes:
        provider_name: Unique identifier for this provider
        temperature: Default sampling temperature
        max_tokens: Default maximum tokens to generate
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        provider_name: str,
        temperature: float = 0.0,
        max_tokens: int = 2000,
        timeout: int = 30,
    ):
        self.provider_name = provider_name
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

        logger.info(
            f"Initialized {provider_name} provider",
            extra={
                "provider": provider_name,
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
        )

    @abstractmethod
    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Generate a completion from the LLM.

        Args:
            request: LLM request with messages and parameters

        Returns:
            LLMResponse with generated content and metadata

        Raises:
            Exception: Provider-specific errors (API errors, timeouts, etc.)
        """
        pass  # pragma: no cover - abstract method

    async def generate_structured(
        self,
        request: LLMRequest,
        response_model: type[StructuredT],
    ) -> StructuredT:
        """
        Generate a completion constrained to ``response_model``.

        Providers with native schema enforcement extend
        ``_prepare_structured_request``; parsing and validation are shared.

        Raises:
            StructuredOutputError: If the content does not match the model
            Exception: Provider-specific errors from generate()
        """
        prepared = self._prepare_structured_request(
            request.model_copy(deep=True), response_model
        )
        response = await self.generate(prepared)
        return self._parse_structured(response.content, response_model)

    def _prepare_structured_request(
        self,
        request: LLMRequest,
        response_model: type[BaseModel],
    ) -> LLMRequest:
        """Append a JSON-only instruction carrying the model's JSON schema."""
        schema = json.dumps(response_model.model_json_schema(), sort_keys=True)
        instruction = (
            "Respond with a single JSON object and nothing else. "
            f"It must conform to this JSON schema:\n{schema}"
        )
        request.messages.append(LLMMessage(role="system", content=instruction))
        return request

    def _parse_structured(
        self,
        content: str,
        response_model: type[StructuredT],
    ) -> StructuredT:
        if not content or not content.strip():
            raise StructuredOutputError("Empty response content", content)

        match = _FENCED_JSON.search(content) or _BARE_JSON.search(content)
        if not match:
            raise StructuredOutputError("Response contains no JSON object", content)
        json_str = match.group(1) if match.re is _FENCED_JSON else match.group(0)

        try:
            payload = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise StructuredOutputError(f"Invalid JSON in response: {e}", content) from e

        try:
            return response_model.model_validate(payload)
        except PydanticValidationError as e:
            raise StructuredOutputError(
                f"Response does not match {response_model.__name__}: "
                f"{e.error_count()} validation error(s)",
                content,
            ) from e

    def _apply_defaults(self, request: LLMRequest) -> LLMRequest:
        """Apply default temperature and max tokens when unset."""
        if request.temperature is None:
            request.temperature = self.temperature
        if request.max_tokens is None:
            request.max_tokens = self.max_tokens
        return request

    def _log_request(self, request: LLMRequest) -> None:
        """Log request details for debugging."""
        logger.debug(
            f"{self.provider_name} request",
            extra={
                "provider": self.provider_name,
                "message_count": len(request.messages),
                "temperature": request.temperature,
                "max_tokens": request.max_tokens,
            },
        )

    def _log_response(self, response: LLMResponse) -> None:
        """Log response details for debugging."""
        logger.debug(
            f"{self.provider_name} response",
            extra={
                "provider": self.provider_name,
                "model": response.model,
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
                "finish_reason": response.finish_reason,
            },
        )
