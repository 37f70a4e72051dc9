"""
OpenAI LLM Provider

Implementation of BaseLLMProvider for OpenAI's GPT models.
Structured output uses the ``json_schema`` response format so the model is
constrained to the requested shape server-side.
"""

import logging

import openai
from openai import AsyncOpenAI
from pydantic import BaseModel

from dbchat.llm.base import BaseLLMProvider
from dbchat.llm.models import LLMRequest, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)


class OpenAIProvider(BaseLLMProvider):
    """
    OpenAI LLM provider implementation.

    Supports all OpenAI chat models including GPT-4o and GPT-4o-mini.
    Uses the official openai Python SDK with async support.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        temperature: float = 0.0,
        max_tokens: int = 2000,
        timeout: int = 30,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Default model to use
            temperature: Default temperature
            max_tokens: Default max tokens
            timeout: Request timeout
        """
        super().__init__(
            provider_name="openai",
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )

        self.model = model
        self.client = AsyncOpenAI(
            api_key=api_key,
            timeout=float(timeout),
        )

        logger.info(f"OpenAI provider initialized with model: {model}", extra={"model": model})

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Generate completion using OpenAI API.

        Args:
            request: LLM request

        Returns:
            LLMResponse with generated content

        Raises:
            openai.APIError: On API errors
            openai.APITimeoutError: On timeout
        """
        request = self._apply_defaults(request)
        self._log_request(request)

        try:
            messages = [{"role": msg.role, "content": msg.content} for msg in request.messages]

            response = await self.client.chat.completions.create(
                model=request.model or self.model,
                messages=messages,
                temperature=request.temperature,
                max_tokens=request.max_tokens,
                **request.metadata,  # response_format and other OpenAI parameters
            )

            llm_response = LLMResponse(
                content=response.choices[0].message.content or "",
                model=response.model,
                usage=LLMUsage(
                    prompt_tokens=response.usage.prompt_tokens,
                    completion_tokens=response.usage.completion_tokens,
                    total_tokens=response.usage.total_tokens,
                ),
                finish_reason=self._map_finish_reason(response.choices[0].finish_reason),
                provider="openai",
                metadata={
                    "id": response.id,
                    "created": response.created,
                    "system_fingerprint": response.system_fingerprint,
                },
            )

            self._log_response(llm_response)
            return llm_response

        except openai.APITimeoutError as e:
            logger.error(f"OpenAI API timeout: {e}")
            raise
        except openai.APIError as e:
            logger.error(f"OpenAI API error: {e}")
            raise

    def _prepare_structured_request(
        self,
        request: LLMRequest,
        response_model: type[BaseModel],
    ) -> LLMRequest:
        request = super()._prepare_structured_request(request, response_model)
        request.metadata["response_format"] = {
            "type": "json_schema",
            "json_schema": {
                "name": response_model.__name__,
                "schema": response_model.model_json_schema(),
            },
        }
        return request

    def _map_finish_reason(self, reason: str | None) -> str:
        """Map OpenAI finish reason to our standard format."""
        if reason == "length":
            return "length"
        elif reason == "content_filter":
            return "content_filter"
        else:
            return "stop"
