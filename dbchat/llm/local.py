"""
Local LLM Provider

Implementation of BaseLLMProvider for local models.
Supports Ollama natively and falls back to any OpenAI-compatible endpoint
(vLLM, llama.cpp server).
"""

import logging
from typing import Any

import httpx
from pydantic import BaseModel

from dbchat.llm.base import BaseLLMProvider
from dbchat.llm.models import LLMRequest, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)


class LocalProvider(BaseLLMProvider):
    """
    Local LLM provider implementation.

    Tries the Ollama ``/api/chat`` endpoint first and, on an HTTP failure,
    the OpenAI-compatible ``/v1/chat/completions`` endpoint.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3.1:8b",
        temperature: float = 0.0,
        max_tokens: int = 2000,
        timeout: int = 30,
    ):
        """
        Initialize local provider.

        Args:
            base_url: Base URL for local model server
            model: Model name (e.g., "llama3.1:8b" for Ollama)
            temperature: Default temperature
            max_tokens: Default max tokens
            timeout: Request timeout
        """
        super().__init__(
            provider_name="local",
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )

        self.base_url = base_url.rstrip("/")
        self.model = model
        self.client = httpx.AsyncClient(timeout=float(timeout))

        logger.info(
            f"Local provider initialized: {base_url} with model: {model}",
            extra={"base_url": base_url, "model": model},
        )

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Generate completion using the local model server."""
        request = self._apply_defaults(request)
        self._log_request(request)

        messages = [{"role": msg.role, "content": msg.content} for msg in request.messages]
        model = request.model or self.model
        json_schema = request.metadata.get("json_schema")

        try:
            response = await self._call_ollama(
                {
                    "model": model,
                    "messages": messages,
                    "stream": False,
                    "format": json_schema,
                    "options": {
                        "temperature": request.temperature,
                        "num_predict": request.max_tokens,
                    },
                }
            )
        except httpx.HTTPError as e:
            logger.debug(f"Ollama endpoint unavailable, trying OpenAI-compatible API: {e}")
            payload: dict[str, Any] = {
                "model": model,
                "messages": messages,
                "temperature": request.temperature,
                "max_tokens": request.max_tokens,
            }
            if json_schema is not None:
                payload["response_format"] = {"type": "json_object"}
            response = await self._call_openai_compatible(payload)

        content = response.get("message", {}).get("content", "") or response.get(
            "choices", [{}]
        )[0].get("message", {}).get("content", "")
        prompt_tokens = response.get("prompt_eval_count", 0) or response.get("usage", {}).get(
            "prompt_tokens", 0
        )
        completion_tokens = response.get("eval_count", 0) or response.get("usage", {}).get(
            "completion_tokens", 0
        )

        llm_response = LLMResponse(
            content=content or "",
            model=response.get("model", model),
            usage=LLMUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            finish_reason="stop",
            provider="local",
            metadata={"base_url": self.base_url},
        )

        self._log_response(llm_response)
        return llm_response

    def _prepare_structured_request(
        self,
        request: LLMRequest,
        response_model: type[BaseModel],
    ) -> LLMRequest:
        request = super()._prepare_structured_request(request, response_model)
        request.metadata["json_schema"] = response_model.model_json_schema()
        return request

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def _call_ollama(self, payload: dict) -> dict:
        """Call Ollama-specific endpoint."""
        if payload.get("format") is None:
            payload = {k: v for k, v in payload.items() if k != "format"}
        response = await self.client.post(
            f"{self.base_url}/api/chat",
            json=payload,
        )
        response.raise_for_status()
        return response.json()

    async def _call_openai_compatible(self, payload: dict) -> dict:
        """Call OpenAI-compatible endpoint."""
        response = await self.client.post(
            f"{self.base_url}/v1/chat/completions",
            json=payload,
        )
        response.raise_for_status()
        return response.json()
