"""Tests for the Anthropic and local providers with mocked transports."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from dbchat.llm.anthropic import AnthropicProvider
from dbchat.llm.local import LocalProvider
from dbchat.llm.models import LLMMessage, LLMRequest
from dbchat.models.agent import GeneratedQuery


def _request() -> LLMRequest:
    return LLMRequest(
        messages=[
            LLMMessage(role="system", content="You write SQL."),
            LLMMessage(role="user", content="How many users?"),
        ]
    )


class TestAnthropicProvider:
    """Test Anthropic provider."""

    @pytest.fixture
    def provider(self):
        return AnthropicProvider(api_key="sk-ant-REDACTED", max_tokens=1000)

    @pytest.fixture
    def message(self):
        block = MagicMock()
        block.type = "text"
        block.text = "SELECT COUNT(*) FROM users"
        response = MagicMock()
        response.content = [block]
        response.model = "claude-3-5-sonnet-20241022"
        response.usage.input_tokens = 12
        response.usage.output_tokens = 8
        response.stop_reason = "end_turn"
        response.id = "msg_123"
        return response

    @pytest.mark.asyncio
    async def test_system_messages_passed_separately(self, provider, message):
        with patch.object(
            provider.client.messages, "create", new_callable=AsyncMock, return_value=message
        ) as mock_create:
            response = await provider.generate(_request())

        kwargs = mock_create.call_args.kwargs
        assert kwargs["system"] == "You write SQL."
        assert kwargs["messages"] == [{"role": "user", "content": "How many users?"}]
        assert kwargs["max_tokens"] == 1000
        assert response.content == "SELECT COUNT(*) FROM users"
        assert response.usage.total_tokens == 20
        assert response.finish_reason == "stop"
        assert response.provider == "anthropic"

    @pytest.mark.asyncio
    async def test_max_tokens_stop_reason(self, provider, message):
        message.stop_reason = "max_tokens"
        with patch.object(
            provider.client.messages, "create", new_callable=AsyncMock, return_value=message
        ):
            response = await provider.generate(_request())

        assert response.finish_reason == "length"

    @pytest.mark.asyncio
    async def test_structured_instruction_joined_into_system(self, provider, message):
        message.content[0].text = (
            '{"sql": "SELECT COUNT(*) FROM users", "explanation": "Counts users.", '
            '"confidence": 0.9}'
        )
        with patch.object(
            provider.client.messages, "create", new_callable=AsyncMock, return_value=message
        ) as mock_create:
            result = await provider.generate_structured(_request(), GeneratedQuery)

        system = mock_create.call_args.kwargs["system"]
        assert system.startswith("You write SQL.\n\n")
        assert "JSON schema" in system
        assert result.confidence == 0.9


class TestLocalProvider:
    """Test local provider with Ollama and OpenAI-compatible fallbacks."""

    @pytest.fixture
    def provider(self):
        return LocalProvider(base_url="http://localhost:11434/", model="llama3.1:8b")

    def test_strips_trailing_slash(self, provider):
        assert provider.base_url == "http://localhost:11434"

    @pytest.mark.asyncio
    async def test_ollama_response(self, provider):
        ollama = AsyncMock(
            return_value={
                "model": "llama3.1:8b",
                "message": {"role": "assistant", "content": "SELECT 1"},
                "prompt_eval_count": 20,
                "eval_count": 4,
            }
        )
        with patch.object(provider, "_call_ollama", ollama):
            response = await provider.generate(_request())

        payload = ollama.call_args.args[0]
        assert payload["stream"] is False
        assert payload["options"]["temperature"] == 0.0
        assert response.content == "SELECT 1"
        assert response.usage.total_tokens == 24

    @pytest.mark.asyncio
    async def test_falls_back_to_openai_compatible(self, provider):
        ollama = AsyncMock(side_effect=httpx.ConnectError("refused"))
        compatible = AsyncMock(
            return_value={
                "model": "llama3.1:8b",
                "choices": [{"message": {"content": "SELECT 2"}}],
                "usage": {"prompt_tokens": 5, "completion_tokens": 2},
            }
        )
        with patch.object(provider, "_call_ollama", ollama), patch.object(
            provider, "_call_openai_compatible", compatible
        ):
            response = await provider.generate(_request())

        assert response.content == "SELECT 2"
        assert response.usage.total_tokens == 7
        assert "response_format" not in compatible.call_args.args[0]

    @pytest.mark.asyncio
    async def test_structured_request_sends_schema(self, provider):
        ollama = AsyncMock(
            return_value={
                "message": {
                    "content": '{"sql": "SELECT 1", "explanation": "one", "confidence": 0.5}'
                }
            }
        )
        with patch.object(provider, "_call_ollama", ollama):
            result = await provider.generate_structured(_request(), GeneratedQuery)

        payload = ollama.call_args.args[0]
        assert payload["format"]["title"] == "GeneratedQuery"
        assert result.sql == "SELECT 1"

    @pytest.mark.asyncio
    async def test_aclose(self, provider):
        await provider.aclose()

        assert provider.client.is_closed
