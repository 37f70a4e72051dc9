"""
LLM Provider Module

Multi-provider LLM abstraction layer supporting OpenAI, Anthropic, and Local models.

Usage:
    from dbchat.llm import LLMProviderFactory, LLMRequest, LLMMessage
    from dbchat.config import get_settings

    config = get_settings()
    provider = LLMProviderFactory.create_default_provider(config.llm)

    request = LLMRequest(
        messages=[LLMMessage(role="user", content="Hello!")],
    )

    response = await provider.generate(request)
    print(response.content)
"""

from dbchat.llm.anthropic import AnthropicProvider
from dbchat.llm.base import BaseLLMProvider, StructuredOutputError
from dbchat.llm.factory import LLMProviderFactory
from dbchat.llm.local import LocalProvider
from dbchat.llm.models import LLMMessage, LLMRequest, LLMResponse, LLMUsage
from dbchat.llm.openai import OpenAIProvider

__all__ = [
    # Base classes
    "BaseLLMProvider",
    "StructuredOutputError",
    # Models
    "LLMMessage",
    "LLMRequest",
    "LLMResponse",
    "LLMUsage",
    # Factory
    "LLMProviderFactory",
    # Providers
    "OpenAIProvider",
    "AnthropicProvider",
    "LocalProvider",
]
