"""
LLM Provider Factory

Factory and registry for creating LLM provider instances based on configuration.
Supports OpenAI, Anthropic, and Local providers.
"""

import logging
from typing import Literal

from dbchat.config import LLMSettings
from dbchat.llm.anthropic import AnthropicProvider
from dbchat.llm.base import BaseLLMProvider
from dbchat.llm.local import LocalProvider
from dbchat.llm.openai import OpenAIProvider

logger = logging.getLogger(__name__)


class LLMProviderFactory:
    """
    Factory for creating LLM provider instances.

    Handles provider selection and per-agent overrides.
    """

    PROVIDERS = {
        "openai": OpenAIProvider,
        "anthropic": AnthropicProvider,
        "local": LocalProvider,
    }

    @staticmethod
    def create_provider(
        provider_type: Literal["openai", "anthropic", "local"],
        config: LLMSettings,
    ) -> BaseLLMProvider:
        """
        Create an LLM provider instance.

        Args:
            provider_type: Type of provider to create
            config: LLM configuration settings

        Returns:
            Configured provider instance

        Raises:
            ValueError: If provider type is unknown or required config is missing
        """
        if provider_type not in LLMProviderFactory.PROVIDERS:
            raise ValueError(
                f"Unknown provider type: {provider_type}. "
                f"Available providers: {list(LLMProviderFactory.PROVIDERS.keys())}"
            )

        logger.info(f"Creating {provider_type} provider", extra={"provider": provider_type})

        if provider_type == "openai":
            return LLMProviderFactory._create_openai(config)
        elif provider_type == "anthropic":
            return LLMProviderFactory._create_anthropic(config)
        return LLMProviderFactory._create_local(config)

    @staticmethod
    def create_default_provider(config: LLMSettings) -> BaseLLMProvider:
        """Create provider using default_provider from config."""
        return LLMProviderFactory.create_provider(config.default_provider, config)

    @staticmethod
    def create_agent_provider(agent_name: str, config: LLMSettings) -> BaseLLMProvider:
        """
        Create provider for a specific agent with override support.

        Checks for an agent-specific provider override (e.g., sql_provider)
        and falls back to default_provider if not specified.

        Args:
            agent_name: Name of the agent (e.g., "sql")
            config: LLM configuration

        Returns:
            Provider instance for the agent
        """
        override = getattr(config, f"{agent_name}_provider", None)
        provider_type = override or config.default_provider

        logger.info(
            f"Creating provider for {agent_name} agent",
            extra={
                "agent": agent_name,
                "provider": provider_type,
                "has_override": override is not None,
            },
        )

        return LLMProviderFactory.create_provider(provider_type, config)

    @staticmethod
    def _create_openai(config: LLMSettings) -> OpenAIProvider:
        """Create OpenAI provider instance."""
        if not config.openai_api_key:
            raise ValueError("OpenAI API key is required but not configured")

        return OpenAIProvider(
            api_key=config.openai_api_key,
            model=config.openai_model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
        )

    @staticmethod
    def _create_anthropic(config: LLMSettings) -> AnthropicProvider:
        """Create Anthropic provider instance."""
        if not config.anthropic_api_key:
            raise ValueError("Anthropic API key is required but not configured")

        return AnthropicProvider(
            api_key=config.anthropic_api_key,
            model=config.anthropic_model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
        )

    @staticmethod
    def _create_local(config: LLMSettings) -> LocalProvider:
        """Create Local provider instance."""
        return LocalProvider(
            base_url=config.local_base_url,
            model=config.local_model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
        )
