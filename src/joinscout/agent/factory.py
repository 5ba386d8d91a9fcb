"""Factory for creating LLM provider instances."""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

from joinscout.agent.base import BaseLLMProvider
from joinscout.agent.providers import PROVIDER_REGISTRY
from joinscout.utils.logging import get_logger

logger = get_logger(__name__)

# Agent-level settings that are not provider arguments
_AGENT_ONLY_KEYS = {"enabled", "provider", "model", "keys", "max_history_messages"}


def expand_env(value: Any) -> Any:
    """Replace a ``"${VAR}"`` string with the environment value, if set."""
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        return os.getenv(value[2:-1], value)
    return value


class LLMProviderFactory:
    """Factory for creating LLM providers."""

    @staticmethod
    def create_provider(
        provider: str, model: Optional[str] = None, **kwargs: Any
    ) -> BaseLLMProvider:
        """Create an LLM provider instance.

        Args:
            provider: Provider name ("openai" or "anthropic")
            model: Model name (provider-specific default if None)
            **kwargs: Provider-specific configuration

        Returns:
            BaseLLMProvider instance

        Raises:
            ValueError: If provider is not supported

        Example:
            >>> provider = LLMProviderFactory.create_provider(
            ...     provider="openai", model="gpt-4o-mini", api_key="sk-..."
            ... )
        """
        provider_lower = provider.lower()

        if provider_lower not in PROVIDER_REGISTRY:
            available = ", ".join(sorted(PROVIDER_REGISTRY.keys()))
            raise ValueError(
                f"Unsupported provider: {provider}. Available providers: {available}"
            )

        provider_class = PROVIDER_REGISTRY[provider_lower]
        logger.info(f"Creating {provider_class.__name__} with model={model}")
        return provider_class(model=model, **kwargs)

    @staticmethod
    def create_from_config(agent_config: Dict[str, Any], **overrides: Any) -> BaseLLMProvider:
        """Create provider from the ``agent`` config section.

        Priority for every setting: explicit overrides > provider section
        (e.g. ``agent.openai``) > agent section. API keys may come from
        ``agent.keys.<provider>_api_key``; ``${VAR}`` values are expanded
        from the environment.

        Args:
            agent_config: ``agent`` section of the configuration
            **overrides: Explicit provider arguments

        Returns:
            BaseLLMProvider instance

        Raises:
            ValueError: If no provider is configured

        Example:
            >>> agent_config = {
            ...     "provider": "anthropic",
            ...     "keys": {"anthropic_api_key": "${ANTHROPIC_API_KEY}"},
            ... }
            >>> provider = LLMProviderFactory.create_from_config(agent_config)
        """
        provider = overrides.pop("provider", None) or agent_config.get("provider")
        if not provider:
            raise ValueError("Configuration must include 'provider' key")

        provider_section = agent_config.get(provider, {}) or {}
        model = (
            overrides.pop("model", None)
            or provider_section.get("model")
            or agent_config.get("model")
        )

        merged = {
            k: v
            for k, v in agent_config.items()
            if k not in _AGENT_ONLY_KEYS and not isinstance(v, dict)
        }
        merged.update({k: v for k, v in provider_section.items() if k != "model"})

        keys_config = agent_config.get("keys", {}) or {}
        api_key_name = f"{provider}_api_key"
        if api_key_name in keys_config:
            merged["api_key"] = keys_config[api_key_name]

        merged.update(overrides)
        merged = {k: expand_env(v) for k, v in merged.items()}

        return LLMProviderFactory.create_provider(provider, model, **merged)

    @staticmethod
    def list_providers() -> List[str]:
        """Get list of available provider names."""
        return sorted(PROVIDER_REGISTRY.keys())
