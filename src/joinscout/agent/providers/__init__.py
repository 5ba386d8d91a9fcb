"""LLM provider registry."""

from joinscout.agent.providers.anthropic import AnthropicProvider
from joinscout.agent.providers.openai import OpenAIProvider

# Provider registry maps provider name to class
PROVIDER_REGISTRY = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
}

__all__ = [
    "PROVIDER_REGISTRY",
    "OpenAIProvider",
    "AnthropicProvider",
]
