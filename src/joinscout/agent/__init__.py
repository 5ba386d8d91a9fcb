"""Chat LLM providers and conversation management."""

from joinscout.agent.base import BaseLLMProvider, LLMResponse
from joinscout.agent.conversation import ConversationManager
from joinscout.agent.factory import LLMProviderFactory

__all__ = [
    "BaseLLMProvider",
    "ConversationManager",
    "LLMProviderFactory",
    "LLMResponse",
]
