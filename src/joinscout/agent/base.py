"""Base classes for chat LLM providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from joinscout.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class LLMResponse:
    """Standardized response from LLM providers."""

    content: str
    model: str
    usage: Dict[str, Any] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        tokens = self.usage.get("total_tokens", "?")
        return f"LLMResponse(model={self.model}, tokens={tokens})"


class BaseLLMProvider(ABC):
    """Abstract base class for chat LLM providers."""

    default_model: str = ""

    def __init__(self, model: Optional[str] = None, **kwargs: Any):
        """Initialize LLM provider.

        Args:
            model: Model name/identifier (class default if None)
            **kwargs: Provider-specific defaults (temperature, max_tokens, ...)
        """
        self.model = model or self.default_model
        self.config = kwargs
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    def chat(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Multi-turn chat completion.

        Args:
            messages: List of message dicts with "role" and "content";
                "system" messages carry the system prompt
            temperature: Sampling temperature (provider default if None)
            max_tokens: Maximum tokens to generate
            **kwargs: Additional provider-specific parameters

        Returns:
            LLMResponse object
        """
        pass

    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Single-turn convenience wrapper around :meth:`chat`."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return self.chat(messages, **kwargs)

    def _defaults(self, keys: set) -> Dict[str, Any]:
        """Configured defaults restricted to ``keys``, skipping None values."""
        return {k: v for k, v in self.config.items() if k in keys and v is not None}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model})"
