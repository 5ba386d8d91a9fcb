"""Anthropic/Claude chat provider."""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

try:
    from anthropic import Anthropic
except ImportError:
    Anthropic = None  # type: ignore

from joinscout.agent.base import BaseLLMProvider, LLMResponse

CLIENT_KEYS = {"api_key", "base_url", "timeout", "max_retries"}
DEFAULT_KEYS = {"temperature", "max_tokens", "top_p", "top_k"}


class AnthropicProvider(BaseLLMProvider):
    """Anthropic/Claude provider implementation."""

    default_model = "claude-sonnet-4-5-20250929"

    def __init__(self, model: Optional[str] = None, client: Any = None, **kwargs: Any):
        """Initialize Anthropic provider.

        Args:
            model: Model name (defaults to claude-sonnet-4-5-20250929)
            client: Pre-built client (mainly for tests)
            **kwargs: Configuration options including:
                - api_key: Anthropic API key (or ANTHROPIC_API_KEY env var)
                - temperature: Default temperature
                - max_tokens: Default max tokens
        """
        client_kwargs = {k: v for k, v in kwargs.items() if k in CLIENT_KEYS}
        config_kwargs = {k: v for k, v in kwargs.items() if k not in CLIENT_KEYS}

        if client is None:
            if Anthropic is None:
                raise ImportError(
                    "anthropic package is required. Install with: pip install joinscout[anthropic]"
                )
            if "api_key" not in client_kwargs and os.getenv("ANTHROPIC_API_KEY"):
                client_kwargs["api_key"] = os.getenv("ANTHROPIC_API_KEY")
            client = Anthropic(**client_kwargs)

        self.client = client
        super().__init__(model=model, **config_kwargs)

    def chat(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Multi-turn chat completion.

        The Messages API takes the system prompt separately, so "system"
        entries are lifted out of ``messages``.
        """
        system_parts = [m["content"] for m in messages if m["role"] == "system"]
        turns = [m for m in messages if m["role"] != "system"]

        params = self._defaults(DEFAULT_KEYS)
        if temperature is not None:
            params["temperature"] = temperature
        if max_tokens is not None:
            params["max_tokens"] = max_tokens
        params.setdefault("max_tokens", 4096)
        params.update(kwargs)

        create_kwargs: Dict[str, Any] = {"model": self.model, "messages": turns, **params}
        if system_parts:
            create_kwargs["system"] = "\n\n".join(system_parts)

        try:
            response = self.client.messages.create(**create_kwargs)
        except Exception as e:
            self.logger.error(f"Anthropic API error: {e}")
            raise

        usage = {
            "input_tokens": response.usage.input_tokens,
            "output_tokens": response.usage.output_tokens,
            "total_tokens": response.usage.input_tokens + response.usage.output_tokens,
        }

        return LLMResponse(
            content=response.content[0].text if response.content else "",
            model=response.model,
            usage=usage,
            metadata={"stop_reason": response.stop_reason},
        )
