"""OpenAI chat provider."""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

try:
    from openai import OpenAI
except ImportError:
    OpenAI = None  # type: ignore

from joinscout.agent.base import BaseLLMProvider, LLMResponse

CLIENT_KEYS = {"api_key", "base_url", "organization", "project", "timeout", "max_retries"}
DEFAULT_KEYS = {"temperature", "top_p", "seed", "max_tokens"}


class OpenAIProvider(BaseLLMProvider):
    """OpenAI provider implementation."""

    default_model = "gpt-4o-mini"

    def __init__(self, model: Optional[str] = None, client: Any = None, **kwargs: Any):
        """Initialize OpenAI provider.

        Args:
            model: Model name (defaults to gpt-4o-mini)
            client: Pre-built client (mainly for tests)
            **kwargs: Configuration options including:
                - api_key: OpenAI API key (or OPENAI_API_KEY env var)
                - base_url: Optional custom API base URL
                - temperature: Default temperature
                - max_tokens: Default max tokens
        """
        client_kwargs = {k: v for k, v in kwargs.items() if k in CLIENT_KEYS}
        config_kwargs = {k: v for k, v in kwargs.items() if k not in CLIENT_KEYS}

        if client is None:
            if OpenAI is None:
                raise ImportError(
                    "openai package is required. Install with: pip install joinscout[openai]"
                )
            if "api_key" not in client_kwargs and os.getenv("OPENAI_API_KEY"):
                client_kwargs["api_key"] = os.getenv("OPENAI_API_KEY")
            client = OpenAI(**client_kwargs)

        self.client = client
        super().__init__(model=model, **config_kwargs)

    def chat(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        params = self._defaults(DEFAULT_KEYS)
        if temperature is not None:
            params["temperature"] = temperature
        if max_tokens is not None:
            params["max_tokens"] = max_tokens
        params.update(kwargs)

        try:
            response = self.client.chat.completions.create(
                model=self.model, messages=messages, **params
            )
        except Exception as e:
            self.logger.error(f"OpenAI API error: {e}")
            raise

        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=response.model,
            usage=usage,
            metadata={"finish_reason": response.choices[0].finish_reason},
        )
