"""Conversation state on top of a stateless chat provider."""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional

from joinscout.agent.base import BaseLLMProvider
from joinscout.agent.factory import LLMProviderFactory
from joinscout.utils.config import Config, get_config
from joinscout.utils.logging import get_logger

logger = get_logger(__name__)


class ConversationManager:
    """Keep per-conversation chat history and forward turns to a provider.

    Implements the ``initialize_conversation``/``send_message`` pair used by
    :class:`joinscout.core.semantic.LLMJoinSuggester`.

    Example:
        >>> manager = ConversationManager.from_config()
        >>> manager.initialize_conversation("c1", "You are a database expert.")
        >>> reply = manager.send_message("c1", "Suggest joins for ...")
    """

    def __init__(
        self,
        provider: BaseLLMProvider,
        temperature: Optional[float] = 0.0,
        max_history_messages: int = 20,
    ):
        """Initialize manager.

        Args:
            provider: Chat provider that receives the full history each turn
            temperature: Sampling temperature for every turn
            max_history_messages: Most recent user/assistant messages kept;
                the system prompt is always kept
        """
        if max_history_messages < 2:
            raise ValueError("max_history_messages must be at least 2")

        self.provider = provider
        self.temperature = temperature
        self.max_history_messages = max_history_messages
        self._conversations: Dict[str, List[Dict[str, str]]] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Optional[Config] = None, **overrides: Any) -> ConversationManager:
        """Build a manager and its provider from the ``agent`` config section."""
        config = config or get_config()
        agent_config = config.get("agent", {}) or {}
        provider = LLMProviderFactory.create_from_config(agent_config, **overrides)
        return cls(
            provider,
            temperature=agent_config.get("temperature", 0.0),
            max_history_messages=agent_config.get("max_history_messages", 20),
        )

    def initialize_conversation(self, conversation_id: str, system_prompt: str) -> None:
        """Start a conversation.

        Raises:
            ValueError: If the conversation already exists
        """
        with self._lock:
            if conversation_id in self._conversations:
                raise ValueError(f"Conversation {conversation_id} already exists")
            self._conversations[conversation_id] = [
                {"role": "system", "content": system_prompt}
            ]
        logger.debug(f"Initialized conversation {conversation_id}")

    def send_message(self, conversation_id: str, prompt: str) -> str:
        """Send a user turn and return the assistant reply.

        Raises:
            KeyError: If the conversation was never initialized
        """
        with self._lock:
            if conversation_id not in self._conversations:
                raise KeyError(f"Unknown conversation: {conversation_id}")
            history = self._conversations[conversation_id]
            history.append({"role": "user", "content": prompt})
            self._trim(history)
            messages = list(history)

        response = self.provider.chat(messages, temperature=self.temperature)
        logger.debug(f"Conversation {conversation_id}: {response!r}")

        with self._lock:
            history = self._conversations.get(conversation_id)
            if history is not None:
                history.append({"role": "assistant", "content": response.content})
                self._trim(history)

        return response.content

    def end_conversation(self, conversation_id: str) -> bool:
        """Drop a conversation; returns whether it existed."""
        with self._lock:
            return self._conversations.pop(conversation_id, None) is not None

    def history(self, conversation_id: str) -> List[Dict[str, str]]:
        """Copy of a conversation's messages, system prompt included."""
        with self._lock:
            return [dict(m) for m in self._conversations.get(conversation_id, [])]

    def _trim(self, history: List[Dict[str, str]]) -> None:
        system = [m for m in history if m["role"] == "system"]
        turns = [m for m in history if m["role"] != "system"]
        if len(turns) > self.max_history_messages:
            history[:] = system + turns[-self.max_history_messages:]
