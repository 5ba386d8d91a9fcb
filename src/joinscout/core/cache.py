"""Result cache for join suggestions.

Any object with ``get(key)`` and ``setex(key, ttl, value)`` works as a
store, including a ``redis.Redis`` client. ``InMemoryCacheStore`` is the
built-in single-process implementation.
"""

from __future__ import annotations

import json
import threading
import time
from typing import Any, Dict, List, Optional, Protocol, Tuple

from joinscout.core.types import InferredJoin
from joinscout.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_KEY_PREFIX = "join-suggestions"


class CacheStore(Protocol):
    """Minimal key/value store interface."""

    def get(self, key: str) -> Optional[Any]:
        ...

    def setex(self, key: str, ttl_seconds: int, value: str) -> Any:
        ...


class InMemoryCacheStore:
    """Thread-safe in-process cache with per-key expiry."""

    def __init__(self, clock=time.monotonic):
        """Initialize store.

        Args:
            clock: Callable returning the current time in seconds
        """
        self._data: Dict[str, Tuple[float, str]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._data[key]
                return None
            return value

    def setex(self, key: str, ttl_seconds: int, value: str) -> bool:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            self._data[key] = (now + ttl_seconds, value)
        return True

    def delete(self, key: str) -> int:
        with self._lock:
            return 1 if self._data.pop(key, None) is not None else 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def _purge_expired(self, now: float) -> None:
        # caller holds the lock
        expired = [k for k, (expires_at, _) in self._data.items() if now >= expires_at]
        for k in expired:
            del self._data[k]


def cache_key(
    data_source_id: int,
    schema_name: Optional[str] = None,
    prefix: str = DEFAULT_KEY_PREFIX,
) -> str:
    """Cache key for one data source and schema.

    Examples:
        >>> cache_key(42, "public")
        'join-suggestions:ds42:public'
        >>> cache_key(42)
        'join-suggestions:ds42:default'
    """
    key = f"ds{data_source_id}:{schema_name or 'default'}"
    return f"{prefix}:{key}" if prefix else key


def serialize_suggestions(suggestions: List[InferredJoin]) -> str:
    return json.dumps([s.to_dict() for s in suggestions])


def deserialize_suggestions(payload: Any) -> List[InferredJoin]:
    """Decode a cached payload (str or bytes, as returned by redis)."""
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8")
    return [InferredJoin.from_dict(item) for item in json.loads(payload)]
