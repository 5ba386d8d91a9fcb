"""Expected shapes of LLM replies, and the parse-and-validate step.

The LLM is asked for JSON, but replies often wrap it in a markdown fence or
surround it with prose. ``extract_json`` finds the payload; the pydantic
models below validate each item so that one malformed suggestion is
dropped without losing the rest.
"""

from __future__ import annotations

import json
import re
from typing import Any, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from joinscout.core.types import JOIN_TYPES
from joinscout.utils.logging import get_logger

logger = get_logger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


class AIResponseParseError(ValueError):
    """The LLM reply holds no usable JSON payload."""


class AIJoinSuggestion(BaseModel):
    """One join proposed by the LLM."""

    left_table: str = Field(..., min_length=1)
    left_column: str = Field(..., min_length=1)
    right_table: str = Field(..., min_length=1)
    right_column: str = Field(..., min_length=1)
    confidence_score: float = Field(..., description="0-100, or 0-1")
    reasoning: Optional[str] = None
    join_type: str = "LEFT"

    @field_validator("join_type", mode="before")
    @classmethod
    def _normalize_join_type(cls, value: Any) -> str:
        if not isinstance(value, str):
            return "LEFT"
        value = value.strip().upper().replace(" JOIN", "")
        return value if value in JOIN_TYPES else "LEFT"

    @property
    def normalized_confidence(self) -> float:
        """Confidence on the 0-1 scale."""
        score = self.confidence_score
        if score > 1:
            score = score / 100
        return min(1.0, max(0.0, score))


class AIJunctionReference(BaseModel):
    """A table the LLM thinks a junction candidate points at."""

    table_name: str = Field(..., min_length=1)
    column: str = ""
    reasoning: Optional[str] = None


class AIJunctionVerdict(BaseModel):
    """LLM answer to "is this a junction table?"."""

    is_junction: bool = False
    confidence: float = 0.0
    referenced_tables: List[AIJunctionReference] = Field(default_factory=list)

    @field_validator("referenced_tables", mode="before")
    @classmethod
    def _drop_invalid_references(cls, value: Any) -> List[Any]:
        if not isinstance(value, list):
            return []
        valid = []
        for item in value:
            try:
                valid.append(AIJunctionReference.model_validate(item))
            except ValidationError as e:
                logger.debug(f"Dropping invalid junction reference {item!r}: {e}")
        return valid


def extract_json(text: str, expect: str = "array") -> Any:
    """Pull a JSON payload out of an LLM reply.

    Args:
        text: Raw reply
        expect: "array" or "object"; used to locate the payload when the
            reply is not fenced

    Returns:
        Decoded JSON value

    Raises:
        AIResponseParseError: If no JSON can be decoded
    """
    if not text or not text.strip():
        raise AIResponseParseError("Empty AI response")

    fenced = _FENCE_RE.search(text)
    candidate = fenced.group(1) if fenced else text.strip()

    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        pass

    open_char, close_char = ("[", "]") if expect == "array" else ("{", "}")
    start = candidate.find(open_char)
    end = candidate.rfind(close_char)
    if start == -1 or end <= start:
        raise AIResponseParseError(f"AI response has no JSON {expect}")

    try:
        return json.loads(candidate[start : end + 1])
    except json.JSONDecodeError as e:
        raise AIResponseParseError(f"AI response JSON is invalid: {e}") from e


def parse_join_suggestions(text: str) -> List[AIJoinSuggestion]:
    """Parse a reply into validated join suggestions.

    Items that fail validation are logged and skipped.

    Raises:
        AIResponseParseError: If the reply is not a JSON array
    """
    payload = extract_json(text, expect="array")

    if isinstance(payload, dict) and isinstance(payload.get("suggestions"), list):
        payload = payload["suggestions"]

    if not isinstance(payload, list):
        raise AIResponseParseError("AI response is not an array")

    suggestions = []
    for item in payload:
        try:
            suggestions.append(AIJoinSuggestion.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Dropping malformed AI suggestion {item!r}: {e.error_count()} errors")
    return suggestions


def parse_junction_verdict(text: str) -> AIJunctionVerdict:
    """Parse a reply into a junction verdict.

    Raises:
        AIResponseParseError: If the reply is not a valid JSON object
    """
    payload = extract_json(text, expect="object")

    if not isinstance(payload, dict):
        raise AIResponseParseError("AI junction response is not an object")

    try:
        return AIJunctionVerdict.model_validate(payload)
    except ValidationError as e:
        raise AIResponseParseError(f"AI junction response is invalid: {e}") from e
