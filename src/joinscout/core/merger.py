"""Merging, de-duplication and ranking of join suggestions."""

from __future__ import annotations

import dataclasses
from typing import Dict, List, Sequence

from joinscout.core.types import InferredJoin
from joinscout.utils.logging import get_logger

logger = get_logger(__name__)

CONFIRMED_TAG = "confirmed-by-rules"
CONFIRMED_SUFFIX = " (Confirmed by pattern analysis)"
CONFIRMATION_BOOST = 0.05
MAX_BOOSTED_CONFIDENCE = 0.98


def join_key(join: InferredJoin) -> str:
    """Key of a join in left-to-right order."""
    return (
        f"{join.left_schema}.{join.left_table}.{join.left_column}"
        f"::{join.right_schema}.{join.right_table}.{join.right_column}"
    )


def reverse_join_key(join: InferredJoin) -> str:
    """Key of a join in right-to-left order."""
    return (
        f"{join.right_schema}.{join.right_table}.{join.right_column}"
        f"::{join.left_schema}.{join.left_table}.{join.left_column}"
    )


def _copy(join: InferredJoin) -> InferredJoin:
    return dataclasses.replace(join, matched_patterns=list(join.matched_patterns))


def remove_duplicates(suggestions: Sequence[InferredJoin]) -> List[InferredJoin]:
    """Drop suggestions whose unordered column pair was already seen.

    The first occurrence wins.
    """
    seen = set()
    unique = []

    for suggestion in suggestions:
        key = join_key(suggestion)
        if key in seen or reverse_join_key(suggestion) in seen:
            continue
        seen.add(key)
        unique.append(suggestion)

    return unique


def rank_by_confidence(suggestions: Sequence[InferredJoin]) -> List[InferredJoin]:
    """Sort by confidence score, highest first (stable)."""
    return sorted(suggestions, key=lambda s: s.confidence_score, reverse=True)


def merge_suggestions(
    ai_suggestions: Sequence[InferredJoin],
    rule_suggestions: Sequence[InferredJoin],
) -> List[InferredJoin]:
    """Merge AI and rule-based suggestions.

    AI suggestions are kept as they are. A rule suggestion for the same
    column pair (in either direction) is dropped, and the AI suggestion it
    matches is boosted by 0.05 (capped at 0.98) and marked as confirmed.
    All other rule suggestions are appended. The inputs are not modified.

    Args:
        ai_suggestions: Suggestions from the semantic pass
        rule_suggestions: Junction and pairwise rule suggestions

    Returns:
        De-duplicated suggestions ranked by confidence
    """
    merged = [_copy(s) for s in ai_suggestions]

    ai_by_key: Dict[str, InferredJoin] = {}
    for suggestion in merged:
        ai_by_key.setdefault(join_key(suggestion), suggestion)

    confirmed = 0
    for rule in rule_suggestions:
        ai = ai_by_key.get(join_key(rule)) or ai_by_key.get(reverse_join_key(rule))
        if ai is None:
            merged.append(rule)
            continue

        confirmed += 1
        boosted = round(ai.confidence_score + CONFIRMATION_BOOST, 4)
        ai.confidence_score = max(
            ai.confidence_score, min(MAX_BOOSTED_CONFIDENCE, boosted)
        )
        if CONFIRMED_TAG not in ai.matched_patterns:
            ai.matched_patterns.append(CONFIRMED_TAG)
            ai.reasoning += CONFIRMED_SUFFIX

    logger.info(
        f"Merged {len(ai_suggestions)} AI and {len(rule_suggestions)} rule "
        f"suggestions ({confirmed} confirmed by rules)"
    )

    return rank_by_confidence(remove_duplicates(merged))
