"""Tests for merging and ranking suggestions."""

import pytest

from joinscout.core.merger import (
    CONFIRMED_SUFFIX,
    CONFIRMED_TAG,
    join_key,
    merge_suggestions,
    rank_by_confidence,
    remove_duplicates,
    reverse_join_key,
)
from helpers import join


def test_join_keys():
    """Keys are direction-sensitive; the reverse key swaps the sides."""
    j = join("orders.customer_id", "customers.id", 0.9)
    assert join_key(j) == "public.orders.customer_id::public.customers.id"
    assert reverse_join_key(j) == "public.customers.id::public.orders.customer_id"


def test_ai_confirmed_by_rules():
    """A rule match on the same pair boosts and tags the AI suggestion."""
    ai = join(
        "customers.id",
        "orders.customer_id",
        0.85,
        ["ai-powered", "semantic-analysis"],
        "Orders belong to customers.",
    )
    rule = join("orders.customer_id", "customers.id", 0.75, ["table_reference", "type_match"])

    merged = merge_suggestions([ai], [rule])

    assert len(merged) == 1
    result = merged[0]
    assert result.confidence_score == pytest.approx(0.90)
    assert "ai-powered" in result.matched_patterns
    assert CONFIRMED_TAG in result.matched_patterns
    assert result.reasoning == "Orders belong to customers." + CONFIRMED_SUFFIX
    # inputs are left untouched
    assert ai.confidence_score == 0.85
    assert CONFIRMED_TAG not in ai.matched_patterns


def test_boost_is_capped():
    """The boost never goes above 0.98 and never lowers a score."""
    high = join("a.x_id", "b.x_id", 0.96, ["ai-powered"])
    higher = join("c.y_id", "d.y_id", 0.99, ["ai-powered"])
    rules = [join("b.x_id", "a.x_id", 0.85), join("c.y_id", "d.y_id", 0.85)]

    merged = {m.left_table: m for m in merge_suggestions([high, higher], rules)}

    assert merged["a"].confidence_score == 0.98
    assert merged["c"].confidence_score == 0.99
    assert merged["c"].matched_patterns.count(CONFIRMED_TAG) == 1


def test_repeated_confirmation_tags_once():
    """Two rule suggestions for one AI pair add one tag and one suffix."""
    ai = join("a.k_id", "b.k_id", 0.5, ["ai-powered"], "why")
    rules = [join("a.k_id", "b.k_id", 0.85), join("b.k_id", "a.k_id", 0.85)]

    merged = merge_suggestions([ai], rules)

    assert len(merged) == 1
    assert merged[0].matched_patterns.count(CONFIRMED_TAG) == 1
    assert merged[0].reasoning == "why" + CONFIRMED_SUFFIX


def test_merge_disjoint_lists():
    """Disjoint inputs are concatenated unchanged, then ranked."""
    ai = [join("a.x", "b.x", 0.6, ["ai-powered"]), join("c.y", "d.y", 0.8, ["ai-powered"])]
    rules = [join("e.z_id", "f.id", 0.9), join("g.w", "h.w", 0.7)]

    merged = merge_suggestions(ai, rules)

    assert len(merged) == len(ai) + len(rules)
    assert [m.confidence_score for m in merged] == [0.9, 0.8, 0.7, 0.6]
    assert all(CONFIRMED_TAG not in m.matched_patterns for m in merged)


def test_ai_shadows_higher_rule_score():
    """An AI suggestion wins its pair even against a higher rule score."""
    ai = join("orders.id", "customers.id", 0.5, ["ai-powered"])
    rule = join("orders.id", "customers.id", 0.95, ["exact_name_match"])

    merged = merge_suggestions([ai], [rule])

    assert len(merged) == 1
    assert merged[0].confidence_score == pytest.approx(0.55)


def test_remove_duplicates_keeps_first():
    """Duplicates in either direction collapse onto the first occurrence."""
    first = join("a.x", "b.x", 0.7)
    suggestions = [first, join("b.x", "a.x", 0.9), join("a.x", "b.x", 0.8), join("a.y", "b.y", 0.6)]

    unique = remove_duplicates(suggestions)

    assert unique[0] is first
    assert len(unique) == 2


def test_rank_by_confidence_is_stable():
    """Ties keep their input order."""
    a, b, c = join("a.x", "b.x", 0.7), join("c.x", "d.x", 0.9), join("e.x", "f.x", 0.7)
    assert rank_by_confidence([a, b, c]) == [b, a, c]


def test_no_unordered_duplicates_after_merge():
    """Every result pair is unique regardless of direction."""
    ai = [join("a.x", "b.x", 0.6), join("b.x", "a.x", 0.65)]
    rules = [join("a.x", "b.x", 0.9), join("c.x", "d.x", 0.7), join("d.x", "c.x", 0.8)]

    merged = merge_suggestions(ai, rules)

    pairs = [frozenset((join_key(m), reverse_join_key(m))) for m in merged]
    assert len(pairs) == len(set(pairs))
