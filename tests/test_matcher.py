"""Tests for the rule cascade and pairwise matching."""

import pytest

from joinscout.core.matcher import PairwiseMatcher
from joinscout.core.rules import (
    DEFAULT_RULES,
    INCOMPATIBLE_REASON,
    ColumnPair,
    MatchRule,
    evaluate_column_match,
)
from joinscout.core.types import ColumnSchema
from helpers import make_table


def col(name, data_type="integer"):
    return ColumnSchema(column_name=name, data_type=data_type)


@pytest.mark.parametrize(
    "left,right,table1,table2,confidence,tag",
    [
        ("customer_id", "CUSTOMER_ID", "orders", "invoices", 0.95, "exact_name_match"),
        ("id", "order_id", "orders", "order_items", 0.90, "id_suffix"),
        ("order_id", "id", "order_items", "orders", 0.90, "id_suffix"),
        ("category_id", "category_id", "products", "tags", 0.95, "exact_name_match"),
        ("parent_category_id", "id", "products", "categories", 0.75, "table_reference"),
        ("id", "main_category_ref", "categories", "products", 0.75, "table_reference"),
        ("customer_code", "code", "invoices", "customers", 0.70, "common_pattern"),
    ],
)
def test_rule_cascade(left, right, table1, table2, confidence, tag):
    """The first applicable rule decides the confidence."""
    match = evaluate_column_match(col(left), col(right), table1, table2)

    assert match.confidence == confidence
    assert match.patterns == [tag, "type_match"]
    assert match.matched


def test_matching_suffix_rule():
    """Columns ending in _id with the same prefix score 0.85 when not identical."""
    rule = DEFAULT_RULES[2]
    pair = ColumnPair("a", "Order_id", "b", "order_ID")

    assert rule.tag == "matching_suffix"
    # exact_name_match fires first on a case-insensitive equal pair
    assert evaluate_column_match(col("Order_id"), col("order_ID"), "a", "b").confidence == 0.95
    assert rule.apply(pair).confidence == 0.85


def test_incompatible_types_block_exact_name():
    """Identical names with different type families never match."""
    match = evaluate_column_match(col("id", "integer"), col("id", "varchar"), "orders", "customers")

    assert match.confidence == 0
    assert match.reason == INCOMPATIBLE_REASON
    assert not match.matched


def test_no_rule_applies():
    """Unrelated compatible columns score 0."""
    match = evaluate_column_match(col("quantity"), col("id"), "order_items", "users")
    assert match.confidence == 0
    assert match.patterns == []


def test_custom_rule_table():
    """Rules are data: an extra rule extends the cascade."""
    extra = MatchRule(
        tag="sku_match",
        confidence=0.65,
        predicate=lambda p: {"column": p.left_column} if p.left == p.right == "sku" else None,
        reasoning="SKU match: {column}",
    )
    match = evaluate_column_match(col("sku", "text"), col("sku", "text"), "a", "b", rules=[extra])

    assert match.confidence == 0.65
    assert match.reason == "SKU match: sku"


def test_suggest_join_id_suffix():
    """orders.id <-> order_items.order_id at 0.90."""
    orders = make_table("orders", [("id", "integer")])
    items = make_table("order_items", [("order_id", "integer"), ("qty", "integer")])

    suggestion = PairwiseMatcher().suggest_join(orders, items)

    assert suggestion is not None
    assert (suggestion.left_table, suggestion.left_column) == ("orders", "id")
    assert (suggestion.right_table, suggestion.right_column) == ("order_items", "order_id")
    assert suggestion.confidence_score == 0.90
    assert "id_suffix" in suggestion.matched_patterns
    assert suggestion.confidence == "high"
    assert suggestion.suggested_join_type == "LEFT"


def test_suggest_join_type_mismatch():
    """No suggestion when the only name match has incompatible types."""
    orders = make_table("orders", [("id", "integer")])
    customers = make_table("customers", [("id", "varchar")])

    assert PairwiseMatcher().suggest_join(orders, customers) is None


def test_suggest_join_keeps_highest():
    """Across column pairs the highest confidence wins."""
    orders = make_table("orders", [("id", "integer"), ("customer_id", "integer")])
    customers = make_table("customers", [("id", "integer"), ("customer_id", "integer")])

    suggestion = PairwiseMatcher().suggest_join(orders, customers)

    # id<->id and customer_id<->customer_id both score 0.95; the first pair is kept
    assert suggestion.confidence_score == 0.95
    assert suggestion.left_column == "id"
    assert suggestion.right_column == "id"


def test_suggest_join_below_threshold():
    """Matches under min_confidence are dropped."""
    invoices = make_table("invoices", [("customer_code", "text")])
    customers = make_table("customers", [("code", "text")])

    assert PairwiseMatcher().suggest_join(invoices, customers).confidence_score == 0.70
    assert PairwiseMatcher({"min_confidence": 0.8}).suggest_join(invoices, customers) is None


def test_matcher_rejects_bad_join_type():
    """default_join_type must be INNER, LEFT or RIGHT."""
    assert PairwiseMatcher({"default_join_type": "inner"}).default_join_type == "INNER"
    with pytest.raises(ValueError):
        PairwiseMatcher({"default_join_type": "CROSS"})
