"""Column match rules, evaluated in order.

Each rule is data: a tag, a confidence, a predicate over a column pair and
a reasoning template. The predicate returns the template fields when it
applies and None otherwise. Adding a rule means appending to
``DEFAULT_RULES``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from joinscout.core.naming import get_singular
from joinscout.core.type_compat import are_types_compatible
from joinscout.core.types import ColumnSchema

TYPE_MATCH_TAG = "type_match"
IDENTIFIER_TOKENS = ("uuid", "code", "key", "reference", "ref")


@dataclass(frozen=True)
class ColumnPair:
    """Two columns from two different tables, with precomputed names."""

    left_table: str
    left_column: str
    right_table: str
    right_column: str

    @property
    def left(self) -> str:
        return self.left_column.lower()

    @property
    def right(self) -> str:
        return self.right_column.lower()

    @property
    def left_singular(self) -> str:
        return get_singular(self.left_table.lower())

    @property
    def right_singular(self) -> str:
        return get_singular(self.right_table.lower())


Predicate = Callable[[ColumnPair], Optional[Dict[str, str]]]


@dataclass(frozen=True)
class MatchRule:
    """One step of the confidence cascade."""

    tag: str
    confidence: float
    predicate: Predicate
    reasoning: str

    def apply(self, pair: ColumnPair) -> Optional[ColumnMatch]:
        fields = self.predicate(pair)
        if fields is None:
            return None
        return ColumnMatch(
            confidence=self.confidence,
            reason=self.reasoning.format(**fields),
            patterns=[self.tag, TYPE_MATCH_TAG],
        )


@dataclass
class ColumnMatch:
    """Outcome of evaluating one column pair."""

    confidence: float
    reason: str
    patterns: List[str]

    @property
    def matched(self) -> bool:
        return self.confidence > 0


NO_MATCH_REASON = "No pattern match"
INCOMPATIBLE_REASON = "Incompatible types"


def _exact_name(pair: ColumnPair) -> Optional[Dict[str, str]]:
    if pair.left == pair.right:
        return {"column": pair.left_column}
    return None


def _id_pattern(pair: ColumnPair) -> Optional[Dict[str, str]]:
    if pair.left == "id" and pair.right == f"{pair.left_singular}_id":
        return {"table": pair.left_table, "column": pair.right_column}
    if pair.right == "id" and pair.left == f"{pair.right_singular}_id":
        return {"table": pair.right_table, "column": pair.left_column}
    return None


def _matching_suffix(pair: ColumnPair) -> Optional[Dict[str, str]]:
    if pair.left.endswith("_id") and pair.right.endswith("_id"):
        if pair.left[:-3] == pair.right[:-3]:
            return {"column": pair.left_column}
    return None


def _table_reference(pair: ColumnPair) -> Optional[Dict[str, str]]:
    if pair.right == "id" and pair.right_singular and pair.right_singular in pair.left:
        return {"column": pair.left_column, "table": pair.right_table}
    if pair.left == "id" and pair.left_singular and pair.left_singular in pair.right:
        return {"column": pair.right_column, "table": pair.left_table}
    return None


def _common_identifier(pair: ColumnPair) -> Optional[Dict[str, str]]:
    for token in IDENTIFIER_TOKENS:
        if pair.left == token and pair.right == token:
            return {"token": token, "column": pair.left_column}
        if pair.right == token and pair.left == f"{pair.right_singular}_{token}":
            return {"token": token, "column": pair.left_column}
        if pair.left == token and pair.right == f"{pair.left_singular}_{token}":
            return {"token": token, "column": pair.right_column}
    return None


DEFAULT_RULES: Sequence[MatchRule] = (
    MatchRule(
        tag="exact_name_match",
        confidence=0.95,
        predicate=_exact_name,
        reasoning="Exact column name match: {column}",
    ),
    MatchRule(
        tag="id_suffix",
        confidence=0.90,
        predicate=_id_pattern,
        reasoning="ID pattern: {table}.id -> {column}",
    ),
    MatchRule(
        tag="matching_suffix",
        confidence=0.85,
        predicate=_matching_suffix,
        reasoning="Matching ID suffix: {column}",
    ),
    MatchRule(
        tag="table_reference",
        confidence=0.75,
        predicate=_table_reference,
        reasoning="Table reference: {column} -> {table}",
    ),
    MatchRule(
        tag="common_pattern",
        confidence=0.70,
        predicate=_common_identifier,
        reasoning="Common identifier pattern ({token}): {column}",
    ),
)


def evaluate_column_match(
    col1: ColumnSchema,
    col2: ColumnSchema,
    table1_name: str,
    table2_name: str,
    rules: Sequence[MatchRule] = DEFAULT_RULES,
) -> ColumnMatch:
    """Run the rule cascade on one column pair.

    The type gate runs first: incompatible types always score 0. After
    that the first applicable rule decides the confidence.

    Args:
        col1: Column of the first table
        col2: Column of the second table
        table1_name: Physical name of the first table
        table2_name: Physical name of the second table
        rules: Ordered rule table

    Returns:
        ColumnMatch (confidence 0 when nothing applies)
    """
    if not are_types_compatible(col1.data_type, col2.data_type):
        return ColumnMatch(confidence=0.0, reason=INCOMPATIBLE_REASON, patterns=[])

    pair = ColumnPair(
        left_table=table1_name,
        left_column=col1.column_name,
        right_table=table2_name,
        right_column=col2.column_name,
    )
    for rule in rules:
        match = rule.apply(pair)
        if match is not None:
            return match

    return ColumnMatch(confidence=0.0, reason=NO_MATCH_REASON, patterns=[])
