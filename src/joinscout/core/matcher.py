"""Pairwise table matching with the rule cascade."""

from __future__ import annotations

from typing import Dict, Optional, Sequence

from joinscout.core.rules import DEFAULT_RULES, ColumnMatch, MatchRule, evaluate_column_match
from joinscout.core.types import JOIN_TYPES, ColumnSchema, InferredJoin, TableSchema
from joinscout.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MIN_CONFIDENCE = 0.6


class PairwiseMatcher:
    """Find the single best join condition between two tables."""

    def __init__(
        self,
        config: Optional[Dict] = None,
        rules: Sequence[MatchRule] = DEFAULT_RULES,
    ):
        """Initialize matcher.

        Args:
            config: ``inference`` config section
            rules: Ordered rule table
        """
        config = config or {}
        self.min_confidence = config.get("min_confidence", DEFAULT_MIN_CONFIDENCE)
        self.default_join_type = config.get("default_join_type", "LEFT").upper()
        if self.default_join_type not in JOIN_TYPES:
            raise ValueError(
                f"Invalid default_join_type: {self.default_join_type}. "
                f"Expected one of {', '.join(JOIN_TYPES)}"
            )
        self.rules = rules

    def match_columns(
        self,
        col1: ColumnSchema,
        col2: ColumnSchema,
        table1: TableSchema,
        table2: TableSchema,
    ) -> ColumnMatch:
        """Evaluate one column pair against the rule table."""
        return evaluate_column_match(
            col1, col2, table1.table_name, table2.table_name, self.rules
        )

    def suggest_join(
        self, table1: TableSchema, table2: TableSchema
    ) -> Optional[InferredJoin]:
        """Suggest the best join between two tables.

        Every column of ``table1`` is compared with every column of
        ``table2``. Only a strictly higher confidence replaces the current
        best, so ties keep the first pair in column order.

        Args:
            table1: Left table
            table2: Right table

        Returns:
            InferredJoin with table1 on the left, or None if no column pair
            reaches the minimum confidence
        """
        best: Optional[InferredJoin] = None
        highest = 0.0

        for col1 in table1.columns:
            for col2 in table2.columns:
                match = self.match_columns(col1, col2, table1, table2)

                if match.confidence > highest and match.confidence >= self.min_confidence:
                    highest = match.confidence
                    best = InferredJoin(
                        id=InferredJoin.new_id(),
                        left_schema=table1.schema,
                        left_table=table1.table_name,
                        left_column=col1.column_name,
                        left_column_type=col1.data_type,
                        right_schema=table2.schema,
                        right_table=table2.table_name,
                        right_column=col2.column_name,
                        right_column_type=col2.data_type,
                        confidence_score=match.confidence,
                        reasoning=match.reason,
                        suggested_join_type=self.default_join_type,
                        matched_patterns=list(match.patterns),
                    )

        if best is not None:
            logger.debug(
                f"Found match: {table1.table_name}.{best.left_column} <-> "
                f"{table2.table_name}.{best.right_column} "
                f"({round(best.confidence_score * 100)}%)"
            )
        return best
