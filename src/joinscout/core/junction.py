"""Junction (bridge) table detection."""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence

from joinscout.core.naming import NameNormalizer, resolve_physical
from joinscout.core.semantic import SemanticJoinSuggester
from joinscout.core.type_compat import are_types_compatible
from joinscout.core.types import JunctionCandidate, TableSchema
from joinscout.utils.logging import get_logger

logger = get_logger(__name__)

_REFERENCE_SUFFIX_RE = re.compile(r"_(id|key)$")


class JunctionTableDetector:
    """Find tables that reference two or more other tables.

    Three passes run per table, each only while fewer than two references
    have been found:

    1. Name pattern: ``order_id`` / ``order_key`` resolved against physical
       names, then against logical names.
    2. Primary keys: a column named like another table's declared primary
       key, with a compatible type.
    3. AI: the semantic suggester is asked, for small tables only.
    """

    def __init__(
        self,
        config: Optional[Dict] = None,
        semantic_suggester: Optional[SemanticJoinSuggester] = None,
    ):
        """Initialize detector.

        Args:
            config: ``inference`` config section
            semantic_suggester: Used by the AI pass; None disables it
        """
        config = config or {}
        self.max_ai_columns = config.get("junction", {}).get("max_ai_columns", 10)
        self.semantic_suggester = semantic_suggester

    def detect(
        self,
        tables: Sequence[TableSchema],
        use_ai: bool = False,
        conversation_id: Optional[str] = None,
    ) -> List[JunctionCandidate]:
        """Detect junction tables.

        Args:
            tables: All tables of the schema
            use_ai: Allow the AI pass
            conversation_id: LLM conversation for the AI pass

        Returns:
            Confirmed junctions (two or more references), in input order
        """
        normalizer = NameNormalizer(tables)
        junctions = []

        for table in tables:
            candidate = self.find_references(
                table, tables, normalizer, use_ai, conversation_id
            )
            if candidate.is_junction:
                junctions.append(candidate)

        logger.info(
            f"Detected {len(junctions)} junction tables: "
            f"{[j.table_name for j in junctions]}"
        )
        return junctions

    def find_references(
        self,
        table: TableSchema,
        tables: Sequence[TableSchema],
        normalizer: Optional[NameNormalizer] = None,
        use_ai: bool = False,
        conversation_id: Optional[str] = None,
    ) -> JunctionCandidate:
        """Collect the tables referenced by ``table`` (junction or not)."""
        normalizer = normalizer or NameNormalizer(tables)
        candidate = JunctionCandidate(table_name=table.table_name)

        self._name_pattern_pass(table, tables, normalizer, candidate)

        if len(candidate.referenced_tables) < 2:
            self._primary_key_pass(table, tables, candidate)

        if (
            use_ai
            and self.semantic_suggester is not None
            and conversation_id
            and len(candidate.referenced_tables) < 2
            and len(table.columns) <= self.max_ai_columns
        ):
            self._ai_pass(table, tables, conversation_id, candidate)

        return candidate

    def _name_pattern_pass(
        self,
        table: TableSchema,
        tables: Sequence[TableSchema],
        normalizer: NameNormalizer,
        candidate: JunctionCandidate,
    ) -> None:
        others = [t for t in tables if t.table_name != table.table_name]

        for col in table.columns:
            col_lower = col.column_name.lower()
            if not _REFERENCE_SUFFIX_RE.search(col_lower):
                continue

            ref_name = _REFERENCE_SUFFIX_RE.sub("", col_lower)
            if not ref_name:
                continue

            match = resolve_physical(ref_name, others)
            if match is not None:
                logger.debug(
                    f"{table.table_name}.{col.column_name}: physical name match "
                    f"{ref_name} -> {match.table_name}"
                )
            else:
                match = normalizer.resolve(ref_name)
                if match is not None and match.table_name == table.table_name:
                    match = None
                if match is not None:
                    logger.debug(
                        f"{table.table_name}.{col.column_name}: logical name match "
                        f"{ref_name} -> {match.label} ({match.table_name})"
                    )

            if match is None:
                logger.debug(f"{table.table_name}.{col.column_name}: no table match")
                continue

            candidate.add_reference(match.table_name, col.column_name)

    def _primary_key_pass(
        self,
        table: TableSchema,
        tables: Sequence[TableSchema],
        candidate: JunctionCandidate,
    ) -> None:
        for col in table.columns:
            for other in tables:
                if other.table_name == table.table_name:
                    continue
                if not other.is_primary_key(col.column_name):
                    continue

                other_col = other.get_column(col.column_name)
                if other_col is None:
                    continue
                if not are_types_compatible(col.data_type, other_col.data_type):
                    continue

                if candidate.add_reference(other.table_name, col.column_name):
                    logger.debug(
                        f"{table.label}.{col.column_name} matches primary key of "
                        f"{other.label}"
                    )

    def _ai_pass(
        self,
        table: TableSchema,
        tables: Sequence[TableSchema],
        conversation_id: str,
        candidate: JunctionCandidate,
    ) -> None:
        try:
            references = self.semantic_suggester.detect_junction(
                table, tables, conversation_id
            )
        except Exception as e:
            logger.error(f"AI junction detection failed for {table.table_name}: {e}")
            return

        for ref in references:
            if ref.table_name != table.table_name:
                candidate.add_reference(ref.table_name, ref.column)
