"""Semantic (LLM-backed) join suggestions.

The deterministic engine only talks to ``SemanticJoinSuggester``. The
no-op implementation keeps the engine testable without network access;
``LLMJoinSuggester`` drives a conversational LLM.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Protocol, Sequence

from joinscout.core.ai_response import (
    AIResponseParseError,
    parse_join_suggestions,
    parse_junction_verdict,
)
from joinscout.core.types import InferredJoin, TableReference, TableSchema
from joinscout.utils.config import Config, get_config
from joinscout.utils.logging import get_logger

logger = get_logger(__name__)

AI_PATTERNS = ("ai-powered", "semantic-analysis")

JOIN_SYSTEM_PROMPT = (
    "You are a database expert analyzing table schemas to suggest JOIN relationships."
)
JUNCTION_SYSTEM_PROMPT = "You are a database expert analyzing table relationships."


class ConversationalLLM(Protocol):
    """Chat collaborator with server-side conversation state."""

    def initialize_conversation(self, conversation_id: str, system_prompt: str) -> None:
        ...

    def send_message(self, conversation_id: str, prompt: str) -> str:
        ...


class SemanticJoinSuggester(ABC):
    """Capability interface for semantic join suggestions."""

    @abstractmethod
    def suggest_joins(
        self, tables: Sequence[TableSchema], conversation_id: str
    ) -> List[InferredJoin]:
        """Propose joins across all tables. Must not raise."""

    @abstractmethod
    def detect_junction(
        self,
        table: TableSchema,
        all_tables: Sequence[TableSchema],
        conversation_id: str,
    ) -> List[TableReference]:
        """Return the tables ``table`` bridges, or [] if it is not a junction.

        Must not raise.
        """


class NullSemanticSuggester(SemanticJoinSuggester):
    """Suggester that never suggests anything."""

    def suggest_joins(self, tables, conversation_id):
        return []

    def detect_junction(self, table, all_tables, conversation_id):
        return []


def format_schema_for_ai(tables: Sequence[TableSchema]) -> str:
    """Format table schemas as markdown for an LLM prompt."""
    lines: List[str] = []

    for table in tables:
        logical = ""
        if table.display_name and table.display_name != table.table_name:
            logical = f' (Logical: "{table.display_name}")'

        lines.append(f"## Table: {table.schema}.{table.table_name}{logical}")
        lines.append("**Columns:**")
        for col in table.columns:
            nullable = " (nullable)" if col.nullable else ""
            is_pk = " [PRIMARY KEY]" if table.is_primary_key(col.column_name) else ""
            lines.append(f"- {col.column_name}: {col.data_type}{nullable}{is_pk}")

        if table.foreign_keys:
            lines.append("")
            lines.append("**Foreign Keys:**")
            for fk in table.foreign_keys:
                lines.append(f"- {fk.column_name} -> {fk.foreign_table}.{fk.foreign_column}")

        lines.append("")

    return "\n".join(lines)


def strip_schema_prefix(table_name: str) -> str:
    """``"dra_excel.ds2_7e1dc7cf"`` -> ``"ds2_7e1dc7cf"``."""
    return table_name.split(".")[-1].strip()


class LLMJoinSuggester(SemanticJoinSuggester):
    """Semantic suggester backed by a conversational LLM."""

    def __init__(self, llm: ConversationalLLM, config: Optional[Dict] = None):
        """Initialize suggester.

        Args:
            llm: Conversational LLM collaborator
            config: ``inference`` config section (global config if None)
        """
        if config is None:
            config = get_config().get("inference", {}) or {}
        junction_config = config.get("junction", {}) or {}
        self.llm = llm
        self.min_junction_confidence = junction_config.get("min_ai_confidence", 70)

    @classmethod
    def from_config(
        cls, config: Optional[Config] = None, llm: Optional[ConversationalLLM] = None
    ) -> LLMJoinSuggester:
        """Build a suggester from the ``inference`` and ``agent`` config sections.

        Without ``llm``, a :class:`joinscout.agent.ConversationManager` is
        built from the ``agent`` section.
        """
        config = config or get_config()
        if llm is None:
            from joinscout.agent.conversation import ConversationManager

            llm = ConversationManager.from_config(config)
        return cls(llm, config.get("inference", {}) or {})

    def _ensure_conversation(self, conversation_id: str, system_prompt: str) -> None:
        try:
            self.llm.initialize_conversation(conversation_id, system_prompt)
        except Exception as e:
            # "already exists" is expected on reuse
            logger.debug(f"Conversation {conversation_id} may already exist: {e}")

    def suggest_joins(
        self, tables: Sequence[TableSchema], conversation_id: str
    ) -> List[InferredJoin]:
        """Ask the LLM for joins and keep only those that resolve to the schema.

        Args:
            tables: Tables to analyze
            conversation_id: LLM conversation to use

        Returns:
            Validated suggestions tagged ``ai-powered``/``semantic-analysis``;
            empty on any failure
        """
        if not tables:
            return []

        prompt = self._build_join_prompt(tables)

        try:
            self._ensure_conversation(conversation_id, JOIN_SYSTEM_PROMPT)
            response = self.llm.send_message(conversation_id, prompt)
        except Exception as e:
            logger.error(f"AI inference failed: {e}")
            return []

        suggestions = self.parse_suggestions(response, tables)
        logger.info(f"AI parsed {len(suggestions)} suggestions")
        return suggestions

    def parse_suggestions(
        self, response: str, tables: Sequence[TableSchema]
    ) -> List[InferredJoin]:
        """Convert a raw LLM reply into InferredJoin objects.

        Unknown tables or columns are dropped with a warning.
        """
        try:
            raw_suggestions = parse_join_suggestions(response)
        except AIResponseParseError as e:
            logger.warning(f"Failed to parse AI suggestions: {e}")
            return []

        by_name = {t.table_name.lower(): t for t in tables}
        suggestions: List[InferredJoin] = []

        for raw in raw_suggestions:
            left_table = by_name.get(strip_schema_prefix(raw.left_table).lower())
            right_table = by_name.get(strip_schema_prefix(raw.right_table).lower())
            if left_table is None or right_table is None:
                logger.warning(
                    f"AI suggested unknown tables: {raw.left_table} or {raw.right_table}"
                )
                continue

            left_column = left_table.get_column(raw.left_column)
            right_column = right_table.get_column(raw.right_column)
            if left_column is None or right_column is None:
                logger.warning(
                    f"AI suggested unknown columns: {raw.left_column} or {raw.right_column}"
                )
                continue

            suggestions.append(
                InferredJoin(
                    id=InferredJoin.new_id("ai_join"),
                    left_schema=left_table.schema,
                    left_table=left_table.table_name,
                    left_column=left_column.column_name,
                    left_column_type=left_column.data_type,
                    right_schema=right_table.schema,
                    right_table=right_table.table_name,
                    right_column=right_column.column_name,
                    right_column_type=right_column.data_type,
                    confidence_score=raw.normalized_confidence,
                    reasoning=raw.reasoning
                    or "AI-suggested relationship based on semantic analysis",
                    suggested_join_type=raw.join_type,
                    matched_patterns=list(AI_PATTERNS),
                )
            )

        return suggestions

    def detect_junction(
        self,
        table: TableSchema,
        all_tables: Sequence[TableSchema],
        conversation_id: str,
    ) -> List[TableReference]:
        """Ask the LLM whether ``table`` is a junction table.

        The verdict is accepted only when it says ``is_junction``, its
        confidence reaches the configured minimum and at least two of the
        named tables exist.

        Returns:
            Resolved references, or [] if rejected or on failure
        """
        prompt = self._build_junction_prompt(table, all_tables)

        try:
            self._ensure_conversation(conversation_id, JUNCTION_SYSTEM_PROMPT)
            response = self.llm.send_message(conversation_id, prompt)
            verdict = parse_junction_verdict(response)
        except AIResponseParseError as e:
            logger.warning(f"AI junction response for {table.table_name} unusable: {e}")
            return []
        except Exception as e:
            logger.error(f"AI junction detection failed for {table.table_name}: {e}")
            return []

        if not verdict.is_junction or verdict.confidence < self.min_junction_confidence:
            return []

        references: List[TableReference] = []
        for ref in verdict.referenced_tables:
            name = strip_schema_prefix(ref.table_name).lower()
            match = next(
                (
                    t
                    for t in all_tables
                    if t.table_name != table.table_name
                    and (
                        t.table_name.lower() == name
                        or (t.display_name or "").lower() == ref.table_name.lower()
                    )
                ),
                None,
            )
            if match is not None and all(r.table_name != match.table_name for r in references):
                references.append(TableReference(match.table_name, ref.column))

        if len(references) < 2:
            logger.debug(
                f"AI junction verdict for {table.table_name} names only "
                f"{len(references)} resolvable tables, ignoring"
            )
            return []

        logger.info(
            f"AI confirmed {table.label} is a junction table "
            f"({verdict.confidence:.0f}% confidence)"
        )
        return references

    def _build_join_prompt(self, tables: Sequence[TableSchema]) -> str:
        schema_context = format_schema_for_ai(tables)

        return f"""You are a database expert analyzing table schemas to suggest JOIN relationships.

SCHEMA ANALYSIS:
{schema_context}

TASK: Suggest JOIN relationships between these tables based on:
1. Semantic column meanings (not just syntactic names)
2. Business logic relationships (e.g., orders belong to customers)
3. Data cardinality patterns (one-to-many, many-to-many)
4. Junction/bridge table detection
5. Cross-reference patterns

For each suggested join, provide:
- left_table: Source table name (use the PHYSICAL table name from the schema)
- left_column: Source column name
- right_table: Target table name (use the PHYSICAL table name from the schema)
- right_column: Target column name
- confidence_score: 0-100 (your confidence in this suggestion)
- reasoning: Business justification for this join (2-3 sentences)
- join_type: INNER, LEFT, or RIGHT (recommend based on cardinality)

IMPORTANT:
- Tables have PHYSICAL names (e.g., ds2_42d115c3) and may have LOGICAL names (e.g., "Order Items - ecommerce.xlsx")
- Use LOGICAL names to understand relationships, but return PHYSICAL names in suggestions
- Only suggest joins that make semantic business sense
- Consider plural/singular table name variations
- Confidence should reflect semantic certainty, not just naming similarity

Return ONLY a JSON array of suggestions. Example format:
[
  {{
    "left_table": "ds2_orders",
    "left_column": "customer_id",
    "right_table": "ds2_customers",
    "right_column": "id",
    "confidence_score": 95,
    "reasoning": "Orders are placed by customers.",
    "join_type": "LEFT"
  }}
]"""

    def _build_junction_prompt(
        self, table: TableSchema, all_tables: Sequence[TableSchema]
    ) -> str:
        table_info = {
            "physical_name": table.table_name,
            "logical_name": table.label,
            "columns": [
                {"name": c.column_name, "type": c.data_type} for c in table.columns
            ],
            "primary_keys": list(table.primary_keys),
        }
        other_tables = [
            {
                "physical_name": t.table_name,
                "logical_name": t.label,
                "columns": [c.column_name for c in t.columns],
                "primary_keys": list(t.primary_keys),
            }
            for t in all_tables
            if t.table_name != table.table_name
        ]

        return f"""You are a database expert analyzing table relationships.

CANDIDATE TABLE TO ANALYZE:
{json.dumps(table_info, indent=2)}

OTHER TABLES IN SCHEMA:
{json.dumps(other_tables, indent=2)}

QUESTION: Is "{table.label}" (physical: {table.table_name}) a JUNCTION/BRIDGE table?

A junction table typically:
- Has 2+ columns that reference primary keys in other tables
- Has few non-foreign-key columns (often just the FKs plus timestamps)
- Serves to create many-to-many relationships between other tables

Consider BOTH physical names AND logical names when matching.

Return ONLY a JSON object in this format:
{{
  "is_junction": true or false,
  "confidence": 0-100,
  "referenced_tables": [
    {{"table_name": "physical_table_name", "column": "column_name_in_junction", "reasoning": "brief explanation"}}
  ]
}}"""
