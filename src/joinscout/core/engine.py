"""Join inference engine: the entry point tying the pipeline together."""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

from joinscout.core.cache import (
    CacheStore,
    cache_key,
    deserialize_suggestions,
    serialize_suggestions,
)
from joinscout.core.junction import JunctionTableDetector
from joinscout.core.matcher import PairwiseMatcher
from joinscout.core.merger import merge_suggestions, rank_by_confidence, remove_duplicates
from joinscout.core.report import InferenceReport, schema_fingerprint
from joinscout.core.semantic import LLMJoinSuggester, SemanticJoinSuggester
from joinscout.core.types import InferenceOptions, InferredJoin, TableSchema
from joinscout.utils.config import Config, get_config
from joinscout.utils.logging import get_logger

if TYPE_CHECKING:
    from joinscout.connectors.base import SchemaCollector
    from joinscout.connectors.metadata_store import TableMetadataStore

logger = get_logger(__name__)

JUNCTION_TAG = "junction-table"


@dataclass
class _SourceRun:
    suggestions: List[InferredJoin]
    tables: Optional[List[TableSchema]]
    cached: bool


class JoinInferenceEngine:
    """Suggest JOIN conditions between the tables of a data source.

    The engine holds references to its collaborators only; construct one
    per process and pass it to whoever needs it.

    Example:
        >>> engine = JoinInferenceEngine(
        ...     SQLAlchemySchemaCollector(),
        ...     metadata_store=SQLTableMetadataStore(platform_engine),
        ...     cache=InMemoryCacheStore(),
        ... )
        >>> suggestions = engine.infer_joins_from_data_source(db_engine, 42, "public")
    """

    def __init__(
        self,
        schema_collector: SchemaCollector,
        metadata_store: Optional[TableMetadataStore] = None,
        cache: Optional[CacheStore] = None,
        semantic_suggester: Optional[SemanticJoinSuggester] = None,
        config: Optional[Config] = None,
    ):
        """Initialize engine.

        Args:
            schema_collector: Reads table schemas from a data source
            metadata_store: Supplies logical table names (optional)
            cache: Result cache; anything with get/setex, e.g. redis.Redis
            semantic_suggester: AI suggester; if None, one is built from the
                ``agent`` section when ``agent.enabled`` is set, otherwise
                the AI pass is disabled
            config: Configuration (global config if None)
        """
        self.config = config or get_config()
        if semantic_suggester is None and self.config.get("agent.enabled", False):
            semantic_suggester = LLMJoinSuggester.from_config(self.config)
            logger.info("Semantic join suggestions enabled from agent config")

        self.schema_collector = schema_collector
        self.metadata_store = metadata_store
        self.cache = cache
        self.semantic_suggester = semantic_suggester

        inference_config = self.config.get("inference", {}) or {}
        self.matcher = PairwiseMatcher(inference_config)
        self.junction_detector = JunctionTableDetector(
            inference_config, semantic_suggester=semantic_suggester
        )

        self.max_tables = inference_config.get("max_tables", 20)
        self.default_conversation_id = inference_config.get(
            "default_conversation_id", "join-inference"
        )
        self.cache_enabled = bool(self.config.get("cache.enabled", True))
        self.cache_ttl = int(self.config.get("cache.ttl_seconds", 86400))
        self.cache_prefix = self.config.get("cache.key_prefix", "join-suggestions")

    def infer_joins(
        self,
        tables: Sequence[TableSchema],
        options: Optional[InferenceOptions] = None,
    ) -> List[InferredJoin]:
        """Infer joins between tables.

        Junction tables are detected first and joined to each table they
        reference. Every other pair is then matched, except pairs of two
        junctions and pairs already joined through a junction. With
        ``options.use_ai`` and a semantic suggester configured, AI
        suggestions are merged in.

        Args:
            tables: Table schemas of one data source
            options: Per-call options

        Returns:
            Suggestions ranked by confidence, at most one per column pair
        """
        options = options or InferenceOptions()
        tables = list(tables)
        use_ai = bool(options.use_ai and self.semantic_suggester is not None)
        conversation_id = options.conversation_id or self.default_conversation_id

        logger.info(f"Inferring joins for {len(tables)} tables (ai={use_ai})")

        junctions = self.junction_detector.detect(
            tables, use_ai=use_ai, conversation_id=conversation_id if use_ai else None
        )

        by_name = {}
        for table in tables:
            by_name.setdefault(table.table_name, table)

        suggestions: List[InferredJoin] = []
        resolved_pairs = set()

        for junction in junctions:
            junction_table = by_name[junction.table_name]
            for ref in junction.referenced_tables:
                resolved_pairs.add(frozenset((junction.table_name, ref.table_name)))
                other = by_name.get(ref.table_name)
                if other is None:
                    continue

                suggestion = self.matcher.suggest_join(junction_table, other)
                if suggestion is None:
                    logger.warning(
                        f"No match found for junction join: "
                        f"{junction.table_name} -> {ref.table_name}"
                    )
                    continue

                suggestion.reasoning = (
                    f"Junction table join: {junction.table_name} connects "
                    f"multiple tables via {ref.column}"
                )
                suggestion.add_pattern(JUNCTION_TAG)
                suggestions.append(suggestion)

        junction_names = {j.table_name for j in junctions}
        for i, table1 in enumerate(tables):
            for table2 in tables[i + 1:]:
                if table1.table_name in junction_names and table2.table_name in junction_names:
                    continue
                if frozenset((table1.table_name, table2.table_name)) in resolved_pairs:
                    continue

                suggestion = self.matcher.suggest_join(table1, table2)
                if suggestion is not None:
                    suggestions.append(suggestion)

        rule_suggestions = rank_by_confidence(remove_duplicates(suggestions))
        logger.info(f"Rule-based inference produced {len(rule_suggestions)} suggestions")

        if not use_ai:
            return rule_suggestions

        try:
            ai_suggestions = self.semantic_suggester.suggest_joins(tables, conversation_id)
        except Exception as e:
            logger.error(f"AI join suggestion failed, using rule-based results: {e}")
            ai_suggestions = []

        return merge_suggestions(ai_suggestions, rule_suggestions)

    def infer_joins_from_data_source(
        self,
        data_source: Any,
        data_source_id: int,
        schema_name: Optional[str] = None,
        options: Optional[InferenceOptions] = None,
        max_tables: Optional[int] = None,
    ) -> List[InferredJoin]:
        """Infer joins for a whole data source, with caching.

        A cached result for ``(data_source_id, schema_name)`` is returned as
        is, without reading the schema again.

        Args:
            data_source: Connection handle passed to the schema collector
                and the metadata store
            data_source_id: Platform id of the data source
            schema_name: Schema to analyze (collector default if None)
            options: Per-call options
            max_tables: Analyze at most this many tables (config default)

        Returns:
            Ranked suggestions; empty if the schema cannot be read
        """
        return self._run(data_source, data_source_id, schema_name, options, max_tables).suggestions

    def analyze_data_source(
        self,
        data_source: Any,
        data_source_id: int,
        schema_name: Optional[str] = None,
        options: Optional[InferenceOptions] = None,
        max_tables: Optional[int] = None,
    ) -> InferenceReport:
        """Like :meth:`infer_joins_from_data_source`, wrapped in a report.

        ``total_tables`` and ``schema_hash`` are None on a cache hit, since
        the schema is not read.
        """
        start = time.perf_counter()
        run = self._run(data_source, data_source_id, schema_name, options, max_tables)
        elapsed_ms = (time.perf_counter() - start) * 1000

        return InferenceReport(
            data_source_id=data_source_id,
            schema_name=schema_name,
            suggestions=run.suggestions,
            total_tables=len(run.tables) if run.tables is not None else None,
            processing_time_ms=elapsed_ms,
            cached=run.cached,
            schema_hash=schema_fingerprint(run.tables) if run.tables is not None else None,
        )

    def invalidate(self, data_source_id: int, schema_name: Optional[str] = None) -> bool:
        """Drop the cached result of a data source.

        Returns:
            True if the cache store supports deletion and was asked to delete
        """
        if self.cache is None or not hasattr(self.cache, "delete"):
            return False

        key = self._cache_key(data_source_id, schema_name)
        try:
            self.cache.delete(key)
        except Exception as e:
            logger.warning(f"Failed to invalidate {key}: {e}")
            return False

        logger.info(f"Invalidated cached suggestions: {key}")
        return True

    @staticmethod
    def schema_fingerprint(tables: Sequence[TableSchema]) -> str:
        """MD5 fingerprint of a schema, see :func:`joinscout.core.report.schema_fingerprint`."""
        return schema_fingerprint(tables)

    def _cache_key(self, data_source_id: int, schema_name: Optional[str]) -> str:
        return cache_key(data_source_id, schema_name, prefix=self.cache_prefix)

    def _run(
        self,
        data_source: Any,
        data_source_id: int,
        schema_name: Optional[str],
        options: Optional[InferenceOptions],
        max_tables: Optional[int],
    ) -> _SourceRun:
        start = time.perf_counter()
        key = self._cache_key(data_source_id, schema_name)
        use_cache = self.cache is not None and self.cache_enabled

        if use_cache:
            cached = self._cache_get(key)
            if cached is not None:
                logger.info(f"Returning {len(cached)} cached suggestions for {key}")
                return _SourceRun(cached, None, True)

        try:
            tables = self.schema_collector.collect_schema(data_source, schema_name)
        except Exception as e:
            logger.error(f"Failed to collect schema for data source {data_source_id}: {e}")
            return _SourceRun([], None, False)

        limit = max_tables if max_tables is not None else self.max_tables
        if len(tables) > limit:
            logger.warning(
                f"Data source {data_source_id} has {len(tables)} tables, "
                f"analyzing the first {limit}"
            )
            tables = tables[:limit]

        tables = self._apply_display_names(tables, data_source, data_source_id, schema_name)

        suggestions = self.infer_joins(tables, options)

        if use_cache:
            self._cache_set(key, suggestions)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"Generated {len(suggestions)} suggestions for data source "
            f"{data_source_id} in {elapsed_ms:.0f}ms"
        )
        return _SourceRun(suggestions, tables, False)

    def _apply_display_names(
        self,
        tables: List[TableSchema],
        data_source: Any,
        data_source_id: int,
        schema_name: Optional[str],
    ) -> List[TableSchema]:
        names = {}
        if self.metadata_store is not None:
            try:
                names = self.metadata_store.get_display_names(
                    data_source, data_source_id, schema_name
                )
            except Exception as e:
                logger.warning(f"Could not load logical table names, using physical names: {e}")

        return [
            replace(
                table,
                display_name=names.get(table.table_name) or table.display_name or table.table_name,
            )
            for table in tables
        ]

    def _cache_get(self, key: str) -> Optional[List[InferredJoin]]:
        try:
            payload = self.cache.get(key)
            if payload is None:
                return None
            return deserialize_suggestions(payload)
        except Exception as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None

    def _cache_set(self, key: str, suggestions: List[InferredJoin]) -> None:
        try:
            self.cache.setex(key, self.cache_ttl, serialize_suggestions(suggestions))
        except Exception as e:
            logger.warning(f"Cache write failed for {key}: {e}")
