"""Core join inference pipeline."""

from joinscout.core.cache import InMemoryCacheStore, cache_key
from joinscout.core.engine import JoinInferenceEngine
from joinscout.core.junction import JunctionTableDetector
from joinscout.core.matcher import PairwiseMatcher
from joinscout.core.merger import merge_suggestions
from joinscout.core.naming import NameNormalizer
from joinscout.core.report import InferenceReport, schema_fingerprint
from joinscout.core.semantic import (
    LLMJoinSuggester,
    NullSemanticSuggester,
    SemanticJoinSuggester,
)
from joinscout.core.types import (
    ColumnSchema,
    ForeignKeyRef,
    InferenceOptions,
    InferredJoin,
    JunctionCandidate,
    TableReference,
    TableSchema,
)

__all__ = [
    "ColumnSchema",
    "ForeignKeyRef",
    "InMemoryCacheStore",
    "InferenceOptions",
    "InferenceReport",
    "InferredJoin",
    "JoinInferenceEngine",
    "JunctionCandidate",
    "JunctionTableDetector",
    "LLMJoinSuggester",
    "NameNormalizer",
    "NullSemanticSuggester",
    "PairwiseMatcher",
    "SemanticJoinSuggester",
    "TableReference",
    "TableSchema",
    "cache_key",
    "merge_suggestions",
    "schema_fingerprint",
]
