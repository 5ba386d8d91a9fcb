"""Inference report and schema fingerprinting."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from joinscout.core.types import InferredJoin, TableSchema


def schema_fingerprint(tables: Sequence[TableSchema]) -> str:
    """MD5 fingerprint of a schema.

    Built from sorted ``table:column:type`` triples, so it changes whenever
    a table or column is added, removed, renamed or retyped, and does not
    depend on the order tables or columns were collected in.

    Example:
        >>> schema_fingerprint(tables)
        '3b5d5c3712955042212316173ccf37be'
    """
    triples = sorted(
        f"{table.table_name}:{col.column_name}:{col.data_type}"
        for table in tables
        for col in table.columns
    )
    return hashlib.md5("|".join(triples).encode("utf-8")).hexdigest()


@dataclass
class InferenceReport:
    """Join suggestions for one data source plus summary statistics."""

    data_source_id: int
    schema_name: Optional[str]
    suggestions: List[InferredJoin] = field(default_factory=list)
    total_tables: Optional[int] = None
    processing_time_ms: float = 0.0
    cached: bool = False
    schema_hash: Optional[str] = None
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total_suggestions(self) -> int:
        return len(self.suggestions)

    def count_by_level(self) -> Dict[str, int]:
        counts = {"high": 0, "medium": 0, "low": 0}
        for suggestion in self.suggestions:
            counts[suggestion.confidence] += 1
        return counts

    @property
    def high_confidence_count(self) -> int:
        return self.count_by_level()["high"]

    @property
    def medium_confidence_count(self) -> int:
        return self.count_by_level()["medium"]

    @property
    def low_confidence_count(self) -> int:
        return self.count_by_level()["low"]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        counts = self.count_by_level()
        return {
            "data_source_id": self.data_source_id,
            "schema_name": self.schema_name,
            "total_tables": self.total_tables,
            "total_suggestions": self.total_suggestions,
            "high_confidence_count": counts["high"],
            "medium_confidence_count": counts["medium"],
            "low_confidence_count": counts["low"],
            "generated_at": self.generated_at.isoformat(),
            "processing_time_ms": round(self.processing_time_ms, 3),
            "cached": self.cached,
            "schema_hash": self.schema_hash,
            "suggestions": [s.to_dict() for s in self.suggestions],
        }
