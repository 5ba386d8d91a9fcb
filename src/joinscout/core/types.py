"""Schema and join suggestion data types."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

JOIN_TYPES = ("INNER", "LEFT", "RIGHT")


def confidence_level(score: float) -> str:
    """Map a confidence score to its level bucket.

    Args:
        score: Confidence score (0.0-1.0)

    Returns:
        "low" (< 0.4), "medium" (< 0.7) or "high"
    """
    if score < 0.4:
        return "low"
    if score < 0.7:
        return "medium"
    return "high"


@dataclass
class ColumnSchema:
    """A single column as reported by the schema collector."""

    column_name: str
    data_type: str
    is_nullable: Optional[str] = None  # "YES" / "NO"
    column_default: Optional[str] = None

    @property
    def nullable(self) -> bool:
        return (self.is_nullable or "").upper() == "YES"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "column_name": self.column_name,
            "data_type": self.data_type,
            "is_nullable": self.is_nullable,
            "column_default": self.column_default,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ColumnSchema:
        return cls(
            column_name=data["column_name"],
            data_type=data.get("data_type") or "",
            is_nullable=data.get("is_nullable"),
            column_default=data.get("column_default"),
        )


@dataclass
class ForeignKeyRef:
    """Declared foreign key constraint on a table."""

    column_name: str
    foreign_table: str
    foreign_column: str
    constraint_name: Optional[str] = None

    def __repr__(self) -> str:
        return f"FK({self.column_name} -> {self.foreign_table}.{self.foreign_column})"


@dataclass
class TableSchema:
    """Column schema of a table (one snapshot per inference run)."""

    schema: str
    table_name: str  # physical name, stable id
    columns: List[ColumnSchema] = field(default_factory=list)
    display_name: Optional[str] = None  # logical, human-facing name
    primary_keys: List[str] = field(default_factory=list)
    foreign_keys: List[ForeignKeyRef] = field(default_factory=list)

    @property
    def label(self) -> str:
        """Display name if set, otherwise the physical name."""
        return self.display_name or self.table_name

    def get_column(self, name: str) -> Optional[ColumnSchema]:
        """Case-insensitive column lookup."""
        name_lower = name.lower()
        for col in self.columns:
            if col.column_name.lower() == name_lower:
                return col
        return None

    def is_primary_key(self, column_name: str) -> bool:
        name_lower = column_name.lower()
        return any(pk.lower() == name_lower for pk in self.primary_keys)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema": self.schema,
            "table_name": self.table_name,
            "display_name": self.display_name,
            "columns": [c.to_dict() for c in self.columns],
            "primary_keys": list(self.primary_keys),
            "foreign_keys": [
                {
                    "column_name": fk.column_name,
                    "foreign_table": fk.foreign_table,
                    "foreign_column": fk.foreign_column,
                    "constraint_name": fk.constraint_name,
                }
                for fk in self.foreign_keys
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TableSchema:
        return cls(
            schema=data.get("schema") or "public",
            table_name=data["table_name"],
            display_name=data.get("display_name"),
            columns=[ColumnSchema.from_dict(c) for c in data.get("columns", [])],
            primary_keys=list(data.get("primary_keys") or []),
            foreign_keys=[
                ForeignKeyRef(
                    column_name=fk["column_name"],
                    foreign_table=fk["foreign_table"],
                    foreign_column=fk["foreign_column"],
                    constraint_name=fk.get("constraint_name"),
                )
                for fk in data.get("foreign_keys") or []
            ],
        )

    def __repr__(self) -> str:
        return f"TableSchema({self.schema}.{self.table_name}, columns={len(self.columns)})"


@dataclass
class TableReference:
    """A table referenced from a junction candidate, and the column that does it."""

    table_name: str
    column: str


@dataclass
class JunctionCandidate:
    """Table that may bridge other tables in a many-to-many relationship."""

    table_name: str
    referenced_tables: List[TableReference] = field(default_factory=list)

    @property
    def is_junction(self) -> bool:
        return len(self.referenced_tables) >= 2

    def references(self, table_name: str) -> bool:
        return any(r.table_name == table_name for r in self.referenced_tables)

    def add_reference(self, table_name: str, column: str) -> bool:
        """Add a reference unless the table is already referenced.

        Returns:
            True if the reference was added
        """
        if self.references(table_name):
            return False
        self.referenced_tables.append(TableReference(table_name, column))
        return True


@dataclass
class InferredJoin:
    """A proposed JOIN condition between two columns."""

    id: str
    left_schema: str
    left_table: str
    left_column: str
    left_column_type: str
    right_schema: str
    right_table: str
    right_column: str
    right_column_type: str
    confidence_score: float
    reasoning: str
    suggested_join_type: str = "LEFT"
    matched_patterns: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    applied: bool = False
    dismissed: bool = False

    @property
    def confidence(self) -> str:
        """Confidence level, always derived from ``confidence_score``."""
        return confidence_level(self.confidence_score)

    @staticmethod
    def new_id(prefix: str = "inferred_join") -> str:
        return f"{prefix}_{uuid.uuid4().hex[:16]}"

    def add_pattern(self, pattern: str) -> None:
        if pattern not in self.matched_patterns:
            self.matched_patterns.append(pattern)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON wire form."""
        return {
            "id": self.id,
            "left_schema": self.left_schema,
            "left_table": self.left_table,
            "left_column": self.left_column,
            "left_column_type": self.left_column_type,
            "right_schema": self.right_schema,
            "right_table": self.right_table,
            "right_column": self.right_column,
            "right_column_type": self.right_column_type,
            "confidence": self.confidence,
            "confidence_score": self.confidence_score,
            "reasoning": self.reasoning,
            "suggested_join_type": self.suggested_join_type,
            "matched_patterns": list(self.matched_patterns),
            "created_at": self.created_at.isoformat(),
            "applied": self.applied,
            "dismissed": self.dismissed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> InferredJoin:
        """Create from the JSON wire form.

        The stored ``confidence`` level is ignored; it is recomputed from
        the score.
        """
        created_at = data.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        elif created_at is None:
            created_at = datetime.now(timezone.utc)

        return cls(
            id=data["id"],
            left_schema=data["left_schema"],
            left_table=data["left_table"],
            left_column=data["left_column"],
            left_column_type=data.get("left_column_type", ""),
            right_schema=data["right_schema"],
            right_table=data["right_table"],
            right_column=data["right_column"],
            right_column_type=data.get("right_column_type", ""),
            confidence_score=float(data["confidence_score"]),
            reasoning=data.get("reasoning", ""),
            suggested_join_type=data.get("suggested_join_type", "LEFT"),
            matched_patterns=list(data.get("matched_patterns") or []),
            created_at=created_at,
            applied=bool(data.get("applied", False)),
            dismissed=bool(data.get("dismissed", False)),
        )

    def __repr__(self) -> str:
        return (
            f"InferredJoin({self.left_table}.{self.left_column} <-> "
            f"{self.right_table}.{self.right_column}, "
            f"score={self.confidence_score:.2f})"
        )


@dataclass
class InferenceOptions:
    """Per-call options for join inference."""

    use_ai: bool = False
    conversation_id: Optional[str] = None
