"""Builders and stub collaborators shared by the test modules."""

from __future__ import annotations

from typing import List, Optional

from joinscout.connectors.base import SchemaCollector
from joinscout.core.types import ColumnSchema, InferredJoin, TableSchema


def make_table(
    name: str,
    columns,
    display_name: Optional[str] = None,
    primary_keys: Optional[List[str]] = None,
    schema: str = "public",
) -> TableSchema:
    """Build a TableSchema from ``[(column, type), ...]``."""
    return TableSchema(
        schema=schema,
        table_name=name,
        columns=[ColumnSchema(column_name=c, data_type=t, is_nullable="NO") for c, t in columns],
        display_name=display_name,
        primary_keys=list(primary_keys or []),
    )


def join(left, right, score, patterns=None, reasoning="r"):
    """Build a suggestion from ``"table.column"`` strings."""
    lt, lc = left.split(".")
    rt, rc = right.split(".")
    return InferredJoin(
        id=InferredJoin.new_id(),
        left_schema="public",
        left_table=lt,
        left_column=lc,
        left_column_type="integer",
        right_schema="public",
        right_table=rt,
        right_column=rc,
        right_column_type="integer",
        confidence_score=score,
        reasoning=reasoning,
        matched_patterns=list(patterns or []),
    )


class StubLLM:
    """Conversational LLM that replays canned replies."""

    def __init__(self, replies=None, fail: bool = False, responder=None):
        self.replies = list(replies or [])
        self.responder = responder
        self.fail = fail
        self.conversations = {}
        self.prompts = []

    def initialize_conversation(self, conversation_id, system_prompt):
        if conversation_id in self.conversations:
            raise ValueError(f"Conversation {conversation_id} already exists")
        self.conversations[conversation_id] = system_prompt

    def send_message(self, conversation_id, prompt):
        self.prompts.append(prompt)
        if self.fail:
            raise ConnectionError("LLM unavailable")
        if self.responder is not None:
            return self.responder(prompt)
        return self.replies.pop(0) if self.replies else "[]"


class CountingCollector(SchemaCollector):
    """Collector serving fixed tables and counting calls."""

    def __init__(self, tables=None, error: Optional[Exception] = None):
        super().__init__()
        self.tables = tables or []
        self.error = error
        self.calls = 0
        self.last = None

    def collect_schema(self, connection, schema_name=None):
        self.calls += 1
        if self.error is not None:
            raise self.error
        self.last = [TableSchema.from_dict(t.to_dict()) for t in self.tables]
        return self.last
