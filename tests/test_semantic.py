"""Tests for AI response parsing and the LLM join suggester."""

import json

import pytest

from joinscout.core.ai_response import (
    AIJoinSuggestion,
    AIResponseParseError,
    extract_json,
    parse_join_suggestions,
    parse_junction_verdict,
)
from joinscout.core.semantic import (
    LLMJoinSuggester,
    NullSemanticSuggester,
    format_schema_for_ai,
    strip_schema_prefix,
)
from joinscout.utils.config import Config, set_config
from helpers import StubLLM, make_table


def _suggestion(**overrides):
    item = {
        "left_table": "orders",
        "left_column": "customer_id",
        "right_table": "customers",
        "right_column": "id",
        "confidence_score": 92,
        "reasoning": "Orders are placed by customers.",
        "join_type": "LEFT",
    }
    item.update(overrides)
    return item


@pytest.fixture
def tables():
    return [
        make_table("customers", [("id", "integer"), ("name", "text")], display_name="Customers"),
        make_table("orders", [("id", "integer"), ("Customer_ID", "integer")]),
    ]


def test_extract_json_from_fence():
    """Fenced code blocks take precedence over surrounding prose."""
    text = "Here you go:\n```json\n[{\"a\": 1}]\n```\nHope it helps [1]."
    assert extract_json(text) == [{"a": 1}]


def test_extract_json_from_prose():
    """Without a fence the outermost bracket pair is used."""
    assert extract_json('Sure! [{"a": [1, 2]}] done') == [{"a": [1, 2]}]
    assert extract_json('Verdict: {"is_junction": false} ok', expect="object") == {
        "is_junction": False
    }


@pytest.mark.parametrize("text", ["", "   ", "no json here", "[not json]"])
def test_extract_json_errors(text):
    """Replies without decodable JSON raise AIResponseParseError."""
    with pytest.raises(AIResponseParseError):
        extract_json(text)


def test_parse_error_is_value_error():
    """Callers can catch parse errors as ValueError."""
    assert issubclass(AIResponseParseError, ValueError)


def test_parse_join_suggestions_drops_invalid_items():
    """Malformed items are skipped, valid ones kept."""
    payload = [
        _suggestion(),
        _suggestion(confidence_score="very sure"),
        {"left_table": "orders"},
        _suggestion(left_column=""),
    ]
    parsed = parse_join_suggestions(json.dumps(payload))

    assert len(parsed) == 1
    assert parsed[0].left_column == "customer_id"


def test_parse_join_suggestions_accepts_wrapper_object():
    """A {"suggestions": [...]} wrapper is unwrapped."""
    parsed = parse_join_suggestions(json.dumps({"suggestions": [_suggestion()]}))
    assert len(parsed) == 1

    with pytest.raises(AIResponseParseError):
        parse_join_suggestions(json.dumps({"result": "none"}))


@pytest.mark.parametrize(
    "raw,expected",
    [(92, 0.92), (0.8, 0.8), (150, 1.0), (-5, 0.0), (1, 1.0)],
)
def test_confidence_normalization(raw, expected):
    """Percentages become fractions, clamped into [0, 1]."""
    suggestion = AIJoinSuggestion.model_validate(_suggestion(confidence_score=raw))
    assert suggestion.normalized_confidence == pytest.approx(expected)


@pytest.mark.parametrize(
    "raw,expected",
    [("inner", "INNER"), ("RIGHT JOIN", "RIGHT"), ("FULL", "LEFT"), (None, "LEFT")],
)
def test_join_type_normalization(raw, expected):
    """join_type is one of INNER, LEFT, RIGHT; anything else becomes LEFT."""
    suggestion = AIJoinSuggestion.model_validate(_suggestion(join_type=raw))
    assert suggestion.join_type == expected


def test_parse_junction_verdict():
    """Invalid references are dropped, the verdict survives."""
    verdict = parse_junction_verdict(
        json.dumps(
            {
                "is_junction": True,
                "confidence": 80,
                "referenced_tables": [{"table_name": "a", "column": "a_id"}, {"column": "x"}],
            }
        )
    )
    assert verdict.is_junction
    assert [r.table_name for r in verdict.referenced_tables] == ["a"]

    with pytest.raises(AIResponseParseError):
        parse_junction_verdict("[1, 2]")


def test_strip_schema_prefix():
    """Schema qualifiers are removed from table names."""
    assert strip_schema_prefix("dra_excel.ds2_7e1dc7cf") == "ds2_7e1dc7cf"
    assert strip_schema_prefix(" orders ") == "orders"


def test_format_schema_for_ai(tables):
    """The prompt lists logical names, types, nullability and keys."""
    tables[0].primary_keys = ["id"]
    tables[0].columns[1].is_nullable = "YES"
    text = format_schema_for_ai(tables)

    assert "## Table: public.customers" in text
    assert "- id: integer [PRIMARY KEY]" in text
    assert "- name: text (nullable)" in text
    assert "## Table: public.orders\n" in text
    assert 'public.customers (Logical: "Customers")' in text
    tables[0].display_name = "Customers - crm.xlsx"
    assert '(Logical: "Customers - crm.xlsx")' in format_schema_for_ai(tables)


def test_suggest_joins_resolves_names(tables):
    """Schema prefixes, case and percentages are normalized; unknown names dropped."""
    reply = "```json\n" + json.dumps(
        [
            _suggestion(left_table="public.ORDERS", left_column="customer_id"),
            _suggestion(left_table="invoices"),
            _suggestion(right_column="uuid"),
        ]
    ) + "\n```"
    llm = StubLLM(replies=[reply])

    suggestions = LLMJoinSuggester(llm).suggest_joins(tables, "conv-1")

    assert len(suggestions) == 1
    join = suggestions[0]
    assert (join.left_table, join.left_column) == ("orders", "Customer_ID")
    assert (join.right_table, join.right_column) == ("customers", "id")
    assert join.confidence_score == pytest.approx(0.92)
    assert join.matched_patterns == ["ai-powered", "semantic-analysis"]
    assert join.left_column_type == "integer"
    assert "conv-1" in llm.conversations


def test_suggest_joins_degrades_on_failure(tables):
    """LLM errors and unparsable replies give an empty list."""
    assert LLMJoinSuggester(StubLLM(fail=True)).suggest_joins(tables, "c") == []
    assert LLMJoinSuggester(StubLLM(replies=["I cannot help"])).suggest_joins(tables, "c") == []
    assert LLMJoinSuggester(StubLLM()).suggest_joins([], "c") == []


def test_existing_conversation_is_reused(tables):
    """An "already exists" error from the LLM does not stop the request."""
    llm = StubLLM(replies=["[]", json.dumps([_suggestion()])])
    suggester = LLMJoinSuggester(llm)

    assert suggester.suggest_joins(tables, "c") == []
    assert len(suggester.suggest_joins(tables, "c")) == 1


def test_junction_verdict_thresholds(tables):
    """Low confidence or fewer than two resolvable tables reject the verdict."""
    junction = make_table("ds_x", [("a", "integer"), ("b", "integer")])
    all_tables = tables + [junction]

    def verdict(confidence, names):
        return json.dumps(
            {
                "is_junction": True,
                "confidence": confidence,
                "referenced_tables": [{"table_name": n, "column": "a"} for n in names],
            }
        )

    suggester = LLMJoinSuggester(
        StubLLM(
            replies=[
                verdict(50, ["customers", "orders"]),
                verdict(90, ["customers", "unknown"]),
                verdict(90, ["customers", "customers"]),
                verdict(90, ["dra.customers", "ORDERS"]),
            ]
        )
    )

    assert suggester.detect_junction(junction, all_tables, "c") == []
    assert suggester.detect_junction(junction, all_tables, "c") == []
    assert suggester.detect_junction(junction, all_tables, "c") == []
    refs = suggester.detect_junction(junction, all_tables, "c")
    assert [r.table_name for r in refs] == ["customers", "orders"]


def test_null_suggester(tables):
    """The no-op suggester never suggests anything."""
    null = NullSemanticSuggester()
    assert null.suggest_joins(tables, "c") == []
    assert null.detect_junction(tables[0], tables, "c") == []


def test_junction_threshold_defaults_to_global_config():
    """Without an explicit section the suggester reads inference.junction."""
    set_config(Config.from_dict({"inference": {"junction": {"min_ai_confidence": 95}}}))

    assert LLMJoinSuggester(StubLLM()).min_junction_confidence == 95
    assert LLMJoinSuggester(StubLLM(), {}).min_junction_confidence == 70


def test_suggester_from_config():
    """from_config takes its threshold from the given config."""
    llm = StubLLM()
    config = Config.from_dict({"inference": {"junction": {"min_ai_confidence": 80}}})

    suggester = LLMJoinSuggester.from_config(config, llm=llm)

    assert suggester.llm is llm
    assert suggester.min_junction_confidence == 80
