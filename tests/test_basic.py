"""Basic tests for JoinScout."""

import subprocess
import sys

import pytest

from joinscout import JoinInferenceEngine, TableSchema
from joinscout.core.types import InferredJoin, confidence_level
from helpers import make_table


def test_version():
    """Test version is set."""
    from joinscout import __version__

    assert __version__ == "0.1.0"


@pytest.mark.parametrize(
    "module",
    [
        "joinscout",
        "joinscout.core",
        "joinscout.core.engine",
        "joinscout.connectors",
        "joinscout.connectors.base",
    ],
)
def test_modules_import_in_fresh_interpreter(module):
    """Each package entry point imports on its own, whatever is loaded first."""
    result = subprocess.run(
        [sys.executable, "-c", f"import {module}"], capture_output=True, text=True
    )

    assert result.returncode == 0, result.stderr


def test_lazy_agent_exports():
    """Agent classes are reachable from the top-level package."""
    import joinscout

    assert joinscout.ConversationManager.__name__ == "ConversationManager"
    with pytest.raises(AttributeError):
        joinscout.DoesNotExist  # noqa: B018


def test_confidence_level_buckets():
    """Levels follow the score thresholds."""
    assert confidence_level(0.0) == "low"
    assert confidence_level(0.39) == "low"
    assert confidence_level(0.4) == "medium"
    assert confidence_level(0.69) == "medium"
    assert confidence_level(0.7) == "high"
    assert confidence_level(1.0) == "high"


def test_inferred_join_wire_form():
    """to_dict/from_dict keep every field and recompute the level."""
    join = InferredJoin(
        id="inferred_join_abc",
        left_schema="public",
        left_table="orders",
        left_column="customer_id",
        left_column_type="integer",
        right_schema="public",
        right_table="customers",
        right_column="id",
        right_column_type="integer",
        confidence_score=0.5,
        reasoning="test",
        matched_patterns=["id_suffix", "type_match"],
    )
    data = join.to_dict()
    assert data["confidence"] == "medium"

    data["confidence"] = "high"  # stale level is ignored
    restored = InferredJoin.from_dict(data)
    assert restored.confidence == "medium"
    assert restored.to_dict()["created_at"] == join.created_at.isoformat()
    assert restored.matched_patterns == ["id_suffix", "type_match"]


def test_table_schema_helpers():
    """label falls back to the physical name, get_column ignores case."""
    table = make_table("ds2_42d115c3", [("Order_ID", "integer")])
    assert table.label == "ds2_42d115c3"
    table.display_name = "Orders"
    assert table.label == "Orders"
    assert table.get_column("order_id").column_name == "Order_ID"
    assert table.get_column("missing") is None
    assert isinstance(TableSchema.from_dict(table.to_dict()), TableSchema)
    assert JoinInferenceEngine.schema_fingerprint([table])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
