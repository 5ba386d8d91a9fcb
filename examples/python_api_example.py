"""Python API usage examples for JoinScout."""

import pandas as pd
from sqlalchemy import create_engine, text

from joinscout import (
    DataFrameSchemaCollector,
    InferenceOptions,
    InMemoryCacheStore,
    JoinInferenceEngine,
    LLMJoinSuggester,
    SQLAlchemySchemaCollector,
    StaticTableMetadataStore,
)
from joinscout.utils.logging import setup_logging


# Example 1: Suggest joins for a relational database
def example_database():
    """Database example."""
    print("Example 1: Database")
    print("=" * 60)

    db = create_engine("sqlite://")
    with db.begin() as conn:
        conn.execute(text("CREATE TABLE customers (id INTEGER PRIMARY KEY, name TEXT)"))
        conn.execute(text("CREATE TABLE orders (order_no INTEGER PRIMARY KEY, customer_id INTEGER)"))
        conn.execute(text("CREATE TABLE products (id INTEGER PRIMARY KEY, title TEXT)"))
        conn.execute(text("CREATE TABLE order_products (order_id INTEGER, product_id INTEGER)"))

    engine = JoinInferenceEngine(SQLAlchemySchemaCollector(), cache=InMemoryCacheStore())
    report = engine.analyze_data_source(db, data_source_id=1)

    print(f"Tables: {report.total_tables}, suggestions: {report.total_suggestions}")
    for s in report.suggestions:
        print(
            f"  {s.left_table}.{s.left_column} -> {s.right_table}.{s.right_column} "
            f"[{s.confidence} {s.confidence_score:.2f}] {', '.join(s.matched_patterns)}"
        )

    # Second call is served from the cache
    print(f"Cached: {engine.analyze_data_source(db, data_source_id=1).cached}")


# Example 2: Spreadsheet imports with logical names
def example_spreadsheets():
    """Spreadsheet example."""
    print("\n\nExample 2: Spreadsheets")
    print("=" * 60)

    frames = {
        "ds2_42d115c3": pd.DataFrame({"id": [1, 2], "name": ["Alice", "Bob"]}),
        "ds2_7e1dc7cf": pd.DataFrame({"ref": [10, 11], "customer_id": [1, 2]}),
    }
    store = StaticTableMetadataStore(
        {2: {"ds2_42d115c3": "Customers - crm.xlsx", "ds2_7e1dc7cf": "Invoices - billing.xlsx"}}
    )

    engine = JoinInferenceEngine(DataFrameSchemaCollector(), metadata_store=store)
    for s in engine.infer_joins_from_data_source(frames, 2, "dra_excel"):
        print(f"  {s!r}: {s.reasoning}")


# Example 3: Add AI suggestions
def example_ai():
    """AI example (needs OPENAI_API_KEY and the openai extra)."""
    print("\n\nExample 3: AI-assisted")
    print("=" * 60)

    suggester = LLMJoinSuggester.from_config()
    engine = JoinInferenceEngine(SQLAlchemySchemaCollector(), semantic_suggester=suggester)

    db = create_engine("sqlite://")
    with db.begin() as conn:
        conn.execute(text("CREATE TABLE doctors (doc_no INTEGER PRIMARY KEY, name TEXT)"))
        conn.execute(text("CREATE TABLE visits (attending INTEGER, visited_on DATE)"))

    suggestions = engine.infer_joins_from_data_source(
        db, 3, options=InferenceOptions(use_ai=True, conversation_id="example")
    )
    for s in suggestions:
        print(f"  {s!r} {s.matched_patterns}")


if __name__ == "__main__":
    setup_logging("INFO")
    example_database()
    example_spreadsheets()
    # example_ai()
