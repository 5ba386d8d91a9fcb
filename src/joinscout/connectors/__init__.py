"""Schema collectors and metadata stores."""

from joinscout.connectors.base import SchemaCollector
from joinscout.connectors.dataframe_collector import DataFrameSchemaCollector
from joinscout.connectors.db_collector import SQLAlchemySchemaCollector
from joinscout.connectors.metadata_store import (
    SQLTableMetadataStore,
    StaticTableMetadataStore,
    TableMetadataStore,
)

__all__ = [
    "DataFrameSchemaCollector",
    "SQLAlchemySchemaCollector",
    "SQLTableMetadataStore",
    "SchemaCollector",
    "StaticTableMetadataStore",
    "TableMetadataStore",
]
