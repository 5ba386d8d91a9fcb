"""Stores of user-assigned logical table names."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from sqlalchemy import text

from joinscout.utils.config import Config, get_config
from joinscout.utils.logging import get_logger

logger = get_logger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class TableMetadataStore(ABC):
    """Source of physical -> logical table name mappings."""

    @abstractmethod
    def get_display_names(
        self, connection: Any, data_source_id: int, schema_name: Optional[str] = None
    ) -> Dict[str, str]:
        """Return physical_table_name -> logical_table_name.

        Args:
            connection: Handle the store may query through
            data_source_id: Data source the tables belong to
            schema_name: Schema of the tables

        Raises:
            Any error of the underlying store; callers decide how to degrade
        """


class StaticTableMetadataStore(TableMetadataStore):
    """Mapping held in memory, keyed by (data_source_id, schema_name)."""

    def __init__(self, names: Optional[Dict[Any, Dict[str, str]]] = None):
        """Initialize store.

        Args:
            names: ``{(data_source_id, schema_name): {physical: logical}}``;
                a bare ``data_source_id`` key applies to every schema
        """
        self.names = names or {}

    def get_display_names(self, connection, data_source_id, schema_name=None):
        mapping = self.names.get((data_source_id, schema_name))
        if mapping is None:
            mapping = self.names.get(data_source_id, {})
        return dict(mapping)


class SQLTableMetadataStore(TableMetadataStore):
    """Read logical names from the platform's table metadata table.

    Example:
        >>> store = SQLTableMetadataStore(engine=platform_engine)
        >>> store.get_display_names(None, 42, "dra_excel")
        {'ds42_a1b2c3': 'Orders - shop.xlsx'}
    """

    def __init__(
        self,
        engine: Any = None,
        table: Optional[str] = None,
        default_schema: Optional[str] = None,
    ):
        """Initialize store.

        Args:
            engine: SQLAlchemy Engine of the platform database; if None the
                connection passed to each lookup is used
            table: Metadata table name, optionally schema-qualified
                (``metadata.table`` if None)
            default_schema: Schema name used when none is given
                (``metadata.default_schema`` if None)
        """
        config = get_config()
        table = table or config.get("metadata.table", "dra_table_metadata")
        default_schema = default_schema or config.get("metadata.default_schema", "public")
        if not _IDENTIFIER_RE.match(table):
            raise ValueError(f"Invalid metadata table name: {table!r}")
        self.engine = engine
        self.table = table
        self.default_schema = default_schema

    @classmethod
    def from_config(
        cls, config: Optional[Config] = None, engine: Any = None
    ) -> SQLTableMetadataStore:
        """Build a store from the ``metadata`` config section."""
        config = config or get_config()
        return cls(
            engine=engine,
            table=config.get("metadata.table", "dra_table_metadata"),
            default_schema=config.get("metadata.default_schema", "public"),
        )

    def get_display_names(self, connection, data_source_id, schema_name=None):
        bind = self.engine if self.engine is not None else connection
        if bind is None:
            raise ValueError("No engine or connection available for metadata lookup")

        query = text(
            f"SELECT physical_table_name, logical_table_name FROM {self.table} "
            "WHERE data_source_id = :data_source_id AND schema_name = :schema_name"
        )
        params = {
            "data_source_id": data_source_id,
            "schema_name": schema_name or self.default_schema,
        }

        if hasattr(bind, "connect"):
            with bind.connect() as conn:
                rows = conn.execute(query, params).fetchall()
        else:
            rows = bind.execute(query, params).fetchall()

        names = {row[0]: row[1] for row in rows if row[1]}
        logger.debug(f"Loaded {len(names)} logical names for data source {data_source_id}")
        return names
