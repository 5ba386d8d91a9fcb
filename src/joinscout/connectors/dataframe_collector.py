"""Schema collector for in-memory DataFrames and CSV exports."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
from pandas.api import types as ptypes

from joinscout.connectors.base import SchemaCollector
from joinscout.core.types import ColumnSchema, TableSchema


def sql_type_for(series: pd.Series) -> str:
    """Map a pandas dtype to a SQL type name understood by the type families."""
    if ptypes.is_bool_dtype(series):
        return "boolean"
    if ptypes.is_integer_dtype(series):
        return "bigint"
    if ptypes.is_float_dtype(series):
        return "double precision"
    if ptypes.is_datetime64_any_dtype(series):
        return "timestamp"
    return "text"


def infer_primary_key(df: pd.DataFrame) -> Optional[str]:
    """Infer a primary key column.

    Prefers a unique, non-null ``id`` column, then the first unique,
    non-null column ending in ``_id``.
    """
    if "id" in df.columns and df["id"].is_unique and not df["id"].isna().any():
        return "id"

    for col in df.columns:
        if str(col).lower().endswith("_id") and df[col].is_unique and not df[col].isna().any():
            return col

    return None


class DataFrameSchemaCollector(SchemaCollector):
    """Build table schemas from DataFrames (spreadsheet and CSV imports).

    Example:
        >>> collector = DataFrameSchemaCollector()
        >>> tables = collector.collect_schema(
        ...     {"orders": orders_df, "customers": customers_df}, "dra_excel"
        ... )
        >>> tables = collector.collect_schema("./data/csv")
    """

    def __init__(
        self,
        file_pattern: str = "*.csv",
        infer_keys: bool = True,
        **pandas_kwargs,
    ):
        """Initialize collector.

        Args:
            file_pattern: Glob pattern used when given a directory
            infer_keys: Infer a primary key per table
            **pandas_kwargs: Additional arguments passed to pd.read_csv()
        """
        super().__init__(file_pattern=file_pattern, infer_keys=infer_keys, **pandas_kwargs)
        self.file_pattern = file_pattern
        self.infer_keys = infer_keys
        self.pandas_kwargs = pandas_kwargs

    def collect_schema(
        self, connection: Any, schema_name: Optional[str] = None
    ) -> List[TableSchema]:
        """Collect schema from DataFrames.

        Args:
            connection: Dict of table_name -> DataFrame, or a directory of
                CSV files (one table per file, named after the file stem)
            schema_name: Schema name to report (defaults to "public")

        Returns:
            List of TableSchema ordered by table name
        """
        if isinstance(connection, (str, Path)):
            frames = self.load_csv_dir(connection)
        elif isinstance(connection, dict):
            frames = connection
        else:
            raise TypeError(
                f"Expected a dict of DataFrames or a directory path, got {type(connection).__name__}"
            )

        schema = schema_name or "public"
        tables = [
            self._describe_frame(name, df, schema)
            for name, df in sorted(frames.items())
        ]

        self.logger.info(f"Collected schema for {len(tables)} DataFrame tables")
        return tables

    def load_csv_dir(self, data_dir: str | Path) -> Dict[str, pd.DataFrame]:
        """Load every CSV in a directory.

        Raises:
            FileNotFoundError: If the directory does not exist
            ValueError: If no file matches the pattern
        """
        data_dir = Path(data_dir)
        if not data_dir.is_dir():
            raise FileNotFoundError(f"Data directory not found: {data_dir}")

        csv_files = sorted(data_dir.glob(self.file_pattern))
        if not csv_files:
            raise ValueError(
                f"No CSV files found in {data_dir} matching pattern '{self.file_pattern}'"
            )

        frames = {}
        for csv_file in csv_files:
            self.logger.info(f"Loading {csv_file.name} as table '{csv_file.stem}'")
            frames[csv_file.stem] = pd.read_csv(csv_file, **self.pandas_kwargs)
        return frames

    def _describe_frame(self, name: str, df: pd.DataFrame, schema: str) -> TableSchema:
        columns = [
            ColumnSchema(
                column_name=str(col),
                data_type=sql_type_for(df[col]),
                is_nullable="YES" if df[col].isna().any() else "NO",
            )
            for col in df.columns
        ]

        primary_keys = []
        if self.infer_keys:
            pk = infer_primary_key(df)
            if pk is not None:
                primary_keys.append(str(pk))

        self.logger.debug(f"  {name}: {len(columns)} columns, {len(df)} rows, PK={primary_keys}")

        return TableSchema(
            schema=schema,
            table_name=name,
            columns=columns,
            primary_keys=primary_keys,
        )
