"""Base schema collector interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from joinscout.core.types import TableSchema
from joinscout.utils.logging import get_logger

logger = get_logger(__name__)


class SchemaCollector(ABC):
    """Abstract base class for schema collectors."""

    def __init__(self, **kwargs):
        """Initialize collector.

        Args:
            **kwargs: Collector-specific configuration
        """
        self.config = kwargs
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    def collect_schema(
        self, connection: Any, schema_name: Optional[str] = None
    ) -> List[TableSchema]:
        """Collect the column schema of every table.

        Args:
            connection: Collector-specific handle on the data
            schema_name: Schema to inspect (collector default if None)

        Returns:
            List of TableSchema, ordered by table name

        Raises:
            Any error of the underlying source; callers decide how to degrade
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.config})"
