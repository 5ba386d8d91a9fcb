"""JoinScout - JOIN suggestions for multi-tenant analytics data sources."""

__version__ = "0.1.0"

# Connectors
from joinscout.connectors import (
    DataFrameSchemaCollector,
    SQLAlchemySchemaCollector,
    SQLTableMetadataStore,
    StaticTableMetadataStore,
)

# Core modules
from joinscout.core import (
    ColumnSchema,
    InferenceOptions,
    InferenceReport,
    InferredJoin,
    InMemoryCacheStore,
    JoinInferenceEngine,
    LLMJoinSuggester,
    TableSchema,
)

# Utils
from joinscout.utils.config import Config, get_config, load_config


# Lazy imports for the LLM layer
def __getattr__(name):
    """Lazy import for the agent package."""
    if name in ("ConversationManager", "LLMProviderFactory"):
        from joinscout import agent

        return getattr(agent, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # Version
    "__version__",
    # Core
    "ColumnSchema",
    "InferenceOptions",
    "InferenceReport",
    "InferredJoin",
    "InMemoryCacheStore",
    "JoinInferenceEngine",
    "LLMJoinSuggester",
    "TableSchema",
    # Connectors
    "DataFrameSchemaCollector",
    "SQLAlchemySchemaCollector",
    "SQLTableMetadataStore",
    "StaticTableMetadataStore",
    # Agent
    "ConversationManager",
    "LLMProviderFactory",
    # Utils
    "Config",
    "get_config",
    "load_config",
]
