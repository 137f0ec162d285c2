"""
pagedtree - Virtualized paged tree data source

Keeps a flat, indexable projection of a huge lazily-loaded tree and fetches
only the pages needed for the rows a viewport is showing.
"""

from pagedtree.core.config import ConfigManager, AppConfig, GeneralSettings, TreeSettings, ExampleSettings
from pagedtree.core.events import Signal
from pagedtree.core.logging import setup_logging
from pagedtree.core.errors import (
    TreeDataError,
    AlreadyInitialized,
    NoProvider,
    NotInitialized,
    ProviderFailure,
)
from pagedtree.tree import (
    TreeNode,
    NodeRecord,
    NodeInfo,
    TreeDataProvider,
    PagedNodeCache,
    FlatProjection,
    ProjectionChange,
    AncestorPathResolver,
    TreeDataSource,
    InMemoryTreeDataProvider,
    TreeNodeGenerator,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "ConfigManager",
    "AppConfig",
    "GeneralSettings",
    "TreeSettings",
    "ExampleSettings",
    "Signal",
    "setup_logging",
    "TreeDataError",
    "AlreadyInitialized",
    "NoProvider",
    "NotInitialized",
    "ProviderFailure",

    # Tree
    "TreeNode",
    "NodeRecord",
    "NodeInfo",
    "TreeDataProvider",
    "PagedNodeCache",
    "FlatProjection",
    "ProjectionChange",
    "AncestorPathResolver",
    "TreeDataSource",
    "InMemoryTreeDataProvider",
    "TreeNodeGenerator",
]
