"""
Paged tree data layer.

- TreeNode / NodeRecord / NodeInfo: row entity and provider payloads
- TreeDataProvider: backing store interface
- PagedNodeCache: deduplicating per (parent, page) cache
- FlatProjection: pre-order list of visible rows
- AncestorPathResolver: reveal a node by id
- TreeDataSource: viewport driven load orchestration
"""
from .node import TreeNode, NodeRecord, NodeInfo, create_placeholders
from .provider import TreeDataProvider
from .cache import PagedNodeCache
from .projection import FlatProjection, ProjectionChange
from .ancestors import AncestorPathResolver
from .data_source import TreeDataSource
from .example_provider import InMemoryTreeDataProvider, TreeNodeGenerator

__all__ = [
    "TreeNode",
    "NodeRecord",
    "NodeInfo",
    "create_placeholders",
    "TreeDataProvider",
    "PagedNodeCache",
    "FlatProjection",
    "ProjectionChange",
    "AncestorPathResolver",
    "TreeDataSource",
    "InMemoryTreeDataProvider",
    "TreeNodeGenerator",
]
