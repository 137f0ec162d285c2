"""
Tree node entities.

TreeNode is one row of the flattened tree. NodeRecord and NodeInfo are the
payloads exchanged with a TreeDataProvider.
"""
import weakref
from typing import Any, List, Optional
from pydantic import BaseModel


class NodeRecord(BaseModel):
    """Full node data as returned by a provider."""
    id: str
    data: Any = None
    children_count: int = 0


class NodeInfo(BaseModel):
    """Minimal node data used to locate a node among its siblings."""
    id: str
    children_count: int = 0


class TreeNode:
    """
    A row in the flat projection.

    A node without ``data`` is a placeholder: it reserves a position until
    the page containing it has been fetched. The parent link is a weak
    reference, the projection owns every node.
    """

    def __init__(self, parent: Optional["TreeNode"] = None, index: int = 0):
        self.id: Optional[str] = None
        self.data: Any = None
        self.index = index
        self.children_count = -1
        self.expanded = False
        self.loading = False
        self.selectable = True
        self.selected = False
        self._parent_ref: Optional[weakref.ref] = None
        self.level = 0
        if parent is not None:
            self._parent_ref = weakref.ref(parent)
            self.level = parent.level + 1

    @property
    def parent(self) -> Optional["TreeNode"]:
        return self._parent_ref() if self._parent_ref is not None else None

    @property
    def parent_key(self) -> Optional[str]:
        """Cache key of the sibling group: the parent's id, None for roots."""
        parent = self.parent
        return parent.id if parent is not None else None

    @property
    def expandable(self) -> bool:
        return self.children_count > 0

    @property
    def loaded(self) -> bool:
        return self.data is not None

    def apply_record(self, record: NodeRecord) -> bool:
        """
        Copy provider data into this node.

        Returns False when the node was already loaded. The child count of an
        expanded node is left alone, its children are already spliced in.
        """
        if self.loaded:
            return False
        self.id = record.id
        self.data = record.data
        if not self.expanded:
            self.children_count = record.children_count
        return True

    def apply_info(self, info: NodeInfo):
        """Give a placeholder its identity without loading its data."""
        self.id = info.id
        if not self.expanded:
            self.children_count = info.children_count

    def __repr__(self):
        state = "loaded" if self.loaded else "placeholder"
        return f"TreeNode(id={self.id!r}, level={self.level}, index={self.index}, {state})"


def create_placeholders(count: int, parent: Optional[TreeNode] = None) -> List[TreeNode]:
    """Create ``count`` unloaded siblings indexed 0..count-1 under ``parent``."""
    return [TreeNode(parent, index=i) for i in range(max(count, 0))]
