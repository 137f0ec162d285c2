from typing import List, Optional, Tuple

from loguru import logger

from .cache import PagedNodeCache
from .node import NodeInfo, TreeNode
from .projection import FlatProjection


class AncestorPathResolver:
    """
    Makes a node reachable in the projection by expanding its ancestors.

    Only the ancestor chain is expanded; siblings of ancestors keep their
    current state. Nodes on the path get their id and child count from the
    cached sibling infos, their data is left to the regular page loads.
    """

    def __init__(self, projection: FlatProjection, cache: PagedNodeCache):
        self.projection = projection
        self.cache = cache

    async def resolve(self, node_id: str) -> Optional[int]:
        """
        Return the flat index of ``node_id``, expanding its ancestors as needed.

        Every provider round trip happens before the projection is touched,
        the expansion itself is applied as one batch. Returns None when the
        node does not exist. Provider failures propagate.
        """
        i = self.projection.find_by_id(node_id)
        if i >= 0:
            return i

        chain = await self.cache.get_ancestor_chain(node_id)
        path: List[str] = [r.id for r in chain]
        if not path or path[-1] != node_id:
            path.append(node_id)

        steps: List[Tuple[int, NodeInfo]] = []
        parent_key: Optional[str] = None
        for step_id in path:
            infos = await self.cache.get_child_infos(parent_key)
            position = next((k for k, info in enumerate(infos) if info.id == step_id), -1)
            if position < 0:
                logger.info(f"AncestorPathResolver: '{node_id}' not found (missing '{step_id}')")
                return None
            steps.append((position, infos[position]))
            parent_key = step_id

        with self.projection.batch():
            parent: Optional[TreeNode] = None
            for position, info in steps:
                node = self._locate(parent, position, info)
                if node is None:
                    return None
                if info.id == node_id:
                    return self.projection.index_of(node)
                self._expand(node)
                parent = node
        return None

    def _locate(self, parent: Optional[TreeNode], position: int, info: NodeInfo) -> Optional[TreeNode]:
        if parent is not None and self.projection.index_of(parent) < 0:
            return None
        node = self.projection.child_at(parent, position)
        if node is None:
            return None
        if node.id is None:
            node.apply_info(info)
        elif node.id != info.id:
            logger.warning(f"AncestorPathResolver: slot {position} holds '{node.id}', expected '{info.id}'")
            return None
        elif node.children_count < 0 and not node.expanded:
            node.children_count = info.children_count
        return node

    def _expand(self, node: TreeNode):
        if node.expanded:
            return
        at = self.projection.index_of(node)
        if at < 0:
            return
        children = self.projection.create_placeholders(node.children_count, node)
        self.projection.splice_in(at + 1, children)
        node.expanded = True
        node.loading = False
