"""
In-memory example data for the paged tree.

TreeNodeGenerator builds a three level tree (roots, children, grandchildren)
with ids ``node:<n>`` numbered in pre-order. InMemoryTreeDataProvider serves
it through the TreeDataProvider interface, optionally with a random delay
to mimic a remote backend.
"""
import asyncio
import random
import time
from typing import Dict, List, Optional

from loguru import logger

from ..core.config import ExampleSettings
from .node import NodeInfo, NodeRecord
from .provider import TreeDataProvider


class TreeNodeGenerator:
    """Generate large amounts of tree nodes for testing."""

    def __init__(self):
        self.node_count = 0
        self.children: Dict[Optional[str], List[NodeRecord]] = {}
        self.parents: Dict[str, str] = {}

    def generate(self, root_count: int, child_count: int) -> List[NodeRecord]:
        """Generate ``root_count`` roots, each with ``child_count`` children with ``child_count`` leaves."""
        roots = []
        for _ in range(root_count):
            root = self._create(None, child_count)
            for _ in range(child_count):
                child = self._create(root.id, child_count)
                for _ in range(child_count):
                    self._create(child.id, 0)
            roots.append(root)
        return roots

    def _create(self, parent_id: Optional[str], child_count: int) -> NodeRecord:
        n = self.node_count
        self.node_count += 1
        record = NodeRecord(id=f"node:{n}", data=f"Node {n}", children_count=child_count)
        self.children.setdefault(parent_id, []).append(record)
        if parent_id is not None:
            self.parents[record.id] = parent_id
        return record


class InMemoryTreeDataProvider(TreeDataProvider):
    """
    TreeDataProvider over a generated tree.

    Every call is counted in ``calls`` (by method name) so callers can
    observe how many requests reached the backend.
    """

    def __init__(self, root_count: int = 1000, child_count: int = 10, max_delay_ms: int = 0):
        self.max_delay_ms = max_delay_ms
        self._generator = TreeNodeGenerator()
        self._generator.generate(root_count, child_count)
        self._records: Dict[str, NodeRecord] = {
            r.id: r for group in self._generator.children.values() for r in group
        }
        self.calls: Dict[str, int] = {}

    @classmethod
    def from_settings(cls, settings: ExampleSettings) -> "InMemoryTreeDataProvider":
        return cls(settings.root_count, settings.child_count, settings.max_delay_ms)

    @property
    def node_count(self) -> int:
        return self._generator.node_count

    def random_node_id(self) -> str:
        return random.choice(list(self._records))

    async def _delay(self, name: str, *args):
        self.calls[name] = self.calls.get(name, 0) + 1
        delay = random.uniform(0, self.max_delay_ms) / 1000.0 if self.max_delay_ms else 0
        started = time.perf_counter()
        await asyncio.sleep(delay)
        logger.debug(f"{name}{args} served in {(time.perf_counter() - started) * 1000:.0f}ms")

    async def get_child_page(self, parent_id: Optional[str], offset: int, limit: int) -> List[NodeRecord]:
        await self._delay("get_child_page", parent_id, offset, limit)
        return self._generator.children.get(parent_id, [])[offset:offset + limit]

    async def get_child_count(self, parent_id: Optional[str]) -> int:
        await self._delay("get_child_count", parent_id)
        return len(self._generator.children.get(parent_id, []))

    async def get_ancestor_chain(self, node_id: str) -> List[NodeRecord]:
        await self._delay("get_ancestor_chain", node_id)
        chain = []
        parent_id = self._generator.parents.get(node_id)
        while parent_id is not None:
            chain.append(self._records[parent_id])
            parent_id = self._generator.parents.get(parent_id)
        chain.reverse()
        return chain

    async def get_child_infos(self, parent_id: Optional[str]) -> List[NodeInfo]:
        await self._delay("get_child_infos", parent_id)
        return [NodeInfo(id=r.id, children_count=r.children_count)
                for r in self._generator.children.get(parent_id, [])]
