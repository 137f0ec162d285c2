from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Union

from .node import NodeInfo, NodeRecord

RecordLike = Union[NodeRecord, dict]


class TreeDataProvider(ABC):
    """
    Backing store of a paged tree.

    A ``parent_id`` of None addresses the root level. Implementations may
    return NodeRecord instances or plain dicts with the same keys.
    """

    @abstractmethod
    async def get_child_page(self, parent_id: Optional[str], offset: int, limit: int) -> Sequence[RecordLike]:
        """Return up to ``limit`` children of ``parent_id`` starting at ``offset``."""

    @abstractmethod
    async def get_child_count(self, parent_id: Optional[str]) -> int:
        """Return the number of children of ``parent_id``."""

    @abstractmethod
    async def get_ancestor_chain(self, node_id: str) -> Sequence[RecordLike]:
        """
        Return the ancestors of ``node_id`` ordered from root to direct parent.

        An unknown id yields an empty chain.
        """

    async def get_child_infos(self, parent_id: Optional[str]) -> List[NodeInfo]:
        """
        Return id and child count of every child of ``parent_id``.

        The default fetches all children in a single page; providers with a
        cheaper index query should override it.
        """
        count = await self.get_child_count(parent_id)
        if count <= 0:
            return []
        records = await self.get_child_page(parent_id, 0, count)
        return [NodeInfo(id=r.id, children_count=r.children_count) for r in to_records(records)]


def to_records(items: Sequence[RecordLike]) -> List[NodeRecord]:
    return [i if isinstance(i, NodeRecord) else NodeRecord.model_validate(i) for i in items]


def to_infos(items: Sequence[Union[NodeInfo, NodeRecord, dict]]) -> List[NodeInfo]:
    infos = []
    for i in items:
        if isinstance(i, NodeInfo):
            infos.append(i)
        elif isinstance(i, NodeRecord):
            infos.append(NodeInfo(id=i.id, children_count=i.children_count))
        else:
            infos.append(NodeInfo.model_validate(i))
    return infos
