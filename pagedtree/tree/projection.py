from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Sequence

from loguru import logger

from ..core.events import Signal
from .node import NodeRecord, TreeNode, create_placeholders


@dataclass
class ProjectionChange:
    """
    Shape of one notification.

    Attributes:
        kind: "update" (same rows, new state), "insert", "remove" or "reset"
        at: First affected row for insert/remove
        count: Number of rows inserted or removed
        rows: Snapshot of the rows after the change
    """
    kind: str
    at: int = 0
    count: int = 0
    rows: List[TreeNode] = field(default_factory=list)


class FlatProjection:
    """
    Ordered list of the rows currently shown by the viewport.

    The list is a pre-order flattening of the expanded part of the tree:
    an expanded node is followed by its whole visible subtree, a collapsed
    node by nothing of its own. ``changed`` emits a snapshot of the rows once
    per mutation, or once per ``batch()`` block; ``rows_changed`` emits the
    matching ProjectionChange. A batch holding more than one insert or
    remove is reported as a reset.
    """

    def __init__(self):
        self._nodes: List[TreeNode] = []
        self._batch_depth = 0
        self._pending: List[ProjectionChange] = []
        self.changed = Signal("ProjectionChanged")
        self.rows_changed = Signal("ProjectionRowsChanged")

    def __len__(self):
        return len(self._nodes)

    def __getitem__(self, i):
        return self._nodes[i]

    def __iter__(self) -> Iterator[TreeNode]:
        return iter(self._nodes)

    def snapshot(self) -> List[TreeNode]:
        return list(self._nodes)

    # --- Lookup ---

    def index_of(self, node: Optional[TreeNode]) -> int:
        """Flat index of ``node`` by identity, -1 if it is not shown."""
        if node is None:
            return -1
        for i, n in enumerate(self._nodes):
            if n is node:
                return i
        return -1

    def find_by_id(self, node_id: str) -> int:
        for i, n in enumerate(self._nodes):
            if n.id == node_id:
                return i
        return -1

    def _group_bounds(self, parent: Optional[TreeNode]):
        """(first, stop, level) of the slots that may hold ``parent``'s children."""
        if parent is None:
            return 0, len(self._nodes), 0
        p = self.index_of(parent)
        if p < 0:
            return 0, 0, parent.level + 1
        return p + 1, p + 1 + self.descendant_span(p), parent.level + 1

    def children_of(self, parent: Optional[TreeNode]) -> List[TreeNode]:
        """Direct children of ``parent`` in sibling order; roots for None."""
        first, stop, level = self._group_bounds(parent)
        return [n for n in self._nodes[first:stop] if n.level == level]

    def child_at(self, parent: Optional[TreeNode], position: int) -> Optional[TreeNode]:
        for n in self.children_of(parent):
            if n.index == position:
                return n
        return None

    def descendant_span(self, at: int) -> int:
        """Number of rows after ``at`` belonging to the subtree of the node at ``at``."""
        level = self._nodes[at].level
        i = at + 1
        while i < len(self._nodes) and self._nodes[i].level > level:
            i += 1
        return i - at - 1

    # --- Mutation ---

    def create_placeholders(self, count: int, parent: Optional[TreeNode] = None) -> List[TreeNode]:
        return create_placeholders(count, parent)

    def reset(self, nodes: Sequence[TreeNode]):
        self._nodes = list(nodes)
        self.notify(ProjectionChange("reset"))

    def splice_in(self, at: int, nodes: Sequence[TreeNode]):
        self._nodes[at:at] = nodes
        logger.debug(f"FlatProjection: inserted {len(nodes)} rows at {at}")
        self.notify(ProjectionChange("insert", at, len(nodes)) if nodes else None)

    def splice_out(self, at: int, count: int) -> List[TreeNode]:
        removed = self._nodes[at:at + count]
        if removed:
            del self._nodes[at:at + count]
            logger.debug(f"FlatProjection: removed {len(removed)} rows at {at}")
            self.notify(ProjectionChange("remove", at, len(removed)))
        return removed

    def apply_resolved(self, parent: Optional[TreeNode], offset: int, records: Sequence[NodeRecord],
                       positions: Optional[Iterable[int]] = None) -> int:
        """
        Copy ``records`` into the children of ``parent`` at sibling positions
        ``offset``, ``offset + 1``, ...

        Slots are matched by sibling index, already-loaded slots are skipped.
        If ``parent`` is no longer shown, nothing happens.

        Args:
            positions: Restrict the update to these sibling indices.

        Returns:
            Number of rows updated.
        """
        if parent is not None and self.index_of(parent) < 0:
            return 0
        wanted = set(positions) if positions is not None else None
        by_index = {n.index: n for n in self.children_of(parent)}
        updated = 0
        for i, record in enumerate(records):
            if wanted is not None and offset + i not in wanted:
                continue
            node = by_index.get(offset + i)
            if node is not None and node.apply_record(record):
                updated += 1
        if updated:
            self.notify()
        return updated

    # --- Notification ---

    @contextmanager
    def batch(self):
        """Coalesce the notifications of every mutation inside the block into one."""
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._pending:
                self._flush()

    def notify(self, change: Optional[ProjectionChange] = None):
        """Record a change (row state only when None) and emit unless batching."""
        self._pending.append(change or ProjectionChange("update"))
        if not self._batch_depth:
            self._flush()

    def _flush(self):
        structural = [c for c in self._pending if c.kind != "update"]
        self._pending = []
        if not structural:
            change = ProjectionChange("update")
        elif len(structural) == 1:
            change = structural[0]
        else:
            change = ProjectionChange("reset")
        change.rows = self.snapshot()
        self.changed.emit(self.snapshot())
        self.rows_changed.emit(change)
