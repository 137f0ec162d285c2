"""
TreeDataSource - viewport driven loading of a paged tree.

Connects a viewport (anything reporting visible row ranges and listening to
``projection_changed``) to a TreeDataProvider through a PagedNodeCache.

Usage:
    source = TreeDataSource(provider)
    source.projection_changed.connect(view.set_rows)
    await source.initialize()

    source.set_visible_range(0, 40)     # debounced
    source.toggle(source.nodes[3])      # expand/collapse
    row = await source.load_ancestor_path("node:4512")
"""
import asyncio
from typing import List, Optional, Set, Tuple

from loguru import logger

from ..core.config import ConfigManager, TreeSettings
from ..core.errors import AlreadyInitialized, NoProvider, NotInitialized
from .ancestors import AncestorPathResolver
from .cache import PagedNodeCache
from .node import NodeRecord, TreeNode
from .projection import FlatProjection
from .provider import TreeDataProvider


class TreeDataSource:
    """
    Owns the flat projection of a tree and keeps the visible part of it loaded.

    All methods must be called from the event loop thread. Provider calls are
    the only suspension points; results arriving for rows that were removed
    in the meantime are dropped.
    """

    def __init__(self, provider: Optional[TreeDataProvider] = None,
                 settings: Optional[TreeSettings] = None):
        self.provider = provider
        self.settings = settings or TreeSettings()
        self.projection = FlatProjection()
        self.cache = PagedNodeCache(provider, self.settings.page_size) if provider is not None else None
        self.resolver = AncestorPathResolver(self.projection, self.cache) if self.cache is not None else None
        self.selected_node: Optional[TreeNode] = None

        self._initialized = False
        self._range: Optional[Tuple[int, int]] = None
        self._pending_range: Optional[Tuple[int, int]] = None
        self._debounce_handle: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()

    @classmethod
    def from_config(cls, provider: Optional[TreeDataProvider], config: ConfigManager) -> "TreeDataSource":
        """Create a data source from ``config.tree`` and follow later debounce changes."""
        source = cls(provider, config.data.tree.model_copy())

        def on_changed(section, key, value):
            if section == "tree" and key == "debounce_ms":
                source.settings.debounce_ms = value
            elif section == "tree" and key == "page_size":
                logger.info(f"Tree page size changed to {value} (takes effect for new data sources)")

        config.on_changed.connect(on_changed)
        return source

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def projection_changed(self):
        """Signal emitting a snapshot list of rows after each change."""
        return self.projection.changed

    @property
    def rows_changed(self):
        """Signal emitting a ProjectionChange (kind, position, rows) after each change."""
        return self.projection.rows_changed

    @property
    def nodes(self) -> List[TreeNode]:
        return self.projection.snapshot()

    @property
    def visible_range(self) -> Optional[Tuple[int, int]]:
        return self._range

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self, node_id: Optional[str] = None) -> Optional[int]:
        """
        Load the root level as placeholders.

        Args:
            node_id: Optionally reveal this node once the roots are in place.

        Returns:
            Flat index of ``node_id`` (None if not found), None without it.
        """
        if self._initialized:
            raise AlreadyInitialized()
        if self.cache is None:
            raise NoProvider()

        self._initialized = True
        try:
            count = await self.cache.get_child_count(None)
        except Exception:
            self._initialized = False
            raise
        logger.info(f"TreeDataSource: {count} root nodes")
        self.projection.reset(self.projection.create_placeholders(count))

        if self._range is not None:
            self.request_load()
        if node_id is not None:
            return await self.load_ancestor_path(node_id)
        return None

    async def close(self):
        """Stop the debounce timer and cancel outstanding loads."""
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    # ------------------------------------------------------------------
    # Viewport input
    # ------------------------------------------------------------------

    def set_visible_range(self, start: int, end: int):
        """
        Report the rows ``[start, end)`` as visible.

        Loading starts once no new range has been reported for
        ``settings.debounce_ms``.
        """
        self._pending_range = (start, end)
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        loop = asyncio.get_running_loop()
        self._debounce_handle = loop.call_later(self.settings.debounce_ms / 1000.0, self._on_range_settled)

    def _on_range_settled(self):
        self._debounce_handle = None
        self._range = self._pending_range
        logger.debug(f"TreeDataSource: visible range settled at {self._range}")
        if self._initialized:
            self.request_load()

    def request_load(self, start: Optional[int] = None, end: Optional[int] = None) -> List[asyncio.Task]:
        """
        Load unloaded rows in ``[start, end)`` now, bypassing the debounce.

        Defaults to the current visible range. Pages already cached are
        applied before this returns; the returned tasks finish when the
        remaining pages have been fetched and applied.
        """
        if start is None or end is None:
            if self._range is None:
                return []
            start, end = self._range
        return self._load_nodes_in_range(start, end)

    async def load_range(self, start: int, end: int):
        """Load ``[start, end)`` and wait until every requested page is applied."""
        tasks = self.request_load(start, end)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def wait_for_loads(self):
        """Wait until no page load is outstanding."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _load_nodes_in_range(self, start: int, end: int) -> List[asyncio.Task]:
        if self.cache is None:
            return []
        start = max(start, 0)
        end = min(end, len(self.projection))

        # Consecutive unloaded rows sharing (parent, page) form one request.
        groups = []
        last_key = None
        for node in self.projection[start:end]:
            if node.loaded:
                continue
            parent = node.parent
            if parent is not None and parent.id is None:
                continue
            key = (node.parent_key, self.cache.page_index_of(node.index))
            if key != last_key:
                groups.append((parent, key[0], key[1], []))
                last_key = key
            groups[-1][3].append(node.index)

        tasks = []
        with self.projection.batch():
            for parent, parent_key, page_index, positions in groups:
                offset = page_index * self.cache.page_size
                page = self.cache.peek_child_page(parent_key, page_index)
                if page is not None:
                    self.projection.apply_resolved(parent, offset, page, positions)
                    continue
                future = self.cache.get_child_page(parent_key, page_index)
                tasks.append(self._spawn(self._apply_page(parent, offset, positions, future)))
        return tasks

    async def _apply_page(self, parent: Optional[TreeNode], offset: int, positions: List[int],
                          future: "asyncio.Future[List[NodeRecord]]"):
        try:
            page = await future
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"TreeDataSource: page at offset {offset} of '{parent.id if parent else None}' not loaded: {e}")
            return
        self.projection.apply_resolved(parent, offset, page, positions)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # ------------------------------------------------------------------
    # Expand / collapse
    # ------------------------------------------------------------------

    def toggle(self, node: TreeNode) -> Optional[asyncio.Task]:
        """
        Expand a collapsed node or collapse an expanded one.

        Ignored for nodes that are not expandable, are busy, or are not
        shown. Returns a task only when the child count has to be fetched.
        """
        if not node.expandable or node.loading:
            return None
        if self.projection.index_of(node) < 0:
            return None
        if node.expanded:
            self.collapse(node)
            return None
        return self.expand(node)

    def expand(self, node: TreeNode) -> Optional[asyncio.Task]:
        if node.expanded or node.loading:
            return None
        at = self.projection.index_of(node)
        if at < 0:
            return None
        if node.children_count >= 0:
            self._insert_children(at, node, node.children_count)
            return None

        node.loading = True
        return self._spawn(self._expand_with_count(node))

    async def _expand_with_count(self, node: TreeNode):
        try:
            count = await self.cache.get_child_count(node.id)
        except Exception as e:
            logger.warning(f"TreeDataSource: cannot expand '{node.id}': {e}")
            node.loading = False
            return
        node.loading = False
        node.children_count = count
        at = self.projection.index_of(node)
        if at < 0 or node.expanded:
            return
        self._insert_children(at, node, count)

    def _insert_children(self, at: int, node: TreeNode, count: int):
        node.loading = True
        with self.projection.batch():
            self.projection.splice_in(at + 1, self.projection.create_placeholders(count, node))
            node.loading = False
            node.expanded = True
            self.projection.notify()

        if self._range is not None:
            self.request_load()
        else:
            self.request_load(at + 1, at + 1 + min(count, self.cache.page_size))

    def collapse(self, node: TreeNode):
        if not node.expanded or node.loading:
            return
        at = self.projection.index_of(node)
        if at < 0:
            return
        node.loading = True
        with self.projection.batch():
            removed = self.projection.splice_out(at + 1, self.projection.descendant_span(at))
            node.loading = False
            node.expanded = False
            if self.selected_node is not None and any(n is self.selected_node for n in removed):
                self.selected_node.selected = False
                self.selected_node = None
            self.projection.notify()
        self.request_load()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_node(self, node: Optional[TreeNode]) -> bool:
        """Select ``node`` (None clears the selection). Returns False if refused."""
        if node is not None and not node.selectable:
            return False
        if self.selected_node is not None:
            self.selected_node.selected = False
        self.selected_node = node
        if node is not None:
            node.selected = True
        self.projection.notify()
        return True

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def load_ancestor_path(self, node_id: str) -> Optional[int]:
        """
        Reveal ``node_id`` by expanding its ancestors.

        Returns:
            The node's flat index, or None if the provider does not know it.
        """
        if not self._initialized or self.resolver is None:
            raise NotInitialized()
        index = await self.resolver.resolve(node_id)
        if index is not None:
            self.request_load(index, index + 1)
            self.request_load()
        return index
