"""
PagedNodeCache - request deduplication and storage for provider data.

Every entry moves through ``absent -> pending -> resolved``. A pending entry
is the asyncio task performing the provider call, so concurrent callers for
the same key share one request. A failed request is forgotten, the next
caller issues it again.

Example::

    cache = PagedNodeCache(provider, page_size=50)

    a = cache.get_child_page(None, 0)
    b = cache.get_child_page(None, 0)   # same in-flight task, one provider call
    page = await a
"""
import asyncio
from typing import Any, Awaitable, Callable, Dict, Hashable, List, Optional

from loguru import logger

from ..core.errors import ProviderFailure
from .node import NodeInfo, NodeRecord
from .provider import TreeDataProvider, to_infos, to_records

ParentKey = Optional[str]


class PagedNodeCache:
    """
    Per-parent, per-page cache of provider results.

    Owned by a single data source and discarded with it. Resolved entries
    are kept for the lifetime of the cache; there is no eviction.
    """

    def __init__(self, provider: TreeDataProvider, page_size: int = 50):
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.provider = provider
        self.page_size = page_size
        self._pages: Dict[ParentKey, Dict[int, Any]] = {}
        self._counts: Dict[ParentKey, Any] = {}
        self._chains: Dict[str, Any] = {}
        self._infos: Dict[ParentKey, Any] = {}

    # ------------------------------------------------------------------
    # Paging arithmetic
    # ------------------------------------------------------------------

    def page_index_of(self, node_index: int) -> int:
        """Cache page holding the sibling at ``node_index``."""
        return node_index // self.page_size

    def page_offset_of(self, node_index: int) -> int:
        """Sibling index of the first node in the page holding ``node_index``."""
        return self.page_index_of(node_index) * self.page_size

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_child_page(self, parent_key: ParentKey, page_index: int) -> "asyncio.Future[List[NodeRecord]]":
        pages = self._pages.setdefault(parent_key, {})
        offset = page_index * self.page_size

        async def fetch():
            return to_records(await self.provider.get_child_page(parent_key, offset, self.page_size))

        return self._lookup(pages, page_index, fetch, f"child page ({parent_key}, {page_index})")

    def get_child_count(self, parent_key: ParentKey) -> "asyncio.Future[int]":
        async def fetch():
            return int(await self.provider.get_child_count(parent_key))

        return self._lookup(self._counts, parent_key, fetch, f"child count ({parent_key})")

    def get_ancestor_chain(self, node_id: str) -> "asyncio.Future[List[NodeRecord]]":
        async def fetch():
            return to_records(await self.provider.get_ancestor_chain(node_id))

        return self._lookup(self._chains, node_id, fetch, f"ancestor chain ({node_id})")

    def get_child_infos(self, parent_key: ParentKey) -> "asyncio.Future[List[NodeInfo]]":
        counts = self._counts

        async def fetch():
            infos = to_infos(await self.provider.get_child_infos(parent_key))
            self._seed_counts(counts, parent_key, infos)
            return infos

        return self._lookup(self._infos, parent_key, fetch, f"child infos ({parent_key})")

    # ------------------------------------------------------------------
    # Synchronous inspection
    # ------------------------------------------------------------------

    def peek_child_page(self, parent_key: ParentKey, page_index: int) -> Optional[List[NodeRecord]]:
        """Return the page if it is resolved, None if absent or pending."""
        entry = self._pages.get(parent_key, {}).get(page_index)
        return None if entry is None or self._is_task(entry) else entry

    def peek_child_count(self, parent_key: ParentKey) -> Optional[int]:
        entry = self._counts.get(parent_key)
        return None if entry is None or self._is_task(entry) else entry

    def is_pending(self, parent_key: ParentKey, page_index: int) -> bool:
        entry = self._pages.get(parent_key, {}).get(page_index)
        return self._is_task(entry) and not entry.done()

    def clear(self):
        """Forget everything. Requests still in flight will not repopulate the cache."""
        self._pages = {}
        self._counts = {}
        self._chains = {}
        self._infos = {}

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _is_task(entry) -> bool:
        return isinstance(entry, asyncio.Future)

    def _seed_counts(self, counts: Dict[ParentKey, Any], parent_key: ParentKey, infos: List[NodeInfo]):
        if not self._is_task(counts.get(parent_key)):
            counts[parent_key] = len(infos)
        for info in infos:
            if not self._is_task(counts.get(info.id)):
                counts[info.id] = info.children_count

    def _lookup(self, store: Dict[Hashable, Any], key: Hashable,
                fetch: Callable[[], Awaitable[Any]], label: str) -> asyncio.Future:
        entry = store.get(key)
        if self._is_task(entry):
            if not entry.done():
                return entry
            # cancelled before it ever ran
            del store[key]
            entry = None
        loop = asyncio.get_running_loop()
        if entry is not None:
            done = loop.create_future()
            done.set_result(entry)
            return done

        logger.debug(f"PagedNodeCache: fetching {label}")
        task = loop.create_task(self._resolve(store, key, fetch, label))
        store[key] = task
        return task

    async def _resolve(self, store: Dict[Hashable, Any], key: Hashable,
                       fetch: Callable[[], Awaitable[Any]], label: str):
        me = asyncio.current_task()
        try:
            result = await fetch()
        except asyncio.CancelledError:
            if store.get(key) is me:
                del store[key]
            raise
        except Exception as e:
            if store.get(key) is me:
                del store[key]
            logger.warning(f"PagedNodeCache: {label} failed: {e}")
            raise ProviderFailure(label, e) from e

        if store.get(key) is me:
            store[key] = result
        logger.debug(f"PagedNodeCache: resolved {label}")
        return result
