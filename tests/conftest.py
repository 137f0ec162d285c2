import asyncio
import pytest
from loguru import logger

from pagedtree.core.config import TreeSettings
from pagedtree.tree.data_source import TreeDataSource
from pagedtree.tree.example_provider import InMemoryTreeDataProvider


@pytest.fixture
def caplog(caplog):
    """Route loguru records into pytest's caplog."""
    handler_id = logger.add(caplog.handler, format="{message}", level=0)
    yield caplog
    logger.remove(handler_id)


class FlakyProvider(InMemoryTreeDataProvider):
    """Fails the first ``failures`` page requests, then behaves normally."""

    def __init__(self, failures=1, **kwargs):
        super().__init__(**kwargs)
        self.failures = failures

    async def get_child_page(self, parent_id, offset, limit):
        if self.failures > 0:
            self.failures -= 1
            await self._delay("get_child_page", parent_id, offset, limit)
            raise ConnectionError("backend unavailable")
        return await super().get_child_page(parent_id, offset, limit)


class GatedProvider(InMemoryTreeDataProvider):
    """Holds every page request until ``gate`` is set."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.gate = asyncio.Event()

    async def get_child_page(self, parent_id, offset, limit):
        await self.gate.wait()
        return await super().get_child_page(parent_id, offset, limit)


class GatedInfosProvider(InMemoryTreeDataProvider):
    """Holds sibling info requests below the root level until ``gate`` is set."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.gate = asyncio.Event()

    async def get_child_infos(self, parent_id):
        if parent_id is not None:
            await self.gate.wait()
        return await super().get_child_infos(parent_id)


@pytest.fixture
def provider():
    # 100 roots x 10 children x 10 leaves = 11100 nodes
    return InMemoryTreeDataProvider(root_count=100, child_count=10)


@pytest.fixture
def source(provider):
    return TreeDataSource(provider, TreeSettings(page_size=50, debounce_ms=0))


@pytest.fixture
def flaky_provider():
    return FlakyProvider(failures=1, root_count=100, child_count=10)


@pytest.fixture
def gated_provider():
    return GatedProvider(root_count=100, child_count=10)


async def _settle(source, seconds=0.01):
    await asyncio.sleep(seconds)
    await source.wait_for_loads()


@pytest.fixture
def settle():
    """Let the debounce timer fire and wait for the resulting loads."""
    return _settle


def _assert_preorder(nodes):
    for i, node in enumerate(nodes):
        if i + 1 < len(nodes):
            assert nodes[i + 1].level <= node.level + 1
        if not node.expanded:
            continue
        children = []
        j = i + 1
        while j < len(nodes) and nodes[j].level > node.level:
            if nodes[j].level == node.level + 1:
                children.append(nodes[j])
            j += 1
        assert len(children) == node.children_count
        assert [c.index for c in children] == list(range(node.children_count))
        assert all(c.parent is node for c in children)


@pytest.fixture
def assert_preorder():
    """Every expanded node is followed by exactly its children, in sibling order."""
    return _assert_preorder


@pytest.fixture
def gated_infos_provider():
    return GatedInfosProvider(root_count=100, child_count=10)
