import asyncio
import pytest
from unittest.mock import AsyncMock

from pagedtree.core.errors import ProviderFailure
from pagedtree.tree.cache import PagedNodeCache
from pagedtree.tree.node import NodeRecord

def test_page_arithmetic(provider):
    cache = PagedNodeCache(provider, page_size=50)

    assert cache.page_index_of(0) == 0
    assert cache.page_index_of(49) == 0
    assert cache.page_index_of(50) == 1
    assert cache.page_offset_of(99) == 50
    assert cache.page_offset_of(120) == 100

def test_page_size_must_be_positive(provider):
    with pytest.raises(ValueError):
        PagedNodeCache(provider, page_size=0)

@pytest.mark.asyncio
async def test_concurrent_page_requests_share_one_call(provider):
    cache = PagedNodeCache(provider, page_size=50)

    futures = [cache.get_child_page(None, 0) for _ in range(5)]

    assert all(f is futures[0] for f in futures)
    assert cache.is_pending(None, 0)
    pages = await asyncio.gather(*futures)

    assert provider.calls["get_child_page"] == 1
    assert [r.id for r in pages[0][:2]] == ["node:0", "node:111"]
    assert len(pages[0]) == 50
    assert not cache.is_pending(None, 0)

@pytest.mark.asyncio
async def test_resolved_page_is_served_from_cache(provider):
    cache = PagedNodeCache(provider, page_size=50)
    assert cache.peek_child_page(None, 1) is None

    first = await cache.get_child_page(None, 1)
    again = cache.get_child_page(None, 1)

    assert again.done()
    assert await again is first
    assert cache.peek_child_page(None, 1) is first
    assert provider.calls["get_child_page"] == 1

@pytest.mark.asyncio
async def test_pages_are_keyed_by_parent(provider):
    cache = PagedNodeCache(provider, page_size=5)

    roots = await cache.get_child_page(None, 0)
    children = await cache.get_child_page("node:0", 1)

    assert roots[0].id == "node:0"
    # node:0's children are node:1, node:12, ... ; page 1 starts at sibling 5
    assert children[0].id == "node:56"
    assert provider.calls["get_child_page"] == 2

@pytest.mark.asyncio
async def test_failure_is_not_cached(flaky_provider):
    cache = PagedNodeCache(flaky_provider, page_size=50)

    a = cache.get_child_page(None, 0)
    b = cache.get_child_page(None, 0)
    results = await asyncio.gather(a, b, return_exceptions=True)

    assert all(isinstance(r, ProviderFailure) for r in results)
    assert isinstance(results[0].cause, ConnectionError)
    assert cache.peek_child_page(None, 0) is None
    assert not cache.is_pending(None, 0)

    page = await cache.get_child_page(None, 0)
    assert len(page) == 50
    assert flaky_provider.calls["get_child_page"] == 2

@pytest.mark.asyncio
async def test_child_count_is_deduplicated(provider):
    cache = PagedNodeCache(provider)

    counts = await asyncio.gather(cache.get_child_count(None), cache.get_child_count(None))

    assert counts == [100, 100]
    assert cache.peek_child_count(None) == 100
    assert provider.calls["get_child_count"] == 1

@pytest.mark.asyncio
async def test_zero_child_count_is_cached(provider):
    cache = PagedNodeCache(provider)

    assert await cache.get_child_count("node:2") == 0
    assert await cache.get_child_count("node:2") == 0
    assert provider.calls["get_child_count"] == 1

@pytest.mark.asyncio
async def test_ancestor_chain_is_cached(provider):
    cache = PagedNodeCache(provider)

    chain = await cache.get_ancestor_chain("node:4512")
    await cache.get_ancestor_chain("node:4512")

    assert [r.id for r in chain] == ["node:4440", "node:4507"]
    assert provider.calls["get_ancestor_chain"] == 1

@pytest.mark.asyncio
async def test_child_infos_seed_counts(provider):
    cache = PagedNodeCache(provider)

    infos = await cache.get_child_infos("node:0")

    assert len(infos) == 10
    assert cache.peek_child_count("node:0") == 10
    assert cache.peek_child_count(infos[0].id) == 10
    assert await cache.get_child_count(infos[0].id) == 10
    assert "get_child_count" not in provider.calls

@pytest.mark.asyncio
async def test_dict_records_are_validated():
    provider = AsyncMock()
    provider.get_child_page.return_value = [{"id": "a", "data": {"x": 1}, "children_count": 2}]
    cache = PagedNodeCache(provider, page_size=10)

    page = await cache.get_child_page(None, 0)

    assert page == [NodeRecord(id="a", data={"x": 1}, children_count=2)]
    provider.get_child_page.assert_awaited_once_with(None, 0, 10)

@pytest.mark.asyncio
async def test_clear_drops_resolved_and_in_flight(gated_provider):
    cache = PagedNodeCache(gated_provider, page_size=50)

    pending = cache.get_child_page(None, 0)
    cache.clear()
    gated_provider.gate.set()
    await pending

    assert cache.peek_child_page(None, 0) is None
    await cache.get_child_page(None, 0)
    assert gated_provider.calls["get_child_page"] == 2
