import asyncio
import pytest
from PySide6.QtCore import Qt

from pagedtree.core.config import TreeSettings
from pagedtree.tree.data_source import TreeDataSource
from pagedtree.tree.example_provider import InMemoryTreeDataProvider
from pagedtree.ui.models.flat_tree import PagedTreeListModel


@pytest.fixture
def small_source():
    provider = InMemoryTreeDataProvider(root_count=5, child_count=2)
    return TreeDataSource(provider, TreeSettings(debounce_ms=0))


def test_model_starts_empty(small_source):
    model = PagedTreeListModel(small_source)

    assert model.rowCount() == 0
    assert model.data(model.index(0, 0), Qt.DisplayRole) is None
    assert b"depth" in model.roleNames().values()

@pytest.mark.asyncio
async def test_model_follows_projection(small_source):
    model = PagedTreeListModel(small_source)
    resets = []
    changes = []
    model.modelReset.connect(lambda: resets.append(1))
    model.dataChanged.connect(lambda *args: changes.append(args))

    await small_source.initialize()
    assert model.rowCount() == 5
    assert len(resets) == 1
    assert model.data(model.index(0, 0), PagedTreeListModel.LoadedRole) is False
    assert model.data(model.index(0, 0), Qt.DisplayRole) == ""

    await small_source.load_range(0, 5)
    assert changes
    idx = model.index(1, 0)
    assert model.data(idx, Qt.DisplayRole) == "Node 7"
    assert model.data(idx, PagedTreeListModel.IdRole) == "node:7"
    assert model.data(idx, PagedTreeListModel.HasChildrenRole) is True
    assert model.data(idx, PagedTreeListModel.DepthRole) == 0

@pytest.mark.asyncio
async def test_model_toggle_and_select_slots(small_source):
    model = PagedTreeListModel(small_source)
    await small_source.initialize()
    await small_source.load_range(0, 5)

    model.toggle(0)
    await small_source.wait_for_loads()

    assert model.rowCount() == 7
    assert model.data(model.index(0, 0), PagedTreeListModel.ExpandedRole) is True
    assert model.data(model.index(1, 0), PagedTreeListModel.DepthRole) == 1
    assert model.data(model.index(1, 0), PagedTreeListModel.IdRole) == "node:1"

    model.select(1)
    assert model.data(model.index(1, 0), PagedTreeListModel.SelectedRole) is True
    model.select(-1)
    assert small_source.selected_node is None

    model.toggle(99)  # out of range is ignored
    assert model.rowCount() == 7

@pytest.mark.asyncio
async def test_expand_and_collapse_insert_and_remove_rows(small_source):
    model = PagedTreeListModel(small_source)
    await small_source.initialize()
    await small_source.load_range(0, 5)
    signals = []
    model.modelReset.connect(lambda: signals.append("reset"))
    model.rowsInserted.connect(lambda parent, first, last: signals.append(("inserted", first, last)))
    model.rowsRemoved.connect(lambda parent, first, last: signals.append(("removed", first, last)))

    model.toggle(1)
    await small_source.wait_for_loads()
    assert model.rowCount() == 7
    assert model.data(model.index(2, 0), PagedTreeListModel.DepthRole) == 1

    model.toggle(1)
    await small_source.wait_for_loads()
    assert model.rowCount() == 5

    assert signals == [("inserted", 2, 3), ("removed", 2, 3)]

@pytest.mark.asyncio
async def test_reveal_resets_model(small_source):
    model = PagedTreeListModel(small_source)
    await small_source.initialize()
    resets = []
    model.modelReset.connect(lambda: resets.append(1))

    # root 1 is node:7, its first child node:8 holds the leaves node:9 and node:10
    index = await small_source.load_ancestor_path("node:9")
    await small_source.wait_for_loads()

    assert index == 3
    assert model.rowCount() == 9
    assert model.data(model.index(index, 0), PagedTreeListModel.IdRole) == "node:9"
    assert resets == [1]

@pytest.mark.asyncio
async def test_model_visible_range_slot(small_source):
    model = PagedTreeListModel(small_source)
    await small_source.initialize()

    model.setVisibleRange(0, 3)
    await asyncio.sleep(0.01)
    await small_source.wait_for_loads()

    assert small_source.visible_range == (0, 3)
    assert model.data(model.index(2, 0), PagedTreeListModel.LoadedRole) is True

def test_detach_stops_updates(small_source):
    model = PagedTreeListModel(small_source)
    model.detach()

    small_source.projection.reset(small_source.projection.create_placeholders(3))

    assert model.rowCount() == 0
