from PySide6.QtCore import QAbstractListModel, Qt, Slot, QModelIndex
from loguru import logger

from pagedtree.tree.data_source import TreeDataSource
from pagedtree.tree.projection import ProjectionChange


class PagedTreeListModel(QAbstractListModel):
    """
    Exposes a TreeDataSource projection to a QML ListView / QListView.

    The view reports its visible rows through setVisibleRange; expansion and
    selection are forwarded to the data source. Depth and expansion state
    are roles so the delegate can draw indentation and toggles.
    """
    # Roles
    DisplayRole = Qt.UserRole + 1
    DepthRole = Qt.UserRole + 2
    ExpandedRole = Qt.UserRole + 3
    HasChildrenRole = Qt.UserRole + 4
    IdRole = Qt.UserRole + 5
    LoadedRole = Qt.UserRole + 6
    LoadingRole = Qt.UserRole + 7
    SelectedRole = Qt.UserRole + 8

    def __init__(self, source: TreeDataSource, parent=None):
        super().__init__(parent)
        self._source = source
        self._items = source.nodes  # Flat list of visible rows
        source.rows_changed.connect(self._on_rows_changed)

    @property
    def source(self) -> TreeDataSource:
        return self._source

    def detach(self):
        self._source.rows_changed.disconnect(self._on_rows_changed)

    def rowCount(self, parent=QModelIndex()):
        if parent.isValid():
            return 0
        return len(self._items)

    def roleNames(self):
        return {
            self.DisplayRole: b"display",
            self.DepthRole: b"depth",
            self.ExpandedRole: b"isExpanded",
            self.HasChildrenRole: b"hasChildren",
            self.IdRole: b"nodeId",
            self.LoadedRole: b"isLoaded",
            self.LoadingRole: b"isLoading",
            self.SelectedRole: b"isSelected",
        }

    def data(self, index, role=Qt.DisplayRole):
        if not index.isValid() or index.row() >= len(self._items):
            return None

        node = self._items[index.row()]

        if role in (Qt.DisplayRole, self.DisplayRole):
            return "" if node.data is None else str(node.data)
        if role == self.DepthRole: return node.level
        if role == self.ExpandedRole: return node.expanded
        if role == self.HasChildrenRole: return node.expandable
        if role == self.IdRole: return node.id or ""
        if role == self.LoadedRole: return node.loaded
        if role == self.LoadingRole: return node.loading
        if role == self.SelectedRole: return node.selected

        return None

    def _on_rows_changed(self, change: ProjectionChange):
        rows = change.rows
        if change.kind == "insert" and len(rows) == len(self._items) + change.count:
            # Expanded: Insert children
            self.beginInsertRows(QModelIndex(), change.at, change.at + change.count - 1)
            self._items = rows
            self.endInsertRows()
        elif change.kind == "remove" and len(rows) == len(self._items) - change.count:
            # Collapsed: Remove children
            self.beginRemoveRows(QModelIndex(), change.at, change.at + change.count - 1)
            self._items = rows
            self.endRemoveRows()
        elif change.kind == "update" and len(rows) == len(self._items):
            self._items = rows
        else:
            self.beginResetModel()
            self._items = rows
            self.endResetModel()
            return

        # Row state (loaded, expanded, selected) may have changed anywhere
        if rows:
            self.dataChanged.emit(self.index(0), self.index(len(rows) - 1))

    @Slot(int)
    def toggle(self, row):
        """Toggle expansion state of the item at 'row'."""
        if row < 0 or row >= len(self._items):
            return
        self._source.toggle(self._items[row])

    @Slot(int)
    def select(self, row):
        if row < 0 or row >= len(self._items):
            self._source.select_node(None)
            return
        if not self._source.select_node(self._items[row]):
            logger.debug(f"PagedTreeListModel: row {row} is not selectable")

    @Slot(int, int)
    def setVisibleRange(self, start, end):
        self._source.set_visible_range(start, end)
