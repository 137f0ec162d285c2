from .flat_tree import PagedTreeListModel

__all__ = ["PagedTreeListModel"]
