"""
pagedtree UI adapters.

Provides Qt item models that present a TreeDataSource to Qt/QML views:
- PagedTreeListModel: flat list model with depth/expansion roles

Usage:
    from pagedtree.ui.models import PagedTreeListModel

    model = PagedTreeListModel(source)
    engine.rootContext().setContextProperty("treeModel", model)
"""
