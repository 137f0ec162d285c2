"""
Event System - Synchronous observer signals.

Usage:
    from pagedtree.core.events import Signal

    changed = Signal("ProjectionChanged")
    changed.connect(on_changed)
    changed.emit(snapshot)
"""
from .observer import Signal


__all__ = ["Signal"]
