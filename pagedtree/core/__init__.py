"""
pagedtree Core - Infrastructure shared by the tree data source.

Provides:
- ConfigManager: pydantic-validated settings with change notification
- Signal: synchronous observer used for projection and config changes
- setup_logging: loguru configuration
- Error taxonomy (TreeDataError and subclasses)
"""
from .config import (
    ConfigManager,
    AppConfig,
    GeneralSettings,
    TreeSettings,
    ExampleSettings,
)
from .events import Signal
from .logging import setup_logging
from .errors import (
    TreeDataError,
    AlreadyInitialized,
    NoProvider,
    NotInitialized,
    ProviderFailure,
)

__all__ = [
    "ConfigManager",
    "AppConfig",
    "GeneralSettings",
    "TreeSettings",
    "ExampleSettings",
    "Signal",
    "setup_logging",
    "TreeDataError",
    "AlreadyInitialized",
    "NoProvider",
    "NotInitialized",
    "ProviderFailure",
]
