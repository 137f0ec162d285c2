"""
Error taxonomy for the paged tree data source.

Programmer errors (AlreadyInitialized, NoProvider, NotInitialized) fail the
call that triggered them. ProviderFailure is recoverable: the cache forgets
the failed request so the next load trigger retries it.
"""


class TreeDataError(Exception):
    """Base class for all paged tree errors."""
    pass


class AlreadyInitialized(TreeDataError):
    """Raised when initialize() is called on a data source twice."""

    def __init__(self, message: str = "Data source already initialized."):
        super().__init__(message)


class NoProvider(TreeDataError):
    """Raised when a data source is used without a TreeDataProvider."""

    def __init__(self, message: str = "Data provider not set."):
        super().__init__(message)


class NotInitialized(TreeDataError):
    """Raised by operations that need initialize() to have completed."""

    def __init__(self, message: str = "Data source not initialized."):
        super().__init__(message)


class ProviderFailure(TreeDataError):
    """
    A provider call failed.

    Attributes:
        operation: Human readable description of the failed call,
            e.g. "child page (node:12, 3)".
        cause: The exception raised by the provider.
    """

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(f"Provider failed to load {operation}: {cause}")
        self.operation = operation
        self.cause = cause
