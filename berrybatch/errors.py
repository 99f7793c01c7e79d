"""Exceptions raised by berrybatch."""
from __future__ import annotations


class BatchError(Exception):
    """Base class for berrybatch errors."""


class BatchConfigurationError(BatchError, ValueError):
    """A loader was wired incorrectly.

    Raised immediately to the calling resolver and never retried: missing
    batch fetch function, missing resolver ``info``/context, an unusable
    traversal identity or a context that cannot hold the request cache.
    """


__all__ = ['BatchError', 'BatchConfigurationError']
