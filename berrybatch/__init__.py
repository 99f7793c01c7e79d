"""Request-scoped relationship batching for Strawberry resolvers.

Public API:
- ChildLoader, SingleLoader (relation loaders used from resolvers)
- select_in (SQLAlchemy batch fetch builder)
- BatchCoalescer, RequestLoaderCache, TraversalToken, request_cache
- group_by_key, match_by_key, path_accessor
- slice_window, page_window, Page, PageInfo
- KeyIdentity, normalize_key, keys_equal
- BatchSettings, BatchError, BatchConfigurationError
"""
from .config import BatchSettings, get_settings
from .errors import BatchError, BatchConfigurationError
from .core import (
    KeyIdentity, DEFAULT_IDENTITY, normalize_key, keys_equal,
    BatchCoalescer, TraversalToken, RequestLoaderCache, request_cache,
    path_accessor, group_by_key, match_by_key,
    PageInfo, Page, page_arg, per_page_arg, slice_window, page_window,
)
from .loaders import RelationLoader, ChildLoader, SingleLoader
from .sqla import select_in, context_session

__all__ = [
    'BatchSettings', 'get_settings', 'BatchError', 'BatchConfigurationError',
    'KeyIdentity', 'DEFAULT_IDENTITY', 'normalize_key', 'keys_equal',
    'BatchCoalescer', 'TraversalToken', 'RequestLoaderCache', 'request_cache',
    'path_accessor', 'group_by_key', 'match_by_key',
    'PageInfo', 'Page', 'page_arg', 'per_page_arg', 'slice_window', 'page_window',
    'RelationLoader', 'ChildLoader', 'SingleLoader', 'select_in', 'context_session',
]
