# Core subpackage: identity policy, coalescer, request cache, result mappers, windowing.
from .identity import KeyIdentity, DEFAULT_IDENTITY, normalize_key, keys_equal, has_custom_equality
from .coalescer import BatchCoalescer, BatchFetchFn
from .cache import TraversalToken, RequestLoaderCache, request_cache, context_slot
from .mappers import path_accessor, as_accessor, group_by_key, match_by_key
from .windowing import PageInfo, Page, page_arg, per_page_arg, slice_window, page_window

__all__ = [
    'KeyIdentity', 'DEFAULT_IDENTITY', 'normalize_key', 'keys_equal', 'has_custom_equality',
    'BatchCoalescer', 'BatchFetchFn',
    'TraversalToken', 'RequestLoaderCache', 'request_cache', 'context_slot',
    'path_accessor', 'as_accessor', 'group_by_key', 'match_by_key',
    'PageInfo', 'Page', 'page_arg', 'per_page_arg', 'slice_window', 'page_window',
]
