"""Relation loaders used from Strawberry resolvers.

A loader describes how one relation is fetched: a ``fetch(info, keys)``
coroutine returning the flat list of related records for a batch of parent
keys, and the attribute of those records holding the parent key. Resolvers
call :meth:`ChildLoader.load_many`, :meth:`ChildLoader.load_page` or
:meth:`SingleLoader.load_one` with their ``info`` and parent key; every
resolver call for the same selection in the same request is served by one
batched fetch.

Example::

    posts_loader = ChildLoader(select_in(Post, 'author_id'), 'author_id')

    @strawberry.type
    class UserQL:
        id: int

        @strawberry.field
        async def posts(self, info: Info, skip: int = 0, limit: Optional[int] = None) -> List[PostQL]:
            return await posts_loader.load_many(info, self.id, skip=skip, limit=limit)
"""
from __future__ import annotations

import logging
from functools import partial
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from .config import BatchSettings, get_settings
from .core.cache import TraversalToken, request_cache
from .core.coalescer import BatchCoalescer
from .core.identity import DEFAULT_IDENTITY, KeyIdentity
from .core.mappers import KeySelector, as_accessor, group_by_key, match_by_key
from .core.windowing import Page, page_arg, page_window, per_page_arg, slice_window
from .errors import BatchConfigurationError

logger = logging.getLogger(__name__)

FetchFn = Callable[[Any, List[Any]], Awaitable[Sequence[Any]]]


class RelationLoader:
    """Shared plumbing: find or create the coalescer for the selection being resolved."""

    empty: Optional[Callable[[], Any]] = None

    def __init__(
        self,
        fetch: FetchFn,
        selector: KeySelector,
        *,
        identity: Optional[KeyIdentity] = None,
        settings: Optional[BatchSettings] = None,
        name: Optional[str] = None,
    ):
        if fetch is None or not callable(fetch):
            raise BatchConfigurationError(f"{type(self).__name__} requires a callable fetch function")
        self.fetch = fetch
        self.selector = selector
        self.accessor = as_accessor(selector)
        self.identity = identity or DEFAULT_IDENTITY
        self._settings = settings
        self.name = name or getattr(fetch, '__name__', None) or type(self).__name__

    @property
    def settings(self) -> BatchSettings:
        return self._settings or get_settings()

    def map_results(self, records: Sequence[Any], keys: Sequence[Any]) -> List[Any]:
        raise NotImplementedError

    async def _fetch_and_map(self, info: Any, keys: List[Any]) -> List[Any]:
        records = await self.fetch(info, keys)
        return self.map_results(records or [], keys)

    def coalescer(self, info: Any) -> BatchCoalescer:
        """Coalescer of this loader for this selection in this request, created on first use.

        The coalescer keeps the ``info`` of the first load and hands it to
        every dispatch, retries included. Other parents of the same selection
        share its context, field nodes and arguments, so fetches should read
        only those.
        """
        if info is None:
            raise BatchConfigurationError(f"Cannot use {self.name} loader without resolver info")
        token = TraversalToken.from_info(info)
        settings = self.settings
        cache = request_cache(getattr(info, 'context', None), settings.context_key)
        return cache.get_or_create(
            (self, token),
            lambda: BatchCoalescer(
                partial(self._fetch_and_map, info),
                identity=self.identity,
                empty=self.empty,
                max_batch_size=settings.max_batch_size,
                name=self.name,
            ),
        )


class ChildLoader(RelationLoader):
    """One-to-many relation: every child whose ``selector`` equals the parent key.

    Children keep the order ``fetch`` returned them in.
    """

    empty = list

    def map_results(self, records, keys):
        return group_by_key(records, self.accessor, keys, self.identity)

    async def load(self, info: Any, key: Any) -> List[Any]:
        """All children of ``key``, unwindowed."""
        if key is None:
            return []
        return await self.coalescer(info).load(key)

    async def load_many(self, info: Any, key: Any, skip: Optional[int] = 0, limit: Optional[int] = None) -> List[Any]:
        if key is None:
            return []
        group = await self.coalescer(info).load(key)
        return slice_window(group, skip, limit)

    async def load_page(self, info: Any, key: Any, page: Any = None, per_page: Any = None) -> Page:
        page = page_arg(page)
        per_page = per_page_arg(per_page, self.settings.default_per_page)
        if key is None:
            return page_window(None, page, per_page)
        group = await self.coalescer(info).load(key)
        return page_window(group, page, per_page)


class SingleLoader(RelationLoader):
    """One-to-one relation or keyed lookup: the record whose ``selector`` equals the key.

    ``selector`` defaults to ``"id"``. If several records share a key the last
    one fetched is returned.
    """

    def __init__(self, fetch: FetchFn, selector: KeySelector = 'id', **kwargs):
        super().__init__(fetch, selector, **kwargs)

    def map_results(self, records, keys):
        return match_by_key(records, self.accessor, keys, self.identity)

    async def load_one(self, info: Any, key: Any) -> Optional[Any]:
        if key is None:
            return None
        return await self.coalescer(info).load(key)


__all__ = ['FetchFn', 'RelationLoader', 'ChildLoader', 'SingleLoader']
