"""Batch coalescer built on Strawberry's DataLoader.

``load()`` calls issued in the same event-loop tick are queued on one batch;
the DataLoader dispatches that batch with ``loop.call_soon`` once the current
synchronous stretch of resolvers has run, so the batch fetch function sees all
of the keys at once.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Hashable, List, Optional, Sequence, TypeVar

from strawberry.dataloader import DataLoader

from ..errors import BatchConfigurationError
from .identity import DEFAULT_IDENTITY, KeyIdentity

logger = logging.getLogger(__name__)

K = TypeVar('K')
R = TypeVar('R')

BatchFetchFn = Callable[[List[Any]], Awaitable[Sequence[Any]]]


class BatchCoalescer(DataLoader[K, R]):
    """Coalesce single-key loads into one call of ``batch_fetch_fn``.

    ``batch_fetch_fn(keys)`` must return one entry per key, in key order. An
    entry may be an exception instance: only that key is affected, it is
    logged and resolves to the empty value (``empty()`` or ``None``) and is
    not cached, so a later load retries it. If ``batch_fetch_fn`` itself
    raises, every load waiting on that dispatch raises too.

    Keys are deduplicated through ``identity.normalize``, which also keys the
    result cache kept for the lifetime of the coalescer.
    """

    def __init__(
        self,
        batch_fetch_fn: BatchFetchFn,
        *,
        identity: Optional[KeyIdentity] = None,
        empty: Optional[Callable[[], Any]] = None,
        max_batch_size: Optional[int] = None,
        name: Optional[str] = None,
    ):
        if batch_fetch_fn is None or not callable(batch_fetch_fn):
            raise BatchConfigurationError("BatchCoalescer requires a callable batch fetch function")
        self.identity = identity or DEFAULT_IDENTITY
        self.batch_fetch_fn = batch_fetch_fn
        self.empty = empty
        self.name = name or getattr(batch_fetch_fn, '__name__', None) or type(self).__name__
        super().__init__(
            load_fn=self._dispatch,
            max_batch_size=max_batch_size,
            cache_key_fn=self.identity.normalize,
        )

    def normalize(self, key: K) -> Hashable:
        return self.identity.normalize(key)

    def is_cached(self, key: K) -> bool:
        """True once ``key`` resolved successfully; pending or failed loads are not cached results."""
        future = self.cache_map.get(key)
        return future is not None and future.done() and not future.cancelled() and future.exception() is None

    def _empty_value(self) -> Any:
        return self.empty() if self.empty is not None else None

    def _evict(self, key: K) -> None:
        if self.cache_map.get(key) is not None:
            self.cache_map.delete(key)

    async def _dispatch(self, keys: List[K]) -> List[Any]:
        logger.debug(f"Dispatching batch '{self.name}' with {len(keys)} key(s)")
        try:
            results = list(await self.batch_fetch_fn(list(keys)))
        except Exception as e:
            logger.error(f"Batch fetch '{self.name}' failed for {len(keys)} key(s): {e}")
            for key in keys:
                self._evict(key)
            raise
        if len(results) != len(keys):
            # DataLoader rejects the whole batch; keep nothing cached for it.
            for key in keys:
                self._evict(key)
            return results
        out: List[Any] = []
        for key, value in zip(keys, results):
            if isinstance(value, BaseException):
                logger.warning(f"Error while processing batch fetch '{self.name}' for key {key!r}: {value}")
                self._evict(key)
                out.append(self._empty_value())
            else:
                out.append(value)
        return out


__all__ = ['BatchCoalescer', 'BatchFetchFn']
