"""Per-request registry of coalescers, one per field-selection occurrence."""
from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import Any, Callable, Dict, Hashable, Sequence, Tuple, TypeVar

from ..config import DEFAULT_CONTEXT_KEY
from ..errors import BatchConfigurationError
from .coalescer import BatchCoalescer

logger = logging.getLogger(__name__)

T = TypeVar('T')


class TraversalToken:
    """Identity of one occurrence of a field selection in a request.

    Built from the resolver's ``field_nodes`` and its response path. Nodes are
    compared by object identity, not structure: ``a: posts { id }`` and
    ``b: posts { id }`` are two tokens, while every parent resolving the same
    selection shares one token. List indices are dropped from the path so
    sibling parents in a list still share; the remaining path separates one
    fragment spread under two aliased parents. The token keeps the nodes alive
    so their ids cannot be reused while it exists.
    """

    __slots__ = ('nodes', 'path', '_hash')

    def __init__(self, nodes: Sequence[Any], path: Sequence[str] = ()):
        nodes = tuple(nodes or ())
        if not nodes:
            raise BatchConfigurationError("A traversal token needs at least one field node")
        self.nodes = nodes
        self.path = tuple(path or ())
        self._hash = hash((tuple(id(n) for n in nodes), self.path))

    @classmethod
    def from_info(cls, info: Any) -> "TraversalToken":
        """Token for the selection being resolved (Strawberry ``Info`` or graphql-core info)."""
        if info is None:
            raise BatchConfigurationError("Cannot batch a relation without resolver info")
        raw = getattr(info, '_raw_info', info)
        nodes = getattr(raw, 'field_nodes', None)
        if not nodes:
            raise BatchConfigurationError("Resolver info carries no field_nodes to identify the selection")
        return cls(nodes, _selection_path(getattr(raw, 'path', None)))

    def __hash__(self) -> int:
        return self._hash

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TraversalToken):
            return NotImplemented
        return (
            self.path == other.path
            and len(self.nodes) == len(other.nodes)
            and all(a is b for a, b in zip(self.nodes, other.nodes))
        )

    def __repr__(self) -> str:
        names = []
        for n in self.nodes:
            name = getattr(getattr(n, 'name', None), 'value', None) or type(n).__name__
            names.append(f"{name}@{id(n):#x}")
        return f"TraversalToken({'.'.join(self.path) or '-'}: {', '.join(names)})"


def _selection_path(path: Any) -> Tuple[str, ...]:
    """Response keys from the root to ``path`` (a graphql-core ``Path``), list indices dropped."""
    keys = []
    while path is not None:
        key = getattr(path, 'key', None)
        if isinstance(key, str):
            keys.append(key)
        path = getattr(path, 'prev', None)
    return tuple(reversed(keys))


class RequestLoaderCache:
    """Maps a traversal token, or a (loader, token) pair, to the coalescer serving it.

    Lives in the request context (see :func:`request_cache`) and goes away
    with it; nothing is shared between requests.
    """

    def __init__(self):
        self._loaders: Dict[Hashable, BatchCoalescer] = {}

    def get_or_create(self, token: Hashable, factory: Callable[[], BatchCoalescer]) -> BatchCoalescer:
        if token is None:
            raise BatchConfigurationError("A traversal token is required to look up a loader")
        loader = self._loaders.get(token)
        if loader is None:
            logger.debug(f"No loader for {token!r}, creating one")
            loader = factory()
            if not isinstance(loader, BatchCoalescer):
                raise BatchConfigurationError(f"Loader factory returned {type(loader).__name__}, expected BatchCoalescer")
            self._loaders[token] = loader
        return loader

    def __contains__(self, token: object) -> bool:
        return token in self._loaders

    def __len__(self) -> int:
        return len(self._loaders)


def context_slot(context: Any, key: str, factory: Callable[[], T]) -> T:
    """Get ``key`` from a dict or object context, creating it with ``factory`` on first use."""
    if context is None:
        raise BatchConfigurationError(f"A request context is required to hold '{key}'")
    if isinstance(context, MutableMapping):
        value = context.get(key)
        if value is None:
            value = context.setdefault(key, factory())
        return value
    value = getattr(context, key, None)
    if value is None:
        value = factory()
        try:
            setattr(context, key, value)
        except (AttributeError, TypeError) as e:
            raise BatchConfigurationError(
                f"Request context of type {type(context).__name__} cannot hold '{key}'"
            ) from e
    return value


def request_cache(context: Any, key: str = DEFAULT_CONTEXT_KEY) -> RequestLoaderCache:
    """Loader cache of the request owning ``context``."""
    return context_slot(context, key, RequestLoaderCache)


__all__ = ['TraversalToken', 'RequestLoaderCache', 'request_cache', 'context_slot']
