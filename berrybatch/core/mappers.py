"""Map a flat batch result back onto the requested keys."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Sequence, Union

from ..errors import BatchConfigurationError
from .identity import DEFAULT_IDENTITY, KeyIdentity

logger = logging.getLogger(__name__)

KeyAccessor = Callable[[Any], Any]
KeySelector = Union[str, KeyAccessor]


def path_accessor(path: str) -> KeyAccessor:
    """Accessor reading a dotted path (``"author.id"``) from objects or mappings."""
    if not path or not isinstance(path, str):
        raise BatchConfigurationError(f"Invalid key path: {path!r}")
    parts = path.split('.')

    def _get(record: Any) -> Any:
        cur = record
        for part in parts:
            if isinstance(cur, Mapping):
                cur = cur[part]
            else:
                cur = getattr(cur, part)
        return cur

    _get.__name__ = f"get_{path.replace('.', '_')}"
    return _get


def as_accessor(selector: KeySelector) -> KeyAccessor:
    if isinstance(selector, str):
        return path_accessor(selector)
    if callable(selector):
        return selector
    raise BatchConfigurationError(f"Key selector must be a dotted path or a callable, got {selector!r}")


def _keyed_records(records: Iterable[Any], accessor: KeyAccessor, identity: KeyIdentity):
    """Yield ``(normalized_key, record)``, skipping error markers and unreadable keys."""
    for record in records or ():
        if isinstance(record, BaseException):
            logger.warning(f"Error while processing batch fetch result: {record}")
            continue
        try:
            key = accessor(record)
        except Exception as e:
            logger.warning(f"Skipping record {record!r}: key lookup failed ({type(e).__name__}: {e})")
            continue
        if key is None:
            logger.warning(f"Skipping record {record!r}: key is empty")
            continue
        yield identity.normalize(key), record


def group_by_key(
    records: Iterable[Any],
    accessor: KeySelector,
    keys: Sequence[Any],
    identity: Optional[KeyIdentity] = None,
) -> List[List[Any]]:
    """One list of records per key, in the order the records were fetched.

    Keys without records get an empty list.
    """
    identity = identity or DEFAULT_IDENTITY
    groups: Dict[Hashable, List[Any]] = {}
    for norm, record in _keyed_records(records, as_accessor(accessor), identity):
        groups.setdefault(norm, []).append(record)
    return [list(groups.get(identity.normalize(k), ())) for k in keys]


def match_by_key(
    records: Iterable[Any],
    accessor: KeySelector,
    keys: Sequence[Any],
    identity: Optional[KeyIdentity] = None,
) -> List[Optional[Any]]:
    """The record matching each key, or ``None``.

    Several records with the same key: the last one fetched wins.
    """
    identity = identity or DEFAULT_IDENTITY
    found: Dict[Hashable, Any] = {}
    for norm, record in _keyed_records(records, as_accessor(accessor), identity):
        found[norm] = record
    return [found.get(identity.normalize(k)) for k in keys]


__all__ = ['KeyAccessor', 'KeySelector', 'path_accessor', 'as_accessor', 'group_by_key', 'match_by_key']
