"""Key identity: when do two relation keys point at the same record?

Plain values (strings, numbers, booleans, ``None`` and containers of them) are
compared structurally through a canonical JSON form. Opaque identifier types
that bring their own ``__eq__`` (``uuid.UUID``, ``bson.ObjectId``, ``Decimal``,
dataclasses ...) are compared with it, and their ``str()`` is used as the
normalized key so that separate instances of the same id collapse together.
"""
from __future__ import annotations

import json
from enum import Enum
from typing import Any, Hashable

_PLAIN_TYPES = (str, int, float, bool, type(None), list, tuple, dict, set, frozenset, bytes)


def has_custom_equality(value: Any) -> bool:
    """True for non-plain values whose class overrides ``object.__eq__``."""
    if isinstance(value, _PLAIN_TYPES) or isinstance(value, Enum):
        return False
    eq = getattr(type(value), '__eq__', None)
    return eq is not None and eq is not object.__eq__


def _canonical(value: Any) -> Any:
    """Reduce ``value`` to something ``json.dumps`` renders deterministically."""
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted((_canonical(v) for v in value), key=lambda v: json.dumps(v, sort_keys=True))
    if isinstance(value, dict):
        return {KeyIdentity.normalize(k): _canonical(v) for k, v in value.items()}
    if isinstance(value, bytes):
        return {'__bytes__': value.hex()}
    if isinstance(value, Enum):
        return f"{type(value).__qualname__}.{value.name}"
    if has_custom_equality(value):
        return str(value)
    attrs = getattr(value, '__dict__', None)
    if attrs is not None:
        return {'__type__': type(value).__qualname__, **{k: _canonical(v) for k, v in attrs.items()}}
    return repr(value)


class KeyIdentity:
    """Default key identity policy.

    Subclass and override :meth:`normalize` / :meth:`equal` to plug a different
    notion of key equality into loaders (``ChildLoader(..., identity=...)``).
    """

    @staticmethod
    def normalize(key: Any) -> Hashable:
        if has_custom_equality(key):
            return str(key)
        return json.dumps(_canonical(key), sort_keys=True, separators=(',', ':'))

    def equal(self, a: Any, b: Any) -> bool:
        if has_custom_equality(a) or has_custom_equality(b):
            return bool(a == b)
        return self.normalize(a) == self.normalize(b)


DEFAULT_IDENTITY = KeyIdentity()


def normalize_key(key: Any) -> Hashable:
    return DEFAULT_IDENTITY.normalize(key)


def keys_equal(a: Any, b: Any) -> bool:
    return DEFAULT_IDENTITY.equal(a, b)


__all__ = ['KeyIdentity', 'DEFAULT_IDENTITY', 'normalize_key', 'keys_equal', 'has_custom_equality']
