"""SQLAlchemy batch fetchers: one ``SELECT ... WHERE column IN (:keys)`` per batch."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Callable, List, Optional, Sequence, Union

from sqlalchemy import inspect, select
from sqlalchemy.sql.elements import ClauseElement

from .config import get_settings
from .core.cache import context_slot
from .errors import BatchConfigurationError

logger = logging.getLogger(__name__)

DB_LOCK_KEY = '_berry_db_lock'

WhereArg = Union[ClauseElement, Sequence[ClauseElement], Callable[[Any, Any], Any], None]


def context_session(info: Any, session_key: Optional[str] = None) -> Any:
    """The ``AsyncSession`` stored in the request context."""
    key = session_key or get_settings().session_key
    context = getattr(info, 'context', None) if info is not None else None
    if context is None:
        raise BatchConfigurationError("Cannot fetch relations without a request context")
    if isinstance(context, Mapping):
        session = context.get(key)
    else:
        session = getattr(context, key, None)
    if session is None:
        raise BatchConfigurationError(f"No database session found in request context under '{key}'")
    return session


def context_lock(info: Any) -> asyncio.Lock:
    """Per-request lock serializing statements on the shared session."""
    return context_slot(info.context, DB_LOCK_KEY, asyncio.Lock)


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def select_in(
    model: Any,
    column: Union[str, Any],
    *,
    where: WhereArg = None,
    order_by: Any = None,
    session_key: Optional[str] = None,
):
    """Build ``fetch(info, keys)`` returning all ``model`` rows whose ``column`` is in ``keys``.

    Args:
        model: mapped SQLAlchemy class of the related records.
        column: attribute name (or mapped column) holding the parent key.
        where: extra criteria; an expression, a list of expressions, or a
            callable ``(model, info)`` returning them.
        order_by: ordering of the fetched rows, which is also the order of each
            parent's group. Defaults to the primary key.
        session_key: context key of the session (default from settings).

    ``where`` receives the ``info`` of the first load of the selection, shared
    by every dispatch of that selection in the request.

    Returns:
        An async fetch function for :class:`~berrybatch.loaders.ChildLoader`
        or :class:`~berrybatch.loaders.SingleLoader`.
    """
    if isinstance(column, str):
        col = getattr(model, column, None)
        col_name = column
    else:
        col = column
        col_name = getattr(column, 'key', None) or str(column)
    if col is None:
        raise BatchConfigurationError(f"Unknown column '{column}' on {getattr(model, '__name__', model)}")
    ordering = _as_list(order_by) or list(inspect(model).primary_key)

    async def fetch(info: Any, keys: List[Any]) -> List[Any]:
        session = context_session(info, session_key)
        stmt = select(model).where(col.in_(list(keys)))
        if where is not None:
            criteria = where(model, info) if callable(where) and not isinstance(where, ClauseElement) else where
            for expr in _as_list(criteria):
                stmt = stmt.where(expr)
        if ordering:
            stmt = stmt.order_by(*ordering)
        async with context_lock(info):
            result = await session.execute(stmt)
            rows = list(result.scalars().all())
        logger.debug(f"Fetched {len(rows)} {getattr(model, '__name__', model)} row(s) for {len(keys)} key(s)")
        return rows

    fetch.__name__ = f"select_{getattr(model, '__name__', 'model')}_by_{col_name}"
    return fetch


__all__ = ['select_in', 'context_session', 'context_lock', 'DB_LOCK_KEY']
