from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 20
DEFAULT_CONTEXT_KEY = '_berry_loaders'
DEFAULT_SESSION_KEY = 'db_session'


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: expected an integer")
        return default


@dataclass(frozen=True)
class BatchSettings:
    """Knobs shared by all loaders.

    Attributes:
        default_per_page: page size used when a paginated field gets no ``perPage``.
        max_batch_size: split dispatches larger than this (``None`` = unbounded).
        context_key: slot in the request context holding the per-request loader cache.
        session_key: slot in the request context holding the SQLAlchemy ``AsyncSession``.
        debug: log loader creation and dispatch sizes.
    """

    default_per_page: int = DEFAULT_PER_PAGE
    max_batch_size: Optional[int] = None
    context_key: str = DEFAULT_CONTEXT_KEY
    session_key: str = DEFAULT_SESSION_KEY
    debug: bool = False

    def __post_init__(self):
        if self.default_per_page < 1:
            raise ValueError("default_per_page must be a positive integer")
        if self.max_batch_size is not None and self.max_batch_size < 1:
            raise ValueError("max_batch_size must be a positive integer")

    @classmethod
    def from_env(cls) -> "BatchSettings":
        """Build settings from ``BERRYBATCH_*`` environment variables."""
        debug = os.getenv('BERRYBATCH_DEBUG') == '1'
        settings = cls(
            default_per_page=_env_int('BERRYBATCH_DEFAULT_PER_PAGE', DEFAULT_PER_PAGE),
            max_batch_size=_env_int('BERRYBATCH_MAX_BATCH_SIZE', None),
            context_key=os.getenv('BERRYBATCH_CONTEXT_KEY') or DEFAULT_CONTEXT_KEY,
            session_key=os.getenv('BERRYBATCH_SESSION_KEY') or DEFAULT_SESSION_KEY,
            debug=debug,
        )
        if debug:
            logging.getLogger('berrybatch').setLevel(logging.DEBUG)
        return settings


@lru_cache(maxsize=1)
def get_settings() -> BatchSettings:
    """Process-wide settings, read from the environment once."""
    return BatchSettings.from_env()


__all__ = ['BatchSettings', 'get_settings', 'DEFAULT_PER_PAGE', 'DEFAULT_CONTEXT_KEY', 'DEFAULT_SESSION_KEY']
