"""Paginated reads over PostgREST tables.

PostgREST caps every response at its max-rows setting (1000 on Supabase),
so full-table reads walk fixed-size ``range()`` windows in order until a
page comes back short. No count query is issued.
"""

import threading
import time
from typing import Any, Callable, Iterator, Optional

import structlog

from apps.api.core.errors import ScanCancelledError

logger = structlog.get_logger()

DEFAULT_PAGE_SIZE = 1000

# Builds a fresh, ordered query for each page; range() is applied here.
QueryFactory = Callable[[], Any]


def iter_pages(
    query_factory: QueryFactory,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    deadline: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
) -> Iterator[list[dict]]:
    """Yield successive pages of rows.

    Args:
        query_factory: returns an ordered query builder (no range applied).
        page_size: rows per request.
        deadline: ``time.monotonic()`` value after which no further page is
            requested.
        cancel: event that stops the scan between pages when set.

    Raises:
        ScanCancelledError: the deadline passed or ``cancel`` was set.
    """
    if page_size <= 0:
        raise ValueError("page_size must be positive")

    start = 0
    pages = 0
    while True:
        if cancel is not None and cancel.is_set():
            logger.warning("scan_cancelled", pages_read=pages)
            raise ScanCancelledError("Scan cancelled", pages_read=pages)
        if deadline is not None and time.monotonic() >= deadline:
            logger.warning("scan_deadline_exceeded", pages_read=pages)
            raise ScanCancelledError("Scan exceeded its deadline", pages_read=pages)

        response = query_factory().range(start, start + page_size - 1).execute()
        batch = response.data or []
        pages += 1
        if batch:
            yield batch
        if len(batch) < page_size:
            return
        start += page_size


def fetch_all(query_factory: QueryFactory, **kwargs) -> list[dict]:
    """Accumulate every page into one list."""
    rows: list[dict] = []
    for page in iter_pages(query_factory, **kwargs):
        rows.extend(page)
    return rows


def deadline_after(seconds: Optional[float]) -> Optional[float]:
    """Monotonic deadline ``seconds`` from now, or None for no deadline."""
    if seconds is None or seconds <= 0:
        return None
    return time.monotonic() + seconds
