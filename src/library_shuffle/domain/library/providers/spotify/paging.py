"""
Rate-limit retry and pagination helpers for the Spotify Web API.

Both helpers are transport agnostic: they only see zero-argument calls and
offset-based page loaders, so they are tested without any HTTP.
"""

import time
from typing import Callable, List, TypeVar

from loguru import logger

from ...models import Page
from .exceptions import RateLimitedError

T = TypeVar("T")

# Wait used when Spotify omits the Retry-After header
DEFAULT_RETRY_AFTER_S = 1


def call_api(
    func: Callable[[], T], sleep: Callable[[float], None] = time.sleep
) -> T:
    """Call func, waiting out rate limits until it succeeds.

    There is no retry limit and no backoff growth: a RateLimitedError always
    waits its retry_after (or 1 second) and tries again. Any other exception
    propagates immediately.

    Args:
        func: Zero-argument remote call
        sleep: Sleep function (injectable for tests)

    Returns:
        Whatever func returns
    """
    while True:
        try:
            return func()
        except RateLimitedError as e:
            wait = e.retry_after if e.retry_after is not None else DEFAULT_RETRY_AFTER_S
            logger.warning(f"Rate limited, waiting {wait}s before retrying")
            sleep(wait)


def fetch_all(
    get_page: Callable[[int], Page[T]], sleep: Callable[[float], None] = time.sleep
) -> List[T]:
    """Collect every item of a paged listing.

    The first page is requested only to learn the total. Offsets advance by
    the number of items actually returned, so pages may have any size. An
    empty page before reaching the total means the collection shrank while
    we were reading it; what was collected so far is returned.

    Args:
        get_page: Loader returning the page starting at a zero-based offset
        sleep: Sleep function passed through to call_api

    Returns:
        All items in listing order
    """
    meta = call_api(lambda: get_page(0), sleep=sleep)
    total = meta.total
    out: List[T] = []

    offset = 0
    while offset < total:
        page = call_api(lambda: get_page(offset), sleep=sleep)
        if not page.items:
            logger.warning(
                f"Got 0 items in request for offset={offset} (expected {total}), stopping early"
            )
            break

        out.extend(page.items)
        offset += len(page.items)

    return out
