"""
Minimum-interval request gate.

Reddit's API rules require at least one second between requests from the
same client. The gate keeps no state of its own: the instant of the previous
request travels inside CrawlProgress and is handed in on every call.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from subcrawl.models import utcnow


def delay_until_allowed(
    previous_request_at: Optional[datetime],
    now: datetime,
    interval: timedelta
) -> float:
    """
    Calculate how long to wait before the next request is allowed.

    Args:
        previous_request_at: Instant of the previous request, if any
        now: Current instant
        interval: Minimum spacing between requests

    Returns:
        Wait time in seconds (0 if request can proceed immediately)
    """
    if previous_request_at is None:
        return 0.0

    elapsed = now - previous_request_at
    if elapsed >= interval:
        return 0.0

    return (interval - elapsed).total_seconds()


async def wait_for_slot(
    previous_request_at: Optional[datetime],
    interval: timedelta,
    now: Callable[[], datetime] = utcnow,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
) -> datetime:
    """
    Suspend until a request may be issued.

    Args:
        previous_request_at: Instant of the previous request, if any
        interval: Minimum spacing between requests
        now: Clock
        sleep: Coroutine used to suspend

    Returns:
        The instant at which the request may be issued
    """
    wait_time = delay_until_allowed(previous_request_at, now(), interval)

    if wait_time > 0:
        logging.debug(f"Rate limit: waiting {wait_time:.2f}s")
        await sleep(wait_time)

    return now()
