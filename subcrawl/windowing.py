"""
Window sizing policy.

We want 50+ results per request so the crawl makes few requests, but at most
99 so a window never fills Reddit's 100-result page and forces the lossy
`after` pagination. This module decides how the window changes; it never
talks to the network.
"""

from datetime import timedelta
from enum import Enum

from subcrawl.config import CrawlConfig

SECONDS_PER_DAY = 86_400


class WindowOutcome(Enum):
    """How a result count compares to the target range."""

    SWEET_SPOT = 'sweet_spot'
    TOO_FEW = 'too_few'
    TOO_MANY = 'too_many'


def classify(count: int, config: CrawlConfig) -> WindowOutcome:
    if count < config.target_low:
        return WindowOutcome.TOO_FEW
    if count > config.target_high:
        return WindowOutcome.TOO_MANY
    return WindowOutcome.SWEET_SPOT


def grow(width: timedelta, config: CrawlConfig) -> timedelta:
    """Widen the window, capped at max_width."""
    return min(width * config.growth_factor, config.max_width)


def shrink(width: timedelta, config: CrawlConfig) -> timedelta:
    """Narrow the window, floored at min_width."""
    return max(width * config.shrink_factor, config.min_width)


def is_exhausted(count: int, width: timedelta, config: CrawlConfig) -> bool:
    """
    An empty result at the widest window means no earlier history exists.

    Args:
        count: Number of results the request returned
        width: Window width the request was made with
        config: Window policy

    Returns:
        True if the crawl has reached the start of the subreddit
    """
    return count == 0 and width >= config.max_width


def pretty_duration(duration: timedelta) -> str:
    """Format a duration as days and fractional hours, e.g. '1d:4.50h'."""
    secs = int(duration.total_seconds())
    days = secs // SECONDS_PER_DAY
    hours = (secs % SECONDS_PER_DAY) / 60 / 60
    return f"{days}d:{hours:.2f}h"
