"""
Adaptive time-window crawl driver.

Walks a subreddit backwards in time one window at a time. Reddit's `after`
cursor is lossy near tied timestamps, so instead of paginating we query
`timestamp:start..stop` ranges small enough to fit in a single page and
resize the window until each request lands in the target result range.
"""

import asyncio
import httpx
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Tuple

from subcrawl.config import PAGE_LIMIT, CrawlConfig
from subcrawl.errors import CrawlError
from subcrawl.models import (
    CrawlPage,
    CrawlProgress,
    EndOfSubreddit,
    PageResult,
    Submission,
    Token,
    utcnow,
)
from subcrawl.rate_limiter import wait_for_slot
from subcrawl.windowing import (
    WindowOutcome,
    classify,
    grow,
    is_exhausted,
    pretty_duration,
    shrink,
)


def search_url(subreddit: str) -> str:
    return f'https://oauth.reddit.com/r/{subreddit}/search'


def build_search_params(progress: CrawlProgress) -> List[Tuple[str, str]]:
    """
    Build the CloudSearch query for the progress window.

    Args:
        progress: Progress whose window is queried

    Returns:
        Ordered query parameters
    """
    start = int(progress.window_start.timestamp())
    stop = int(progress.window_end.timestamp())

    return [
        ('q', f'timestamp:{start}..{stop}'),
        ('syntax', 'cloudsearch'),
        ('sort', 'new'),
        ('type', 'link'),  # submissions only
        ('limit', str(PAGE_LIMIT)),
        ('restrict_sr', 'true'),
        ('include_over_18', 'on'),
        ('raw_json', '1'),
    ]


def _parse_listing(body: Any) -> List[Submission]:
    children = body['data']['children']
    return [
        Submission.from_api(child['data'])
        for child in children
        if child.get('kind', 't3') == 't3'
    ]


async def search(
    client: httpx.AsyncClient,
    token: Token,
    subreddit: str,
    progress: CrawlProgress,
    user_agent: str
) -> List[Submission]:
    """
    Make one search request for the progress window.

    Args:
        client: HTTP client configured by the caller
        token: Current access token
        subreddit: Subreddit name
        progress: Progress whose window is queried
        user_agent: User-Agent header value

    Returns:
        Submissions in the window, newest first

    Raises:
        CrawlError: On transport failure, non-200 status, or an unusable body
    """
    url = search_url(subreddit)
    headers = {
        'Authorization': f'bearer {token.access_token}',
        'User-Agent': user_agent,
    }

    try:
        response = await client.get(url, params=build_search_params(progress), headers=headers)
    except httpx.HTTPError as e:
        logging.error(f"Request failed for {url}: {e}")
        raise CrawlError(f"Search request failed: {e}", CrawlError.TRANSPORT) from e

    if response.status_code == 429:
        retry_after = response.headers.get('Retry-After')
        logging.warning(f"Rate limit hit (429) for r/{subreddit}")
        raise CrawlError(
            "Search request was rate limited",
            CrawlError.RATE_LIMITED,
            status_code=429,
            retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None
        )

    if response.status_code == 401:
        logging.warning(f"Token rejected (401) for r/{subreddit}")
        raise CrawlError("Access token rejected", CrawlError.UNAUTHORIZED, status_code=401)

    if response.status_code != 200:
        logging.error(f"HTTP error ({response.status_code}) for {url}")
        raise CrawlError(
            f"Search request returned HTTP {response.status_code}",
            CrawlError.STATUS,
            status_code=response.status_code
        )

    try:
        return _parse_listing(response.json())
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        logging.error(f"Unparseable search response for r/{subreddit}: {e}")
        raise CrawlError(
            f"Search response could not be parsed: {e}",
            CrawlError.DECODE,
            status_code=200
        ) from e


async def crawl(
    client: httpx.AsyncClient,
    token: Token,
    subreddit: str,
    progress: CrawlProgress,
    config: CrawlConfig,
    user_agent: str,
    now: Callable[[], datetime] = utcnow,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
) -> PageResult:
    """
    Fetch the next page of a subreddit's history.

    Issues one request per window size tried: a window returning too few
    results is widened and one returning too many is narrowed, both at the
    same window end, until the count lands in the target range. Every request
    waits for the minimum request interval first.

    Args:
        client: HTTP client configured by the caller
        token: Current access token
        subreddit: Subreddit name
        progress: Where the crawl stands
        config: Window policy
        user_agent: User-Agent header value
        now: Clock
        sleep: Coroutine used by the rate gate

    Returns:
        CrawlPage with the accepted submissions and the progress to continue
        from, or EndOfSubreddit once a maximum-width window comes back empty

    Raises:
        CrawlError: If a request fails. Its `progress` holds the input window
            and can be passed back to retry the identical query.
    """
    window = progress
    requests = 0

    while True:
        issued_at = await wait_for_slot(
            window.previous_request_at,
            config.min_request_interval,
            now=now,
            sleep=sleep
        )
        window = window.replace(previous_request_at=issued_at)
        requests += 1

        try:
            submissions = await search(client, token, subreddit, window, user_agent)
        except CrawlError as e:
            e.progress = progress.replace(previous_request_at=issued_at)
            e.requests = requests
            raise

        count = len(submissions)
        width = window.window_width

        if is_exhausted(count, width, config):
            logging.info(
                f"r/{subreddit}: empty window at maximum width before "
                f"{window.window_end.isoformat()}, end of subreddit"
            )
            return EndOfSubreddit(window_end=window.window_end, requests=requests)

        outcome = classify(count, config)

        if outcome is WindowOutcome.TOO_FEW and width < config.max_width:
            next_width = grow(width, config)
            logging.debug(
                f"[interval] grew: {pretty_duration(width)} -> {pretty_duration(next_width)} ({count} subs)"
            )
            window = window.replace(window_width=next_width)
            continue

        if outcome is WindowOutcome.TOO_MANY and width > config.min_width:
            next_width = shrink(width, config)
            logging.debug(
                f"[interval] shrunk: {pretty_duration(width)} -> {pretty_duration(next_width)} ({count} subs)"
            )
            window = window.replace(window_width=next_width)
            continue

        if outcome is WindowOutcome.SWEET_SPOT:
            logging.debug(f"[interval] unchanged: {pretty_duration(width)} ({count} subs)")
        elif outcome is WindowOutcome.TOO_MANY:
            # A full page at the narrowest window may have been truncated by Reddit
            logging.warning(
                f"r/{subreddit}: {count} submissions at minimum window {pretty_duration(width)} "
                f"ending {window.window_end.isoformat()}, page may be incomplete"
            )
        else:
            # Window is pinned at max width, growing cannot change the outcome
            logging.debug(
                f"[interval] at bound: {pretty_duration(width)} ({count} subs, accepting page)"
            )

        next_progress = window.replace(window_end=window.window_end - width)
        return CrawlPage(submissions=submissions, progress=next_progress, requests=requests)
