"""
Caller-side crawl loop.

Holds the mutable token and progress for one subreddit and threads them
through the stateless credential exchange and crawl driver.
"""

import asyncio
import httpx
import logging
from datetime import datetime, timedelta
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional

from subcrawl.auth import RENEWAL_MARGIN, exchange, should_renew
from subcrawl.config import CrawlConfig
from subcrawl.crawler import crawl
from subcrawl.errors import CrawlError
from subcrawl.models import CrawlPage, CrawlProgress, Credentials, Token, utcnow


class SubredditCrawler:
    """
    Crawls one subreddit from now back to its first submission.

    Handles:
    - Renewing the access token before it expires
    - Advancing progress page by page
    - Keeping the last good progress when a request fails
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        credentials: Credentials,
        subreddit: str,
        user_agent: str,
        config: Optional[CrawlConfig] = None,
        progress: Optional[CrawlProgress] = None,
        renewal_margin: timedelta = RENEWAL_MARGIN,
        now: Callable[[], datetime] = utcnow,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        """
        Initialize crawler.

        Args:
            client: HTTP client configured by the caller
            credentials: Account and application credentials
            subreddit: Subreddit name
            user_agent: User-Agent header value
            config: Window policy (defaults to CrawlConfig())
            progress: Progress to resume from (defaults to starting now)
            renewal_margin: How long before expiry the token is renewed
            now: Clock
            sleep: Coroutine used by the rate gate
        """
        self.client = client
        self.credentials = credentials
        self.subreddit = subreddit
        self.user_agent = user_agent
        self.config = config or CrawlConfig()
        self.renewal_margin = renewal_margin
        self._now = now
        self._sleep = sleep

        self.token: Optional[Token] = None
        self.progress = progress or CrawlProgress.start(self.config, now=now())
        self.finished = False

        # Statistics
        self.requests = 0
        self.pages_fetched = 0
        self.submissions = 0
        self.token_renewals = 0

    async def _ensure_token_valid(self):
        """Ensure access token is valid, refresh if needed."""
        if not should_renew(self.token, now=self._now, margin=self.renewal_margin):
            return

        if self.token is not None:
            logging.info("Access token expiring, refreshing...")

        self.token = await exchange(self.client, self.credentials, self.user_agent, now=self._now)
        self.token_renewals += 1

    async def next_page(self) -> Optional[CrawlPage]:
        """
        Fetch the next accepted page.

        Returns:
            The page, or None once the subreddit is exhausted

        Raises:
            AuthError: If the token could not be renewed
            CrawlError: If a search request failed; progress is kept so the
                next call retries the same window
        """
        if self.finished:
            return None

        await self._ensure_token_valid()

        try:
            result = await crawl(
                self.client,
                self.token,
                self.subreddit,
                self.progress,
                self.config,
                self.user_agent,
                now=self._now,
                sleep=self._sleep
            )
        except CrawlError as e:
            self.requests += e.requests
            if e.progress is not None:
                self.progress = e.progress
            if e.category == CrawlError.UNAUTHORIZED:
                # Force a fresh token on the next attempt
                self.token = None
            raise

        self.requests += result.requests

        if not isinstance(result, CrawlPage):
            self.finished = True
            logging.info(f"r/{self.subreddit}: crawl complete ({self.submissions:,} submissions)")
            return None

        self.progress = result.progress
        self.pages_fetched += 1
        self.submissions += len(result.submissions)
        logging.debug(
            f"r/{self.subreddit}: page {self.pages_fetched} with {len(result.submissions)} submissions, "
            f"next window ends {self.progress.window_end.isoformat()}"
        )
        return result

    async def pages(self) -> AsyncIterator[CrawlPage]:
        """Yield pages until the subreddit is exhausted."""
        while True:
            page = await self.next_page()
            if page is None:
                return
            yield page

    def get_stats(self) -> Dict[str, Any]:
        """
        Get crawler statistics.

        Returns:
            Dictionary with statistics
        """
        return {
            'subreddit': self.subreddit,
            'requests': self.requests,
            'pages': self.pages_fetched,
            'submissions': self.submissions,
            'token_renewals': self.token_renewals,
            'finished': self.finished,
            'window_end': self.progress.window_end.isoformat(),
            'window_width_seconds': self.progress.window_width.total_seconds(),
        }
