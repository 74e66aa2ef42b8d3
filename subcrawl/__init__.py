"""
Subreddit Crawler - Adaptive time-window crawl of a subreddit's full history

This package enumerates every submission in a subreddit by querying Reddit's
CloudSearch endpoint over time windows that grow and shrink until each request
returns a usable page of results.
"""

__version__ = "1.0.0"

from subcrawl.auth import exchange, should_renew
from subcrawl.config import Config, CrawlConfig
from subcrawl.crawler import crawl
from subcrawl.errors import AuthError, CrawlError, SubcrawlError
from subcrawl.models import (
    CrawlPage,
    CrawlProgress,
    Credentials,
    EndOfSubreddit,
    Submission,
    Token,
)
from subcrawl.session import SubredditCrawler

__all__ = [
    "AuthError",
    "Config",
    "CrawlConfig",
    "CrawlError",
    "CrawlPage",
    "CrawlProgress",
    "Credentials",
    "EndOfSubreddit",
    "SubcrawlError",
    "Submission",
    "SubredditCrawler",
    "Token",
    "crawl",
    "exchange",
    "should_renew",
]
