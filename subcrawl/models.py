"""
Value types threaded through the crawl loop.

Every type here is immutable. Tokens and progress are replaced wholesale after
each call, so any value can be kept as a checkpoint and replayed.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utcnow() -> datetime:
    """Current instant as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Credentials:
    """Long-lived Reddit account and application credentials."""

    username: str
    password: str
    app_id: str
    app_secret: str

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, app_id={self.app_id!r})"


@dataclass(frozen=True)
class Token:
    """Bearer access token and the instant it expires."""

    access_token: str
    expires_at: datetime

    def __repr__(self) -> str:
        return f"Token(expires_at={self.expires_at.isoformat()})"


@dataclass(frozen=True)
class CrawlProgress:
    """
    Checkpoint of a crawl: everything before window_end is still unfetched.

    Attributes:
        window_end: Exclusive upper bound of the next query window
        window_width: Width of the next query window
        previous_request_at: Instant of the last issued request (None before
            the first one)
    """

    window_end: datetime
    window_width: timedelta
    previous_request_at: Optional[datetime] = None

    @classmethod
    def start(cls, config, now: Optional[datetime] = None) -> 'CrawlProgress':
        """
        Build the initial progress for a fresh crawl.

        Args:
            config: CrawlConfig supplying initial width and window end offset
            now: Start instant (defaults to the current time)
        """
        now = now or utcnow()
        return cls(
            window_end=now + config.window_end_offset,
            window_width=config.initial_width,
        )

    @property
    def window_start(self) -> datetime:
        # Reddit has nothing before the epoch; never query past it
        if self.window_end - EPOCH <= self.window_width:
            return EPOCH
        return self.window_end - self.window_width

    def replace(self, **changes) -> 'CrawlProgress':
        return replace(self, **changes)


@dataclass(frozen=True)
class Submission:
    """A link submission as returned by the search endpoint."""

    id: str
    name: str
    title: str
    author: str
    subreddit: str
    url: str
    permalink: str
    domain: str
    thumbnail: str
    score: float
    ups: float
    downs: float
    num_comments: float
    created: float
    created_utc: float
    is_self: bool
    is_video: bool
    stickied: bool
    locked: bool
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Submission':
        """
        Parse the `data` object of one `t3` listing child.

        Raises:
            KeyError: If id or created_utc is missing
        """
        return cls(
            id=data['id'],
            name=data.get('name') or f"t3_{data['id']}",
            title=data.get('title', ''),
            author=data.get('author', '[deleted]'),
            subreddit=data.get('subreddit', ''),
            url=data.get('url', ''),
            permalink=data.get('permalink', ''),
            domain=data.get('domain', ''),
            # Reddit sends an empty string when there is no thumbnail
            thumbnail=data.get('thumbnail') or '',
            score=float(data.get('score') or 0),
            ups=float(data.get('ups') or 0),
            downs=float(data.get('downs') or 0),
            num_comments=float(data.get('num_comments') or 0),
            created=float(data.get('created') or data['created_utc']),
            created_utc=float(data['created_utc']),
            is_self=bool(data.get('is_self', False)),
            is_video=bool(data.get('is_video', False)),
            stickied=bool(data.get('stickied', False)),
            locked=bool(data.get('locked', False)),
            raw=data,
        )

    @property
    def created_at(self) -> datetime:
        return datetime.fromtimestamp(self.created_utc, timezone.utc)


@dataclass(frozen=True)
class CrawlPage:
    """An accepted page of submissions and the progress to continue from."""

    submissions: List[Submission]
    progress: CrawlProgress
    requests: int = 1


@dataclass(frozen=True)
class EndOfSubreddit:
    """A maximum-width window came back empty: no earlier history exists."""

    window_end: datetime
    requests: int = 1


PageResult = Union[CrawlPage, EndOfSubreddit]
