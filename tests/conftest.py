"""
Shared fixtures: a controllable clock and a fake Reddit served through
httpx.MockTransport.
"""

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs

import httpx
import pytest

from subcrawl.config import CrawlConfig
from subcrawl.models import Credentials, Token

T0 = datetime(2020, 1, 1, tzinfo=timezone.utc)


class FakeClock:
    """Clock whose time only moves when sleep() is awaited or advance() is called."""

    def __init__(self, start: datetime = T0):
        self.current = start
        self.sleeps = []

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float):
        self.current += timedelta(seconds=seconds)

    async def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.advance(seconds)


class FakeReddit:
    """
    Serves the token and search endpoints.

    Search responses are taken from `search_counts` in order: an int yields a
    listing with that many submissions, an httpx.Response is returned as-is,
    and an exception instance is raised.
    """

    def __init__(self, clock: FakeClock, search_counts=(), token_lifetime: int = 3600):
        self.clock = clock
        self.search_counts = list(search_counts)
        self.token_lifetime = token_lifetime
        self.search_requests = []
        self.search_times = []
        self.token_requests = []
        self.tokens_issued = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == '/api/v1/access_token':
            self.token_requests.append(request)
            self.tokens_issued += 1
            return httpx.Response(200, json={
                'access_token': f'token-{self.tokens_issued}',
                'token_type': 'bearer',
                'expires_in': self.token_lifetime,
                'scope': '*',
            })

        self.search_requests.append(request)
        self.search_times.append(self.clock.now())
        response = self.search_counts.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=make_listing(response))

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def windows(self):
        """(start, stop) epoch seconds of every search request, in order."""
        result = []
        for request in self.search_requests:
            q = parse_qs(request.url.query.decode())['q'][0]
            start, stop = q[len('timestamp:'):].split('..')
            result.append((int(start), int(stop)))
        return result


def make_submission_data(index: int, created_utc: float = 1577836800.0) -> dict:
    return {
        'id': f'abc{index}',
        'name': f't3_abc{index}',
        'title': f'Post number {index}',
        'author': 'someone',
        'subreddit': 'rust',
        'url': f'https://example.com/{index}',
        'permalink': f'/r/rust/comments/abc{index}/post/',
        'domain': 'example.com',
        'thumbnail': '',
        'score': 10,
        'ups': 10,
        'downs': 0,
        'num_comments': 2,
        'created': created_utc + 28800,
        'created_utc': created_utc - index,
        'is_self': False,
        'is_video': False,
        'stickied': False,
        'locked': False,
    }


def make_listing(count: int) -> dict:
    return {
        'kind': 'Listing',
        'data': {
            'after': None,
            'dist': count,
            'children': [
                {'kind': 't3', 'data': make_submission_data(i)}
                for i in range(count)
            ],
        },
    }


def epoch(dt: datetime) -> int:
    return int(dt.timestamp())


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def credentials():
    return Credentials(
        username='crawler_bot',
        password='hunter2',
        app_id='app-id',
        app_secret='app-secret',
    )


@pytest.fixture
def token():
    return Token(access_token='abc123', expires_at=T0 + timedelta(hours=1))


@pytest.fixture
def example_config():
    return CrawlConfig(
        target_low=50,
        target_high=99,
        initial_width=timedelta(hours=1),
        min_width=timedelta(minutes=10),
        max_width=timedelta(days=365),
        growth_factor=8,
        shrink_factor=0.5,
    )


def form_fields(request: httpx.Request) -> dict:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
