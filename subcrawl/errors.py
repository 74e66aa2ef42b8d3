"""
Exceptions raised by the credential exchange and the crawl driver.

Neither error is retried internally; the caller decides whether to retry,
abort, or log and continue.
"""

from typing import Optional


class SubcrawlError(Exception):
    """Base class for subcrawl errors."""


class AuthError(SubcrawlError):
    """Credential exchange failed (transport, rejected credentials, bad body)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CrawlError(SubcrawlError):
    """
    A single search request failed.

    Attributes:
        category: One of 'transport', 'unauthorized', 'rate_limited',
            'status' or 'decode'
        status_code: HTTP status when a response was received
        retry_after: Seconds from the Retry-After header on a 429
        progress: Progress to hand back to crawl() when retrying. Same window
            as the failed call's input, so the retried query is identical.
        requests: HTTP requests issued by the failed call, the failed one
            included
    """

    TRANSPORT = 'transport'
    UNAUTHORIZED = 'unauthorized'
    RATE_LIMITED = 'rate_limited'
    STATUS = 'status'
    DECODE = 'decode'

    def __init__(
        self,
        message: str,
        category: str,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None,
        progress=None,
        requests: int = 1,
    ):
        super().__init__(message)
        self.category = category
        self.status_code = status_code
        self.retry_after = retry_after
        self.progress = progress
        self.requests = requests

    @property
    def retryable(self) -> bool:
        """Whether re-issuing the same progress can reasonably succeed."""
        if self.category in (self.TRANSPORT, self.RATE_LIMITED):
            return True
        return self.category == self.STATUS and (self.status_code or 0) >= 500
