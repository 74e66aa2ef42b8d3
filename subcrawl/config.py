"""
Configuration management for subreddit crawler.

Handles loading configuration from environment variables and CLI arguments,
and the immutable window policy used by the crawl driver.
"""

import os
import logging
from pathlib import Path
from typing import Optional
from dataclasses import dataclass
from datetime import timedelta
from dotenv import load_dotenv

from subcrawl.models import Credentials

# Reddit never returns more than 100 results per listing request
PAGE_LIMIT = 100

DEFAULT_USER_AGENT = "python:com.github.subcrawl:v1.0.0 (Subreddit History Crawler by /u/{username})"


@dataclass(frozen=True)
class CrawlConfig:
    """
    Window sizing policy for the crawl driver.

    A request is accepted when it returns between target_low and target_high
    results. Fewer widens the window by growth_factor, more narrows it by
    shrink_factor, always within [min_width, max_width].
    """

    target_low: int = 50
    target_high: int = 99
    initial_width: timedelta = timedelta(minutes=15)
    min_width: timedelta = timedelta(minutes=10)
    max_width: timedelta = timedelta(days=365)
    growth_factor: float = 1.5
    shrink_factor: float = 0.95
    min_request_interval: timedelta = timedelta(seconds=1)
    # Added to "now" when a crawl starts; Reddit's search index has been
    # known to store timestamps hours ahead of UTC
    window_end_offset: timedelta = timedelta(0)

    def __post_init__(self):
        self.validate()

    def validate(self):
        """
        Validate the policy.

        Raises:
            ValueError: If configuration is invalid
        """
        if self.target_low < 0:
            raise ValueError("target_low must be >= 0")

        if self.target_low >= self.target_high:
            raise ValueError("target_low must be less than target_high")

        if self.target_high > PAGE_LIMIT:
            raise ValueError(f"target_high cannot exceed the page limit ({PAGE_LIMIT})")

        if self.min_width <= timedelta(0):
            raise ValueError("min_width must be positive")

        if not self.min_width <= self.initial_width <= self.max_width:
            raise ValueError("initial_width must be between min_width and max_width")

        if self.growth_factor <= 1:
            raise ValueError("growth_factor must be > 1")

        if not 0 < self.shrink_factor < 1:
            raise ValueError("shrink_factor must be between 0 and 1")

        if self.min_request_interval < timedelta(0):
            raise ValueError("min_request_interval must be >= 0")


@dataclass
class Config:
    """Configuration for subreddit crawler."""

    # Reddit API credentials
    reddit_client_id: str
    reddit_client_secret: str
    reddit_username: str
    reddit_password: str

    # User agent for Reddit API (follows Reddit's required format)
    # Format: platform:app_id:version (description by /u/username)
    user_agent: str = DEFAULT_USER_AGENT

    # Logging configuration
    log_dir: str = "logs"
    log_level: str = "INFO"

    # HTTP configuration
    http_timeout: float = 30.0

    # Renew the access token this many seconds before it expires
    token_renewal_margin: int = 120

    # Window policy
    target_low: int = 50
    target_high: int = 99
    initial_width_minutes: float = 15
    min_width_minutes: float = 10
    max_width_days: float = 365
    growth_factor: float = 1.5
    shrink_factor: float = 0.95
    min_request_interval: float = 1.0
    window_end_offset_hours: float = 0

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> 'Config':
        """
        Create configuration from environment variables.

        Args:
            env_file: Optional path to .env file

        Returns:
            Config instance

        Raises:
            ValueError: If required credentials are missing
        """
        # Load environment variables from .env file
        if env_file:
            env_path = Path(env_file)
            if env_path.exists():
                load_dotenv(env_path)
                logging.info(f"Loaded environment from {env_file}")
        else:
            # Fall back to a .env in the working directory
            default_env = Path.cwd() / ".env"
            if default_env.exists():
                load_dotenv(default_env)
                logging.info(f"Loaded environment from {default_env}")

        # Get required credentials
        client_id = os.getenv('REDDIT_CLIENT_ID')
        client_secret = os.getenv('REDDIT_CLIENT_SECRET')
        username = os.getenv('REDDIT_USERNAME')
        password = os.getenv('REDDIT_PASSWORD')

        # Validate credentials
        if not all([client_id, client_secret, username, password]):
            missing = []
            if not client_id:
                missing.append('REDDIT_CLIENT_ID')
            if not client_secret:
                missing.append('REDDIT_CLIENT_SECRET')
            if not username:
                missing.append('REDDIT_USERNAME')
            if not password:
                missing.append('REDDIT_PASSWORD')

            raise ValueError(
                f"Missing required Reddit API credentials: {', '.join(missing)}\n"
                f"Please set these environment variables or create a .env file."
            )

        return cls(
            reddit_client_id=client_id,
            reddit_client_secret=client_secret,
            reddit_username=username,
            reddit_password=password,
            user_agent=os.getenv('USER_AGENT', DEFAULT_USER_AGENT.format(username=username)),
            log_dir=os.getenv('SUBCRAWL_LOG_DIR', 'logs'),
            log_level=os.getenv('LOG_LEVEL', 'INFO'),
            http_timeout=float(os.getenv('SUBCRAWL_HTTP_TIMEOUT', '30')),
            token_renewal_margin=int(os.getenv('SUBCRAWL_RENEWAL_MARGIN', '120')),
            window_end_offset_hours=float(os.getenv('SUBCRAWL_WINDOW_END_OFFSET', '0')),
        )

    def update_from_args(self, **kwargs):
        """
        Update configuration from CLI arguments.

        Args:
            **kwargs: Keyword arguments to update
        """
        for key, value in kwargs.items():
            if value is not None and hasattr(self, key):
                setattr(self, key, value)
                logging.debug(f"Config updated: {key} = {value}")

    def validate(self):
        """
        Validate configuration.

        Raises:
            ValueError: If configuration is invalid
        """
        log_dir = Path(self.log_dir)
        if log_dir.exists() and not log_dir.is_dir():
            raise ValueError(f"Log directory path exists but is not a directory: {self.log_dir}")

        if self.http_timeout <= 0:
            raise ValueError("http_timeout must be > 0")

        if self.token_renewal_margin < 0:
            raise ValueError("token_renewal_margin must be >= 0")

        # Window policy is checked by CrawlConfig itself
        self.crawl_config()

    def credentials(self) -> Credentials:
        return Credentials(
            username=self.reddit_username,
            password=self.reddit_password,
            app_id=self.reddit_client_id,
            app_secret=self.reddit_client_secret,
        )

    def crawl_config(self) -> CrawlConfig:
        return CrawlConfig(
            target_low=self.target_low,
            target_high=self.target_high,
            initial_width=timedelta(minutes=self.initial_width_minutes),
            min_width=timedelta(minutes=self.min_width_minutes),
            max_width=timedelta(days=self.max_width_days),
            growth_factor=self.growth_factor,
            shrink_factor=self.shrink_factor,
            min_request_interval=timedelta(seconds=self.min_request_interval),
            window_end_offset=timedelta(hours=self.window_end_offset_hours),
        )

    @property
    def renewal_margin(self) -> timedelta:
        return timedelta(seconds=self.token_renewal_margin)

    def __str__(self) -> str:
        """String representation (without exposing credentials)."""
        return (
            f"Config(\n"
            f"  user_agent={self.user_agent}\n"
            f"  log_dir={self.log_dir}\n"
            f"  log_level={self.log_level}\n"
            f"  target={self.target_low}-{self.target_high} results/request\n"
            f"  window={self.min_width_minutes}m..{self.max_width_days}d "
            f"(start {self.initial_width_minutes}m)\n"
            f"  token_renewal_margin={self.token_renewal_margin}s\n"
            f")"
        )
