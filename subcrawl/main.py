"""
Main entry point for subreddit crawler CLI.
"""

import asyncio
import logging
import sys
from pathlib import Path
from datetime import datetime
from argparse import ArgumentParser, RawDescriptionHelpFormatter

import httpx

from subcrawl import __version__
from subcrawl.config import Config
from subcrawl.errors import SubcrawlError
from subcrawl.session import SubredditCrawler


def setup_logging(log_dir: str, log_level: str):
    """
    Setup logging configuration.

    Args:
        log_dir: Directory for log files
        log_level: Logging level
    """
    # Create log directory
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    # Create log filename with timestamp
    timestamp = datetime.now().strftime('%Y-%m-%d_%H-%M-%S')
    log_file = log_path / f"subcrawl_{timestamp}.log"

    file_format = '[%(asctime)s] [%(levelname)s] %(message)s'
    console_format = '%(message)s'
    date_format = '%Y-%m-%d %H:%M:%S'

    # File handler - detailed logging for debugging
    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(logging.Formatter(file_format, date_format))
    file_handler.setLevel(logging.DEBUG)

    # Console goes to stderr so stdout carries only submissions
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(console_format))
    console_handler.setLevel(getattr(logging, log_level.upper()))

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # Suppress verbose third-party library logs in console
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)

    logging.info(f"Logging to: {log_file}")


def create_parser() -> ArgumentParser:
    """
    Create argument parser.

    Returns:
        ArgumentParser instance
    """
    parser = ArgumentParser(
        description='Subreddit Crawler - enumerate every submission in a subreddit',
        formatter_class=RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Crawl r/rust from now back to its first submission
  subcrawl rust

  # Stop after 20 accepted pages, with verbose window logging
  subcrawl rust --max-pages 20 --log-level DEBUG

  # Start with a one-day window for a quiet subreddit
  subcrawl someQuietSub --initial-width 1440

Environment variables:
  REDDIT_CLIENT_ID            - Reddit API client ID (required)
  REDDIT_CLIENT_SECRET        - Reddit API client secret (required)
  REDDIT_USERNAME             - Reddit username (required)
  REDDIT_PASSWORD             - Reddit password (required)
  USER_AGENT                  - User-Agent header (default: derived from username)
  SUBCRAWL_LOG_DIR            - Log directory (default: logs)
  SUBCRAWL_HTTP_TIMEOUT       - HTTP timeout in seconds (default: 30)
  SUBCRAWL_RENEWAL_MARGIN     - Renew token this many seconds early (default: 120)
  SUBCRAWL_WINDOW_END_OFFSET  - Hours added to "now" for the first window (default: 0)
  LOG_LEVEL                   - Logging level (default: INFO)
        """
    )

    parser.add_argument(
        'subreddit',
        type=str,
        help='Subreddit to crawl (without the r/ prefix)'
    )

    parser.add_argument(
        '--log-dir',
        type=str,
        help='Log directory (default: logs)'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: INFO)'
    )

    parser.add_argument(
        '--max-pages',
        type=int,
        help='Stop after this many accepted pages'
    )

    # Window options
    parser.add_argument(
        '--initial-width',
        type=float,
        help='Initial window width in minutes (default: 15)'
    )

    parser.add_argument(
        '--window-end-offset',
        type=float,
        help='Hours added to the current time for the first window end (default: 0)'
    )

    # Environment file
    parser.add_argument(
        '--env-file',
        type=str,
        help='Path to .env file (default: ./.env)'
    )

    return parser


async def run_crawl(config: Config, subreddit: str, max_pages=None) -> int:
    """
    Crawl one subreddit and print its submissions.

    Args:
        config: Validated configuration
        subreddit: Subreddit name
        max_pages: Optional page limit

    Returns:
        Number of submissions printed
    """
    async with httpx.AsyncClient(timeout=config.http_timeout) as client:
        crawler = SubredditCrawler(
            client,
            config.credentials(),
            subreddit,
            config.user_agent,
            config=config.crawl_config(),
            renewal_margin=config.renewal_margin
        )

        printed = 0
        try:
            async for page in crawler.pages():
                for submission in page.submissions:
                    created = submission.created_at.strftime('%Y-%m-%d %H:%M:%S')
                    print(f"{created}  {submission.id:<8} {submission.title}")
                    printed += 1

                if max_pages and crawler.pages_fetched >= max_pages:
                    logging.info(f"Reached page limit ({max_pages})")
                    break
        finally:
            stats = crawler.get_stats()
            logging.info(
                f"r/{subreddit}: {stats['submissions']:,} submissions in {stats['pages']} pages, "
                f"{stats['requests']} requests, {stats['token_renewals']} token fetches"
            )

        return printed


async def main():
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    try:
        # Load configuration
        config = Config.from_env(args.env_file)

        # Update from command line arguments
        config.update_from_args(
            log_dir=args.log_dir,
            log_level=args.log_level,
            initial_width_minutes=args.initial_width,
            window_end_offset_hours=args.window_end_offset,
        )

        # Validate configuration
        config.validate()

        # Setup logging
        setup_logging(config.log_dir, config.log_level)

        logging.info(f"Subreddit Crawler v{__version__}")
        logging.debug(str(config))

        await run_crawl(config, args.subreddit, max_pages=args.max_pages)
        return 0

    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        return 130

    except (SubcrawlError, ValueError) as e:
        logging.error(f"Fatal error: {e}")
        return 1

    except Exception as e:
        logging.error(f"Fatal error: {e}", exc_info=True)
        return 1


def cli():
    """CLI entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == '__main__':
    cli()
