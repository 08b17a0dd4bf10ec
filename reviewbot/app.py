"""
Application entry point for the Review Board Slack bot.

Wires settings, validation, logging and the poll loop together.
"""

import sys
from typing import List, Optional

from .cli_handler import CLIHandler
from .config_manager import ConfigurationManager
from .deduplication import PostedIdBuffer
from .http_client import HTTPFetcher
from .notifier import SlackNotifier
from .poller import ReviewPoller
from .utils.exceptions import ConfigurationError, ReviewBotError


class ReviewBotApp:
    """
    Main application class that orchestrates the bot.

    Startup failures (bad configuration, unreachable tracker, empty initial
    list, unreadable allowlist) end the process with status 1; once
    polling starts only an interrupt stops it.
    """

    def __init__(self, sleep=None):
        self.cli_handler = CLIHandler()
        self.sleep = sleep
        self.poller: Optional[ReviewPoller] = None

    def build_poller(self, settings, fetcher: HTTPFetcher) -> ReviewPoller:
        notifier = SlackNotifier(
            fetcher=fetcher,
            webhook_url=settings.webhook_url,
            channel=settings.slack_channel,
            posted_ids=PostedIdBuffer(settings.suppression_capacity),
            icon_emoji=settings.slack_icon_emoji,
            dry_run=settings.dry_run
        )
        kwargs = {"sleep": self.sleep} if self.sleep else {}
        return ReviewPoller(settings, fetcher, notifier, **kwargs)

    def run(self, argv: Optional[List[str]] = None, max_iterations: Optional[int] = None) -> int:
        """
        Run the bot.

        Args:
            argv: Command line arguments (uses sys.argv if None)
            max_iterations: Stop after this many poll iterations (None polls forever)

        Returns:
            Exit code
        """
        args = self.cli_handler.parse_args(argv)

        try:
            settings = self.cli_handler.build_settings(args)
        except ValueError as e:
            print(f"Configuration error: {e}", file=sys.stderr)
            return 1

        if not self.cli_handler.setup_logging(settings):
            return 1
        logger = self.cli_handler.logger

        try:
            ConfigurationManager(settings).validate_environment()

            with HTTPFetcher(
                timeout=settings.request_timeout_seconds,
                max_redirects=settings.max_redirects
            ) as fetcher:
                self.poller = self.build_poller(settings, fetcher)
                self.poller.initialize()
                self.poller.run(max_iterations=max_iterations)

        except ConfigurationError as e:
            logger.error(f"Configuration error: {e.message}", extra={"error": e.to_dict()})
            return 1
        except ReviewBotError as e:
            logger.error(f"Startup failed: {e.message}", extra={"error": e.to_dict()})
            return 1
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")
            return 0

        return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Console script entry point."""
    return ReviewBotApp().run(argv)


if __name__ == "__main__":
    sys.exit(main())
