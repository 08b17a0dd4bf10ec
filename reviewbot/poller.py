"""
Poll loop for the Review Board Slack bot.

Fetches the pending review requests on a fixed interval and announces
every request updated after the watermark, oldest first.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from .config.settings import Settings
from .employees import EmployeeAllowlist
from .http_client import HTTPFetcher
from .notifier import SlackNotifier
from .review_requests import ReviewRequest, decode_review_request_list
from .utils.exceptions import ReviewBotError, StartupError
from .utils.logger import get_logger, poll_logger


@dataclass
class IterationResult:
    """
    Outcome of one poll iteration.

    Attributes:
        fetched: Number of review requests returned by the tracker
        sent: Messages posted this iteration
        skipped: Requests skipped as duplicate or internal
        watermark: Watermark after the iteration
        error: Error that aborted the iteration, if any
        duration_ms: Wall time of the iteration
        handled_ids: IDs of requests sent or skipped, in dispatch order
    """

    fetched: int = 0
    sent: int = 0
    skipped: int = 0
    watermark: Optional[datetime] = None
    error: Optional[ReviewBotError] = None
    duration_ms: float = 0.0
    handled_ids: List[int] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


class ReviewPoller:
    """
    Watermark-based change detector and dispatcher.

    All process-lifetime state (watermark, posted ids through the notifier,
    employee allowlist) lives on this instance. ``initialize`` must run once
    before ``poll_once`` or ``run``.
    """

    def __init__(
        self,
        settings: Settings,
        fetcher: HTTPFetcher,
        notifier: SlackNotifier,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.settings = settings
        self.fetcher = fetcher
        self.notifier = notifier
        self.sleep = sleep
        self.watermark: Optional[datetime] = None
        self.iterations = 0
        self.logger = get_logger("reviewbot.poller")

    def fetch_review_requests(self) -> List[ReviewRequest]:
        """
        Fetch and decode the current review request list (newest first).

        Raises:
            HTTPFetchError: If the tracker cannot be fetched
            ReviewRequestParseError: If the response is malformed
        """
        body = self.fetcher.get(
            self.settings.reviewboard_url,
            params=self.settings.review_request_params()
        )
        decoded = decode_review_request_list(body)
        self.logger.info(
            f"Parsed {len(decoded.review_requests)} review requests",
            extra={"count": len(decoded.review_requests), "total_results": decoded.total_results}
        )
        return list(decoded.review_requests)

    def initialize(self) -> None:
        """
        Set the initial watermark and load the employee allowlist.

        Raises:
            StartupError: If the tracker is unreachable, returns no review
                requests, or the allowlist cannot be loaded
        """
        self.logger.info(
            f"Reading from {self.settings.reviewboard_url}",
            extra={"params": self.settings.review_request_params()}
        )
        self.logger.info(f"Posting to {self.settings.webhook_url}")

        try:
            review_requests = self.fetch_review_requests()
        except ReviewBotError as e:
            raise StartupError(f"Initial fetch failed: {e.message}", reason=e.error_code) from e

        if not review_requests:
            raise StartupError(
                "Tracker returned no pending review requests; cannot set initial watermark",
                reason="empty_initial_list"
            )

        self.watermark = max(rr.last_updated for rr in review_requests)
        self.notifier.allowlist = EmployeeAllowlist.load(self.settings.employees_source, self.fetcher)

        self.logger.info(
            f"Last updated is {self.watermark.isoformat()}",
            extra={"watermark": self.watermark.isoformat(), "pending": len(review_requests)}
        )

    def poll_once(self) -> IterationResult:
        """
        Run one iteration: fetch, then dispatch everything newer than the watermark.

        Errors are captured in the returned result; the watermark keeps the
        last request that was handled without error.
        """
        if self.watermark is None:
            raise RuntimeError("initialize() must be called before polling")

        started = time.monotonic()
        result = IterationResult(watermark=self.watermark)

        try:
            review_requests = self.fetch_review_requests()
            result.fetched = len(review_requests)

            # Tracker lists newest first; stable sort keeps that tie order reversed
            for rr in sorted(reversed(review_requests), key=lambda r: r.last_updated):
                if rr.last_updated <= self.watermark:
                    continue

                self.logger.info(
                    f"Current last_updated {self.watermark.isoformat()} is older than "
                    f"{rr.last_updated.isoformat()} - dispatching review request {rr.id}",
                    extra={"review_request_id": rr.id}
                )
                notification = self.notifier.notify(rr)
                if notification.sent:
                    result.sent += 1
                else:
                    result.skipped += 1
                result.handled_ids.append(rr.id)

                poll_logger.log_watermark_advance(self.watermark, rr.last_updated, rr.id)
                self.watermark = rr.last_updated
                result.watermark = self.watermark

        except ReviewBotError as e:
            result.error = e
            self.logger.error(
                f"Poll iteration failed: {e.message}",
                extra={"error": e.to_dict(), "watermark": self.watermark.isoformat()}
            )

        result.duration_ms = (time.monotonic() - started) * 1000
        return result

    def run(self, max_iterations: Optional[int] = None) -> None:
        """
        Poll forever, or ``max_iterations`` times when given.

        Every iteration is followed by the poll interval sleep, whatever
        its outcome.
        """
        while max_iterations is None or self.iterations < max_iterations:
            self.logger.debug("Refreshing review requests")
            result = self.poll_once()
            self.iterations += 1

            if result.ok:
                poll_logger.log_poll_cycle(
                    fetched=result.fetched,
                    sent=result.sent,
                    skipped=result.skipped,
                    watermark=result.watermark,
                    duration_ms=result.duration_ms
                )

            self.logger.debug(f"Sleeping for {self.settings.poll_interval_seconds}s")
            self.sleep(self.settings.poll_interval_seconds)
