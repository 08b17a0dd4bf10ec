"""
Slack notification dispatch for review requests.

Formats one incoming-webhook message per review request and posts it,
unless the request was already announced or comes from an employee.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .deduplication import PostedIdBuffer
from .employees import EmployeeAllowlist
from .http_client import HTTPFetcher
from .review_requests import ReviewRequest
from .utils.exceptions import HTTPFetchError, NotificationError
from .utils.logger import get_logger, poll_logger


class NotificationOutcome(Enum):
    """What happened to a review request handed to the notifier."""

    SENT = "sent"
    SKIPPED = "skipped"


class SkipReason(Enum):
    """Why a review request was not posted."""

    DUPLICATE = "duplicate"
    INTERNAL_SUBMITTER = "internal submitter"


@dataclass(frozen=True)
class NotificationResult:
    """
    Result of a notify call.

    Attributes:
        review_request_id: ID of the handled review request
        outcome: Whether the message was sent or skipped
        reason: Skip reason, None when sent
    """

    review_request_id: int
    outcome: NotificationOutcome
    reason: Optional[SkipReason] = None

    @property
    def sent(self) -> bool:
        return self.outcome is NotificationOutcome.SENT


class SlackNotifier:
    """
    Posts review request announcements to a Slack incoming webhook.

    Skips are checked in order: already posted, then employee submitter.
    An id is only remembered after the webhook accepted the message.
    """

    USERNAME_SUFFIX = "[Review Board]"

    def __init__(
        self,
        fetcher: HTTPFetcher,
        webhook_url: str,
        channel: str,
        posted_ids: PostedIdBuffer,
        allowlist: Optional[EmployeeAllowlist] = None,
        icon_emoji: str = ":space_invader:",
        dry_run: bool = False
    ):
        """
        Initialize the notifier.

        Args:
            fetcher: HTTP client used to POST to the webhook
            webhook_url: Full webhook URL, token included
            channel: Target Slack channel
            posted_ids: Memory of already-posted ids
            allowlist: Submitters whose requests are never posted
            icon_emoji: Icon shown next to the message
            dry_run: Log messages instead of posting them
        """
        self.fetcher = fetcher
        self.webhook_url = webhook_url
        self.channel = channel
        self.posted_ids = posted_ids
        self.allowlist = allowlist or EmployeeAllowlist()
        self.icon_emoji = icon_emoji
        self.dry_run = dry_run
        self.logger = get_logger("reviewbot.notifier")

    def build_payload(self, rr: ReviewRequest) -> Dict[str, Any]:
        """Build the incoming-webhook message for ``rr``."""
        return {
            "channel": self.channel,
            "username": f"{rr.submitter} {self.USERNAME_SUFFIX}",
            "text": f"{rr.summary} [<{rr.absolute_url}|#{rr.id}>]",
            "icon_emoji": self.icon_emoji,
        }

    def notify(self, rr: ReviewRequest) -> NotificationResult:
        """
        Announce ``rr`` unless it must be skipped.

        Returns:
            NotificationResult describing the sent or skipped outcome

        Raises:
            NotificationError: If the webhook rejected the message or was
                unreachable; the id is not remembered in that case
        """
        if rr.id in self.posted_ids:
            return self._skip(rr, SkipReason.DUPLICATE)

        if rr.submitter in self.allowlist:
            return self._skip(rr, SkipReason.INTERNAL_SUBMITTER)

        payload = self.build_payload(rr)

        if self.dry_run:
            self.logger.info(
                f"Dry run: would send review request {rr.id}",
                extra={"review_request_id": rr.id, "payload": payload}
            )
        else:
            self.logger.debug(
                f"Sending payload for review request {rr.id}",
                extra={"review_request_id": rr.id, "payload": payload}
            )
            try:
                self.fetcher.post_form(self.webhook_url, {"payload": json.dumps(payload)})
            except HTTPFetchError as e:
                raise NotificationError(
                    f"Failed to post review request {rr.id}: {e.message}",
                    review_request_id=rr.id,
                    cause=e
                ) from e

        self.posted_ids.add(rr.id)
        poll_logger.log_dispatch_decision(rr.id, NotificationOutcome.SENT.value)
        return NotificationResult(rr.id, NotificationOutcome.SENT)

    def _skip(self, rr: ReviewRequest, reason: SkipReason) -> NotificationResult:
        poll_logger.log_dispatch_decision(rr.id, NotificationOutcome.SKIPPED.value, reason.value)
        return NotificationResult(rr.id, NotificationOutcome.SKIPPED, reason)
