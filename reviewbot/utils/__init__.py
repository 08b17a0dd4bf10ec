"""
Utilities module for the Review Board Slack bot.
"""

from .logger import setup_logging, get_logger, api_logger, poll_logger
from .exceptions import (
    ReviewBotError,
    ConfigurationError,
    HTTPFetchError,
    TransportError,
    FetchTimeoutError,
    RedirectLoopError,
    HTTPStatusError,
    ReviewRequestParseError,
    NotificationError,
    StartupError
)

__all__ = [
    "setup_logging",
    "get_logger",
    "api_logger",
    "poll_logger",
    "ReviewBotError",
    "ConfigurationError",
    "HTTPFetchError",
    "TransportError",
    "FetchTimeoutError",
    "RedirectLoopError",
    "HTTPStatusError",
    "ReviewRequestParseError",
    "NotificationError",
    "StartupError"
]
