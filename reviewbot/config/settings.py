"""
Configuration management for the Review Board Slack bot.

Settings are read from environment variables (optionally from a .env
file) and can be overridden by command-line arguments.
"""

import os
from typing import Optional, Dict
from dataclasses import dataclass, field
from urllib.parse import urlencode
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes", "on")


@dataclass
class Settings:
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults; the Slack token is normally
    supplied on the command line.
    """

    # Slack Configuration
    slack_token: str = field(default_factory=lambda: os.getenv("SLACK_TOKEN", ""))
    slack_webhook_url: str = field(
        default="https://mesosphere.slack.com/services/hooks/incoming-webhook"
    )
    slack_channel: str = field(default="#core")
    slack_icon_emoji: str = field(default=":space_invader:")

    # Review Board Configuration
    reviewboard_url: str = field(default="https://reviews.apache.org/api/review-requests/")
    review_group: str = field(default="mesos")
    review_status: str = field(default="pending")

    # Polling
    poll_interval_seconds: float = field(default=60.0)
    request_timeout_seconds: float = field(default=60.0)
    max_redirects: int = field(default=10)
    suppression_capacity: int = field(default=1000)

    # Employee allowlist: local path or http(s) URL, None disables filtering
    employees_source: Optional[str] = field(default_factory=lambda: os.getenv("EMPLOYEES_SOURCE") or None)

    dry_run: bool = field(default_factory=lambda: _env_bool("DRY_RUN"))

    # Logging Configuration
    log_level: str = field(default="INFO")
    log_format: str = field(default="text")
    log_file: Optional[str] = field(default=None)

    def __post_init__(self):
        """Validate settings after initialization."""
        self.log_level = self.log_level.upper()
        self.log_format = self.log_format.lower()

        if self.log_level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError("log_level must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL")

        if self.log_format not in ["text", "json"]:
            raise ValueError("log_format must be one of: text, json")

        if self.max_redirects < 0:
            raise ValueError("max_redirects cannot be negative")

    @property
    def webhook_url(self) -> str:
        """Slack incoming-webhook URL with the token attached."""
        separator = "&" if "?" in self.slack_webhook_url else "?"
        return f"{self.slack_webhook_url}{separator}{urlencode({'token': self.slack_token})}"

    def review_request_params(self) -> Dict[str, str]:
        """Query parameters selecting the review requests to watch."""
        return {
            "to-groups": self.review_group,
            "status": self.review_status,
        }

    def log_context(self) -> Dict[str, str]:
        """Static context attached to every log record."""
        return {
            "group": self.review_group,
            "channel": self.slack_channel,
        }

    @classmethod
    def from_env(cls, **kwargs) -> "Settings":
        """Create Settings instance from environment variables with optional overrides."""
        env_vars = {}

        env_mapping = {
            "SLACK_TOKEN": "slack_token",
            "SLACK_WEBHOOK_URL": "slack_webhook_url",
            "SLACK_CHANNEL": "slack_channel",
            "SLACK_ICON_EMOJI": "slack_icon_emoji",
            "REVIEWBOARD_URL": "reviewboard_url",
            "REVIEW_GROUP": "review_group",
            "REVIEW_STATUS": "review_status",
            "POLL_INTERVAL_SECONDS": "poll_interval_seconds",
            "REQUEST_TIMEOUT_SECONDS": "request_timeout_seconds",
            "MAX_REDIRECTS": "max_redirects",
            "SUPPRESSION_CAPACITY": "suppression_capacity",
            "EMPLOYEES_SOURCE": "employees_source",
            "DRY_RUN": "dry_run",
            "LOG_LEVEL": "log_level",
            "LOG_FORMAT": "log_format",
            "LOG_FILE": "log_file",
        }

        for env_var, field_name in env_mapping.items():
            if os.environ.get(env_var):
                env_vars[field_name] = os.environ[env_var]

        # Convert boolean and numeric strings
        for key, value in env_vars.items():
            if key == "dry_run":
                env_vars[key] = value.lower() in ("true", "1", "yes", "on")
            elif key in ["poll_interval_seconds", "request_timeout_seconds"]:
                env_vars[key] = float(value)
            elif key in ["max_redirects", "suppression_capacity"]:
                env_vars[key] = int(value)

        # Explicit overrides win; None means "not given"
        env_vars.update({k: v for k, v in kwargs.items() if v is not None})

        return cls(**env_vars)
