"""
Configuration Manager for the Review Board Slack bot.

Validates settings once at startup, before any network traffic.
"""

from .config.settings import Settings
from .utils.logger import get_logger
from .utils.exceptions import ConfigurationError


class ConfigurationManager:
    """
    Validates application settings.

    All checks raise ConfigurationError, which the application treats
    as fatal.
    """

    MIN_SUPPRESSION_CAPACITY = 1
    MAX_SUPPRESSION_CAPACITY = 10000

    def __init__(self, settings: Settings):
        self.settings = settings
        self.logger = get_logger("reviewbot.config")

    def validate_url(self, url: str, name: str) -> None:
        """
        Validate that a URL has an http(s) scheme.

        Raises:
            ConfigurationError: If URL format is invalid
        """
        if not url or not url.startswith(("http://", "https://")):
            raise ConfigurationError(f"Invalid {name}: {url}", config_key=name, config_value=url)

    def validate_range(self, value: float, min_val: float, max_val: float, name: str) -> None:
        """
        Validate that a numeric value is within range.

        Raises:
            ConfigurationError: If value is out of range
        """
        if not min_val <= value <= max_val:
            raise ConfigurationError(
                f"Invalid {name}: {value}. Must be between {min_val} and {max_val}",
                config_key=name,
                config_value=str(value)
            )

    def validate_positive(self, value: float, name: str) -> None:
        """
        Validate that a numeric value is positive.

        Raises:
            ConfigurationError: If value is not positive
        """
        if value <= 0:
            raise ConfigurationError(
                f"Invalid {name}: {value}. Must be positive",
                config_key=name,
                config_value=str(value)
            )

    def validate_environment(self) -> bool:
        """
        Validate all settings needed to start polling.

        Returns:
            True if validation passes

        Raises:
            ConfigurationError: If required settings are missing or invalid
        """
        self.logger.debug("Validating configuration")

        if not self.settings.slack_token:
            raise ConfigurationError("Slack token is required", config_key="slack_token")

        self.validate_url(self.settings.reviewboard_url, "reviewboard_url")
        self.validate_url(self.settings.slack_webhook_url, "slack_webhook_url")

        self.validate_positive(self.settings.poll_interval_seconds, "poll_interval_seconds")
        self.validate_positive(self.settings.request_timeout_seconds, "request_timeout_seconds")
        self.validate_range(
            self.settings.suppression_capacity,
            self.MIN_SUPPRESSION_CAPACITY,
            self.MAX_SUPPRESSION_CAPACITY,
            "suppression_capacity"
        )

        if not self.settings.slack_channel:
            raise ConfigurationError("Slack channel cannot be empty", config_key="slack_channel")

        if self.settings.employees_source is None:
            self.logger.info("No employee allowlist configured; all submitters will be relayed")

        return True
