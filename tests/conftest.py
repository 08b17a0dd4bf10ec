"""
Configuration for pytest test suite
"""
from unittest.mock import Mock

import pytest

from reviewbot.config.settings import Settings
from reviewbot.deduplication import PostedIdBuffer
from reviewbot.http_client import HTTPFetcher
from reviewbot.notifier import SlackNotifier

# Environment variables read by Settings.from_env
BOT_ENV_VARS = [
    "SLACK_TOKEN", "SLACK_WEBHOOK_URL", "SLACK_CHANNEL", "SLACK_ICON_EMOJI",
    "REVIEWBOARD_URL", "REVIEW_GROUP", "REVIEW_STATUS",
    "POLL_INTERVAL_SECONDS", "REQUEST_TIMEOUT_SECONDS", "MAX_REDIRECTS",
    "SUPPRESSION_CAPACITY", "EMPLOYEES_SOURCE", "DRY_RUN",
    "LOG_LEVEL", "LOG_FORMAT", "LOG_FILE",
]


@pytest.fixture(autouse=True)
def clean_bot_environment(monkeypatch):
    """Keep a developer's .env or shell from leaking into tests"""
    for name in BOT_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings():
    """Settings with a test token and no allowlist"""
    return Settings(slack_token="test-token", employees_source=None)


@pytest.fixture
def fetcher():
    """HTTPFetcher double; tests set get/post_form behaviour"""
    fake = Mock(spec=HTTPFetcher)
    fake.post_form.return_value = b"ok"
    return fake


@pytest.fixture
def posted_ids():
    return PostedIdBuffer(capacity=1000)


@pytest.fixture
def notifier(fetcher, settings, posted_ids):
    return SlackNotifier(
        fetcher=fetcher,
        webhook_url=settings.webhook_url,
        channel=settings.slack_channel,
        posted_ids=posted_ids
    )
