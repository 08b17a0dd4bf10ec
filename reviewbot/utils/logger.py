"""
Logging infrastructure for the Review Board Slack bot.

Provides structured logging with configurable formats and levels.

This module offers:
- JSON and text formatters
- Specialized loggers for HTTP traffic and poll-loop decisions
- Static context injection (tracker group, chat channel)
- Redaction of the webhook token, which travels in the webhook URL

Example:
    >>> from reviewbot.utils.logger import get_logger, setup_logging
    >>> setup_logging(level="DEBUG", format_type="json")
    >>> logger = get_logger(__name__)
    >>> logger.info("Poller started", extra={"channel": "#core"})
"""

import logging
import sys
import json
import re
from datetime import datetime, timezone
from typing import Dict, Any, Optional, Union, List, Pattern
from pathlib import Path
from enum import Enum


class LogLevel(Enum):
    """Supported logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(Enum):
    """Supported log formats."""
    JSON = "json"
    TEXT = "text"


class Colors:
    """ANSI color codes for console output."""
    CYAN = '\033[36m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    RED = '\033[31m'
    MAGENTA = '\033[35m'
    RESET = '\033[0m'

    LEVEL_COLORS = {
        LogLevel.DEBUG.value: CYAN,
        LogLevel.INFO.value: GREEN,
        LogLevel.WARNING.value: YELLOW,
        LogLevel.ERROR.value: RED,
        LogLevel.CRITICAL.value: MAGENTA,
    }


# Field names whose values are always redacted
SENSITIVE_FIELDS = {
    'authorization', 'token', 'password', 'secret', 'api_key',
    'access_token', 'bearer', 'credential', 'credentials', 'cookie',
    'slack_token', 'webhook_token',
}

DEFAULT_TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'

# Standard log record fields to exclude when copying extra fields
STANDARD_LOG_FIELDS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info', 'taskName', 'message', 'asctime'
}


# ============================================================================
# Sensitive Data Redaction
# ============================================================================

class RedactionLevel(Enum):
    """Different levels of data redaction."""
    NONE = "none"          # No redaction
    BASIC = "basic"        # Field name matching only
    STANDARD = "standard"  # Field names plus URL/token patterns


class SensitiveDataRedactor:
    """
    Redacts secrets from log messages and structured extras.

    Field names listed in SENSITIVE_FIELDS always have their values masked.
    At STANDARD level free text is also scanned for token query parameters,
    bearer tokens and Slack hook paths.
    """

    def __init__(self, level: RedactionLevel = RedactionLevel.STANDARD):
        self.level = level
        self.redaction_placeholder = "***REDACTED***"
        self._compile_patterns()

    def _compile_patterns(self) -> None:
        """Compile regex patterns for sensitive data detection."""
        self.patterns: List[Pattern] = []

        if self.level == RedactionLevel.STANDARD:
            self.patterns.extend([
                # ?token=... / &api_key=... in URLs
                re.compile(r'([?&](?:token|api[_-]?key|access[_-]?token|secret)=)([^&\s\'"]+)', re.IGNORECASE),
                re.compile(r'(bearer\s+)([a-zA-Z0-9_\-\.]{8,})', re.IGNORECASE),
                # hooks.slack.com/services/T000/B000/XXXX
                re.compile(r'(/services/)([A-Za-z0-9]+/[A-Za-z0-9]+/[A-Za-z0-9]+)'),
            ])

    def redact_string(self, text: str) -> str:
        """
        Redact sensitive information from a string.

        Args:
            text: String to redact

        Returns:
            Redacted string
        """
        if not isinstance(text, str):
            return text

        for pattern in self.patterns:
            text = pattern.sub(lambda m: f"{m.group(1)}{self.redaction_placeholder}", text)
        return text

    def redact_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively redact sensitive values in a dictionary, keeping keys."""
        if not isinstance(data, dict):
            return data
        return {key: self._redact_value(key, value) for key, value in data.items()}

    def _is_sensitive_key(self, key: str) -> bool:
        key_lower = key.lower()
        return key_lower in SENSITIVE_FIELDS or any(
            sensitive in key_lower for sensitive in SENSITIVE_FIELDS
        )

    def _redact_value(self, key: str, value: Any) -> Any:
        """
        Redact a value based on its key and content.

        Args:
            key: The field key
            value: The value to potentially redact

        Returns:
            Original value or redacted version
        """
        if value is None or self.level == RedactionLevel.NONE:
            return value

        if isinstance(value, dict):
            return self.redact_dict(value)
        if isinstance(value, (list, tuple)):
            return type(value)(self._redact_value(key, item) for item in value)

        if self._is_sensitive_key(key):
            return self.redaction_placeholder

        if isinstance(value, str):
            return self.redact_string(value)

        return value


# ============================================================================
# Formatter Classes
# ============================================================================

class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Example output:
        {
            "timestamp": "2024-03-01T10:30:45.123456Z",
            "level": "INFO",
            "logger": "reviewbot.poller",
            "message": "Poll cycle completed",
            "function": "run",
            "line": 42,
            "sent": 2,
            "watermark": "2024-03-01T10:29:00+00:00"
        }
    """

    def __init__(self, ensure_ascii: bool = False, sort_keys: bool = True):
        super().__init__()
        self.ensure_ascii = ensure_ascii
        self.sort_keys = sort_keys
        self.redactor = SensitiveDataRedactor(RedactionLevel.STANDARD)

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for key, value in record.__dict__.items():
            if key not in STANDARD_LOG_FIELDS and not key.startswith("_"):
                log_entry[key] = self.redactor._redact_value(key, value)

        if record.exc_info:
            log_entry["exception"] = self.redactor.redact_string(
                self.formatException(record.exc_info)
            )

        return json.dumps(
            log_entry,
            default=str,
            ensure_ascii=self.ensure_ascii,
            sort_keys=self.sort_keys
        )


class TextFormatter(logging.Formatter):
    """
    Text formatter for human-readable logging with optional colors.

    Example output:
        [2024-03-01 10:30:45] INFO     reviewbot.poller:42 - Poll cycle completed (group=mesos, channel=#core)
    """

    def __init__(self, use_colors: bool = True, timestamp_format: Optional[str] = None):
        super().__init__()
        self.use_colors = use_colors and self._supports_color()
        self.timestamp_format = timestamp_format or DEFAULT_TIMESTAMP_FORMAT

    def _supports_color(self) -> bool:
        """Check if the terminal supports color output."""
        return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime(self.timestamp_format)
        message = (
            f"[{timestamp}] {record.levelname:8} "
            f"{record.name}:{record.lineno} - {record.getMessage()}"
        )

        context = getattr(record, "_context", None)
        if context:
            message += " (" + ", ".join(f"{k}={v}" for k, v in context.items()) + ")"

        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        if self.use_colors:
            color = Colors.LEVEL_COLORS.get(record.levelname, '')
            message = f"{color}{message}{Colors.RESET}"

        return message


# ============================================================================
# Filter Classes
# ============================================================================

class ContextFilter(logging.Filter):
    """
    Injects static bot context (tracker group, chat channel) into records.

    JSON output gets each key as a top-level field; text output renders
    them in a trailing parenthesised suffix.
    """

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__()
        self.context = {k: v for k, v in (context or {}).items() if v is not None}

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.context.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        record._context = self.context
        return True


class SensitiveDataFilter(logging.Filter):
    """
    Sanitizes log messages, their arguments and sensitive extra fields.
    """

    def __init__(self, redaction_level: Union[RedactionLevel, str] = RedactionLevel.STANDARD):
        super().__init__()
        if isinstance(redaction_level, str):
            redaction_level = RedactionLevel(redaction_level.lower())
        self.redactor = SensitiveDataRedactor(redaction_level)
        self.records_redacted = 0

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            # Render %-args first so secrets passed as arguments are caught too
            original = record.getMessage()
            redacted = self.redactor.redact_string(original)
            if redacted != original:
                self.records_redacted += 1
            record.msg = redacted
            record.args = None

        for key in list(record.__dict__.keys()):
            if key in STANDARD_LOG_FIELDS or key.startswith("_"):
                continue
            value = getattr(record, key)
            redacted_value = self.redactor._redact_value(key, value)
            if redacted_value != value:
                setattr(record, key, redacted_value)
                self.records_redacted += 1

        return True


# ============================================================================
# Logger Setup and Configuration
# ============================================================================

def validate_log_level(level: str) -> str:
    """
    Validate and normalize log level string.

    Raises:
        ValueError: If the log level is not supported
    """
    if not level:
        raise ValueError("Log level cannot be empty")

    level_upper = level.upper()
    valid_levels = {log_level.value for log_level in LogLevel}
    if level_upper not in valid_levels:
        raise ValueError(f"Invalid log level: {level}. Valid levels: {', '.join(sorted(valid_levels))}")
    return level_upper


def validate_log_format(format_type: str) -> str:
    """
    Validate and normalize log format string.

    Raises:
        ValueError: If the log format is not supported
    """
    if not format_type:
        raise ValueError("Log format cannot be empty")

    format_lower = format_type.lower()
    valid_formats = {log_format.value for log_format in LogFormat}
    if format_lower not in valid_formats:
        raise ValueError(f"Invalid log format: {format_type}. Valid formats: {', '.join(sorted(valid_formats))}")
    return format_lower


def setup_logging(
    level: Union[str, LogLevel] = "INFO",
    format_type: Union[str, LogFormat] = "text",
    log_file: Optional[str] = None,
    use_colors: Optional[bool] = None,
    redaction_level: Union[RedactionLevel, str] = RedactionLevel.STANDARD,
    context: Optional[Dict[str, Any]] = None
) -> logging.Logger:
    """
    Configure the root logger.

    Console output uses the requested format; a log file, when given,
    always receives JSON lines. Every handler carries the context and
    redaction filters, so the webhook token never reaches an output.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Log format ('json' or 'text')
        log_file: Optional log file path
        use_colors: Whether to use colors in text output (auto-detected if None)
        redaction_level: Level of sensitive data redaction (none, basic, standard)
        context: Static fields attached to every record

    Returns:
        Configured root logger

    Raises:
        ValueError: If level or format is invalid
    """
    if isinstance(level, LogLevel):
        level = level.value
    if isinstance(format_type, LogFormat):
        format_type = format_type.value

    validated_level = validate_log_level(level)
    validated_format = validate_log_format(format_type)
    numeric_level = getattr(logging, validated_level, logging.INFO)

    logger = logging.getLogger()
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    filters: List[logging.Filter] = [
        ContextFilter(context),
        SensitiveDataFilter(redaction_level=redaction_level),
    ]

    if validated_format == LogFormat.JSON.value:
        console_formatter: logging.Formatter = JSONFormatter()
    else:
        console_formatter = TextFormatter(use_colors=use_colors if use_colors is not None else True)

    logger.addHandler(_create_handler(logging.StreamHandler(sys.stdout), numeric_level, console_formatter, filters))

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        logger.addHandler(_create_handler(file_handler, numeric_level, JSONFormatter(), filters))

    return logger


def _create_handler(
    handler: logging.Handler,
    level: int,
    formatter: logging.Formatter,
    filters: List[logging.Filter]
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    for filter_obj in filters:
        handler.addFilter(filter_obj)
    return handler


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


class APILogger:
    """Logger for outgoing HTTP traffic, with URL redaction."""

    def __init__(self, logger_name: str = "reviewbot.api", redaction_level: RedactionLevel = RedactionLevel.STANDARD):
        self.logger = get_logger(logger_name)
        self.redactor = SensitiveDataRedactor(redaction_level)

    def log_request(self, method: str, url: str, params: Optional[Dict[str, Any]] = None, has_body: bool = False):
        """Log an outgoing request at DEBUG level."""
        sanitized_url = self.redactor.redact_string(url)
        self.logger.debug(
            f"HTTP request: {method} {sanitized_url}",
            extra={
                "method": method,
                "url": sanitized_url,
                "params": self.redactor.redact_dict(params or {}),
                "has_body": has_body
            }
        )

    def log_response(
        self,
        method: str,
        url: str,
        status_code: int,
        response_time_ms: Optional[float] = None,
        content_length: Optional[int] = None
    ):
        """Log a received response at DEBUG level."""
        sanitized_url = self.redactor.redact_string(url)
        self.logger.debug(
            f"HTTP response: {method} {sanitized_url} - {status_code}",
            extra={
                "method": method,
                "url": sanitized_url,
                "status_code": status_code,
                "response_time_ms": response_time_ms,
                "content_length": content_length
            }
        )

    def log_redirect(self, method: str, url: str, location: str, redirects_left: int):
        """Log a followed redirect."""
        self.logger.debug(
            f"HTTP redirect: {method} {self.redactor.redact_string(url)} -> {self.redactor.redact_string(location)}",
            extra={"method": method, "redirects_left": redirects_left}
        )

    def log_error(self, method: str, url: str, error: Exception, status_code: Optional[int] = None):
        """Log a failed exchange at WARNING level; the caller decides severity of the outcome."""
        sanitized_url = self.redactor.redact_string(url)
        error_message = self.redactor.redact_string(str(error))
        self.logger.warning(
            f"HTTP error: {method} {sanitized_url} - {error_message}",
            extra={
                "method": method,
                "url": sanitized_url,
                "status_code": status_code,
                "error_type": type(error).__name__,
                "error_message": error_message
            }
        )


class PollLogger:
    """Logger for poll-loop operations."""

    def __init__(self, logger_name: str = "reviewbot.poll"):
        self.logger = get_logger(logger_name)

    def log_poll_cycle(
        self,
        fetched: int,
        sent: int,
        skipped: int,
        watermark: Optional[datetime],
        duration_ms: float
    ):
        """Log poll cycle statistics."""
        self.logger.info(
            "Poll cycle completed",
            extra={
                "fetched": fetched,
                "sent": sent,
                "skipped": skipped,
                "watermark": watermark.isoformat() if watermark else None,
                "duration_ms": duration_ms
            }
        )

    def log_watermark_advance(self, previous: datetime, current: datetime, review_request_id: int):
        """Log a watermark move."""
        self.logger.debug(
            f"Watermark advanced to {current.isoformat()}",
            extra={
                "previous_watermark": previous.isoformat(),
                "watermark": current.isoformat(),
                "review_request_id": review_request_id
            }
        )

    def log_dispatch_decision(self, review_request_id: int, outcome: str, reason: Optional[str] = None):
        """Log the outcome of one dispatch."""
        self.logger.info(
            f"Review request {review_request_id}: {outcome}" + (f" ({reason})" if reason else ""),
            extra={
                "review_request_id": review_request_id,
                "outcome": outcome,
                "reason": reason
            }
        )


api_logger = APILogger()
poll_logger = PollLogger()


__all__ = [
    "LogLevel",
    "LogFormat",
    "RedactionLevel",
    "SensitiveDataRedactor",
    "JSONFormatter",
    "TextFormatter",
    "ContextFilter",
    "SensitiveDataFilter",
    "setup_logging",
    "get_logger",
    "APILogger",
    "PollLogger",
    "api_logger",
    "poll_logger",
]
