"""
Custom exception classes for the Review Board Slack bot.

Provides specific exception types for the fetch, decode, dispatch and
startup failure modes, each with an error code and a details dict.
"""

from typing import Optional, Dict, Any


class ReviewBotError(Exception):
    """
    Base exception for the Review Board Slack bot.
    
    All custom exceptions should inherit from this class.
    """
    
    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize the exception.
        
        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            details: Additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary representation."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }


class ConfigurationError(ReviewBotError):
    """
    Raised when there's a configuration error.
    
    This includes a missing webhook token, malformed URLs
    and out-of-range numeric settings.
    """
    
    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[str] = None
    ):
        """Initialize configuration error."""
        details = {}
        if config_key:
            details["config_key"] = config_key
        if config_value:
            details["config_value"] = config_value
        
        super().__init__(
            message=message,
            error_code="CONFIG_ERROR",
            details=details
        )


class HTTPFetchError(ReviewBotError):
    """
    Base class for failures while talking to a remote HTTP endpoint.
    
    Every subclass is treated as a retryable, iteration-level failure
    by the poll loop.
    """
    
    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        method: Optional[str] = None,
        error_code: str = "HTTP_FETCH_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize HTTP fetch error."""
        details = dict(details or {})
        if url:
            details["url"] = url
        if method:
            details["method"] = method
        
        super().__init__(
            message=message,
            error_code=error_code,
            details=details
        )
        self.url = url
        self.method = method


class TransportError(HTTPFetchError):
    """Raised when the connection itself fails (DNS, refused, reset, TLS)."""
    
    def __init__(self, message: str, url: Optional[str] = None, method: Optional[str] = None):
        super().__init__(message, url=url, method=method, error_code="TRANSPORT_ERROR")


class FetchTimeoutError(HTTPFetchError):
    """
    Raised when a request, including all redirect hops, runs past its deadline.
    """
    
    def __init__(
        self,
        message: str,
        timeout_seconds: Optional[float] = None,
        url: Optional[str] = None,
        method: Optional[str] = None
    ):
        """Initialize timeout error."""
        details = {}
        if timeout_seconds:
            details["timeout_seconds"] = timeout_seconds
        
        super().__init__(
            message,
            url=url,
            method=method,
            error_code="TIMEOUT_ERROR",
            details=details
        )
        self.timeout_seconds = timeout_seconds


class RedirectLoopError(HTTPFetchError):
    """Raised when a redirect arrives after the redirect budget is spent."""
    
    def __init__(
        self,
        message: str,
        max_redirects: Optional[int] = None,
        url: Optional[str] = None,
        method: Optional[str] = None
    ):
        """Initialize redirect loop error."""
        details = {}
        if max_redirects is not None:
            details["max_redirects"] = max_redirects
        
        super().__init__(
            message,
            url=url,
            method=method,
            error_code="REDIRECT_LOOP_ERROR",
            details=details
        )
        self.max_redirects = max_redirects


class HTTPStatusError(HTTPFetchError):
    """
    Raised for any response that is neither 2xx nor a followable redirect.
    
    Carries the status code and the (text) response body.
    """
    
    def __init__(
        self,
        message: str,
        status_code: int,
        response_body: Optional[str] = None,
        url: Optional[str] = None,
        method: Optional[str] = None
    ):
        """Initialize HTTP status error."""
        details: Dict[str, Any] = {"status_code": status_code}
        if response_body:
            details["response_body"] = response_body
        
        super().__init__(
            message,
            url=url,
            method=method,
            error_code="HTTP_ERROR",
            details=details
        )
        self.status_code = status_code
        self.response_body = response_body


class ReviewRequestParseError(ReviewBotError):
    """
    Raised when a review request payload cannot be decoded.
    
    The whole payload is rejected; no partial results are produced.
    """
    
    def __init__(
        self,
        message: str,
        errors: Optional[list] = None,
        payload_size: Optional[int] = None
    ):
        """Initialize parse error."""
        details: Dict[str, Any] = {}
        if errors:
            details["errors"] = errors
        if payload_size is not None:
            details["payload_size"] = payload_size
        
        super().__init__(
            message=message,
            error_code="PARSE_ERROR",
            details=details
        )


class NotificationError(ReviewBotError):
    """
    Raised when a chat message for a review request could not be delivered.
    """
    
    def __init__(
        self,
        message: str,
        review_request_id: Optional[int] = None,
        cause: Optional[Exception] = None
    ):
        """Initialize notification error."""
        details: Dict[str, Any] = {}
        if review_request_id is not None:
            details["review_request_id"] = review_request_id
        if cause is not None:
            details["cause_type"] = type(cause).__name__
            details["cause_message"] = str(cause)
        
        super().__init__(
            message=message,
            error_code="NOTIFICATION_ERROR",
            details=details
        )
        self.review_request_id = review_request_id


class StartupError(ReviewBotError):
    """
    Raised when a startup precondition fails.
    
    Examples are an empty initial review request list or an unreachable
    employee allowlist. These are fatal: the bot never starts polling.
    """
    
    def __init__(self, message: str, reason: Optional[str] = None):
        """Initialize startup error."""
        details = {}
        if reason:
            details["reason"] = reason
        
        super().__init__(
            message=message,
            error_code="STARTUP_ERROR",
            details=details
        )
