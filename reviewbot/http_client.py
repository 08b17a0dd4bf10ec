"""
HTTP client for the Review Board Slack bot.

Wraps a requests session with manual redirect following, a single
deadline covering every hop, and typed errors for each failure mode.
"""

import time
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import requests

from . import __version__
from .utils.exceptions import (
    FetchTimeoutError,
    HTTPStatusError,
    RedirectLoopError,
    TransportError,
)
from .utils.logger import api_logger, get_logger

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})

# Response bodies attached to HTTPStatusError are cut to this many characters
MAX_ERROR_BODY_CHARS = 2000


class HTTPFetcher:
    """
    Minimal HTTP client used for both the tracker and the chat webhook.

    Redirects are followed by hand so that the redirect budget and the
    overall deadline are enforced the same way for GET and POST.
    TLS certificates are always verified.
    """

    def __init__(
        self,
        timeout: float = 60.0,
        max_redirects: int = 10,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the fetcher.

        Args:
            timeout: Deadline in seconds for a whole exchange, redirects included
            max_redirects: Number of redirects that may be followed per exchange
            session: Optional pre-built session (used by tests)
        """
        self.logger = get_logger("reviewbot.http")
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", f"reviewbot/{__version__}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        self.session.close()

    def get(self, url: str, params: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None) -> bytes:
        """GET ``url`` with query parameters and return the response body."""
        return self.fetch(url, method="GET", params=params, timeout=timeout)

    def post_form(self, url: str, data: Dict[str, Any], timeout: Optional[float] = None) -> bytes:
        """POST ``data`` form-encoded to ``url`` and return the response body."""
        return self.fetch(url, method="POST", data=data, timeout=timeout)

    def fetch(
        self,
        url: str,
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None
    ) -> bytes:
        """
        Perform a request, following redirects.

        Args:
            url: Target URL
            method: HTTP method (GET or POST)
            params: Query parameters
            data: Form fields for the request body
            timeout: Overrides the default deadline for this exchange

        Returns:
            Raw response body of the final 2xx response

        Raises:
            RedirectLoopError: If a redirect arrives after the budget is spent
            FetchTimeoutError: If the deadline passes
            HTTPStatusError: For any other non-2xx response or an unparsable redirect target
            TransportError: If the connection fails
        """
        method = method.upper()
        timeout = self.timeout if timeout is None else timeout
        deadline = time.monotonic() + timeout
        redirects_left = self.max_redirects
        current_url = url

        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise self._timeout_error(method, current_url, timeout)

            response = self._send(method, current_url, params, data, remaining, timeout)

            # Per-socket timeouts do not bound a slowly trickled body
            if time.monotonic() > deadline:
                response.close()
                raise self._timeout_error(method, current_url, timeout)

            if response.status_code in REDIRECT_STATUSES and response.headers.get("Location"):
                if redirects_left == 0:
                    error = RedirectLoopError(
                        "HTTP redirect too deep",
                        max_redirects=self.max_redirects,
                        url=current_url,
                        method=method
                    )
                    api_logger.log_error(method, current_url, error, status_code=response.status_code)
                    raise error

                try:
                    location = urljoin(current_url, response.headers["Location"])
                except ValueError as e:
                    error = HTTPStatusError(
                        f"Invalid redirect location from {method} request: {e}",
                        status_code=response.status_code,
                        response_body=response.headers["Location"],
                        url=current_url,
                        method=method
                    )
                    api_logger.log_error(method, current_url, error, status_code=response.status_code)
                    raise error from e

                redirects_left -= 1
                api_logger.log_redirect(method, current_url, location, redirects_left)
                response.close()
                # The Location target carries its own query string
                current_url, params = location, None
                continue

            if not 200 <= response.status_code < 300:
                body = response.text[:MAX_ERROR_BODY_CHARS]
                error = HTTPStatusError(
                    f"HTTP error {response.status_code} from {method} request",
                    status_code=response.status_code,
                    response_body=body,
                    url=current_url,
                    method=method
                )
                api_logger.log_error(method, current_url, error, status_code=response.status_code)
                raise error

            return response.content

    def _timeout_error(self, method: str, url: str, timeout: float) -> FetchTimeoutError:
        error = FetchTimeoutError(
            f"Request timed out after {timeout}s",
            timeout_seconds=timeout,
            url=url,
            method=method
        )
        api_logger.log_error(method, url, error)
        return error

    def _send(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]],
        data: Optional[Dict[str, Any]],
        remaining: float,
        timeout: float
    ) -> requests.Response:
        api_logger.log_request(method, url, params=params, has_body=data is not None)
        started = time.monotonic()

        try:
            response = self.session.request(
                method,
                url,
                params=params,
                data=data,
                timeout=remaining,
                allow_redirects=False,
                verify=True
            )
        except requests.exceptions.Timeout as e:
            error = FetchTimeoutError(
                f"Request timed out after {timeout}s: {e}",
                timeout_seconds=timeout,
                url=url,
                method=method
            )
            api_logger.log_error(method, url, error)
            raise error from e
        except requests.exceptions.RequestException as e:
            error = TransportError(f"Request failed: {e}", url=url, method=method)
            api_logger.log_error(method, url, error)
            raise error from e

        api_logger.log_response(
            method,
            url,
            response.status_code,
            response_time_ms=(time.monotonic() - started) * 1000,
            content_length=len(response.content) if response.content is not None else None
        )
        return response
