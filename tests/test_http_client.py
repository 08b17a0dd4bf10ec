"""
Unit tests for the HTTP fetcher
"""
from unittest.mock import Mock, patch

import pytest
import requests

from reviewbot.http_client import HTTPFetcher
from reviewbot.utils.exceptions import (
    FetchTimeoutError,
    HTTPStatusError,
    RedirectLoopError,
    TransportError,
)

from fixtures import make_response


def redirect(location, status_code=302):
    return make_response(status_code=status_code, headers={"Location": location})


class TestHTTPFetcher:
    """Test cases for HTTPFetcher"""

    @pytest.fixture
    def session(self):
        session = Mock()
        session.headers = {}
        return session

    @pytest.fixture
    def fetcher(self, session):
        return HTTPFetcher(timeout=60, max_redirects=10, session=session)

    def test_sets_user_agent(self, session, fetcher):
        """Test that requests identify the bot"""
        assert session.headers["User-Agent"].startswith("reviewbot/")

    def test_get_success(self, session, fetcher):
        """Test a plain GET with query parameters"""
        session.request.return_value = make_response(200, b'{"review_requests": []}')

        body = fetcher.get("https://rb.example.com/api/review-requests/", params={"status": "pending"})

        assert body == b'{"review_requests": []}'
        method, url = session.request.call_args.args
        kwargs = session.request.call_args.kwargs
        assert method == "GET"
        assert url == "https://rb.example.com/api/review-requests/"
        assert kwargs["params"] == {"status": "pending"}
        assert kwargs["allow_redirects"] is False
        assert kwargs["verify"] is True
        assert 0 < kwargs["timeout"] <= 60

    def test_post_form_sends_body(self, session, fetcher):
        """Test POST with a form-encoded body"""
        session.request.return_value = make_response(200, b"ok")

        assert fetcher.post_form("https://hooks.example.com/x", {"payload": "{}"}) == b"ok"

        assert session.request.call_args.args[0] == "POST"
        assert session.request.call_args.kwargs["data"] == {"payload": "{}"}

    def test_follows_relative_redirect(self, session, fetcher):
        """Test redirect following resolves relative Location headers"""
        session.request.side_effect = [
            redirect("/api/review-requests/?page=2"),
            make_response(200, b"final"),
        ]

        body = fetcher.get("https://rb.example.com/api/review-requests/", params={"status": "pending"})

        assert body == b"final"
        second_call = session.request.call_args_list[1]
        assert second_call.args[1] == "https://rb.example.com/api/review-requests/?page=2"
        assert second_call.kwargs["params"] is None

    def test_post_redirect_reissues_post(self, session, fetcher):
        """Test that a redirected POST is re-sent with its body"""
        session.request.side_effect = [
            redirect("https://hooks2.example.com/x", status_code=307),
            make_response(200, b"ok"),
        ]

        fetcher.post_form("https://hooks.example.com/x", {"payload": "{}"})

        second_call = session.request.call_args_list[1]
        assert second_call.args == ("POST", "https://hooks2.example.com/x")
        assert second_call.kwargs["data"] == {"payload": "{}"}

    def test_ten_redirects_are_followed(self, session, fetcher):
        """Test that exactly the redirect budget may be spent"""
        session.request.side_effect = (
            [redirect(f"https://rb.example.com/hop{i}") for i in range(10)]
            + [make_response(200, b"made it")]
        )

        assert fetcher.get("https://rb.example.com/start") == b"made it"
        assert session.request.call_count == 11

    def test_eleven_redirects_fail(self, session, fetcher):
        """Test that a redirect after 10 follows raises a redirect loop error"""
        session.request.side_effect = [redirect(f"https://rb.example.com/hop{i}") for i in range(11)]

        with pytest.raises(RedirectLoopError) as exc_info:
            fetcher.get("https://rb.example.com/start")

        assert "redirect too deep" in str(exc_info.value)
        assert exc_info.value.details["max_redirects"] == 10
        assert session.request.call_count == 11

    def test_redirect_without_location_is_an_error(self, session, fetcher):
        """Test that a 3xx without Location is treated as a status error"""
        session.request.return_value = make_response(302, b"moved")

        with pytest.raises(HTTPStatusError) as exc_info:
            fetcher.get("https://rb.example.com/start")

        assert exc_info.value.status_code == 302

    @pytest.mark.parametrize("status_code", [304, 400, 404, 500, 503])
    def test_non_success_raises_http_error(self, session, fetcher, status_code):
        """Test non-2xx, non-redirect responses"""
        session.request.return_value = make_response(status_code, b"No such token")

        with pytest.raises(HTTPStatusError) as exc_info:
            fetcher.post_form("https://hooks.example.com/x", {"payload": "{}"})

        assert exc_info.value.status_code == status_code
        assert exc_info.value.response_body == "No such token"
        assert exc_info.value.error_code == "HTTP_ERROR"

    def test_requests_timeout_becomes_fetch_timeout(self, session, fetcher):
        """Test that a requests timeout is surfaced as FetchTimeoutError"""
        session.request.side_effect = requests.exceptions.ReadTimeout("read timed out")

        with pytest.raises(FetchTimeoutError) as exc_info:
            fetcher.get("https://rb.example.com/start")

        assert exc_info.value.timeout_seconds == 60

    @pytest.fixture
    def clock(self):
        """Fake monotonic clock advanced by the mocked session"""
        clock = Mock(now=0.0)
        with patch("reviewbot.http_client.time.monotonic", side_effect=lambda: clock.now):
            yield clock

    def slow_responses(self, clock, seconds, *responses):
        """Session side effect that spends ``seconds`` on every hop"""
        pending = list(responses)

        def respond(*args, **kwargs):
            clock.now += seconds
            return pending.pop(0)

        return respond

    def test_next_hop_after_deadline_is_not_sent(self, session, fetcher, clock):
        """Test that the deadline applies to the whole chain, not each hop"""
        session.request.side_effect = self.slow_responses(
            clock, 60, redirect("https://rb.example.com/next"), make_response(200, b"late")
        )

        with pytest.raises(FetchTimeoutError):
            fetcher.get("https://rb.example.com/start")

        assert session.request.call_count == 1

    def test_final_hop_overrunning_deadline_times_out(self, session, fetcher, clock):
        """Test that a hop finishing past the deadline is not returned as a success"""
        session.request.side_effect = self.slow_responses(
            clock, 40, redirect("https://rb.example.com/next"), make_response(200, b"late")
        )

        with pytest.raises(FetchTimeoutError) as exc_info:
            fetcher.get("https://rb.example.com/start")

        assert session.request.call_count == 2
        assert exc_info.value.details["url"] == "https://rb.example.com/next"

    def test_single_slow_hop_times_out(self, session, fetcher, clock):
        """Test that a trickled 2xx response past the deadline is a timeout"""
        session.request.side_effect = self.slow_responses(clock, 120, make_response(200, b"late"))

        with pytest.raises(FetchTimeoutError) as exc_info:
            fetcher.get("https://rb.example.com/start")

        assert exc_info.value.timeout_seconds == 60

    def test_hop_finishing_on_time_succeeds(self, session, fetcher, clock):
        """Test that a response arriving before the deadline is returned"""
        session.request.side_effect = self.slow_responses(clock, 59, make_response(200, b"on time"))

        assert fetcher.get("https://rb.example.com/start") == b"on time"

    @pytest.mark.parametrize("location", ["http://[::1", "https://[rb.example.com/next"])
    def test_malformed_redirect_location_is_an_http_error(self, session, fetcher, location):
        """Test that an unparsable Location header is a fetch error"""
        session.request.return_value = redirect(location)

        with pytest.raises(HTTPStatusError) as exc_info:
            fetcher.get("https://rb.example.com/start")

        assert exc_info.value.status_code == 302
        assert exc_info.value.details["url"] == "https://rb.example.com/start"
        assert exc_info.value.details["method"] == "GET"
        assert session.request.call_count == 1

    def test_connection_error_becomes_transport_error(self, session, fetcher):
        """Test that connection failures are surfaced as TransportError"""
        session.request.side_effect = requests.exceptions.ConnectionError("connection refused")

        with pytest.raises(TransportError) as exc_info:
            fetcher.get("https://rb.example.com/start")

        assert exc_info.value.details["url"] == "https://rb.example.com/start"
        assert exc_info.value.details["method"] == "GET"

    def test_context_manager_closes_session(self, session):
        """Test that leaving the context closes the session"""
        with HTTPFetcher(session=session):
            pass

        session.close.assert_called_once()
