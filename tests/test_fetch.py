"""Tests for the HTTP fetcher and URL helpers."""

from unittest.mock import MagicMock, patch

import requests

from scrapers.utils import DEFAULT_HEADERS, RateLimiter, fetch_url, normalize_url, select_links


def _response(status: int, text: str = "") -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.text = text
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    else:
        response.raise_for_status.return_value = None
    return response


class TestFetchUrl:

    def test_returns_body_on_success(self):
        with patch("scrapers.utils.requests.get", return_value=_response(200, "<html>ok</html>")) as get:
            assert fetch_url("https://help.example.com/en") == "<html>ok</html>"

        _, kwargs = get.call_args
        assert kwargs["headers"]["User-Agent"] == DEFAULT_HEADERS["User-Agent"]
        assert kwargs["headers"]["Accept-Language"] == "en-US,en;q=0.5"
        assert kwargs["timeout"] == 30

    def test_non_success_status_is_absent(self):
        with patch("scrapers.utils.requests.get", return_value=_response(404)):
            assert fetch_url("https://help.example.com/missing") is None

    def test_network_error_is_absent(self):
        with patch("scrapers.utils.requests.get", side_effect=requests.ConnectionError("down")):
            assert fetch_url("https://help.example.com/en") is None

    def test_timeout_is_absent(self):
        with patch("scrapers.utils.requests.get", side_effect=requests.Timeout("slow")):
            assert fetch_url("https://help.example.com/en") is None

    def test_extra_headers_merged(self):
        with patch("scrapers.utils.requests.get", return_value=_response(200, "x")) as get:
            fetch_url("https://help.example.com/en", headers={"X-Trace": "1"})

        headers = get.call_args.kwargs["headers"]
        assert headers["X-Trace"] == "1"
        assert "User-Agent" in headers

    def test_uses_session_when_given(self):
        session = MagicMock()
        session.get.return_value = _response(200, "from session")
        with patch("scrapers.utils.requests.get") as get:
            assert fetch_url("https://help.example.com/en", session=session) == "from session"
        get.assert_not_called()

    def test_rate_limiter_consulted(self):
        limiter = MagicMock(spec=RateLimiter)
        with patch("scrapers.utils.requests.get", return_value=_response(200, "x")):
            fetch_url("https://help.example.com/en", rate_limiter=limiter)
        limiter.wait.assert_called_once()


class TestRateLimiter:

    def test_zero_delay_never_sleeps(self):
        with patch("scrapers.utils.time.sleep") as sleep:
            limiter = RateLimiter(min_delay=0)
            limiter.wait()
            limiter.wait()
        sleep.assert_not_called()

    def test_second_call_waits(self):
        with patch("scrapers.utils.time.sleep") as sleep:
            limiter = RateLimiter(min_delay=5)
            limiter.wait()
            limiter.wait()
        assert sleep.call_count == 1


class TestUrlHelpers:

    def test_normalize_resolves_and_drops_fragment(self):
        assert normalize_url("/en/a#x", "https://help.example.com/en") == "https://help.example.com/en/a"

    def test_normalize_keeps_query(self):
        assert normalize_url("https://h.com/a?b=1") == "https://h.com/a?b=1"

    def test_select_links_skips_anchors_and_mailto(self):
        html = '<div class="l"><a href="#top">t</a><a href="mailto:x@y">m</a><a href="/a">a</a><a>none</a></div>'
        assert select_links(html, ".l a", "https://h.com/") == ["https://h.com/a"]
