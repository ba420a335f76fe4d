"""Shared utilities for the crawler: HTTP fetch, rate limiting, link handling."""

import logging
import time
from typing import Optional
from urllib.parse import urljoin, urlparse, urlunparse

import requests
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# Some knowledge-base hosts reject the default python-requests client
DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Connection": "keep-alive",
}


class RateLimiter:
    """Simple rate limiter that enforces minimum delay between requests."""

    def __init__(self, min_delay: float = 0.0):
        self.min_delay = min_delay
        self._last_request_time = 0.0

    def wait(self):
        if self.min_delay <= 0:
            return
        elapsed = time.time() - self._last_request_time
        if elapsed < self.min_delay:
            time.sleep(self.min_delay - elapsed)
        self._last_request_time = time.time()


def fetch_url(
    url: str,
    headers: Optional[dict] = None,
    timeout: int = 30,
    rate_limiter: Optional[RateLimiter] = None,
    session: Optional[requests.Session] = None,
) -> Optional[str]:
    """GET a URL and return its body text.

    Returns None on a non-2xx status or any network error. Callers treat
    None as "skip this item".
    """
    if rate_limiter:
        rate_limiter.wait()

    merged_headers = {**DEFAULT_HEADERS, **(headers or {})}
    getter = session.get if session is not None else requests.get
    try:
        response = getter(url, headers=merged_headers, timeout=timeout)
        response.raise_for_status()
    except requests.HTTPError as e:
        logger.error("HTTP error fetching %s: %s", url, e)
        return None
    except requests.RequestException as e:
        logger.error("Error fetching %s: %s", url, e)
        return None

    logger.info("Fetched %s", url)
    return response.text


def normalize_url(url: str, base_url: Optional[str] = None) -> str:
    """Normalize a URL: resolve relative, drop the fragment."""
    if base_url:
        url = urljoin(base_url, url)
    parsed = urlparse(url)
    return urlunparse(
        (parsed.scheme, parsed.netloc, parsed.path, parsed.params, parsed.query, "")
    )


def select_links(html: str, selector: str, base_url: str) -> list[str]:
    """Return the absolute hrefs of all anchors matching a CSS selector.

    Order follows the document; duplicates are dropped.
    """
    soup = BeautifulSoup(html, "lxml")
    links: list[str] = []
    seen: set[str] = set()
    for a_tag in soup.select(selector):
        href = a_tag.get("href")
        if not href or href.startswith(("#", "mailto:", "javascript:")):
            continue
        full_url = normalize_url(href.strip(), base_url)
        if full_url not in seen:
            seen.add(full_url)
            links.append(full_url)
    return links
