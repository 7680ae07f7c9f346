"""HTTP fetching utilities for the impactdeck pipeline."""

from __future__ import annotations

import logging
from urllib.parse import urljoin, urlparse

import requests
from tenacity import (  # type: ignore[import-untyped]
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)
_HTML_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}
_IMAGE_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "image/*,*/*;q=0.8",
}


class RetryableHTTPStatusError(Exception):
    """Raised for HTTP status codes that should trigger a retry."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Server returned status {status_code}")
        self.status_code = status_code


def _retryer() -> Retrying:
    return Retrying(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
        retry=retry_if_exception_type(
            (requests.Timeout, requests.ConnectionError, RetryableHTTPStatusError)
        ),
        before_sleep=before_sleep_log(logger, logging.DEBUG),
        reraise=True,
    )


def ensure_http_scheme(url: str) -> str:
    """Ensure *url* is qualified with an HTTP scheme, defaulting to https."""
    cleaned = url.strip()
    if not cleaned:
        return cleaned
    if cleaned.startswith(("http://", "https://")):
        return cleaned
    if cleaned.startswith("//"):
        return f"https:{cleaned}"
    parsed = urlparse(cleaned)
    if parsed.scheme:
        return cleaned
    return f"https://{cleaned}"


def _fetch_once(url: str, timeout: float) -> tuple[str, str]:
    """Issue a single HTTP GET request and return the resolved URL and HTML."""
    target_url = ensure_http_scheme(url)
    response = requests.get(
        target_url, headers=_HTML_HEADERS, timeout=timeout, allow_redirects=True
    )
    if 500 <= response.status_code < 600:
        raise RetryableHTTPStatusError(response.status_code)
    response.raise_for_status()
    if not response.encoding:
        response.encoding = response.apparent_encoding or "utf-8"
    return response.url, response.text


def fetch_html(url: str, timeout: float = DEFAULT_TIMEOUT) -> tuple[str | None, str | None]:
    """Fetch *url* via HTTP, returning the final URL and HTML content.

    Retries are attempted for transient failures such as server errors or timeouts.
    On error the function returns ``(None, None)`` and logs the failure.
    """
    try:
        return _retryer()(lambda: _fetch_once(url, timeout))
    except RetryableHTTPStatusError as exc:
        logger.debug("Server error fetching %s: %s", url, exc)
    except requests.RequestException as exc:
        logger.debug("Request error fetching %s: %s", url, exc)
    return None, None


def fetch_bytes(
    url: str, timeout: float = DEFAULT_TIMEOUT, referer: str | None = None
) -> bytes | None:
    """Download and return the raw bytes for an asset URL."""
    if not url:
        return None
    headers = dict(_IMAGE_HEADERS)
    if referer:
        headers["Referer"] = referer
    try:
        response = requests.get(url, headers=headers, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException:
        logger.debug("Failed to fetch bytes from %s", url, exc_info=True)
        return None
    return response.content


def fetch_text(url: str, timeout: float = DEFAULT_TIMEOUT) -> str | None:
    """Return the decoded body of *url* or ``None`` on failure."""
    try:
        response = requests.get(url, headers=_HTML_HEADERS, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException:
        logger.debug("Failed to fetch text from %s", url, exc_info=True)
        return None
    if not response.encoding:
        response.encoding = response.apparent_encoding or "utf-8"
    return response.text


def probe_content_length(url: str, timeout: float = DEFAULT_TIMEOUT) -> int:
    """Return the size of the asset at *url*, or ``0`` when unreachable.

    ``Content-Length`` is trusted when the server sends it; otherwise the
    body is downloaded and measured.
    """
    try:
        response = requests.get(url, headers=_IMAGE_HEADERS, timeout=timeout, stream=True)
    except requests.RequestException:
        logger.debug("Probe failed for %s", url, exc_info=True)
        return 0
    with response:
        if not response.ok:
            return 0
        header = response.headers.get("Content-Length")
        if header and header.isdigit():
            return int(header)
        try:
            return len(response.content)
        except requests.RequestException:
            return 0


def normalize_url(url: str, base: str) -> str:
    """Return an absolute URL by resolving *url* against *base*."""
    return urljoin(base, url)


def same_domain(url: str, domain: str) -> bool:
    """Return ``True`` when *url*'s host is *domain* or one of its subdomains."""
    host = (urlparse(url).hostname or "").lower()
    domain = domain.lower()
    if host.startswith("www."):
        host = host[4:]
    return host == domain or host.endswith(f".{domain}")
