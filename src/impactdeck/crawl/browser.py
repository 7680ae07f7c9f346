"""Headless browser sessions for screenshots and DOM evaluation."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from playwright.sync_api import (  # type: ignore[import-untyped]
    BrowserContext,
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
    sync_playwright,
)

from ..errors import ScreenshotError
from .fetch import USER_AGENT, ensure_http_scheme

logger = logging.getLogger(__name__)

NAVIGATION_TIMEOUT_MS = 15_000
SNAPSHOT_TIMEOUT_MS = 30_000
VIEWPORT = {"width": 1280, "height": 800}
_LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox", "--ignore-certificate-errors"]


@contextmanager
def browser_session(
    viewport: dict[str, int] | None = None,
    timeout_ms: int = NAVIGATION_TIMEOUT_MS,
) -> Iterator[BrowserContext]:
    """Yield a fresh browser context and release every resource on exit."""
    with sync_playwright() as playwright:
        browser = playwright.chromium.launch(headless=True, args=_LAUNCH_ARGS)
        try:
            context = browser.new_context(
                viewport=viewport or VIEWPORT,
                user_agent=USER_AGENT,
                ignore_https_errors=True,
            )
            context.set_default_navigation_timeout(timeout_ms)
            context.set_default_timeout(timeout_ms)
            try:
                yield context
            finally:
                try:
                    context.close()
                except PlaywrightError:  # pragma: no cover - best-effort cleanup
                    logger.debug("Failed to close browser context", exc_info=True)
        finally:
            try:
                browser.close()
            except PlaywrightError:  # pragma: no cover - best-effort cleanup
                logger.debug("Failed to close browser", exc_info=True)


def capture_screenshot(url: str) -> bytes:
    """Return a viewport PNG of *url*; raises :class:`ScreenshotError` on failure."""
    target_url = ensure_http_scheme(url)
    try:
        with browser_session() as context:
            page = context.new_page()
            page.goto(target_url, wait_until="networkidle", timeout=NAVIGATION_TIMEOUT_MS)
            return page.screenshot(type="png", full_page=False)
    except PlaywrightTimeoutError as exc:
        raise ScreenshotError(f"Timed out rendering {target_url}") from exc
    except PlaywrightError as exc:
        raise ScreenshotError(f"Could not render {target_url}: {exc}") from exc


def render_page(url: str) -> tuple[str | None, str | None]:
    """Render *url* in a headless browser and return the final URL and HTML.

    Returns ``(None, None)`` when rendering fails; errors are logged but not raised.
    """
    target_url = ensure_http_scheme(url)
    try:
        with browser_session() as context:
            page = context.new_page()
            page.goto(target_url, wait_until="networkidle", timeout=NAVIGATION_TIMEOUT_MS)
            return page.url, page.content()
    except PlaywrightTimeoutError as exc:
        logger.debug("Render timeout for %s: %s", url, exc)
    except PlaywrightError:
        logger.debug("Render failed for %s", url, exc_info=True)
    return None, None


def evaluate_page(url: str, script: str, default: Any, arg: Any = None) -> Any:
    """Load *url*, evaluate *script* with *arg* and return its value or *default*."""
    target_url = ensure_http_scheme(url)
    try:
        with browser_session() as context:
            page = context.new_page()
            page.goto(target_url, wait_until="networkidle", timeout=NAVIGATION_TIMEOUT_MS)
            return page.evaluate(script, arg)
    except PlaywrightTimeoutError as exc:
        logger.debug("Evaluation timeout for %s: %s", url, exc)
    except PlaywrightError:
        logger.debug("Evaluation failed for %s", url, exc_info=True)
    return default


def screenshot_html(html: str, width: int = 1200, height: int = 630) -> bytes:
    """Rasterize an HTML document to a PNG clipped to ``width`` x ``height``."""
    with browser_session(
        viewport={"width": width, "height": height}, timeout_ms=SNAPSHOT_TIMEOUT_MS
    ) as context:
        page = context.new_page()
        page.set_content(html, wait_until="networkidle", timeout=SNAPSHOT_TIMEOUT_MS)
        return page.screenshot(
            type="png", clip={"x": 0, "y": 0, "width": width, "height": height}
        )
