"""Locate an organization's about page and collect readable page text."""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterator

from bs4 import BeautifulSoup
from bs4.element import Tag

from .browser import render_page
from .fetch import fetch_html, normalize_url, same_domain

logger = logging.getLogger(__name__)

ABOUT_KEYWORDS = (
    "about",
    "who we are",
    "our story",
    "our mission",
    "mission",
    "what we do",
)
ABOUT_PATHS = ("/about", "/about/", "/about-us", "/about-us/", "/who-we-are", "/our-mission")

_NAV_SELECTORS = (
    "nav a",
    "header a",
    ".nav a",
    ".navigation a",
    ".menu a",
    "#menu a",
    '[role="navigation"] a',
)
_STRIP_TAGS = ("script", "style", "noscript", "template", "nav", "header", "footer")
_MIN_TEXT = 200
ABOUT_TEXT_CAP = 8000
HOME_TEXT_CAP = 6000
_WHITESPACE = re.compile(r"\s+")

PageLoader = Callable[[str], "tuple[str | None, str | None]"]


def _keyword_forms(keyword: str) -> tuple[str, str, str]:
    return keyword, keyword.replace(" ", "-"), keyword.replace(" ", "")


def _iter_nav_links(soup: BeautifulSoup) -> Iterator[Tag]:
    seen: set[int] = set()
    for selector in _NAV_SELECTORS:
        for link in soup.select(selector):
            if id(link) in seen:
                continue
            seen.add(id(link))
            yield link


def find_about_link(html: str, origin: str, domain: str) -> str | None:
    """Return the first same-domain navigation link that looks like an about page."""
    soup = BeautifulSoup(html or "", "lxml")
    for link in _iter_nav_links(soup):
        href = link.get("href")
        if not isinstance(href, str) or not href.strip():
            continue
        href = href.strip()
        if href.startswith(("#", "mailto:", "tel:", "javascript:")):
            continue
        text = link.get_text(" ", strip=True).lower()
        href_lower = href.lower()
        matched = any(
            text_form in text or href_form in href_lower or joined in href_lower
            for text_form, href_form, joined in map(_keyword_forms, ABOUT_KEYWORDS)
        )
        if not matched:
            continue
        if href.startswith("//"):
            absolute = f"https:{href}"
        else:
            absolute = normalize_url(href, origin.rstrip("/") + "/")
        if not same_domain(absolute, domain):
            continue
        return absolute
    return None


def page_text(html: str) -> str:
    """Strip scripts, styles, navigation and markup and collapse whitespace."""
    soup = BeautifulSoup(html or "", "lxml")
    for tag in soup(_STRIP_TAGS):
        tag.decompose()
    return _WHITESPACE.sub(" ", soup.get_text(" ")).strip()


def fetch_page_text(url: str) -> str | None:
    _, html = fetch_html(url)
    if not html:
        return None
    return page_text(html)


def discover_about_content(
    url: str,
    domain: str,
    origin: str,
    page_loader: PageLoader = render_page,
    text_loader: Callable[[str], "str | None"] = fetch_page_text,
) -> str:
    """Return about-page text followed by homepage text, each labelled and capped.

    The rendered homepage supplies the navigation links; when none points at
    an about page the conventional paths are probed in order.
    """
    about_content = ""

    about_url: str | None = None
    _, rendered = page_loader(url)
    if rendered:
        about_url = find_about_link(rendered, origin, domain)

    if about_url:
        text = text_loader(about_url)
        if text and len(text) > _MIN_TEXT:
            about_content = f"=== ABOUT PAGE ({about_url}) ===\n{text[:ABOUT_TEXT_CAP]}"

    if not about_content:
        for path in ABOUT_PATHS:
            candidate = f"{origin.rstrip('/')}{path}"
            text = text_loader(candidate)
            if text and len(text) > _MIN_TEXT:
                about_content = f"=== ABOUT PAGE ({candidate}) ===\n{text[:ABOUT_TEXT_CAP]}"
                break

    homepage = text_loader(url)
    if homepage and len(homepage) > _MIN_TEXT:
        if about_content:
            about_content += "\n\n=== HOMEPAGE IMPACT DATA ===\n" + homepage[:HOME_TEXT_CAP]
        else:
            about_content = "=== HOMEPAGE ===\n" + homepage[:HOME_TEXT_CAP]

    logger.debug("About content for %s: %d chars", domain, len(about_content))
    return about_content
