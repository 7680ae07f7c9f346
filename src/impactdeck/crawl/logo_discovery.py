"""Discover an organization's logo through an ordered chain of strategies."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Sequence
from urllib.parse import quote

from ..io.models import DetectedFonts, LogoResult
from .browser import evaluate_page
from .deadline import with_deadline
from .fetch import fetch_bytes, normalize_url, probe_content_length

logger = logging.getLogger(__name__)

LOOKUP_SERVICE_URL = "https://logos-api.apistemic.com/domain:{domain}"
FAVICON_SERVICE_URL = "https://www.google.com/s2/favicons?domain={domain}&sz=128"

_LOOKUP_MIN_BYTES = 2000
_ICON_MIN_BYTES = 1000
_FAVICON_MIN_BYTES = 500
_MIN_NATURAL_WIDTH = 30
_MAX_SRCSET_WIDTH = 1200

_TIER_DEADLINE = 30.0
_FACTS_DEADLINE = 30.0
_NETWORK_TIMEOUT = 5.0
_DOM_EVAL_TIMEOUT_MS = 5000

_ICON_PATHS = (
    "/apple-touch-icon.png",
    "/apple-touch-icon-precomposed.png",
    "/android-chrome-512x512.png",
    "/android-chrome-192x192.png",
    "/favicon-192x192.png",
)

_SKIP_TOKENS = ("data:image/gif", "1x1", "pixel", "spacer", "blank", "tracking", "spinner")
_BANNER_TOKENS = ("banner", "alert", "promo", "hero", "slide", "carousel", "background")
_HEX_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")

# Evaluated in the page. Races the DOM inspection against a timer so a hung
# page resolves to an empty fact set instead of blocking the browser session.
PAGE_FACTS_SCRIPT = r"""
async ({ timeoutMs }) => {
  const empty = { headerBg: null, headingFont: null, bodyFont: null, svgLogo: null, images: [] };
  const collect = () => {
    const toHex = (r, g, b) => '#' + [r, g, b].map(x => x.toString(16).padStart(2, '0')).join('');
    const parseRgb = (bg) => {
      const m = (bg || '').match(/rgba?\((\d+),\s*(\d+),\s*(\d+)(?:,\s*([\d.]+))?\)/);
      if (!m) return null;
      return { r: +m[1], g: +m[2], b: +m[3], a: m[4] !== undefined ? +m[4] : 1 };
    };
    const isTransparent = (bg) => {
      const p = parseRgb(bg);
      if (!p) return true;
      return p.a === 0 || (p.r === 0 && p.g === 0 && p.b === 0 && bg.includes('rgba'));
    };
    const solidBg = (el) => {
      if (!el) return null;
      const bg = getComputedStyle(el).backgroundColor;
      if (isTransparent(bg)) return null;
      const p = parseRgb(bg);
      return p ? toHex(p.r, p.g, p.b) : null;
    };

    let headerBg = null;
    for (const sel of ['header', '.header', 'nav', '.navbar', '[role="banner"]']) {
      headerBg = solidBg(document.querySelector(sel));
      if (headerBg) break;
    }
    if (!headerBg) {
      for (const el of document.querySelectorAll('header > div, .header > div, nav > div, [role="banner"] > div')) {
        const hex = solidBg(el);
        if (hex && hex !== '#000000') { headerBg = hex; break; }
      }
    }
    if (!headerBg) {
      const heroSelectors = ['.hero', '.banner', '[class*="hero"]', '[class*="banner"]',
        'main > section:first-child', 'main > div:first-child', '#hero', '.site-hero'];
      for (const sel of heroSelectors) {
        const el = document.querySelector(sel);
        if (!el) continue;
        const hex = solidBg(el);
        if (hex) { headerBg = hex; break; }
        const image = getComputedStyle(el).backgroundImage;
        if (image && image !== 'none') { headerBg = '#333333'; break; }
      }
    }
    if (!headerBg) headerBg = solidBg(document.body);

    const generic = ['serif', 'sans-serif', 'monospace', 'cursive', 'fantasy', 'system-ui',
      '-apple-system', 'blinkmacsystemfont', 'inherit', 'initial'];
    const fontOf = (el) => {
      if (!el) return null;
      const first = (getComputedStyle(el).fontFamily || '').split(',')[0].trim().replace(/["']/g, '');
      if (!first || generic.includes(first.toLowerCase())) return null;
      return first;
    };
    const firstFont = (selectors) => {
      for (const sel of selectors) {
        const font = fontOf(document.querySelector(sel));
        if (font) return font;
      }
      return null;
    };
    const headingFont = firstFont(['h1', 'h2', '.hero h1', 'header h1', '[class*="heading"]', '[class*="title"]']);
    const bodyFont = firstFont(['p', 'main p', 'article p', '.content p', 'body']);

    let svgLogo = null;
    const svgSelectors = ['a[href="/"] svg, a[href*="home"] svg',
      '[class*="logo"] svg, #logo svg, .site-logo svg',
      'header svg:first-of-type, nav svg:first-of-type'];
    outer: for (const sel of svgSelectors) {
      for (const svg of document.querySelectorAll(sel)) {
        const rect = svg.getBoundingClientRect();
        if (rect.width >= 40 && rect.height >= 20 && rect.width <= 400) {
          svgLogo = new XMLSerializer().serializeToString(svg);
          break outer;
        }
      }
    }

    const images = [];
    const seen = new Set();
    const imgSelectors = ['img[src*="logo" i]', 'img[alt*="logo" i]',
      'a[href="/"] img, a[href*="home"] img', 'header a img, .header a img',
      '[class*="logo" i] img, #logo img, .site-logo img',
      'header img, nav img, .header img, .navbar img'];
    for (const sel of imgSelectors) {
      for (const img of document.querySelectorAll(sel)) {
        const src = img.getAttribute('src') || img.dataset.src || img.getAttribute('data-lazy-src') || '';
        if (!src || seen.has(src)) continue;
        seen.add(src);
        images.push({
          src,
          srcset: img.getAttribute('srcset') || img.getAttribute('data-srcset') || '',
          alt: img.getAttribute('alt') || '',
          naturalWidth: img.naturalWidth || 0,
        });
      }
    }
    return { headerBg, headingFont, bodyFont, svgLogo, images };
  };
  const timer = new Promise(resolve => setTimeout(() => resolve(empty), timeoutMs));
  const work = new Promise(resolve => {
    try { resolve(collect()); } catch (e) { resolve(empty); }
  });
  return Promise.race([work, timer]);
}
"""


@dataclass(frozen=True, slots=True)
class ImageCandidate:
    src: str
    srcset: str = ""
    alt: str = ""
    natural_width: int = 0


@dataclass(frozen=True, slots=True)
class PageFacts:
    """What a single DOM evaluation of the target page observed."""

    header_bg: str | None = None
    heading_font: str | None = None
    body_font: str | None = None
    svg_markup: str | None = None
    images: tuple[ImageCandidate, ...] = ()

    @classmethod
    def from_payload(cls, payload: Any) -> "PageFacts":
        if not isinstance(payload, Mapping):
            return cls()
        images: list[ImageCandidate] = []
        for item in payload.get("images") or []:
            if not isinstance(item, Mapping) or not isinstance(item.get("src"), str):
                continue
            width = item.get("naturalWidth")
            images.append(
                ImageCandidate(
                    src=item["src"],
                    srcset=str(item.get("srcset") or ""),
                    alt=str(item.get("alt") or ""),
                    natural_width=int(width) if isinstance(width, (int, float)) else 0,
                )
            )
        header_bg = payload.get("headerBg")
        svg = payload.get("svgLogo")
        return cls(
            header_bg=header_bg if isinstance(header_bg, str) and _HEX_PATTERN.match(header_bg) else None,
            heading_font=_clean_font(payload.get("headingFont")),
            body_font=_clean_font(payload.get("bodyFont")),
            svg_markup=svg if isinstance(svg, str) and svg.strip() else None,
            images=tuple(images),
        )


@dataclass(frozen=True, slots=True)
class LogoQuery:
    url: str
    domain: str
    facts: PageFacts = field(default_factory=PageFacts)


@dataclass(frozen=True, slots=True)
class LogoHit:
    url: str
    source: str


LogoStrategy = Callable[[LogoQuery], "LogoHit | None"]


def collect_page_facts(url: str) -> PageFacts:
    """Render *url* once and return the observed facts, or empty facts."""
    payload = with_deadline(
        lambda: evaluate_page(
            url, PAGE_FACTS_SCRIPT, None, {"timeoutMs": _DOM_EVAL_TIMEOUT_MS}
        ),
        _FACTS_DEADLINE,
        None,
        swallow=True,
        label="page_facts",
    )
    return PageFacts.from_payload(payload)


def lookup_service_logo(query: LogoQuery) -> LogoHit | None:
    """Ask the remote domain-to-logo service; reject placeholder-sized replies."""
    url = LOOKUP_SERVICE_URL.format(domain=query.domain)
    payload = fetch_bytes(url, timeout=_NETWORK_TIMEOUT)
    if payload and len(payload) > _LOOKUP_MIN_BYTES:
        return LogoHit(url, "lookup")
    return None


def page_scrape_logo(query: LogoQuery) -> LogoHit | None:
    """Use an inline SVG logo, else the best raster logo seen on the page."""
    facts = query.facts
    if facts.svg_markup:
        return LogoHit(f"data:image/svg+xml,{quote(facts.svg_markup)}", "scraper")
    src = pick_raster_logo(facts.images, query.url)
    if src:
        return LogoHit(src, "scraper")
    return None


def icon_path_logo(query: LogoQuery) -> LogoHit | None:
    """Probe conventional high-resolution icon locations on the site."""
    base = f"https://{query.domain}"
    for path in _ICON_PATHS:
        candidate = normalize_url(path, base)
        if probe_content_length(candidate, timeout=_NETWORK_TIMEOUT) > _ICON_MIN_BYTES:
            return LogoHit(candidate, "icon-path")
    return None


def favicon_service_logo(query: LogoQuery) -> LogoHit | None:
    """Last resort: a generic favicon-by-domain service."""
    url = FAVICON_SERVICE_URL.format(domain=query.domain)
    payload = fetch_bytes(url, timeout=_NETWORK_TIMEOUT)
    if payload and len(payload) > _FAVICON_MIN_BYTES:
        return LogoHit(url, "google-favicon")
    return None


DEFAULT_STRATEGIES: tuple[LogoStrategy, ...] = (
    lookup_service_logo,
    page_scrape_logo,
    icon_path_logo,
    favicon_service_logo,
)


def first_logo_hit(
    query: LogoQuery,
    strategies: Iterable[LogoStrategy] = DEFAULT_STRATEGIES,
    deadline: float = _TIER_DEADLINE,
) -> LogoHit | None:
    """Run *strategies* in order and return the first non-empty hit.

    A strategy that raises or overruns *deadline* is skipped silently.
    """
    for strategy in strategies:
        name = getattr(strategy, "__name__", "strategy")
        hit = with_deadline(
            lambda s=strategy: s(query), deadline, None, swallow=True, label=name
        )
        if hit is not None:
            logger.debug("Logo found by %s: %s", name, hit.url[:120])
            return hit
    return None


def discover_logo(
    url: str,
    domain: str,
    strategies: Sequence[LogoStrategy] = DEFAULT_STRATEGIES,
    facts_loader: Callable[[str], PageFacts] = collect_page_facts,
) -> LogoResult:
    """Return the discovered logo plus header background and fonts seen on *url*."""
    facts = facts_loader(url)
    hit = first_logo_hit(LogoQuery(url=url, domain=domain, facts=facts), strategies)
    return LogoResult(
        logo_url=hit.url if hit else None,
        logo_source=hit.source if hit else "none",
        header_bg_color=facts.header_bg,
        detected_fonts=DetectedFonts(heading=facts.heading_font, body=facts.body_font),
    )


def pick_raster_logo(images: Iterable[ImageCandidate], base_url: str) -> str | None:
    """Return the absolute URL of the first acceptable raster logo candidate."""
    for image in images:
        src = best_srcset_source(image.srcset) or image.src
        if not src or is_stoplisted(src, image.alt):
            continue
        if 0 < image.natural_width < _MIN_NATURAL_WIDTH:
            continue
        if src.startswith("data:"):
            continue
        return normalize_url(src, base_url)
    return None


def best_srcset_source(srcset: str) -> str | None:
    """Pick the widest ``srcset`` entry that does not exceed 1200w.

    Density descriptors (``2x``) are ranked by density when no width
    descriptors are present.
    """
    if not srcset:
        return None
    by_width: list[tuple[float, str]] = []
    by_density: list[tuple[float, str]] = []
    for url, descriptor in _srcset_entries(srcset):
        if url.startswith("data:"):
            continue
        descriptor = (descriptor.split() or ["1x"])[0].lower()
        try:
            if descriptor.endswith("w"):
                width = float(descriptor[:-1])
                if 0 < width <= _MAX_SRCSET_WIDTH:
                    by_width.append((width, url))
            elif descriptor.endswith("x"):
                by_density.append((float(descriptor[:-1]), url))
        except ValueError:
            continue
    if by_width:
        return max(by_width, key=lambda item: item[0])[1]
    if by_density:
        return max(by_density, key=lambda item: item[0])[1]
    return None


def _srcset_entries(srcset: str) -> list[tuple[str, str]]:
    """Split *srcset* into ``(url, descriptor)`` pairs.

    URLs run to the next whitespace, so commas inside data URIs stay part
    of the URL; descriptors run to the next comma.
    """
    entries: list[tuple[str, str]] = []
    pos, end = 0, len(srcset)
    while pos < end:
        while pos < end and (srcset[pos].isspace() or srcset[pos] == ","):
            pos += 1
        start = pos
        while pos < end and not srcset[pos].isspace():
            pos += 1
        url = srcset[start:pos]
        if not url:
            break
        if url.endswith(","):
            entries.append((url.rstrip(","), ""))
            continue
        start = pos
        while pos < end and srcset[pos] != ",":
            pos += 1
        entries.append((url, srcset[start:pos].strip()))
        pos += 1
    return entries


def is_stoplisted(src: str, alt: str = "") -> bool:
    """Return ``True`` for trackers, spacers and banner-like imagery."""
    haystacks = (src.lower(), alt.lower())
    for haystack in haystacks:
        if any(token in haystack for token in _SKIP_TOKENS):
            return True
        if any(token in haystack for token in _BANNER_TOKENS):
            return True
    return False


def _clean_font(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip().strip("\"'")
    return cleaned or None
