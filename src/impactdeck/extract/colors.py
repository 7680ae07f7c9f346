"""Collect color evidence from the cloud service and from logo pixels."""

from __future__ import annotations

import logging
from typing import Callable
from urllib.parse import unquote

from ..crawl.fetch import fetch_bytes, fetch_text
from ..crawl.logo_discovery import FAVICON_SERVICE_URL
from ..features.color import (
    cluster_logo_colors,
    first_muted,
    first_vibrant,
    mine_svg_hex_colors,
)
from ..io.models import (
    CaptureContext,
    ColorSignals,
    LogoColorEntry,
    LogoColorProfile,
    VisionColorSample,
)
from .vision import VisionClient, is_monochromatic

logger = logging.getLogger(__name__)

_ASSET_TIMEOUT = 8.0

BytesLoader = Callable[[str], "bytes | None"]
TextLoader = Callable[[str], "str | None"]


def _load_bytes(url: str) -> bytes | None:
    return fetch_bytes(url, timeout=_ASSET_TIMEOUT)


def _load_text(url: str) -> str | None:
    return fetch_text(url, timeout=_ASSET_TIMEOUT)


def extract_vision_colors(
    ctx: CaptureContext, vision: VisionClient
) -> list[VisionColorSample]:
    """Favicon first; the full screenshot when that result is empty or gray."""
    favicon_url = FAVICON_SERVICE_URL.format(domain=ctx.domain)
    samples = vision.for_uri(favicon_url, "favicon")
    if not samples or is_monochromatic(samples):
        if ctx.screenshot:
            samples = vision.for_bytes(ctx.screenshot, "page")
    return samples


def _profile(entries: list[LogoColorEntry], source: str) -> LogoColorProfile:
    return LogoColorProfile(
        dominant=entries,
        vibrant=first_vibrant(entries),
        muted=first_muted(entries),
        source=source,
    )


def _raster_entries(url: str, load_bytes: BytesLoader) -> list[LogoColorEntry]:
    payload = load_bytes(url)
    if not payload:
        return []
    try:
        return cluster_logo_colors(payload)
    except (OSError, ValueError):
        logger.debug("Could not decode image at %s", url[:120], exc_info=True)
        return []


def _is_svg_reference(logo_url: str) -> bool:
    lowered = logo_url.lower()
    return lowered.startswith("data:image/svg+xml") or ".svg" in lowered


def _svg_markup(logo_url: str, load_text: TextLoader) -> str | None:
    if logo_url.startswith("data:"):
        _, _, data = logo_url.partition(",")
        return unquote(data)
    return load_text(logo_url)


def extract_logo_colors(
    domain: str,
    logo_url: str | None,
    load_bytes: BytesLoader = _load_bytes,
    load_text: TextLoader = _load_text,
) -> LogoColorProfile:
    """Cluster favicon pixels, then try the logo itself when that is thin."""
    profile = LogoColorProfile()

    try:
        favicon_entries = _raster_entries(FAVICON_SERVICE_URL.format(domain=domain), load_bytes)
    except Exception:  # noqa: BLE001 - best-effort path
        logger.debug("Favicon clustering failed for %s", domain, exc_info=True)
        favicon_entries = []
    if favicon_entries:
        profile = _profile(favicon_entries, "favicon")

    if not logo_url or len(profile.dominant) >= 2:
        return profile

    if _is_svg_reference(logo_url):
        try:
            markup = _svg_markup(logo_url, load_text)
            svg_entries = mine_svg_hex_colors(markup or "")
        except Exception:  # noqa: BLE001 - best-effort path
            logger.debug("SVG color mining failed", exc_info=True)
            svg_entries = []
        if svg_entries:
            profile = LogoColorProfile(
                dominant=svg_entries,
                vibrant=svg_entries[0].hex,
                muted=None,
                source="svg",
            )
        return profile

    if not logo_url.startswith(("http://", "https://")):
        return profile
    try:
        logo_entries = _raster_entries(logo_url, load_bytes)
    except Exception:  # noqa: BLE001 - best-effort path
        logger.debug("Logo clustering failed for %s", logo_url[:120], exc_info=True)
        logo_entries = []
    if len(logo_entries) > len(profile.dominant):
        profile = _profile(logo_entries, "logo")
    return profile


def extract_colors(
    ctx: CaptureContext,
    logo_url: str | None,
    vision: VisionClient,
    load_bytes: BytesLoader = _load_bytes,
    load_text: TextLoader = _load_text,
) -> ColorSignals:
    """Gather both color paths for the brand resolver."""
    return ColorSignals(
        vision_colors=extract_vision_colors(ctx, vision),
        logo_colors=extract_logo_colors(ctx.domain, logo_url, load_bytes, load_text),
    )
