"""Logo post-processing: crop padding and republish the tighter image."""

from __future__ import annotations

import logging
from io import BytesIO
from typing import Callable

from PIL import Image, ImageChops

from ..crawl.fetch import fetch_bytes
from ..io.outputs import LOGO_CACHE_SECONDS, Publisher

logger = logging.getLogger(__name__)

MIN_AREA_REDUCTION = 0.2
_FETCH_TIMEOUT = 15.0


def trim_logo_bytes(image_bytes: bytes) -> tuple[bytes, float]:
    """Crop transparent or uniform borders.

    Returns the PNG-encoded result and the fraction of the original area
    that was removed (``0.0`` when nothing could be trimmed).
    """
    if not image_bytes:
        raise ValueError("Empty image payload cannot be trimmed")

    with Image.open(BytesIO(image_bytes)) as img:
        img.load()
        rgba = img.convert("RGBA")

    width, height = rgba.size
    if width == 0 or height == 0:
        raise ValueError("Image has no pixels")

    bbox = _alpha_bbox(rgba)
    if bbox is None or bbox == (0, 0, width, height):
        bbox = _color_bbox(rgba) or bbox
    trimmed = rgba.crop(bbox) if bbox else rgba

    trimmed_w, trimmed_h = trimmed.size
    reduction = 1 - (trimmed_w * trimmed_h) / (width * height)

    buffer = BytesIO()
    trimmed.save(buffer, format="PNG")
    return buffer.getvalue(), max(0.0, reduction)


def trim_and_publish_logo(
    logo_url: str | None,
    slug: str,
    publisher: Publisher,
    load_bytes: Callable[[str], "bytes | None"] | None = None,
) -> str | None:
    """Return a URL for a padding-free copy of the logo, or the original URL.

    Data URLs and vector logos are returned unchanged, as are logos whose
    padding is too small to be worth republishing.
    """
    if not logo_url:
        return None
    if logo_url.startswith("data:") or ".svg" in logo_url.lower():
        return logo_url

    loader = load_bytes or (lambda url: fetch_bytes(url, timeout=_FETCH_TIMEOUT))
    payload = loader(logo_url)
    if not payload:
        return logo_url

    trimmed, reduction = trim_logo_bytes(payload)
    if reduction < MIN_AREA_REDUCTION:
        return logo_url

    logger.info("Logo trimmed for %s (%d%% reduction)", slug, round(reduction * 100))
    return publisher.put(f"logos/{slug}-trimmed.png", trimmed, "image/png", LOGO_CACHE_SECONDS)


def _alpha_bbox(img: Image.Image) -> tuple[int, int, int, int] | None:
    if "A" not in img.getbands():
        return None
    alpha = img.getchannel("A")
    return alpha.getbbox()


def _color_bbox(img: Image.Image) -> tuple[int, int, int, int] | None:
    rgb = img.convert("RGB")
    try:
        bg_color = rgb.getpixel((0, 0))
    except IndexError:
        return None
    background = Image.new("RGB", rgb.size, bg_color)
    diff = ImageChops.difference(rgb, background)
    return diff.getbbox()
