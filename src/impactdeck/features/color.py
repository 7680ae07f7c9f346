"""Color math and logo color clustering."""

from __future__ import annotations

import io
import math
import re
from typing import Iterable

import cv2
import numpy as np
from PIL import Image

from ..io.models import LogoColorEntry

_HEX_RE = re.compile(r"#[0-9A-Fa-f]{6}\b|#[0-9A-Fa-f]{3}\b")

MAX_DISTANCE = 999.0
CLUSTER_DISTANCE = 25.0
_MAX_SIDE = 100
_MAX_CLUSTERS = 8
_MIN_ALPHA = 200


def clean_hex(value: str | None) -> str | None:
    """Return the first ``#rgb``/``#rrggbb`` in *value* as lowercase ``#rrggbb``."""
    if not value:
        return None
    match = _HEX_RE.search(value)
    if not match:
        return None
    hex_value = match.group(0).lower()
    if len(hex_value) == 4:
        hex_value = "#" + "".join(ch * 2 for ch in hex_value[1:])
    return hex_value


def hex_to_rgb(hex_value: str) -> tuple[int, int, int]:
    cleaned = clean_hex(hex_value)
    if cleaned is None:
        raise ValueError(f"Not a hex color: {hex_value!r}")
    return int(cleaned[1:3], 16), int(cleaned[3:5], 16), int(cleaned[5:7], 16)


def rgb_to_hex(r: int, g: int, b: int) -> str:
    return "#" + "".join(f"{max(0, min(255, int(v))):02x}" for v in (r, g, b))


def color_distance(hex1: str | None, hex2: str | None) -> float:
    """Euclidean RGB distance; ``999`` when either color is missing."""
    if not hex1 or not hex2:
        return MAX_DISTANCE
    try:
        r1, g1, b1 = hex_to_rgb(hex1)
        r2, g2, b2 = hex_to_rgb(hex2)
    except ValueError:
        return MAX_DISTANCE
    return math.sqrt((r1 - r2) ** 2 + (g1 - g2) ** 2 + (b1 - b2) ** 2)


def saturation_of(r: float, g: float, b: float) -> float:
    high = max(r, g, b)
    low = min(r, g, b)
    return (high - low) / high if high else 0.0


def luminance_of(r: float, g: float, b: float) -> float:
    """Rec.601 luma in ``[0, 1]``."""
    return (0.299 * r + 0.587 * g + 0.114 * b) / 255


def saturation(hex_value: str) -> float:
    return saturation_of(*hex_to_rgb(hex_value))


def luminance(hex_value: str) -> float:
    return luminance_of(*hex_to_rgb(hex_value))


def relative_luminance(hex_value: str) -> float:
    """WCAG relative luminance."""

    def _channel(value: int) -> float:
        c = value / 255
        return c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4

    r, g, b = hex_to_rgb(hex_value)
    return 0.2126 * _channel(r) + 0.7152 * _channel(g) + 0.0722 * _channel(b)


def contrast_ratio(hex1: str, hex2: str) -> float:
    l1 = relative_luminance(hex1)
    l2 = relative_luminance(hex2)
    lighter, darker = max(l1, l2), min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)


def is_light_hex(hex_value: str | None) -> bool:
    if not hex_value:
        return True
    return luminance(hex_value) > 0.55


def is_dark_hex(hex_value: str | None) -> bool:
    if not hex_value:
        return False
    return luminance(hex_value) < 0.12


def is_usable_brand_color(hex_value: str | None) -> bool:
    """Not washed out, not near black, and not gray."""
    if not hex_value or clean_hex(hex_value) is None:
        return False
    if is_light_hex(hex_value) or is_dark_hex(hex_value):
        return False
    return saturation(hex_value) > 0.15


def is_vibrant(sat: float, lum: float) -> bool:
    return sat > 0.4 and 0.15 < lum < 0.85


def _entry(r: int, g: int, b: int, count: int, vibrant: bool | None = None) -> LogoColorEntry:
    sat = saturation_of(r, g, b)
    lum = luminance_of(r, g, b)
    return LogoColorEntry(
        hex=rgb_to_hex(r, g, b),
        count=int(count),
        saturation=sat,
        luminance=lum,
        is_vibrant=is_vibrant(sat, lum) if vibrant is None else vibrant,
    )


def _filtered_pixels(img: Image.Image) -> np.ndarray:
    """Return the ``(N, 3)`` RGB pixels that can carry brand color."""
    rgba = img.convert("RGBA")
    rgba.thumbnail((_MAX_SIDE, _MAX_SIDE))
    pixels = np.asarray(rgba, dtype=np.uint8)
    rgb = np.ascontiguousarray(pixels[:, :, :3])
    alpha = pixels[:, :, 3]

    luma = cv2.cvtColor(rgb, cv2.COLOR_RGB2GRAY).astype(np.float32)
    sat = cv2.cvtColor(rgb, cv2.COLOR_RGB2HSV)[:, :, 1].astype(np.float32) / 255.0

    keep = alpha >= _MIN_ALPHA
    keep &= (luma <= 250) & (luma >= 5)
    keep &= ~((sat < 0.05) & (luma > 50) & (luma < 200))
    return rgb[keep]


def cluster_pixels(
    pixels: np.ndarray, threshold: float = CLUSTER_DISTANCE, limit: int = _MAX_CLUSTERS
) -> list[LogoColorEntry]:
    """Greedy RGB clustering in descending count order."""
    if pixels.size == 0:
        return []
    colors, counts = np.unique(pixels.reshape(-1, 3), axis=0, return_counts=True)
    order = np.argsort(-counts, kind="stable")

    centres: list[np.ndarray] = []
    totals: list[int] = []
    for index in order:
        color = colors[index].astype(np.float32)
        merged = False
        for pos, centre in enumerate(centres):
            if float(np.linalg.norm(centre - color)) < threshold:
                totals[pos] += int(counts[index])
                merged = True
                break
        if not merged:
            centres.append(color)
            totals.append(int(counts[index]))

    ranked = sorted(zip(centres, totals), key=lambda item: item[1], reverse=True)[:limit]
    return [_entry(int(c[0]), int(c[1]), int(c[2]), total) for c, total in ranked]


def cluster_logo_colors(image_bytes: bytes) -> list[LogoColorEntry]:
    """Rank the dominant non-neutral colors of a raster logo or favicon."""
    if not image_bytes:
        return []
    with Image.open(io.BytesIO(image_bytes)) as img:
        img.load()
        pixels = _filtered_pixels(img)
    return cluster_pixels(pixels)


def mine_svg_hex_colors(markup: str) -> list[LogoColorEntry]:
    """Collect literal hex colors from vector markup, excluding white and black."""
    seen: list[str] = []
    for raw in _HEX_RE.findall(markup or ""):
        hex_value = clean_hex(raw)
        if not hex_value or hex_value in ("#ffffff", "#000000") or hex_value in seen:
            continue
        seen.append(hex_value)
    return [_entry(*hex_to_rgb(h), count=100, vibrant=True) for h in seen]


def first_vibrant(entries: Iterable[LogoColorEntry]) -> str | None:
    for entry in entries:
        if entry.is_vibrant:
            return entry.hex
    return None


def first_muted(entries: Iterable[LogoColorEntry]) -> str | None:
    for entry in entries:
        if not entry.is_vibrant:
            return entry.hex
    return None
