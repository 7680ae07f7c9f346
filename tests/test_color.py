from __future__ import annotations

from io import BytesIO

import numpy as np
import pytest
from PIL import Image

from impactdeck.features.color import (
    MAX_DISTANCE,
    clean_hex,
    cluster_logo_colors,
    cluster_pixels,
    color_distance,
    contrast_ratio,
    first_vibrant,
    is_usable_brand_color,
    mine_svg_hex_colors,
)


def _png(color: tuple[int, int, int, int], size: tuple[int, int] = (20, 20)) -> bytes:
    buffer = BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def test_clean_hex_expands_short_form_and_lowercases():
    assert clean_hex("#ABC") == "#aabbcc"
    assert clean_hex("color: #1D2350;") == "#1d2350"
    assert clean_hex("navy") is None
    assert clean_hex(None) is None


def test_color_distance_missing_color_is_maximal():
    assert color_distance("#000000", "#000000") == 0
    assert color_distance(None, "#ffffff") == MAX_DISTANCE
    assert color_distance("#000000", "nope") == MAX_DISTANCE


@pytest.mark.parametrize(
    "a, b",
    [
        ("#abc", "#AABBCC"),
        ("#1d2350", "#2a9d8f"),
        ("#000000", "#000001"),
        ("#ffffff", "#fff"),
        ("#e76f51", "#8e44ad"),
    ],
)
def test_color_distance_is_symmetric_and_zero_only_for_same_color(a, b):
    distance = color_distance(a, b)
    assert distance == color_distance(b, a)
    assert (distance == 0) == (clean_hex(a) == clean_hex(b))


def test_contrast_ratio_black_on_white():
    assert round(contrast_ratio("#000000", "#ffffff"), 1) == 21.0
    assert contrast_ratio("#777777", "#777777") == 1.0


def test_usable_brand_color_rejects_neutrals():
    assert is_usable_brand_color("#2a9d8f")
    assert not is_usable_brand_color("#808080")
    assert not is_usable_brand_color("#fafafa")
    assert not is_usable_brand_color("#050505")


def test_cluster_pixels_merges_near_colors_and_ranks_by_count():
    pixels = np.array(
        [[200, 30, 30]] * 10 + [[205, 32, 28]] * 5 + [[20, 40, 200]] * 8,
        dtype=np.uint8,
    )
    entries = cluster_pixels(pixels)
    assert [e.count for e in entries] == [15, 8]
    assert entries[0].hex == "#c81e1e"
    assert entries[0].is_vibrant


def test_cluster_logo_colors_ignores_transparent_pixels():
    image = Image.new("RGBA", (10, 10), (0, 0, 0, 0))
    for x in range(5):
        for y in range(10):
            image.putpixel((x, y), (255, 0, 0, 255))
    buffer = BytesIO()
    image.save(buffer, format="PNG")

    entries = cluster_logo_colors(buffer.getvalue())
    assert len(entries) == 1
    assert entries[0].hex == "#ff0000"
    assert entries[0].count == 50


def test_cluster_logo_colors_empty_payload():
    assert cluster_logo_colors(b"") == []


def test_cluster_logo_colors_drops_gray_pixels():
    assert cluster_logo_colors(_png((128, 128, 128, 255))) == []


def test_mine_svg_hex_colors_skips_black_white_and_duplicates():
    markup = '<svg><path fill="#FFF"/><path fill="#E76F51"/><path fill="#e76f51"/><rect fill="#000000"/></svg>'
    entries = mine_svg_hex_colors(markup)
    assert [e.hex for e in entries] == ["#e76f51"]
    assert first_vibrant(entries) == "#e76f51"
