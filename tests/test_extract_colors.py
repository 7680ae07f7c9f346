from __future__ import annotations

from io import BytesIO

from PIL import Image

from impactdeck.extract.colors import extract_logo_colors, extract_vision_colors
from impactdeck.extract.vision import is_monochromatic, parse_dominant_colors
from impactdeck.io.models import CaptureContext


def _two_color_png() -> bytes:
    image = Image.new("RGBA", (20, 20), (200, 30, 30, 255))
    for x in range(10):
        for y in range(20):
            image.putpixel((x, y), (20, 60, 200, 255))
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def _reply(*colors):
    return {
        "responses": [
            {
                "imagePropertiesAnnotation": {
                    "dominantColors": {
                        "colors": [
                            {"color": {"red": r, "green": g, "blue": b}, "pixelFraction": 0.25, "score": 0.5}
                            for r, g, b in colors
                        ]
                    }
                }
            }
        ]
    }


class FakeVision:
    def __init__(self, favicon, page) -> None:
        self.favicon = favicon
        self.page = page
        self.labels: list[str] = []

    def for_uri(self, uri, label):
        self.labels.append(label)
        return self.favicon

    def for_bytes(self, content, label):
        self.labels.append(label)
        return self.page


def test_parse_dominant_colors():
    samples = parse_dominant_colors(_reply((255, 0, 0), (250, 250, 250)), "favicon")
    assert [s.hex for s in samples] == ["#ff0000", "#fafafa"]
    assert samples[0].percent == 25.0
    assert samples[0].source == "favicon"
    assert parse_dominant_colors({"responses": [{}]}, "page") == []


def test_gray_favicon_falls_back_to_screenshot():
    gray = parse_dominant_colors(_reply((128, 128, 128)), "favicon")
    page = parse_dominant_colors(_reply((200, 30, 30)), "page")
    assert is_monochromatic(gray)
    vision = FakeVision(gray, page)
    ctx = CaptureContext.from_url("acme.org")
    ctx.screenshot = b"png"
    assert extract_vision_colors(ctx, vision) == page
    assert vision.labels == ["favicon", "page"]


def test_favicon_with_two_colors_is_enough():
    requested: list[str] = []

    def load_bytes(url):
        requested.append(url)
        return _two_color_png()

    profile = extract_logo_colors("acme.org", "https://acme.org/logo.png", load_bytes, lambda url: None)
    assert profile.source == "favicon"
    assert len(profile.dominant) == 2
    assert len(requested) == 1


def test_svg_logo_colors_are_mined_from_markup():
    profile = extract_logo_colors(
        "acme.org",
        "data:image/svg+xml,%3Csvg%20fill%3D%22%232A9D8F%22%3E%3C%2Fsvg%3E",
        lambda url: None,
        lambda url: None,
    )
    assert profile.source == "svg"
    assert profile.vibrant == "#2a9d8f"


def test_unreadable_assets_give_empty_profile():
    profile = extract_logo_colors("acme.org", "https://acme.org/logo.png", lambda url: b"not an image", lambda url: None)
    assert profile.source == "none"
    assert profile.dominant == []
