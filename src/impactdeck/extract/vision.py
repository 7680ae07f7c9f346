"""Client for the cloud image-properties (dominant colors) service."""

from __future__ import annotations

import base64
import logging
from typing import Any, Iterable, Mapping

import requests

from ..features.color import luminance_of, rgb_to_hex, saturation_of
from ..io.models import VisionColorSample

logger = logging.getLogger(__name__)

VISION_ENDPOINT = "https://vision.googleapis.com/v1/images:annotate"
_TIMEOUT = 15.0
_MAX_RESULTS = 10


class VisionClient:
    """Thin wrapper over the ``IMAGE_PROPERTIES`` annotation endpoint."""

    def __init__(self, api_key: str, timeout: float = _TIMEOUT) -> None:
        self.api_key = api_key
        self.timeout = timeout

    def image_properties(self, image: Mapping[str, Any], label: str) -> list[VisionColorSample]:
        """Return the dominant colors for *image*, or ``[]`` on any failure.

        *image* is either ``{"source": {"imageUri": ...}}`` or
        ``{"content": <base64>}``.
        """
        if not self.api_key:
            logger.debug("No vision API key configured; skipping %s", label)
            return []
        body = {
            "requests": [
                {
                    "image": dict(image),
                    "features": [{"type": "IMAGE_PROPERTIES", "maxResults": _MAX_RESULTS}],
                }
            ]
        }
        try:
            response = requests.post(
                VISION_ENDPOINT,
                params={"key": self.api_key},
                json=body,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Vision API error (%s): %s", label, exc)
            return []
        return parse_dominant_colors(data, label)

    def for_uri(self, uri: str, label: str) -> list[VisionColorSample]:
        return self.image_properties({"source": {"imageUri": uri}}, label)

    def for_bytes(self, content: bytes, label: str) -> list[VisionColorSample]:
        encoded = base64.b64encode(content).decode("ascii")
        return self.image_properties({"content": encoded}, label)


def parse_dominant_colors(data: Any, label: str) -> list[VisionColorSample]:
    """Convert an ``images:annotate`` reply into color samples."""
    try:
        colors = data["responses"][0]["imagePropertiesAnnotation"]["dominantColors"]["colors"]
    except (KeyError, IndexError, TypeError):
        return []
    samples: list[VisionColorSample] = []
    for item in colors or []:
        color = item.get("color") or {}
        r = round(color.get("red") or 0)
        g = round(color.get("green") or 0)
        b = round(color.get("blue") or 0)
        samples.append(
            VisionColorSample(
                source=label,
                hex=rgb_to_hex(r, g, b),
                percent=round(float(item.get("pixelFraction") or 0) * 100, 1),
                score=round(float(item.get("score") or 0) * 100, 1),
                rgb=(r, g, b),
                saturation=saturation_of(r, g, b),
                luminance=luminance_of(r, g, b),
            )
        )
    return samples


def is_monochromatic(samples: Iterable[VisionColorSample]) -> bool:
    """True when no sample has mid-range saturation and luminance."""
    return not any(
        s.saturation > 0.15 and 0.05 < s.luminance < 0.95 for s in samples
    )
