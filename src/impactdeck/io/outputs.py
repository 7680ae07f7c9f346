"""Artifact publishing and run-log persistence."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

import boto3

from ..config import Settings
from .models import DeckArtifacts, PipelineRunLog

logger = logging.getLogger(__name__)

DECK_CACHE_SECONDS = 3600
OG_CACHE_SECONDS = 86400
LOGO_CACHE_SECONDS = 86400


class Publisher(Protocol):
    """Stores a blob under *key* and returns its public URL."""

    def put(self, key: str, data: bytes, content_type: str, cache_seconds: int) -> str:
        ...


class LocalPublisher:
    """Write artifacts below *root*, served from *public_base_url*."""

    def __init__(self, root: Path, public_base_url: str) -> None:
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    def put(self, key: str, data: bytes, content_type: str, cache_seconds: int) -> str:
        path = self.root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.debug("Wrote %s (%s, %d bytes)", path, content_type, len(data))
        return f"{self.public_base_url}/{key}"


class S3Publisher:
    """Upload artifacts to an S3-compatible bucket."""

    def __init__(
        self,
        bucket: str,
        public_base: str = "",
        endpoint_url: str | None = None,
        client: Any = None,
    ) -> None:
        if not bucket:
            raise ValueError("S3 publishing needs a bucket name")
        self.bucket = bucket
        self.client = client or boto3.client("s3", endpoint_url=endpoint_url)
        base = public_base or (
            f"{endpoint_url.rstrip('/')}/{bucket}" if endpoint_url else f"https://{bucket}.s3.amazonaws.com"
        )
        self.public_base = base.rstrip("/")

    def put(self, key: str, data: bytes, content_type: str, cache_seconds: int) -> str:
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
            CacheControl=f"public, max-age={cache_seconds}",
        )
        return f"{self.public_base}/{key}"


def publisher_from_settings(settings: Settings) -> Publisher:
    if settings.storage_mode == "s3":
        return S3Publisher(
            settings.s3_bucket,
            public_base=settings.s3_public_base,
            endpoint_url=settings.s3_endpoint,
        )
    return LocalPublisher(settings.storage_dir, settings.public_base_url)


def publish_deck(publisher: Publisher, slug: str, deck_html: str, og_png: bytes) -> DeckArtifacts:
    """Publish the deck document and its preview image, keyed by *slug*."""
    deck_url = publisher.put(
        f"decks/{slug}/index.html",
        deck_html.encode("utf-8"),
        "text/html; charset=utf-8",
        DECK_CACHE_SECONDS,
    )
    og_image_url = publisher.put(
        f"decks/{slug}/og-image.png", og_png, "image/png", OG_CACHE_SECONDS
    )
    return DeckArtifacts(deck_url=deck_url, og_image_url=og_image_url)


def write_run_log(path: Path, run_log: PipelineRunLog) -> Path:
    """Write a pipeline run log to *path* as JSON and return the path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(run_log.to_dict(), indent=2, default=str), encoding="utf-8")
    return path
