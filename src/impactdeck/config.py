"""Runtime settings for the impactdeck pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_IMAGE_BASE_URL = "https://oklahomaisok.github.io/nonprofit-decks/images"
DEFAULT_SITE_URL = "https://www.donorspark.app"


def _env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


@dataclass(frozen=True, slots=True)
class Settings:
    """Configuration values read once per process from the environment."""

    anthropic_api_key: str = ""
    anthropic_model: str = DEFAULT_MODEL
    google_vision_api_key: str = ""
    storage_mode: str = "local"
    storage_dir: Path = Path("out") / "storage"
    public_base_url: str = "http://localhost:8010/static"
    s3_bucket: str = ""
    s3_endpoint: str | None = None
    s3_public_base: str = ""
    image_base_url: str = DEFAULT_IMAGE_BASE_URL
    site_url: str = DEFAULT_SITE_URL

    @classmethod
    def from_env(cls, dotenv_path: str | Path | None = None) -> "Settings":
        """Load ``.env`` (when present) and build settings from the environment."""
        load_dotenv(dotenv_path)
        storage_mode = _env("STORAGE_MODE", "local").lower()
        if storage_mode not in {"local", "s3"}:
            raise ValueError(f"Unsupported STORAGE_MODE: {storage_mode}")
        return cls(
            anthropic_api_key=_env("ANTHROPIC_API_KEY"),
            anthropic_model=_env("ANTHROPIC_MODEL", DEFAULT_MODEL),
            google_vision_api_key=_env("GOOGLE_VISION_API_KEY"),
            storage_mode=storage_mode,
            storage_dir=Path(_env("STORAGE_DIR", str(Path("out") / "storage"))),
            public_base_url=_env(
                "PUBLIC_BASE_URL", "http://localhost:8010/static"
            ).rstrip("/"),
            s3_bucket=_env("S3_BUCKET"),
            s3_endpoint=_env("S3_ENDPOINT") or None,
            s3_public_base=_env("S3_PUBLIC_BASE").rstrip("/"),
            image_base_url=_env("IMAGE_BASE_URL", DEFAULT_IMAGE_BASE_URL).rstrip("/"),
            site_url=_env("SITE_URL", DEFAULT_SITE_URL).rstrip("/"),
        )
