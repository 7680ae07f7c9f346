from __future__ import annotations

import pytest

from impactdeck.config import DEFAULT_MODEL, Settings
from impactdeck.io.models import CaptureContext


@pytest.mark.parametrize(
    "raw,url,domain,origin",
    [
        ("acme.org", "https://acme.org", "acme.org", "https://acme.org"),
        ("https://www.acme.org/about", "https://www.acme.org/about", "acme.org", "https://www.acme.org"),
        ("  http://acme.org/ ", "http://acme.org/", "acme.org", "http://acme.org"),
    ],
)
def test_capture_context_from_url(raw, url, domain, origin):
    ctx = CaptureContext.from_url(raw)
    assert (ctx.url, ctx.domain, ctx.origin) == (url, domain, origin)
    assert ctx.screenshot == b""


def test_settings_from_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    monkeypatch.setenv("STORAGE_MODE", "S3")
    monkeypatch.setenv("S3_BUCKET", "decks")
    monkeypatch.setenv("SITE_URL", "https://decks.example/")
    monkeypatch.delenv("ANTHROPIC_MODEL", raising=False)
    settings = Settings.from_env(tmp_path / "missing.env")
    assert settings.anthropic_api_key == "sk-test"
    assert settings.anthropic_model == DEFAULT_MODEL
    assert settings.storage_mode == "s3"
    assert settings.s3_bucket == "decks"
    assert settings.site_url == "https://decks.example"


def test_settings_reject_unknown_storage_mode(monkeypatch, tmp_path):
    monkeypatch.setenv("STORAGE_MODE", "ftp")
    with pytest.raises(ValueError):
        Settings.from_env(tmp_path / "missing.env")
