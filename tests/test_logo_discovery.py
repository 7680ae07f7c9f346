from __future__ import annotations

import time

from impactdeck.crawl import logo_discovery
from impactdeck.crawl.logo_discovery import (
    ImageCandidate,
    LogoHit,
    LogoQuery,
    PageFacts,
    best_srcset_source,
    discover_logo,
    first_logo_hit,
    is_stoplisted,
    page_scrape_logo,
    pick_raster_logo,
)


def _facts(**kwargs) -> PageFacts:
    return PageFacts(**kwargs)


def test_strategies_run_in_order_until_one_hits():
    calls: list[str] = []

    def miss(query):
        calls.append("miss")
        return None

    def boom(query):
        calls.append("boom")
        raise RuntimeError("network down")

    def hit(query):
        calls.append("hit")
        return LogoHit("https://example.org/logo.png", "scraper")

    def never(query):
        calls.append("never")
        return LogoHit("https://example.org/other.png", "icon-path")

    result = first_logo_hit(LogoQuery("https://example.org", "example.org"), [miss, boom, hit, never])
    assert result == LogoHit("https://example.org/logo.png", "scraper")
    assert calls == ["miss", "boom", "hit"]


def test_slow_strategy_is_skipped():
    def slow(query):
        time.sleep(1)
        return LogoHit("https://slow.example/logo.png", "lookup")

    def fast(query):
        return LogoHit("https://fast.example/logo.png", "google-favicon")

    result = first_logo_hit(LogoQuery("https://x.org", "x.org"), [slow, fast], deadline=0.05)
    assert result.source == "google-favicon"


def test_discover_logo_reports_facts_even_without_a_logo():
    facts = _facts(header_bg="#112233", heading_font="Gotham", body_font="Georgia")
    result = discover_logo(
        "https://example.org", "example.org", strategies=[], facts_loader=lambda url: facts
    )
    assert result.logo_url is None
    assert result.logo_source == "none"
    assert result.header_bg_color == "#112233"
    assert result.detected_fonts.heading == "Gotham"
    assert result.detected_fonts.body == "Georgia"


def test_discover_logo_gathers_page_facts_once():
    loads: list[str] = []

    def loader(url):
        loads.append(url)
        return _facts()

    discover_logo(
        "https://example.org",
        "example.org",
        strategies=[lambda q: None, lambda q: None],
        facts_loader=loader,
    )
    assert loads == ["https://example.org"]


def test_page_facts_from_payload_validates_fields():
    facts = PageFacts.from_payload(
        {
            "headerBg": "rgb(0,0,0)",
            "headingFont": '"Proxima Nova"',
            "bodyFont": "",
            "svgLogo": "   ",
            "images": [{"src": "/logo.png", "naturalWidth": 120}, {"alt": "no src"}],
        }
    )
    assert facts.header_bg is None
    assert facts.heading_font == "Proxima Nova"
    assert facts.body_font is None
    assert facts.svg_markup is None
    assert facts.images == (ImageCandidate(src="/logo.png", natural_width=120),)
    assert PageFacts.from_payload(None) == PageFacts()


def test_inline_svg_beats_raster_images():
    query = LogoQuery(
        "https://example.org",
        "example.org",
        _facts(svg_markup="<svg></svg>", images=(ImageCandidate(src="/logo.png"),)),
    )
    hit = page_scrape_logo(query)
    assert hit.source == "scraper"
    assert hit.url.startswith("data:image/svg+xml,")


def test_pick_raster_logo_skips_stoplisted_and_tiny_images():
    images = [
        ImageCandidate(src="/img/spacer.gif"),
        ImageCandidate(src="/img/hero-banner.jpg", alt="Logo"),
        ImageCandidate(src="/img/mark.png", natural_width=16),
        ImageCandidate(src="/img/logo.png", srcset="/img/logo-400.png 400w, /img/logo-800.png 800w"),
    ]
    assert pick_raster_logo(images, "https://example.org/") == "https://example.org/img/logo-800.png"


def test_best_srcset_source():
    assert best_srcset_source("a.png 300w, b.png 1000w, c.png 2000w") == "b.png"
    assert best_srcset_source("a.png 1x, b.png 2x") == "b.png"
    assert best_srcset_source("data:image/png;base64,xx 1x") is None
    assert best_srcset_source("") is None


def test_best_srcset_source_keeps_commas_inside_data_uris():
    srcset = "data:image/gif;base64,R0lGODlhAQABAAAAACw= 1x, /img/logo@2x.png 2x"
    assert best_srcset_source(srcset) == "/img/logo@2x.png"
    assert best_srcset_source("a.png 300w,b.png 1000w") == "b.png"


def test_pick_raster_logo_falls_back_to_src_for_placeholder_srcset():
    images = [
        ImageCandidate(
            src="/img/logo.png",
            srcset="data:image/gif;base64,R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7 1x",
        )
    ]
    assert pick_raster_logo(images, "https://acme.org/") == "https://acme.org/img/logo.png"


def test_stoplist_checks_src_and_alt():
    assert is_stoplisted("/pixel.png")
    assert is_stoplisted("/logo.png", alt="Holiday promo")
    assert not is_stoplisted("/assets/logo.svg", alt="Acme Foundation")


def test_lookup_service_rejects_placeholder_sized_replies(monkeypatch):
    monkeypatch.setattr(logo_discovery, "fetch_bytes", lambda url, timeout: b"x" * 100)
    assert logo_discovery.lookup_service_logo(LogoQuery("https://a.org", "a.org")) is None
    monkeypatch.setattr(logo_discovery, "fetch_bytes", lambda url, timeout: b"x" * 5000)
    hit = logo_discovery.lookup_service_logo(LogoQuery("https://a.org", "a.org"))
    assert hit == LogoHit("https://logos-api.apistemic.com/domain:a.org", "lookup")


def test_icon_path_probes_in_order(monkeypatch):
    probed: list[str] = []

    def probe(url, timeout):
        probed.append(url)
        return 4096 if url.endswith("android-chrome-512x512.png") else 0

    monkeypatch.setattr(logo_discovery, "probe_content_length", probe)
    hit = logo_discovery.icon_path_logo(LogoQuery("https://a.org", "a.org"))
    assert hit == LogoHit("https://a.org/android-chrome-512x512.png", "icon-path")
    assert len(probed) == 3
