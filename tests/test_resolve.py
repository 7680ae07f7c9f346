from __future__ import annotations

import itertools

import pytest

from impactdeck.brand import resolve
from impactdeck.brand.resolve import (
    DEFAULT_PRIMARY,
    GENERIC_METRIC,
    MIN_SLOT_DISTANCE,
    ColorTriple,
    apply_color_overrides,
    cta_text_color,
    ensure_accent_contrast,
    normalize_donate_url,
    process_metrics,
    repair_distinctness,
    resolve_brand,
    resolve_colors,
    resolve_fonts,
    resolve_header_bg,
)
from impactdeck.features.color import color_distance, contrast_ratio, hex_to_rgb, luminance, saturation
from impactdeck.io.models import (
    DetectedFonts,
    ExtractedMetric,
    LogoColorEntry,
    LogoColorProfile,
    SemanticAnalysis,
    VisionColorSample,
)


def _sample(hex_value: str, source: str = "page") -> VisionColorSample:
    return VisionColorSample(
        source=source,
        hex=hex_value,
        percent=10.0,
        score=50.0,
        rgb=hex_to_rgb(hex_value),
        saturation=saturation(hex_value),
        luminance=luminance(hex_value),
    )


def _logo(*hexes: str) -> LogoColorProfile:
    entries = [LogoColorEntry(h, 100 - i, 0.8, 0.4, True) for i, h in enumerate(hexes)]
    return LogoColorProfile(dominant=entries, vibrant=hexes[0] if hexes else None, source="favicon")


def _assert_distinct(triple: ColorTriple) -> None:
    for a, b in itertools.combinations([triple.primary, triple.secondary, triple.accent], 2):
        assert color_distance(a, b) >= MIN_SLOT_DISTANCE


def test_no_signals_fall_back_to_defaults():
    triple = resolve_colors(SemanticAnalysis(), [], LogoColorProfile())
    assert triple.primary == DEFAULT_PRIMARY
    _assert_distinct(triple)


def test_logo_color_wins_primary():
    analysis = SemanticAnalysis(colors={"primary": "#123456"})
    triple = resolve_colors(analysis, [], _logo("#c0392b", "#2980b9"))
    assert triple.primary == "#c0392b"
    assert triple.secondary == "#2980b9"
    _assert_distinct(triple)


def test_model_primary_kept_when_confirmed_by_a_sample():
    analysis = SemanticAnalysis(colors={"primary": "#1e3a8a"})
    triple = resolve_colors(analysis, [_sample("#1f3b8c")], LogoColorProfile())
    assert triple.primary == "#1e3a8a"


def test_button_color_wins_accent():
    analysis = SemanticAnalysis(colors={"primary": "#1e3a8a", "accent": "#00ff00"})
    samples = [_sample("#1e3a8a", "footer"), _sample("#d35400", "button")]
    triple = resolve_colors(analysis, samples, LogoColorProfile())
    assert triple.accent == "#d35400"


def test_near_identical_signals_are_repaired_apart():
    analysis = SemanticAnalysis(
        colors={"primary": "#2a9d8f", "secondary": "#2b9e90", "accent": "#2a9c8e"}
    )
    triple = resolve_colors(analysis, [_sample("#2a9d8f")], LogoColorProfile())
    _assert_distinct(triple)


@pytest.mark.parametrize(
    "primary,secondary,accent",
    [
        ("#ffd700", "#ffd700", "#ffd700"),
        ("#2a9d8f", "#e76f51", "#2a9d8f"),
        ("#1d2350", "#1d2350", "#ffffff"),
        ("#e76f51", "#e76f52", "#e76f50"),
    ],
)
def test_repair_distinctness_always_separates_slots(primary, secondary, accent):
    _assert_distinct(repair_distinctness(ColorTriple(primary, secondary, accent)))


def test_replacement_accent_stays_readable(monkeypatch):
    monkeypatch.setattr(resolve, "_ACCENT_PALETTE", ("#202020", "#FFD700"))
    triple = repair_distinctness(ColorTriple("#5a5a5a", "#2a9d8f", "#5a5a5b"))
    assert triple.accent == "#FFD700"
    assert contrast_ratio(triple.accent, "#1a1a1a") >= 3
    _assert_distinct(triple)


def test_accent_lightened_until_readable():
    adjusted = ensure_accent_contrast("#202020", "#202020")
    assert contrast_ratio(adjusted, "#1a1a1a") >= 3


def test_cta_text_color_prefers_accent_then_black_or_white():
    assert cta_text_color("#1d2350", "#ffd700") == "#ffd700"
    assert cta_text_color("#ffffff", "#fefefe") == "#1a1a1a"
    assert cta_text_color("#111111", "#121212") == "#ffffff"


def test_header_background_precedence():
    model = SemanticAnalysis(colors={"headerBackground": "white"})
    assert resolve_header_bg(model, "#336699", "#1d2350") == "#ffffff"
    model = SemanticAnalysis(colors={"headerBackground": "#ABCDEF"})
    assert resolve_header_bg(model, "#336699", "#1d2350") == "#abcdef"
    assert resolve_header_bg(SemanticAnalysis(), "#336699", "#1d2350") == "#336699"
    assert resolve_header_bg(SemanticAnalysis(), None, "#1d2350") == "#1d2350"


def test_fonts_map_to_hosted_families():
    fonts = resolve_fonts(DetectedFonts(heading="Proxima Nova", body=None), SemanticAnalysis())
    assert fonts == {"heading": "Montserrat", "body": "Inter"}
    serif = resolve_fonts(DetectedFonts(), SemanticAnalysis(fonts={"headingStyle": "serif"}))
    assert serif == {"heading": "Lora", "body": "Source Serif 4"}


def test_founded_year_becomes_years_of_impact():
    metrics, numbers = process_metrics(
        [ExtractedMetric("1998", "Founded")], SemanticAnalysis(), current_year=2025
    )
    assert metrics[0] == {"value": "27", "label": "Years of Impact"}
    assert numbers[0] == 27


def test_model_metrics_fill_in_without_duplicating():
    analysis = SemanticAnalysis(
        metrics=[
            {"value": "500", "label": "Volunteers Engaged"},
            {"value": "95%", "label": "Success Rate"},
            {"value": "many", "label": "Friends"},
            {"value": "40", "label": "Partner Schools"},
        ]
    )
    metrics, _ = process_metrics([ExtractedMetric("120", "Volunteers")], analysis, 2025)
    assert metrics == [
        {"value": "120", "label": "Volunteers"},
        {"value": "40", "label": "Partner Schools"},
    ]


def test_empty_metrics_use_founding_year_then_generic():
    metrics, _ = process_metrics([], SemanticAnalysis(year_founded=2000), 2025)
    assert metrics == [{"value": "25", "label": "Years of Service"}]
    metrics, numbers = process_metrics([], SemanticAnalysis(), 2025)
    assert metrics == [GENERIC_METRIC]
    assert numbers == [100.0]


def test_metric_numbers_follow_displayed_magnitude():
    mined = [
        ExtractedMetric("$2,500,000", "Funds Raised"),
        ExtractedMetric("1.2 million", "Meals Served"),
        ExtractedMetric("Dozens", "Partners"),
    ]
    _, numbers = process_metrics(mined, SemanticAnalysis(), 2025)
    assert numbers == [2_500_000, 1_200_000, None]


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("", ""),
        ("https://give.org/donate", "https://give.org/donate"),
        ("//give.org/x", "https://give.org/x"),
        ("/donate", "https://example.org/donate"),
        ("donorbox.org/campaign", "https://donorbox.org/campaign"),
        ("donate", "https://example.org/donate"),
    ],
)
def test_normalize_donate_url(raw, expected):
    assert normalize_donate_url(raw, "https://example.org/about") == expected


def test_resolve_brand_with_no_signals():
    profile = resolve_brand(
        SemanticAnalysis(),
        [],
        LogoColorProfile(),
        [],
        DetectedFonts(),
        None,
        "none",
        None,
        "https://example.org",
        current_year=2025,
    )
    assert profile.org_name == "Organization"
    assert profile.sector == "community"
    assert profile.metrics == [GENERIC_METRIC]
    assert profile.colors["primary"] == DEFAULT_PRIMARY
    assert profile.header_bg_color == DEFAULT_PRIMARY
    assert profile.header_text_dark is False
    assert len(profile.testimonials) == 3
    assert profile.core_values == ["Integrity", "Compassion", "Excellence", "Community"]
    assert profile.images["hero"].startswith("https://")


def test_resolve_brand_alias_overrides_sector():
    profile = resolve_brand(
        SemanticAnalysis(org_name="Humane Society of Tulsa", sector="community"),
        [],
        LogoColorProfile(),
        [ExtractedMetric("1998", "Founded")],
        DetectedFonts(),
        "https://example.org/logo.png",
        "scraper",
        "#fafafa",
        "https://example.org",
        current_year=2025,
    )
    assert profile.sector == "animal-welfare"
    assert profile.metrics[0]["label"] == "Years of Impact"
    assert profile.header_text_dark is True


def test_color_overrides_keep_slots_distinct():
    profile = resolve_brand(
        SemanticAnalysis(),
        [],
        LogoColorProfile(),
        [],
        DetectedFonts(),
        None,
        "none",
        None,
        "",
        current_year=2025,
    )
    profile = apply_color_overrides(profile, "#2a9d8f", "#2a9d8f")
    assert profile.colors["primary"] == "#2a9d8f"
    _assert_distinct(ColorTriple(**profile.colors))
