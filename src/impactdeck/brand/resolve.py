"""Arbitrate every upstream signal into one :class:`BrandProfile`.

Everything here is pure: the same inputs always give the same profile,
except for the current year which callers may pin via ``current_year``.
"""

from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence
from urllib.parse import urlparse

from ..config import DEFAULT_IMAGE_BASE_URL
from ..extract.metrics import FOUNDED_LABEL, metric_number
from ..features.color import (
    clean_hex,
    color_distance,
    contrast_ratio,
    hex_to_rgb,
    is_light_hex,
    is_usable_brand_color,
    luminance,
    rgb_to_hex,
)
from ..io.models import (
    BrandProfile,
    DetectedFonts,
    ExtractedMetric,
    LogoColorProfile,
    SemanticAnalysis,
    VisionColorSample,
)
from .fonts import (
    SANS_BODY,
    SANS_HEADING_FALLBACK,
    SERIF_BODY,
    SERIF_HEADING_FALLBACK,
    is_serif_font,
    map_font,
)
from .sectors import resolve_sector, sector_images
from .stories import testimonials_for

DEFAULT_PRIMARY = "#1D2350"
DEFAULT_HEADER_BG = "#2D3436"
DARK_OVERLAY = "#1a1a1a"
GOLD = "#FFD700"
LIGHT_ACCENT = "#FFFFFF"
DARK_ACCENT = "#1A1A1A"

MODEL_MATCH_DISTANCE = 50
LOGO_SECONDARY_DISTANCE = 60
MODEL_SECONDARY_DISTANCE = 40
EXTRACTED_SECONDARY_DISTANCE = 100
MIN_SLOT_DISTANCE = 60
MIN_CONTRAST = 3.0
_LIGHTEN_STEP = 15
_LIGHTEN_ROUNDS = 20
HEADER_DARK_TEXT_LUMINANCE = 0.75
MAX_METRICS = 5

# Replacement palettes for the distinctness repair. Members of each palette
# are more than twice MIN_SLOT_DISTANCE apart, so two occupied slots can
# rule out at most two of them.
_ACCENT_PALETTE = ("#FFD700", "#2A9D8F", "#E76F51")
_SECONDARY_PALETTE = ("#2A9D8F", "#E76F51", "#8E44AD", "#FFD700", "#1D2350")

DEFAULT_CORE_VALUES = ["Integrity", "Compassion", "Excellence", "Community"]
GENERIC_METRIC = {"value": "100%", "label": "Dedicated to Community Impact"}

_WHITE_WORDS = {"white", "#fff", "#ffffff", "transparent"}
_BARE_DOMAIN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9-]*\.[a-zA-Z]{2,}")
_DIGIT = re.compile(r"\d")


@dataclass(frozen=True, slots=True)
class ColorTriple:
    primary: str
    secondary: str
    accent: str

    def as_dict(self) -> Dict[str, str]:
        return {"primary": self.primary, "secondary": self.secondary, "accent": self.accent}


def _usable_logo_colors(logo_colors: LogoColorProfile) -> List[str]:
    return [entry.hex for entry in logo_colors.dominant if is_usable_brand_color(entry.hex)]


def _validate_model_color(
    model_hex: str | None,
    extracted_hex: str | None,
    samples: Sequence[VisionColorSample],
    fallback: str,
) -> str:
    """Keep the model's color when some extracted sample sits close to it."""
    if not model_hex:
        return extracted_hex or fallback
    if any(color_distance(model_hex, s.hex) < MODEL_MATCH_DISTANCE for s in samples):
        return model_hex
    return extracted_hex or model_hex


def ensure_accent_contrast(accent: str, background: str) -> str:
    """Return an accent readable on *background* or on the dark deck overlay.

    Deck backgrounds sit under dark overlays, so accents only ever lighten.
    """
    if contrast_ratio(accent, background) >= MIN_CONTRAST:
        return accent
    if contrast_ratio(accent, DARK_OVERLAY) >= MIN_CONTRAST:
        return accent
    r, g, b = hex_to_rgb(accent)
    for _ in range(_LIGHTEN_ROUNDS):
        r, g, b = (min(255, c + _LIGHTEN_STEP) for c in (r, g, b))
        adjusted = rgb_to_hex(r, g, b)
        if contrast_ratio(adjusted, DARK_OVERLAY) >= MIN_CONTRAST:
            return adjusted
    return GOLD


def _too_close(color: str, others: Iterable[str]) -> bool:
    return any(color_distance(color, other) < MIN_SLOT_DISTANCE for other in others)


def _pick_distinct(
    palette: Sequence[str], avoid: Sequence[str], readable_on: str | None = None
) -> str:
    for candidate in palette:
        if _too_close(candidate, avoid):
            continue
        if readable_on and ensure_accent_contrast(candidate, readable_on) != candidate:
            continue
        return candidate
    return palette[0]


def repair_distinctness(triple: ColorTriple) -> ColorTriple:
    """Replace slots that sit within MIN_SLOT_DISTANCE of another slot."""
    primary, secondary, accent = triple.primary, triple.secondary, triple.accent
    if _too_close(accent, [primary]):
        accent = ensure_accent_contrast(
            _pick_distinct(_ACCENT_PALETTE, [primary], readable_on=primary), primary
        )
    if _too_close(secondary, [primary, accent]):
        secondary = _pick_distinct(_SECONDARY_PALETTE, [primary, accent])
    return ColorTriple(primary=primary, secondary=secondary, accent=accent)


def resolve_colors(
    analysis: SemanticAnalysis,
    vision_colors: Sequence[VisionColorSample],
    logo_colors: LogoColorProfile,
) -> ColorTriple:
    """Primary, secondary and accent, each with its own precedence order.

    Primary trusts the logo first, accent trusts page buttons and links
    first, and secondary must stand apart from the other two.
    """
    model_primary = clean_hex(analysis.colors.get("primary"))
    model_secondary = clean_hex(analysis.colors.get("secondary"))
    model_accent = clean_hex(analysis.colors.get("accent"))

    logo_usable = _usable_logo_colors(logo_colors)
    logo_primary = logo_usable[0] if logo_usable else None
    logo_others = [hex_value for hex_value in logo_usable if hex_value != logo_primary]
    logo_accent = logo_colors.vibrant or (logo_others[0] if logo_others else None)

    usable_samples = [s for s in vision_colors if is_usable_brand_color(s.hex)]
    dark_samples = [s for s in vision_colors if not is_light_hex(s.hex)]
    footer = next((s.hex for s in dark_samples if s.source == "footer"), None)
    extracted_primary = footer or (dark_samples[0].hex if dark_samples else None)
    button = next((s.hex for s in usable_samples if s.source == "button"), None)
    link = next((s.hex for s in usable_samples if s.source == "link"), None)
    extracted_accent = button or link

    primary = logo_primary or _validate_model_color(
        model_primary, extracted_primary, vision_colors, DEFAULT_PRIMARY
    )

    fallback_accent = LIGHT_ACCENT if not is_light_hex(primary) else DARK_ACCENT
    accent = extracted_accent or logo_accent or model_accent or fallback_accent

    secondary: str | None = None
    logo_secondary = logo_others[0] if logo_others else None
    if logo_secondary and color_distance(logo_secondary, primary) > LOGO_SECONDARY_DISTANCE:
        secondary = logo_secondary
    if secondary is None and model_secondary and (
        color_distance(model_secondary, primary) > MODEL_SECONDARY_DISTANCE
    ):
        secondary = model_secondary
    if secondary is None:
        secondary = next(
            (
                s.hex
                for s in usable_samples
                if color_distance(s.hex, primary) > EXTRACTED_SECONDARY_DISTANCE
                and color_distance(s.hex, accent) > EXTRACTED_SECONDARY_DISTANCE
            ),
            None,
        )
    if secondary is None:
        secondary = accent

    accent = ensure_accent_contrast(accent, primary)
    return repair_distinctness(ColorTriple(primary=primary, secondary=secondary, accent=accent))


def cta_text_color(button_bg: str, accent: str) -> str:
    """Accent when readable on the button background, else black or white."""
    if contrast_ratio(accent, button_bg) >= MIN_CONTRAST:
        return accent
    return "#1a1a1a" if luminance(button_bg) > 0.5 else "#ffffff"


def resolve_header_bg(
    analysis: SemanticAnalysis, observed_bg: str | None, primary: str
) -> str:
    model_bg = (analysis.colors.get("headerBackground") or "").strip()
    if model_bg:
        if model_bg.lower() in _WHITE_WORDS:
            return "#ffffff"
        if model_bg.startswith("#") and clean_hex(model_bg):
            return clean_hex(model_bg) or model_bg
    return clean_hex(observed_bg) or primary or DEFAULT_HEADER_BG


def resolve_fonts(detected: DetectedFonts, analysis: SemanticAnalysis) -> Dict[str, str]:
    heading = map_font(detected.heading) or map_font(analysis.fonts.get("headingFont"))
    if not heading:
        style = (analysis.fonts.get("headingStyle") or "").lower()
        heading = SERIF_HEADING_FALLBACK if style == "serif" else SANS_HEADING_FALLBACK
    body = map_font(detected.body)
    if not body:
        body = SERIF_BODY if is_serif_font(heading) else SANS_BODY
    return {"heading": heading, "body": body}


def process_metrics(
    mined: Sequence[ExtractedMetric],
    analysis: SemanticAnalysis,
    current_year: int,
) -> tuple[List[Dict[str, str]], List[float | None]]:
    """Mined metrics first, then model metrics, then a single fallback."""
    metrics: List[Dict[str, str]] = []
    for metric in mined:
        value, label = metric.value, metric.label
        if label == FOUNDED_LABEL:
            year = metric_number(value)
            if year is not None and 1900 < year < current_year:
                value = str(current_year - int(year))
                label = "Years of Impact"
        metrics.append({"value": value, "label": label})

    if len(metrics) < 3:
        for candidate in analysis.metrics:
            value = str(candidate.get("value") or "").strip()
            label = str(candidate.get("label") or "").strip()
            if not value or not label or not _DIGIT.search(value):
                continue
            if "success rate" in label.lower():
                continue
            first_word = label.lower().split()[0]
            if any(first_word in m["label"].lower() for m in metrics):
                continue
            if len(metrics) >= MAX_METRICS:
                break
            metrics.append({"value": value, "label": label})

    unique: List[Dict[str, str]] = []
    for metric in metrics:
        if all(metric["label"] != kept["label"] for kept in unique):
            unique.append(metric)
    metrics = unique[:MAX_METRICS]

    if not metrics:
        year = analysis.year_founded
        if year and 1800 < year < current_year:
            metrics.append({"value": str(current_year - year), "label": "Years of Service"})
        else:
            metrics.append(dict(GENERIC_METRIC))

    return metrics, [metric_number(m["value"]) for m in metrics]


def normalize_donate_url(url: str | None, original_url: str) -> str:
    if not url or not url.strip():
        return ""
    url = url.strip()
    if url.startswith(("https://", "http://")):
        return url
    if url.startswith("//"):
        return f"https:{url}"
    parsed = urlparse(original_url)
    origin = f"{parsed.scheme}://{parsed.netloc}" if parsed.scheme and parsed.netloc else original_url
    origin = origin.rstrip("/")
    if url.startswith("/"):
        return origin + url
    if _BARE_DOMAIN.match(url):
        return f"https://{url}"
    return f"{origin}/{url}"


def resolve_brand(
    analysis: SemanticAnalysis,
    vision_colors: Sequence[VisionColorSample],
    logo_colors: LogoColorProfile,
    metrics: Sequence[ExtractedMetric],
    fonts: DetectedFonts,
    logo_url: str | None,
    logo_source: str,
    header_bg: str | None,
    original_url: str,
    *,
    image_base_url: str = DEFAULT_IMAGE_BASE_URL,
    current_year: int | None = None,
) -> BrandProfile:
    """Merge every signal into the profile that drives rendering."""
    year = current_year or dt.date.today().year
    org_name = analysis.org_name or "Organization"
    sector = resolve_sector(analysis.sector or "community", org_name)

    colors = resolve_colors(analysis, vision_colors, logo_colors)
    header = resolve_header_bg(analysis, header_bg, colors.primary)
    metric_items, numeric_values = process_metrics(metrics, analysis, year)
    core_values = analysis.core_values if len(analysis.core_values) == 4 else list(DEFAULT_CORE_VALUES)

    need = dict(analysis.need) if analysis.need.get("headline") else {
        "headline": "Communities Need Support",
        "description": "Many face challenges that require dedicated assistance.",
    }

    return BrandProfile(
        org_name=org_name,
        logo_url=logo_url,
        logo_source=logo_source,
        colors=colors.as_dict(),
        fonts=resolve_fonts(fonts, analysis),
        sector=sector,
        mission=analysis.mission or "Making a difference in our community.",
        metrics=metric_items,
        numeric_values=numeric_values,
        testimonials=testimonials_for(sector),
        programs=list(analysis.programs),
        final_donate_url=normalize_donate_url(analysis.donate_url, original_url),
        header_bg_color=header,
        header_text_dark=luminance(header) > HEADER_DARK_TEXT_LUMINANCE,
        cta_text_color=cta_text_color(colors.primary, colors.accent),
        images=sector_images(sector, image_base_url),
        core_values=list(core_values),
        donor_headline=analysis.donor_headline or "Making A Difference",
        hero_hook=analysis.hero_hook
        or analysis.tagline
        or "Your support transforms lives and builds stronger communities.",
        tagline=analysis.tagline,
        year_founded=analysis.year_founded,
        need=need,
        solution=analysis.solution or "We provide programs and services that create lasting change.",
        contact_email=analysis.contact_email,
        original_url=original_url,
    )


def apply_color_overrides(
    profile: BrandProfile, primary: str | None, accent: str | None
) -> BrandProfile:
    """Apply operator-chosen colors after resolution, keeping slots distinct."""
    new_primary = clean_hex(primary) or profile.colors["primary"]
    new_accent = clean_hex(accent) or profile.colors["accent"]
    if new_primary == profile.colors["primary"] and new_accent == profile.colors["accent"]:
        return profile
    triple = ColorTriple(primary=new_primary, secondary=profile.colors["secondary"], accent=new_accent)
    if not clean_hex(accent):
        triple = ColorTriple(
            primary=triple.primary,
            secondary=triple.secondary,
            accent=ensure_accent_contrast(triple.accent, triple.primary),
        )
    triple = repair_distinctness(triple)
    profile.colors = triple.as_dict()
    profile.cta_text_color = cta_text_color(triple.primary, triple.accent)
    return profile
