"""Render a brand profile into the slide deck and the social preview."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from ..brand.fonts import fonts_stylesheet_url
from ..io.models import BrandProfile

TEMPLATE_DIR = Path(__file__).parent / "templates"
OG_WIDTH = 1200
OG_HEIGHT = 630

_env: Environment | None = None


def get_environment() -> Environment:
    global _env
    if _env is None:
        _env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html", "j2"]),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
    return _env


def split_headline(headline: str) -> tuple[str, str]:
    """Split off the last word so it can be drawn in the accent color."""
    words = headline.split()
    if not words:
        return "", ""
    return " ".join(words[:-1]), words[-1]


def show_logo(profile: BrandProfile) -> bool:
    """Favicon-service logos are too small to feature."""
    if not profile.logo_url:
        return False
    return profile.logo_source != "google-favicon" and "favicon" not in profile.logo_url


def _context(slug: str, profile: BrandProfile) -> Dict[str, Any]:
    main, accent_word = split_headline(profile.donor_headline)
    return {
        "slug": slug,
        "p": profile,
        "colors": profile.colors,
        "fonts": profile.fonts,
        "headline_main": main,
        "headline_accent": accent_word,
        "show_logo": show_logo(profile),
        "fonts_url": fonts_stylesheet_url(profile.fonts["heading"], profile.fonts["body"]),
    }


def render_deck(slug: str, profile: BrandProfile, site_url: str) -> str:
    context = _context(slug, profile)
    context["site_url"] = site_url.rstrip("/")
    context["deck_url"] = f"{context['site_url']}/decks/{slug}"
    return get_environment().get_template("deck.html.j2").render(**context)


def render_og(slug: str, profile: BrandProfile, image_base_url: str) -> str:
    context = _context(slug, profile)
    context["og_image"] = f"{image_base_url.rstrip('/')}/og/{profile.sector or 'community'}-og.jpg"
    context["width"] = OG_WIDTH
    context["height"] = OG_HEIGHT
    return get_environment().get_template("og.html.j2").render(**context)
