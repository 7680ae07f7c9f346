from __future__ import annotations

import pytest

from impactdeck.brand.resolve import resolve_brand
from impactdeck.io.models import BrandProfile, DetectedFonts, LogoColorProfile, SemanticAnalysis


@pytest.fixture
def profile() -> BrandProfile:
    analysis = SemanticAnalysis(
        org_name="Acme Food Bank",
        donor_headline="Ending Hunger Together",
        hero_hook="Acme Food Bank feeds every neighbor who needs a meal.",
        tagline="No one goes hungry",
        sector="food-bank",
        year_founded=1987,
        programs=["Mobile Pantry", "School Backpacks"],
        contact_email="hello@acme.org",
        donate_url="/give",
    )
    return resolve_brand(
        analysis,
        [],
        LogoColorProfile(),
        [],
        DetectedFonts(heading="Gotham"),
        "https://acme.org/logo.png",
        "scraper",
        None,
        "https://acme.org",
        image_base_url="https://img.example",
        current_year=2025,
    )
