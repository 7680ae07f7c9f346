"""Sector normalization and the stock imagery attached to each sector."""

from __future__ import annotations

import re

DEFAULT_SECTOR = "community"

SECTOR_ALIASES: dict[str, str] = {
    "boys and girls club": "youth-development",
    "bgc": "youth-development",
    "ymca": "youth-development",
    "food pantry": "food-bank",
    "habitat for humanity": "housing",
    "red cross": "disaster-relief",
    "doctors without borders": "healthcare",
    "humane society": "animal-welfare",
    "community-general": "community",
}

VALID_SECTORS = (
    "youth-development", "youth-sports-soccer", "youth-sports-basketball",
    "agriculture", "food-bank", "education", "environment", "animal-welfare",
    "veterans", "seniors", "arts-culture", "healthcare", "housing", "community",
    "disaster-relief", "disability-services", "mental-health",
    "refugee-immigration", "lgbtq",
)

# hero, action, group
SECTOR_IMAGES: dict[str, tuple[str, str, str]] = {
    "youth-development": (
        "youth-dev-hero-reading-girl.jpg",
        "youth-dev-action-mentor-bench.jpg",
        "youth-dev-group-circle.jpg",
    ),
    "youth-sports-soccer": (
        "soccer-hero-girl-kick.jpg",
        "soccer-action-two-players.jpg",
        "soccer-group-team-huddle.jpg",
    ),
    "youth-sports-basketball": (
        "basketball-hero-teen-shot.jpg",
        "basketball-action-one-on-one.jpg",
        "basketball-group-team.jpg",
    ),
    "agriculture": (
        "agriculture-hero-farmer-plants.jpg",
        "agriculture-action-teaching.jpg",
        "agriculture-group-gardeners.jpg",
    ),
    "food-bank": (
        "foodbank-hero-volunteer.jpg",
        "foodbank-action-distribution.jpg",
        "foodbank-group-volunteers.jpg",
    ),
    "education": (
        "education-hero-student-girl.jpg",
        "education-action-reading.jpg",
        "education-group-students.jpg",
    ),
    "environment": (
        "environment-hero-cleanup.jpg",
        "environment-action-planting.jpg",
        "environment-group-volunteers.jpg",
    ),
    "animal-welfare": (
        "animal-hero-dog-volunteer.jpg",
        "animal-action-walking.jpg",
        "animal-group-volunteers-dogs.jpg",
    ),
    "veterans": (
        "veterans-hero-portrait.jpg",
        "veterans-action-connection.jpg",
        "veterans-group-together.jpg",
    ),
    "seniors": (
        "seniors-hero-woman.jpg",
        "seniors-action-walking.jpg",
        "seniors-group-friends.jpg",
    ),
    "arts-culture": (
        "arts-hero-painter.jpg",
        "arts-action-music-lesson.jpg",
        "arts-group-musicians.jpg",
    ),
    "housing": (
        "housing-hero-family-home.jpg",
        "housing-action-building.jpg",
        "housing-group-build-team.jpg",
    ),
    "healthcare": (
        "healthcare-hero-nurse.jpg",
        "healthcare-action-screening.jpg",
        "healthcare-group-team.jpg",
    ),
    "community": (
        "community-hero-leader.jpg",
        "community-action-neighbors.jpg",
        "community-group-gathering.jpg",
    ),
    "disaster-relief": (
        "disaster-hero-responder.jpg",
        "disaster-action-supplies.jpg",
        "disaster-group-team.jpg",
    ),
    "disability-services": (
        "disability-hero-woman.jpg",
        "disability-action-gardening.jpg",
        "disability-group-inclusive.jpg",
    ),
    "mental-health": (
        "mentalhealth-hero-peace.jpg",
        "mentalhealth-action-support.jpg",
        "mentalhealth-group-circle.jpg",
    ),
    "refugee-immigration": (
        "refugee-hero-mother-child.jpg",
        "refugee-action-assistance.jpg",
        "refugee-group-welcome.jpg",
    ),
    "lgbtq": (
        "lgbtq-hero-authentic.jpg",
        "lgbtq-action-volunteering.jpg",
        "lgbtq-group-community.jpg",
    ),
}

_SEPARATORS = re.compile(r"[\s_]+")


def resolve_sector(sector: str | None, org_name: str) -> str:
    """Normalize the model's sector tag, letting well-known names override it."""
    resolved = _SEPARATORS.sub("-", (sector or DEFAULT_SECTOR).strip().lower())
    org_lower = org_name.lower()
    for alias, mapped in SECTOR_ALIASES.items():
        if alias in org_lower:
            resolved = mapped
            break
    if resolved not in VALID_SECTORS:
        resolved = SECTOR_ALIASES.get(resolved, DEFAULT_SECTOR)
    return resolved


def sector_images(sector: str, image_base_url: str) -> dict[str, str]:
    hero, action, group = SECTOR_IMAGES.get(sector, SECTOR_IMAGES[DEFAULT_SECTOR])
    base = image_base_url.rstrip("/")
    return {
        "hero": f"{base}/{hero}",
        "action": f"{base}/{action}",
        "group": f"{base}/{group}",
        "og": f"{base}/og/{sector}-og.jpg",
    }
