"""Language-model analysis of a nonprofit's site or operator-supplied facts."""

from __future__ import annotations

import base64
import json
import logging
import threading
from typing import Any, Iterable, Mapping

import anthropic

from ..config import DEFAULT_MODEL
from ..errors import AnalysisParseError
from ..io.models import ExtractedMetric, ManualInput, SemanticAnalysis

logger = logging.getLogger(__name__)

MAX_TOKENS = 4096
REQUEST_TIMEOUT = 120.0

SECTOR_CHOICES = (
    "youth-development, education, agriculture, food-bank, environment, animal-welfare, "
    "veterans, seniors, arts-culture, healthcare, housing, disaster-relief, "
    "disability-services, mental-health, refugee-immigration, lgbtq, community"
)

SCREENSHOT_PROMPT = (
    "Analyze this nonprofit website screenshot and extract brand information. "
    "LOGO URL: {logo_url}. Website URL: {url}. Organization name hint: {org_name}. "
    "PRE-EXTRACTED METRICS FROM ABOUT PAGE: {metrics}. "
    "IMPORTANT: Use these EXACT numbers in your metrics array - do not make up different numbers! "
    "Return a JSON object with: orgName, donorHeadline (3-6 words), heroHook (8-15 words - "
    "MUST include the full organization name for clarity), tagline, location, mission, "
    "yearFounded, sector (one of: {sectors}). SECTOR RULES: Use mental-health for crisis "
    "centers dealing with abuse, trauma, counseling, suicide prevention, child advocacy, or "
    "victim services. Use disaster-relief ONLY for natural disasters like hurricanes, floods, "
    "fires, earthquakes. Use youth-development for mentoring and child development programs, "
    "coreValues (array of 4), colors (object with primary, secondary, accent, headerBackground as hex), "
    "fonts (headingStyle, headingFont), need (headline and description), solution, programs "
    "(array), metrics (use the PRE-EXTRACTED METRICS above - format as array of {{value, label}} "
    "objects), contactEmail, donateUrl."
)

MANUAL_PROMPT = """You are a professional nonprofit copywriter. Given the following information about a nonprofit organization, generate polished, professional copy for their impact deck.

ORGANIZATION INFO:
- Name: {org_name}
- What they do: {description}
- Who they serve: {beneficiaries}
- Sector: {sector}
- Location: {location}
- Year founded: {year_founded}
- {programs}
- Contact email: {contact_email}
- Donation URL: {donate_url}

{metrics}

{colors}

CRITICAL RULES:
1. NEVER fabricate metrics, statistics, or numbers. Only include metrics the organization explicitly provided.
2. Polish and professionalize the language, but keep the organization's authentic voice.
3. The heroHook MUST include the full organization name.
4. The donorHeadline should be 3-6 powerful words that capture the org's impact.

Return a JSON object with these fields:
- orgName: string (use the exact name provided)
- donorHeadline: string (3-6 words, compelling impact headline)
- heroHook: string (8-15 words, MUST include the full organization name)
- tagline: string (short, memorable tagline)
- location: string
- mission: string (polished mission statement based on their description)
- yearFounded: number | null
- sector: string (one of: {sectors})
- coreValues: string[] (array of exactly 4 values appropriate for their sector)
- colors: {{ primary: string, secondary: string, accent: string }} (hex colors)
- fonts: {{ headingStyle: "serif" | "sans", headingFont: string }}
- need: {{ headline: string, description: string }} (the problem they solve)
- solution: string (how they solve it)
- programs: string[] (polished program names)
- metrics: {{ value: string, label: string }}[] (ONLY metrics the org provided, or empty array)
- contactEmail: string
- donateUrl: string

Return ONLY the JSON object, no markdown fencing."""


class LanguageModelClient:
    """Owns one lazily constructed Anthropic client and reuses it across calls."""

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, timeout: float = REQUEST_TIMEOUT) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client: anthropic.Anthropic | None = None
        self._lock = threading.Lock()

    @property
    def client(self) -> anthropic.Anthropic:
        if self._client is None:
            with self._lock:
                if self._client is None:
                    self._client = anthropic.Anthropic(api_key=self.api_key, timeout=self.timeout)
        return self._client

    def complete(self, content: list[dict[str, Any]] | str) -> str:
        """Send one user turn and return the first text block of the reply."""
        response = self.client.messages.create(
            model=self.model,
            max_tokens=MAX_TOKENS,
            messages=[{"role": "user", "content": content}],
        )
        for block in response.content:
            if getattr(block, "type", None) == "text":
                return block.text
        raise AnalysisParseError("No text response from the language model")


def format_metrics(metrics: Iterable[ExtractedMetric]) -> str:
    """``"<value> <label>"`` pairs joined by commas."""
    return ", ".join(f"{m.value} {m.label}" for m in metrics)


def extract_json_object(text: str) -> dict[str, Any]:
    """Parse the first balanced JSON object embedded in *text*.

    Markdown code fences are removed first; braces inside JSON strings are
    ignored while scanning.
    """
    if not text:
        raise AnalysisParseError("Empty language model reply")
    cleaned = text.replace("```json", "").replace("```", "")

    start = cleaned.find("{")
    while start != -1:
        end = _balanced_end(cleaned, start)
        if end is None:
            start = cleaned.find("{", start + 1)
            continue
        candidate = cleaned[start : end + 1]
        try:
            payload = json.loads(candidate)
        except json.JSONDecodeError:
            start = cleaned.find("{", start + 1)
            continue
        if isinstance(payload, dict):
            return payload
        start = cleaned.find("{", end + 1)
    raise AnalysisParseError("Could not parse JSON from the language model reply")


def _balanced_end(text: str, start: int) -> int | None:
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def analyze_screenshot(
    client: LanguageModelClient,
    screenshot: bytes,
    url: str,
    org_name: str,
    logo_url: str | None,
    metrics: Iterable[ExtractedMetric],
) -> SemanticAnalysis:
    """Ask the model for brand and narrative fields given the page screenshot."""
    prompt = SCREENSHOT_PROMPT.format(
        logo_url=logo_url or "none",
        url=url,
        org_name=org_name,
        metrics=format_metrics(metrics) or "None found",
        sectors=SECTOR_CHOICES,
    )
    content = [
        {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": "image/png",
                "data": base64.b64encode(screenshot).decode("ascii"),
            },
        },
        {"type": "text", "text": prompt},
    ]
    reply = client.complete(content)
    return SemanticAnalysis.from_payload(extract_json_object(reply))


def _or_unspecified(value: Any) -> str:
    return str(value) if value else "Not specified"


def build_manual_prompt(manual: ManualInput) -> str:
    programs = (
        f"Programs/services: {', '.join(manual.programs)}"
        if manual.programs
        else "No specific programs listed."
    )
    if manual.metrics:
        metrics = (
            "Impact metrics provided by the organization: "
            f"{format_metrics(manual.metrics)}. "
            "IMPORTANT: Use these EXACT numbers. Do NOT fabricate or change any metrics."
        )
    else:
        metrics = (
            "No metrics provided. Return an empty metrics array. "
            "Do NOT make up or fabricate any numbers."
        )
    if manual.primary_color or manual.accent_color:
        colors = (
            f"Color preferences: primary={manual.primary_color or 'none specified'}, "
            f"accent={manual.accent_color or 'none specified'}. "
            "Use these as starting points for your color suggestions."
        )
    else:
        colors = "No color preferences specified. Suggest colors appropriate for the sector."
    return MANUAL_PROMPT.format(
        org_name=manual.org_name,
        description=manual.description,
        beneficiaries=manual.beneficiaries,
        sector=manual.sector,
        location=_or_unspecified(manual.location),
        year_founded=_or_unspecified(manual.year_founded),
        programs=programs,
        contact_email=_or_unspecified(manual.contact_email),
        donate_url=_or_unspecified(manual.donate_url),
        metrics=metrics,
        colors=colors,
        sectors=SECTOR_CHOICES,
    )


def analyze_manual(client: LanguageModelClient, manual: ManualInput) -> SemanticAnalysis:
    """Text-only variant driven by operator-supplied facts."""
    reply = client.complete(build_manual_prompt(manual))
    analysis = SemanticAnalysis.from_payload(extract_json_object(reply))
    if not manual.metrics and analysis.metrics:
        logger.warning("Discarding %d model metrics not supplied by the operator", len(analysis.metrics))
        analysis.metrics = []
    return analysis


def analysis_summary(analysis: SemanticAnalysis) -> Mapping[str, Any]:
    return {
        "org_name": analysis.org_name,
        "sector": analysis.sector,
        "metrics": len(analysis.metrics),
        "colors": dict(analysis.colors),
    }
