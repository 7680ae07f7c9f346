"""Data models shared across the impactdeck pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping
from urllib.parse import urlparse


@dataclass(slots=True)
class CaptureContext:
    """Per-run capture state. Never persisted."""

    url: str
    domain: str
    origin: str
    screenshot: bytes = b""

    @classmethod
    def from_url(cls, raw_url: str) -> "CaptureContext":
        url = raw_url.strip()
        if url and not url.startswith(("http://", "https://")):
            url = f"https://{url}"
        parsed = urlparse(url)
        host = parsed.netloc or parsed.path.split("/", 1)[0]
        domain = host[4:] if host.startswith("www.") else host
        origin = f"{parsed.scheme}://{parsed.netloc}" if parsed.netloc else url
        return cls(url=url, domain=domain, origin=origin)


@dataclass(frozen=True, slots=True)
class VisionColorSample:
    """One dominant color reported by the image-properties service."""

    source: str
    hex: str
    percent: float
    score: float
    rgb: tuple[int, int, int]
    saturation: float
    luminance: float


@dataclass(frozen=True, slots=True)
class LogoColorEntry:
    """A clustered logo color ranked by pixel count."""

    hex: str
    count: int
    saturation: float
    luminance: float
    is_vibrant: bool


@dataclass(slots=True)
class LogoColorProfile:
    dominant: List[LogoColorEntry] = field(default_factory=list)
    vibrant: str | None = None
    muted: str | None = None
    source: str = "none"


@dataclass(slots=True)
class ColorSignals:
    vision_colors: List[VisionColorSample] = field(default_factory=list)
    logo_colors: LogoColorProfile = field(default_factory=LogoColorProfile)


@dataclass(frozen=True, slots=True)
class DetectedFonts:
    heading: str | None = None
    body: str | None = None


@dataclass(slots=True)
class LogoResult:
    """Outcome of logo discovery plus the page observations gathered on the way."""

    logo_url: str | None = None
    logo_source: str = "none"
    header_bg_color: str | None = None
    detected_fonts: DetectedFonts = field(default_factory=DetectedFonts)


@dataclass(slots=True)
class ExtractedMetric:
    value: str
    label: str
    context: str = ""


def _as_str(value: Any, default: str = "") -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return default
    return str(value)


def _as_str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if isinstance(item, (str, int, float))]


def _as_year(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


@dataclass(slots=True)
class SemanticAnalysis:
    """Structured fields returned by the language model.

    Numeric claims here are weaker evidence than :class:`ExtractedMetric`.
    """

    org_name: str = ""
    donor_headline: str = ""
    hero_hook: str = ""
    tagline: str = ""
    location: str = ""
    mission: str = ""
    year_founded: int | None = None
    sector: str = ""
    core_values: List[str] = field(default_factory=list)
    colors: Dict[str, str] = field(default_factory=dict)
    fonts: Dict[str, str] = field(default_factory=dict)
    need: Dict[str, str] = field(default_factory=dict)
    solution: str = ""
    programs: List[str] = field(default_factory=list)
    metrics: List[Dict[str, str]] = field(default_factory=list)
    contact_email: str = ""
    donate_url: str = ""

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "SemanticAnalysis":
        """Build an analysis from the model's JSON, ignoring mistyped fields."""
        colors = payload.get("colors")
        fonts = payload.get("fonts")
        need = payload.get("need")
        metrics: List[Dict[str, str]] = []
        raw_metrics = payload.get("metrics")
        if isinstance(raw_metrics, list):
            for item in raw_metrics:
                if not isinstance(item, Mapping):
                    continue
                metrics.append(
                    {
                        "value": _as_str(item.get("value")).strip(),
                        "label": _as_str(item.get("label")).strip(),
                    }
                )
        return cls(
            org_name=_as_str(payload.get("orgName")).strip(),
            donor_headline=_as_str(payload.get("donorHeadline")),
            hero_hook=_as_str(payload.get("heroHook")),
            tagline=_as_str(payload.get("tagline")),
            location=_as_str(payload.get("location")),
            mission=_as_str(payload.get("mission")),
            year_founded=_as_year(payload.get("yearFounded")),
            sector=_as_str(payload.get("sector")),
            core_values=_as_str_list(payload.get("coreValues")),
            colors={
                str(k): _as_str(v) for k, v in colors.items() if isinstance(v, str)
            }
            if isinstance(colors, Mapping)
            else {},
            fonts={str(k): _as_str(v) for k, v in fonts.items() if isinstance(v, str)}
            if isinstance(fonts, Mapping)
            else {},
            need={str(k): _as_str(v) for k, v in need.items() if isinstance(v, str)}
            if isinstance(need, Mapping)
            else {},
            solution=_as_str(payload.get("solution")),
            programs=_as_str_list(payload.get("programs")),
            metrics=metrics,
            contact_email=_as_str(payload.get("contactEmail")),
            donate_url=_as_str(payload.get("donateUrl")),
        )


@dataclass(slots=True)
class ManualInput:
    """Operator-supplied facts used instead of scraping."""

    org_name: str
    description: str
    beneficiaries: str
    sector: str
    location: str | None = None
    year_founded: int | None = None
    programs: List[str] = field(default_factory=list)
    metrics: List[ExtractedMetric] = field(default_factory=list)
    contact_email: str | None = None
    donate_url: str | None = None
    logo_url: str | None = None
    primary_color: str | None = None
    accent_color: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ManualInput":
        metrics = [
            ExtractedMetric(value=_as_str(m.get("value")), label=_as_str(m.get("label")))
            for m in data.get("metrics") or []
            if isinstance(m, Mapping)
        ]
        return cls(
            org_name=_as_str(data.get("orgName")),
            description=_as_str(data.get("description")),
            beneficiaries=_as_str(data.get("beneficiaries")),
            sector=_as_str(data.get("sector"), "community"),
            location=data.get("location"),
            year_founded=_as_year(data.get("yearFounded")),
            programs=_as_str_list(data.get("programs")),
            metrics=metrics,
            contact_email=data.get("contactEmail"),
            donate_url=data.get("donateUrl"),
            logo_url=data.get("logoUrl"),
            primary_color=data.get("primaryColor"),
            accent_color=data.get("accentColor"),
        )


@dataclass(frozen=True, slots=True)
class Testimonial:
    quote: str
    author: str
    role: str
    portrait: str = ""


@dataclass(slots=True)
class BrandProfile:
    """Resolved identity record that drives every rendered artifact."""

    org_name: str
    logo_url: str | None
    logo_source: str
    colors: Dict[str, str]
    fonts: Dict[str, str]
    sector: str
    mission: str
    metrics: List[Dict[str, str]]
    numeric_values: List[float | None]
    testimonials: List[Testimonial]
    programs: List[str]
    final_donate_url: str
    header_bg_color: str
    header_text_dark: bool
    cta_text_color: str
    images: Dict[str, str] = field(default_factory=dict)
    core_values: List[str] = field(default_factory=list)
    donor_headline: str = ""
    hero_hook: str = ""
    tagline: str = ""
    year_founded: int | None = None
    need: Dict[str, str] = field(default_factory=dict)
    solution: str = ""
    contact_email: str = ""
    original_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class StepResult:
    step: str
    status: str
    duration_ms: int
    data: Dict[str, Any] | None = None
    error: str | None = None


@dataclass(slots=True)
class PipelineRunLog:
    """Observability record for one run. Never consulted for control flow."""

    slug: str
    url: str
    steps: List[StepResult]
    total_duration_ms: int
    status: str
    error: str | None = None
    summary: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class DeckArtifacts:
    deck_url: str
    og_image_url: str


@dataclass(frozen=True, slots=True)
class DeckRequest:
    """Inbound request for a website-driven run."""

    url: str
    org_name: str
    slug: str


@dataclass(frozen=True, slots=True)
class ManualDeckRequest:
    manual: ManualInput
    slug: str
