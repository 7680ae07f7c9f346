"""Mine quantified impact claims from page text."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Tuple

from ..io.models import ExtractedMetric

FOUNDED_LABEL = "Founded"
_CONTEXT_CHARS = 80
_STORED_CONTEXT = 60
_MIN_VALUE = 5
_YEAR_RANGE = (1900, 2030)
_PERCENT_THRESHOLD = 70

_COUNT = r"(\d[\d,]*k?)\+?\s*"
_SCALED = r"(\d+\.?\d*\s*(?:billion|million))\s*"


@dataclass(frozen=True, slots=True)
class MetricPattern:
    regex: re.Pattern[str]
    base_label: str


def _p(pattern: str, label: str) -> MetricPattern:
    return MetricPattern(re.compile(pattern, re.IGNORECASE), label)


# Order matters: scaled meal/pound counts precede the plain meal count so
# the more specific label wins the cross-label merge below.
PATTERNS: Tuple[MetricPattern, ...] = (
    _p(_COUNT + r"years?", "Years of Service"),
    _p(r"since\s*(\d{4})", FOUNDED_LABEL),
    _p(r"founded\s*(?:in\s*)?(\d{4})", FOUNDED_LABEL),
    _p(_COUNT + r"(?:youth|children|kids|students|littles)", "Youth Served"),
    _p(_COUNT + r"hours?", "Hours of Service"),
    _p(_COUNT + r"(?:families|family)", "Families Served"),
    _p(_COUNT + r"(?:volunteers?|mentors?|bigs?)", "Volunteers"),
    _p(_COUNT + r"(?:matches|relationships)", "Mentoring Matches"),
    _p(_COUNT + r"(?:programs?|schools?|locations?|sites?)", "Programs"),
    _p(_COUNT + r"(?:communities|counties|cities)", "Communities Served"),
    _p(_SCALED + r"meals?", "Meals"),
    _p(_SCALED + r"pounds?", "Pounds of Food"),
    _p(_COUNT + r"food\s*banks?", "Food Banks"),
    _p(_COUNT + r"meals?\s*(?:served|provided|distributed)?", "Meals Served"),
    _p(
        _COUNT + r"(?:people|individuals|clients|residents)\s*(?:served|helped|housed|assisted)?",
        "People Served",
    ),
    _p(_COUNT + r"(?:beds?|nights?\s*of\s*shelter)", "Nights of Shelter"),
    _p(_COUNT + r"acres?", "Acres Protected"),
    _p(
        _COUNT
        + r"(?:animals?|pets?)\s*(?:rescued|saved|helped|adopted|served|housed|cared\s*for)?",
        "Animals Helped",
    ),
    _p(_COUNT + r"adoptions?", "Adoptions"),
    _p(_SCALED + r"(?:spay|neuter|procedures?|surgeries|operations?)", "Procedures"),
    _p(_COUNT + r"(?:spay|neuter|procedures?|surgeries|operations?)", "Procedures"),
    _p(_COUNT + r"(?:rescues?|rescued)", "Rescues"),
    _p(_COUNT + r"(?:species|breeds?)", "Species Protected"),
    _p(_COUNT + r"(?:visits?|appointments?|checkups?|screenings?|exams?)", "Visits"),
    _p(_COUNT + r"(?:offices?|clinics?|centers?|facilities|hospitals?)", "Locations"),
    _p(
        _COUNT
        + r"(?:providers?|doctors?|nurses?|physicians?|practitioners?|therapists?|counselors?)"
        + r"\s*(?:trained|certified|served|supported)?",
        "Providers",
    ),
    _p(
        _COUNT + r"(?:books?|titles?)\s*(?:distributed|donated|given|provided)?",
        "Books Distributed",
    ),
    _p(
        _COUNT
        + r"(?:patients?|members?|participants?|beneficiaries?|recipients?)"
        + r"\s*(?:served|helped|supported|reached)?",
        "People Served",
    ),
    _p(_COUNT + r"(?:donors?|supporters?|partners?)", "Supporters"),
    _p(
        _COUNT + r"(?:survivors?|lives?\s*(?:changed|impacted|transformed|touched))",
        "Survivors Served",
    ),
    _p(
        _COUNT + r"(?:organizations?|agencies|affiliates?)\s*(?:served|partnering|supported)?",
        "Partner Organizations",
    ),
    _p(_COUNT + r"(?:events?|workshops?|sessions?|classes?|trainings?)", "Events"),
    _p(_COUNT + r"\w+\s+(?:workshops?|sessions?|classes?)", "Workshops"),
    _p(
        _COUNT + r"(?:grants?|scholarships?|awards?)\s*(?:awarded|given|distributed)?",
        "Grants Awarded",
    ),
    _p(
        r"\$(\d[\d,]*(?:\.\d+)?\s*(?:billion|million|k)?)\s*"
        r"(?:raised|donated|distributed|invested|awarded|given|granted)",
        "Funds Raised",
    ),
)

_PERCENT_RE = re.compile(r"(\d+)%")
_POSITIVE_WORDS = ("graduate", "success", "complete", "achieve", "improve", "increase")
_RATE_LABELS = (
    (("graduat",), "Graduation Rate"),
    (("college",), "College Enrollment"),
    (("complet",), "Completion Rate"),
    (("retention", "retain"), "Retention Rate"),
    (("employ",), "Employment Rate"),
)
# (redundant label, label that supersedes it)
_REDUNDANT_PAIRS = (("Meals Served", "Meals"),)

_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


def parse_scaled_value(value: str) -> float:
    """``"1.2 million"`` -> ``1200000.0``; commas stripped; ``k`` is thousands."""
    stripped = value.replace(",", "").lower()
    match = _NUMBER_RE.search(stripped)
    if not match:
        return 0.0
    number = float(match.group(0))
    if "billion" in stripped:
        return number * 1_000_000_000
    if "million" in stripped:
        return number * 1_000_000
    if stripped.rstrip().endswith("k"):
        return number * 1_000
    return number


def _display_value(raw: str, number: float, base_label: str) -> str:
    lowered = raw.lower()
    if any(unit in lowered for unit in ("billion", "million")) or lowered.rstrip().endswith("k"):
        shown = f"{int(round(number)):,}"
    else:
        shown = raw.strip()
    if base_label == "Funds Raised":
        shown = f"${shown}"
    return shown


def _context(text: str, start: int, end: int, chars: int = _CONTEXT_CHARS) -> str:
    window = text[max(0, start - chars) : min(len(text), end + chars)]
    return " ".join(window.split())


def refine_label(base_label: str, context: str) -> str:
    """Replace a generic label with a more specific one when the context allows."""
    ctx = context.lower()
    if base_label == "Hours of Service":
        if "mentor" in ctx:
            return "Mentoring Hours"
        if "volunteer" in ctx:
            return "Volunteer Hours"
        if "shared" in ctx:
            return "Hours Shared"
    elif base_label == "Youth Served":
        if "annual" in ctx:
            return "Youth Served Annually"
        if "mentor" in ctx:
            return "Youth Mentored"
    elif base_label == "Years of Service":
        if "mentor" in ctx:
            return "Years of Mentoring"
    elif base_label == "Animals Helped":
        if "rescue" in ctx:
            return "Animals Rescued"
        if "adopt" in ctx:
            return "Animals Adopted"
        if "sanctuary" in ctx or "shelter" in ctx:
            return "Animals Sheltered"
        if "spay" in ctx or "neuter" in ctx:
            return "Spay/Neuter Procedures"
    elif base_label == "Procedures":
        if "spay" in ctx or "neuter" in ctx:
            return "Spay/Neuter Procedures"
    return base_label


def _rate_label(context: str) -> str | None:
    ctx = context.lower()
    for needles, label in _RATE_LABELS:
        if any(needle in ctx for needle in needles):
            return label
    return None


class _MetricBook:
    """Ordered metrics keyed by label, keeping the larger magnitude per key."""

    def __init__(self) -> None:
        self._entries: Dict[str, Tuple[float, ExtractedMetric]] = {}

    def offer(self, key: str, number: float, metric: ExtractedMetric) -> None:
        current = self._entries.get(key)
        if current is not None:
            if number <= current[0]:
                return
            del self._entries[key]
        self._entries[key] = (number, metric)

    def values(self) -> List[Tuple[float, ExtractedMetric]]:
        return list(self._entries.values())


def _count_metrics(text: str) -> List[Tuple[float, ExtractedMetric]]:
    book = _MetricBook()
    for pattern in PATTERNS:
        is_founding = pattern.base_label == FOUNDED_LABEL
        for match in pattern.regex.finditer(text):
            raw = match.group(1)
            number = parse_scaled_value(raw)
            if number < _MIN_VALUE and not is_founding:
                continue
            if not is_founding and _YEAR_RANGE[0] < number < _YEAR_RANGE[1]:
                continue
            context = _context(text, match.start(), match.end())
            metric = ExtractedMetric(
                value=_display_value(raw, number, pattern.base_label),
                label=refine_label(pattern.base_label, context),
                context=context[:_STORED_CONTEXT],
            )
            book.offer(pattern.base_label, number, metric)
    return book.values()


def _percent_metrics(text: str) -> List[Tuple[float, ExtractedMetric]]:
    found: List[Tuple[float, ExtractedMetric]] = []
    for match in _PERCENT_RE.finditer(text):
        percent = int(match.group(1))
        context = _context(text, match.start(), match.end())
        lowered = context.lower()
        positive = any(word in lowered for word in _POSITIVE_WORDS)
        if percent < _PERCENT_THRESHOLD and not positive:
            continue
        label = _rate_label(context)
        if label is None:
            continue
        found.append(
            (
                float(percent),
                ExtractedMetric(value=f"{percent}%", label=label, context=context[:_STORED_CONTEXT]),
            )
        )
    return found


def extract_metrics(text: str) -> List[ExtractedMetric]:
    """Return impact metrics with unique labels, in discovery order.

    When two matches end up with the same label the larger magnitude is
    kept. Running this twice on the same text gives the same result.
    """
    if not text:
        return []

    book = _MetricBook()
    for number, metric in _count_metrics(text) + _percent_metrics(text):
        book.offer(metric.label, number, metric)
    metrics = [metric for _, metric in book.values()]

    labels = {metric.label for metric in metrics}
    for redundant, preferred in _REDUNDANT_PAIRS:
        if redundant in labels and preferred in labels:
            metrics = [m for m in metrics if m.label != redundant]
    return metrics


def metric_number(value: str) -> float | None:
    """Numeric magnitude of a displayed metric value, for charting."""
    if not value or not _NUMBER_RE.search(value.replace(",", "")):
        return None
    return parse_scaled_value(value)
