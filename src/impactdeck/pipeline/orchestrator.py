"""Sequence one deck run, from URL or manual facts to published artifacts."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Protocol

from ..analysis.llm import LanguageModelClient, analysis_summary, analyze_manual, analyze_screenshot
from ..brand.resolve import apply_color_overrides, resolve_brand
from ..config import Settings
from ..crawl.about import discover_about_content
from ..crawl.browser import capture_screenshot, screenshot_html
from ..crawl.deadline import with_deadline
from ..crawl.logo_discovery import discover_logo
from ..errors import StepFailed
from ..extract.colors import extract_colors
from ..extract.metrics import extract_metrics
from ..extract.normalize import trim_and_publish_logo
from ..extract.vision import VisionClient
from ..io.models import (
    BrandProfile,
    CaptureContext,
    ColorSignals,
    DeckArtifacts,
    DeckRequest,
    DetectedFonts,
    LogoColorProfile,
    LogoResult,
    ManualDeckRequest,
    PipelineRunLog,
)
from ..io.outputs import Publisher, publish_deck
from ..render.deck import render_deck, render_og
from .logger import PipelineLogger
from .steps import ProgressCallback, StepRunner, required, safe

logger = logging.getLogger(__name__)

ABOUT_DEADLINE = 45.0
_TIMED_OUT = object()


class DeckStore(Protocol):
    """Persistence collaborator told about each run's terminal state."""

    def complete(
        self,
        slug: str,
        deck_url: str,
        og_image_url: str,
        sector: str,
        brand_profile: Mapping[str, Any],
        org_name: str,
    ) -> None:
        ...

    def fail(self, slug: str, message: str) -> None:
        ...


class JsonFileStore:
    """Keeps one JSON status document per slug under *root*."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self._lock = threading.Lock()

    def _write(self, slug: str, payload: Mapping[str, Any]) -> Path:
        path = self.root / f"{slug}.json"
        with self._lock:
            self.root.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")
        return path

    def read(self, slug: str) -> Dict[str, Any]:
        return json.loads((self.root / f"{slug}.json").read_text(encoding="utf-8"))

    def complete(
        self,
        slug: str,
        deck_url: str,
        og_image_url: str,
        sector: str,
        brand_profile: Mapping[str, Any],
        org_name: str,
    ) -> None:
        self._write(
            slug,
            {
                "slug": slug,
                "status": "complete",
                "deck_url": deck_url,
                "og_image_url": og_image_url,
                "sector": sector,
                "org_name": org_name,
                "brand_profile": dict(brand_profile),
            },
        )

    def fail(self, slug: str, message: str) -> None:
        self._write(slug, {"slug": slug, "status": "failed", "error": message})


@dataclass(slots=True)
class DeckRun:
    artifacts: DeckArtifacts
    profile: BrandProfile
    run_log: PipelineRunLog


def _about_with_deadline(ctx: CaptureContext, seconds: float) -> str:
    content = with_deadline(
        lambda: discover_about_content(ctx.url, ctx.domain, ctx.origin),
        seconds,
        _TIMED_OUT,
        label="about",
    )
    if content is _TIMED_OUT:
        raise TimeoutError(f"About page discovery exceeded {seconds:.0f}s")
    return content  # type: ignore[return-value]


def _logo_summary(result: LogoResult) -> Mapping[str, Any]:
    return {
        "logo_source": result.logo_source,
        "logo_found": bool(result.logo_url),
        "header_bg": result.header_bg_color,
        "heading_font": result.detected_fonts.heading,
    }


def _colors_summary(signals: ColorSignals) -> Mapping[str, Any]:
    return {
        "vision_colors": len(signals.vision_colors),
        "logo_colors": len(signals.logo_colors.dominant),
        "logo_color_source": signals.logo_colors.source,
    }


def _profile_summary(profile: BrandProfile) -> Mapping[str, Any]:
    return {
        "org_name": profile.org_name,
        "sector": profile.sector,
        "primary": profile.colors["primary"],
        "accent": profile.colors["accent"],
        "metrics": len(profile.metrics),
    }


class DeckPipeline:
    """Runs deck requests one step at a time, applying each step's failure policy.

    The pipeline owns the language-model client; collaborators are injected
    so a batch of runs can share one client and one publisher.
    """

    def __init__(
        self,
        settings: Settings,
        store: DeckStore,
        publisher: Publisher,
        llm: LanguageModelClient | None = None,
        vision: VisionClient | None = None,
        progress: ProgressCallback | None = None,
        about_deadline: float = ABOUT_DEADLINE,
    ) -> None:
        self.settings = settings
        self.store = store
        self.publisher = publisher
        self.llm = llm or LanguageModelClient(settings.anthropic_api_key, settings.anthropic_model)
        self.vision = vision or VisionClient(settings.google_vision_api_key)
        self.progress = progress
        self.about_deadline = about_deadline

    def run(self, request: DeckRequest) -> DeckRun:
        """Generate and publish a deck for a website."""
        ctx = CaptureContext.from_url(request.url)
        log = PipelineLogger(request.slug, ctx.url)
        runner = StepRunner(log, self.progress)
        facts: Dict[str, Any] = {"logo_found": False, "metrics_found": 0}

        try:
            ctx.screenshot = runner.run(
                required(
                    "01_screenshot",
                    lambda: capture_screenshot(ctx.url),
                    summarize=lambda png: {"size_kb": round(len(png) / 1024)},
                    progress=5,
                    label="Taking screenshot",
                )
            )
            logo = runner.run(
                required(
                    "02_discover_logo",
                    lambda: discover_logo(ctx.url, ctx.domain),
                    summarize=_logo_summary,
                    progress=10,
                    label="Finding logo",
                )
            )
            facts["logo_found"] = bool(logo.logo_url)
            facts["logo_source"] = logo.logo_source
            signals = runner.run(
                required(
                    "03_extract_colors",
                    lambda: extract_colors(ctx, logo.logo_url, self.vision),
                    summarize=_colors_summary,
                    progress=15,
                    label="Extracting brand colors",
                )
            )
            about = runner.run(
                safe(
                    "04_discover_about",
                    lambda: _about_with_deadline(ctx, self.about_deadline),
                    "",
                    summarize=lambda text: {"chars": len(text)},
                    progress=20,
                    label="Reading mission statement",
                )
            )
            metrics = runner.run(
                required(
                    "05_extract_metrics",
                    lambda: extract_metrics(about),
                    summarize=lambda found: {
                        "count": len(found),
                        "labels": [m.label for m in found],
                    },
                    progress=25,
                    label="Crunching the numbers",
                )
            )
            facts["metrics_found"] = len(metrics)
            analysis = runner.run(
                required(
                    "06_analyze",
                    lambda: analyze_screenshot(
                        self.llm, ctx.screenshot, ctx.url, request.org_name, logo.logo_url, metrics
                    ),
                    summarize=analysis_summary,
                    progress=35,
                    label="Analyzing with AI",
                )
            )
            profile = runner.run(
                required(
                    "07_resolve_brand",
                    lambda: resolve_brand(
                        analysis,
                        signals.vision_colors,
                        signals.logo_colors,
                        metrics,
                        logo.detected_fonts,
                        logo.logo_url,
                        logo.logo_source,
                        logo.header_bg_color,
                        ctx.url,
                        image_base_url=self.settings.image_base_url,
                    ),
                    summarize=_profile_summary,
                    progress=50,
                    label="Processing brand identity",
                )
            )
            artifacts = self._render_and_publish(runner, request.slug, profile)
        except StepFailed as exc:
            self._fail(log, runner, request.slug, exc, facts)
            raise

        return self._complete(log, runner, request.slug, profile, artifacts, facts)

    def run_manual(self, request: ManualDeckRequest) -> DeckRun:
        """Generate and publish a deck from operator-supplied facts."""
        manual = request.manual
        log = PipelineLogger(request.slug, "manual-entry")
        runner = StepRunner(log, self.progress)
        logo_source = "user-upload" if manual.logo_url else "none"
        facts: Dict[str, Any] = {
            "logo_found": bool(manual.logo_url),
            "logo_source": logo_source,
            "metrics_found": len(manual.metrics),
        }

        try:
            analysis = runner.run(
                required(
                    "01_analyze_manual",
                    lambda: analyze_manual(self.llm, manual),
                    summarize=analysis_summary,
                    progress=10,
                    label="Analyzing with AI",
                )
            )
            if manual.donate_url:
                analysis.donate_url = manual.donate_url

            def _resolve() -> BrandProfile:
                profile = resolve_brand(
                    analysis,
                    [],
                    LogoColorProfile(source="manual"),
                    manual.metrics,
                    DetectedFonts(),
                    manual.logo_url,
                    logo_source,
                    None,
                    "",
                    image_base_url=self.settings.image_base_url,
                )
                return apply_color_overrides(profile, manual.primary_color, manual.accent_color)

            profile = runner.run(
                required(
                    "02_resolve_brand",
                    _resolve,
                    summarize=_profile_summary,
                    progress=40,
                    label="Processing brand identity",
                )
            )
            artifacts = self._render_and_publish(runner, request.slug, profile)
        except StepFailed as exc:
            self._fail(log, runner, request.slug, exc, facts)
            raise

        return self._complete(log, runner, request.slug, profile, artifacts, facts)

    def _render_and_publish(
        self, runner: StepRunner, slug: str, profile: BrandProfile
    ) -> DeckArtifacts:
        original_logo = profile.logo_url
        if original_logo:
            profile.logo_url = runner.run(
                safe(
                    "trim_logo",
                    lambda: trim_and_publish_logo(original_logo, slug, self.publisher),
                    original_logo,
                    summarize=lambda url: {"trimmed": url != original_logo},
                    progress=55,
                    label="Optimizing logo",
                )
            )
        deck_html = runner.run(
            required(
                "generate_deck_html",
                lambda: render_deck(slug, profile, self.settings.site_url),
                summarize=lambda html: {"html_size_kb": round(len(html) / 1024)},
                progress=60,
                label="Building your story deck",
            )
        )
        og_html = runner.run(
            required(
                "generate_og_html",
                lambda: render_og(slug, profile, self.settings.image_base_url),
                summarize=lambda html: {"html_size": len(html)},
                progress=70,
                label="Creating social preview",
            )
        )
        og_png = runner.run(
            required(
                "screenshot_og",
                lambda: screenshot_html(og_html),
                summarize=lambda png: {"size_kb": round(len(png) / 1024)},
                progress=80,
                label="Rendering preview image",
            )
        )
        return runner.run(
            required(
                "publish",
                lambda: publish_deck(self.publisher, slug, deck_html, og_png),
                summarize=lambda a: {"deck_url": a.deck_url, "og_image_url": a.og_image_url},
                progress=90,
                label="Publishing your deck",
            )
        )

    def _complete(
        self,
        log: PipelineLogger,
        runner: StepRunner,
        slug: str,
        profile: BrandProfile,
        artifacts: DeckArtifacts,
        facts: Mapping[str, Any],
    ) -> DeckRun:
        log.start_step("update_store")
        try:
            self.store.complete(
                slug,
                artifacts.deck_url,
                artifacts.og_image_url,
                profile.sector,
                profile.to_dict(),
                profile.org_name,
            )
        except Exception as exc:  # noqa: BLE001 - artifacts already exist
            log.end_step("warning", {"note": "Deck exists but store update failed"}, str(exc))
        else:
            log.end_step("success")

        run_log = log.finalize(
            "success",
            {
                "org_name": profile.org_name,
                "deck_url": artifacts.deck_url,
                "og_image_url": artifacts.og_image_url,
                "sector": profile.sector,
                **facts,
            },
        )
        runner.report("Complete", 100)
        return DeckRun(artifacts=artifacts, profile=profile, run_log=run_log)

    def _fail(
        self,
        log: PipelineLogger,
        runner: StepRunner,
        slug: str,
        exc: StepFailed,
        facts: Mapping[str, Any],
    ) -> None:
        message = str(exc)
        log.finalize("failed", {"failed_step": exc.step, **facts}, message)
        try:
            self.store.fail(slug, message)
        except Exception:  # noqa: BLE001 - the original failure is what the caller needs
            logger.exception("Could not record failure for %s", slug)
        runner.report("Failed", runner.percent)
