"""Command-line interface for the impactdeck pipeline."""

from __future__ import annotations

import argparse
import json
import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Iterable

import pandas as pd
from tqdm import tqdm

from .analysis.llm import LanguageModelClient
from .config import Settings
from .crawl.logo_discovery import discover_logo
from .errors import StepFailed
from .extract.vision import VisionClient
from .io.models import CaptureContext, DeckRequest, ManualDeckRequest, ManualInput
from .io.outputs import publisher_from_settings, write_run_log
from .pipeline.orchestrator import DeckPipeline, DeckRun, JsonFileStore

DEFAULT_OUT_DIR = Path("out")
DEFAULT_CONCURRENCY = 3

_SLUG_UNSAFE = re.compile(r"[^a-z0-9]+")


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for the deck pipeline."""
    parser = argparse.ArgumentParser(
        description="Build a branded impact deck from a nonprofit's website."
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--url", help="Website URL to build a single deck for.")
    source.add_argument(
        "--input",
        help="Path to a text file containing website URLs, one per line.",
    )
    source.add_argument(
        "--manual",
        help="Path to a JSON file with operator-supplied organization facts.",
    )
    parser.add_argument("--org-name", default="", help="Organization name hint.")
    parser.add_argument("--slug", default=None, help="Slug to publish the deck under.")
    parser.add_argument(
        "--out",
        default=str(DEFAULT_OUT_DIR),
        help="Directory where run logs, status files and summaries are written.",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=DEFAULT_CONCURRENCY,
        help="Maximum number of decks generated at once in batch mode.",
    )
    parser.add_argument(
        "--debug-logo",
        action="store_true",
        help="Only run logo discovery for the given URL(s) and print the result.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ...).",
    )
    return parser.parse_args(list(argv) if argv is not None else None)


def read_input(path: Path) -> list[str]:
    """Read newline separated entries from *path* and return non-empty lines."""
    if not path.exists():
        raise FileNotFoundError(f"Input file does not exist: {path}")
    lines = [line.strip() for line in path.read_text(encoding="utf-8-sig").splitlines()]
    return [line for line in lines if line and not line.startswith("#")]


def make_slug(text: str) -> str:
    slug = _SLUG_UNSAFE.sub("-", text.lower()).strip("-")
    return slug or "deck"


def _slug_for_url(url: str) -> str:
    return make_slug(CaptureContext.from_url(url).domain)


def _debug_logo(urls: list[str]) -> None:
    """Print the logo discovery result for each URL."""
    for url in urls:
        ctx = CaptureContext.from_url(url)
        result = discover_logo(ctx.url, ctx.domain)
        print(f"[logo] {ctx.domain}: {result.logo_source} -> {result.logo_url or 'None'}")
        print(
            f"  header_bg={result.header_bg_color or 'None'}"
            f" heading={result.detected_fonts.heading or 'None'}"
            f" body={result.detected_fonts.body or 'None'}"
        )


def _print_progress(slug: str):
    def _report(label: str, percent: int) -> None:
        logging.getLogger(__name__).info("[%s] %3d%% %s", slug, percent, label)

    return _report


def _build_pipeline(settings: Settings, out_dir: Path, llm: LanguageModelClient, progress=None) -> DeckPipeline:
    return DeckPipeline(
        settings,
        store=JsonFileStore(out_dir / "status"),
        publisher=publisher_from_settings(settings),
        llm=llm,
        vision=VisionClient(settings.google_vision_api_key),
        progress=progress,
    )


def _run_row(slug: str, url: str, outcome: DeckRun | None, error: StepFailed | None) -> dict[str, Any]:
    if outcome is not None:
        summary = outcome.run_log.summary
        return {
            "slug": slug,
            "url": url,
            "status": "success",
            "deck_url": outcome.artifacts.deck_url,
            "og_image_url": outcome.artifacts.og_image_url,
            "org_name": outcome.profile.org_name,
            "sector": outcome.profile.sector,
            "logo_source": outcome.profile.logo_source,
            "metrics": len(outcome.profile.metrics),
            "primary": outcome.profile.colors["primary"],
            "duration_ms": outcome.run_log.total_duration_ms,
            "failed_step": None,
            "error": None,
            "warnings": sum(1 for s in outcome.run_log.steps if s.status == "warning"),
            "logo_found": summary.get("logo_found"),
        }
    return {
        "slug": slug,
        "url": url,
        "status": "failed",
        "failed_step": error.step if error else None,
        "error": str(error) if error else None,
    }


def _run_single(pipeline: DeckPipeline, request: DeckRequest, out_dir: Path) -> DeckRun:
    outcome = pipeline.run(request)
    write_run_log(out_dir / "logs" / f"{request.slug}.json", outcome.run_log)
    return outcome


def _run_batch(
    settings: Settings, urls: list[str], out_dir: Path, concurrency: int
) -> list[dict[str, Any]]:
    """Generate decks for *urls* with at most *concurrency* runs in flight."""
    llm = LanguageModelClient(settings.anthropic_api_key, settings.anthropic_model)
    rows: list[dict[str, Any]] = []
    workers = max(1, concurrency)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {}
        for url in urls:
            slug = _slug_for_url(url)
            pipeline = _build_pipeline(settings, out_dir, llm)
            request = DeckRequest(url=url, org_name="", slug=slug)
            futures[pool.submit(_run_single, pipeline, request, out_dir)] = (slug, url)
        for future in tqdm(as_completed(futures), total=len(futures), desc="Decks", unit="deck"):
            slug, url = futures[future]
            try:
                rows.append(_run_row(slug, url, future.result(), None))
            except StepFailed as exc:
                rows.append(_run_row(slug, url, None, exc))
    return rows


def _write_run_table(rows: list[dict[str, Any]], out_dir: Path) -> None:
    if not rows:
        print("[runs] no runs to write")
        return
    df = pd.DataFrame(rows)
    runs_path = out_dir / "runs.parquet"
    runs_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_parquet(runs_path, index=False, engine="pyarrow")
    succeeded = int((df["status"] == "success").sum())
    print(f"[runs] wrote {len(df)} rows to {runs_path} ({succeeded} succeeded)")


def main(argv: Iterable[str] | None = None) -> int:
    """Entry point for the CLI."""
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = Settings.from_env()
    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)

    if args.manual:
        data = json.loads(Path(args.manual).read_text(encoding="utf-8"))
        manual = ManualInput.from_mapping(data)
        slug = args.slug or make_slug(manual.org_name)
        llm = LanguageModelClient(settings.anthropic_api_key, settings.anthropic_model)
        pipeline = _build_pipeline(settings, out_dir, llm, _print_progress(slug))
        try:
            outcome = pipeline.run_manual(ManualDeckRequest(manual=manual, slug=slug))
        except StepFailed as exc:
            print(f"[failed] {slug}: {exc.step}: {exc}")
            return 1
        write_run_log(out_dir / "logs" / f"{slug}.json", outcome.run_log)
        print(f"[deck] {outcome.artifacts.deck_url}")
        print(f"[og] {outcome.artifacts.og_image_url}")
        return 0

    urls = [args.url] if args.url else read_input(Path(args.input))
    if args.debug_logo:
        _debug_logo(urls)
        return 0

    if args.url:
        slug = args.slug or _slug_for_url(args.url)
        llm = LanguageModelClient(settings.anthropic_api_key, settings.anthropic_model)
        pipeline = _build_pipeline(settings, out_dir, llm, _print_progress(slug))
        request = DeckRequest(url=args.url, org_name=args.org_name, slug=slug)
        try:
            outcome = _run_single(pipeline, request, out_dir)
        except StepFailed as exc:
            print(f"[failed] {slug}: {exc.step}: {exc}")
            return 1
        print(f"[deck] {outcome.artifacts.deck_url}")
        print(f"[og] {outcome.artifacts.og_image_url}")
        return 0

    print(f"[input] {len(urls)} URLs loaded")
    rows = _run_batch(settings, urls, out_dir, args.concurrency)
    _write_run_table(rows, out_dir)
    return 0 if all(row["status"] == "success" for row in rows) else 1


if __name__ == "__main__":
    raise SystemExit(main())
