"""Structured per-run log: JSON event lines plus a final timing table."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, List, Mapping

from ..io.models import PipelineRunLog, StepResult

logger = logging.getLogger(__name__)

_PREFIX = "[PIPELINE]"


class PipelineLogger:
    """Records step outcomes for one run and emits them as searchable JSON."""

    def __init__(self, slug: str, url: str) -> None:
        self.slug = slug
        self.url = url
        self.steps: List[StepResult] = []
        self._started = time.monotonic()
        self._current: tuple[str, float] | None = None
        self.event("pipeline_start", {"slug": slug, "url": url})

    def event(self, name: str, payload: Mapping[str, Any], level: int = logging.INFO) -> None:
        record = {"event": name, "slug": self.slug, **payload}
        logger.log(level, "%s %s", _PREFIX, json.dumps(record, default=str))

    def start_step(self, step: str) -> None:
        if self._current is not None:
            self.end_step("warning", {"note": "Step ended implicitly"})
        self._current = (step, time.monotonic())
        self.event("step_start", {"step": step})

    def end_step(
        self,
        status: str,
        data: Mapping[str, Any] | None = None,
        error: str | None = None,
    ) -> StepResult | None:
        if self._current is None:
            logger.warning("end_step called without an active step")
            return None
        name, started = self._current
        self._current = None
        return self.record(name, status, int((time.monotonic() - started) * 1000), data, error)

    def record(
        self,
        step: str,
        status: str,
        duration_ms: int,
        data: Mapping[str, Any] | None = None,
        error: str | None = None,
    ) -> StepResult:
        result = StepResult(
            step=step,
            status=status,
            duration_ms=duration_ms,
            data=dict(data) if data else None,
            error=error,
        )
        self.steps.append(result)
        payload: Dict[str, Any] = {
            "step": step,
            "status": status,
            "duration_ms": duration_ms,
            "duration_sec": f"{duration_ms / 1000:.1f}",
            **(result.data or {}),
        }
        if error:
            payload["error"] = error
        level = {"error": logging.ERROR, "warning": logging.WARNING}.get(status, logging.INFO)
        self.event("step_end", payload, level)
        return result

    def finalize(
        self,
        status: str,
        summary: Mapping[str, Any] | None = None,
        error: str | None = None,
    ) -> PipelineRunLog:
        total_ms = int((time.monotonic() - self._started) * 1000)
        run_log = PipelineRunLog(
            slug=self.slug,
            url=self.url,
            steps=list(self.steps),
            total_duration_ms=total_ms,
            status=status,
            error=error,
            summary=dict(summary or {}),
        )
        self.event(
            "pipeline_complete",
            {
                "status": status,
                "total_duration_ms": total_ms,
                "total_duration_sec": f"{total_ms / 1000:.1f}",
                "steps_completed": len(self.steps),
                "steps_failed": sum(1 for s in self.steps if s.status == "error"),
                "steps_warning": sum(1 for s in self.steps if s.status == "warning"),
                **run_log.summary,
                **({"error": error} if error else {}),
            },
            logging.INFO if status == "success" else logging.ERROR,
        )
        logger.info("%s", format_timing_table(run_log))
        return run_log


_STATUS_MARKS = {"success": "ok", "warning": "warn", "error": "FAIL"}


def format_timing_table(run_log: PipelineRunLog) -> str:
    """Human readable per-step timing summary."""
    lines = [
        "",
        "=" * 60,
        f"PIPELINE SUMMARY: {run_log.slug}",
        "=" * 60,
        f"Status: {run_log.status.upper()}",
        f"Total: {run_log.total_duration_ms / 1000:.1f}s",
        "",
        "Step timings:",
    ]
    for step in run_log.steps:
        mark = _STATUS_MARKS.get(step.status, step.status)
        lines.append(f"  [{mark:>4}] {step.step:<24} {step.duration_ms / 1000:>6.1f}s")
    if run_log.summary:
        lines.append("")
        for key, value in run_log.summary.items():
            lines.append(f"  {key}: {value}")
    if run_log.error:
        lines.append("")
        lines.append(f"Error: {run_log.error}")
    lines.append("=" * 60)
    return "\n".join(lines)
