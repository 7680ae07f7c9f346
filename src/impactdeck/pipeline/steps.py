"""Step descriptors and the generic loop that applies their failure policy."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Mapping, TypeVar

from ..errors import StepFailed
from .logger import PipelineLogger

logger = logging.getLogger(__name__)

T = TypeVar("T")

ProgressCallback = Callable[[str, int], None]


@dataclass(frozen=True, slots=True)
class Step(Generic[T]):
    """One pipeline stage.

    ``required`` steps abort the run when they raise; the others log a
    warning and yield ``default`` instead.
    """

    name: str
    fn: Callable[[], T]
    required: bool = True
    default: Any = None
    summarize: Callable[[T], Mapping[str, Any]] | None = None
    progress: int | None = None
    label: str | None = None


def required(name: str, fn: Callable[[], T], **kwargs: Any) -> Step[T]:
    return Step(name=name, fn=fn, required=True, **kwargs)


def safe(name: str, fn: Callable[[], T], default: T, **kwargs: Any) -> Step[T]:
    return Step(name=name, fn=fn, required=False, default=default, **kwargs)


class StepRunner:
    """Runs steps in order, records them, and reports monotonic progress."""

    def __init__(self, log: PipelineLogger, progress: ProgressCallback | None = None) -> None:
        self.log = log
        self.progress = progress
        self.percent = 0

    def report(self, label: str, percent: int) -> None:
        self.percent = max(self.percent, percent)
        if self.progress is None:
            return
        try:
            self.progress(label, self.percent)
        except Exception:  # noqa: BLE001 - progress is observability only
            logger.warning("Progress callback failed for %r", label, exc_info=True)

    def run(self, step: Step[T]) -> T:
        self.log.start_step(step.name)
        try:
            value = step.fn()
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            if step.required:
                self.log.end_step("error", error=message)
                raise StepFailed(step.name, exc) from exc
            self.log.end_step("warning", {"using_default": True}, error=message)
            value = step.default
        else:
            data = None
            if step.summarize is not None:
                try:
                    data = step.summarize(value)
                except Exception:  # noqa: BLE001 - summaries are observability only
                    logger.debug("Could not summarize step %s", step.name, exc_info=True)
            self.log.end_step("success", data)
        if step.progress is not None:
            self.report(step.label or step.name, step.progress)
        return value
