"""Exception types raised by the impactdeck pipeline."""

from __future__ import annotations


class ImpactDeckError(Exception):
    """Base class for pipeline errors."""


class ScreenshotError(ImpactDeckError):
    """Raised when the target page cannot be rendered to an image."""


class AnalysisParseError(ImpactDeckError):
    """Raised when the language model reply holds no parseable JSON object."""


class StepFailed(ImpactDeckError):
    """Raised by the step runner when a required step fails."""

    def __init__(self, step: str, cause: BaseException) -> None:
        super().__init__(str(cause) or cause.__class__.__name__)
        self.step = step
        self.cause = cause
