"""Race a blocking call against a deadline."""

from __future__ import annotations

import logging
import threading
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def with_deadline(
    fn: Callable[[], T],
    seconds: float,
    fallback: T,
    *,
    swallow: bool = False,
    label: str | None = None,
) -> T:
    """Return ``fn()`` or *fallback* when it does not finish within *seconds*.

    The call runs on a daemon thread; a late result is discarded. Exceptions
    raised by *fn* propagate unless *swallow* is set, in which case the
    fallback is returned instead.
    """
    outcome: dict[str, object] = {}
    done = threading.Event()

    def _target() -> None:
        try:
            outcome["value"] = fn()
        except BaseException as exc:  # noqa: BLE001 - re-raised in caller thread
            outcome["error"] = exc
        finally:
            done.set()

    name = label or getattr(fn, "__name__", "deadline")
    worker = threading.Thread(target=_target, name=f"deadline-{name}", daemon=True)
    worker.start()
    if not done.wait(seconds):
        logger.debug("%s exceeded %.1fs deadline; using fallback", name, seconds)
        return fallback

    error = outcome.get("error")
    if error is not None:
        if swallow:
            logger.debug("%s failed; using fallback", name, exc_info=error)
            return fallback
        raise error  # type: ignore[misc]
    return outcome["value"]  # type: ignore[return-value]
