from __future__ import annotations

import time

import pytest

from impactdeck.crawl.deadline import with_deadline


def test_returns_value_when_fast():
    assert with_deadline(lambda: 42, 1.0, None) == 42


def test_returns_fallback_on_timeout():
    start = time.monotonic()
    assert with_deadline(lambda: time.sleep(2) or "late", 0.05, "fallback") == "fallback"
    assert time.monotonic() - start < 1.0


def test_errors_propagate_unless_swallowed():
    def boom():
        raise ValueError("bad")

    with pytest.raises(ValueError):
        with_deadline(boom, 1.0, None)
    assert with_deadline(boom, 1.0, "fallback", swallow=True) == "fallback"
