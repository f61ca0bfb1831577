"""Unit tests for the rolling sample window."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from models.telemetry import Sample
from services.window import RollingWindow

_START = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _sample(second: int, temperature: float = 50.0) -> Sample:
    return Sample(
        timestamp=_START + timedelta(seconds=second),
        temperature=temperature,
        memory_used=0,
        memory_total=0,
        utilization=0.0,
    )


def test_window_rejects_non_positive_capacity() -> None:
    with pytest.raises(ValueError):
        RollingWindow(0)


def test_window_never_exceeds_capacity_and_evicts_oldest_first() -> None:
    window = RollingWindow(capacity=5)

    for second in range(8):
        window.append(_sample(second))
        assert len(window) <= 5

    kept = [int((s.timestamp - _START).total_seconds()) for s in window]
    assert kept == [3, 4, 5, 6, 7]


def test_iteration_is_restartable() -> None:
    window = RollingWindow(capacity=3)
    for second in range(3):
        window.append(_sample(second))

    assert list(window) == list(window)
    assert len(list(window)) == 3


def test_latest_yields_newest_first() -> None:
    window = RollingWindow(capacity=10)
    for second in range(4):
        window.append(_sample(second))

    latest = [int((s.timestamp - _START).total_seconds()) for s in window.latest(2)]

    assert latest == [3, 2]
    assert list(window.latest(0)) == []
    assert len(list(window.latest(99))) == 4


def test_first_since_picks_oldest_sample_at_or_after_cutoff() -> None:
    window = RollingWindow(capacity=10)
    for second in range(0, 50, 10):
        window.append(_sample(second, temperature=float(second)))

    match = window.first_since(_START + timedelta(seconds=15))

    assert match is not None
    assert match.temperature == 20.0
    assert window.first_since(_START + timedelta(seconds=20)).temperature == 20.0
    assert window.first_since(_START + timedelta(minutes=5)) is None
