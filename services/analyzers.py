"""Per-domain metrics derived from the rolling window each cycle."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from itertools import islice

from models.telemetry import Sample
from services.window import RollingWindow

MAX_SAFE_TEMPERATURE = 80.0
CRITICAL_TEMPERATURE = 90.0
POWER_SPIKE_DELTA_W = 20.0
POWER_SPIKE_PAIRS = 10
FRAGMENTATION_MIN_SAMPLES = 10
FRAGMENTATION_SAMPLE_COUNT = 60
LEAK_TREND_FLOOR_MB = 10.0
LEAK_TREND_SCALE_MB = 50.0

_BYTES_PER_MB = 1024 * 1024


@dataclass(frozen=True)
class TemperatureMetrics:
    current: float = 0.0
    max_safe: float = MAX_SAFE_TEMPERATURE
    critical: float = CRITICAL_TEMPERATURE
    trend_5min: float = 0.0
    # Sample count above max_safe; equals seconds only at a steady 1 Hz cadence.
    time_above_80c: int = 0
    peak_today: float = 0.0


@dataclass(frozen=True)
class PowerMetrics:
    current_draw: float = 0.0
    efficiency: float = 0.0
    power_spikes: int = 0
    avg_draw_1hr: float = 0.0
    has_power_data: bool = False


@dataclass(frozen=True)
class MemoryHealthMetrics:
    usage_trend: float = 0.0
    fragmentation_score: float = 0.0
    leak_suspicion: float = 0.0
    peak_usage_today: int = 0


def start_of_day(moment: datetime) -> datetime:
    """Local midnight on the same date as ``moment``.

    Keeps the UTC offset of ``moment``, so on a DST change day the result is an
    hour away from the real local midnight.
    """
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


class TemperatureAnalyzer:
    """Trend, time over the safe limit, and today's peak."""

    def analyze(self, window: RollingWindow, current: Sample) -> TemperatureMetrics:
        temperature = current.temperature

        reference = window.first_since(current.timestamp - timedelta(minutes=5))
        trend = temperature - reference.temperature if reference is not None else 0.0

        time_above = sum(
            1 for sample in window if sample.temperature > MAX_SAFE_TEMPERATURE
        )

        peak = max(
            (sample.temperature for sample in window.since(start_of_day(current.timestamp))),
            default=temperature,
        )

        return TemperatureMetrics(
            current=temperature,
            trend_5min=trend,
            time_above_80c=time_above,
            peak_today=max(peak, temperature),
        )


class PowerAnalyzer:
    """Efficiency, short-horizon spike count, and the window average."""

    def analyze(self, window: RollingWindow, current: Sample) -> PowerMetrics:
        power = current.power
        efficiency = current.utilization / power if power > 0 else 0.0

        newer = window.latest(POWER_SPIKE_PAIRS)
        older = islice(window.latest(POWER_SPIKE_PAIRS + 1), 1, None)
        spikes = sum(
            1
            for after, before in zip(newer, older)
            if after.power - before.power > POWER_SPIKE_DELTA_W
        )

        if len(window):
            average = sum(sample.power for sample in window) / len(window)
        else:
            average = power

        return PowerMetrics(
            current_draw=power,
            efficiency=efficiency,
            power_spikes=spikes,
            avg_draw_1hr=average,
            has_power_data=current.has_power_data,
        )


class MemoryAnalyzer:
    """Usage trend plus volatility and leak heuristics.

    ``fragmentation_score`` is the coefficient of variation of recent usage. It
    tracks how jumpy allocation is, not how fragmented the allocator really is.
    """

    def analyze(self, window: RollingWindow, current: Sample) -> MemoryHealthMetrics:
        used = current.memory_used

        reference = window.first_since(current.timestamp - timedelta(minutes=1))
        if reference is not None:
            trend = (used - reference.memory_used) / _BYTES_PER_MB
        else:
            trend = 0.0

        fragmentation = 0.0
        if len(window) > FRAGMENTATION_MIN_SAMPLES:
            recent = [float(s.memory_used) for s in window.latest(FRAGMENTATION_SAMPLE_COUNT)]
            mean = sum(recent) / len(recent)
            if mean > 0:
                variance = sum((value - mean) ** 2 for value in recent) / len(recent)
                fragmentation = min(math.sqrt(variance) / mean, 1.0)

        leak = 0.0
        if trend > LEAK_TREND_FLOOR_MB:
            leak = min(trend / LEAK_TREND_SCALE_MB, 1.0)

        peak = max(
            (sample.memory_used for sample in window.since(start_of_day(current.timestamp))),
            default=used,
        )

        return MemoryHealthMetrics(
            usage_trend=trend,
            fragmentation_score=fragmentation,
            leak_suspicion=leak,
            peak_usage_today=peak,
        )
