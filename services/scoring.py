"""Weighted-penalty health score and status tiers."""

from __future__ import annotations

from typing import Iterable

from models.telemetry import HealthAlert, HealthStatus
from services.analyzers import MemoryHealthMetrics, PowerMetrics, TemperatureMetrics

BASE_SCORE = 100.0


class ScoreEngine:
    """Pure scoring component that can be unit tested in isolation."""

    def score(
        self,
        temperature: TemperatureMetrics,
        power: PowerMetrics,
        memory: MemoryHealthMetrics,
        is_throttling: bool,
    ) -> float:
        score = BASE_SCORE

        if temperature.current > 90.0:
            score -= 30.0
        elif temperature.current > 85.0:
            score -= 20.0
        elif temperature.current > 80.0:
            score -= 10.0

        if temperature.trend_5min > 10.0:
            score -= 15.0
        if temperature.time_above_80c > 1800:
            score -= 10.0

        if is_throttling:
            score -= 25.0

        if memory.leak_suspicion > 0.7:
            score -= 20.0
        elif memory.leak_suspicion > 0.3:
            score -= 10.0

        if memory.fragmentation_score > 0.7:
            score -= 15.0

        if power.efficiency < 0.5:
            score -= 10.0
        if power.power_spikes > 5:
            score -= 5.0

        return min(max(score, 0.0), BASE_SCORE)

    def status(self, score: float, alerts: Iterable[HealthAlert]) -> HealthStatus:
        """Alert severities win over the score bands."""
        severities = {alert.severity for alert in alerts}

        if HealthStatus.critical in severities or score < 30.0:
            return HealthStatus.critical
        if HealthStatus.warning in severities or score < 60.0:
            return HealthStatus.warning
        if score < 85.0:
            return HealthStatus.good
        return HealthStatus.excellent
