"""Per-device health monitoring cycle."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from itertools import islice
from threading import Lock
from typing import Callable, Deque, List, Optional, Tuple

from models.telemetry import HealthAlert, HealthStatus, Sample, TelemetryReading
from services.alerts import AlertEngine
from services.analyzers import (
    MemoryAnalyzer,
    MemoryHealthMetrics,
    PowerAnalyzer,
    PowerMetrics,
    TemperatureAnalyzer,
    TemperatureMetrics,
)
from services.scoring import BASE_SCORE, ScoreEngine
from services.window import DEFAULT_CAPACITY, RollingWindow
from settings import get_settings

logger = logging.getLogger(__name__)

DEFAULT_ALERT_HISTORY = 100

Clock = Callable[[], datetime]


def local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass(frozen=True)
class HealthReport:
    """Snapshot produced by one monitoring cycle."""

    overall_score: float
    status: HealthStatus
    temperature: TemperatureMetrics
    power: PowerMetrics
    memory: MemoryHealthMetrics
    thermal_throttling_detected: bool = False
    uptime_hours: float = 0.0
    alerts: Tuple[HealthAlert, ...] = ()

    @classmethod
    def empty(cls, uptime_hours: float = 0.0) -> HealthReport:
        """Report returned before any sample has been processed."""
        return cls(
            overall_score=BASE_SCORE,
            status=HealthStatus.excellent,
            temperature=TemperatureMetrics(),
            power=PowerMetrics(),
            memory=MemoryHealthMetrics(),
            uptime_hours=uptime_hours,
        )


class HealthMonitor:
    """Owns the sample window and alert history for one device.

    ``update`` is the only writer. Callers read through the returned report and
    ``get_recent_alerts``, which are snapshots taken under the monitor lock.
    Reports and their metrics are frozen, so ``latest_report`` hands out the
    stored instance.
    """

    def __init__(
        self,
        window_capacity: int = DEFAULT_CAPACITY,
        alert_capacity: int = DEFAULT_ALERT_HISTORY,
        clock: Clock = local_now,
        device_name: str = "gpu0",
        temperature_analyzer: Optional[TemperatureAnalyzer] = None,
        power_analyzer: Optional[PowerAnalyzer] = None,
        memory_analyzer: Optional[MemoryAnalyzer] = None,
        alert_engine: Optional[AlertEngine] = None,
        score_engine: Optional[ScoreEngine] = None,
    ) -> None:
        if alert_capacity <= 0:
            raise ValueError("Alert history capacity must be positive.")
        self.device_name = device_name
        self.window = RollingWindow(window_capacity)
        self.alert_capacity = alert_capacity
        self._alert_history: Deque[HealthAlert] = deque(maxlen=alert_capacity)
        self._clock = clock
        self.monitoring_start = clock()
        self.temperature_analyzer = temperature_analyzer or TemperatureAnalyzer()
        self.power_analyzer = power_analyzer or PowerAnalyzer()
        self.memory_analyzer = memory_analyzer or MemoryAnalyzer()
        self.alert_engine = alert_engine or AlertEngine()
        self.score_engine = score_engine or ScoreEngine()
        self._last_report: Optional[HealthReport] = None
        self._lock = Lock()

    def update(self, reading: TelemetryReading) -> HealthReport:
        """Run one analysis cycle for a fresh reading."""
        with self._lock:
            now = self._clock()
            sample = Sample.from_reading(reading, timestamp=now)
            self.window.append(sample)

            temperature = self.temperature_analyzer.analyze(self.window, sample)
            power = self.power_analyzer.analyze(self.window, sample)
            memory = self.memory_analyzer.analyze(self.window, sample)

            alerts = self.alert_engine.evaluate(
                temperature, power, memory, sample.throttled, timestamp=now
            )
            self._alert_history.extend(alerts)
            for alert in alerts:
                self._log_alert(alert)

            score = self.score_engine.score(temperature, power, memory, sample.throttled)
            status = self.score_engine.status(score, alerts)

            report = HealthReport(
                overall_score=score,
                status=status,
                temperature=temperature,
                power=power,
                memory=memory,
                thermal_throttling_detected=sample.throttled,
                uptime_hours=self._uptime_hours(now),
                alerts=tuple(alerts),
            )
            self._last_report = report

        logger.debug(
            "Health cycle complete",
            extra={
                "device": self.device_name,
                "score": score,
                "status": status,
                "window_size": len(self.window),
            },
        )
        return report

    def get_recent_alerts(self, limit: int) -> List[HealthAlert]:
        """Most recent alerts from history, newest first."""
        with self._lock:
            return list(islice(reversed(self._alert_history), max(limit, 0)))

    def latest_report(self) -> HealthReport:
        with self._lock:
            if self._last_report is None:
                return HealthReport.empty(self._uptime_hours(self._clock()))
            return self._last_report

    def _uptime_hours(self, now: datetime) -> float:
        return max((now - self.monitoring_start).total_seconds(), 0.0) / 3600.0

    def _log_alert(self, alert: HealthAlert) -> None:
        level = logging.ERROR if alert.severity is HealthStatus.critical else logging.WARNING
        logger.log(
            level,
            alert.message,
            extra={
                "device": self.device_name,
                "alert_kind": alert.kind,
                "severity": alert.severity,
                "value": alert.value,
                "threshold": alert.threshold,
            },
        )


@lru_cache
def build_default_monitor() -> HealthMonitor:
    """Factory that wires a monitor from environment settings."""
    settings = get_settings()
    return HealthMonitor(
        window_capacity=settings.window_capacity,
        alert_capacity=settings.alert_history_capacity,
        device_name=settings.device_name,
    )
