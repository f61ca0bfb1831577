"""Threshold rules that turn derived metrics into alerts."""

from __future__ import annotations

from datetime import datetime
from typing import List

from models.telemetry import AlertKind, HealthAlert, HealthStatus
from services.analyzers import MemoryHealthMetrics, PowerMetrics, TemperatureMetrics

RAPID_HEATING_DELTA = 15.0
POWER_SPIKE_LIMIT = 10
LEAK_SUSPICION_LIMIT = 0.8
THROTTLE_TEMPERATURE = 83.0


class AlertEngine:
    """Stateless rule set.

    Alerts come back grouped temperature, power, memory, throttling. Consumers
    that only show the first few alerts rely on that order.
    """

    def evaluate(
        self,
        temperature: TemperatureMetrics,
        power: PowerMetrics,
        memory: MemoryHealthMetrics,
        is_throttling: bool,
        timestamp: datetime,
    ) -> List[HealthAlert]:
        alerts: List[HealthAlert] = []
        alerts.extend(self.check_temperature(temperature, timestamp))
        alerts.extend(self.check_power(power, timestamp))
        alerts.extend(self.check_memory(memory, timestamp))
        if is_throttling:
            alerts.append(
                HealthAlert(
                    kind=AlertKind.thermal_throttling,
                    message="GPU is thermal throttling - performance reduced",
                    severity=HealthStatus.warning,
                    timestamp=timestamp,
                    value=temperature.current,
                    threshold=THROTTLE_TEMPERATURE,
                )
            )
        return alerts

    def check_temperature(
        self, temperature: TemperatureMetrics, timestamp: datetime
    ) -> List[HealthAlert]:
        alerts: List[HealthAlert] = []
        current = temperature.current
        if current >= temperature.critical:
            alerts.append(
                HealthAlert(
                    kind=AlertKind.temperature_critical,
                    message=f"CRITICAL: GPU temperature {current:.1f}°C exceeds safe limits!",
                    severity=HealthStatus.critical,
                    timestamp=timestamp,
                    value=current,
                    threshold=temperature.critical,
                )
            )
        elif current >= temperature.max_safe:
            alerts.append(
                HealthAlert(
                    kind=AlertKind.temperature_high,
                    message=f"WARNING: GPU temperature {current:.1f}°C is high",
                    severity=HealthStatus.warning,
                    timestamp=timestamp,
                    value=current,
                    threshold=temperature.max_safe,
                )
            )

        if temperature.trend_5min > RAPID_HEATING_DELTA:
            alerts.append(
                HealthAlert(
                    kind=AlertKind.temperature_high,
                    message=(
                        f"Temperature rising rapidly (+{temperature.trend_5min:.1f}°C in 5min)"
                    ),
                    severity=HealthStatus.warning,
                    timestamp=timestamp,
                    value=temperature.trend_5min,
                    threshold=RAPID_HEATING_DELTA,
                )
            )
        return alerts

    def check_power(self, power: PowerMetrics, timestamp: datetime) -> List[HealthAlert]:
        if power.power_spikes <= POWER_SPIKE_LIMIT:
            return []
        return [
            HealthAlert(
                kind=AlertKind.power_spike,
                message=(
                    f"Detected {power.power_spikes} power spikes - "
                    "check power supply stability"
                ),
                severity=HealthStatus.warning,
                timestamp=timestamp,
                value=float(power.power_spikes),
                threshold=float(POWER_SPIKE_LIMIT),
            )
        ]

    def check_memory(
        self, memory: MemoryHealthMetrics, timestamp: datetime
    ) -> List[HealthAlert]:
        if memory.leak_suspicion <= LEAK_SUSPICION_LIMIT:
            return []
        return [
            HealthAlert(
                kind=AlertKind.memory_leak_suspected,
                message="Possible memory leak detected - memory usage increasing steadily",
                severity=HealthStatus.warning,
                timestamp=timestamp,
                value=memory.leak_suspicion,
                threshold=LEAK_SUSPICION_LIMIT,
            )
        ]
