"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass(frozen=True, slots=True)
class TelemetryReading:
    """Flat field set delivered by a sampler for one tick."""

    temperature: float
    memory_used: int
    memory_total: int
    utilization: float
    power_draw: Optional[float] = None
    gpu_clock: Optional[int] = None
    memory_clock: Optional[int] = None
    throttled: bool = False


@dataclass(frozen=True, slots=True)
class Sample:
    """A single timestamped telemetry reading held in the rolling window."""

    timestamp: datetime
    temperature: float
    memory_used: int
    memory_total: int
    utilization: float
    power_draw: Optional[float] = None
    gpu_clock: Optional[int] = None
    memory_clock: Optional[int] = None
    throttled: bool = False

    @classmethod
    def from_reading(cls, reading: TelemetryReading, timestamp: datetime) -> Sample:
        return cls(
            timestamp=timestamp,
            temperature=reading.temperature,
            memory_used=reading.memory_used,
            memory_total=reading.memory_total,
            utilization=reading.utilization,
            power_draw=reading.power_draw,
            gpu_clock=reading.gpu_clock,
            memory_clock=reading.memory_clock,
            throttled=reading.throttled,
        )

    @property
    def has_power_data(self) -> bool:
        return self.power_draw is not None

    @property
    def power(self) -> float:
        """Power draw in watts with a missing sensor read as zero."""
        return self.power_draw if self.power_draw is not None else 0.0


class HealthStatus(str, Enum):
    """Health tiers, best first."""

    excellent = "Excellent"
    good = "Good"
    warning = "Warning"
    critical = "Critical"


class AlertKind(str, Enum):
    """Alert vocabulary. Clock and fan kinds are not raised by any rule yet."""

    temperature_high = "TemperatureHigh"
    temperature_critical = "TemperatureCritical"
    thermal_throttling = "ThermalThrottling"
    power_spike = "PowerSpike"
    memory_leak_suspected = "MemoryLeakSuspected"
    clock_instability = "ClockInstability"
    fan_issue = "FanIssue"


@dataclass(frozen=True, slots=True)
class HealthAlert:
    kind: AlertKind
    message: str
    severity: HealthStatus
    timestamp: datetime
    value: Optional[float] = None
    threshold: Optional[float] = None
