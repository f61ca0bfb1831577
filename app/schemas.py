"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.telemetry import AlertKind, HealthStatus, TelemetryReading


class SampleIn(BaseModel):
    """One telemetry tick pushed by an external sampler."""

    model_config = ConfigDict(allow_inf_nan=False)

    temperature: float = Field(..., description="Die temperature in °C.")
    power_draw: Optional[float] = Field(
        default=None, ge=0, description="Board power in watts; omit when unsupported."
    )
    memory_used: int = Field(..., ge=0, description="Device memory in use, bytes.")
    memory_total: int = Field(..., ge=0, description="Device memory capacity, bytes.")
    utilization: float = Field(..., ge=0, le=100)
    gpu_clock: Optional[int] = Field(default=None, ge=0, description="MHz.")
    memory_clock: Optional[int] = Field(default=None, ge=0, description="MHz.")
    throttled: bool = False

    def to_reading(self) -> TelemetryReading:
        return TelemetryReading(**self.model_dump())


class AlertOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    kind: AlertKind
    message: str
    severity: HealthStatus
    timestamp: datetime
    value: Optional[float] = None
    threshold: Optional[float] = None


class TemperatureOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    current: float
    max_safe: float
    critical: float
    trend_5min: float
    time_above_80c: int = Field(
        ..., description="Samples above 80°C; seconds only at a 1 Hz cadence."
    )
    peak_today: float


class PowerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    current_draw: float
    efficiency: float
    power_spikes: int
    avg_draw_1hr: float
    has_power_data: bool = Field(
        default=False, description="False when the latest sample had no power reading."
    )


class MemoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    usage_trend: float = Field(..., description="MB change over the last minute.")
    fragmentation_score: float = Field(..., ge=0, le=1)
    leak_suspicion: float = Field(..., ge=0, le=1)
    peak_usage_today: int


class HealthReportOut(BaseModel):
    """Health assessment for the latest cycle."""

    model_config = ConfigDict(from_attributes=True)

    overall_score: float = Field(..., ge=0, le=100)
    status: HealthStatus
    temperature: TemperatureOut
    power: PowerOut
    memory: MemoryOut
    thermal_throttling_detected: bool
    uptime_hours: float
    alerts: List[AlertOut] = Field(default_factory=list)
