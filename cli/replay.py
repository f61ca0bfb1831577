"""Offline replay of recorded telemetry through a local monitor."""

from __future__ import annotations

import csv
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, Iterable, List, Optional, TextIO

from models.telemetry import HealthAlert, TelemetryReading
from services.monitor import HealthMonitor, HealthReport

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("temperature", "memory_used", "memory_total", "utilization")
OPTIONAL_COLUMNS = ("power_draw", "gpu_clock", "memory_clock", "throttled")
ALERT_CSV_HEADER = ("timestamp", "alert_type", "severity", "message", "value", "threshold")

_TRUE_VALUES = {"1", "true", "yes", "y"}
_FALSE_VALUES = {"", "0", "false", "no", "n"}


class SteppingClock:
    """Clock that moves forward a fixed step on every reading."""

    def __init__(self, start: datetime, step: timedelta) -> None:
        self._now = start
        self._step = step
        self._started = False

    def __call__(self) -> datetime:
        if self._started:
            self._now += self._step
        self._started = True
        return self._now


@dataclass
class RowError:
    row_number: int
    reason: str


@dataclass
class ReplayResult:
    report: HealthReport
    samples: int = 0
    errors: List[RowError] = field(default_factory=list)
    alerts: List[HealthAlert] = field(default_factory=list)


def _parse_bool(raw: str) -> bool:
    candidate = raw.strip().lower()
    if candidate in _TRUE_VALUES:
        return True
    if candidate in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean {raw!r}")


def _optional_float(raw: str) -> Optional[float]:
    return float(raw) if raw else None


def _optional_int(raw: str) -> Optional[int]:
    return int(raw) if raw else None


def _is_finite(reading: TelemetryReading) -> bool:
    values = [reading.temperature, reading.utilization]
    if reading.power_draw is not None:
        values.append(reading.power_draw)
    return all(math.isfinite(value) for value in values)


def parse_readings(stream: TextIO, errors: List[RowError]) -> Iterable[TelemetryReading]:
    """Yield readings from a CSV stream, recording rows that fail to parse."""
    reader = csv.DictReader(stream)
    if not reader.fieldnames:
        raise ValueError("CSV file is missing a header row.")

    normalized = {name.lower().strip(): name for name in reader.fieldnames}
    missing = [column for column in REQUIRED_COLUMNS if column not in normalized]
    if missing:
        raise ValueError(f"CSV missing required columns: {', '.join(missing)}")

    for row_number, row in enumerate(reader, start=2):
        values: Dict[str, str] = {
            column: (row.get(normalized[column]) or "").strip()
            for column in REQUIRED_COLUMNS + OPTIONAL_COLUMNS
            if column in normalized
        }
        blank = [column for column in REQUIRED_COLUMNS if not values[column]]
        if blank:
            errors.append(RowError(row_number, f"missing {blank[0]}"))
            logger.warning(
                "Skipping row", extra={"row_number": row_number, "reason": f"missing {blank[0]}"}
            )
            continue

        try:
            throttled = _parse_bool(values.get("throttled", ""))
        except ValueError:
            errors.append(RowError(row_number, "invalid throttled flag"))
            logger.warning(
                "Skipping row",
                extra={"row_number": row_number, "reason": "invalid throttled flag"},
            )
            continue

        try:
            reading = TelemetryReading(
                temperature=float(values["temperature"]),
                memory_used=int(values["memory_used"]),
                memory_total=int(values["memory_total"]),
                utilization=float(values["utilization"]),
                power_draw=_optional_float(values.get("power_draw", "")),
                gpu_clock=_optional_int(values.get("gpu_clock", "")),
                memory_clock=_optional_int(values.get("memory_clock", "")),
                throttled=throttled,
            )
        except ValueError:
            errors.append(RowError(row_number, "invalid numeric value"))
            logger.warning(
                "Skipping row",
                extra={"row_number": row_number, "reason": "invalid numeric value"},
            )
            continue

        if not _is_finite(reading):
            errors.append(RowError(row_number, "non-finite value"))
            logger.warning(
                "Skipping row",
                extra={"row_number": row_number, "reason": "non-finite value"},
            )
            continue

        yield reading


def replay_file(path: Path, monitor: HealthMonitor) -> ReplayResult:
    """Feed every parseable row of ``path`` through ``monitor``."""
    errors: List[RowError] = []
    alerts: List[HealthAlert] = []
    samples = 0
    report: Optional[HealthReport] = None

    with path.open("r", encoding="utf-8", newline="") as handle:
        for reading in parse_readings(handle, errors):
            report = monitor.update(reading)
            alerts.extend(report.alerts)
            samples += 1

    return ReplayResult(
        report=report if report is not None else monitor.latest_report(),
        samples=samples,
        errors=errors,
        alerts=alerts,
    )


def write_alerts_csv(alerts: Iterable[HealthAlert], path: Path) -> int:
    count = 0
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(ALERT_CSV_HEADER)
        for alert in alerts:
            writer.writerow(
                [
                    alert.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                    alert.kind.value,
                    alert.severity.value,
                    alert.message,
                    "" if alert.value is None else f"{alert.value:g}",
                    "" if alert.threshold is None else f"{alert.threshold:g}",
                ]
            )
            count += 1
    return count
