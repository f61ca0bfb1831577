from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping

import typer

_STATUS_COLORS = {
    "Excellent": typer.colors.GREEN,
    "Good": typer.colors.BLUE,
    "Warning": typer.colors.YELLOW,
    "Critical": typer.colors.RED,
}

_BYTES_PER_GB = 1024**3


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _fmt(value: Any, spec: str) -> str:
    if value is None:
        return "n/a"
    return format(value, spec)


def render_alerts(alerts: Iterable[Mapping[str, Any]]) -> None:
    alerts = list(alerts)
    if not alerts:
        typer.echo("No alerts recorded.")
        return
    for alert in alerts:
        severity = alert.get("severity")
        typer.secho(
            f"  - [{severity}] {alert.get('kind')}: {alert.get('message')}",
            fg=_STATUS_COLORS.get(severity),
        )


def render_report(payload: Dict[str, Any]) -> None:
    status = payload.get("status")
    echo_heading("Health Report")
    typer.secho(
        f"score: {_fmt(payload.get('overall_score'), '.1f')}/100 ({status})",
        fg=_STATUS_COLORS.get(status),
    )
    echo_key_values(
        [
            ("thermal_throttling", "yes" if payload.get("thermal_throttling_detected") else "no"),
            ("uptime_hours", _fmt(payload.get("uptime_hours"), ".2f")),
        ]
    )

    temperature = payload.get("temperature") or {}
    typer.echo()
    echo_heading("Temperature")
    echo_key_values(
        [
            ("current_c", _fmt(temperature.get("current"), ".1f")),
            ("trend_5min_c", _fmt(temperature.get("trend_5min"), "+.1f")),
            ("time_above_80c_s", temperature.get("time_above_80c")),
            ("peak_today_c", _fmt(temperature.get("peak_today"), ".1f")),
        ]
    )

    power = payload.get("power") or {}
    # Without a power reading the current draw and efficiency are placeholders.
    sensed = power.get("has_power_data", True)
    typer.echo()
    echo_heading("Power")
    echo_key_values(
        [
            ("current_draw_w", _fmt(power.get("current_draw") if sensed else None, ".1f")),
            ("efficiency_util_per_w", _fmt(power.get("efficiency") if sensed else None, ".2f")),
            ("power_spikes", power.get("power_spikes")),
            ("avg_draw_1hr_w", _fmt(power.get("avg_draw_1hr"), ".1f")),
        ]
    )

    memory = payload.get("memory") or {}
    peak = memory.get("peak_usage_today")
    typer.echo()
    echo_heading("Memory")
    echo_key_values(
        [
            ("usage_trend_mb", _fmt(memory.get("usage_trend"), "+.1f")),
            ("fragmentation_pct", _fmt(_percent(memory.get("fragmentation_score")), ".1f")),
            ("leak_risk_pct", _fmt(_percent(memory.get("leak_suspicion")), ".1f")),
            ("peak_usage_today_gb", _fmt(peak / _BYTES_PER_GB if peak is not None else None, ".2f")),
        ]
    )

    typer.echo()
    echo_heading("Alerts")
    render_alerts(payload.get("alerts") or [])


def _percent(value: Any) -> Any:
    return value * 100.0 if value is not None else None
