from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional

import typer

from app.schemas import HealthReportOut, SampleIn
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import echo_heading, render_alerts, render_report
from cli.replay import SteppingClock, replay_file, write_alerts_csv
from logging_config import configure_logging
from services.monitor import HealthMonitor, local_now
from settings import get_settings


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for feeding and inspecting the accelerator health monitor.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Monitor API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="HTTP request timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("push")
def push_command(
    ctx: typer.Context,
    temperature: float = typer.Option(..., "--temperature", "-t", help="Temperature in °C."),
    memory_used: int = typer.Option(..., "--memory-used", help="Memory in use, bytes."),
    memory_total: int = typer.Option(..., "--memory-total", help="Memory capacity, bytes."),
    utilization: float = typer.Option(0.0, "--utilization", "-u", help="Utilization percent."),
    power_draw: Optional[float] = typer.Option(None, "--power", "-p", help="Power draw in watts."),
    gpu_clock: Optional[int] = typer.Option(None, "--gpu-clock", help="GPU clock in MHz."),
    memory_clock: Optional[int] = typer.Option(None, "--memory-clock", help="Memory clock in MHz."),
    throttled: bool = typer.Option(False, "--throttled/--not-throttled", help="Throttling flag."),
) -> None:
    """Submit one sample and print the resulting health report."""
    state = _get_state(ctx)
    sample = SampleIn(
        temperature=temperature,
        power_draw=power_draw,
        memory_used=memory_used,
        memory_total=memory_total,
        utilization=utilization,
        gpu_clock=gpu_clock,
        memory_clock=memory_clock,
        throttled=throttled,
    )
    payload = state.client.push_sample(sample.model_dump(mode="json"))
    render_report(payload)


@app.command("report")
def report_command(ctx: typer.Context) -> None:
    """Fetch the latest health report."""
    state = _get_state(ctx)
    render_report(state.client.get_report())


@app.command("alerts")
def alerts_command(
    ctx: typer.Context,
    limit: int = typer.Option(10, "--limit", "-n", min=1, max=100, help="Alerts to show."),
) -> None:
    """List recent alerts, newest first."""
    state = _get_state(ctx)
    echo_heading("Recent Alerts")
    render_alerts(state.client.get_alerts(limit))


@app.command("replay")
def replay_command(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to CSV file."),
    interval_ms: Optional[int] = typer.Option(
        None,
        "--interval-ms",
        min=1,
        help="Spacing between recorded samples (defaults to HEALTH_SAMPLE_INTERVAL_MS).",
    ),
    alerts_csv: Optional[Path] = typer.Option(
        None,
        "--alerts-csv",
        dir_okay=False,
        help="Write every alert raised during the replay to this CSV file.",
    ),
) -> None:
    """Run recorded samples through a local monitor and print the final report."""
    configure_logging()
    settings = get_settings()
    step = timedelta(milliseconds=interval_ms or settings.sample_interval_ms)
    monitor = HealthMonitor(
        window_capacity=settings.window_capacity,
        alert_capacity=settings.alert_history_capacity,
        clock=SteppingClock(local_now(), step),
        device_name=settings.device_name,
    )

    try:
        result = replay_file(file, monitor)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="FILE") from exc

    typer.echo(f"Replayed {result.samples} samples from {file}.")
    if result.errors:
        typer.secho(f"Skipped {len(result.errors)} rows:", fg=typer.colors.YELLOW)
        for error in result.errors:
            typer.echo(f"  - row {error.row_number}: {error.reason}")
    typer.echo()
    render_report(HealthReportOut.model_validate(result.report).model_dump(mode="json"))

    if alerts_csv is not None:
        written = write_alerts_csv(result.alerts, alerts_csv)
        typer.echo()
        typer.echo(f"Wrote {written} alerts to {alerts_csv}.")
