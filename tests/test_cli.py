from __future__ import annotations

import csv
from typing import Any, Dict, List

import pytest
from typer.testing import CliRunner

from cli.app import app

_REPORT: Dict[str, Any] = {
    "overall_score": 55.0,
    "status": "Critical",
    "temperature": {
        "current": 92.0,
        "max_safe": 80.0,
        "critical": 90.0,
        "trend_5min": 22.0,
        "time_above_80c": 2,
        "peak_today": 92.0,
    },
    "power": {
        "current_draw": 180.0,
        "efficiency": 0.5,
        "power_spikes": 1,
        "avg_draw_1hr": 150.0,
        "has_power_data": True,
    },
    "memory": {
        "usage_trend": 0.0,
        "fragmentation_score": 0.0,
        "leak_suspicion": 0.0,
        "peak_usage_today": 4 * 1024**3,
    },
    "thermal_throttling_detected": False,
    "uptime_hours": 0.01,
    "alerts": [
        {
            "kind": "TemperatureCritical",
            "message": "CRITICAL: GPU temperature 92.0°C exceeds safe limits!",
            "severity": "Critical",
            "timestamp": "2024-01-01T00:00:06Z",
            "value": 92.0,
            "threshold": 90.0,
        }
    ],
}


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.pushed: List[Dict[str, Any]] = []
        self.alert_limits: List[int] = []
        self.closed = False
        self.report: Dict[str, Any] = _REPORT

    def push_sample(self, sample: Dict[str, Any]) -> Dict[str, Any]:
        self.pushed.append(sample)
        return self.report

    def get_report(self) -> Dict[str, Any]:
        return self.report

    def get_alerts(self, limit: int) -> List[Dict[str, Any]]:
        self.alert_limits.append(limit)
        return list(_REPORT["alerts"])

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def stub(monkeypatch) -> StubClient:
    client = StubClient(config=None)

    def factory(config):
        client.config = config
        return client

    monkeypatch.setattr("cli.app.ApiClient", factory)
    return client


@pytest.fixture(autouse=True)
def logging_calls(monkeypatch) -> List[None]:
    calls: List[None] = []
    monkeypatch.setattr("cli.app.configure_logging", lambda: calls.append(None))
    return calls


def test_push_sends_sample_and_renders_report(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(
        app,
        [
            "push",
            "--temperature", "92",
            "--memory-used", "1024",
            "--memory-total", "4096",
            "--power", "180",
            "--throttled",
        ],
    )

    assert result.exit_code == 0, result.output
    assert stub.pushed == [
        {
            "temperature": 92.0,
            "power_draw": 180.0,
            "memory_used": 1024,
            "memory_total": 4096,
            "utilization": 0.0,
            "gpu_clock": None,
            "memory_clock": None,
            "throttled": True,
        }
    ]
    assert "Health Report" in result.stdout
    assert "score: 55.0/100 (Critical)" in result.stdout
    assert "TemperatureCritical" in result.stdout
    assert stub.closed is True


def test_base_url_option_reaches_client(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["--base-url", "http://gpu-box:9000/", "report"])

    assert result.exit_code == 0, result.output
    assert stub.config.base_url == "http://gpu-box:9000"
    assert "peak_usage_today_gb: 4.00" in result.stdout
    assert "current_draw_w: 180.0" in result.stdout


def test_report_without_power_sensor_shows_na(runner: CliRunner, stub: StubClient) -> None:
    stub.report = {
        **_REPORT,
        "power": {
            "current_draw": 0.0,
            "efficiency": 0.0,
            "power_spikes": 0,
            "avg_draw_1hr": 0.0,
            "has_power_data": False,
        },
    }

    result = runner.invoke(app, ["report"])

    assert result.exit_code == 0, result.output
    assert "current_draw_w: n/a" in result.stdout
    assert "efficiency_util_per_w: n/a" in result.stdout
    assert "power_spikes: 0" in result.stdout


def test_alerts_command(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["alerts", "--limit", "3"])

    assert result.exit_code == 0, result.output
    assert stub.alert_limits == [3]
    assert "Recent Alerts" in result.stdout
    assert "[Critical] TemperatureCritical" in result.stdout


def _write_samples(path, rows: List[str]) -> None:
    header = "temperature,power_draw,memory_used,memory_total,utilization,gpu_clock,memory_clock,throttled"
    path.write_text("\n".join([header, *rows]) + "\n")


def test_replay_runs_samples_locally(
    runner: CliRunner, stub: StubClient, logging_calls: List[None], tmp_path
) -> None:
    csv_path = tmp_path / "samples.csv"
    _write_samples(
        csv_path,
        [
            "70,150,1073741824,4294967296,90,1800,9000,false",
            "80,150,1073741824,4294967296,90,1800,9000,false",
            "92,,1073741824,4294967296,90,,,true",
        ],
    )
    alerts_path = tmp_path / "alerts.csv"

    result = runner.invoke(app, ["replay", str(csv_path), "--alerts-csv", str(alerts_path)])

    assert result.exit_code == 0, result.output
    assert "Replayed 3 samples" in result.stdout
    assert len(logging_calls) == 1
    assert "(Critical)" in result.stdout
    assert stub.pushed == []

    with alerts_path.open(newline="") as handle:
        rows = list(csv.DictReader(handle))
    assert [row["alert_type"] for row in rows] == [
        "TemperatureHigh",
        "TemperatureCritical",
        "TemperatureHigh",
        "ThermalThrottling",
    ]
    assert rows[1]["severity"] == "Critical"
    assert rows[1]["threshold"] == "90"
    assert f"Wrote 4 alerts to {alerts_path}" in result.stdout


def test_replay_skips_bad_rows(runner: CliRunner, stub: StubClient, tmp_path) -> None:
    csv_path = tmp_path / "samples.csv"
    _write_samples(
        csv_path,
        [
            "60,100,1024,4096,50,,,no",
            ",100,1024,4096,50,,,no",
            "61,lots,1024,4096,50,,,no",
            "62,100,1024,4096,50,,,maybe",
        ],
    )

    result = runner.invoke(app, ["replay", str(csv_path)])

    assert result.exit_code == 0, result.output
    assert "Replayed 1 samples" in result.stdout
    assert "row 3: missing temperature" in result.stdout
    assert "row 4: invalid numeric value" in result.stdout
    assert "row 5: invalid throttled flag" in result.stdout


def test_replay_skips_non_finite_rows(runner: CliRunner, stub: StubClient, tmp_path) -> None:
    csv_path = tmp_path / "samples.csv"
    _write_samples(
        csv_path,
        [
            "nan,100,1024,4096,50,,,no",
            "60,inf,1024,4096,50,,,no",
            "61,100,1024,4096,-inf,,,no",
            "95,100,1024,4096,50,,,no",
        ],
    )

    result = runner.invoke(app, ["replay", str(csv_path)])

    assert result.exit_code == 0, result.output
    assert "Replayed 1 samples" in result.stdout
    assert "row 2: non-finite value" in result.stdout
    assert "row 3: non-finite value" in result.stdout
    assert "row 4: non-finite value" in result.stdout
    assert "peak_today_c: 95.0" in result.stdout


def test_replay_rejects_missing_columns(runner: CliRunner, stub: StubClient, tmp_path) -> None:
    csv_path = tmp_path / "samples.csv"
    csv_path.write_text("temperature,utilization\n60,50\n")

    result = runner.invoke(app, ["replay", str(csv_path)])

    assert result.exit_code != 0
    assert "memory_used" in result.output
