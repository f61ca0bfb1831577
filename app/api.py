"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, status

from app.schemas import AlertOut, HealthReportOut, SampleIn
from services.monitor import HealthMonitor, build_default_monitor

router = APIRouter()


def get_monitor() -> HealthMonitor:
    return build_default_monitor()


@router.post(
    "/samples",
    response_model=HealthReportOut,
    summary="Submit one telemetry sample and run a health cycle.",
)
async def submit_sample(
    sample: SampleIn,
    monitor: HealthMonitor = Depends(get_monitor),
) -> HealthReportOut:
    report = monitor.update(sample.to_reading())
    return HealthReportOut.model_validate(report)


@router.get(
    "/report",
    response_model=HealthReportOut,
    summary="Latest health report; an empty report before the first sample.",
)
async def get_report(
    monitor: HealthMonitor = Depends(get_monitor),
) -> HealthReportOut:
    return HealthReportOut.model_validate(monitor.latest_report())


@router.get(
    "/alerts",
    response_model=List[AlertOut],
    summary="Recent alerts from history, newest first.",
)
async def list_alerts(
    limit: int = Query(10, ge=1, le=100, description="Maximum alerts to return."),
    monitor: HealthMonitor = Depends(get_monitor),
) -> List[AlertOut]:
    return [AlertOut.model_validate(alert) for alert in monitor.get_recent_alerts(limit)]


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "POST samples to /samples; see /report and /alerts."}
