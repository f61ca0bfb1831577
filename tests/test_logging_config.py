from __future__ import annotations

import logging

from logging_config import ContextualFormatter
from models.telemetry import AlertKind, HealthStatus


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="services.monitor",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="GPU is thermal throttling",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_extra_fields() -> None:
    formatter = ContextualFormatter(fmt="%(levelname)s %(message)s")

    line = formatter.format(
        _record(
            device="gpu0",
            alert_kind=AlertKind.thermal_throttling,
            severity=HealthStatus.warning,
            value=84.25,
            threshold=None,
            unrelated="ignored",
        )
    )

    assert line == (
        "WARNING GPU is thermal throttling | device=gpu0 "
        "alert_kind=ThermalThrottling severity=Warning value=84.25"
    )


def test_formatter_leaves_plain_records_untouched() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", extra_keys=["score"])

    assert formatter.format(_record(device="gpu0")) == "GPU is thermal throttling"
    assert formatter.format(_record(score=55.0)) == "GPU is thermal throttling | score=55.00"
