"""
Wall-clock timing of simulation runs.

A scenario runs in simulated time; `timed()` measures what the run costs
on the host and emits one METRIC_TIMER event when the block exits.

Durations come from the monotonic clock; the event's ts_ms is wall-clock
so it can be lined up with other host logs.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator

from observability.logger import log_event


def _emit_metric(
    name: str,
    elapsed_ns: int,
    *,
    scenario: str | None,
    details: dict[str, Any] | None,
    failed: bool,
) -> None:
    log_event({
        "ts_ms": int(time.time() * 1000),
        "event_type": "METRIC_TIMER",
        "metric": name,
        "value_ms": elapsed_ns // 1_000_000,
        "scenario": scenario,
        "failed": failed,
        "details": dict(details or {}),
    })


@contextmanager
def timed(
    name: str,
    *,
    scenario: str | None = None,
    details: dict[str, Any] | None = None,
) -> Iterator[None]:
    """
    Time the enclosed block and emit exactly one METRIC_TIMER event.

    `details` is read when the block exits, so callers may fill it in
    from inside the block. An exception inside the block still emits the
    metric (with failed=true) and then propagates.

    Usage:
        details: dict[str, Any] = {}
        with timed("scenario_wall_time", scenario=config.label, details=details):
            details["callbacks"] = scheduler.run(until_us=config.end_us)
    """
    start_ns = time.monotonic_ns()
    failed = True
    try:
        yield
        failed = False
    finally:
        _emit_metric(
            name,
            time.monotonic_ns() - start_ns,
            scenario=scenario,
            details=details,
            failed=failed,
        )
