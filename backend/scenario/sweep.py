"""
Parameter sweeps over scenarios.

Each sweep group varies one link/application parameter around a base
scenario and runs every transport profile at each point, producing one
CSV row per run:

    transport,group,rate,delay_ms,loss,deadline,frame_size,
    total,onTime,late,incomplete,ratio,ul_avg,ul_p99,ul_max
"""

from __future__ import annotations

import csv
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterable, Iterator, Sequence

from config import ScenarioConfig
from constants import US_PER_MS
from scenario.report import ScenarioReport
from scenario.runner import run_scenario
from traffic.enums.transport import Transport

CSV_COLUMNS: tuple[str, ...] = (
    "transport",
    "group",
    "rate",
    "delay_ms",
    "loss",
    "deadline",
    "frame_size",
    "total",
    "onTime",
    "late",
    "incomplete",
    "ratio",
    "ul_avg",
    "ul_p99",
    "ul_max",
)

SWEEP_GROUPS: tuple[str, ...] = ("dsweep", "lsweep", "rsweep", "fsweep")

_RATE_UNITS: tuple[tuple[str, int], ...] = (
    ("gbps", 1_000_000_000),
    ("mbps", 1_000_000),
    ("kbps", 1_000),
    ("bps", 1),
)


def parse_rate_bps(value: Any) -> int:
    """
    Link rate in bits/s from a number or a string such as "30Mbps".

    Raises:
        ValueError for malformed values.
    """
    text = str(value).strip().lower()
    for suffix, scale in _RATE_UNITS:
        if text.endswith(suffix):
            return int(float(text[: -len(suffix)]) * scale)
    return int(text)


def parse_delay_ms(value: Any) -> int:
    """One-way delay in ms from a number or a string such as "10ms"."""
    text = str(value).strip().lower()
    if text.endswith("ms"):
        text = text[:-2]
    return int(text)


def vary(base: ScenarioConfig, group: str, value: Any) -> ScenarioConfig:
    """
    Return `base` with the parameter of sweep `group` set to `value`.

    Groups:
        dsweep: one-way link delay (ms, both directions)
        lsweep: downlink loss rate
        rsweep: link rate (bits/s, both directions)
        fsweep: downlink frame size (bytes)

    Raises:
        ValueError for an unknown group or a malformed value.
    """
    if group == "dsweep":
        delay_us = parse_delay_ms(value) * US_PER_MS
        return replace(
            base,
            downlink_link=replace(base.downlink_link, delay_us=delay_us),
            uplink_link=replace(base.uplink_link, delay_us=delay_us),
        )
    if group == "lsweep":
        return replace(base, downlink_link=replace(base.downlink_link, loss_rate=float(value)))
    if group == "rsweep":
        return replace(
            base,
            downlink_link=replace(base.downlink_link, rate_bps=parse_rate_bps(value)),
            uplink_link=replace(base.uplink_link, rate_bps=parse_rate_bps(value)),
        )
    if group == "fsweep":
        return replace(base, downlink=replace(base.downlink, frame_size_bytes=int(value)))
    raise ValueError(f"Unknown sweep group: {group!r} (expected one of {SWEEP_GROUPS})")


def report_row(config: ScenarioConfig, group: str, report: ScenarioReport) -> dict[str, Any]:
    return {
        "transport": config.transport.value,
        "group": group,
        "rate": config.downlink_link.rate_bps,
        "delay_ms": config.downlink_link.delay_us // US_PER_MS,
        "loss": config.downlink_link.loss_rate,
        "deadline": config.receiver.deadline_ms,
        "frame_size": config.downlink.frame_size_bytes,
        "total": report.total,
        "onTime": report.on_time,
        "late": report.late,
        "incomplete": report.incomplete,
        "ratio": report.ratio,
        "ul_avg": report.uplink_delay.avg_delay_ms,
        "ul_p99": report.uplink_delay.p99_ms,
        "ul_max": report.uplink_delay.max_ms,
    }


def run_sweep(
    base: ScenarioConfig,
    group: str,
    values: Iterable[Any],
    *,
    transports: Sequence[Transport] = tuple(Transport),
) -> Iterator[dict[str, Any]]:
    """
    Run every transport profile at every sweep point; yield one row per run.
    """
    for value in values:
        point = vary(base, group, value)
        for transport in transports:
            config = ScenarioConfig.from_transport(
                transport,
                downlink=point.downlink,
                receiver=point.receiver,
                uplink=point.uplink,
                downlink_link=point.downlink_link,
                uplink_link=point.uplink_link,
                start_us=point.start_us,
                stop_us=point.stop_us,
                end_us=point.end_us,
            )
            yield report_row(config, group, run_scenario(config))


def write_results_csv(rows: Iterable[dict[str, Any]], path: Path) -> int:
    """
    Write sweep rows to `path` with a header line. Returns rows written.
    """
    written = 0
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
            written += 1
    return written
