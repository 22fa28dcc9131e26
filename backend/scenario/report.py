"""
Run-end report.

Stable textual lines (one key=value record per line, tag first) so sweep
automation can grep and parse them:

    [VR-RECV] total=<n> onTime=<n> late=<n> incomplete=<n> ratio=<float>
    [VR-DELAY] avgDelay=<float> p99=<int> max=<int>
    [UL-IMU] avgDelay=<float> p99=<int> max=<int>
    [UL-IMU] noSamples=1 avgDelay=0 p99=0 max=0      (no uplink samples)

Floats use up to 6 significant digits ("1", "0.969697").
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Any

from observability.delay_stats import DelayStats

TAG_DOWNLINK_FRAMES = "VR-RECV"
TAG_DOWNLINK_DELAY = "VR-DELAY"
TAG_UPLINK_DELAY = "UL-IMU"

_LINE_RE = re.compile(r"^\s*\[(?P<tag>[A-Z0-9-]+)\]\s*(?P<body>.*)$")


class ReportParseError(ValueError):
    """Raised when a line is not a report line."""


@dataclass(frozen=True)
class DelaySummary:
    """Aggregate of one DelayStats collection."""
    samples: int
    avg_delay_ms: float
    p99_ms: int
    max_ms: int

    @staticmethod
    def from_stats(stats: DelayStats) -> DelaySummary:
        return DelaySummary(
            samples=len(stats),
            avg_delay_ms=stats.average(),
            p99_ms=stats.p99(),
            max_ms=stats.maximum(),
        )


@dataclass(frozen=True)
class ScenarioReport:
    """
    Everything a run reports, captured after end-of-run accounting.
    """
    label: str
    transport: str
    total: int
    on_time: int
    late: int
    incomplete: int
    downlink_delay: DelaySummary
    uplink_delay: DelaySummary
    frames_generated: int = 0
    fragments_sent: int = 0
    fragments_dropped: int = 0
    uplink_packets_sent: int = 0

    @property
    def ratio(self) -> float:
        """on_time / total, 0.0 when no frame was seen."""
        if self.total == 0:
            return 0.0
        return self.on_time / self.total

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["ratio"] = self.ratio
        return data


# -------------------------
# Formatting
# -------------------------

def _fmt_float(value: float) -> str:
    return f"{value:.6g}"


def format_frames_line(report: ScenarioReport) -> str:
    return (
        f"[{TAG_DOWNLINK_FRAMES}] total={report.total}"
        f" onTime={report.on_time}"
        f" late={report.late}"
        f" incomplete={report.incomplete}"
        f" ratio={_fmt_float(report.ratio)}"
    )


def format_delay_line(tag: str, summary: DelaySummary, *, sentinel: bool = False) -> str:
    """
    One delay line. With `sentinel`, an empty summary is reported as
    `noSamples=1` with zeros.
    """
    if sentinel and summary.samples == 0:
        return f"[{tag}] noSamples=1 avgDelay=0 p99=0 max=0"
    return (
        f"[{tag}] avgDelay={_fmt_float(summary.avg_delay_ms)}"
        f" p99={summary.p99_ms}"
        f" max={summary.max_ms}"
    )


def format_report_lines(report: ScenarioReport) -> list[str]:
    return [
        format_frames_line(report),
        format_delay_line(TAG_DOWNLINK_DELAY, report.downlink_delay),
        format_delay_line(TAG_UPLINK_DELAY, report.uplink_delay, sentinel=True),
    ]


# -------------------------
# Parsing
# -------------------------

def _parse_value(raw: str) -> int | float:
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError as exc:
        raise ReportParseError(f"non-numeric value {raw!r}") from exc


def parse_report_line(line: str) -> tuple[str, dict[str, int | float]]:
    """
    Parse one report line into (tag, {key: value}).

    Example:
        parse_report_line("[VR-RECV] total=3 onTime=1 late=1 incomplete=1 ratio=0.333333")
        -> ("VR-RECV", {"total": 3, "onTime": 1, ..., "ratio": 0.333333})

    Raises:
        ReportParseError if the line has no [TAG] prefix or a malformed field.
    """
    match = _LINE_RE.match(line)
    if match is None:
        raise ReportParseError(f"not a report line: {line!r}")

    fields: dict[str, int | float] = {}
    for token in match.group("body").split():
        key, sep, raw = token.partition("=")
        if not sep or not key:
            raise ReportParseError(f"malformed field {token!r} in {line!r}")
        fields[key] = _parse_value(raw)

    return match.group("tag"), fields


def find_report_line(output: str, tag: str) -> dict[str, int | float] | None:
    """
    Fields of the first line tagged `tag` in multi-line output, or None.

    Non-report lines (JSONL events, blank lines) are skipped.
    """
    prefix = f"[{tag}]"
    for line in output.splitlines():
        if line.lstrip().startswith(prefix):
            return parse_report_line(line)[1]
    return None
