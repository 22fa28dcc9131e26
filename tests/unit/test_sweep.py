# pylint: disable=missing-module-docstring,missing-function-docstring

import csv

import pytest

from config import ScenarioConfig
import run_sweep as sweep_cli
from scenario.sweep import (
    CSV_COLUMNS,
    parse_delay_ms,
    parse_rate_bps,
    run_sweep,
    vary,
    write_results_csv,
)

SHORT_BASE = ScenarioConfig(start_us=0, stop_us=200_000, end_us=400_000)


def test_vary_changes_only_swept_parameter():
    delayed = vary(SHORT_BASE, "dsweep", 25)
    lossy = vary(SHORT_BASE, "lsweep", "0.02")
    bigger = vary(SHORT_BASE, "fsweep", 120_000)

    assert delayed.downlink_link.delay_us == 25_000
    assert delayed.uplink_link.delay_us == 25_000
    assert lossy.downlink_link.loss_rate == pytest.approx(0.02)
    assert lossy.uplink_link.loss_rate == 0.0
    assert bigger.downlink.fragment_count == 100
    assert bigger.receiver == SHORT_BASE.receiver


def test_vary_rejects_unknown_group():
    with pytest.raises(ValueError):
        vary(SHORT_BASE, "jsweep", 1)


def test_sweep_runs_every_transport_per_point(tmp_path):
    out = tmp_path / "results.csv"

    written = write_results_csv(run_sweep(SHORT_BASE, "dsweep", [5, 40]), out)

    with out.open(newline="", encoding="utf-8") as handle:
        rows = list(csv.DictReader(handle))

    assert written == 6
    assert tuple(rows[0].keys()) == CSV_COLUMNS
    assert [(r["transport"], r["delay_ms"]) for r in rows] == [
        ("udp", "5"), ("quic", "5"), ("tcp", "5"),
        ("udp", "40"), ("quic", "40"), ("tcp", "40"),
    ]
    assert all(r["group"] == "dsweep" for r in rows)


# ---------------------------------------------------------------------
# Sweep values with units
# ---------------------------------------------------------------------

@pytest.mark.parametrize(
    "raw, expected",
    [("30Mbps", 30_000_000), ("1.5Gbps", 1_500_000_000), ("500kbps", 500_000), ("8000", 8_000)],
)
def test_rate_accepts_unit_suffixes(raw, expected):
    assert parse_rate_bps(raw) == expected


def test_delay_accepts_ms_suffix():
    assert parse_delay_ms("10ms") == 10
    assert vary(SHORT_BASE, "dsweep", "10ms").downlink_link.delay_us == 10_000
    assert vary(SHORT_BASE, "rsweep", "30Mbps").uplink_link.rate_bps == 30_000_000


def test_malformed_value_is_value_error():
    with pytest.raises(ValueError):
        vary(SHORT_BASE, "rsweep", "fast")


def test_cli_reports_malformed_value_without_running(tmp_path, capsys):
    out = tmp_path / "results.csv"

    code = sweep_cli.main(["rsweep", "30Mbps", "fast", "--out", str(out)])

    assert code == 2
    assert "invalid sweep value" in capsys.readouterr().out
    assert not out.exists()
