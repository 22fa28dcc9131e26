"""
Parameter sweep entry point.

Runs every transport profile (udp, quic, tcp) at each point of one sweep
group and writes the rows to a CSV file. The base scenario comes from
ARVR_* settings, as for run_scenario.py.

    python backend/run_sweep.py dsweep 10 20 50 100 --out results.csv
    python backend/run_sweep.py rsweep 10Mbps 30Mbps 100Mbps
    python backend/run_sweep.py fsweep 30000 60000 90000 120000
"""

from __future__ import annotations

from dotenv import load_dotenv

load_dotenv()

# pylint: disable=wrong-import-position
import argparse
from pathlib import Path

from config import ConfigError, ScenarioConfig
from scenario.sweep import SWEEP_GROUPS, run_sweep, vary, write_results_csv


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="AR/VR transport parameter sweep")
    parser.add_argument("group", choices=SWEEP_GROUPS)
    parser.add_argument("values", nargs="+")
    parser.add_argument("--out", type=Path, default=Path("results.csv"))
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        base = ScenarioConfig.load_from_env()
        # Reject malformed points before any run or output file
        for value in args.values:
            vary(base, args.group, value)
    except ConfigError as exc:
        print(f"config error: {exc}")
        return 2
    except ValueError as exc:
        print(f"invalid sweep value: {exc}")
        return 2

    rows = write_results_csv(run_sweep(base, args.group, args.values), args.out)

    print(f"wrote {rows} rows to {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
