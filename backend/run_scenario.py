"""
Single-scenario entry point.

Reads ARVR_* settings from the environment (and a local .env file), runs
one scenario in simulated time and prints the report lines after the
JSONL event log.

    ARVR_TRANSPORT=tcp ARVR_DEADLINE_MS=80 python backend/run_scenario.py
"""

from dotenv import load_dotenv

load_dotenv()

# pylint: disable=wrong-import-position
from config import ConfigError, ScenarioConfig
from scenario.report import format_report_lines
from scenario.runner import run_scenario


def main() -> int:
    try:
        config = ScenarioConfig.load_from_env()
    except ConfigError as exc:
        print(f"config error: {exc}")
        return 2

    report = run_scenario(config)
    for line in format_report_lines(report):
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
