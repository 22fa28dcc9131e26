# pylint: disable=missing-module-docstring,missing-function-docstring

import json
from typing import Any

import pytest

from observability import logger, metrics


def capture(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    captured: list[str] = []
    monkeypatch.setattr(logger, "_print", captured.append)
    return captured


def test_log_event_emits_valid_jsonl(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """
    - log_event emits exactly one JSONL line
    - payload is serialized as-is
    - output sink is patchable
    """
    captured = capture(monkeypatch)

    payload: dict[str, Any] = {
        "event_type": "TEST",
        "value": 123,
    }

    logger.log_event(payload)

    assert len(captured) == 1
    assert json.loads(captured[0]) == payload


def test_component_event_carries_envelope_fields(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = capture(monkeypatch)

    logger.log_component_event(
        "GENERATOR_STOPPED",
        ts_ms=10_000,
        component="downlink",
        frames_generated=273,
    )

    assert json.loads(captured[0]) == {
        "ts_ms": 10_000,
        "event_type": "GENERATOR_STOPPED",
        "component": "downlink",
        "frames_generated": 273,
    }


def test_unserializable_payload_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = capture(monkeypatch)

    logger.log_event({"ts_ms": 1, "event_type": "BAD", "obj": object()})

    decoded = json.loads(captured[0])
    assert decoded["event_type"] == "LOGGER_SERIALIZATION_ERROR"
    assert decoded["ts_ms"] == 1


# ---------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------

def test_timed_emits_one_metric_and_reads_details_at_exit(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    captured = capture(monkeypatch)
    details: dict[str, Any] = {}

    with metrics.timed("scenario_wall_time", scenario="udp", details=details):
        details["callbacks"] = 42

    assert len(captured) == 1
    event = json.loads(captured[0])
    assert event["event_type"] == "METRIC_TIMER"
    assert event["metric"] == "scenario_wall_time"
    assert event["scenario"] == "udp"
    assert event["details"] == {"callbacks": 42}
    assert event["failed"] is False
    assert event["value_ms"] >= 0


def test_timed_emits_failed_metric_when_block_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = capture(monkeypatch)

    with pytest.raises(RuntimeError):
        with metrics.timed("boom"):
            raise RuntimeError("boom")

    assert len(captured) == 1
    assert json.loads(captured[0])["failed"] is True
