"""
JSONL event logger for traffic runs.

Contract:
- One JSON object per line on stdout, flushed immediately
- Never raises on unserializable payloads
- Events are stamped with the *simulated* clock (ts_ms), so a run's log
  lines up with the delays it reports

Components call `log_component_event()`; `log_event()` is the raw sink
used for pre-built payloads (scenario reports, metric timers).
"""

from __future__ import annotations

import json
import sys
from typing import Any, Callable, Mapping


# ------------------------------------------------------------------
# Output sink (patchable in tests)
# ------------------------------------------------------------------

def _stdout_print(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()

_print: Callable[[str], None] = _stdout_print


def _serialize(event: Mapping[str, Any]) -> str:
    try:
        return json.dumps(event, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        fallback: dict[str, Any] = {
            "ts_ms": event.get("ts_ms"),
            "event_type": "LOGGER_SERIALIZATION_ERROR",
            "error": str(e),
            "original_event_repr": repr(event),
        }
        return json.dumps(fallback, ensure_ascii=False, separators=(",", ":"))


def log_event(event: Mapping[str, Any]) -> None:
    """
    Write a single pre-built event as one JSONL line.
    """
    _print(_serialize(event))


def log_component_event(
    event_type: str,
    *,
    ts_ms: int,
    component: str,
    **details: Any,
) -> None:
    """
    Emit a lifecycle / anomaly event for one traffic component.

    Args:
        event_type: Upper-case event name (e.g. "STREAM_BUFFER_OVERFLOW").
        ts_ms: Simulated clock time of the event.
        component: Instance label (e.g. "downlink", "vr-recv").
        details: Flat, JSON-serializable fields.
    """
    event: dict[str, Any] = {
        "ts_ms": ts_ms,
        "event_type": event_type,
        "component": component,
    }
    event.update(details)
    log_event(event)
