"""
End-to-end scenario runner.

Wires both traffic directions on one scheduler:

    FrameGenerator --(downlink link)--> FrameReceiver
    UplinkGenerator --(uplink link)--> UplinkCollector

and drives the timeline of ScenarioConfig:
- receivers listen from "now"
- generators start at start_us
- generators, receiver and collector stop at stop_us (receiver
  end-of-run accounting happens here)
- the scheduler runs until end_us

Every component is an exclusive-owner actor; the runner only reads their
accessors after the run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from config import ScenarioConfig
from observability.logger import log_event
from observability.metrics import timed
from scenario.link import SimulatedLink
from scenario.report import DelaySummary, ScenarioReport
from scheduling.simulated import SimulatedScheduler
from traffic.downlink import FrameGenerator
from traffic.enums.ingest_mode import IngestMode
from traffic.receiver import FrameReceiver
from traffic.uplink import UplinkCollector, UplinkGenerator


@dataclass
class Scenario:
    """Container for one wired run. Built by build_scenario()."""

    config: ScenarioConfig
    scheduler: SimulatedScheduler
    generator: FrameGenerator
    receiver: FrameReceiver
    uplink_generator: UplinkGenerator
    uplink_collector: UplinkCollector
    downlink_link: SimulatedLink
    uplink_link: SimulatedLink


def build_scenario(
    config: ScenarioConfig,
    *,
    scheduler: SimulatedScheduler | None = None,
) -> Scenario:
    """
    Construct and wire all components. Nothing is started or scheduled.
    """
    scheduler = scheduler or SimulatedScheduler()
    stream = config.receiver.ingest_mode is IngestMode.STREAM

    receiver = FrameReceiver(config=config.receiver, clock=scheduler)
    downlink_link = SimulatedLink(
        config=config.downlink_link,
        scheduler=scheduler,
        stream=stream,
        name="downlink-link",
    )
    downlink_link.connect(receiver.on_stream_data if stream else receiver.on_message)
    generator = FrameGenerator(
        config=config.downlink,
        scheduler=scheduler,
        send=downlink_link.send,
    )

    collector = UplinkCollector(clock=scheduler)
    uplink_link = SimulatedLink(
        config=config.uplink_link,
        scheduler=scheduler,
        name="uplink-link",
    )
    uplink_link.connect(collector.on_packet)
    uplink_generator = UplinkGenerator(
        config=config.uplink,
        scheduler=scheduler,
        send=uplink_link.send,
    )

    return Scenario(
        config=config,
        scheduler=scheduler,
        generator=generator,
        receiver=receiver,
        uplink_generator=uplink_generator,
        uplink_collector=collector,
        downlink_link=downlink_link,
        uplink_link=uplink_link,
    )


def _schedule_timeline(scenario: Scenario) -> None:
    sched = scenario.scheduler
    config = scenario.config
    now_us = sched.now_us()

    scenario.receiver.start()
    scenario.uplink_collector.start()

    start_in = max(config.start_us - now_us, 0)
    sched.call_later(start_in, scenario.generator.start)
    sched.call_later(start_in, scenario.uplink_generator.start)

    stop_in = max(config.stop_us - now_us, 0)
    sched.call_later(stop_in, scenario.generator.stop)
    sched.call_later(stop_in, scenario.uplink_generator.stop)
    sched.call_later(stop_in, scenario.receiver.stop)
    sched.call_later(stop_in, scenario.uplink_collector.stop)


def collect_report(scenario: Scenario) -> ScenarioReport:
    receiver = scenario.receiver
    return ScenarioReport(
        label=scenario.config.label,
        transport=scenario.config.transport.value,
        total=receiver.total_frames,
        on_time=receiver.on_time_frames,
        late=receiver.late_frames,
        incomplete=receiver.incomplete_frames,
        downlink_delay=DelaySummary.from_stats(receiver.delay_stats),
        uplink_delay=DelaySummary.from_stats(scenario.uplink_collector.delay_stats),
        frames_generated=scenario.generator.frames_generated,
        fragments_sent=scenario.generator.fragments_sent,
        fragments_dropped=scenario.downlink_link.packets_dropped,
        uplink_packets_sent=scenario.uplink_generator.packets_sent,
    )


def run_scenario(
    config: ScenarioConfig,
    *,
    scheduler: SimulatedScheduler | None = None,
) -> ScenarioReport:
    """
    Build, run and report one scenario.

    Returns the report after the scheduler reached config.end_us.
    """
    scenario = build_scenario(config, scheduler=scheduler)
    _schedule_timeline(scenario)

    details: dict[str, Any] = {}
    with timed("scenario_wall_time", scenario=config.label, details=details):
        details["callbacks"] = scenario.scheduler.run(until_us=config.end_us)
        details["sim_end_us"] = scenario.scheduler.now_us()

    scenario.downlink_link.close()
    scenario.uplink_link.close()

    report = collect_report(scenario)
    log_event({
        "ts_ms": scenario.scheduler.now_ms(),
        "event_type": "SCENARIO_REPORT",
        **report.as_dict(),
    })
    return report
