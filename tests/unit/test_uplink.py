# pylint: disable=missing-module-docstring,missing-function-docstring

from config import UplinkConfig
from constants import CONTROL_HEADER_BYTES
from protocol.headers import decode_control_header
from scheduling.simulated import SimulatedScheduler
from traffic.uplink import UplinkCollector, UplinkGenerator


def test_generator_sends_one_packet_per_interval():
    sched = SimulatedScheduler(start_us=1_000_000)
    sent: list[tuple[int, bytes]] = []
    gen = UplinkGenerator(
        config=UplinkConfig(interval_us=10_000, packet_size_bytes=100),
        scheduler=sched,
        send=lambda packet: sent.append((sched.now_us(), packet)),
    )

    gen.start()
    sched.run(until_us=1_030_000)

    assert [t for t, _ in sent] == [1_000_000, 1_010_000, 1_020_000, 1_030_000]
    assert {len(p) for _, p in sent} == {CONTROL_HEADER_BYTES + 100}
    assert [decode_control_header(p).send_ts_ms for _, p in sent] == [1_000, 1_010, 1_020, 1_030]
    assert gen.packets_sent == 4


def test_generator_stop_cancels_pending_tick():
    sched = SimulatedScheduler()
    sent: list[bytes] = []
    gen = UplinkGenerator(config=UplinkConfig(), scheduler=sched, send=sent.append)

    gen.start()
    gen.stop()
    gen.stop()
    sched.run()

    assert len(sent) == 1
    assert gen.pending_continuations() == 0
    assert not gen.running


def test_collector_records_one_delay_per_packet():
    sched = SimulatedScheduler()
    collector = UplinkCollector(clock=sched)
    sent: list[bytes] = []
    gen = UplinkGenerator(config=UplinkConfig(interval_us=10_000), scheduler=sched, send=sent.append)

    collector.start()
    gen.start()
    sched.run(until_us=10_000)
    gen.stop()
    sched.run(until_us=17_000)

    delays = [collector.on_packet(p) for p in sent]

    assert delays == [17, 7]
    assert collector.packets_received == 2
    assert collector.delay_stats.maximum() == 17


def test_collector_ignores_packets_when_stopped():
    sched = SimulatedScheduler()
    collector = UplinkCollector(clock=sched)

    assert collector.on_packet(b"\x00" * 8) is None
    assert collector.delay_stats.is_empty()
