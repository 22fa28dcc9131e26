# pylint: disable=missing-module-docstring,missing-function-docstring

from config import GeneratorConfig
from constants import FRAME_HEADER_BYTES, MIN_RESCHEDULE_DELAY_US
from protocol.headers import FrameHeader, decode_frame_header
from scheduling.simulated import SimulatedScheduler
from traffic.downlink import FrameGenerator
from traffic.enums.release_mode import ReleaseMode


def make_generator(
    config: GeneratorConfig,
    *,
    start_us: int = 0,
) -> tuple[SimulatedScheduler, FrameGenerator, list[tuple[int, FrameHeader, int]]]:
    sched = SimulatedScheduler(start_us=start_us)
    sent: list[tuple[int, FrameHeader, int]] = []

    def send(packet: bytes) -> None:
        sent.append((sched.now_us(), decode_frame_header(packet), len(packet)))

    return sched, FrameGenerator(config=config, scheduler=sched, send=send), sent


# ---------------------------------------------------------------------
# Fragmentation
# ---------------------------------------------------------------------

def test_default_frame_splits_into_75_fragments():
    assert GeneratorConfig().fragment_count == 75


def test_partial_last_fragment_rounds_up():
    assert GeneratorConfig(frame_size_bytes=2401, fragment_payload_bytes=1200).fragment_count == 3
    assert GeneratorConfig(frame_size_bytes=1, fragment_payload_bytes=1200).fragment_count == 1


# ---------------------------------------------------------------------
# Burst release
# ---------------------------------------------------------------------

def test_burst_emits_whole_frame_at_once_with_shared_header_fields():
    sched, gen, sent = make_generator(GeneratorConfig(), start_us=5_000_000)

    gen.start()

    assert len(sent) == 75
    assert {t for t, _, _ in sent} == {5_000_000}
    assert {h.frame_id for _, h, _ in sent} == {0}
    assert {h.send_ts_ms for _, h, _ in sent} == {5_000}
    assert {h.fragment_count for _, h, _ in sent} == {75}
    assert [h.fragment_index for _, h, _ in sent] == list(range(75))
    assert {size for _, _, size in sent} == {FRAME_HEADER_BYTES + 1200}
    assert sched.pending_count() == 1


def test_burst_cadence_is_fixed_frame_interval():
    config = GeneratorConfig(frame_size_bytes=2400, frame_interval_us=33_000)
    sched, gen, sent = make_generator(config)

    gen.start()
    sched.run(until_us=99_000)

    starts = sorted({(h.frame_id, t) for t, h, _ in sent})
    assert starts == [(0, 0), (1, 33_000), (2, 66_000), (3, 99_000)]
    assert gen.frames_generated == 4
    assert gen.fragments_sent == 8


# ---------------------------------------------------------------------
# Paced release
# ---------------------------------------------------------------------

def test_paced_fragments_are_spaced_and_share_first_timestamp():
    config = GeneratorConfig(
        frame_size_bytes=3600,
        release_mode=ReleaseMode.PACED,
        pacing_interval_us=200,
        frame_interval_us=33_000,
    )
    sched, gen, sent = make_generator(config, start_us=1_000_000)

    gen.start()
    sched.run(until_us=1_000_500)

    assert [t for t, _, _ in sent] == [1_000_000, 1_000_200, 1_000_400]
    assert [h.fragment_index for _, h, _ in sent] == [0, 1, 2]
    assert {h.send_ts_ms for _, h, _ in sent} == {1_000}


def test_paced_next_frame_follows_last_fragment_by_remaining_interval():
    config = GeneratorConfig(
        frame_size_bytes=3600,
        release_mode=ReleaseMode.PACED,
        pacing_interval_us=200,
        frame_interval_us=33_000,
    )
    sched, gen, sent = make_generator(config)

    gen.start()
    sched.run(until_us=40_000)

    # last fragment at 400us, then 33000 - 3*200 = 32400us
    frame_one = [t for t, h, _ in sent if h.frame_id == 1]
    assert frame_one[0] == 400 + 32_400
    assert gen.next_frame_delay_us() == 32_400


def test_paced_overrun_reschedules_after_minimum_delay():
    config = GeneratorConfig(
        frame_size_bytes=12_000,
        release_mode=ReleaseMode.PACED,
        pacing_interval_us=1_000,
        frame_interval_us=5_000,
    )
    sched, gen, sent = make_generator(config)

    gen.start()
    sched.run(until_us=9_002)

    assert gen.next_frame_delay_us() == MIN_RESCHEDULE_DELAY_US
    frame_one = [t for t, h, _ in sent if h.frame_id == 1]
    assert frame_one[0] == 9_000 + MIN_RESCHEDULE_DELAY_US


# ---------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------

def test_stop_cancels_in_flight_paced_chain():
    config = GeneratorConfig(
        frame_size_bytes=12_000,
        release_mode=ReleaseMode.PACED,
        pacing_interval_us=200,
    )
    sched, gen, sent = make_generator(config)

    gen.start()
    sched.call_later(500, gen.stop)
    sched.run()

    # fragments at 0, 200, 400; the one due at 600 never runs
    assert [h.fragment_index for _, h, _ in sent] == [0, 1, 2]
    assert gen.pending_continuations() == 0
    assert sched.pending_count() == 0
    assert not gen.running


def test_stop_cancels_next_frame_trigger_and_is_idempotent():
    sched, gen, sent = make_generator(GeneratorConfig(frame_size_bytes=1200))

    gen.start()
    gen.stop()
    gen.stop()
    sched.run()

    assert len(sent) == 1
    assert sched.pending_count() == 0


def test_frame_ids_increase_across_frames():
    sched, gen, sent = make_generator(GeneratorConfig(frame_size_bytes=1200))

    gen.start()
    sched.run(until_us=33_000 * 9)

    assert [h.frame_id for _, h, _ in sent] == list(range(10))
    assert gen.next_frame_id == 10
