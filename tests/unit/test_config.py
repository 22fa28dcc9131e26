# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from config import (
    ConfigError,
    GeneratorConfig,
    LinkConfig,
    ReceiverConfig,
    ScenarioConfig,
    UplinkConfig,
)
from traffic.enums.ingest_mode import IngestMode
from traffic.enums.release_mode import ReleaseMode
from traffic.enums.transport import Transport


# ---------------------------------------------------------------------
# Transport profiles
# ---------------------------------------------------------------------

@pytest.mark.parametrize(
    "transport, release, ingest",
    [
        ("udp", ReleaseMode.BURST, IngestMode.MESSAGE),
        ("quic", ReleaseMode.PACED, IngestMode.MESSAGE),
        ("tcp", ReleaseMode.BURST, IngestMode.STREAM),
    ],
)
def test_transport_profile_sets_modes(transport, release, ingest):
    config = ScenarioConfig.from_transport(transport)

    assert config.transport is Transport(transport)
    assert config.downlink.release_mode is release
    assert config.receiver.ingest_mode is ingest


def test_from_transport_keeps_other_fields():
    config = ScenarioConfig.from_transport(
        "QUIC",
        downlink=GeneratorConfig(frame_size_bytes=2400),
        receiver=ReceiverConfig(deadline_ms=80),
        stop_us=2_000_000,
    )

    assert config.downlink.frame_size_bytes == 2400
    assert config.downlink.release_mode is ReleaseMode.PACED
    assert config.receiver.deadline_ms == 80
    assert config.stop_us == 2_000_000


def test_unknown_transport_is_config_error():
    with pytest.raises(ConfigError):
        ScenarioConfig.from_transport("sctp")


def test_unknown_modes_are_config_errors():
    with pytest.raises(ConfigError):
        GeneratorConfig(release_mode="trickle")
    with pytest.raises(ConfigError):
        ReceiverConfig(ingest_mode="carrier-pigeon")


# ---------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------

@pytest.mark.parametrize(
    "kwargs",
    [
        {"frame_size_bytes": 0},
        {"fragment_payload_bytes": 0},
        {"frame_interval_us": 0},
        {"pacing_interval_us": -1},
        {"frame_size_bytes": 70_000, "fragment_payload_bytes": 1},
    ],
)
def test_generator_config_rejects_bad_values(kwargs):
    with pytest.raises(ConfigError):
        GeneratorConfig(**kwargs)


def test_receiver_config_rejects_capacity_below_record():
    with pytest.raises(ConfigError):
        ReceiverConfig(stream_record_bytes=1212, stream_buffer_capacity_bytes=1000)
    with pytest.raises(ConfigError):
        ReceiverConfig(stream_record_bytes=8)


def test_other_configs_reject_bad_values():
    with pytest.raises(ConfigError):
        UplinkConfig(interval_us=0)
    with pytest.raises(ConfigError):
        LinkConfig(loss_rate=1.5)
    with pytest.raises(ConfigError):
        ScenarioConfig(start_us=5, stop_us=1)


def test_config_error_is_a_value_error():
    assert issubclass(ConfigError, ValueError)


# ---------------------------------------------------------------------
# Environment loading
# ---------------------------------------------------------------------

def test_load_from_env_defaults():
    config = ScenarioConfig.load_from_env({})

    assert config.transport is Transport.UDP
    assert config.receiver.deadline_ms == 50
    assert config.downlink.fragment_count == 75
    assert config.downlink.frame_interval_us == 33_000
    assert config.uplink.interval_us == 10_000
    assert (config.start_us, config.stop_us, config.end_us) == (1_000_000, 10_000_000, 20_000_000)


def test_load_from_env_overrides():
    config = ScenarioConfig.load_from_env({
        "ARVR_TRANSPORT": "tcp",
        "ARVR_DEADLINE_MS": "80",
        "ARVR_FRAME_SIZE": "60000",
        "ARVR_LINK_DELAY_MS": "20",
        "ARVR_LOSS": "0.01",
        "ARVR_STOP_S": "2.5",
    })

    assert config.receiver.ingest_mode is IngestMode.STREAM
    assert config.receiver.deadline_ms == 80
    assert config.receiver.stream_record_bytes == 1212
    assert config.downlink.fragment_count == 50
    assert config.downlink_link.delay_us == 20_000
    assert config.downlink_link.loss_rate == pytest.approx(0.01)
    assert config.uplink_link.loss_rate == 0.0
    assert config.stop_us == 2_500_000


def test_load_from_env_rejects_malformed_values():
    with pytest.raises(ConfigError):
        ScenarioConfig.load_from_env({"ARVR_DEADLINE_MS": "soon"})
    with pytest.raises(ConfigError):
        ScenarioConfig.load_from_env({"ARVR_TRANSPORT": "smoke-signal"})


def test_label_names_swept_parameters():
    label = ScenarioConfig.from_transport("quic").label

    assert label.startswith("arvr_tx-quic_")
    assert "_deadline-50_" in label
