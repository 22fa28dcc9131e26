"""
Scenario configuration.

Responsibilities:
- Provide typed, immutable config objects per component
- Validate every value at setup time, before any traffic runs
- Read scenario parameters from environment variables

Non-responsibilities:
- No traffic logic
- No wire-format constants (see constants.py)
- No runtime mutation
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, TypeVar

from constants import (
    DEFAULT_APP_START_US,
    DEFAULT_APP_STOP_US,
    DEFAULT_DEADLINE_MS,
    DEFAULT_FRAGMENT_PAYLOAD_BYTES,
    DEFAULT_FRAME_INTERVAL_US,
    DEFAULT_FRAME_SIZE_BYTES,
    DEFAULT_LINK_DELAY_US,
    DEFAULT_LINK_RATE_BPS,
    DEFAULT_PACING_INTERVAL_US,
    DEFAULT_SIM_END_US,
    DEFAULT_STREAM_BUFFER_CAPACITY_BYTES,
    DEFAULT_STREAM_RECORD_BYTES,
    DEFAULT_STREAM_SEGMENT_BYTES,
    DEFAULT_UPLINK_INTERVAL_US,
    DEFAULT_UPLINK_PACKET_BYTES,
    FRAME_HEADER_BYTES,
    U16_MAX,
    US_PER_MS,
    US_PER_S,
)
from traffic.enums.ingest_mode import IngestMode
from traffic.enums.release_mode import ReleaseMode
from traffic.enums.transport import Transport


class ConfigError(ValueError):
    """
    Raised for an invalid or unsupported configuration value.

    Always fatal: raised while building configs, before any traffic runs.
    """


_E = TypeVar("_E", bound=Enum)


def parse_enum(enum_cls: type[_E], value: Any, *, name: str) -> _E:
    """
    Coerce `value` into `enum_cls`, case-insensitively for strings.

    Raises:
        ConfigError for unknown values.
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(str(m.value) for m in enum_cls)
        raise ConfigError(f"Unknown {name}: {value!r} (expected one of: {allowed})") from exc


def _require_positive(name: str, value: int) -> None:
    if value <= 0:
        raise ConfigError(f"{name} must be > 0, got {value}")


def _require_non_negative(name: str, value: float) -> None:
    if value < 0:
        raise ConfigError(f"{name} must be >= 0, got {value}")


# ------------------------------------------------------------------
# Component configs
# ------------------------------------------------------------------

@dataclass(frozen=True)
class GeneratorConfig:
    """
    Downlink frame generator configuration.

    pacing_interval_us is only used in PACED mode.
    """

    frame_size_bytes: int = DEFAULT_FRAME_SIZE_BYTES
    fragment_payload_bytes: int = DEFAULT_FRAGMENT_PAYLOAD_BYTES
    frame_interval_us: int = DEFAULT_FRAME_INTERVAL_US
    release_mode: ReleaseMode = ReleaseMode.BURST
    pacing_interval_us: int = DEFAULT_PACING_INTERVAL_US

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "release_mode",
            parse_enum(ReleaseMode, self.release_mode, name="release mode"),
        )
        _require_positive("frame_size_bytes", self.frame_size_bytes)
        _require_positive("fragment_payload_bytes", self.fragment_payload_bytes)
        _require_positive("frame_interval_us", self.frame_interval_us)
        _require_positive("pacing_interval_us", self.pacing_interval_us)

        if self.fragment_count > U16_MAX:
            raise ConfigError(
                f"frame of {self.frame_size_bytes} B needs {self.fragment_count} "
                f"fragments; the header allows at most {U16_MAX}"
            )

    @property
    def fragment_count(self) -> int:
        """ceil(frame_size / fragment_payload)."""
        return math.ceil(self.frame_size_bytes / self.fragment_payload_bytes)


@dataclass(frozen=True)
class ReceiverConfig:
    """
    Frame reassembly receiver configuration.

    stream_* values are only used in STREAM mode. A stream record is
    header + fixed payload.
    """

    deadline_ms: int = DEFAULT_DEADLINE_MS
    ingest_mode: IngestMode = IngestMode.MESSAGE
    stream_record_bytes: int = DEFAULT_STREAM_RECORD_BYTES
    stream_buffer_capacity_bytes: int = DEFAULT_STREAM_BUFFER_CAPACITY_BYTES

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "ingest_mode",
            parse_enum(IngestMode, self.ingest_mode, name="ingest mode"),
        )
        _require_non_negative("deadline_ms", self.deadline_ms)

        if self.stream_record_bytes < FRAME_HEADER_BYTES:
            raise ConfigError(
                f"stream_record_bytes must be >= {FRAME_HEADER_BYTES}, "
                f"got {self.stream_record_bytes}"
            )
        if self.stream_buffer_capacity_bytes < self.stream_record_bytes:
            raise ConfigError(
                "stream_buffer_capacity_bytes must hold at least one record "
                f"({self.stream_buffer_capacity_bytes} < {self.stream_record_bytes})"
            )


@dataclass(frozen=True)
class UplinkConfig:
    """Uplink periodic generator configuration."""

    interval_us: int = DEFAULT_UPLINK_INTERVAL_US
    packet_size_bytes: int = DEFAULT_UPLINK_PACKET_BYTES

    def __post_init__(self) -> None:
        _require_positive("interval_us", self.interval_us)
        _require_non_negative("packet_size_bytes", self.packet_size_bytes)


@dataclass(frozen=True)
class LinkConfig:
    """
    Simulated point-to-point link used by scenario runs.

    rate_bps:
        Serialization rate in bits per second. 0 disables serialization
        delay (infinite rate).

    loss_rate:
        Bernoulli drop probability per datagram, in [0, 1]. Not applied
        to stream delivery (the stream transport is reliable).

    stream_segment_bytes:
        Stream delivery re-chunks the byte stream into segments of this
        size, so segment boundaries never align with records.
    """

    delay_us: int = DEFAULT_LINK_DELAY_US
    rate_bps: int = DEFAULT_LINK_RATE_BPS
    loss_rate: float = 0.0
    seed: int = 1
    stream_segment_bytes: int = DEFAULT_STREAM_SEGMENT_BYTES

    def __post_init__(self) -> None:
        _require_non_negative("delay_us", self.delay_us)
        _require_non_negative("rate_bps", self.rate_bps)
        if not 0.0 <= self.loss_rate <= 1.0:
            raise ConfigError(f"loss_rate must be within [0, 1], got {self.loss_rate}")
        _require_positive("stream_segment_bytes", self.stream_segment_bytes)


# ------------------------------------------------------------------
# Scenario config
# ------------------------------------------------------------------

@dataclass(frozen=True)
class ScenarioConfig:
    """
    Immutable description of one end-to-end run.

    `transport` labels the run; from_transport() also applies its
    release/ingest profile. Direct construction may mix modes freely.

    Timeline:
    - receivers listen from t=0
    - generators run from start_us until stop_us
    - receiver end-of-run accounting happens at stop_us
    - the simulation runs until end_us
    """

    transport: Transport = Transport.UDP
    downlink: GeneratorConfig = field(default_factory=GeneratorConfig)
    receiver: ReceiverConfig = field(default_factory=ReceiverConfig)
    uplink: UplinkConfig = field(default_factory=UplinkConfig)
    downlink_link: LinkConfig = field(default_factory=LinkConfig)
    uplink_link: LinkConfig = field(default_factory=LinkConfig)
    start_us: int = DEFAULT_APP_START_US
    stop_us: int = DEFAULT_APP_STOP_US
    end_us: int = DEFAULT_SIM_END_US

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "transport",
            parse_enum(Transport, self.transport, name="transport"),
        )
        _require_non_negative("start_us", self.start_us)
        if self.stop_us < self.start_us:
            raise ConfigError(f"stop_us ({self.stop_us}) < start_us ({self.start_us})")
        if self.end_us < self.stop_us:
            raise ConfigError(f"end_us ({self.end_us}) < stop_us ({self.stop_us})")

    @property
    def label(self) -> str:
        """Stable run label built from the swept parameters."""
        return (
            f"arvr_tx-{self.transport.value}"
            f"_rate-{self.downlink_link.rate_bps}bps"
            f"_delay-{self.downlink_link.delay_us}us"
            f"_loss-{self.downlink_link.loss_rate}"
            f"_deadline-{self.receiver.deadline_ms}"
            f"_fs-{self.downlink.frame_size_bytes}"
        )

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @staticmethod
    def from_transport(
        transport: Transport | str,
        *,
        downlink: GeneratorConfig | None = None,
        receiver: ReceiverConfig | None = None,
        **overrides: Any,
    ) -> ScenarioConfig:
        """
        Build a scenario whose release/ingest modes follow the transport
        profile (udp, quic, tcp).

        Explicit downlink/receiver configs keep their other fields; only
        release_mode / ingest_mode are forced to the profile.

        Raises:
            ConfigError for an unknown transport.
        """
        profile = parse_enum(Transport, transport, name="transport")
        downlink = replace(
            downlink or GeneratorConfig(),
            release_mode=profile.release_mode,
        )
        receiver = replace(
            receiver or ReceiverConfig(),
            ingest_mode=profile.ingest_mode,
        )
        return ScenarioConfig(
            transport=profile,
            downlink=downlink,
            receiver=receiver,
            **overrides,
        )

    @staticmethod
    def load_from_env(environ: Mapping[str, str] | None = None) -> ScenarioConfig:
        """
        Load a scenario from ARVR_* environment variables.

        Recognized variables (all optional):
            ARVR_TRANSPORT            udp | quic | tcp           (udp)
            ARVR_DEADLINE_MS          per-frame deadline         (50)
            ARVR_FRAME_SIZE           downlink frame bytes       (90000)
            ARVR_FRAGMENT_PAYLOAD     bytes per fragment         (1200)
            ARVR_FRAME_INTERVAL_MS    frame interval             (33)
            ARVR_PACING_INTERVAL_US   paced fragment spacing     (200)
            ARVR_STREAM_BUFFER_BYTES  stream reassembly capacity (200000)
            ARVR_UPLINK_INTERVAL_MS   uplink period              (10)
            ARVR_UPLINK_PACKET_BYTES  uplink payload bytes       (100)
            ARVR_LINK_RATE_BPS        bottleneck rate            (100000000)
            ARVR_LINK_DELAY_MS        one-way delay              (10)
            ARVR_LOSS                 downlink loss rate         (0.0)
            ARVR_SEED                 loss RNG seed              (1)
            ARVR_START_S / ARVR_STOP_S / ARVR_END_S  timeline   (1 / 10 / 20)

        Raises:
            ConfigError for malformed or unsupported values.
        """
        env = os.environ if environ is None else environ

        def _int(key: str, default: int) -> int:
            raw = env.get(key)
            if raw is None or raw.strip() == "":
                return default
            try:
                return int(raw)
            except ValueError as exc:
                raise ConfigError(f"{key} must be an integer, got {raw!r}") from exc

        def _float(key: str, default: float) -> float:
            raw = env.get(key)
            if raw is None or raw.strip() == "":
                return default
            try:
                return float(raw)
            except ValueError as exc:
                raise ConfigError(f"{key} must be a number, got {raw!r}") from exc

        fragment_payload = _int("ARVR_FRAGMENT_PAYLOAD", DEFAULT_FRAGMENT_PAYLOAD_BYTES)

        downlink = GeneratorConfig(
            frame_size_bytes=_int("ARVR_FRAME_SIZE", DEFAULT_FRAME_SIZE_BYTES),
            fragment_payload_bytes=fragment_payload,
            frame_interval_us=_int(
                "ARVR_FRAME_INTERVAL_MS", DEFAULT_FRAME_INTERVAL_US // US_PER_MS
            ) * US_PER_MS,
            pacing_interval_us=_int("ARVR_PACING_INTERVAL_US", DEFAULT_PACING_INTERVAL_US),
        )
        receiver = ReceiverConfig(
            deadline_ms=_int("ARVR_DEADLINE_MS", DEFAULT_DEADLINE_MS),
            stream_record_bytes=FRAME_HEADER_BYTES + fragment_payload,
            stream_buffer_capacity_bytes=_int(
                "ARVR_STREAM_BUFFER_BYTES", DEFAULT_STREAM_BUFFER_CAPACITY_BYTES
            ),
        )
        uplink = UplinkConfig(
            interval_us=_int(
                "ARVR_UPLINK_INTERVAL_MS", DEFAULT_UPLINK_INTERVAL_US // US_PER_MS
            ) * US_PER_MS,
            packet_size_bytes=_int("ARVR_UPLINK_PACKET_BYTES", DEFAULT_UPLINK_PACKET_BYTES),
        )
        rate_bps = _int("ARVR_LINK_RATE_BPS", DEFAULT_LINK_RATE_BPS)
        delay_us = _int("ARVR_LINK_DELAY_MS", DEFAULT_LINK_DELAY_US // US_PER_MS) * US_PER_MS
        seed = _int("ARVR_SEED", 1)

        return ScenarioConfig.from_transport(
            env.get("ARVR_TRANSPORT", Transport.UDP.value),
            downlink=downlink,
            receiver=receiver,
            uplink=uplink,
            downlink_link=LinkConfig(
                delay_us=delay_us,
                rate_bps=rate_bps,
                loss_rate=_float("ARVR_LOSS", 0.0),
                seed=seed,
            ),
            # Loss is emulated on the downlink receiver side only
            uplink_link=LinkConfig(delay_us=delay_us, rate_bps=rate_bps, seed=seed + 1),
            start_us=int(_float("ARVR_START_S", DEFAULT_APP_START_US / US_PER_S) * US_PER_S),
            stop_us=int(_float("ARVR_STOP_S", DEFAULT_APP_STOP_US / US_PER_S) * US_PER_S),
            end_us=int(_float("ARVR_END_S", DEFAULT_SIM_END_US / US_PER_S) * US_PER_S),
        )
