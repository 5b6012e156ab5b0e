"""Speeduino realtime data protocol and the state of the link to the ECU."""

from __future__ import annotations

from typing import Any, MutableMapping, Protocol

CALIBRATION_TEMPERATURE_OFFSET = 40
REQUEST_COMMAND = b"n"
MIN_PACKET_LENGTH = 75
PACKET_LENGTH = 126
REQUEST_QUEUE_LIMIT = 10

_STATUS1_KEYS = (
    "inj1_status",
    "inj2_status",
    "inj3_status",
    "inj4_status",
    "dfco_active",
    "boost_cut_fuel",
)
_ENGINE_KEYS = ("running", "cranking", "warmup")
_SPARK_KEYS = {
    "launch_hard": 0,
    "launch_soft": 1,
    "hard_limit_on": 2,
    "soft_limit_on": 3,
    "spark_error": 5,
    "idle_control_on": 6,
    "sync": 7,
}
_CAN_CHANNELS = 16


class SerialPort(Protocol):
    """The part of a serial port the link needs."""

    @property
    def in_waiting(self) -> int: ...

    def read(self, size: int = 1) -> bytes: ...

    def write(self, data: bytes) -> Any: ...


def bit_check(value: int, pos: int) -> bool:
    """Return whether bit ``pos`` of ``value`` is set."""
    return bool(value & (1 << pos))


def _spark_fields(spark_bits: int) -> dict[str, Any]:
    fields: dict[str, Any] = {"spark_bits": spark_bits}
    fields.update({key: bit_check(spark_bits, pos) for key, pos in _SPARK_KEYS.items()})
    return fields


def initial_readings() -> dict[str, Any]:
    """Return the readings shown before any data has come from the ECU."""
    readings: dict[str, Any] = {"secl": 0}
    readings.update(dict.fromkeys(_STATUS1_KEYS, False))
    readings.update(dict.fromkeys(_ENGINE_KEYS, False))
    readings.update(
        {
            "dwell": 0,
            "MAP": 0,
            "IAT": 0,
            "CLT": 0,
            "TPS": 0,
            "correction_voltage": 0,
            "Battery_Voltage": 0,
            "AFR1": 0,
            "PW1": 0,
            "correction_o2": 0,
            "correction_iat": 0,
            "correction_clt": 0,
            "correction_wue": 0,
            "rpm": 0,
        }
    )
    readings.update(_spark_fields(0))
    readings.update(
        {
            "current_gear": 0,
            "vss": 0,
            "vvt1_angle": 0,
            "error_codes": 0,
            "launch_correction": 0,
            "engine_protect_status": 0,
        }
    )
    return readings


class _ByteReader:
    """Reads a packet byte by byte; reading past the end yields -1 like a drained UART."""

    def __init__(self, data: bytes) -> None:
        self._bytes = iter(data)

    def byte(self) -> int:
        return next(self._bytes, -1)

    def word(self) -> int:
        low = self.byte()
        high = self.byte()
        return low | (high << 8)

    def skip(self, count: int = 1) -> None:
        for _ in range(count):
            self.byte()


def parse_realtime_packet(data: bytes) -> dict[str, Any]:
    """Decode a response to the ``n`` command, header byte included."""
    data = bytes(data)
    if len(data) < MIN_PACKET_LENGTH:
        raise ValueError(
            f"realtime packet too short: {len(data)} bytes, need at least {MIN_PACKET_LENGTH}"
        )
    if data[:1] != REQUEST_COMMAND:
        raise ValueError(f"realtime packet must start with {REQUEST_COMMAND!r}, got {data[:1]!r}")

    reader = _ByteReader(data[1:])
    reader.skip(2)  # command type and response size

    out: dict[str, Any] = {"secl": reader.byte()}

    status1 = reader.byte()
    out.update({key: bit_check(status1, pos) for pos, key in enumerate(_STATUS1_KEYS)})
    engine = reader.byte()
    out.update({key: bit_check(engine, pos) for pos, key in enumerate(_ENGINE_KEYS)})

    out["dwell"] = reader.byte() / 10.0
    out["MAP"] = reader.word()
    out["IAT"] = reader.byte() - CALIBRATION_TEMPERATURE_OFFSET
    out["CLT"] = reader.byte() - CALIBRATION_TEMPERATURE_OFFSET
    out["correction_voltage"] = reader.byte()
    out["Battery_Voltage"] = reader.byte() / 10.0
    out["AFR1"] = reader.byte() / 10.0
    out["correction_o2"] = reader.byte()
    out["correction_iat"] = reader.byte()
    out["correction_wue"] = reader.byte()
    out["rpm"] = reader.word()
    out["correction_ae"] = reader.byte()
    out["correction_total"] = reader.byte()
    out["VE"] = reader.byte()
    out["afr_target"] = reader.byte() / 10.0
    out["PW1"] = int(reader.word() / 10)
    out["tps_DOT"] = reader.byte() * 10
    out["advance"] = reader.byte()
    out["TPS"] = reader.byte()
    out["loops_per_second"] = reader.word()
    out["free_ram"] = reader.word()
    out["boost_target"] = reader.byte() * 2
    out["boost_duty"] = reader.byte()
    out.update(_spark_fields(reader.byte() & 0xFF))
    out["rpmDOT"] = reader.word()
    out["ethanol%"] = reader.byte()
    out["flex_correction"] = reader.byte()
    out["flex_ign_correction"] = reader.byte()
    out["idle_load"] = reader.byte()
    out["test_outputs"] = reader.byte()
    out["AFR2"] = reader.byte()
    out["baro"] = reader.byte()

    for channel in range(1, _CAN_CHANNELS + 1):
        out[f"CAN_Status_{channel}"] = reader.word()

    reader.skip()  # raw TPS
    out["error_codes"] = reader.byte()
    out["launch_correction"] = reader.byte()
    reader.skip(7)  # PW2..PW4, status3
    out["engine_protect_status"] = reader.byte()
    reader.skip(9)  # fuel load, ignition load, injection angle, idle load, idle target, MAP dot
    out["vvt1_angle"] = reader.byte()
    reader.skip(6)  # VVT1 target and duty, flex boost correction, baro correction, ASE
    out["vss"] = reader.word()
    out["current_gear"] = reader.byte()
    return out


class EcuLink:
    """Request/response bookkeeping for the serial link to the ECU."""

    def __init__(self, port: SerialPort) -> None:
        self.port = port
        self.request_queue_size = 0
        self.has_connection = False

    def request_data(self) -> None:
        """Ask the ECU for a realtime data packet."""
        self.port.write(REQUEST_COMMAND)
        self.request_queue_size = (self.request_queue_size + 1) & 0xFF

    def read_available(self, readings: MutableMapping[str, Any]) -> bool:
        """Parse a waiting packet into ``readings``; return whether one was read."""
        if self.port.in_waiting < MIN_PACKET_LENGTH:
            return False
        if self.port.read(1) != REQUEST_COMMAND:
            return False

        self.request_queue_size = (self.request_queue_size - 1) & 0xFF
        self.has_connection = True
        body = self.port.read(self.port.in_waiting)
        readings.update(parse_realtime_packet(REQUEST_COMMAND + body))
        return True

    def tick_watchdog(self) -> bool:
        """Advance the once-a-second timeout; return True when the ECU is deemed lost."""
        if self.request_queue_size >= 2:
            self.request_queue_size += 1
        if self.request_queue_size == REQUEST_QUEUE_LIMIT:
            self.request_queue_size = 0
            self.has_connection = False
            return True
        return False