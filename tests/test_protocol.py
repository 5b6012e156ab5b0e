import pytest

from airbear.protocol import (
    CALIBRATION_TEMPERATURE_OFFSET,
    MIN_PACKET_LENGTH,
    PACKET_LENGTH,
    REQUEST_COMMAND,
    REQUEST_QUEUE_LIMIT,
    EcuLink,
    bit_check,
    initial_readings,
    parse_realtime_packet,
)


class FakePort:
    def __init__(self, incoming=b""):
        self.buffer = bytearray(incoming)
        self.written = bytearray()

    @property
    def in_waiting(self):
        return len(self.buffer)

    def read(self, size=1):
        chunk = bytes(self.buffer[:size])
        del self.buffer[:size]
        return chunk

    def write(self, data):
        self.written += data
        return len(data)


def make_packet(fields=None, length=PACKET_LENGTH):
    data = bytearray(length)
    data[0] = ord("n")
    data[1] = 0x32
    for offset, value in (fields or {}).items():
        data[3 + offset] = value
    return bytes(data)


def test_bit_check():
    assert bit_check(0b10000000, 7) is True
    assert bit_check(0b10000000, 6) is False
    assert bit_check(1, 0) is True


def test_initial_readings_are_zeroed():
    readings = initial_readings()
    assert readings["rpm"] == 0
    assert readings["sync"] is False
    assert readings["correction_clt"] == 0
    assert readings["spark_bits"] == 0


def test_short_packet_rejected():
    with pytest.raises(ValueError):
        parse_realtime_packet(make_packet(length=MIN_PACKET_LENGTH - 1))


def test_wrong_header_rejected():
    data = bytearray(make_packet())
    data[0] = ord("A")
    with pytest.raises(ValueError):
        parse_realtime_packet(bytes(data))


def test_words_are_little_endian():
    out = parse_realtime_packet(make_packet({4: 0x34, 5: 0x12, 14: 0x34, 15: 0x12, 100: 0x34, 101: 0x12}))
    assert out["MAP"] == 0x1234
    assert out["rpm"] == 0x1234
    assert out["vss"] == 0x1234


def test_temperatures_use_calibration_offset():
    out = parse_realtime_packet(make_packet({6: 30, 7: 130}))
    assert out["IAT"] == 30 - CALIBRATION_TEMPERATURE_OFFSET
    assert out["IAT"] < 0
    assert out["CLT"] == 130 - CALIBRATION_TEMPERATURE_OFFSET


def test_scaled_values():
    out = parse_realtime_packet(make_packet({3: 25}))
    assert out["dwell"] == 2.5
    assert isinstance(out["PW1"], int)


def test_spark_bits():
    out = parse_realtime_packet(make_packet({31: 0b10000101}))
    assert out["spark_bits"] == 0b10000101
    assert out["launch_hard"] is True
    assert out["launch_soft"] is False
    assert out["hard_limit_on"] is True
    assert out["soft_limit_on"] is False
    assert out["sync"] is True


def test_engine_and_status_bits():
    out = parse_realtime_packet(make_packet({1: 0b00000001, 2: 0b00000010}))
    assert out["inj1_status"] is True
    assert out["inj2_status"] is False
    assert out["running"] is False
    assert out["cranking"] is True


def test_can_status_channels():
    out = parse_realtime_packet(make_packet({71: 0x34, 72: 0x12}))
    can_keys = [key for key in out if key.startswith("CAN_Status_")]
    assert can_keys == [f"CAN_Status_{n}" for n in range(1, 17)]
    assert out["CAN_Status_16"] == 0x1234
    assert out["CAN_Status_1"] == 0


def test_trailing_fields():
    out = parse_realtime_packet(make_packet({74: 7, 75: 9, 83: 3, 93: 11, 102: 4}))
    assert out["error_codes"] == 7
    assert out["launch_correction"] == 9
    assert out["engine_protect_status"] == 3
    assert out["vvt1_angle"] == 11
    assert out["current_gear"] == 4


def test_missing_bytes_read_as_drained():
    out = parse_realtime_packet(make_packet(length=MIN_PACKET_LENGTH))
    assert out["vss"] == -1
    assert out["current_gear"] == -1


def test_request_data_writes_command():
    port = FakePort()
    link = EcuLink(port)
    link.request_data()
    link.request_data()
    assert bytes(port.written) == REQUEST_COMMAND * 2
    assert link.request_queue_size == 2


def test_read_available_waits_for_enough_bytes():
    port = FakePort(make_packet(length=MIN_PACKET_LENGTH - 1))
    link = EcuLink(port)
    readings = initial_readings()
    assert link.read_available(readings) is False
    assert port.in_waiting == MIN_PACKET_LENGTH - 1


def test_read_available_drops_bad_header_byte():
    data = bytearray(make_packet())
    data[0] = ord("x")
    port = FakePort(data)
    link = EcuLink(port)
    assert link.read_available(initial_readings()) is False
    assert port.in_waiting == PACKET_LENGTH - 1
    assert link.has_connection is False


def test_read_available_parses_and_drains():
    port = FakePort(make_packet({14: 0x34, 15: 0x12}) + b"extra")
    link = EcuLink(port)
    link.request_data()
    readings = initial_readings()
    assert link.read_available(readings) is True
    assert readings["rpm"] == 0x1234
    assert "correction_clt" in readings
    assert link.has_connection is True
    assert link.request_queue_size == 0
    assert port.in_waiting == 0


def test_watchdog_ignores_small_queue():
    link = EcuLink(FakePort())
    link.request_data()
    assert link.tick_watchdog() is False
    assert link.request_queue_size == 1


def test_watchdog_times_out():
    port = FakePort(make_packet())
    link = EcuLink(port)
    link.request_data()
    link.read_available(initial_readings())
    link.request_data()
    link.request_data()
    results = []
    while link.request_queue_size != 0:
        results.append(link.tick_watchdog())
    assert results[-1] is True
    assert sum(results) == 1
    assert len(results) == REQUEST_QUEUE_LIMIT - 2
    assert link.has_connection is False