"""TCP bridge between TunerStudio and the ECU serial port."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from airbear.config import Config, LogLevel, debug_msg

_log = logging.getLogger(__name__)

TCP_PORT = 2000
ECU_SERIAL_TIMEOUT_MS = 3000
CRC_LENGTH = 4
PAYLOAD_WAIT_MS = 2000
QUERY_SETTLE_S = 0.04
_POLL_INTERVAL_S = 0.001


def expected_length(high: int, low: int) -> int:
    """Return the bytes to read after the size header: payload plus CRC, as a 16-bit count."""
    return (((high & 0xFF) << 8) | (low & 0xFF)) + CRC_LENGTH & 0xFFFF


class TunerStudioBridge:
    """Forwards TunerStudio requests to the ECU and returns its replies."""

    def __init__(self, ecu: Any, config: Config) -> None:
        self.ecu = ecu
        self.config = config
        self.timeout = ECU_SERIAL_TIMEOUT_MS / 1000
        self.payload_timeout = PAYLOAD_WAIT_MS / 1000
        self.requests_received = 0
        self.num_clients = 0

    def _debug(self, msg: str) -> None:
        debug_msg(self.config, msg, LogLevel.INFO)

    def _wait_for(self, count: int, timeout: float) -> bool:
        deadline = time.monotonic() + timeout
        while self.ecu.in_waiting < count:
            if time.monotonic() >= deadline:
                return False
            time.sleep(_POLL_INTERVAL_S)
        return True

    def _drain(self) -> None:
        while self.ecu.in_waiting > 0:
            self.ecu.read(self.ecu.in_waiting)

    def handle_request(self, data: bytes) -> bytes:
        """Send one client request to the ECU and return the reply for the client."""
        data = bytes(data)
        if not data:
            raise ValueError("empty request")
        self.requests_received += 1

        self.ecu.write(data)
        self.ecu.flush()
        self._debug("Command received from client: " + data.decode("latin-1"))

        if not self._wait_for(1, self.timeout):
            self._debug("Timeout waiting for response from ECU")
            return b""
        self._debug(f"ECU response size: {self.ecu.in_waiting}")

        command = data[:1]
        if command == b"F":
            self._debug("Received an F command")
            self._wait_for(3, self.timeout)
            reply = self.ecu.read(3)
        elif command in (b"Q", b"S"):
            self._debug("Received command: " + command.decode("latin-1"))
            time.sleep(QUERY_SETTLE_S)
            reply = self.ecu.read(self.ecu.in_waiting)
            self._debug("Sent response: " + reply.decode("latin-1"))
        else:
            self._wait_for(2, self.timeout)
            header = self.ecu.read(2)
            high, low = (header + b"\x00\x00")[:2]
            serial_len = expected_length(high, low)
            _log.debug("Expecting %d bytes from ECU", serial_len)
            self._wait_for(serial_len - 1, self.payload_timeout)
            reply = bytes((high, low)) + self.ecu.read(serial_len)

        self._drain()
        return reply

    async def serve(self, host: str = "0.0.0.0", port: int = TCP_PORT) -> asyncio.AbstractServer:
        """Start listening for TunerStudio connections and return the running server."""
        lock = asyncio.Lock()

        async def on_client(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            self.num_clients += 1
            _log.info("New TCP client: %s", writer.get_extra_info("peername"))
            try:
                while True:
                    data = await reader.read(4096)
                    if not data:
                        break
                    async with lock:
                        reply = await asyncio.to_thread(self.handle_request, data)
                    if reply:
                        writer.write(reply)
                        await writer.drain()
            except ConnectionError:
                _log.info("TCP client disconnected")
            finally:
                writer.close()

        return await asyncio.start_server(on_client, host, port)