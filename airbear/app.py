"""The AirBear main loop, its web endpoints and the command-line entry point."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import time
from pathlib import Path
from typing import Any, Callable

from aiohttp import web

from airbear.config import Config, ConnectionType, init_config
from airbear.display import DisplayController, next_button_screen
from airbear.protocol import EcuLink, initial_readings
from airbear.screens_dash import ScreenContext
from airbear.sse import EventBroadcaster
from airbear.tcp_bridge import TCP_PORT, TunerStudioBridge
from airbear.timer import LoopTimer, TimerBit

_log = logging.getLogger(__name__)

ECU_BAUD_RATE = 115200
HTTP_PORT = 80
REQUEST_QUEUE_TARGET = 2
NO_DATA_BACKDATE_MS = 60000
MAX_TICKS_PER_LOOP = 1000
_LOOP_SLEEP_S = 0.001

DEFAULT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT",
    "Access-Control-Allow-Headers": "content-type",
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}


def _monotonic_ms_since(start: float) -> Callable[[], int]:
    return lambda: int((time.monotonic() - start) * 1000)


class AirBear:
    """The device's main loop: polls the ECU, feeds web clients and drives the displays."""

    def __init__(self, config: Config, link: EcuLink) -> None:
        self.config = config
        self.link = link
        self.clock: Callable[[], int] = _monotonic_ms_since(time.monotonic())
        self.timer = LoopTimer()
        self.broadcaster = EventBroadcaster()
        self.loop_counter = 0
        self.last_good_data_time = 0
        self.button = False
        self._last_button = True
        self.ble_sink: Callable[[bytes], Any] | None = None
        self.static_dir: Path | None = None

        mode = self.connection_type
        self.readings: dict[str, Any] = initial_readings() if mode == ConnectionType.DASH else {}
        self.display = DisplayController(ScreenContext(readings=self.readings))
        self.bridge = (
            TunerStudioBridge(link.port, config) if mode == ConnectionType.TUNERSTUDIO else None
        )
        self._last_tick_ms = self.clock()

    @property
    def connection_type(self) -> int:
        return int(self.config.get("connection_type", ConnectionType.NONE))

    def _advance_timer(self) -> int:
        now = self.clock()
        elapsed = max(0, now - self._last_tick_ms)
        self._last_tick_ms = now
        for _ in range(min(elapsed, MAX_TICKS_PER_LOOP)):
            self.timer.tick()
        return now

    def _sync_display_context(self) -> None:
        ctx = self.display.ctx
        ctx.has_connection = self.link.has_connection
        ctx.loop_counter = self.loop_counter
        ctx.request_queue_size = self.link.request_queue_size
        ctx.last_good_data_time = self.last_good_data_time

    def loop_once(self) -> None:
        """Run one pass of the main loop."""
        now = self._advance_timer()
        self.loop_counter += 1
        mode = self.connection_type
        port = self.link.port

        if self.timer.take(TimerBit.HZ_10):
            if mode == ConnectionType.DASH:
                if port.in_waiting:
                    self.link.read_available(self.readings)
                if self.link.request_queue_size < REQUEST_QUEUE_TARGET:
                    self.link.request_data()
                self.broadcaster.notify_clients(self.readings)
            elif mode == ConnectionType.DISPLAY:
                if port.in_waiting:
                    self.link.read_available(self.readings)
                    self.last_good_data_time = now
                if self.link.request_queue_size < REQUEST_QUEUE_TARGET:
                    self.link.request_data()

        if self.timer.take(TimerBit.HZ_30):
            self._sync_display_context()
            self.display.update(now)

        if mode == ConnectionType.BLE and port.in_waiting:
            message = port.read(port.in_waiting)
            _log.info("Received message back from ECU: %r", message)
            if self.ble_sink is not None:
                self.ble_sink(message)

        if self.timer.take(TimerBit.HZ_1):
            if mode in (ConnectionType.DASH, ConnectionType.DISPLAY):
                self.broadcaster.send_ping()
                _log.debug("Notifications sent: %d", self.broadcaster.notifications_sent)
                if self.link.tick_watchdog():
                    if mode == ConnectionType.DISPLAY:
                        state = self.display.state
                        state.has_ecu_data = False
                        state.refresh_needed = True
                        if self.last_good_data_time == 0:
                            self.last_good_data_time = now - NO_DATA_BACKDATE_MS
                    else:
                        self.broadcaster.send_no_data()
            elif mode == ConnectionType.TUNERSTUDIO and self.bridge is not None:
                if self.bridge.num_clients > 0:
                    _log.info(
                        "TunerStudio requests received: %d", self.bridge.requests_received
                    )

        if mode == ConnectionType.DISPLAY:
            pressed = bool(self.button)
            if pressed and not self._last_button:
                self.display.set_screen(next_button_screen(self.display.state.current_screen))
            self._last_button = pressed


def build_app(airbear: AirBear) -> web.Application:
    """Create the web application serving the dash data and event stream."""
    app = web.Application()
    stopping = asyncio.Event()

    async def add_default_headers(request: web.Request, response: web.StreamResponse) -> None:
        for name, value in DEFAULT_HEADERS.items():
            response.headers.setdefault(name, value)

    async def on_shutdown(app: web.Application) -> None:
        stopping.set()

    app.on_response_prepare.append(add_default_headers)
    app.on_shutdown.append(on_shutdown)

    if airbear.connection_type != ConnectionType.DASH:
        return app

    async def data(request: web.Request) -> web.Response:
        return web.Response(text=json.dumps(airbear.readings), content_type="text/json")

    async def events(request: web.Request) -> web.StreamResponse:
        response = web.StreamResponse(headers={"Content-Type": "text/event-stream"})
        await response.prepare(request)
        queue = airbear.broadcaster.subscribe()
        try:
            while not stopping.is_set():
                try:
                    message = await asyncio.wait_for(queue.get(), timeout=1.0)
                except asyncio.TimeoutError:
                    continue
                await response.write(message.encode("utf-8"))
        except ConnectionResetError:
            _log.info("Event client went away")
        finally:
            airbear.broadcaster.unsubscribe(queue)
        return response

    app.router.add_get("/data", data)
    app.router.add_get("/events", events)

    static_dir = airbear.static_dir
    if static_dir is not None:
        root = Path(static_dir)

        async def index(request: web.Request) -> web.FileResponse:
            return web.FileResponse(root / "index.html")

        app.router.add_get("/", index)
        app.router.add_static("/", root)
    return app


async def _run(airbear: AirBear, host: str, http_port: int) -> None:
    runner = web.AppRunner(build_app(airbear))
    await runner.setup()
    servers = []
    try:
        await web.TCPSite(runner, host, http_port).start()
        if airbear.bridge is not None:
            servers.append(await airbear.bridge.serve(host, TCP_PORT))
        while True:
            airbear.loop_once()
            await asyncio.sleep(_LOOP_SLEEP_S)
    finally:
        for server in servers:
            server.close()
        await runner.cleanup()


def main(argv: list[str] | None = None) -> int:
    """Run the bridge between a Speeduino ECU and its web, display and TCP clients."""
    parser = argparse.ArgumentParser(
        prog="airbear", description="Serve live Speeduino ECU data over the network."
    )
    parser.add_argument("serial_port", help="serial device the ECU is connected to")
    parser.add_argument("--baud", type=int, default=ECU_BAUD_RATE)
    parser.add_argument("--config", default=None, help="settings file (JSON)")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--http-port", type=int, default=HTTP_PORT)
    parser.add_argument("--static-dir", default=None, help="directory holding the web dash")
    args = parser.parse_args(argv)

    import serial

    logging.basicConfig(level=logging.INFO)
    config = init_config(args.config)
    try:
        port = serial.Serial(args.serial_port, args.baud, timeout=0)
    except serial.SerialException as exc:
        parser.exit(1, f"airbear: cannot open {args.serial_port}: {exc}\n")

    with port:
        port.reset_input_buffer()
        airbear = AirBear(config, EcuLink(port))
        if args.static_dir is not None:
            airbear.static_dir = Path(args.static_dir)
        try:
            asyncio.run(_run(airbear, args.host, args.http_port))
        except KeyboardInterrupt:
            _log.info("Stopping")
    return 0