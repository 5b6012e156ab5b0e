# airbear

`airbear` sits between an engine control unit that speaks the Speeduino
realtime serial protocol and the clients that want its data. It polls the
ECU over a serial port and decodes each realtime packet into a dictionary
of named readings. The `connection_type` setting (see
`airbear.config.ConnectionType`) decides what happens next:

- `DASH` (the default): an HTTP server publishes the latest readings as
  JSON at `/data` and pushes each new set to browsers as server-sent
  events at `/events`. With `--static-dir`, files from that directory are
  served too, with `index.html` at `/`.
- `TUNERSTUDIO`: a TCP bridge on port 2000 forwards tuning-software
  requests to the ECU and relays its replies.
- `DISPLAY`: two 128×64 monochrome screens are rendered into in-memory
  canvases (`airbear.canvas.Canvas`), with pages for the main gauges,
  a graph page, status, two diagnostic pages, engine, temperatures and
  fueling, plus splash, loading, notification and "no ECU data" pages.
- `BLE`: bytes arriving from the ECU are read and handed to
  `AirBear.ble_sink`, if one has been set.

## Installation

```
pip install airbear
```

To run the test suite, install the test extra:

```
pip install "airbear[test]"
pytest
```

## Running

The package installs one command:

```
airbear /dev/ttyUSB0 --config airbear.json --http-port 8080
```

Options:

- `serial_port` (required): the serial device the ECU is connected to.
- `--baud`: serial speed, 115200 by default.
- `--config`: settings file (JSON). Without it the settings live in
  memory only.
- `--host`: address to listen on, `0.0.0.0` by default.
- `--http-port`: HTTP port, 80 by default.
- `--static-dir`: directory holding the web dash files.

The command opens the settings, sets `connection_type` to `DASH` if it is
unset, opens the serial port and runs the main loop until interrupted.
Every response carries permissive CORS headers and `Cache-Control:
no-cache`.

## Using the library

Decoding a realtime packet (the response to the `n` command, at least
75 bytes, starting with `b"n"`):

```python
from airbear.protocol import parse_realtime_packet, initial_readings

readings = initial_readings()
readings.update(parse_realtime_packet(packet_bytes))
print(readings["rpm"], readings["CLT"], readings["sync"])
```

Temperatures come back with the calibration offset of 40 removed, and
status bytes are split into boolean flags such as `running`, `cranking`,
`hard_limit_on` and `sync`. A packet that is too short or has the wrong
first byte raises `ValueError`.

Polling a live ECU:

```python
import serial
from airbear.protocol import EcuLink, initial_readings

port = serial.Serial("/dev/ttyUSB0", 115200, timeout=0)
link = EcuLink(port)
readings = initial_readings()

link.request_data()              # sends b"n", counts an outstanding request
link.read_available(readings)    # True if a packet was parsed into readings
lost = link.tick_watchdog()      # call once a second; True when the ECU is deemed lost
```

Settings are kept in a small JSON key/value store:

```python
from airbear.config import init_config, ConnectionType

config = init_config("airbear.json")
config.put("connection_type", ConnectionType.DISPLAY)
print(config.get("connection_type", ConnectionType.DASH))
```

`Config.put` accepts booleans, strings and integers and saves at once.
`debug_msg(config, msg, priority)` prints `msg` when `priority` reaches
the `debugLevel` setting and `debugSerial` or `debugWeb` is on.

Pushing readings to browsers:

```python
from airbear.sse import EventBroadcaster

events = EventBroadcaster()
queue = events.subscribe()       # receives a "hello!" event first
events.notify_clients(readings)  # a "reading" event holding JSON
```

Driving the display pages:

```python
from airbear.display import DisplayController, Screen
from airbear.screens_dash import ScreenContext

ctx = ScreenContext(readings=readings, has_connection=True)
controller = DisplayController(ctx)
controller.set_screen(Screen.FUELING)
controller.update(now=1000)
print(ctx.lcd1.spans)            # text laid out on the first screen
print(ctx.lcd1.pixel(64, 12))    # whether a pixel is lit
```

The whole application is wrapped by `airbear.app.AirBear`:
`AirBear.loop_once` runs one pass of the scheduling loop driven by
`airbear.timer.LoopTimer`, and `build_app` returns the aiohttp
application it serves. In display mode, setting `AirBear.button` to
`True` after `False` cycles to the next page.

## What it does not do

- The display pages are only drawn into in-memory canvases; nothing sends
  them to physical screens.
- There is no Bluetooth server. In `BLE` mode data from the ECU goes only
  to `ble_sink`, and nothing is forwarded from Bluetooth to the ECU.
- There are no web pages for editing settings, no Wi-Fi management and no
  firmware or file-system updates; settings are changed in the JSON file
  or through `Config`.