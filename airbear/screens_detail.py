"""Detail screens: engine, temperatures, fueling, loading, notifications and fallbacks."""

from __future__ import annotations

from typing import Any, Callable

from airbear.canvas import DISPLAY_HEIGHT, DISPLAY_WIDTH, Color, arduino_map, constrain, draw_taskbar_text
from airbear.screens_dash import ScreenContext, int_value

NOTIFICATION_WARNING = 1
NOTIFICATION_ERROR = 2
NOTIFICATION_SUCCESS = 3

_NOTIFICATION_LABELS = {
    NOTIFICATION_WARNING: "WARNING",
    NOTIFICATION_ERROR: "ERROR",
    NOTIFICATION_SUCCESS: "SUCCESS",
}

_ENGINE_STATUS = {0: "OFF", 1: "CRANKING", 2: "RUNNING", 3: "WARMUP"}

_WRAP_CHARS = 20
_WRAP_FIRST_Y = 20
_WRAP_LINE_HEIGHT = 10
_WRAP_LIMIT_Y = 50

_PROGRESS_MAX_WIDTH = 120


def _cdiv(numerator: int, denominator: int) -> int:
    """Integer division rounding toward zero."""
    quotient = abs(numerator) // abs(denominator)
    return -quotient if (numerator < 0) != (denominator < 0) else quotient


def engine_status_text(code: int) -> str:
    """Return the label for an engine status code."""
    return _ENGINE_STATUS.get(code, "UNKNOWN")


def heat_status(coolant: int) -> str:
    """Classify a coolant temperature as cold, normal or hot."""
    if coolant < 60:
        return "COLD"
    if coolant > 100:
        return "HOT"
    return "NORMAL"


def mixture_status(afr_error: float) -> str:
    """Classify an AFR error (actual minus target) as rich, optimal or lean."""
    if afr_error < -0.5:
        return "RICH"
    if afr_error > 0.5:
        return "LEAN"
    return "OPTIMAL"


def wrap_notification(message: str) -> list[str]:
    """Split a message into the lines that fit the notification box."""
    lines: list[str] = []
    y = _WRAP_FIRST_Y
    line = ""
    for char in message:
        line += char
        if char in (" ", "\n") or len(line) >= _WRAP_CHARS:
            if y < _WRAP_LIMIT_Y:
                lines.append(line)
                y += _WRAP_LINE_HEIGHT
            line = ""
    if line and y < _WRAP_LIMIT_Y:
        lines.append(line)
    return lines


def data_age_text(seconds: int) -> str:
    """Describe how long ago good data was last seen."""
    if seconds < 60:
        return f"{seconds}s ago"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    return "long ago"


def _bar(lcd: Any, y: int, width: int, color: Color, x: int = 0, length: int = 80) -> None:
    lcd.draw_rect(x, y, length, 8, Color.WHITE)
    lcd.fill_rect(x, y, width, 8, color)


def render_engine(ctx: ScreenContext) -> None:
    """Draw RPM, TPS, MAP and VE on display 1 and pulse width, MAF and load on display 2."""
    readings = ctx.readings
    rpm = int_value(readings, "rpm", 0)
    tps = int_value(readings, "TPS", 0)
    manifold_pressure = int_value(readings, "MAP", 0)
    maf = int_value(readings, "MAF", 0)
    ve = int_value(readings, "VE1", 0)
    pw1 = int_value(readings, "PW1", 0)

    lcd1 = ctx.lcd1
    lcd1.text_size = 1
    lcd1.set_cursor(0, 0)
    lcd1.println("ENGINE")

    _bar(lcd1, 12, _cdiv(rpm * 100, 8000), Color.WHITE, length=100)
    lcd1.set_cursor(105, 12)
    lcd1.print(rpm)

    for y, label, value, unit in (
        (24, "TPS: ", tps, "%"),
        (36, "MAP: ", manifold_pressure, " kPa"),
        (48, "VE: ", ve, "%"),
    ):
        lcd1.set_cursor(0, y)
        lcd1.print(label)
        lcd1.print(value)
        lcd1.print(unit)

    draw_taskbar_text(lcd1, "ENGINE")

    lcd2 = ctx.lcd2
    lcd2.text_size = 1
    lcd2.set_cursor(0, 0)
    lcd2.println("ENGINE DETAIL")

    _bar(lcd2, 12, _cdiv(pw1, 200), Color.WHITE, length=100)
    lcd2.set_cursor(105, 12)
    lcd2.print(f"{pw1 / 1000.0:.1f}")

    lcd2.set_cursor(0, 24)
    lcd2.print("MAF: ")
    lcd2.print(maf)
    lcd2.print(" g/s")

    lcd2.set_cursor(0, 36)
    lcd2.print("LOAD: ")
    lcd2.print(int_value(readings, "engine_load", 0))
    lcd2.print("%")

    lcd2.set_cursor(0, 48)
    lcd2.print("STATUS: ")
    lcd2.print(engine_status_text(int_value(readings, "engine_status", 0)))


def render_temperatures(ctx: ScreenContext) -> None:
    """Draw temperature bars and battery voltage on display 1 and temperature detail on display 2."""
    readings = ctx.readings
    coolant = int_value(readings, "CLT", 0)
    iat = int_value(readings, "IAT", 0)
    oil_temp = int_value(readings, "oilTemp", 0)
    fuel_temp = int_value(readings, "fuelTemp", 0)
    ambient_temp = int_value(readings, "ambientTemp", 0)
    battery_voltage = int_value(readings, "batt_v", 0)

    lcd1 = ctx.lcd1
    lcd1.text_size = 1
    lcd1.set_cursor(0, 0)
    lcd1.println("TEMPERATURES")

    rows = (
        (12, coolant, arduino_map(coolant, 0, 120, 0, 80), Color.INVERSE if coolant > 100 else Color.WHITE),
        (24, iat, arduino_map(iat, 0, 100, 0, 80), Color.WHITE),
        (36, oil_temp, arduino_map(oil_temp, 0, 150, 0, 80), Color.INVERSE if oil_temp > 120 else Color.WHITE),
    )
    for y, value, width, color in rows:
        _bar(lcd1, y, width, color)
        lcd1.set_cursor(85, y)
        lcd1.print(value)
        lcd1.print("C")

    lcd1.set_cursor(0, 48)
    lcd1.print("BATT: ")
    lcd1.print(f"{battery_voltage / 10.0:.1f}")
    lcd1.print("V")

    draw_taskbar_text(lcd1, "TEMPS")

    lcd2 = ctx.lcd2
    lcd2.text_size = 1
    lcd2.set_cursor(0, 0)
    lcd2.println("TEMPERATURE DETAIL")

    for y, label, value in (
        (12, "∆T: ", coolant - iat),
        (24, "FUEL: ", fuel_temp),
        (36, "AMB: ", ambient_temp),
    ):
        lcd2.set_cursor(0, y)
        lcd2.print(label)
        lcd2.print(value)
        lcd2.print("C")

    lcd2.set_cursor(0, 48)
    lcd2.print("HEAT EFF: ")
    lcd2.print(heat_status(coolant))


def render_fueling(ctx: ScreenContext) -> None:
    """Draw the AFR error indicator and fuel values on display 1 and fuel detail on display 2."""
    readings = ctx.readings
    afr = int_value(readings, "AFR1", 0)
    afr_target = int_value(readings, "afr_target", 0)
    pw1 = int_value(readings, "PW1", 0)
    ve = int_value(readings, "VE1", 0)
    manifold_pressure = int_value(readings, "MAP", 0)

    afr_actual = afr / 10.0
    afr_target_value = afr_target / 10.0
    afr_error = afr_actual - afr_target_value

    lcd1 = ctx.lcd1
    lcd1.text_size = 1
    lcd1.set_cursor(0, 0)
    lcd1.println("FUELING")

    center = 64
    lcd1.hline(24, 16, 80, Color.WHITE)
    lcd1.vline(center, 12, 8, Color.WHITE)
    indicator = constrain(int(center + afr_error * 10), 24, 104)
    lcd1.fill_rect(indicator - 2, 12, 5, 8, Color.WHITE)

    lcd1.set_cursor(0, 12)
    lcd1.print(f"{afr_actual:.1f}")
    lcd1.set_cursor(105, 12)
    lcd1.print(f"{afr_target_value:.1f}")

    for y, label, value, unit in (
        (24, "PW: ", f"{pw1 / 1000.0:.1f}", "ms"),
        (36, "VE: ", ve, "%"),
        (48, "MAP: ", manifold_pressure, "kPa"),
    ):
        lcd1.set_cursor(0, y)
        lcd1.print(label)
        lcd1.print(value)
        lcd1.print(unit)

    draw_taskbar_text(lcd1, "FUEL")

    lcd2 = ctx.lcd2
    lcd2.text_size = 1
    lcd2.set_cursor(0, 0)
    lcd2.println("FUEL DETAIL")

    lcd2.set_cursor(0, 12)
    lcd2.print("λ: ")
    lcd2.print(f"{afr_actual / 14.7:.2f}")

    rpm = int_value(readings, "rpm", 0)
    idc = 0.0
    if rpm > 0:
        idc = (pw1 / 1000.0) * (rpm / 60.0 * 2) / 1000.0 * 100.0
        idc = constrain(idc, 0, 100)
    lcd2.set_cursor(0, 24)
    lcd2.print("IDC: ")
    lcd2.print(f"{idc:.1f}")
    lcd2.print("%")

    lcd2.set_cursor(0, 36)
    lcd2.print("FUEL P: ")
    lcd2.print(int_value(readings, "fuelPressure", 0))
    lcd2.print("kPa")

    lcd2.set_cursor(0, 48)
    lcd2.print("MIX: ")
    lcd2.print(mixture_status(afr_error))


def render_loading(ctx: ScreenContext) -> None:
    """Draw a bouncing progress bar on display 1 and link status on display 2."""
    lcd1 = ctx.lcd1
    lcd1.text_size = 1
    lcd1.set_cursor(0, 0)
    lcd1.println("LOADING DATA")

    max_width = _PROGRESS_MAX_WIDTH
    progress = arduino_map(ctx.animation_frame, 0, 59, 0, max_width * 2)
    if progress > max_width:
        progress = max_width * 2 - progress
    lcd1.draw_rect(4, 20, max_width, 10, Color.WHITE)
    progress = max(0, min(progress, max_width))
    lcd1.fill_rect(4, 20, progress, 10, Color.WHITE)

    lcd1.set_cursor(0, 40)
    lcd1.println("Please wait...")

    lcd2 = ctx.lcd2
    lcd2.text_size = 1
    lcd2.set_cursor(0, 0)
    lcd2.println("SYSTEM STATUS")

    lcd2.set_cursor(0, 16)
    lcd2.print("Connected: ")
    lcd2.println("YES" if ctx.has_connection else "NO")

    lcd2.set_cursor(0, 32)
    lcd2.print("SSID: ")
    lcd2.println(ctx.wifi_ssid)

    lcd2.set_cursor(0, 48)
    lcd2.print("IP: ")
    lcd2.println(ctx.ip_address)


def render_notification(
    ctx: ScreenContext, state: Any, now: int, render_previous: Callable[[Any], None]
) -> None:
    """Draw the notification box on display 1, then the previous screen via ``render_previous``."""
    lcd1 = ctx.lcd1
    lcd1.text_size = 1

    kind = int(state.notification_type)
    type_text = _NOTIFICATION_LABELS.get(kind, "INFO")
    color = Color.WHITE
    if kind == NOTIFICATION_ERROR and ctx.animation_frame % 10 > 5:
        color = Color.BLACK
    lcd1.text_color = color

    lcd1.draw_rect(0, 0, DISPLAY_WIDTH, DISPLAY_HEIGHT, color)
    lcd1.set_cursor(4, 4)
    lcd1.print(type_text)
    lcd1.hline(0, 14, DISPLAY_WIDTH, color)

    for index, line in enumerate(wrap_notification(state.notification_message)):
        lcd1.set_cursor(4, _WRAP_FIRST_Y + index * _WRAP_LINE_HEIGHT)
        lcd1.print(line)

    time_left = 0
    if state.notification_timeout > now:
        time_left = (state.notification_timeout - now) // 1000
    lcd1.set_cursor(100, 4)
    lcd1.print(time_left)

    render_previous(state.previous_screen)


def render_no_ecu_data(ctx: ScreenContext) -> None:
    """Draw the missing-data warning with the request queue and the age of the last good data."""
    lcd1 = ctx.lcd1
    lcd1.text_size = 1
    lcd1.text_color = Color.WHITE
    lcd1.set_cursor(0, 20)
    lcd1.println("Verify ECU connection")
    draw_taskbar_text(lcd1, "NO DATA")

    lcd2 = ctx.lcd2
    lcd2.text_size = 1
    lcd2.set_cursor(0, 0)
    lcd2.println("Serial Queue: ")
    lcd2.text_size = 2
    lcd2.println(ctx.request_queue_size)

    lcd2.set_cursor(0, 32)
    lcd2.text_size = 1
    lcd2.println("Last good data: ")
    lcd2.text_size = 2

    age = 0
    if ctx.last_good_data_time > 0:
        age = (ctx.now_ms - ctx.last_good_data_time) // 1000
    if age < 60:
        lcd2.print(age)
        lcd2.print("s ago")
    elif age < 3600:
        lcd2.print(age // 60)
        lcd2.print("m ago")
    else:
        lcd2.print("long ago")


def render_custom(ctx: ScreenContext) -> None:
    """Draw the template screen."""
    lcd1 = ctx.lcd1
    lcd1.text_size = 1
    lcd1.set_cursor(0, 0)
    lcd1.println("CUSTOM SCREEN")
    draw_taskbar_text(lcd1, "CUSTOM")

    lcd2 = ctx.lcd2
    lcd2.text_size = 1
    lcd2.set_cursor(0, 0)
    lcd2.println("CUSTOM DATA")