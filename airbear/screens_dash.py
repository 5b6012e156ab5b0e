"""Dashboard screens: splash, main gauges, graph, status and diagnostics."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, MutableMapping

from airbear.canvas import Canvas, Color, arduino_map, draw_taskbar_text

FIRMWARE_VERSION = "0.1.0"

SPLASH_TIMEOUT_MS = 10000
_PROGRESS_MAX_WIDTH = 120


@dataclass
class ScreenContext:
    """Everything a screen needs to draw: both displays, the readings and system status."""

    lcd1: Canvas = field(default_factory=Canvas)
    lcd2: Canvas = field(default_factory=Canvas)
    readings: MutableMapping[str, Any] = field(default_factory=dict)
    now_ms: int = 0
    animation_frame: int = 0
    has_connection: bool = False
    loop_counter: int = 0
    free_heap: int = 0
    wifi_connected: bool = False
    request_queue_size: int = 0
    last_good_data_time: int = 0
    wifi_ssid: str = ""
    ip_address: str = "0.0.0.0"


def _cdiv(numerator: int, denominator: int) -> int:
    """Integer division rounding toward zero."""
    quotient = abs(numerator) // abs(denominator)
    return -quotient if (numerator < 0) != (denominator < 0) else quotient


def int_value(readings: Mapping[str, Any], key: str, default: int = 0) -> int:
    """Return ``readings[key]`` as an integer, or ``default`` when the key is absent."""
    if key not in readings:
        return default
    value = readings[key]
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return 0
    return 0


def main_task_text(readings: Mapping[str, Any]) -> str:
    """Return the taskbar label for the main screen; later conditions take precedence."""
    text = "MAIN"
    if int_value(readings, "idle_control_on", 0):
        text = "IDLE"
    correction_wue = int_value(readings, "correction_wue", 0)
    if correction_wue > 101:
        text = f"WUE {correction_wue}"
    if int_value(readings, "soft_limit_on", 0):
        text = "SOFT LIMIT"
    if int_value(readings, "hard_limit_on", 0):
        text = "HARD LIMIT"
    if int_value(readings, "launch_soft", 0):
        text = "LNCH SOFT"
    if int_value(readings, "launch_hard", 0):
        text = "LNCH HARD"
    if not int_value(readings, "sync", 0):
        text = "NO SYNC"
    if int_value(readings, "cranking", 0):
        text = "CRANKING"
    return text


def render_splash(ctx: ScreenContext) -> bool:
    """Draw the splash screen; return True once it should give way to the main screen."""
    lcd1, lcd2 = ctx.lcd1, ctx.lcd2
    max_width = _PROGRESS_MAX_WIDTH
    progress = arduino_map(ctx.animation_frame, 0, 59, 0, max_width * 2)
    if progress > max_width:
        progress -= max_width
    lcd1.draw_rect(4, 36, max_width, 10, Color.WHITE)
    progress = max(0, min(progress, max_width))
    lcd1.fill_rect(4, 36, progress, 10, Color.WHITE)

    lcd1.text_color = Color.WHITE
    lcd1.set_cursor(0, 48)
    lcd1.print("v")
    lcd1.println(FIRMWARE_VERSION)

    lcd2.text_color = Color.WHITE
    lcd2.set_cursor(0, 24)
    lcd2.text_size = 2
    lcd2.println("Welcome")
    lcd2.text_size = 1
    lcd2.println("Wsg")

    return ctx.now_ms > SPLASH_TIMEOUT_MS or bool(ctx.has_connection)


def _label_bar(
    lcd: Canvas, y: int, label: str, value: int, width: int, color: Color, text_x: int, suffix: str
) -> None:
    lcd.set_cursor(0, y)
    lcd.print(label)
    lcd.draw_rect(20, y, 80, 8, Color.WHITE)
    lcd.fill_rect(20, y, width, 8, color)
    lcd.set_cursor(text_x, y)
    lcd.print(value)
    if suffix:
        lcd.print(suffix)


def render_main(ctx: ScreenContext) -> None:
    """Draw speed, RPM, gear and status on display 1, temperatures and AFR on display 2."""
    readings = ctx.readings
    rpm = int_value(readings, "rpm", 0)
    vss = int_value(readings, "vss", 0)
    coolant = int_value(readings, "CLT", 0)
    manifold_pressure = int_value(readings, "MAP", 0)
    afr = int_value(readings, "AFR1", 0)
    afr_target = int_value(readings, "afr_target", 0)
    tps = int_value(readings, "TPS", 0)
    current_gear = int_value(readings, "current_gear", 0)
    iat = int_value(readings, "IAT", 0)

    lcd1 = ctx.lcd1
    lcd1.set_cursor(0, 0)
    lcd1.text_size = 1
    lcd1.print("KPH")
    lcd1.text_size = 4
    lcd1.set_cursor(24, 0)
    lcd1.print(vss)

    lcd1.text_size = 1
    lcd1.set_cursor(0, 34)
    lcd1.print("RPM")
    lcd1.text_size = 2
    lcd1.set_cursor(24, 34)
    lcd1.print(rpm)

    lcd1.text_size = 1
    lcd1.set_cursor(103, 16)
    lcd1.print("Gear")
    lcd1.text_size = 3
    lcd1.set_cursor(110, 26)
    lcd1.print(current_gear)

    lcd1.fill_rect(120, 0, 8, _cdiv(tps, 255) * 64 - 12, Color.WHITE)

    draw_taskbar_text(lcd1, main_task_text(readings))

    lcd2 = ctx.lcd2
    lcd2.text_size = 1
    hot_color = Color.INVERSE if coolant > 100 else Color.WHITE
    _label_bar(lcd2, 12, "CTS", coolant, arduino_map(coolant, 0, 120, 0, 80), hot_color, 109, "c")
    _label_bar(lcd2, 22, "IAT", iat, arduino_map(iat, 0, 100, 0, 80), Color.WHITE, 109, "c")

    lcd2.text_size = 1
    lcd2.set_cursor(0, 35)
    lcd2.print("AFR")
    lcd2.set_cursor(0, 43)
    lcd2.print("Err")
    lcd2.text_size = 2
    lcd2.set_cursor(30, 35)
    lcd2.print(afr - afr_target)

    lcd2.text_size = 1
    map_width = arduino_map(manifold_pressure, 10, 101, 0, 80)
    _label_bar(lcd2, 56, "MAP", manifold_pressure, map_width, hot_color, 105, "")


def _labelled(lcd: Canvas, y: int, label: str, value: Any) -> None:
    lcd.text_size = 1
    lcd.set_cursor(0, y)
    lcd.print(label)
    lcd.text_size = 2
    lcd.set_cursor(30, y)
    lcd.print(value)


def render_graph(ctx: ScreenContext) -> None:
    """Draw RPM, coolant and MAP with an RPM line on display 1, AFR and ignition on display 2."""
    readings = ctx.readings
    lcd1, lcd2 = ctx.lcd1, ctx.lcd2
    draw_taskbar_text(lcd1, "Main2")

    rpm = int_value(readings, "rpm", 0)
    coolant = int_value(readings, "CLT", 0)
    manifold_pressure = int_value(readings, "MAP", 0)
    afr = int_value(readings, "AFR1", 0)
    afr_target = int_value(readings, "afr_target", 0)
    tps = int_value(readings, "TPS", 0)

    lcd1.draw_line(0, 0, _cdiv(rpm, 6500) * 128, 0, Color.WHITE)
    _labelled(lcd1, 0, "RPM", rpm)
    _labelled(lcd1, 16, "CTS", coolant)
    _labelled(lcd1, 32, "MAP", manifold_pressure)
    lcd1.draw_rect(120, 0, 8, int(tps / 100.0 * 64), Color.WHITE)

    _labelled(lcd2, 0, "AFR", f"{afr / 10.0:.1f}")
    _labelled(lcd2, 16, "TGT", f"{afr_target / 10.0:.1f}")
    _labelled(lcd2, 32, "IAT", int_value(readings, "IAT", 0))
    _labelled(lcd2, 48, "IGN", int_value(readings, "adv_deg", 0))


def render_status(ctx: ScreenContext) -> None:
    """Draw engine state on display 1 and the active spark flags on display 2."""
    readings = ctx.readings
    lcd1, lcd2 = ctx.lcd1, ctx.lcd2
    draw_taskbar_text(lcd1, "STATUS")

    lcd1.text_size = 1
    lcd1.set_cursor(0, 0)
    lcd1.println("ENGINE STATUS")

    engine_flags = (
        (12, "running", "Running"),
        (22, "cranking", "Cranking"),
        (32, "warmup", "Warmup"),
    )
    for y, key, label in engine_flags:
        lcd1.set_cursor(0, y)
        lcd1.print(label if int_value(readings, key, 0) else "")

    sync = bool(int_value(readings, "sync", 0))
    lcd1.set_cursor(0, 48)
    lcd1.print("SYNC: ")
    lcd1.print("OK" if sync else "LOST")

    lcd2.text_size = 1
    lcd2.set_cursor(0, 0)
    lcd2.println("SPARK STATUS")
    spark_flags = (
        ("sync", "ECU Sync"),
        ("spark_error", "Spark ERROR"),
        ("launch_hard", "Launch Hard"),
        ("launch_soft", "Launch Soft"),
        ("hard_limit_on", "HARD LIMIT"),
        ("soft_limit_on", "SOFT LIMIT"),
        ("idle_control_on", "Idle Control ON"),
    )
    for key, label in spark_flags:
        if int_value(readings, key, 0):
            lcd2.println(label)


def _diagnostic_header(ctx: ScreenContext, taskbar: str) -> None:
    lcd1 = ctx.lcd1
    lcd1.text_size = 1
    lcd1.set_cursor(0, 0)
    lcd1.println("DIAGNOSTIC")

    lcd1.set_cursor(0, 12)
    lcd1.print("LOOP: ")
    lcd1.print(ctx.loop_counter)

    lcd1.set_cursor(0, 24)
    lcd1.print("MEM: ")
    lcd1.print(ctx.free_heap)

    lcd1.set_cursor(0, 36)
    lcd1.print("ECU: ")
    lcd1.print("CONNECTED" if ctx.has_connection else "DISCONNECTED")

    lcd1.set_cursor(0, 48)
    lcd1.print("WIFI: ")
    lcd1.print("CONNECTED" if ctx.wifi_connected else "DISCONNECTED")

    draw_taskbar_text(lcd1, taskbar)


def render_diagnostic(ctx: ScreenContext) -> None:
    """Draw loop, memory and link status on display 1 and system info on display 2."""
    _diagnostic_header(ctx, "DIAG")

    lcd2 = ctx.lcd2
    lcd2.text_size = 1
    lcd2.set_cursor(0, 0)
    lcd2.println("SYSTEM INFO")

    lcd2.set_cursor(0, 12)
    lcd2.print("Req Queue: ")
    lcd2.println(ctx.request_queue_size)

    lcd2.set_cursor(0, 24)
    lcd2.print("TPS: ")
    lcd2.println(int_value(ctx.readings, "TPS", 0))

    lcd2.set_cursor(0, 36)
    lcd2.print("Battery_Voltage: ")
    lcd2.print(int_value(ctx.readings, "Battery_Voltage", 0))
    lcd2.println("")

    lcd2.set_cursor(0, 48)
    lcd2.print("UPTIME: ")
    lcd2.print(ctx.now_ms // 1000 // 60)
    lcd2.println(" min")


def render_diagnostic_two(ctx: ScreenContext) -> None:
    """Draw the diagnostic header and a second page of ECU values."""
    _diagnostic_header(ctx, "DIAG TWO")

    readings = ctx.readings
    lcd2 = ctx.lcd2
    lcd2.text_size = 1
    lcd2.set_cursor(0, 0)
    lcd2.println("correction_wue: ")
    lcd2.print(int_value(readings, "correction_wue", 0))

    rows = (
        (12, "Error Code: ", "error_codes"),
        (24, "Launch Crect: ", "launch_correction"),
        (36, "Idle Duty: ", "idle_duty"),
        (48, "Gear: ", "current_gear"),
    )
    for y, label, key in rows:
        lcd2.set_cursor(0, y)
        lcd2.print(label)
        lcd2.println(int_value(readings, key, 0))