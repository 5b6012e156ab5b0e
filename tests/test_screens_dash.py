import pytest

from airbear.protocol import initial_readings
from airbear.screens_dash import (
    FIRMWARE_VERSION,
    ScreenContext,
    int_value,
    main_task_text,
    render_diagnostic,
    render_diagnostic_two,
    render_graph,
    render_main,
    render_splash,
    render_status,
)


def texts(canvas):
    return [span.text for span in canvas.spans]


def synced(**extra):
    readings = initial_readings()
    readings["sync"] = True
    readings.update(extra)
    return readings


def lit_in_row(canvas, y, x_range):
    return sum(canvas.pixel(x, y) for x in x_range)


def test_int_value_missing_key_gives_default():
    assert int_value({}, "rpm", 7) == 7


def test_int_value_truncates_floats_and_converts_bools():
    assert int_value({"AFR1": 14.7}, "AFR1", 0) == 14
    assert int_value({"sync": True}, "sync", 0) == 1
    assert int_value({"sync": False}, "sync", 5) == 0


def test_int_value_non_numeric_is_zero():
    assert int_value({"x": "abc"}, "x", 9) == 0


def test_task_text_without_sync():
    assert main_task_text(initial_readings()) == "NO SYNC"


def test_task_text_plain_main():
    assert main_task_text(synced()) == "MAIN"


def test_task_text_idle_and_wue():
    assert main_task_text(synced(idle_control_on=True)) == "IDLE"
    assert main_task_text(synced(idle_control_on=True, correction_wue=120)) == "WUE 120"
    assert main_task_text(synced(correction_wue=101)) == "MAIN"


@pytest.mark.parametrize(
    "flags, expected",
    [
        ({"soft_limit_on": True}, "SOFT LIMIT"),
        ({"soft_limit_on": True, "hard_limit_on": True}, "HARD LIMIT"),
        ({"hard_limit_on": True, "launch_soft": True}, "LNCH SOFT"),
        ({"launch_soft": True, "launch_hard": True}, "LNCH HARD"),
        ({"launch_hard": True, "cranking": True}, "CRANKING"),
    ],
)
def test_task_text_precedence(flags, expected):
    assert main_task_text(synced(**flags)) == expected


def test_cranking_overrides_missing_sync():
    readings = initial_readings()
    readings["cranking"] = True
    assert main_task_text(readings) == "CRANKING"


def test_splash_stays_before_timeout_without_connection():
    ctx = ScreenContext(now_ms=0)
    assert render_splash(ctx) is False
    assert FIRMWARE_VERSION in texts(ctx.lcd1)
    assert "Welcome" in texts(ctx.lcd2)


def test_splash_ends_after_timeout_or_connection():
    assert render_splash(ScreenContext(now_ms=10001)) is True
    assert render_splash(ScreenContext(now_ms=10000)) is False
    assert render_splash(ScreenContext(has_connection=True)) is True


def test_splash_progress_fills_with_animation():
    start = ScreenContext(animation_frame=0)
    render_splash(start)
    later = ScreenContext(animation_frame=29)
    render_splash(later)
    assert not start.lcd1.pixel(50, 40)
    assert later.lcd1.pixel(50, 40)


def test_main_shows_speed_rpm_and_taskbar():
    ctx = ScreenContext(readings=synced(vss=88, rpm=3500, current_gear=4))
    render_main(ctx)
    lcd1_text = texts(ctx.lcd1)
    assert "88" in lcd1_text
    assert "3500" in lcd1_text
    assert "4" in lcd1_text
    assert "MAIN" in lcd1_text


def test_main_coolant_bar_grows_with_temperature():
    cold = ScreenContext(readings=synced(CLT=30))
    hot = ScreenContext(readings=synced(CLT=90))
    render_main(cold)
    render_main(hot)
    columns = range(21, 99)
    assert lit_in_row(hot.lcd2, 15, columns) > lit_in_row(cold.lcd2, 15, columns)


def test_main_afr_error_is_difference():
    ctx = ScreenContext(readings=synced(AFR1=14.7, afr_target=12.0))
    render_main(ctx)
    assert "2" in texts(ctx.lcd2)


def test_graph_rpm_line_only_at_limit():
    low = ScreenContext(readings=synced(rpm=3000))
    high = ScreenContext(readings=synced(rpm=6500))
    render_graph(low)
    render_graph(high)
    assert not low.lcd1.pixel(60, 0)
    assert high.lcd1.pixel(60, 0)
    assert "Main2" in texts(high.lcd1)


def test_status_lists_active_flags():
    ctx = ScreenContext(readings=synced(hard_limit_on=True, running=True))
    render_status(ctx)
    assert "HARD LIMIT" in texts(ctx.lcd2)
    assert "ECU Sync" in texts(ctx.lcd2)
    assert "SOFT LIMIT" not in texts(ctx.lcd2)
    assert "Running" in texts(ctx.lcd1)
    assert "OK" in texts(ctx.lcd1)


def test_status_reports_lost_sync():
    ctx = ScreenContext(readings=initial_readings())
    render_status(ctx)
    assert "LOST" in texts(ctx.lcd1)
    assert "ECU Sync" not in texts(ctx.lcd2)


def test_diagnostic_connection_words():
    offline = ScreenContext(readings=initial_readings())
    render_diagnostic(offline)
    online = ScreenContext(readings=initial_readings(), has_connection=True, wifi_connected=True)
    render_diagnostic(online)
    assert texts(offline.lcd1).count("DISCONNECTED") == 2
    assert texts(online.lcd1).count("CONNECTED") == 2
    assert "DIAG" in texts(online.lcd1)


def test_diagnostic_shows_loop_counter_and_queue():
    ctx = ScreenContext(readings=initial_readings(), loop_counter=1234, request_queue_size=5)
    render_diagnostic(ctx)
    assert "1234" in texts(ctx.lcd1)
    assert "5" in texts(ctx.lcd2)


def test_diagnostic_two_taskbar_and_values():
    ctx = ScreenContext(readings=synced(error_codes=17, current_gear=3))
    render_diagnostic_two(ctx)
    assert "DIAG TWO" in texts(ctx.lcd1)
    assert "17" in texts(ctx.lcd2)
    assert "3" in texts(ctx.lcd2)