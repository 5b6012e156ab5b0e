"""Screen selection, notifications and refresh logic for the two dash displays."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Callable

from airbear import screens_dash, screens_detail
from airbear.screens_dash import ScreenContext, int_value

ANIMATION_INTERVAL_MS = 100
ANIMATION_FRAMES = 60
MESSAGE_CAPACITY = 63
BUTTON_CYCLE = 8


class Screen(IntEnum):
    MAIN = 0
    GRAPH = 1
    STATUS = 2
    DIAGNOSTIC = 3
    DIAGNOSTIC_2 = 4
    ENGINE = 5
    TEMPS = 6
    FUELING = 7
    LOADING = 8
    NOTIFICATION = 9
    NO_ECU_DATA = 10
    SPLASH = 11
    CUSTOM = 12


SCREEN_COUNT = len(Screen)

_ANIMATED_SCREENS = frozenset({Screen.SPLASH, Screen.LOADING, Screen.NO_ECU_DATA})


class NotificationType(IntEnum):
    INFO = 0
    WARNING = 1
    ERROR = 2
    SUCCESS = 3


@dataclass
class DisplayState:
    """What the displays currently show and what they should show next."""

    current_screen: int = Screen.SPLASH
    previous_screen: int = Screen.MAIN
    display_notification: bool = False
    notification_type: NotificationType = NotificationType.INFO
    notification_message: str = ""
    notification_timeout: int = 0
    has_ecu_data: bool = False
    refresh_needed: bool = True
    animation_enabled: bool = True
    animation_frame: int = 0


class DisplayController:
    """Decides which screen to draw and redraws it when something changed."""

    def __init__(self, ctx: ScreenContext | None = None) -> None:
        self.ctx = ctx if ctx is not None else ScreenContext()
        self.state = DisplayState()
        self._last_animation_update = 0
        self._renderers: dict[int, Callable[[ScreenContext], None]] = {
            Screen.MAIN: screens_dash.render_main,
            Screen.GRAPH: screens_dash.render_graph,
            Screen.STATUS: screens_dash.render_status,
            Screen.DIAGNOSTIC: screens_dash.render_diagnostic,
            Screen.DIAGNOSTIC_2: screens_dash.render_diagnostic_two,
            Screen.ENGINE: screens_detail.render_engine,
            Screen.TEMPS: screens_detail.render_temperatures,
            Screen.FUELING: screens_detail.render_fueling,
            Screen.LOADING: screens_detail.render_loading,
            Screen.NO_ECU_DATA: screens_detail.render_no_ecu_data,
            Screen.CUSTOM: screens_detail.render_custom,
        }

    def set_screen(self, screen: int) -> bool:
        """Switch to ``screen``; unknown screens are ignored. Return whether it switched."""
        if not 0 <= screen < SCREEN_COUNT:
            return False
        state = self.state
        state.previous_screen = state.current_screen
        state.current_screen = Screen(screen)
        state.refresh_needed = True
        if state.display_notification and screen != Screen.NOTIFICATION:
            state.display_notification = False
        return True

    def show_notification(self, kind: int, message: str, timeout: int) -> None:
        """Show ``message`` for ``timeout`` milliseconds, then return to the current screen."""
        state = self.state
        if state.current_screen != Screen.NOTIFICATION:
            state.previous_screen = state.current_screen
        state.notification_type = NotificationType(kind)
        state.notification_message = message[:MESSAGE_CAPACITY]
        state.notification_timeout = self.ctx.now_ms + timeout
        state.display_notification = True
        state.current_screen = Screen.NOTIFICATION
        state.refresh_needed = True

    def clear_notification(self) -> None:
        """Dismiss the notification and go back to the screen before it."""
        state = self.state
        state.display_notification = False
        state.current_screen = state.previous_screen
        state.refresh_needed = True

    def update(self, now: int) -> bool:
        """Advance animation and timeouts at time ``now`` (ms); redraw if needed. Return whether drawn."""
        state = self.state
        ctx = self.ctx
        ctx.now_ms = now

        if now - self._last_animation_update >= ANIMATION_INTERVAL_MS:
            self._last_animation_update = now
            state.animation_frame = (state.animation_frame + 1) % ANIMATION_FRAMES
            state.refresh_needed = True

        if state.display_notification and now > state.notification_timeout:
            self.clear_notification()

        if state.current_screen in _ANIMATED_SCREENS:
            state.refresh_needed = True

        if not state.refresh_needed:
            return False

        ctx.lcd1.clear()
        ctx.lcd2.clear()
        ctx.animation_frame = state.animation_frame

        state.has_ecu_data = bool(ctx.has_connection)
        screen = state.current_screen if state.has_ecu_data else Screen.NO_ECU_DATA
        if state.current_screen == Screen.SPLASH:
            screen = Screen.SPLASH

        self.render_screen(screen)

        hard_limit = int_value(ctx.readings, "hard_limit_on", 0) == 1
        soft_limit = int_value(ctx.readings, "soft_limit_on", 0) == 1
        ctx.lcd1.inverted = hard_limit or soft_limit
        ctx.lcd2.inverted = hard_limit

        state.refresh_needed = False
        return True

    def render_screen(self, screen: int) -> None:
        """Draw ``screen`` on both displays; unknown screens draw the main screen."""
        if screen == Screen.SPLASH:
            if screens_dash.render_splash(self.ctx):
                self.set_screen(Screen.MAIN)
            return
        if screen == Screen.NOTIFICATION:
            screens_detail.render_notification(
                self.ctx, self.state, self.ctx.now_ms, self.render_screen
            )
            return
        self._renderers.get(screen, screens_dash.render_main)(self.ctx)


def next_button_screen(current: int) -> Screen:
    """Return the screen a button press cycles to from ``current``."""
    nxt = (current + 1) % BUTTON_CYCLE
    if nxt in (Screen.NOTIFICATION, Screen.NO_ECU_DATA):
        nxt = (nxt + 1) % BUTTON_CYCLE
    return Screen(nxt)