"""Monochrome frame buffer with text layout, and the shared drawing routines."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any

DISPLAY_WIDTH = 128
DISPLAY_HEIGHT = 64

GLYPH_WIDTH = 6
GLYPH_HEIGHT = 8


class Color(IntEnum):
    BLACK = 0
    WHITE = 1
    INVERSE = 2


@dataclass(frozen=True)
class TextSpan:
    """A run of text placed on the canvas."""

    x: int
    y: int
    size: int
    color: Color
    text: str


def _trunc_div(numerator: int, denominator: int) -> int:
    """Integer division rounding toward zero, as fixed-width C arithmetic does."""
    quotient = abs(numerator) // abs(denominator)
    return -quotient if (numerator < 0) != (denominator < 0) else quotient


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


class Canvas:
    """A one-bit display buffer; shapes set pixels, text is laid out as spans."""

    def __init__(self, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"canvas size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self._pixels = bytearray(width * height)
        self.spans: list[TextSpan] = []
        self.cursor_x = 0
        self.cursor_y = 0
        self.text_size = 1
        self.text_color = Color.WHITE
        self.wrap = True
        self.inverted = False

    def clear(self) -> None:
        """Blank the buffer and drop all placed text."""
        self._pixels = bytearray(self.width * self.height)
        self.spans = []

    def pixel(self, x: int, y: int) -> bool:
        """Return whether the pixel at ``(x, y)`` is lit."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} canvas")
        return bool(self._pixels[y * self.width + x])

    def _plot(self, x: int, y: int, color: Color) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            return
        index = y * self.width + x
        if color == Color.INVERSE:
            self._pixels[index] ^= 1
        else:
            self._pixels[index] = 1 if color == Color.WHITE else 0

    def fill_rect(self, x: int, y: int, width: int, height: int, color: Color) -> None:
        """Fill a rectangle; negative sizes extend left or up, off-canvas parts are clipped."""
        if width < 0:
            x += width + 1
            width = -width
        if height < 0:
            y += height + 1
            height = -height
        x0, x1 = max(x, 0), min(x + width, self.width)
        y0, y1 = max(y, 0), min(y + height, self.height)
        for row in range(y0, y1):
            for col in range(x0, x1):
                self._plot(col, row, color)

    def draw_rect(self, x: int, y: int, width: int, height: int, color: Color) -> None:
        """Draw a rectangle outline."""
        self.hline(x, y, width, color)
        self.hline(x, y + height - 1, width, color)
        self.vline(x, y, height, color)
        self.vline(x + width - 1, y, height, color)

    def draw_line(self, x0: int, y0: int, x1: int, y1: int, color: Color) -> None:
        """Draw a straight line between two points, both ends included."""
        steep = abs(y1 - y0) > abs(x1 - x0)
        if steep:
            x0, y0, x1, y1 = y0, x0, y1, x1
        if x0 > x1:
            x0, x1, y0, y1 = x1, x0, y1, y0
        dx = x1 - x0
        dy = abs(y1 - y0)
        err = dx // 2
        ystep = 1 if y0 < y1 else -1
        y = y0
        for x in range(x0, x1 + 1):
            if steep:
                self._plot(y, x, color)
            else:
                self._plot(x, y, color)
            err -= dy
            if err < 0:
                y += ystep
                err += dx

    def hline(self, x: int, y: int, width: int, color: Color) -> None:
        """Draw a horizontal line ``width`` pixels long."""
        self.fill_rect(x, y, width, 1, color)

    def vline(self, x: int, y: int, height: int, color: Color) -> None:
        """Draw a vertical line ``height`` pixels long."""
        self.fill_rect(x, y, 1, height, color)

    def set_cursor(self, x: int, y: int) -> None:
        """Move the text cursor."""
        self.cursor_x = x
        self.cursor_y = y

    def print(self, value: Any) -> None:
        """Place ``value`` as text at the cursor and advance it."""
        text = _format_value(value)
        advance = GLYPH_WIDTH * self.text_size
        line_height = GLYPH_HEIGHT * self.text_size
        segment: list[str] = []
        start = (self.cursor_x, self.cursor_y)

        def flush() -> None:
            if segment:
                self.spans.append(
                    TextSpan(start[0], start[1], self.text_size, Color(self.text_color), "".join(segment))
                )
                segment.clear()

        for char in text:
            if char == "\n":
                flush()
                self.cursor_x = 0
                self.cursor_y += line_height
                start = (self.cursor_x, self.cursor_y)
                continue
            if char == "\r":
                continue
            if self.wrap and self.cursor_x + advance > self.width:
                flush()
                self.cursor_x = 0
                self.cursor_y += line_height
                start = (self.cursor_x, self.cursor_y)
            if not segment:
                start = (self.cursor_x, self.cursor_y)
            segment.append(char)
            self.cursor_x += advance
        flush()

    def println(self, value: Any = "") -> None:
        """Print ``value`` and move the cursor to the start of the next line."""
        self.print(value)
        self.print("\n")


def arduino_map(value: int, in_min: int, in_max: int, out_min: int, out_max: int) -> int:
    """Re-map ``value`` from one integer range to another, truncating toward zero."""
    if in_max == in_min:
        raise ValueError("input range is empty: in_min equals in_max")
    return _trunc_div((value - in_min) * (out_max - out_min), in_max - in_min) + out_min


def constrain(value: Any, low: Any, high: Any) -> Any:
    """Clamp ``value`` into ``[low, high]``."""
    if value < low:
        return low
    if value > high:
        return high
    return value


def draw_taskbar_text(canvas: Canvas, text: str) -> None:
    """Draw ``text`` centred in black on a white bar along the bottom edge."""
    canvas.text_size = 2
    canvas.text_color = Color.BLACK
    text_width = len(text) * 12
    x = max(0, _trunc_div(canvas.width - text_width, 2))
    y = canvas.height - 16
    canvas.fill_rect(0, y, canvas.width, 16, Color.WHITE)
    canvas.set_cursor(x, y + 1)
    canvas.print(text)
    canvas.text_color = Color.WHITE


def draw_progress_bar(canvas: Canvas, x: int, y: int, width: int, height: int, percentage: int) -> None:
    """Draw an outlined bar filled to ``percentage`` (clamped to 0..100)."""
    percentage = constrain(percentage, 0, 100)
    canvas.draw_rect(x, y, width, height, Color.WHITE)
    fill_width = _trunc_div((width - 2) * percentage, 100)
    canvas.fill_rect(x + 1, y + 1, fill_width, height - 2, Color.WHITE)


def _value_width(value: int) -> int:
    if value < 0:
        magnitude = abs(value)
        if magnitude < 10:
            return 18
        if magnitude < 100:
            return 24
        if magnitude < 1000:
            return 30
        return 36
    if value < 10:
        return 12
    if value < 100:
        return 18
    if value < 1000:
        return 24
    return 30


def draw_value_with_label(
    canvas: Canvas, x: int, y: int, label: str, value: int, units: str | None
) -> None:
    """Draw a small label, a large value after it, and optional small units."""
    canvas.text_color = Color.WHITE
    canvas.text_size = 1
    canvas.set_cursor(x, y)
    canvas.print(label)

    canvas.text_size = 2
    canvas.set_cursor(x + 30, y)
    canvas.print(value)

    if units:
        canvas.text_size = 1
        canvas.set_cursor(x + 30 + _value_width(value), y + 5)
        canvas.print(units)


def draw_horizontal_gauge(
    canvas: Canvas, x: int, y: int, width: int, height: int, value: int, min_value: int, max_value: int
) -> None:
    """Draw a left-to-right gauge with its range labelled underneath."""
    value = constrain(value, min_value, max_value)
    canvas.draw_rect(x, y, width, height, Color.WHITE)
    fill_width = arduino_map(value, min_value, max_value, 0, width - 2)
    canvas.fill_rect(x + 1, y + 1, fill_width, height - 2, Color.WHITE)

    canvas.text_size = 1
    canvas.set_cursor(x, y + height + 1)
    canvas.print(min_value)
    max_label_width = len(str(max_value)) * GLYPH_WIDTH
    canvas.set_cursor(x + width - max_label_width, y + height + 1)
    canvas.print(max_value)


def draw_vertical_gauge(
    canvas: Canvas, x: int, y: int, width: int, height: int, value: int, min_value: int, max_value: int
) -> None:
    """Draw a bottom-up gauge with its range labelled to the right."""
    value = constrain(value, min_value, max_value)
    canvas.draw_rect(x, y, width, height, Color.WHITE)
    fill_height = arduino_map(value, min_value, max_value, 0, height - 2)
    canvas.fill_rect(x + 1, y + height - 1 - fill_height, width - 2, fill_height, Color.WHITE)

    canvas.text_size = 1
    canvas.set_cursor(x + width + 2, y + height - 8)
    canvas.print(min_value)
    canvas.set_cursor(x + width + 2, y)
    canvas.print(max_value)