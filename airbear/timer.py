"""Millisecond tick counter that raises loop-frequency flags."""

from __future__ import annotations

from enum import IntEnum


class TimerBit(IntEnum):
    HZ_1 = 0
    HZ_4 = 1
    HZ_10 = 2
    HZ_15 = 3
    HZ_30 = 4
    HZ_200 = 6
    KHZ_1 = 7


_PERIODS_MS = (
    (5, TimerBit.HZ_200),
    (33, TimerBit.HZ_30),
    (66, TimerBit.HZ_15),
    (100, TimerBit.HZ_10),
    (250, TimerBit.HZ_4),
    (1000, TimerBit.HZ_1),
)


class LoopTimer:
    """Counts millisecond ticks and sets a flag bit for each loop frequency due."""

    def __init__(self) -> None:
        self.mask = 0
        self._counters = {bit: 0 for _, bit in _PERIODS_MS}

    def tick(self) -> None:
        """Account for one elapsed millisecond."""
        self.mask |= 1 << TimerBit.KHZ_1
        for period, bit in _PERIODS_MS:
            count = self._counters[bit] + 1
            if count == period:
                count = 0
                self.mask |= 1 << bit
            self._counters[bit] = count

    def take(self, bit: TimerBit) -> bool:
        """Clear the flag for ``bit`` and return whether it was set."""
        flag = 1 << bit
        if self.mask & flag:
            self.mask &= ~flag
            return True
        return False