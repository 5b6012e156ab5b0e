from airbear.timer import LoopTimer, TimerBit


def run(timer, ticks):
    for _ in range(ticks):
        timer.tick()


def test_fresh_timer_has_no_flags():
    timer = LoopTimer()
    assert timer.mask == 0
    assert timer.take(TimerBit.KHZ_1) is False


def test_one_tick_sets_only_khz():
    timer = LoopTimer()
    timer.tick()
    assert timer.mask == 1 << TimerBit.KHZ_1


def test_200hz_after_five_ticks():
    timer = LoopTimer()
    run(timer, 4)
    assert timer.take(TimerBit.HZ_200) is False
    timer.tick()
    assert timer.take(TimerBit.HZ_200) is True
    assert timer.take(TimerBit.HZ_200) is False


def test_30hz_after_33_ticks():
    timer = LoopTimer()
    run(timer, 32)
    assert timer.take(TimerBit.HZ_30) is False
    timer.tick()
    assert timer.take(TimerBit.HZ_30) is True


def test_10hz_after_100_ticks():
    timer = LoopTimer()
    run(timer, 99)
    assert timer.take(TimerBit.HZ_10) is False
    timer.tick()
    assert timer.take(TimerBit.HZ_10) is True


def test_take_clears_only_its_bit():
    timer = LoopTimer()
    run(timer, 1000)
    assert timer.take(TimerBit.HZ_1) is True
    assert timer.take(TimerBit.HZ_1) is False
    assert timer.take(TimerBit.HZ_10) is True
    assert timer.take(TimerBit.HZ_4) is True


def test_1hz_repeats_every_second():
    timer = LoopTimer()
    run(timer, 1000)
    assert timer.take(TimerBit.HZ_1) is True
    run(timer, 999)
    assert timer.take(TimerBit.HZ_1) is False
    timer.tick()
    assert timer.take(TimerBit.HZ_1) is True