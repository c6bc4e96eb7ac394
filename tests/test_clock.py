import pytest

from harper_dash.clock import Clock, FixedStep


class FakeTime:
    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now


def test_now_ms_is_relative_to_creation():
    t = FakeTime()
    clock = Clock(time_source=t)
    assert clock.now_ms() == 0
    t.now += 3.5
    assert clock.now_ms() == pytest.approx(3500)


def test_tick_reports_bounded_deltas():
    t = FakeTime()
    clock = Clock(time_source=t, max_delta_ms=250)
    assert clock.tick() == 0.0

    t.now += 0.016
    assert clock.tick() == pytest.approx(16)

    t.now += 5.0
    assert clock.tick() == 250

    t.now -= 1.0
    assert clock.tick() == 0.0
    assert clock.elapsed_ms == pytest.approx(266)


def test_fixed_step_carries_remainder():
    step = FixedStep(step_ms=10, max_steps=8)
    assert step.consume(25) == 2
    assert step.accumulated == pytest.approx(5)
    assert step.consume(5) == 1
    assert step.consume(3) == 0


def test_fixed_step_caps_catch_up():
    step = FixedStep(step_ms=10, max_steps=3)
    assert step.consume(100) == 3
    assert step.accumulated < 10


def test_fixed_step_rejects_bad_input():
    with pytest.raises(ValueError):
        FixedStep(step_ms=0)
    with pytest.raises(ValueError):
        FixedStep(max_steps=0)
    with pytest.raises(ValueError):
        FixedStep().consume(-1)
